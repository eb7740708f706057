from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from flask import Blueprint

from app.htmxspa.modules.todos.service import compute_stats
from app.htmxspa.modules.users.service import count_users
from app.htmxspa.plugins.landing import Feature
from app.htmxspa.rendering import render, render_page, view

if TYPE_CHECKING:
    from app.htmxspa.plugins.landing import LandingModule


@view("landing/index.html")
@dataclass(frozen=True)
class LandingIndex:
    title: str
    subtitle: str
    features: tuple[Feature, ...]


@view("landing/stats.html")
@dataclass(frozen=True)
class LandingStats:
    user_count: int
    todo_count: int
    satisfaction: int


def create_blueprint(module: "LandingModule") -> Blueprint:
    bp = Blueprint("landing", __name__)

    @bp.get("/")
    def index():
        cfg = module.config
        return render_page(
            LandingIndex(title=cfg.title, subtitle=cfg.subtitle, features=cfg.features),
            title=cfg.title,
            active="landing",
        )

    @bp.get("/stats")
    def stats():
        sm = module.context.sessionmaker
        with sm() as s:
            todo_count = compute_stats(s).total
            user_count = count_users(s)
        return render(
            LandingStats(user_count=user_count, todo_count=todo_count, satisfaction=module.config.satisfaction)
        )

    return bp
