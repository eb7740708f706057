from __future__ import annotations

from dataclasses import dataclass

from flask import Blueprint

from app.htmxspa.rendering import render, view

bp = Blueprint("modal", __name__)


@view("modal/example.html")
@dataclass(frozen=True)
class ExampleModal:
    title: str = "Example modal"


@bp.get("/modal/example")
def modal_example():
    return render(ExampleModal())
