"""
Page dispatch.

Two route tables over the same content builders:
- full pages (/, /todos, /users) wrap the content in the site layout; these are
  what bookmarks and direct navigation hit.
- fragments (/page/<name>) return the bare content for in-page navigation and
  tell HTMX which canonical URL to push into the address bar.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from flask import Blueprint, make_response
from sqlalchemy.orm import Session

from app.htmxspa.db import db_session
from app.htmxspa.errors import NotFound
from app.htmxspa.modules.todos.service import compute_stats, list_todos
from app.htmxspa.modules.todos.views import TodosPage
from app.htmxspa.modules.users.service import count_users, list_users
from app.htmxspa.modules.users.views import UsersPage
from app.htmxspa.rendering import render, render_layout
from app.htmxspa.views import HomePage

bp = Blueprint("pages", __name__)


def home_content(s: Session) -> HomePage:
    return HomePage(todo_count=compute_stats(s).total, user_count=count_users(s))


def todos_content(s: Session) -> TodosPage:
    return TodosPage(todos=list_todos(s), stats=compute_stats(s))


def users_content(s: Session) -> UsersPage:
    return UsersPage(users=list_users(s))


@dataclass(frozen=True)
class Page:
    name: str
    title: str
    url: str
    build: Callable[[Session], Any]


PAGES: dict[str, Page] = {
    p.name: p
    for p in (
        Page("home", "Home", "/", home_content),
        Page("todos", "Todos", "/todos", todos_content),
        Page("users", "Users", "/users", users_content),
    )
}


def _full_page(name: str) -> str:
    page = PAGES[name]
    content = render(page.build(db_session()))
    return render_layout(content, title=page.title, active=page.name)


# ---------- Full pages ----------
@bp.get("/")
def index():
    return _full_page("home")


@bp.get("/todos")
def todos_page():
    return _full_page("todos")


@bp.get("/users")
def users_page():
    return _full_page("users")


# ---------- Fragments ----------
@bp.get("/page/<name>")
def page_fragment(name: str):
    page = PAGES.get(name)
    if page is None:
        raise NotFound(f"No page named {name!r}.")
    resp = make_response(render(page.build(db_session())))
    resp.headers["HX-Push-Url"] = page.url
    return resp
