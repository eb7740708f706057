from __future__ import annotations

from dataclasses import dataclass

from app.htmxspa.rendering import view


@view("home/main.html")
@dataclass(frozen=True)
class HomePage:
    todo_count: int
    user_count: int


@view("errors/fragment.html")
@dataclass(frozen=True)
class ErrorFragment:
    status_code: int
    title: str
    message: str
