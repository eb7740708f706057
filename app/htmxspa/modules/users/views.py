from __future__ import annotations

from dataclasses import dataclass

from app.htmxspa.modules.users.models import User
from app.htmxspa.rendering import view


@view("users/search_results.html")
@dataclass(frozen=True)
class UserResults:
    users: list[User]
    query: str = ""


@view("users/detail.html")
@dataclass(frozen=True)
class UserDetail:
    user: User


@view("users/main.html")
@dataclass(frozen=True)
class UsersPage:
    users: list[User]
    query: str = ""
