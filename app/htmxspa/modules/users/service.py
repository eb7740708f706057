from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, or_, select

from app.htmxspa.errors import NotFound
from app.htmxspa.modules.users.models import User

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


DEMO_USERS = (
    ("Alice Johnson", "alice@example.com"),
    ("Bob Smith", "bob@example.com"),
    ("Carol Williams", "carol@example.com"),
    ("Dave Brown", "dave@example.com"),
)

_LIKE_ESCAPE = "\\"


def _like_pattern(term: str) -> str:
    """Substring LIKE pattern that matches %, _ and \\ in the term literally."""
    escaped = (
        term.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def list_users(s: "Session") -> list[User]:
    return list(s.scalars(select(User).order_by(User.id.asc())))


def search_users(s: "Session", term: str | None) -> list[User]:
    """
    Case-insensitive substring match on name or email, id ascending.
    A blank term is the same as list_users().
    """
    term = (term or "").strip()
    if not term:
        return list_users(s)
    like = _like_pattern(term)
    q = (
        select(User)
        .where(
            or_(
                User.name.ilike(like, escape=_LIKE_ESCAPE),
                User.email.ilike(like, escape=_LIKE_ESCAPE),
            )
        )
        .order_by(User.id.asc())
    )
    return list(s.scalars(q))


def get_user(s: "Session", user_id: int) -> User:
    user = s.get(User, user_id)
    if user is None:
        raise NotFound.for_entity("User", user_id)
    return user


def count_users(s: "Session") -> int:
    return int(s.scalar(select(func.count(User.id))) or 0)


def seed_demo_users(s: "Session") -> int:
    """Insert the demo users when the table is empty. Returns rows inserted."""
    if count_users(s):
        return 0
    s.add_all([User(name=name, email=email) for name, email in DEMO_USERS])
    return len(DEMO_USERS)
