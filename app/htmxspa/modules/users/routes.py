from __future__ import annotations

from flask import Blueprint, request

from app.htmxspa.db import db_session
from app.htmxspa.modules.users.service import get_user, list_users, search_users
from app.htmxspa.modules.users.views import UserDetail, UserResults
from app.htmxspa.rendering import render

bp = Blueprint("users", __name__)


@bp.get("/users/list")
def users_list():
    s = db_session()
    return render(UserResults(list_users(s)))


@bp.get("/users/search")
def users_search():
    s = db_session()
    query = (request.args.get("q") or "").strip()
    return render(UserResults(search_users(s, query), query=query))


@bp.get("/users/<int:user_id>/detail")
def users_detail(user_id: int):
    s = db_session()
    return render(UserDetail(get_user(s, user_id)))
