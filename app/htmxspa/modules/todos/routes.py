from __future__ import annotations

from flask import Blueprint, current_app, make_response, request
from markupsafe import Markup
from sqlalchemy.orm import Session

from app.htmxspa.db import db_session
from app.htmxspa.modules.todos.service import (
    TodoStats,
    compute_stats,
    create_todo,
    delete_todo,
    list_todos,
    toggle_todo,
)
from app.htmxspa.modules.todos.views import (
    LIST_ELEMENT_ID,
    STATS_CSS_CLASS,
    STATS_ELEMENT_ID,
    CreateForm,
    EmptyNotice,
    TodoItem,
    TodoList,
    TodoStatsPanel,
)
from app.htmxspa.rendering import concat, out_of_band, render

bp = Blueprint("todos", __name__)


def _stats_oob(stats: TodoStats) -> Markup:
    return out_of_band(render(TodoStatsPanel(stats)), STATS_ELEMENT_ID, STATS_CSS_CLASS)


def _list_oob(s: Session) -> Markup:
    """Refreshed stats panel plus the empty-list notice, both swapped out of band."""
    stats = compute_stats(s)
    return concat(_stats_oob(stats), render(EmptyNotice(visible=stats.total == 0, oob=True)))


# ---------- List ----------
@bp.get("/todos/list")
def todos_list():
    s = db_session()
    return render(TodoList(list_todos(s)))


# ---------- Create ----------
@bp.get("/todos/create")
def todos_create_form():
    return render(CreateForm())


@bp.post("/api/todos")
def todos_create():
    s = db_session()
    todo = create_todo(s, request.form.get("title"))
    current_app.logger.info("Todo created id=%s", todo.id)

    resp = make_response(concat(render(TodoItem(todo)), _list_oob(s)))
    # New items go on top of the visible list, whatever element fired the request.
    resp.headers["HX-Retarget"] = f"#{LIST_ELEMENT_ID}"
    resp.headers["HX-Reswap"] = "afterbegin"
    return resp


# ---------- Toggle ----------
@bp.put("/todos/<int:todo_id>/toggle")
def todos_toggle(todo_id: int):
    s = db_session()
    todo = toggle_todo(s, todo_id)
    current_app.logger.info("Todo toggled id=%s completed=%s", todo.id, todo.completed)
    return concat(render(TodoItem(todo)), _stats_oob(compute_stats(s)))


# ---------- Delete ----------
@bp.delete("/todos/<int:todo_id>")
def todos_delete(todo_id: int):
    s = db_session()
    delete_todo(s, todo_id)
    current_app.logger.info("Todo deleted id=%s", todo_id)
    # Empty primary body removes the item; stats and empty notice are swapped.
    return _list_oob(s)
