from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import case, func, select

from app.htmxspa.errors import NotFound, ValidationError
from app.htmxspa.modules.todos.models import Todo

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


MAX_TITLE_LENGTH = 500

DEMO_TODOS = (
    ("Learn Flask", False),
    ("Learn HTMX", False),
    ("Build a web app", True),
)


@dataclass(frozen=True)
class TodoStats:
    total: int
    completed: int

    @property
    def pending(self) -> int:
        return self.total - self.completed


def validate_title(raw: str | None) -> str:
    """Strip and validate a todo title. Raises ValidationError."""
    title = (raw or "").strip()
    if not title:
        raise ValidationError("Title is required.")
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(f"Title must be at most {MAX_TITLE_LENGTH} characters.")
    return title


def list_todos(s: "Session") -> list[Todo]:
    """All todos, newest first."""
    return list(s.scalars(select(Todo).order_by(Todo.id.desc())))


def compute_stats(s: "Session") -> TodoStats:
    """Live aggregate over the todos table; never cached."""
    total, completed = s.execute(
        select(
            func.count(Todo.id),
            func.coalesce(func.sum(case((Todo.completed.is_(True), 1), else_=0)), 0),
        )
    ).one()
    return TodoStats(total=int(total), completed=int(completed))


def get_todo(s: "Session", todo_id: int) -> Todo:
    todo = s.get(Todo, todo_id)
    if todo is None:
        raise NotFound.for_entity("Todo", todo_id)
    return todo


def create_todo(s: "Session", title: str | None) -> Todo:
    todo = Todo(title=validate_title(title), completed=False)
    s.add(todo)
    s.commit()
    return todo


def toggle_todo(s: "Session", todo_id: int) -> Todo:
    todo = get_todo(s, todo_id)
    todo.completed = not todo.completed
    s.commit()
    return todo


def delete_todo(s: "Session", todo_id: int) -> None:
    todo = get_todo(s, todo_id)
    s.delete(todo)
    s.commit()


def seed_demo_todos(s: "Session") -> int:
    """Insert the demo todos when the table is empty. Returns rows inserted."""
    if s.scalar(select(func.count(Todo.id))):
        return 0
    s.add_all([Todo(title=title, completed=completed) for title, completed in DEMO_TODOS])
    return len(DEMO_TODOS)
