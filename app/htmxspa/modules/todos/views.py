from __future__ import annotations

from dataclasses import dataclass

from app.htmxspa.modules.todos.models import Todo
from app.htmxspa.modules.todos.service import TodoStats
from app.htmxspa.rendering import view

STATS_ELEMENT_ID = "todo-stats"
STATS_CSS_CLASS = "stats-grid"
LIST_ELEMENT_ID = "todo-list"


@view("todos/item.html")
@dataclass(frozen=True)
class TodoItem:
    todo: Todo


@view("todos/list.html")
@dataclass(frozen=True)
class TodoList:
    todos: list[Todo]


@view("todos/stats.html")
@dataclass(frozen=True)
class TodoStatsPanel:
    stats: TodoStats


@view("todos/create_form.html")
@dataclass(frozen=True)
class CreateForm:
    title: str = ""


@view("todos/main.html")
@dataclass(frozen=True)
class TodosPage:
    todos: list[Todo]
    stats: TodoStats
    stats_element_id: str = STATS_ELEMENT_ID
    stats_css_class: str = STATS_CSS_CLASS
    list_element_id: str = LIST_ELEMENT_ID


@view("todos/empty.html")
@dataclass(frozen=True)
class EmptyNotice:
    visible: bool
    oob: bool = False
