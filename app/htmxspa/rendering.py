"""
Typed view-models and fragment/page rendering.

Every template is bound to one frozen dataclass through @view(). The binding is
checked once in precompile_templates() (called from create_app), so a template
that references a variable its view-model does not provide stops the app from
starting instead of failing a request.
"""

from __future__ import annotations

import dataclasses
from collections import abc
from collections.abc import Callable, Iterable
from inspect import getattr_static
from types import UnionType
from typing import Any, TypeVar, Union, get_args, get_origin, get_type_hints

from flask import Flask, render_template
from jinja2 import meta, nodes
from markupsafe import Markup
from sqlalchemy import inspect as sa_inspect

LAYOUT_TEMPLATE = "layout/base.html"
LAYOUT_VARIABLES = frozenset({"content", "title", "active"})

# Names injected by Flask or by our context processors; templates may use these freely.
CONTEXT_VARIABLES = frozenset({"request", "session", "g", "config", "csrf_token"})

T = TypeVar("T")

_VIEWS: dict[type, str] = {}


class TemplateBindingError(RuntimeError):
    pass


def view(template_name: str) -> Callable[[type[T]], type[T]]:
    """Register a dataclass view-model as the sole input of `template_name`."""

    def decorator(cls: type[T]) -> type[T]:
        if not dataclasses.is_dataclass(cls):
            raise TypeError(f"{cls.__name__} must be a dataclass to be used as a view-model")
        existing = _VIEWS.get(cls)
        if existing and existing != template_name:
            raise TemplateBindingError(f"{cls.__name__} is already bound to {existing}")
        _VIEWS[cls] = template_name
        cls.__template__ = template_name  # type: ignore[attr-defined]
        return cls

    return decorator


def registered_views() -> dict[type, str]:
    return dict(_VIEWS)


def _context(vm: Any) -> dict[str, Any]:
    return {f.name: getattr(vm, f.name) for f in dataclasses.fields(vm)}


def render(vm: Any) -> Markup:
    """Render a view-model to its bare fragment."""
    template_name = _VIEWS.get(type(vm))
    if template_name is None:
        raise TemplateBindingError(f"{type(vm).__name__} is not a registered view-model")
    return Markup(render_template(template_name, **_context(vm)))


def render_layout(content: Markup, *, title: str, active: str = "") -> str:
    """Wrap already-rendered content in the site layout (head, nav, footer)."""
    return render_template(LAYOUT_TEMPLATE, content=content, title=title, active=active)


def render_page(vm: Any, *, title: str, active: str = "") -> str:
    return render_layout(render(vm), title=title, active=active)


def out_of_band(fragment: str, element_id: str, css_class: str = "") -> Markup:
    """
    Wrap a fragment so HTMX swaps it into the element with `element_id`,
    independent of the request's primary target.
    """
    return Markup('<div id="{0}" class="{1}" hx-swap-oob="true">{2}</div>').format(
        element_id, css_class, Markup(fragment)
    )


def concat(*parts: str) -> Markup:
    """Primary fragment followed by any out-of-band fragments, as one body."""
    return Markup("").join(Markup(p) for p in parts)


def field_types(cls: type) -> dict[str, Any]:
    """Resolved annotation of every field of a dataclass view-model."""
    try:
        hints = get_type_hints(cls)
    except NameError as e:
        raise TemplateBindingError(f"Cannot resolve field types of {cls.__name__}: {e}") from e
    return {f.name: hints.get(f.name) for f in dataclasses.fields(cls)}


def _strip_optional(tp: Any) -> Any:
    if get_origin(tp) in (Union, UnionType):
        args = [a for a in get_args(tp) if a is not type(None)]
        return args[0] if len(args) == 1 else None
    return tp


def _item_type(tp: Any) -> Any:
    tp = _strip_optional(tp)
    if get_origin(tp) in (list, tuple, set, frozenset, abc.Sequence, abc.Iterable, abc.Collection):
        args = get_args(tp)
        return args[0] if args else None
    return None


def _is_checked_type(tp: Any) -> bool:
    if not isinstance(tp, type) or get_origin(tp) is not None:
        return False
    return dataclasses.is_dataclass(tp) or sa_inspect(tp, raiseerr=False) is not None


def _member_type(owner: type, attr: str) -> Any:
    member = getattr_static(owner, attr, None)
    if isinstance(member, property) and member.fget is not None:
        try:
            return get_type_hints(member.fget).get("return")
        except NameError:
            return None
    return None


def _attribute_type(owner: type, attr: str) -> tuple[bool, Any]:
    """(exists, type) of `owner.attr`; type is None when it cannot be resolved."""
    if dataclasses.is_dataclass(owner):
        types = field_types(owner)
        if attr in types:
            return True, types[attr]
        return hasattr(owner, attr), _member_type(owner, attr)

    mapper = sa_inspect(owner)
    if attr in mapper.relationships:
        rel = mapper.relationships[attr]
        target = rel.mapper.class_
        return True, list[target] if rel.uselist else target  # type: ignore[valid-type]
    if attr in mapper.column_attrs:
        column = mapper.column_attrs[attr].columns[0]
        try:
            return True, column.type.python_type
        except NotImplementedError:
            return True, None
    return hasattr(owner, attr), _member_type(owner, attr)


class _AttributeChecker:
    """
    Walks a parsed template with the static type of every name in scope and
    records attribute access on dataclasses or mapped classes that cannot succeed.
    """

    def __init__(self) -> None:
        self.errors: list[str] = []

    def infer(self, node: nodes.Node, scope: dict[str, Any]) -> Any:
        if isinstance(node, nodes.Name):
            return scope.get(node.name)

        if isinstance(node, nodes.Getattr):
            owner = _strip_optional(self.infer(node.node, scope))
            if not _is_checked_type(owner):
                return None
            exists, tp = _attribute_type(owner, node.attr)
            if not exists:
                self.errors.append(f"line {node.lineno}: {owner.__name__}.{node.attr} does not exist")
            return tp

        if isinstance(node, nodes.For):
            item = _item_type(self.infer(node.iter, scope))
            inner = dict(scope, loop=None)
            if isinstance(node.target, nodes.Name):
                inner[node.target.name] = item
            else:
                for name in node.target.find_all(nodes.Name):
                    inner[name.name] = None
            if node.test is not None:
                self.infer(node.test, inner)
            for child in node.body:
                self.infer(child, inner)
            for child in node.else_:
                self.infer(child, scope)
            return None

        if isinstance(node, nodes.With):
            inner = dict(scope)
            for target, value in zip(node.targets, node.values):
                tp = self.infer(value, scope)
                if isinstance(target, nodes.Name):
                    inner[target.name] = tp
            for child in node.body:
                self.infer(child, inner)
            return None

        if isinstance(node, nodes.Assign):
            tp = self.infer(node.node, scope)
            if isinstance(node.target, nodes.Name):
                scope[node.target.name] = tp
            return None

        if isinstance(node, (nodes.Macro, nodes.CallBlock)):
            # Macro arguments shadow the view-model; bodies are not checked.
            return None

        for child in node.iter_child_nodes():
            self.infer(child, scope)
        return None


def find_attribute_errors(ast: nodes.Template, types: dict[str, Any]) -> list[str]:
    """Attribute accesses in `ast` that the given name -> type mapping rules out."""
    checker = _AttributeChecker()
    checker.infer(ast, dict(types))
    return checker.errors


def _parse(app: Flask, template_name: str) -> nodes.Template:
    env = app.jinja_env
    source, _, _ = env.loader.get_source(env, template_name)  # type: ignore[union-attr]
    return env.parse(source)


def precompile_templates(app: Flask, views: Iterable[tuple[type, str]] | None = None) -> int:
    """
    Compile the layout and every view template, checking variables against the
    view-model fields and attribute access against the fields' annotated types.
    Returns the number of templates checked.
    """
    env = app.jinja_env
    provided = set(env.globals) | CONTEXT_VARIABLES
    checks: list[tuple[str, str, dict[str, Any]]] = [
        (LAYOUT_TEMPLATE, "layout", dict.fromkeys(LAYOUT_VARIABLES))
    ]
    for cls, template_name in views if views is not None else _VIEWS.items():
        checks.append((template_name, cls.__name__, field_types(cls)))

    with app.app_context():
        for template_name, owner, types in checks:
            env.get_template(template_name)
            ast = _parse(app, template_name)
            missing = set(meta.find_undeclared_variables(ast)) - set(types) - provided
            if missing:
                raise TemplateBindingError(
                    f"{template_name} uses {', '.join(sorted(missing))} which {owner} does not provide"
                )
            errors = find_attribute_errors(ast, types)
            if errors:
                raise TemplateBindingError(f"{template_name} ({owner}): {'; '.join(errors)}")
    app.logger.info("Compiled %s templates", len(checks))
    return len(checks)
