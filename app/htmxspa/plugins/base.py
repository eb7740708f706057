from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from flask import Blueprint
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

AuthGuard = Callable[[], Any]


class ModuleConfigError(ValueError):
    """Invalid module set (bad name, duplicate name or mount path, no database)."""


class ModuleBuildError(RuntimeError):
    """A module's migration or init hook failed while building the app."""

    def __init__(self, module: str, stage: str, cause: BaseException) -> None:
        super().__init__(f"{stage} failed for module {module!r}: {cause}")
        self.module = module
        self.stage = stage


@dataclass(frozen=True)
class PluginContext:
    """Shared resources handed to every module's on_init()."""

    engine: Engine
    sessionmaker: sessionmaker[Session]
    config: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


def allow_all() -> None:
    """Default auth guard. Authentication is not implemented; every request passes."""
    return None


class FeatureModule:
    """
    A self-contained feature: routes, optional schema, optional one-time init.

    Subclasses set `name` and implement create_blueprint(). The blueprint is
    created fresh for every build so one module class can serve several apps.
    """

    name: str = ""
    migrations: tuple[str, ...] = ()
    requires_auth: bool = False

    @property
    def mount_path(self) -> str:
        return f"/{self.name}"

    def create_blueprint(self) -> Blueprint:
        raise NotImplementedError

    def on_init(self, ctx: PluginContext) -> None:
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} mount_path={self.mount_path!r}>"
