from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from flask import Blueprint
from sqlalchemy import Engine, text

from app.htmxspa.db import make_sessionmaker
from app.htmxspa.plugins.base import (
    AuthGuard,
    FeatureModule,
    ModuleBuildError,
    ModuleConfigError,
    PluginContext,
    allow_all,
)

logger = logging.getLogger(__name__)


def normalize_mount_path(path: str) -> str:
    return "/" + path.strip().strip("/")


class ModuleComposer:
    """
    Assembles feature modules into one blueprint.

    build() runs, in registration order and strictly one module at a time:
    every module's migrations, then every module's on_init(), then nests each
    module's blueprint under its mount path.
    """

    def __init__(self) -> None:
        self._modules: list[FeatureModule] = []
        self._engine: Engine | None = None
        self._config: Mapping[str, Any] = {}
        self._auth_guard: AuthGuard = allow_all

    @property
    def modules(self) -> tuple[FeatureModule, ...]:
        return tuple(self._modules)

    def register(self, module: FeatureModule) -> "ModuleComposer":
        self._modules.append(module)
        return self

    def with_db(self, engine: Engine) -> "ModuleComposer":
        self._engine = engine
        return self

    def with_config(self, config: Mapping[str, Any]) -> "ModuleComposer":
        self._config = dict(config)
        return self

    def with_auth_guard(self, guard: AuthGuard) -> "ModuleComposer":
        self._auth_guard = guard
        return self

    def validate(self) -> Engine:
        """Check the module set; returns the engine the build will use."""
        if self._engine is None:
            raise ModuleConfigError("A database engine is required (call with_db()).")
        names: dict[str, FeatureModule] = {}
        mounts: dict[str, FeatureModule] = {}
        for module in self._modules:
            name = (module.name or "").strip()
            if not name or "/" in name or "." in name:
                raise ModuleConfigError(f"Invalid module name {module.name!r} on {type(module).__name__}.")
            if name in names:
                raise ModuleConfigError(f"Duplicate module name {name!r}.")
            mount = normalize_mount_path(module.mount_path)
            if mount in mounts:
                raise ModuleConfigError(
                    f"Modules {mounts[mount].name!r} and {name!r} both mount at {mount!r}."
                )
            names[name] = module
            mounts[mount] = module
        return self._engine

    def _run_migrations(self, engine: Engine) -> None:
        for module in self._modules:
            if not module.migrations:
                continue
            logger.info("Running migrations for module: %s", module.name)
            try:
                with engine.begin() as conn:
                    for idx, stmt in enumerate(module.migrations, start=1):
                        logger.debug("Running migration %s for %s", idx, module.name)
                        conn.execute(text(stmt))
            except Exception as e:
                raise ModuleBuildError(module.name, "Migration", e) from e

    def _run_init_hooks(self, ctx: PluginContext) -> None:
        for module in self._modules:
            logger.info("Initializing module: %s", module.name)
            try:
                module.on_init(ctx)
            except Exception as e:
                raise ModuleBuildError(module.name, "Init", e) from e

    def _nest(self) -> Blueprint:
        parent = Blueprint("modules", __name__)
        for module in self._modules:
            mount = normalize_mount_path(module.mount_path)
            child = module.create_blueprint()
            if module.requires_auth:
                child.before_request(self._auth_guard)
            logger.info("Mounting module %r at path: %s", module.name, mount)
            parent.register_blueprint(child, url_prefix=None if mount == "/" else mount, name=module.name)
        return parent

    def build(self) -> Blueprint:
        engine = self.validate()
        ctx = PluginContext(
            engine=engine,
            sessionmaker=make_sessionmaker(engine),
            config=MappingProxyType(dict(self._config)),
        )
        self._run_migrations(engine)
        self._run_init_hooks(ctx)
        return self._nest()
