"""
Landing page feature module.

Mounted at /landing by default. Title, subtitle, features and the satisfaction
figure can be overridden through the composer's shared config under "landing".
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from flask import Blueprint

from app.htmxspa.plugins.base import FeatureModule, PluginContext


@dataclass(frozen=True)
class Feature:
    icon: str
    title: str
    description: str


def _default_features() -> tuple[Feature, ...]:
    return (
        Feature("🚀", "Fast to build", "Hypermedia fragments from Flask views, no client-side framework."),
        Feature("⚡", "Partial updates", "HTMX swaps just the parts of the page that changed."),
        Feature("🧩", "Composable", "Feature modules bring their own routes, schema and start-up hook."),
    )


@dataclass(frozen=True)
class LandingConfig:
    title: str = "HTMX SPA template"
    subtitle: str = "Server-rendered single-page apps with Flask and HTMX"
    features: tuple[Feature, ...] = field(default_factory=_default_features)
    satisfaction: int = 98

    def merged(self, overrides: dict[str, Any]) -> "LandingConfig":
        changes: dict[str, Any] = {}
        for key in ("title", "subtitle"):
            if overrides.get(key):
                changes[key] = str(overrides[key])
        if "satisfaction" in overrides:
            changes["satisfaction"] = int(overrides["satisfaction"])
        if overrides.get("features"):
            changes["features"] = tuple(
                f if isinstance(f, Feature) else Feature(**f) for f in overrides["features"]
            )
        return replace(self, **changes)


class LandingModule(FeatureModule):
    name = "landing"

    def __init__(self, config: LandingConfig | None = None) -> None:
        self.config = config or LandingConfig()
        self._ctx: PluginContext | None = None

    def with_title(self, title: str) -> "LandingModule":
        self.config = replace(self.config, title=title)
        return self

    def with_subtitle(self, subtitle: str) -> "LandingModule":
        self.config = replace(self.config, subtitle=subtitle)
        return self

    def on_init(self, ctx: PluginContext) -> None:
        overrides = ctx.config.get("landing") or {}
        if overrides:
            self.config = self.config.merged(dict(overrides))
        self._ctx = ctx

    def create_blueprint(self) -> Blueprint:
        from app.htmxspa.plugins.landing.routes import create_blueprint

        return create_blueprint(self)

    @property
    def context(self) -> PluginContext:
        if self._ctx is None:
            raise RuntimeError("LandingModule used before on_init()")
        return self._ctx
