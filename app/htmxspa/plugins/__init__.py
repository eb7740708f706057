"""
Feature-module composition.

A FeatureModule bundles a blueprint with optional SQL migrations and an init
hook; ModuleComposer mounts an ordered list of them onto the app.
"""

from app.htmxspa.plugins.base import (
    FeatureModule,
    ModuleBuildError,
    ModuleConfigError,
    PluginContext,
    allow_all,
)
from app.htmxspa.plugins.composer import ModuleComposer

__all__ = [
    "FeatureModule",
    "ModuleBuildError",
    "ModuleComposer",
    "ModuleConfigError",
    "PluginContext",
    "allow_all",
]
