"""
Directive contribution point.

Hosts and third-party packages add directives by providing a callable
`register_directives(registry)`. Contributions come from three places, in
this order: callables handed over directly, module paths, and entry points.
"""

from __future__ import annotations

import importlib
import importlib.metadata
from collections.abc import Callable, Iterable
from types import ModuleType
from typing import Any

from templating.constants import DEFAULT_ENTRY_POINT_GROUP, PLUGIN_API_VERSION, PLUGIN_REGISTER_FUNCTION
from templating.exceptions import InvalidNameError, PluginLoadError
from templating.logger import UnifiedLogger

from .registry import DirectiveRegistry

logger = UnifiedLogger(tag="directive-plugins")

DirectiveContributor = Callable[[DirectiveRegistry], None]


def _entry_points_for_group(group: str) -> list[importlib.metadata.EntryPoint]:
    return list(importlib.metadata.entry_points().select(group=group))


def _resolve_register_fn(loaded_obj: Any) -> DirectiveContributor:
    if isinstance(loaded_obj, ModuleType):
        register_fn = getattr(loaded_obj, PLUGIN_REGISTER_FUNCTION, None)
        if not callable(register_fn):
            msg = f"module '{loaded_obj.__name__}' does not define {PLUGIN_REGISTER_FUNCTION}(registry)."
            raise PluginLoadError(msg)

        plugin_version = getattr(loaded_obj, "PLUGIN_API_VERSION", PLUGIN_API_VERSION)
        if plugin_version != PLUGIN_API_VERSION:
            msg = (
                f"module '{loaded_obj.__name__}' targets plugin API version {plugin_version}, "
                f"expected {PLUGIN_API_VERSION}."
            )
            raise PluginLoadError(msg)
        return register_fn

    if callable(loaded_obj):
        return loaded_obj

    msg = "plugin entry point must resolve to a module or callable."
    raise PluginLoadError(msg)


def _load_one(registry: DirectiveRegistry, loader: Callable[[], Any], *, source: str) -> str | None:
    try:
        loaded = loader()
        register_fn = _resolve_register_fn(loaded)
        register_fn(registry)
    except InvalidNameError:
        # Bad directive names are a programming error in the plugin
        logger.error("Directive plugin registered an invalid name", source=source)
        raise
    except Exception as exc:  # noqa: BLE001
        warning = f"warning: failed to load directive plugin '{source}': {exc}"
        logger.warning(warning, source=source, error_type=type(exc).__name__)
        return warning
    return None


def load_directive_plugins(
    *,
    registry: DirectiveRegistry,
    contributors: Iterable[DirectiveContributor] = (),
    module_paths: Iterable[str] = (),
    entry_point_group: str | None = DEFAULT_ENTRY_POINT_GROUP,
) -> tuple[str, ...]:
    """Run directive contributors, collecting warning strings.

    Args:
        registry: Registry the contributors write into
        contributors: Callables invoked with the registry
        module_paths: Importable modules exposing register_directives(registry)
        entry_point_group: Entry point group to scan, or None to skip

    Returns:
        Warnings for contributors that failed to load or register

    Raises:
        InvalidNameError: If any contributor registers an invalid name
    """
    warnings: list[str] = []

    for contributor in contributors:
        source = getattr(contributor, "__qualname__", repr(contributor))
        warning = _load_one(registry, lambda contributor=contributor: contributor, source=source)
        if warning:
            warnings.append(warning)

    for module_path in module_paths:
        warning = _load_one(
            registry,
            lambda module_path=module_path: importlib.import_module(module_path),
            source=module_path,
        )
        if warning:
            warnings.append(warning)

    if entry_point_group:
        for entry_point in _entry_points_for_group(entry_point_group):
            warning = _load_one(
                registry,
                entry_point.load,
                source=f"{entry_point.name} ({entry_point.value})",
            )
            if warning:
                warnings.append(warning)

    return tuple(warnings)
