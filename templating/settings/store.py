"""
Settings file loader and helpers.

Provides typed access to the templating `settings.yaml`, covering built-in
directive selection, evaluation strictness, pipeline stages, plugin discovery
and logfire configuration.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from templating.constants import (
    DEFAULT_BUILTIN_DIRECTIVES,
    DEFAULT_CACHE_SIZE,
    DEFAULT_ENTRY_POINT_GROUP,
    DEFAULT_MAX_PASSES,
    SETTINGS_ENV_VAR,
)
from templating.exceptions import SettingsError


SETTINGS_TEMPLATE = Path(__file__).parent / "settings.template.yaml"


class LogfireSettings(BaseModel):
    """Logfire instrumentation options."""

    enabled: bool = False
    console: bool = True
    service_name: str = "templating"


class TemplatingSettings(BaseModel):
    """Root schema for settings.yaml content."""

    builtins: List[str] = Field(default_factory=lambda: list(DEFAULT_BUILTIN_DIRECTIVES))
    strict_variables: bool = False
    interpolation: bool = True
    preamble: bool = True
    max_passes: int = Field(default=DEFAULT_MAX_PASSES, ge=1)
    cache_size: int = Field(default=DEFAULT_CACHE_SIZE, ge=0)
    plugin_modules: List[str] = Field(default_factory=list)
    entry_point_group: str = DEFAULT_ENTRY_POINT_GROUP
    load_entry_points: bool = False
    logfire: LogfireSettings = Field(default_factory=LogfireSettings)

    @field_validator("builtins")
    @classmethod
    def _known_builtins(cls, value: List[str]) -> List[str]:
        unknown = [name for name in value if name not in DEFAULT_BUILTIN_DIRECTIVES]
        if unknown:
            raise ValueError(
                f"Unknown built-in directive(s): {', '.join(unknown)}. "
                f"Available: {', '.join(DEFAULT_BUILTIN_DIRECTIVES)}"
            )
        return value

    @field_validator("plugin_modules")
    @classmethod
    def _strip_modules(cls, value: List[str]) -> List[str]:
        return [module.strip() for module in value if module and module.strip()]

    @field_validator("entry_point_group")
    @classmethod
    def _group_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("entry_point_group cannot be empty")
        return value.strip()


def _resolve_settings_path() -> Path:
    """Determine the settings file path, preferring the environment override."""
    override = os.getenv(SETTINGS_ENV_VAR)
    if override:
        return Path(override)
    return SETTINGS_TEMPLATE


def get_active_settings_path() -> Path:
    """Return the active settings file path, ensuring it exists."""
    path = _resolve_settings_path()
    if not path.exists():
        raise SettingsError(f"Settings file not found: {path}")
    return path


def settings_from_mapping(raw_data: Optional[Mapping[str, Any]]) -> TemplatingSettings:
    """Validate a raw mapping into a TemplatingSettings model.

    Sections explicitly set to null fall back to their defaults.
    """
    data: Dict[str, Any] = {key: value for key, value in (raw_data or {}).items() if value is not None}
    try:
        return TemplatingSettings.model_validate(data)
    except ValidationError as exc:
        raise SettingsError(f"Invalid templating settings: {exc}") from exc


@lru_cache(maxsize=1)
def load_settings() -> TemplatingSettings:
    """
    Load the settings.yaml configuration with caching.

    Returns:
        TemplatingSettings model.
    """
    settings_file = get_active_settings_path()

    with open(settings_file, "r", encoding="utf-8") as handle:
        try:
            raw_data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise SettingsError(f"Cannot parse {settings_file}: {exc}") from exc

    if not isinstance(raw_data, dict):
        raise SettingsError(f"Settings file {settings_file} must contain a mapping")

    return settings_from_mapping(raw_data)


def refresh_settings_cache() -> None:
    """Clear the settings cache so future calls reload from disk."""
    load_settings.cache_clear()  # type: ignore[attr-defined]
