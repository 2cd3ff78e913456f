"""
Settings package.

Typed access to the templating settings file lives in
`templating.settings.store`.
"""

from .store import (
    LogfireSettings,
    TemplatingSettings,
    get_active_settings_path,
    load_settings,
    refresh_settings_cache,
    settings_from_mapping,
)

__all__ = [
    "LogfireSettings",
    "TemplatingSettings",
    "get_active_settings_path",
    "load_settings",
    "refresh_settings_cache",
    "settings_from_mapping",
]
