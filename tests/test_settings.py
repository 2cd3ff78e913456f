"""Tests for settings loading and validation."""

import pytest

from templating.constants import DEFAULT_BUILTIN_DIRECTIVES, SETTINGS_ENV_VAR
from templating.exceptions import SettingsError
from templating.settings.store import (
    SETTINGS_TEMPLATE,
    get_active_settings_path,
    load_settings,
    refresh_settings_cache,
    settings_from_mapping,
)


@pytest.fixture
def settings_file(tmp_path, monkeypatch):
    """Point the settings loader at a temporary file."""
    path = tmp_path / "settings.yaml"
    monkeypatch.setenv(SETTINGS_ENV_VAR, str(path))
    refresh_settings_cache()
    yield path
    refresh_settings_cache()


class TestSettingsFromMapping:
    def test_defaults(self):
        settings = settings_from_mapping({})
        assert settings.builtins == list(DEFAULT_BUILTIN_DIRECTIVES)
        assert settings.strict_variables is False
        assert settings.max_passes == 16
        assert settings.logfire.enabled is False

    def test_null_sections_fall_back_to_defaults(self):
        settings = settings_from_mapping({"builtins": None, "logfire": None})
        assert settings.builtins == list(DEFAULT_BUILTIN_DIRECTIVES)
        assert settings.logfire.service_name == "templating"

    def test_plugin_modules_are_cleaned(self):
        settings = settings_from_mapping({"plugin_modules": [" pkg.directives ", ""]})
        assert settings.plugin_modules == ["pkg.directives"]

    @pytest.mark.parametrize("raw", [
        {"builtins": ["if", "unless"]},
        {"max_passes": 0},
        {"cache_size": -1},
        {"entry_point_group": "  "},
        {"strict_variables": "sometimes"},
    ])
    def test_invalid_values(self, raw):
        with pytest.raises(SettingsError):
            settings_from_mapping(raw)


class TestLoadSettings:
    def test_bundled_template_is_valid(self, monkeypatch):
        monkeypatch.delenv(SETTINGS_ENV_VAR, raising=False)
        refresh_settings_cache()
        try:
            assert get_active_settings_path() == SETTINGS_TEMPLATE
            assert load_settings().builtins == list(DEFAULT_BUILTIN_DIRECTIVES)
        finally:
            refresh_settings_cache()

    def test_environment_override(self, settings_file):
        settings_file.write_text("builtins: [guest, if]\nstrict_variables: true\n", encoding="utf-8")
        settings = load_settings()
        assert settings.builtins == ["guest", "if"]
        assert settings.strict_variables is True

    def test_results_are_cached_until_refreshed(self, settings_file):
        settings_file.write_text("max_passes: 4\n", encoding="utf-8")
        assert load_settings().max_passes == 4
        settings_file.write_text("max_passes: 8\n", encoding="utf-8")
        assert load_settings().max_passes == 4
        refresh_settings_cache()
        assert load_settings().max_passes == 8

    def test_empty_file_uses_defaults(self, settings_file):
        settings_file.write_text("", encoding="utf-8")
        assert load_settings().max_passes == 16

    def test_missing_file(self, settings_file):
        with pytest.raises(SettingsError, match="not found"):
            load_settings()

    def test_non_mapping_file(self, settings_file):
        settings_file.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(SettingsError, match="mapping"):
            load_settings()

    def test_unparseable_file(self, settings_file):
        settings_file.write_text("builtins: [unclosed\n", encoding="utf-8")
        with pytest.raises(SettingsError, match="Cannot parse"):
            load_settings()
