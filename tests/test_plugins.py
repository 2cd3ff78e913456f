"""Tests for directive contributors, plugin modules and entry points."""

import importlib
import sys
import textwrap

import pytest

from templating.directives import plugins
from templating.directives.plugins import load_directive_plugins
from templating.engine import TemplateEngine
from templating.exceptions import InvalidNameError


def shout_contributor(registry):
    registry.register("shout", lambda params, body, scope: body.upper() + "!")


def broken_contributor(registry):
    raise RuntimeError("boom")


def bad_name_contributor(registry):
    registry.register("not valid", lambda params, body, scope: body)


@pytest.fixture
def plugin_dir(tmp_path, monkeypatch):
    """Directory on sys.path where tests drop plugin modules."""
    monkeypatch.syspath_prepend(str(tmp_path))
    written = []

    def write(module_name, source):
        (tmp_path / f"{module_name}.py").write_text(textwrap.dedent(source), encoding="utf-8")
        importlib.invalidate_caches()
        written.append(module_name)
        return module_name

    yield write

    for module_name in written:
        sys.modules.pop(module_name, None)


class FakeEntryPoint:
    def __init__(self, name, value, target):
        self.name = name
        self.value = value
        self._target = target

    def load(self):
        if isinstance(self._target, Exception):
            raise self._target
        return self._target


class TestContributors:
    def test_contributor_adds_directive(self, registry):
        warnings = load_directive_plugins(registry=registry, contributors=[shout_contributor], entry_point_group=None)
        assert warnings == ()
        assert registry.list() == ["shout"]

    def test_failing_contributor_becomes_warning(self, registry):
        warnings = load_directive_plugins(
            registry=registry,
            contributors=[broken_contributor, shout_contributor],
            entry_point_group=None,
        )
        assert len(warnings) == 1
        assert warnings[0].startswith("warning: failed to load directive plugin 'broken_contributor'")
        assert "boom" in warnings[0]
        assert "shout" in registry

    def test_invalid_name_is_raised(self, registry):
        with pytest.raises(InvalidNameError):
            load_directive_plugins(registry=registry, contributors=[bad_name_contributor], entry_point_group=None)

    def test_engine_runs_contributors_after_builtins(self, guest, settings, recording_logger):
        engine = TemplateEngine(
            guest,
            settings=settings,
            logger=recording_logger,
            contributors=[shout_contributor, broken_contributor],
        )
        assert engine.registry.list()[-1] == "shout"
        assert engine.render("@shout hey @/shout") == "HEY!"
        assert len(engine.plugin_warnings) == 1


class TestPluginModules:
    def test_module_with_register_function(self, registry, plugin_dir):
        name = plugin_dir("tpl_plugin_ok", """
            def register_directives(registry):
                registry.register("stars", lambda params, body, scope: "*" + body + "*")
        """)
        warnings = load_directive_plugins(registry=registry, module_paths=[name], entry_point_group=None)
        assert warnings == ()
        assert registry.get("stars")("", "x", None) == "*x*"

    def test_module_without_register_function(self, registry, plugin_dir):
        name = plugin_dir("tpl_plugin_empty", """
            VALUE = 1
        """)
        (warning,) = load_directive_plugins(registry=registry, module_paths=[name], entry_point_group=None)
        assert "does not define register_directives(registry)" in warning

    def test_module_for_other_api_version(self, registry, plugin_dir):
        name = plugin_dir("tpl_plugin_future", """
            PLUGIN_API_VERSION = 99

            def register_directives(registry):
                registry.register("future", lambda params, body, scope: body)
        """)
        (warning,) = load_directive_plugins(registry=registry, module_paths=[name], entry_point_group=None)
        assert "plugin API version 99" in warning
        assert "future" not in registry

    def test_missing_module(self, registry):
        (warning,) = load_directive_plugins(
            registry=registry,
            module_paths=["tpl_plugin_does_not_exist"],
            entry_point_group=None,
        )
        assert "tpl_plugin_does_not_exist" in warning

    def test_engine_reads_modules_from_settings(self, guest, settings, plugin_dir, recording_logger):
        name = plugin_dir("tpl_plugin_settings", """
            def register_directives(registry):
                registry.register("wrap", lambda params, body, scope: "(" + body + ")")
        """)
        engine = TemplateEngine(
            guest,
            settings=settings.model_copy(update={"plugin_modules": [name]}),
            logger=recording_logger,
        )
        assert engine.render("@wrap x @/wrap") == "(x)"


class TestEntryPoints:
    def test_entry_points_are_loaded(self, registry, monkeypatch):
        found = [
            FakeEntryPoint("shout", "pkg:shout_contributor", shout_contributor),
            FakeEntryPoint("broken", "pkg:missing", ImportError("no module named pkg")),
            FakeEntryPoint("odd", "pkg:VALUE", 42),
        ]
        monkeypatch.setattr(plugins, "_entry_points_for_group", lambda group: found)

        warnings = load_directive_plugins(registry=registry)

        assert "shout" in registry
        assert len(warnings) == 2
        assert "broken (pkg:missing)" in warnings[0]
        assert "must resolve to a module or callable" in warnings[1]

    def test_group_none_skips_discovery(self, registry, monkeypatch):
        def fail(group):
            raise AssertionError("entry points should not be scanned")

        monkeypatch.setattr(plugins, "_entry_points_for_group", fail)
        assert load_directive_plugins(registry=registry, entry_point_group=None) == ()

    def test_engine_scans_configured_group(self, guest, settings, monkeypatch, recording_logger):
        groups = []

        def entry_points(group):
            groups.append(group)
            return [FakeEntryPoint("shout", "pkg:shout", shout_contributor)]

        monkeypatch.setattr(plugins, "_entry_points_for_group", entry_points)
        engine = TemplateEngine(guest, settings=settings, logger=recording_logger, load_entry_points=True)

        assert groups == ["templating.directives"]
        assert "shout" in engine.registry
