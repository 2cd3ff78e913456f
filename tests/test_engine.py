"""Tests for the engine facade and the render pipeline."""

import pytest

from templating.engine import TemplateEngine
from templating.exceptions import InvalidNameError
from templating.hooks import AFTER_PARSE, BEFORE_PARSE, PARSED_CONTENT


class TestPreamble:
    def test_assignment_is_captured_and_removed(self, make_engine, guest):
        engine = make_engine(guest)
        assert engine.render("$name = 'Hi';\n@if(true){{ name }}@/if") == "Hi"

    def test_assignment_overrides_caller_variables(self, make_engine, guest):
        engine = make_engine(guest)
        assert engine.render("$name = 'Hi';\n@if(true){{ name }}@/if", {"name": "X"}) == "Hi"

    def test_assignments_see_earlier_ones(self, make_engine, guest):
        engine = make_engine(guest)
        assert engine.render("$a = 2;\n$b = a * 3\n{{ b }}") == "6"

    def test_assignments_read_caller_variables(self, make_engine, guest):
        engine = make_engine(guest)
        assert engine.render("$total = price * 2;\n{{ total }}", {"price": 5}) == "10"

    def test_failed_assignment_keeps_line(self, make_engine, guest, recording_logger):
        engine = make_engine(guest)
        assert engine.render("$bad = 1 +\nText ok") == "$bad = 1 +\nText ok"
        (record,) = recording_logger.at("error")
        assert record[2]["variable"] == "bad"

    def test_only_lines_before_first_directive(self, make_engine, guest):
        engine = make_engine(guest)
        assert engine.render("@if(true)x@/if\n$late = 1;") == "x\n$late = 1;"

    def test_comparison_is_not_an_assignment(self, make_engine, guest):
        engine = make_engine(guest)
        assert engine.render("$a == 1;") == "$a == 1;"

    def test_caller_variables_are_not_modified(self, make_engine, guest):
        engine = make_engine(guest)
        variables = {"name": "X"}
        engine.render("$name = 'Hi';\n{{ name }}", variables)
        assert variables == {"name": "X"}

    def test_can_be_disabled(self, make_engine, guest):
        engine = make_engine(guest, preamble=False)
        assert engine.render("$name = 'Hi';\n{{ name }}") == "$name = 'Hi';\n"


class TestInterpolation:
    def test_escaped_output(self, make_engine, guest):
        engine = make_engine(guest)
        assert engine.render("{{ name }}", {"name": "<b>Tom</b>"}) == "&lt;b&gt;Tom&lt;/b&gt;"

    def test_raw_output(self, make_engine, guest):
        engine = make_engine(guest)
        assert engine.render("{!! name !!}", {"name": "<b>Tom</b>"}) == "<b>Tom</b>"

    def test_braces_are_encoded(self, make_engine, guest):
        engine = make_engine(guest)
        result = engine.render("{{ name }}", {"name": "{{ secret }}", "secret": "S"})
        assert result == "&#123;&#123; secret &#125;&#125;"

    @pytest.mark.parametrize("value, expected", [
        (True, "true"),
        (False, "false"),
        (None, ""),
        (3, "3"),
        (2.5, "2.5"),
    ])
    def test_value_formatting(self, make_engine, guest, value, expected):
        assert make_engine(guest).render("{{ v }}", {"v": value}) == expected

    def test_failed_placeholder_is_left_as_written(self, make_engine, guest, recording_logger):
        engine = make_engine(guest)
        assert engine.render("a {{ 1 + }} b") == "a {{ 1 + }} b"
        assert len(recording_logger.at("error")) == 1

    def test_expressions_in_placeholders(self, make_engine, guest):
        engine = make_engine(guest)
        result = engine.render("{{ user.name }} has {{ items[0] + 1 }}", {"user": {"name": "Ann"}, "items": [1]})
        assert result == "Ann has 2"

    def test_can_be_disabled(self, make_engine, guest):
        engine = make_engine(guest, interpolation=False)
        assert engine.render("{{ name }}", {"name": "Ann"}) == "{{ name }}"


class TestHooks:
    def test_filters_run_at_each_stage(self, make_engine, member):
        engine = make_engine(member)
        seen = {}

        def before(content, scope):
            return content.replace("[[greeting]]", "@user Hello {{ name }} @/user")

        def parsed(content, scope):
            seen["parsed"] = content
            return content

        def after(content, scope):
            return content.upper()

        engine.hooks.add(BEFORE_PARSE, before)
        engine.hooks.add(PARSED_CONTENT, parsed)
        engine.hooks.add(AFTER_PARSE, after)

        assert engine.render("[[greeting]]", {"name": "ann"}) == "HELLO ANN"
        assert seen["parsed"] == "Hello {{ name }}"

    def test_filters_receive_preamble_bindings(self, make_engine, guest):
        engine = make_engine(guest)
        engine.hooks.add(BEFORE_PARSE, lambda content, scope: content + scope["suffix"])
        assert engine.render("$suffix = '!';\nDone") == "Done!"


class TestEngine:
    def test_parse_resolves_directives_only(self, make_engine, guest):
        engine = make_engine(guest)
        assert engine.parse("@if(x)A {{ x }}@/if", {"x": 1}) == "A {{ x }}"
        assert engine.parse("$a = 1;\nT") == "$a = 1;\nT"

    def test_builtins_follow_settings(self, make_engine, guest):
        engine = make_engine(guest, builtins=["if"])
        assert engine.registry.list() == ["if"]
        assert engine.render("@admin A @/admin @if(true) I @/if") == "@admin A @/admin I"

    def test_default_builtin_order(self, make_engine, guest):
        assert make_engine(guest).registry.list() == ["admin", "user", "role", "can", "guest", "each", "if"]

    def test_add_directive(self, make_engine, guest):
        engine = make_engine(guest)
        engine.add_directive("upper", lambda params, body, scope: body.upper())
        assert engine.render("@upper hi @/upper {{ who }}", {"who": "ann"}) == "HI ann"

    def test_add_directive_rejects_invalid_names(self, make_engine, guest):
        engine = make_engine(guest)
        with pytest.raises(InvalidNameError):
            engine.add_directive("no-dash", lambda params, body, scope: body)

    def test_custom_directive_replaces_builtin_in_place(self, make_engine, guest):
        engine = make_engine(guest)
        engine.add_directive("admin", lambda params, body, scope: "[admin]")
        assert engine.registry.list()[0] == "admin"
        assert engine.render("@admin x @/admin") == "[admin]"

    def test_evaluate_expression(self, make_engine, guest):
        assert make_engine(guest).evaluate_expression("a + b", {"a": 1, "b": 2}) == 3

    def test_strict_variables(self, make_engine, guest, recording_logger):
        engine = make_engine(guest, strict_variables=True)
        assert engine.render("@if(missing)body@/if") == "body"
        assert recording_logger.at("error")[0][2]["error_type"] == "ExpressionError"

    def test_max_passes_from_settings(self, make_engine, guest, recording_logger):
        engine = make_engine(guest, max_passes=1)
        assert engine.render("@if(true) @if(true) x @/if @/if") == "@if(true) x @/if"
        assert recording_logger.at("warning")

    def test_renders_are_independent(self, make_engine, guest):
        engine = make_engine(guest)
        assert engine.render("$a = 1;\n{{ a }}") == "1"
        assert engine.render("{{ a }}") == ""

    def test_source_must_be_text(self, make_engine, guest):
        with pytest.raises(TypeError):
            make_engine(guest).render(None)

    def test_uses_loaded_settings_by_default(self, guest, monkeypatch, settings):
        monkeypatch.setattr("templating.engine.load_settings", lambda: settings.model_copy(update={"builtins": ["guest"]}))
        engine = TemplateEngine(guest)
        assert engine.registry.list() == ["guest"]


class TestFailureContainment:
    @pytest.mark.parametrize("placeholder", [
        "{{ '%z' % 1 }}",
        "{{ '%(a)s' % m }}",
        "{{ m[[1]] }}",
        "{!! 'a' * 100000000000000000000 !!}",
    ])
    def test_bad_placeholder_is_left_as_written(self, make_engine, guest, recording_logger, placeholder):
        engine = make_engine(guest)
        assert engine.render(f"A {placeholder} B {{{{ ok }}}}", {"m": {}, "ok": "fine"}) == f"A {placeholder} B fine"
        assert len(recording_logger.at("error")) == 1

    def test_bad_preamble_line_is_kept(self, make_engine, guest, recording_logger):
        engine = make_engine(guest)
        assert engine.render("$x = m[[1]];\n$y = 2;\nok {{ y }}", {"m": {}}) == "$x = m[[1]];\nok 2"
        (record,) = recording_logger.at("error")
        assert record[2]["variable"] == "x"

    def test_value_that_cannot_be_rendered(self, make_engine, guest, recording_logger):
        class Unprintable:
            def __str__(self):
                raise RuntimeError("no text form")

        engine = make_engine(guest)
        assert engine.render("[{{ thing }}]", {"thing": Unprintable()}) == "[{{ thing }}]"
        assert recording_logger.at("error")[0][2]["error_type"] == "RuntimeError"
