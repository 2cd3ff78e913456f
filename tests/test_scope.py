"""Tests for Scope layering."""

import pytest

from templating.scope import Scope


def test_copies_caller_variables():
    variables = {"a": 1}
    scope = Scope(variables)
    scope["b"] = 2
    variables["c"] = 3
    assert "b" not in variables
    assert "c" not in scope


def test_child_reads_parent_and_shadows():
    parent = Scope({"a": 1, "b": 2})
    child = parent.child({"b": 20})
    assert child["a"] == 1
    assert child["b"] == 20
    assert parent["b"] == 2
    assert child.depth == 2


def test_child_writes_stay_in_child():
    parent = Scope({"a": 1})
    child = parent.child()
    child["a"] = 10
    child["new"] = True
    assert parent.to_dict() == {"a": 1}
    assert child.to_dict() == {"a": 10, "new": True}


def test_delete_only_touches_innermost_layer():
    child = Scope({"a": 1}).child()
    with pytest.raises(KeyError):
        del child["a"]


def test_view_is_read_only():
    scope = Scope({"a": 1})
    view = scope.view()
    assert view["a"] == 1
    with pytest.raises(TypeError):
        view["a"] = 2


def test_view_tracks_later_writes():
    scope = Scope()
    view = scope.view()
    scope["late"] = "yes"
    assert view["late"] == "yes"


def test_mapping_protocol():
    scope = Scope({"a": 1}).child({"b": 2})
    assert sorted(scope) == ["a", "b"]
    assert len(scope) == 2
    assert scope.get("missing") is None
    assert "Scope(" in repr(scope)
