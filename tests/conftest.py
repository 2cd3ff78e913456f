"""Shared fixtures for templating tests."""

from typing import Any, Dict, List, Tuple

import pytest

from templating.directives.registry import DirectiveRegistry
from templating.engine import TemplateEngine
from templating.expressions import ExpressionEvaluator
from templating.identity import StaticIdentity
from templating.settings.store import settings_from_mapping


class RecordingLogger:
    """Logger collaborator that keeps every call for assertions."""

    def __init__(self):
        self.records: List[Tuple[str, str, Dict[str, Any]]] = []

    def _record(self, level: str, message: str, **extra: Any) -> None:
        self.records.append((level, message, extra))

    def error(self, message: str, **extra: Any) -> None:
        self._record("error", message, **extra)

    def warning(self, message: str, **extra: Any) -> None:
        self._record("warning", message, **extra)

    def info(self, message: str, **extra: Any) -> None:
        self._record("info", message, **extra)

    def debug(self, message: str, **extra: Any) -> None:
        self._record("debug", message, **extra)

    def at(self, level: str) -> List[Tuple[str, str, Dict[str, Any]]]:
        return [record for record in self.records if record[0] == level]


@pytest.fixture
def recording_logger():
    return RecordingLogger()


@pytest.fixture
def guest():
    return StaticIdentity.guest()


@pytest.fixture
def member():
    return StaticIdentity(
        logged_in=True,
        roles={"editor"},
        capabilities={"edit_posts"},
    )


@pytest.fixture
def admin():
    return StaticIdentity.administrator()


@pytest.fixture
def registry():
    return DirectiveRegistry()


@pytest.fixture
def evaluator():
    return ExpressionEvaluator()


@pytest.fixture
def settings():
    """Defaults with entry point discovery off, independent of any settings file."""
    return settings_from_mapping({"load_entry_points": False})


@pytest.fixture
def make_engine(settings, recording_logger):
    """Build an engine for an identity, optionally overriding settings keys."""

    def factory(identity, **overrides):
        engine_settings = settings.model_copy(update=overrides) if overrides else settings
        return TemplateEngine(identity, settings=engine_settings, logger=recording_logger)

    return factory
