"""Unified logger providing technical instrumentation for the templating engine."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from threading import Lock
from typing import Any, Optional, Tuple

import logfire

from templating.settings.store import load_settings


_logfire_config_state: Optional[Tuple[bool, bool, str]] = None
_logfire_config_lock = Lock()
_logfire_instrumented = False
_logger_internal = logging.getLogger(__name__)


def refresh_logfire_configuration(force: bool = False) -> None:
    """
    Reconfigure the global Logfire client based on current settings.

    Args:
        force: When True, always reapply configuration even if nothing changed.
    """
    global _logfire_config_state

    try:
        options = load_settings().logfire
        enabled, console, service_name = options.enabled, options.console, options.service_name
    except Exception as exc:  # pragma: no cover - defensive guard
        _logger_internal.error("Failed to read logfire settings, defaulting to disabled: %s", exc)
        enabled, console, service_name = False, True, "templating"

    desired_state = (enabled, console, service_name)

    with _logfire_config_lock:
        if not force and _logfire_config_state == desired_state:
            return

        send_option: str | bool = "if-token-present" if enabled else False

        logfire.configure(
            send_to_logfire=send_option,
            service_name=service_name,
            console=None if console else False,
            scrubbing=False,
        )

        _logfire_config_state = desired_state


class UnifiedLogger:
    """Unified logger providing instrumentation for a templating component."""

    def __init__(self, tag: str):
        """
        Initialize unified logger for a module or component.

        Args:
            tag: Module or component identifier
        """
        self.tag = tag
        self._logfire_instance = None  # Lazy initialization

    @property
    def _logfire(self):
        """Lazy-loaded Logfire instance."""
        if self._logfire_instance is None:
            self._logfire_instance = self._setup_logfire()
        return self._logfire_instance

    def _setup_logfire(self):
        """Set up Logfire client with console fallback."""
        refresh_logfire_configuration()
        global _logfire_instrumented
        if not _logfire_instrumented:
            # Settings models are the only pydantic models in the package
            logfire.instrument_pydantic()
            _logfire_instrumented = True
        return logfire

    # Technical Instrumentation Methods

    def info(self, message: str, **extra: Any) -> None:
        """Technical info logging."""
        self._logfire.info(message, tag=self.tag, **extra)

    def warning(self, message: str, **extra: Any) -> None:
        """Technical warning logging."""
        self._logfire.warning(message, tag=self.tag, **extra)

    def error(self, message: str, **extra: Any) -> None:
        """Technical error logging."""
        self._logfire.error(message, tag=self.tag, **extra)

    def debug(self, message: str, **extra: Any) -> None:
        """Technical debug logging."""
        self._logfire.debug(message, tag=self.tag, **extra)

    @contextmanager
    def span(self, operation: str, **span_data: Any):
        """
        Manual instrumentation span for critical code paths.

        Usage:
            with logger.span("parse", directive="each"):
                # critical operation
                pass
        """
        with self._logfire.span(f"{self.tag}:{operation}", **span_data):
            yield

    def trace(self, func_name_template: Optional[str] = None):
        """
        Decorator for function instrumentation with sensible defaults.

        Args:
            func_name_template: Optional template for span name

        Usage:
            @logger.trace()  # Full instrumentation with function name
            def render(self, source: str, variables: dict): pass
        """
        def decorator(func):
            span_name = func_name_template or f"{self.tag}:{func.__name__}"
            return self._logfire.instrument(
                span_name,
                extract_args=True,
                record_return=True
            )(func)
        return decorator


def safe_log(logger: Any, level: str, message: str, **extra: Any) -> None:
    """Log through any logger-like collaborator without ever raising.

    Directive failures are reported from inside a render; a broken logger must
    not turn an isolated failure into an aborted render.
    """
    log_method = getattr(logger, level, None)
    if not callable(log_method):
        return
    try:
        log_method(message, **extra)
    except Exception as exc:  # noqa: BLE001
        _logger_internal.warning("Templating logger failed while reporting %r: %s", message, exc)
