"""
Placeholder interpolation.

After directives are resolved, `{{ expr }}` is replaced with the HTML-escaped
value of the expression and `{!! expr !!}` with the raw value. Escaped output
also encodes braces, so a value can never smuggle in a new placeholder.
"""

from __future__ import annotations

import html
import re
from typing import Any, Optional

from templating.expressions import ExpressionEvaluator
from templating.logger import UnifiedLogger, safe_log
from templating.scope import Scope

logger = UnifiedLogger(tag="interpolation")

PLACEHOLDER_PATTERN = re.compile(
    r'\{!!\s*(?P<raw>.+?)\s*!!\}|\{\{\s*(?P<escaped>.+?)\s*\}\}',
    re.DOTALL,
)


def format_value(value: Any) -> str:
    """Convert an expression result to output text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def escape_value(text: str) -> str:
    """HTML-escape text and neutralise placeholder braces."""
    return html.escape(text, quote=True).replace("{", "&#123;").replace("}", "&#125;")


class Interpolator:
    """Replaces expression placeholders using a scope."""

    def __init__(self, evaluator: ExpressionEvaluator, logger: Optional[Any] = None):
        self.evaluator = evaluator
        self.logger = logger if logger is not None else _module_logger()

    def interpolate(self, text: str, scope: Scope) -> str:
        """Replace every placeholder in the text.

        A placeholder whose expression fails is logged and left as written.
        """
        if "{{" not in text and "{!!" not in text:
            return text

        def replace(match: re.Match) -> str:
            raw = match.group("raw")
            expression = raw if raw is not None else match.group("escaped")
            try:
                rendered = format_value(self.evaluator.evaluate(expression, scope))
            except Exception as exc:  # noqa: BLE001
                safe_log(
                    self.logger,
                    "error",
                    "Placeholder expression failed; leaving placeholder as written",
                    expression=expression,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                return match.group(0)

            return rendered if raw is not None else escape_value(rendered)

        return PLACEHOLDER_PATTERN.sub(replace, text)


def _module_logger() -> UnifiedLogger:
    return logger
