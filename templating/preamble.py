"""
Preamble capture.

Templates may open with variable assignments before their first directive:

    $title = 'Members';
    $limit = 3
    @user ... @/user

Each `$name = expression` line in that region is evaluated with the safe
expression evaluator (later lines see earlier bindings), folded into the
render scope and removed from the text. No host-language code is executed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from templating.constants import DIRECTIVE_TOKEN_PATTERN
from templating.expressions import ExpressionEvaluator
from templating.logger import UnifiedLogger, safe_log
from templating.scope import Scope

logger = UnifiedLogger(tag="preamble")

ASSIGNMENT_PATTERN = re.compile(
    r'^[ \t]*\$(?P<name>[A-Za-z_][A-Za-z0-9_]*)[ \t]*=(?!=)[ \t]*(?P<expression>.*?)[ \t]*;?[ \t]*$'
)


@dataclass
class PreambleResult:
    """Text with assignment lines removed, plus the bindings they produced."""
    content: str
    bindings: Dict[str, Any] = field(default_factory=dict)


class PreambleEvaluator:
    """Captures `$name = expression` assignments ahead of the first directive."""

    def __init__(self, evaluator: ExpressionEvaluator, logger: Optional[Any] = None):
        self.evaluator = evaluator
        self.logger = logger if logger is not None else _module_logger()

    def capture(self, source: str, scope: Scope) -> PreambleResult:
        """Evaluate preamble assignments against the scope.

        The scope itself is not modified; callers fold `bindings` in.

        Args:
            source: Full template text
            scope: Variables visible to the assignment expressions

        Returns:
            PreambleResult with the remaining text and captured bindings
        """
        first_directive = DIRECTIVE_TOKEN_PATTERN.search(source)
        boundary = first_directive.start() if first_directive else len(source)
        head, tail = source[:boundary], source[boundary:]

        working = scope.child()
        bindings: Dict[str, Any] = {}
        kept = []

        for line in head.splitlines(keepends=True):
            match = ASSIGNMENT_PATTERN.match(line.rstrip("\r\n"))
            if match is None:
                kept.append(line)
                continue

            name = match.group("name")
            try:
                value = self.evaluator.evaluate(match.group("expression"), working)
            except Exception as exc:  # noqa: BLE001
                safe_log(
                    self.logger,
                    "error",
                    "Preamble assignment failed; keeping line as written",
                    variable=name,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                kept.append(line)
                continue

            working[name] = value
            bindings[name] = value

        return PreambleResult(content="".join(kept) + tail, bindings=bindings)


def _module_logger() -> UnifiedLogger:
    return logger
