"""
Directive matcher for resolving `@name(params) body @/name` tag pairs.

Directives are processed one name at a time, in registry order, across the
whole content. A name registered earlier is therefore already resolved inside
the body of a directive registered later, while a later name is still raw
text inside the body of an earlier one. This ordering is part of the
templating contract.

Pairs are matched by nesting depth per name: an open tag pairs with the close
tag that balances it. Within one pass the outermost pairs are replaced; when
replacement text still holds tags of the same name (a passing `@if` whose body
contains another `@if`) the name is scanned again, up to `max_passes` times.
An open tag without a balancing close tag is left untouched.

Parameter text runs to the matching `)`. Parentheses inside quoted strings
are skipped; an unclosed quote means the tag has no parameter list.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Any, List, Optional, Pattern, Tuple

from templating.constants import DEFAULT_MAX_PASSES
from templating.exceptions import HandlerError, TemplatingError
from templating.logger import UnifiedLogger, safe_log
from templating.scope import Scope

from .base import DirectiveDefinition, DirectiveOccurrence
from .registry import DirectiveRegistry, validate_directive_name

# Create module logger
logger = UnifiedLogger(tag="directive-matcher")


# Quoted strings are skipped whole, so `@if(sep == ')')` keeps its `)`
_QUOTED = r"""'(?:[^'\\]|\\[\s\S])*'|"(?:[^"\\]|\\[\s\S])*\""""
_PARAM_CHAR = rf"""(?:[^()'"]|{_QUOTED})"""

# Parameters may hold one level of nested parentheses: @if((a + b) > 0)
_PARAMS_PATTERN = rf'(?:\((?P<params>(?:{_PARAM_CHAR}|\({_PARAM_CHAR}*\))*)\))?'
_NAME_BOUNDARY = r'(?![A-Za-z0-9_])'


@lru_cache(maxsize=256)
def _tag_patterns(name: str) -> Tuple[Pattern[str], Pattern[str]]:
    """Compile the open-tag and open/close token patterns for a name."""
    escaped = re.escape(name)
    open_tag = re.compile(rf'@{escaped}{_NAME_BOUNDARY}{_PARAMS_PATTERN}')
    any_tag = re.compile(rf'@(?P<close>/)?{escaped}{_NAME_BOUNDARY}')
    return open_tag, any_tag


def find_occurrences(name: str, content: str) -> List[DirectiveOccurrence]:
    """Find the outermost, non-overlapping occurrences of one directive.

    Args:
        name: Directive name to look for
        content: Text to scan

    Returns:
        Occurrences in document order
    """
    validate_directive_name(name)
    open_tag, any_tag = _tag_patterns(name)
    occurrences: List[DirectiveOccurrence] = []
    pos = 0

    while True:
        opening = open_tag.search(content, pos)
        if opening is None:
            break

        closing = _find_balancing_close(any_tag, content, opening.end())
        if closing is None:
            # Unterminated: leave it and look for complete pairs after it
            pos = opening.end()
            continue

        occurrences.append(DirectiveOccurrence(
            name=name,
            raw_params=opening.group('params'),
            body=content[opening.end():closing.start()].strip(),
            start=opening.start(),
            end=closing.end(),
        ))
        pos = closing.end()

    return occurrences


def _module_logger() -> UnifiedLogger:
    return logger


def _find_balancing_close(any_tag: Pattern[str], content: str, start: int) -> Optional[re.Match]:
    depth = 1
    for token in any_tag.finditer(content, start):
        if token.group('close'):
            depth -= 1
            if depth == 0:
                return token
        else:
            depth += 1
    return None


class DirectiveMatcher:
    """Replaces directive occurrences with handler output.

    Args:
        registry: Registry whose directives are resolved
        logger: Collaborator receiving handler failures (anything with
            `error` / `warning` methods); defaults to the module logger
        max_passes: Upper bound on re-scans of a single name per parse
    """

    def __init__(
        self,
        registry: DirectiveRegistry,
        logger: Optional[Any] = None,
        max_passes: int = DEFAULT_MAX_PASSES,
    ):
        if max_passes < 1:
            raise ValueError("max_passes must be at least 1")
        self.registry = registry
        self.logger = logger if logger is not None else _module_logger()
        self.max_passes = max_passes

    def parse(self, content: str, scope: Optional[Scope] = None) -> str:
        """Resolve every registered directive in the content.

        Args:
            content: Raw text
            scope: Variables for this render; a fresh empty scope if omitted

        Returns:
            Processed text. Content without directive occurrences is
            returned unchanged.
        """
        if not isinstance(content, str):
            raise TypeError(f"content must be a string, got {type(content).__name__}")
        if scope is None:
            scope = Scope()

        for definition in self.registry.snapshot():
            content = self._resolve_directive(definition, content, scope)
        return content

    def _resolve_directive(self, definition: DirectiveDefinition, content: str, scope: Scope) -> str:
        for _ in range(self.max_passes):
            occurrences = find_occurrences(definition.name, content)
            if not occurrences:
                return content
            content = self._replace(definition, content, occurrences, scope)

        if find_occurrences(definition.name, content):
            safe_log(
                self.logger,
                "warning",
                "Directive still present after maximum passes; leaving remaining tags as-is",
                directive=definition.name,
                max_passes=self.max_passes,
            )
        return content

    def _replace(
        self,
        definition: DirectiveDefinition,
        content: str,
        occurrences: List[DirectiveOccurrence],
        scope: Scope,
    ) -> str:
        pieces: List[str] = []
        last = 0
        for occurrence in occurrences:
            pieces.append(content[last:occurrence.start])
            pieces.append(self._invoke(definition, occurrence, scope))
            last = occurrence.end
        pieces.append(content[last:])
        return "".join(pieces)

    def _invoke(self, definition: DirectiveDefinition, occurrence: DirectiveOccurrence, scope: Scope) -> str:
        try:
            # Writes made by a handler land in a throwaway layer
            result = definition.handler(occurrence.params, occurrence.body, scope.child())
        except TemplatingError as exc:
            error: TemplatingError = exc
        except Exception as exc:  # noqa: BLE001
            error = HandlerError(definition.name, str(exc) or type(exc).__name__)
            error.__cause__ = exc
        else:
            if result is None:
                return ""
            return result if isinstance(result, str) else str(result)

        safe_log(
            self.logger,
            "error",
            "Directive handler failed; emitting raw body",
            directive=definition.name,
            params=occurrence.raw_params,
            offset=occurrence.start,
            error=str(error),
            error_type=type(error).__name__,
        )
        return occurrence.body
