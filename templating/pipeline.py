"""
Template processing pipeline.

    source + variables
      -> fresh Scope
      -> preamble capture (optional)
      -> before_parse filters
      -> directive matcher -> parsed_content filters
      -> interpolation (optional)
      -> after_parse filters
      -> final text

Everything happens in memory; nothing is written to disk between stages.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from templating.directives.matcher import DirectiveMatcher
from templating.hooks import AFTER_PARSE, BEFORE_PARSE, PARSED_CONTENT, FilterHooks
from templating.interpolation import Interpolator
from templating.logger import UnifiedLogger
from templating.preamble import PreambleEvaluator
from templating.scope import Scope

logger = UnifiedLogger(tag="template-renderer")


class TemplateRenderer:
    """Runs one template source through every pipeline stage.

    Args:
        matcher: Directive matcher (owns the registry)
        preamble: Preamble evaluator, or None to skip preamble capture
        interpolator: Placeholder interpolator, or None to skip interpolation
        hooks: Content filters; an empty set when omitted
    """

    def __init__(
        self,
        matcher: DirectiveMatcher,
        *,
        preamble: Optional[PreambleEvaluator] = None,
        interpolator: Optional[Interpolator] = None,
        hooks: Optional[FilterHooks] = None,
    ):
        self.matcher = matcher
        self.preamble = preamble
        self.interpolator = interpolator
        self.hooks = hooks if hooks is not None else FilterHooks()

    @logger.trace("template-renderer:render")
    def render(self, source: str, variables: Optional[Mapping[str, Any]] = None) -> str:
        """Render template source to final text.

        Args:
            source: Raw template text
            variables: Caller-supplied variables, copied into a fresh scope

        Returns:
            Processed text
        """
        if not isinstance(source, str):
            raise TypeError(f"source must be a string, got {type(source).__name__}")

        scope = Scope(variables)
        content = source

        if self.preamble is not None:
            captured = self.preamble.capture(content, scope)
            scope.update(captured.bindings)
            content = captured.content

        content = self.hooks.apply(BEFORE_PARSE, content, scope)
        content = self.parse(content, scope)

        if self.interpolator is not None:
            content = self.interpolator.interpolate(content, scope)

        return self.hooks.apply(AFTER_PARSE, content, scope)

    def parse(self, content: str, scope: Scope) -> str:
        """Resolve directives and run the parsed_content filters."""
        parsed = self.matcher.parse(content, scope)
        return self.hooks.apply(PARSED_CONTENT, parsed, scope)

    def render_fragment(self, body: str, scope: Scope) -> str:
        """Render a directive body against a derived scope.

        Resolves nested directives and placeholders; no preamble, no filters.
        Used by @each for every iteration.
        """
        content = self.matcher.parse(body, scope)
        if self.interpolator is not None:
            content = self.interpolator.interpolate(content, scope)
        return content
