"""
Control-flow directive processors.

    @if($count > 0) You have {{ count }} items @/if
    @each($items) <li>{{ index }}: {{ value }}</li> @/each
"""

from collections.abc import Mapping
from typing import Any, Callable, Iterable, Tuple

from templating.constants import LOOP_INDEX_NAME, LOOP_KEY_NAME, LOOP_VALUE_NAME
from templating.expressions import ExpressionEvaluator
from templating.scope import Scope

from .base import DirectiveProcessor, is_empty_params


# Renders a body against a scope: nested directives, then interpolation
BodyRenderer = Callable[[str, Scope], str]


class IfDirective(DirectiveProcessor):
    """Shows its body when the parameter expression is truthy."""

    def __init__(self, evaluator: ExpressionEvaluator):
        self.evaluator = evaluator

    def get_directive_name(self) -> str:
        return "if"

    def render(self, params: str, body: str, scope: Scope) -> str:
        if is_empty_params(params):
            return ""
        return body if self.evaluator.evaluate_truthy(params, scope) else ""


class EachDirective(DirectiveProcessor):
    """
    Repeats its body once per element of a list or mapping.

    Every iteration renders the body in a child scope that adds `key`,
    `value` and `index`. For lists `key` and `index` are the position; for
    mappings both are the mapping key. Iteration outputs are concatenated in
    order. Strings, None and other non-collection values produce no output.
    """

    def __init__(self, evaluator: ExpressionEvaluator, render_body: BodyRenderer):
        self.evaluator = evaluator
        self.render_body = render_body

    def get_directive_name(self) -> str:
        return "each"

    def render(self, params: str, body: str, scope: Scope) -> str:
        if is_empty_params(params):
            return ""

        collection = self.evaluator.evaluate(params, scope)

        output = []
        for key, value in _iteration_pairs(collection):
            iteration_scope = scope.child({
                LOOP_KEY_NAME: key,
                LOOP_VALUE_NAME: value,
                LOOP_INDEX_NAME: key,
            })
            output.append(self.render_body(body, iteration_scope))
        return "".join(output)


def _iteration_pairs(collection: Any) -> Iterable[Tuple[Any, Any]]:
    if isinstance(collection, Mapping):
        return list(collection.items())
    if isinstance(collection, (list, tuple)):
        return list(enumerate(collection))
    return []
