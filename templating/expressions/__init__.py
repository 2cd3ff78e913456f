"""
Expression package.

Restricted expression language for directive parameters:
- `templating.expressions.lexer` tokenizes
- `templating.expressions.parser` builds the AST
- `templating.expressions.evaluator` walks it against a scope
"""

from .evaluator import ExpressionEvaluator
from .parser import parse_expression

__all__ = ["ExpressionEvaluator", "parse_expression"]
