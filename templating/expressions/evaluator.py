"""
Safe expression evaluation over a Scope.

Replaces host-language `eval` for directive parameters. Expressions are parsed
by the recursive descent parser and walked against a read-only view of the
scope, so they can read variables but never mutate them or call code.
"""

from __future__ import annotations

import operator
from collections.abc import Mapping, Sequence
from functools import lru_cache
from typing import Any, Callable, Dict, Optional

from templating.constants import EXPRESSION_CACHE_SIZE, MAX_REPEAT_LENGTH
from templating.exceptions import ExpressionError

from .parser import (
    Binary,
    BoolOp,
    Compare,
    Conditional,
    Index,
    ListDisplay,
    Literal,
    MapDisplay,
    Member,
    Name,
    Node,
    Unary,
    parse_expression,
)


_MISSING = object()

_COMPARATORS: Dict[str, Callable[[Any, Any], Any]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": lambda left, right: left in right,
    "not in": lambda left, right: left not in right,
}

_ARITHMETIC: Dict[str, Callable[[Any, Any], Any]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
    "%": operator.mod,
}


class ExpressionEvaluator:
    """Evaluates directive expressions against a scope.

    Args:
        strict: Raise ExpressionError for unknown names, missing keys and
            out-of-range indexes instead of yielding None.
        cache_size: Number of parsed expressions kept per evaluator.
    """

    def __init__(self, strict: bool = False, cache_size: int = EXPRESSION_CACHE_SIZE):
        self.strict = strict
        self._parse = lru_cache(maxsize=cache_size)(parse_expression)

    def parse(self, expression: str) -> Node:
        """Parse (with caching) an expression string."""
        if not isinstance(expression, str):
            raise ExpressionError(f"Expression must be a string, got {type(expression).__name__}")
        try:
            return self._parse(expression.strip())
        except RecursionError:
            raise ExpressionError("Expression nests too deeply", expression) from None

    def evaluate(self, expression: str, scope: Optional[Mapping[str, Any]] = None) -> Any:
        """Evaluate an expression and return its value.

        Args:
            expression: Expression text, e.g. "$user.role == 'editor'"
            scope: Variables visible to the expression

        Returns:
            The computed value

        Raises:
            ExpressionError: If the expression is malformed or fails to evaluate
        """
        node = self.parse(expression)
        try:
            return _Evaluation(expression, _read_only(scope), self.strict).visit(node)
        except RecursionError:
            raise ExpressionError("Expression nests too deeply", expression) from None

    def evaluate_truthy(self, expression: str, scope: Optional[Mapping[str, Any]] = None) -> bool:
        """Evaluate an expression and coerce the result to a boolean."""
        return bool(self.evaluate(expression, scope))


def _read_only(scope: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    if scope is None:
        return {}
    view = getattr(scope, "view", None)
    if callable(view):
        return view()
    return dict(scope)


class _Evaluation:
    """Single tree walk; keeps the expression text for error messages."""

    def __init__(self, expression: str, scope: Mapping[str, Any], strict: bool):
        self.expression = expression
        self.scope = scope
        self.strict = strict

    def fail(self, message: str, position: Optional[int] = None) -> ExpressionError:
        return ExpressionError(message, self.expression, position)

    def visit(self, node: Node) -> Any:
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, Name):
            return self._lookup_name(node)
        if isinstance(node, Member):
            return self._member(self.visit(node.target), node.name, node.position)
        if isinstance(node, Index):
            return self._index(self.visit(node.target), self.visit(node.index), node.position)
        if isinstance(node, Unary):
            return self._unary(node)
        if isinstance(node, Binary):
            return self._binary(node)
        if isinstance(node, BoolOp):
            return self._bool_op(node)
        if isinstance(node, Compare):
            return self._compare(node)
        if isinstance(node, Conditional):
            branch = node.if_true if self.visit(node.test) else node.if_false
            return self.visit(branch)
        if isinstance(node, ListDisplay):
            return [self.visit(item) for item in node.items]
        if isinstance(node, MapDisplay):
            return {key: self.visit(value) for key, value in node.entries}
        raise self.fail(f"Unsupported expression node {type(node).__name__}")

    def _missing(self, message: str, position: Optional[int]) -> Any:
        if self.strict:
            raise self.fail(message, position)
        return None

    def _lookup_name(self, node: Name) -> Any:
        value = self.scope.get(node.name, _MISSING)
        if value is _MISSING:
            return self._missing(f"Undefined variable '{node.name}'", node.position)
        return value

    def _lookup_key(self, target: Mapping, key: Any, position: int) -> Any:
        try:
            if key in target:
                return target[key]
        except (TypeError, KeyError) as exc:
            raise self.fail(f"Invalid key {key!r}: {exc}", position) from None
        return self._missing(f"Missing key {key!r}", position)

    def _member(self, target: Any, name: Any, position: int) -> Any:
        if target is None:
            return self._missing(f"Cannot read '{name}' of null", position)
        if isinstance(target, Mapping):
            return self._lookup_key(target, name, position)
        if isinstance(name, str) and name.startswith("_"):
            raise self.fail(f"Access to private attribute '{name}' is not allowed", position)
        try:
            value = getattr(target, str(name), _MISSING)
        except Exception as exc:  # noqa: BLE001
            raise self.fail(f"Reading attribute '{name}' failed: {exc}", position) from exc
        if value is _MISSING:
            return self._missing(f"'{type(target).__name__}' has no attribute '{name}'", position)
        return value

    def _index(self, target: Any, index: Any, position: int) -> Any:
        if target is None:
            return self._missing(f"Cannot index null with {index!r}", position)
        if isinstance(target, Mapping):
            return self._lookup_key(target, index, position)
        if isinstance(target, Sequence):
            if isinstance(index, bool) or not isinstance(index, int):
                raise self.fail(f"Sequence index must be an integer, got {index!r}", position)
            try:
                return target[index]
            except IndexError:
                return self._missing(f"Index {index} out of range", position)
        if isinstance(index, str):
            return self._member(target, index, position)
        raise self.fail(f"'{type(target).__name__}' is not indexable", position)

    def _unary(self, node: Unary) -> Any:
        operand = self.visit(node.operand)
        if node.op == "not":
            return not operand
        if isinstance(operand, bool) or not isinstance(operand, (int, float)):
            raise self.fail(f"Unary '{node.op}' needs a number, got {operand!r}", node.position)
        return -operand if node.op == "-" else +operand

    def _binary(self, node: Binary) -> Any:
        left = self.visit(node.left)
        right = self.visit(node.right)
        if node.op == "+" and (isinstance(left, str) or isinstance(right, str)):
            # String concatenation stringifies the other side, PHP `.` style
            return _as_text(left) + _as_text(right)
        if node.op == "*":
            self._check_repeat(left, right, node.position)
        try:
            return _ARITHMETIC[node.op](left, right)
        except ZeroDivisionError:
            raise self.fail("Division by zero", node.position) from None
        except (ArithmeticError, TypeError, ValueError, LookupError) as exc:
            raise self.fail(f"Cannot apply '{node.op}': {exc}", node.position) from None

    def _check_repeat(self, left: Any, right: Any, position: int) -> None:
        for sequence, count in ((left, right), (right, left)):
            if isinstance(sequence, (str, list, tuple)) and isinstance(count, int) and not isinstance(count, bool):
                if count > 0 and len(sequence) * count > MAX_REPEAT_LENGTH:
                    raise self.fail(f"Repetition result exceeds {MAX_REPEAT_LENGTH} items", position)

    def _bool_op(self, node: BoolOp) -> Any:
        result: Any = None
        for operand in node.operands:
            result = self.visit(operand)
            if node.op == "and" and not result:
                return result
            if node.op == "or" and result:
                return result
        return result

    def _compare(self, node: Compare) -> bool:
        left = self.visit(node.first)
        for op, right_node, position in node.rest:
            right = self.visit(right_node)
            try:
                outcome = _COMPARATORS[op](left, right)
            except (TypeError, ValueError) as exc:
                raise self.fail(f"Cannot compare with '{op}': {exc}", position) from None
            if not outcome:
                return False
            left = right
        return True


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
