"""
Recursive descent parser for directive expressions.

Grammar:
    expression  := ternary
    ternary     := or ( '?' expression ':' expression )?
    or          := and ( ('or' | '||') and )*
    and         := not ( ('and' | '&&') not )*
    not         := ('not' | '!') not | comparison
    comparison  := additive ( compop additive )*
    additive    := term ( ('+' | '-') term )*
    term        := unary ( ('*' | '/' | '%') unary )*
    unary       := ('-' | '+') unary | postfix
    postfix     := primary ( '.' member | '->' member | '[' expression ']' )*
    primary     := NUMBER | STRING | literal | NAME | '$' NAME
                 | '(' expression ')' | list | map

There are no calls and no assignments, so a parsed expression can only read
from the scope it is evaluated against.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Tuple

from templating.exceptions import ExpressionError

from .lexer import Token, TokenType, tokenize


#######################################################################
## AST Nodes
#######################################################################

class Node:
    """Base class for expression nodes."""
    __slots__ = ()


@dataclass(frozen=True)
class Literal(Node):
    value: Any


@dataclass(frozen=True)
class Name(Node):
    name: str
    position: int


@dataclass(frozen=True)
class Member(Node):
    target: Node
    name: Any
    position: int


@dataclass(frozen=True)
class Index(Node):
    target: Node
    index: Node
    position: int


@dataclass(frozen=True)
class Unary(Node):
    op: str
    operand: Node
    position: int


@dataclass(frozen=True)
class Binary(Node):
    op: str
    left: Node
    right: Node
    position: int


@dataclass(frozen=True)
class BoolOp(Node):
    op: str
    operands: Tuple[Node, ...]


@dataclass(frozen=True)
class Compare(Node):
    first: Node
    rest: Tuple[Tuple[str, Node, int], ...]


@dataclass(frozen=True)
class Conditional(Node):
    test: Node
    if_true: Node
    if_false: Node


@dataclass(frozen=True)
class ListDisplay(Node):
    items: Tuple[Node, ...]


@dataclass(frozen=True)
class MapDisplay(Node):
    entries: Tuple[Tuple[Any, Node], ...]


#######################################################################
## Parser
#######################################################################

# PHP spellings map onto a single comparison
_COMPARISON_ALIASES = {"===": "==", "!==": "!="}
_COMPARISON_OPS = ("==", "!=", "===", "!==", "<", "<=", ">", ">=")


class ExpressionParser:
    """Parses one expression string into an AST."""

    def __init__(self, expression: str):
        self.expression = expression
        self.tokens: List[Token] = tokenize(expression)
        self.pos = 0

    def parse(self) -> Node:
        if self._peek().type is TokenType.END:
            raise ExpressionError("Empty expression", self.expression, 0)
        node = self._parse_expression()
        token = self._peek()
        if token.type is not TokenType.END:
            raise ExpressionError(f"Unexpected token {token.value!r}", self.expression, token.position)
        return node

    # Token helpers

    def _peek(self, offset: int = 0) -> Token:
        index = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[index]

    def _advance(self) -> Token:
        token = self.tokens[self.pos]
        if token.type is not TokenType.END:
            self.pos += 1
        return token

    def _expect_op(self, symbol: str) -> Token:
        token = self._peek()
        if not token.is_op(symbol):
            found = "end of expression" if token.type is TokenType.END else repr(token.value)
            raise ExpressionError(f"Expected '{symbol}' but found {found}", self.expression, token.position)
        return self._advance()

    # Grammar rules

    def _parse_expression(self) -> Node:
        return self._parse_ternary()

    def _parse_ternary(self) -> Node:
        test = self._parse_or()
        if self._peek().is_op("?"):
            self._advance()
            if_true = self._parse_expression()
            self._expect_op(":")
            if_false = self._parse_expression()
            return Conditional(test, if_true, if_false)
        return test

    def _parse_or(self) -> Node:
        operands = [self._parse_and()]
        while self._peek().is_keyword("or") or self._peek().is_op("||"):
            self._advance()
            operands.append(self._parse_and())
        if len(operands) == 1:
            return operands[0]
        return BoolOp("or", tuple(operands))

    def _parse_and(self) -> Node:
        operands = [self._parse_not()]
        while self._peek().is_keyword("and") or self._peek().is_op("&&"):
            self._advance()
            operands.append(self._parse_not())
        if len(operands) == 1:
            return operands[0]
        return BoolOp("and", tuple(operands))

    def _parse_not(self) -> Node:
        token = self._peek()
        if token.is_keyword("not") or token.is_op("!"):
            self._advance()
            return Unary("not", self._parse_not(), token.position)
        return self._parse_comparison()

    def _parse_comparison(self) -> Node:
        first = self._parse_additive()
        rest: List[Tuple[str, Node, int]] = []
        while True:
            token = self._peek()
            if token.is_op(*_COMPARISON_OPS):
                self._advance()
                op = _COMPARISON_ALIASES.get(token.value, token.value)
            elif token.is_keyword("in"):
                self._advance()
                op = "in"
            elif token.is_keyword("not") and self._peek(1).is_keyword("in"):
                self._advance()
                self._advance()
                op = "not in"
            else:
                break
            rest.append((op, self._parse_additive(), token.position))
        if not rest:
            return first
        return Compare(first, tuple(rest))

    def _parse_additive(self) -> Node:
        node = self._parse_term()
        while self._peek().is_op("+", "-"):
            token = self._advance()
            node = Binary(token.value, node, self._parse_term(), token.position)
        return node

    def _parse_term(self) -> Node:
        node = self._parse_unary()
        while self._peek().is_op("*", "/", "%"):
            token = self._advance()
            node = Binary(token.value, node, self._parse_unary(), token.position)
        return node

    def _parse_unary(self) -> Node:
        token = self._peek()
        if token.is_op("-", "+"):
            self._advance()
            return Unary(token.value, self._parse_unary(), token.position)
        return self._parse_postfix()

    def _parse_postfix(self) -> Node:
        node = self._parse_primary()
        while True:
            token = self._peek()
            if token.is_op(".", "->"):
                self._advance()
                member = self._advance()
                if member.type in (TokenType.NAME, TokenType.KEYWORD):
                    node = Member(node, member.value, member.position)
                elif member.type is TokenType.NUMBER and isinstance(member.value, int):
                    node = Index(node, Literal(member.value), member.position)
                else:
                    raise ExpressionError("Expected member name", self.expression, member.position)
            elif token.is_op("["):
                self._advance()
                index = self._parse_expression()
                self._expect_op("]")
                node = Index(node, index, token.position)
            else:
                return node

    def _parse_primary(self) -> Node:
        token = self._advance()

        if token.type in (TokenType.NUMBER, TokenType.STRING):
            return Literal(token.value)

        if token.type is TokenType.KEYWORD:
            if token.value == "true":
                return Literal(True)
            if token.value == "false":
                return Literal(False)
            if token.value in ("null", "none"):
                return Literal(None)
            raise ExpressionError(f"Unexpected keyword '{token.value}'", self.expression, token.position)

        if token.type is TokenType.NAME:
            if self._peek().is_op("("):
                raise ExpressionError(
                    f"Function calls are not allowed ('{token.value}(...)')",
                    self.expression,
                    token.position,
                )
            return Name(token.value, token.position)

        if token.is_op("$"):
            name = self._advance()
            if name.type is not TokenType.NAME:
                raise ExpressionError("Expected variable name after '$'", self.expression, name.position)
            return Name(name.value, token.position)

        if token.is_op("("):
            node = self._parse_expression()
            self._expect_op(")")
            return node

        if token.is_op("["):
            return ListDisplay(tuple(self._parse_items("]")))

        if token.is_op("{"):
            return self._parse_map()

        if token.type is TokenType.END:
            raise ExpressionError("Unexpected end of expression", self.expression, token.position)
        raise ExpressionError(f"Unexpected token {token.value!r}", self.expression, token.position)

    def _parse_items(self, closing: str) -> List[Node]:
        items: List[Node] = []
        while not self._peek().is_op(closing):
            items.append(self._parse_expression())
            if not self._peek().is_op(","):
                break
            self._advance()
        self._expect_op(closing)
        return items

    def _parse_map(self) -> Node:
        entries: List[Tuple[Any, Node]] = []
        while not self._peek().is_op("}"):
            key_token = self._advance()
            if key_token.type not in (TokenType.NAME, TokenType.STRING, TokenType.NUMBER, TokenType.KEYWORD):
                raise ExpressionError("Expected map key", self.expression, key_token.position)
            self._expect_op(":")
            entries.append((key_token.value, self._parse_expression()))
            if not self._peek().is_op(","):
                break
            self._advance()
        self._expect_op("}")
        return MapDisplay(tuple(entries))


def parse_expression(expression: str) -> Node:
    """Parse an expression string into an AST.

    Raises:
        ExpressionError: If the expression is malformed
    """
    return ExpressionParser(expression).parse()
