"""
Tokenizer for directive expressions.

Turns a parameter string such as `$user.age >= 18 && !banned` into a flat
list of tokens for the recursive descent parser.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, List

from templating.exceptions import ExpressionError


class TokenType(Enum):
    NUMBER = "number"
    STRING = "string"
    NAME = "name"
    KEYWORD = "keyword"
    OPERATOR = "operator"
    END = "end"


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: Any
    position: int

    def is_op(self, *symbols: str) -> bool:
        return self.type is TokenType.OPERATOR and self.value in symbols

    def is_keyword(self, *words: str) -> bool:
        return self.type is TokenType.KEYWORD and self.value in words


# Longest operators first so `===` wins over `==`
OPERATORS = (
    "===", "!==",
    "==", "!=", "<=", ">=", "&&", "||", "->",
    "<", ">", "!", "+", "-", "*", "/", "%",
    "(", ")", "[", "]", "{", "}", ",", ".", ":", "?", "$",
)

KEYWORDS = {"and", "or", "not", "in", "true", "false", "null", "none"}

# Literal keywords are case-insensitive (PHP writes TRUE / NULL)
CASE_INSENSITIVE_KEYWORDS = {"true", "false", "null", "none"}

_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "\\": "\\",
    "'": "'",
    '"': '"',
    "0": "\0",
}


def _is_name_start(char: str) -> bool:
    return char == "_" or char.isalpha()


def _is_name_char(char: str) -> bool:
    return char == "_" or char.isalnum()


def tokenize(expression: str) -> List[Token]:
    """Split an expression into tokens.

    Args:
        expression: Raw expression text

    Returns:
        Token list terminated by an END token

    Raises:
        ExpressionError: On unterminated strings or unexpected characters
    """
    tokens: List[Token] = []
    length = len(expression)
    pos = 0

    while pos < length:
        char = expression[pos]

        if char.isspace():
            pos += 1
            continue

        if char.isdigit():
            start = pos
            seen_dot = False
            while pos < length and (expression[pos].isdigit() or (expression[pos] == "." and not seen_dot)):
                if expression[pos] == ".":
                    # `items.0` style access is not a float
                    if pos + 1 >= length or not expression[pos + 1].isdigit():
                        break
                    seen_dot = True
                pos += 1
            text = expression[start:pos]
            value = float(text) if seen_dot else int(text)
            tokens.append(Token(TokenType.NUMBER, value, start))
            continue

        if char in ("'", '"'):
            start = pos
            quote = char
            pos += 1
            chunks: List[str] = []
            while True:
                if pos >= length:
                    raise ExpressionError("Unterminated string", expression, start)
                current = expression[pos]
                if current == "\\" and pos + 1 < length:
                    escaped = expression[pos + 1]
                    chunks.append(_ESCAPES.get(escaped, "\\" + escaped))
                    pos += 2
                    continue
                if current == quote:
                    pos += 1
                    break
                chunks.append(current)
                pos += 1
            tokens.append(Token(TokenType.STRING, "".join(chunks), start))
            continue

        if _is_name_start(char):
            start = pos
            while pos < length and _is_name_char(expression[pos]):
                pos += 1
            word = expression[start:pos]
            lowered = word.lower()
            if lowered in CASE_INSENSITIVE_KEYWORDS:
                tokens.append(Token(TokenType.KEYWORD, lowered, start))
            elif word in KEYWORDS:
                tokens.append(Token(TokenType.KEYWORD, word, start))
            else:
                tokens.append(Token(TokenType.NAME, word, start))
            continue

        for symbol in OPERATORS:
            if expression.startswith(symbol, pos):
                tokens.append(Token(TokenType.OPERATOR, symbol, pos))
                pos += len(symbol)
                break
        else:
            raise ExpressionError(f"Unexpected character {char!r}", expression, pos)

    tokens.append(Token(TokenType.END, None, length))
    return tokens
