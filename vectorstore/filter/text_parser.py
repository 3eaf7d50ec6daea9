#!/usr/bin/env python3
"""
Parser for the portable text filter syntax.

Grammar (lowest precedence first):

    or_expr    := and_expr (('||' | OR) and_expr)*
    and_expr   := not_expr (('&&' | AND) not_expr)*
    not_expr   := ('!' | NOT) not_expr | atom
    atom       := '(' or_expr ')' | comparison
    comparison := key ('==' | '!=' | '<' | '<=' | '>' | '>=') literal
                | key (IN | NIN | NOT IN) '[' literal (',' literal)* ']'

Example:
    parser = FilterExpressionTextParser()
    expression = parser.parse("country == 'BG' && (year >= 2020 || genre in ['comedy'])")
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, List, Optional, Union

from .expression import Expression, ExpressionType, Group, Key, Value
from ..exceptions import InvalidFilterError, MalformedExpressionError


class _TokenType(Enum):
    IDENT = auto()
    STRING = auto()
    NUMBER = auto()
    COMPARATOR = auto()
    AND = auto()
    OR = auto()
    NOT = auto()
    IN = auto()
    NIN = auto()
    TRUE = auto()
    FALSE = auto()
    NULL = auto()
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    COMMA = auto()
    EOF = auto()


@dataclass
class _Token:
    type: _TokenType
    value: Any
    raw: str
    pos: int


_KEYWORDS = {
    "AND": _TokenType.AND,
    "OR": _TokenType.OR,
    "NOT": _TokenType.NOT,
    "IN": _TokenType.IN,
    "NIN": _TokenType.NIN,
    "TRUE": _TokenType.TRUE,
    "FALSE": _TokenType.FALSE,
    "NULL": _TokenType.NULL,
}

_COMPARATORS = {
    "==": ExpressionType.EQ,
    "!=": ExpressionType.NE,
    "<": ExpressionType.LT,
    "<=": ExpressionType.LTE,
    ">": ExpressionType.GT,
    ">=": ExpressionType.GTE,
}

_PUNCTUATION = {
    "(": _TokenType.LPAREN,
    ")": _TokenType.RPAREN,
    "[": _TokenType.LBRACKET,
    "]": _TokenType.RBRACKET,
    ",": _TokenType.COMMA,
}

_NUMBER_RE = re.compile(r"-?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_.]*")
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", "'": "'", '"': '"'}


class _Tokenizer:
    """Splits filter text into tokens."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.length = len(text)

    def tokenize(self) -> List[_Token]:
        tokens = []
        while True:
            self._skip_whitespace()
            if self.pos >= self.length:
                tokens.append(_Token(_TokenType.EOF, None, "", self.pos))
                return tokens
            tokens.append(self._next_token())

    def _skip_whitespace(self) -> None:
        while self.pos < self.length and self.text[self.pos].isspace():
            self.pos += 1

    def _next_token(self) -> _Token:
        start = self.pos
        ch = self.text[start]
        two = self.text[start:start + 2]

        if two == "&&":
            self.pos += 2
            return _Token(_TokenType.AND, two, two, start)
        if two == "||":
            self.pos += 2
            return _Token(_TokenType.OR, two, two, start)
        if two in _COMPARATORS:
            self.pos += 2
            return _Token(_TokenType.COMPARATOR, _COMPARATORS[two], two, start)
        if ch == "!":
            self.pos += 1
            return _Token(_TokenType.NOT, ch, ch, start)
        if ch in _COMPARATORS:
            self.pos += 1
            return _Token(_TokenType.COMPARATOR, _COMPARATORS[ch], ch, start)
        if ch == "=":
            raise InvalidFilterError(
                f"Unexpected '=' at position {start}. Hint: use '==' for equality"
            )
        if ch in _PUNCTUATION:
            self.pos += 1
            return _Token(_PUNCTUATION[ch], ch, ch, start)
        if ch in ("'", '"'):
            return self._read_quoted_string()

        match = _NUMBER_RE.match(self.text, start)
        if match:
            raw = match.group()
            self.pos = match.end()
            is_float = any(c in raw for c in ".eE")
            return _Token(_TokenType.NUMBER, float(raw) if is_float else int(raw), raw, start)

        match = _IDENT_RE.match(self.text, start)
        if match:
            raw = match.group()
            self.pos = match.end()
            token_type = _KEYWORDS.get(raw.upper(), _TokenType.IDENT)
            return _Token(token_type, raw, raw, start)

        raise InvalidFilterError(f"Unexpected character '{ch}' at position {start}")

    def _read_quoted_string(self) -> _Token:
        start = self.pos
        quote = self.text[start]
        self.pos += 1
        chars = []

        while self.pos < self.length:
            ch = self.text[self.pos]
            if ch == "\\" and self.pos + 1 < self.length:
                escaped = self.text[self.pos + 1]
                chars.append(_ESCAPES.get(escaped, escaped))
                self.pos += 2
            elif ch == quote:
                self.pos += 1
                raw = self.text[start:self.pos]
                return _Token(_TokenType.STRING, "".join(chars), raw, start)
            else:
                chars.append(ch)
                self.pos += 1

        raise InvalidFilterError(f"Unterminated string starting at position {start}")


class _Parser:
    """Recursive descent parser over the token stream."""

    def __init__(self, tokens: List[_Token]):
        self.tokens = tokens
        self.pos = 0

    def _current(self) -> _Token:
        return self.tokens[self.pos]

    def _advance(self) -> _Token:
        token = self.tokens[self.pos]
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return token

    def _expect(self, token_type: _TokenType, context: str) -> _Token:
        token = self._current()
        if token.type != token_type:
            raise InvalidFilterError(
                f"Expected {context} at position {token.pos}, got '{token.raw or 'end of input'}'"
            )
        return self._advance()

    def parse(self) -> Union[Expression, Group]:
        expr = self._parse_or_expr()
        token = self._current()
        if token.type != _TokenType.EOF:
            raise InvalidFilterError(f"Unexpected token '{token.raw}' at position {token.pos}")
        return expr

    def _parse_or_expr(self) -> Union[Expression, Group]:
        left = self._parse_and_expr()
        while self._current().type == _TokenType.OR:
            self._advance()
            right = self._parse_and_expr()
            left = Expression(ExpressionType.OR, left, right)
        return left

    def _parse_and_expr(self) -> Union[Expression, Group]:
        left = self._parse_not_expr()
        while self._current().type == _TokenType.AND:
            self._advance()
            right = self._parse_not_expr()
            left = Expression(ExpressionType.AND, left, right)
        return left

    def _parse_not_expr(self) -> Union[Expression, Group]:
        if self._current().type == _TokenType.NOT:
            self._advance()
            return Expression(ExpressionType.NOT, self._parse_not_expr())
        return self._parse_atom()

    def _parse_atom(self) -> Union[Expression, Group]:
        token = self._current()

        if token.type == _TokenType.LPAREN:
            self._advance()
            inner = self._parse_or_expr()
            closing = self._current()
            if closing.type != _TokenType.RPAREN:
                raise InvalidFilterError(
                    f"Unbalanced parentheses: expected ')' at position {closing.pos}"
                )
            self._advance()
            if isinstance(inner, Group):
                return inner
            return Group(inner)

        if token.type in (_TokenType.IDENT, _TokenType.STRING):
            return self._parse_comparison()

        if token.type == _TokenType.EOF:
            raise InvalidFilterError("Unexpected end of filter expression")
        raise InvalidFilterError(f"Expected field name at position {token.pos}, got '{token.raw}'")

    def _parse_comparison(self) -> Expression:
        key = Key(self._advance().raw)
        token = self._current()

        if token.type == _TokenType.COMPARATOR:
            self._advance()
            return Expression(token.value, key, Value(self._parse_literal()))

        if token.type == _TokenType.IN:
            self._advance()
            return Expression(ExpressionType.IN, key, Value(self._parse_list()))

        if token.type == _TokenType.NIN:
            self._advance()
            return Expression(ExpressionType.NIN, key, Value(self._parse_list()))

        if token.type == _TokenType.NOT:
            self._advance()
            self._expect(_TokenType.IN, "IN after NOT")
            return Expression(ExpressionType.NIN, key, Value(self._parse_list()))

        raise InvalidFilterError(
            f"Expected operator after '{key.key}' at position {token.pos}, "
            f"got '{token.raw or 'end of input'}'"
        )

    def _parse_list(self) -> List[Any]:
        self._expect(_TokenType.LBRACKET, "'['")
        items = []
        if self._current().type != _TokenType.RBRACKET:
            items.append(self._parse_literal())
            while self._current().type == _TokenType.COMMA:
                self._advance()
                items.append(self._parse_literal())
        self._expect(_TokenType.RBRACKET, "']'")
        return items

    def _parse_literal(self) -> Any:
        token = self._current()
        if token.type in (_TokenType.STRING, _TokenType.NUMBER):
            self._advance()
            return token.value
        if token.type == _TokenType.TRUE:
            self._advance()
            return True
        if token.type == _TokenType.FALSE:
            self._advance()
            return False
        if token.type == _TokenType.NULL:
            self._advance()
            return None
        raise InvalidFilterError(
            f"Expected a literal at position {token.pos}, got '{token.raw or 'end of input'}'"
        )


class FilterExpressionTextParser:
    """
    Parses text filters like "country == 'BG' && year >= 2020" into Expression trees.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def parse(self, text: Optional[str]) -> Optional[Expression]:
        """
        Parse a text filter.

        Args:
            text: Filter text; empty or None means no filter

        Returns:
            Expression tree, or None when there is nothing to filter on

        Raises:
            InvalidFilterError: If the text is not a valid filter
        """
        if text is None or not text.strip():
            return None

        try:
            result = _Parser(_Tokenizer(text).tokenize()).parse()
        except MalformedExpressionError as e:
            raise InvalidFilterError(str(e)) from e

        # A fully parenthesised filter needs no outer group
        if isinstance(result, Group):
            result = result.content

        self.logger.debug(f"Parsed filter {text!r} -> {result!r}")
        return result
