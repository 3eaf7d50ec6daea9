#!/usr/bin/env python3
"""
Portable filter expression model.

A filter is a small tree of immutable nodes:

    Expression(AND,
        Expression(EQ, Key("country"), Value("BG")),
        Group(Expression(OR,
            Expression(GTE, Key("year"), Value(2020)),
            Expression(IN, Key("genre"), Value(["comedy", "drama"])))))

Trees are built by FilterExpressionBuilder, FilterExpressionTextParser or
MongoFilterParser and consumed read-only by the backend converters.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Optional, Union

from ..exceptions import MalformedExpressionError


class ExpressionType(Enum):
    """Filter expression operators."""
    # Logical
    AND = "AND"
    OR = "OR"
    NOT = "NOT"

    # Comparison
    EQ = "EQ"
    NE = "NE"
    GT = "GT"
    GTE = "GTE"
    LT = "LT"
    LTE = "LTE"

    # Membership
    IN = "IN"
    NIN = "NIN"

    @property
    def is_logical(self) -> bool:
        return self in LOGICAL_TYPES

    @property
    def is_comparison(self) -> bool:
        return self in COMPARISON_TYPES


LOGICAL_TYPES = frozenset({ExpressionType.AND, ExpressionType.OR, ExpressionType.NOT})

COMPARISON_TYPES = frozenset({
    ExpressionType.EQ, ExpressionType.NE,
    ExpressionType.GT, ExpressionType.GTE,
    ExpressionType.LT, ExpressionType.LTE,
    ExpressionType.IN, ExpressionType.NIN,
})

LIST_TYPES = frozenset({ExpressionType.IN, ExpressionType.NIN})

_SCALAR_TYPES = (str, int, float, bool, date, type(None))


@dataclass(frozen=True)
class Key:
    """
    Metadata field identifier.

    The raw text may carry outer quotes (e.g. '"country 2"'); converters
    strip them before applying their namespacing rule.
    """
    key: str

    def __post_init__(self):
        if not isinstance(self.key, str) or not self.key:
            raise MalformedExpressionError(f"Key must be a non-empty string, got {self.key!r}")


@dataclass(frozen=True)
class Value:
    """Literal operand: a scalar or an ordered list of scalars."""
    value: Any

    def __post_init__(self):
        value = self.value
        if isinstance(value, (list, tuple)):
            for item in value:
                if not isinstance(item, _SCALAR_TYPES):
                    raise MalformedExpressionError(
                        f"List values must hold scalars, got {type(item).__name__}"
                    )
            # lists are frozen so the node stays immutable
            object.__setattr__(self, "value", tuple(value))
        elif not isinstance(value, _SCALAR_TYPES):
            raise MalformedExpressionError(
                f"Unsupported literal type: {type(value).__name__}"
            )

    @property
    def is_list(self) -> bool:
        return isinstance(self.value, tuple)


@dataclass(frozen=True)
class Expression:
    """
    A filter node.

    Comparisons hold a Key on the left and a Value on the right. AND/OR
    hold two sub-expressions; NOT holds one sub-expression in `left`.
    """
    type: ExpressionType
    left: "Operand"
    right: Optional["Operand"] = None

    def __post_init__(self):
        if not isinstance(self.type, ExpressionType):
            raise MalformedExpressionError(f"Unknown expression type: {self.type!r}")

        if self.type in (ExpressionType.AND, ExpressionType.OR):
            if not _is_boolean(self.left) or not _is_boolean(self.right):
                raise MalformedExpressionError(
                    f"{self.type.value} requires two sub-expressions, got "
                    f"{type(self.left).__name__} and {type(self.right).__name__}"
                )

        elif self.type == ExpressionType.NOT:
            if not _is_boolean(self.left) or self.right is not None:
                raise MalformedExpressionError("NOT requires exactly one sub-expression")

        else:
            if not isinstance(self.left, Key):
                raise MalformedExpressionError(
                    f"{self.type.value} requires a Key on the left, got {type(self.left).__name__}"
                )
            if not isinstance(self.right, Value):
                raise MalformedExpressionError(
                    f"{self.type.value} requires a Value on the right, got {type(self.right).__name__}"
                )
            if self.type in LIST_TYPES and not self.right.is_list:
                raise MalformedExpressionError(f"{self.type.value} requires a list value")
            if self.type not in LIST_TYPES and self.right.is_list:
                raise MalformedExpressionError(f"{self.type.value} requires a single value, got a list")

    def __repr__(self):
        if self.type == ExpressionType.NOT:
            return f"NOT({self.left!r})"
        return f"{self.type.value}({self.left!r}, {self.right!r})"


@dataclass(frozen=True)
class Group:
    """Parenthesised sub-expression, kept so precedence survives conversion."""
    content: Expression

    def __post_init__(self):
        if not isinstance(self.content, Expression):
            raise MalformedExpressionError(
                f"Group content must be an Expression, got {type(self.content).__name__}"
            )


Operand = Union[Key, Value, Expression, Group]


def _is_boolean(operand: Any) -> bool:
    return isinstance(operand, (Expression, Group))
