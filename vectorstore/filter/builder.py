#!/usr/bin/env python3
"""
Fluent builder for filter expressions.

Example:
    b = FilterExpressionBuilder()
    expression = b.and_(
        b.eq("country", "BG"),
        b.group(b.or_(b.gte("year", 2020), b.in_("genre", ["comedy", "drama"]))),
    )
"""

from typing import Any, List, Union

from .expression import Expression, ExpressionType, Group, Key, Value
from ..exceptions import MalformedExpressionError

Operand = Union[Expression, Group]


class FilterExpressionBuilder:
    """Builds Expression trees without touching node constructors directly."""

    def eq(self, key: str, value: Any) -> Expression:
        return self._compare(ExpressionType.EQ, key, value)

    def ne(self, key: str, value: Any) -> Expression:
        return self._compare(ExpressionType.NE, key, value)

    def gt(self, key: str, value: Any) -> Expression:
        return self._compare(ExpressionType.GT, key, value)

    def gte(self, key: str, value: Any) -> Expression:
        return self._compare(ExpressionType.GTE, key, value)

    def lt(self, key: str, value: Any) -> Expression:
        return self._compare(ExpressionType.LT, key, value)

    def lte(self, key: str, value: Any) -> Expression:
        return self._compare(ExpressionType.LTE, key, value)

    def in_(self, key: str, values: List[Any]) -> Expression:
        return self._compare(ExpressionType.IN, key, list(values))

    def nin(self, key: str, values: List[Any]) -> Expression:
        return self._compare(ExpressionType.NIN, key, list(values))

    def and_(self, *operands: Operand) -> Expression:
        """AND two or more operands, folding left: and_(a, b, c) == AND(AND(a, b), c)."""
        return self._fold(ExpressionType.AND, operands)

    def or_(self, *operands: Operand) -> Expression:
        """OR two or more operands, folding left."""
        return self._fold(ExpressionType.OR, operands)

    def not_(self, operand: Operand) -> Expression:
        return Expression(ExpressionType.NOT, operand)

    def group(self, content: Expression) -> Group:
        return Group(content)

    def _compare(self, op: ExpressionType, key: str, value: Any) -> Expression:
        return Expression(op, Key(key), Value(value))

    def _fold(self, op: ExpressionType, operands) -> Expression:
        if len(operands) < 2:
            raise MalformedExpressionError(
                f"{op.value} requires at least two operands, got {len(operands)}"
            )
        result = Expression(op, operands[0], operands[1])
        for operand in operands[2:]:
            result = Expression(op, result, operand)
        return result
