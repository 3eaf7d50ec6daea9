#!/usr/bin/env python3
"""
Elasticsearch backend.
Converts Expression trees to Lucene query_string syntax, as embedded in
the filter of a kNN search request.
"""

import re
from typing import Any, Dict, List, Optional

from .base import AbstractFilterExpressionConverter
from ..expression import Expression, ExpressionType, Group, Key, Value
from ...exceptions import InvalidFilterError

# query_string syntax characters; whitespace also ends a field name
_RESERVED_RE = re.compile(r'([+\-=&|><!(){}\[\]^"~*?:\\/\s])')


class ElasticsearchAiSearchFilterExpressionConverter(AbstractFilterExpressionConverter):
    """
    Converts Expression trees to Elasticsearch query strings.

    AND(EQ(country, "BG"), GTE(year, 2020)) ->
        metadata.country:"BG" AND metadata.year:>=2020
    """

    BACKEND_NAME = "Elasticsearch"

    MATCH_ALL = "*"

    OPERATORS = {
        ExpressionType.AND: " AND ",
        ExpressionType.OR: " OR ",
        ExpressionType.NOT: "NOT ",
        ExpressionType.EQ: "",
        ExpressionType.NE: "NOT ",
        ExpressionType.LT: "<",
        ExpressionType.LTE: "<=",
        ExpressionType.GT: ">",
        ExpressionType.GTE: ">=",
        ExpressionType.IN: "",
        ExpressionType.NIN: "NOT ",
    }

    # Prefix operators go before the key, range operators after it
    _PREFIX_TYPES = {ExpressionType.NE, ExpressionType.IN, ExpressionType.NIN}

    def do_expression(self, expression: Expression, context: List[str]) -> None:
        symbol = self.operation_symbol(expression)

        if expression.type in (ExpressionType.AND, ExpressionType.OR):
            self._convert_child(expression.left, context)
            context.append(symbol)
            self._convert_child(expression.right, context)

        elif expression.type == ExpressionType.NOT:
            context.append(symbol)
            if isinstance(expression.left, Group):
                self.convert_operand(expression.left, context)
            else:
                context.append("(")
                self.convert_operand(expression.left, context)
                context.append(")")

        elif expression.type in self._PREFIX_TYPES:
            if expression.right.is_list and not expression.right.value:
                raise InvalidFilterError(f"{expression.type.value} requires at least one value")
            context.append(symbol)
            self.convert_operand(expression.left, context)
            self.convert_operand(expression.right, context)

        else:
            self.convert_operand(expression.left, context)
            context.append(symbol)
            self.convert_operand(expression.right, context)

    def _convert_child(self, operand: Any, context: List[str]) -> None:
        # Lucene has no reliable AND/OR precedence: parenthesise nested compounds
        if isinstance(operand, Expression) and operand.type.is_logical:
            context.append("(")
            self.convert_operand(operand, context)
            context.append(")")
        else:
            self.convert_operand(operand, context)

    def do_key(self, key: Key, context: List[str]) -> None:
        context.append(self.escape(self.namespaced_key(key).strip()))
        context.append(":")

    @staticmethod
    def escape(field: str) -> str:
        """Backslash-escape query_string syntax in a field name."""
        return _RESERVED_RE.sub(r"\\\1", field)

    def do_start_value_range(self, value: Value, context: List[str]) -> None:
        context.append("(")

    def do_add_value_range_separator(self, value: Value, context: List[str]) -> None:
        context.append(" OR ")

    def do_end_value_range(self, value: Value, context: List[str]) -> None:
        context.append(")")

    def to_query_string_query(self, expression: Optional[Expression]) -> Dict[str, Any]:
        """query_string clause for the filter section of a search request."""
        return {"query_string": {"query": self.convert_expression(expression)}}
