#!/usr/bin/env python3
"""
Weaviate backend.
Converts Expression trees to the `where` argument of a Weaviate GraphQL query.
"""

import json
from datetime import date, datetime, time
from typing import Any, List, Optional

from .base import AbstractFilterExpressionConverter
from ..expression import Expression, ExpressionType, Group, Key, Value
from ...exceptions import InvalidFilterError


class WeaviateFilterExpressionConverter(AbstractFilterExpressionConverter):
    """
    Converts Expression trees to Weaviate GraphQL where filters.

    Metadata lives in properties named `meta_<field>`. IN and NIN have no
    native operator and are expanded into Or/And over Equal/NotEqual.
    """

    BACKEND_NAME = "Weaviate"

    MATCH_ALL = ""

    OPERATORS = {
        ExpressionType.AND: "And",
        ExpressionType.OR: "Or",
        ExpressionType.EQ: "Equal",
        ExpressionType.NE: "NotEqual",
        ExpressionType.LT: "LessThan",
        ExpressionType.LTE: "LessThanEqual",
        ExpressionType.GT: "GreaterThan",
        ExpressionType.GTE: "GreaterThanEqual",
        ExpressionType.IN: "Or",
        ExpressionType.NIN: "And",
    }

    def __init__(self, metadata_prefix: Optional[str] = "meta"):
        super().__init__(metadata_prefix=metadata_prefix)

    def do_expression(self, expression: Expression, context: List[str]) -> None:
        op = expression.type

        if op in (ExpressionType.AND, ExpressionType.OR):
            self._do_operands(self.operation_symbol(expression),
                              [expression.left, expression.right], context)

        elif op in (ExpressionType.IN, ExpressionType.NIN):
            values = expression.right.value
            if not values:
                raise InvalidFilterError(f"{op.value} requires at least one value")
            item_type = ExpressionType.EQ if op == ExpressionType.IN else ExpressionType.NE
            items = [Expression(item_type, expression.left, Value(v))
                     for v in values]
            if len(items) == 1:
                self.convert_operand(items[0], context)
            else:
                self._do_operands(self.operation_symbol(expression), items, context)

        else:
            self._do_comparison(expression, context)

    def _do_operands(self, operator: str, operands: List[Any], context: List[str]) -> None:
        context.append(f"{{operator:{operator} operands:[")
        for i, operand in enumerate(operands):
            if i > 0:
                context.append(",")
            self.convert_operand(operand, context)
        context.append("]}")

    def _do_comparison(self, expression: Expression, context: List[str]) -> None:
        value = expression.right.value
        context.append("{")
        self.convert_operand(expression.left, context)

        if value is None:
            if expression.type not in (ExpressionType.EQ, ExpressionType.NE):
                raise InvalidFilterError(f"{expression.type.value} cannot compare against null")
            is_null = expression.type == ExpressionType.EQ
            context.append(f" operator:IsNull valueBoolean:{'true' if is_null else 'false'}}}")
            return

        context.append(f" operator:{self.operation_symbol(expression)} ")
        context.append(f"{self.value_field(value)}:")
        self.convert_operand(expression.right, context)
        context.append("}")

    def do_single_value(self, value: Any, context: List[str]) -> None:
        # valueDate takes RFC 3339 timestamps only
        if isinstance(value, date) and not isinstance(value, datetime):
            value = datetime.combine(value, time())
        super().do_single_value(value, context)

    def do_group(self, group: Group, context: List[str]) -> None:
        # Operand nesting already carries precedence
        self.convert_operand(group.content, context)

    def do_key(self, key: Key, context: List[str]) -> None:
        context.append(f"path:[{json.dumps(self.namespaced_key(key, separator='_'), ensure_ascii=False)}]")

    @staticmethod
    def value_field(value: Any) -> str:
        """Name of the typed value field Weaviate expects for a literal."""
        if isinstance(value, bool):
            return "valueBoolean"
        if isinstance(value, int):
            return "valueInt"
        if isinstance(value, float):
            return "valueNumber"
        if isinstance(value, date):
            return "valueDate"
        return "valueText"
