#!/usr/bin/env python3
"""
SQLite backend.
Converts Expression trees to SQLite WHERE clauses over a JSON metadata column.
"""

import re
from datetime import date
from typing import Any, List, Optional, Set

from .base import AbstractFilterExpressionConverter, format_date
from ..expression import Expression, ExpressionType, Group, Key, Value

_SIMPLE_PATH_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")


class SQLiteFilterExpressionConverter(AbstractFilterExpressionConverter):
    """
    Converts Expression trees to SQLite WHERE clauses.
    Handles JSON metadata fields using SQLite's JSON functions.

    AND(EQ(type, "alert"), GTE(priority, 5)) ->
        (json_extract(m.metadata, '$.type') = 'alert' AND json_extract(m.metadata, '$.priority') >= 5)
    """

    BACKEND_NAME = "SQLite"

    MATCH_ALL = "1=1"

    OPERATORS = {
        ExpressionType.AND: "AND",
        ExpressionType.OR: "OR",
        ExpressionType.NOT: "NOT",
        ExpressionType.EQ: "=",
        ExpressionType.NE: "!=",
        ExpressionType.LT: "<",
        ExpressionType.LTE: "<=",
        ExpressionType.GT: ">",
        ExpressionType.GTE: ">=",
        ExpressionType.IN: "IN",
        ExpressionType.NIN: "NOT IN",
    }

    def __init__(self,
                 metadata_column: str = 'metadata',
                 table_alias: Optional[str] = None,
                 direct_fields: Optional[Set[str]] = None):
        """
        Initialize SQLite backend.

        Args:
            metadata_column: Name of the JSON metadata column
            table_alias: Table alias to use in generated SQL
            direct_fields: Fields stored as plain columns rather than in the JSON document
        """
        # Keys become JSON paths, not prefixed names
        super().__init__(metadata_prefix=None)
        self.metadata_column = metadata_column
        self.table_alias = table_alias
        self.direct_fields = set(direct_fields or ())

    def do_expression(self, expression: Expression, context: List[str]) -> None:
        op = expression.type
        symbol = self.operation_symbol(expression)

        if op in (ExpressionType.AND, ExpressionType.OR):
            context.append("(")
            self.convert_operand(expression.left, context)
            context.append(f" {symbol} ")
            self.convert_operand(expression.right, context)
            context.append(")")

        elif op == ExpressionType.NOT:
            context.append(f"{symbol} (")
            self.convert_operand(expression.left, context)
            context.append(")")

        elif op in (ExpressionType.IN, ExpressionType.NIN):
            if not expression.right.value:
                # Nothing is in an empty list
                context.append("0=1" if op == ExpressionType.IN else "1=1")
                return
            if None in expression.right.value:
                self._do_membership_with_null(expression, context)
                return
            self.convert_operand(expression.left, context)
            context.append(f" {symbol} ")
            self.convert_operand(expression.right, context)

        elif expression.right.value is None and op in (ExpressionType.EQ, ExpressionType.NE):
            self.convert_operand(expression.left, context)
            context.append(" IS NULL" if op == ExpressionType.EQ else " IS NOT NULL")

        else:
            self.convert_operand(expression.left, context)
            context.append(f" {symbol} ")
            self.convert_operand(expression.right, context)

    def _do_membership_with_null(self, expression: Expression, context: List[str]) -> None:
        """
        SQL IN never matches NULL, so a null member becomes IS [NOT] NULL:

            x IN ('a', NULL)      -> (x IS NULL OR x IN ('a'))
            x NOT IN ('a', NULL)  -> (x IS NOT NULL AND x NOT IN ('a'))
        """
        op = expression.type
        null_type = ExpressionType.EQ if op == ExpressionType.IN else ExpressionType.NE
        null_check = Expression(null_type, expression.left, Value(None))
        rest = [v for v in expression.right.value if v is not None]

        if not rest:
            self.do_expression(null_check, context)
            return

        context.append("(")
        self.do_expression(null_check, context)
        context.append(" OR " if op == ExpressionType.IN else " AND ")
        self.do_expression(Expression(op, expression.left, Value(rest)), context)
        context.append(")")

    def do_group(self, group: Group, context: List[str]) -> None:
        # Compound expressions are always parenthesised already
        content = group.content
        if content.type in (ExpressionType.AND, ExpressionType.OR):
            self.convert_operand(content, context)
        else:
            super().do_group(group, context)

    def do_key(self, key: Key, context: List[str]) -> None:
        context.append(self.field_reference(self.namespaced_key(key)))

    def field_reference(self, field: str) -> str:
        """
        Get SQL reference for a field.
        Returns either a direct column reference or JSON extract.
        """
        if field in self.direct_fields:
            return f"{self.table_alias}.{field}" if self.table_alias else field

        if _SIMPLE_PATH_RE.match(field):
            json_path = self.quote("$." + field)
        else:
            json_path = self.quote("$.\"" + field.replace('"', '\\"') + "\"")
        base = f"{self.table_alias}.{self.metadata_column}" if self.table_alias else self.metadata_column
        return f"json_extract({base}, {json_path})"

    def do_start_value_range(self, value: Value, context: List[str]) -> None:
        context.append("(")

    def do_add_value_range_separator(self, value: Value, context: List[str]) -> None:
        context.append(", ")

    def do_end_value_range(self, value: Value, context: List[str]) -> None:
        context.append(")")

    def do_single_value(self, value: Any, context: List[str]) -> None:
        if value is None:
            context.append("NULL")
        elif isinstance(value, bool):
            # json_extract returns JSON booleans as 1/0
            context.append("1" if value else "0")
        elif isinstance(value, (int, float)):
            context.append(repr(value))
        elif isinstance(value, date):
            context.append(self.quote(format_date(value)))
        else:
            context.append(self.quote(str(value)))

    @staticmethod
    def quote(text: str) -> str:
        """SQL string literal with embedded quotes doubled."""
        return "'" + text.replace("'", "''") + "'"
