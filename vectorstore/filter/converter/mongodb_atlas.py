#!/usr/bin/env python3
"""
MongoDB Atlas backend.
Converts Expression trees to the metadata filter of an Atlas
$vectorSearch aggregation stage.
"""

import json
from typing import Any, Dict, List, Optional

from .base import AbstractFilterExpressionConverter
from ..expression import Expression, ExpressionType, Group, Key


class MongoDBAtlasFilterExpressionConverter(AbstractFilterExpressionConverter):
    """
    Converts Expression trees to MongoDB Atlas filter documents.

    AND(EQ(a, 1), NE(b, "x")) ->
        {"$and":[{"metadata.a":{"$eq":1}},{"metadata.b":{"$ne":"x"}}]}
    """

    BACKEND_NAME = "MongoDB Atlas"

    MATCH_ALL = "{}"

    # $vectorSearch filters have no top-level $not
    OPERATORS = {
        ExpressionType.AND: "$and",
        ExpressionType.OR: "$or",
        ExpressionType.EQ: "$eq",
        ExpressionType.NE: "$ne",
        ExpressionType.LT: "$lt",
        ExpressionType.LTE: "$lte",
        ExpressionType.GT: "$gt",
        ExpressionType.GTE: "$gte",
        ExpressionType.IN: "$in",
        ExpressionType.NIN: "$nin",
    }

    def do_expression(self, expression: Expression, context: List[str]) -> None:
        if expression.type in (ExpressionType.AND, ExpressionType.OR):
            self._do_compound_expression(expression, context)
        else:
            self._do_single_expression(expression, context)

    def _do_compound_expression(self, expression: Expression, context: List[str]) -> None:
        context.append("{")
        context.append(json.dumps(self.operation_symbol(expression)))
        context.append(":[")
        self.convert_operand(expression.left, context)
        context.append(",")
        self.convert_operand(expression.right, context)
        context.append("]}")

    def _do_single_expression(self, expression: Expression, context: List[str]) -> None:
        context.append("{")
        self.convert_operand(expression.left, context)
        context.append(":{")
        context.append(json.dumps(self.operation_symbol(expression)))
        context.append(":")
        self.convert_operand(expression.right, context)
        context.append("}}")

    def do_key(self, key: Key, context: List[str]) -> None:
        context.append(json.dumps(self.namespaced_key(key), ensure_ascii=False))

    def do_group(self, group: Group, context: List[str]) -> None:
        # Document nesting already carries precedence
        self.convert_operand(group.content, context)

    def to_vector_search_filter(self, expression: Optional[Expression]) -> Dict[str, Any]:
        """Filter document ready for the `filter` field of a $vectorSearch stage."""
        return json.loads(self.convert_expression(expression))
