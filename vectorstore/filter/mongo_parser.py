#!/usr/bin/env python3
"""
MongoDB-style filter parser.
Turns filter dictionaries into the backend-agnostic Expression tree so the
same query can be sent to any converter.
"""

import logging
from typing import Any, Dict, List, Optional

from .expression import Expression, ExpressionType, Key, Value
from .validator import FilterValidator
from ..exceptions import InvalidFilterError, MalformedExpressionError


# Field-level operators
FIELD_OPERATORS = {
    "$eq": ExpressionType.EQ,
    "$ne": ExpressionType.NE,
    "$gt": ExpressionType.GT,
    "$gte": ExpressionType.GTE,
    "$lt": ExpressionType.LT,
    "$lte": ExpressionType.LTE,
    "$in": ExpressionType.IN,
    "$nin": ExpressionType.NIN,
}

LOGICAL_OPERATORS = {"$and", "$or", "$not", "$nor"}


class MongoFilterParser:
    """
    Parses MongoDB-style filter dictionaries into Expression trees.

    Conditions listed side by side are AND-ed, folding left:
        {"a": 1, "b": {"$gt": 2}} -> AND(EQ(a, 1), GT(b, 2))
    """

    def __init__(self, max_depth: int = 10, validator: Optional[FilterValidator] = None):
        """
        Initialize the parser.

        Args:
            max_depth: Maximum nesting depth to prevent DoS attacks
            validator: Optional validator run on the raw dict before parsing
        """
        self.max_depth = max_depth
        self.validator = validator
        self.logger = logging.getLogger(__name__)
        self._depth = 0

    def parse(self, filters: Optional[Dict[str, Any]]) -> Optional[Expression]:
        """
        Parse MongoDB-style filters into an expression tree.

        Args:
            filters: MongoDB-style filter dictionary

        Returns:
            Expression tree, or None for an empty filter (matches everything)

        Raises:
            InvalidFilterError: If the filter is invalid or too deeply nested
        """
        if not filters:
            return None

        if not isinstance(filters, dict):
            raise InvalidFilterError(f"Expected dict, got {type(filters).__name__}")

        if self.validator:
            filters = self.validator.validate(filters)

        self._depth = 0
        try:
            expression = self._parse_dict(filters)
        except MalformedExpressionError as e:
            raise InvalidFilterError(str(e)) from e

        self.logger.debug(f"Parsed filter {filters} -> {expression!r}")
        return expression

    def _parse_dict(self, filters: Dict[str, Any]) -> Expression:
        """Parse a dictionary of filters."""
        self._depth += 1
        if self._depth > self.max_depth:
            raise InvalidFilterError(f"Filter nesting exceeds maximum depth of {self.max_depth}")

        try:
            if not filters:
                raise InvalidFilterError("Nested filter must not be empty")

            conditions = []
            for key, value in filters.items():
                if key.startswith("$"):
                    if key not in LOGICAL_OPERATORS:
                        if key in FIELD_OPERATORS:
                            raise InvalidFilterError(f"Operator {key} requires a field")
                        raise InvalidFilterError(f"Unknown operator: {key}")
                    conditions.append(self._parse_logical(key, value))
                else:
                    conditions.extend(self._parse_field(key, value))

            return self._fold(ExpressionType.AND, conditions)
        finally:
            self._depth -= 1

    def _parse_logical(self, operator: str, value: Any) -> Expression:
        """Parse logical operators ($and, $or, $nor, $not)."""
        if operator == "$not":
            if not isinstance(value, dict):
                raise InvalidFilterError(f"{operator} requires a dictionary")
            return Expression(ExpressionType.NOT, self._parse_dict(value))

        if not isinstance(value, list) or not value:
            raise InvalidFilterError(f"{operator} requires a non-empty list")

        conditions = []
        for item in value:
            if not isinstance(item, dict):
                raise InvalidFilterError(f"{operator} items must be dictionaries")
            conditions.append(self._parse_dict(item))

        if operator == "$and":
            return self._fold(ExpressionType.AND, conditions)
        if operator == "$or":
            return self._fold(ExpressionType.OR, conditions)
        # $nor: none of the branches may match
        return Expression(ExpressionType.NOT, self._fold(ExpressionType.OR, conditions))

    def _parse_field(self, field: str, value: Any) -> List[Expression]:
        """Parse field-level conditions."""
        if isinstance(value, dict) and any(k.startswith("$") for k in value):
            conditions = []
            for op_str, op_value in value.items():
                op = FIELD_OPERATORS.get(op_str)
                if op is None:
                    raise InvalidFilterError(f"Unknown operator: {op_str}")
                if op in (ExpressionType.IN, ExpressionType.NIN) and not isinstance(op_value, list):
                    raise InvalidFilterError(f"{op_str} requires a list")
                conditions.append(Expression(op, Key(field), Value(op_value)))
            return conditions

        # Direct equality
        return [Expression(ExpressionType.EQ, Key(field), Value(value))]

    @staticmethod
    def _fold(operator: ExpressionType, conditions: List[Expression]) -> Expression:
        result = conditions[0]
        for condition in conditions[1:]:
            result = Expression(operator, result, condition)
        return result
