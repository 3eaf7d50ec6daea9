#!/usr/bin/env python3
"""
Qdrant backend.
Converts Expression trees to Qdrant Filter objects and their JSON payload.
"""

from datetime import date, datetime, time, timezone
from typing import Any, List, Optional, Set, Union

from qdrant_client.models import FieldCondition, Filter, MatchAny, MatchValue, Range

from .base import FilterExpressionConverter
from ..expression import Expression, ExpressionType, Group, Key
from ...exceptions import InvalidFilterError

Condition = Union[FieldCondition, Filter]


class QdrantFilterExpressionConverter(FilterExpressionConverter):
    """
    Converts Expression trees to Qdrant Filter objects.

    AND maps to `must`, OR to `should`, NOT/NE/NIN to `must_not`.
    """

    BACKEND_NAME = "Qdrant"

    MATCH_ALL = "{}"

    OPERATORS = {
        ExpressionType.AND: "must",
        ExpressionType.OR: "should",
        ExpressionType.NOT: "must_not",
        ExpressionType.EQ: "match",
        ExpressionType.NE: "match",
        ExpressionType.LT: "lt",
        ExpressionType.LTE: "lte",
        ExpressionType.GT: "gt",
        ExpressionType.GTE: "gte",
        ExpressionType.IN: "any",
        ExpressionType.NIN: "any",
    }

    def __init__(self, metadata_prefix: Optional[str] = 'metadata',
                 root_fields: Optional[Set[str]] = None):
        """
        Initialize Qdrant backend.

        Args:
            metadata_prefix: Prefix for metadata fields
            root_fields: Payload fields stored at root level (not under metadata)
        """
        super().__init__(metadata_prefix=metadata_prefix)
        self.root_fields = set(root_fields or ())

    def convert_expression(self, expression: Optional[Expression]) -> str:
        """Convert to the JSON form of a Qdrant filter (REST payload)."""
        qdrant_filter = self.to_filter(expression)
        if qdrant_filter is None:
            return self.MATCH_ALL
        result = qdrant_filter.model_dump_json(exclude_none=True)
        self.logger.debug(f"{self.BACKEND_NAME} filter: {expression!r} -> {result}")
        return result

    def to_filter(self, expression: Optional[Expression]) -> Optional[Filter]:
        """
        Convert Expression to Qdrant Filter.

        Args:
            expression: The filter expression tree

        Returns:
            Qdrant Filter object or None for no filter
        """
        if expression is None:
            return None

        self.validate_expression(expression)

        condition = self._convert(expression)
        if isinstance(condition, Filter):
            return condition
        return Filter(must=[condition])

    def _convert(self, operand: Union[Expression, Group]) -> Condition:
        if isinstance(operand, Group):
            return self._convert(operand.content)

        op = operand.type
        if op == ExpressionType.AND:
            return Filter(must=[self._convert(operand.left), self._convert(operand.right)])
        if op == ExpressionType.OR:
            return Filter(should=[self._convert(operand.left), self._convert(operand.right)])
        if op == ExpressionType.NOT:
            return Filter(must_not=[self._convert(operand.left)])
        return self._convert_condition(operand)

    def _convert_condition(self, expression: Expression) -> Condition:
        """Convert a single comparison to Qdrant format."""
        field_key = self._get_field_key(expression.left)
        op = expression.type
        value = self._normalize(expression.right.value)

        if op in (ExpressionType.EQ, ExpressionType.NE):
            base = self._match(field_key, value)
            return Filter(must_not=[base]) if op == ExpressionType.NE else base

        if op in (ExpressionType.IN, ExpressionType.NIN):
            values = [self._normalize(v) for v in value]
            if not values:
                raise InvalidFilterError(f"{op.value} requires at least one value")
            base = self._match_any(field_key, values)
            return Filter(must_not=[base]) if op == ExpressionType.NIN else base

        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidFilterError(
                f"Qdrant range filter on '{field_key}' requires a number or date, got {value!r}"
            )
        return FieldCondition(key=field_key, range=Range(**{self.OPERATORS[op]: value}))

    @staticmethod
    def _match(field_key: str, value: Any) -> FieldCondition:
        if value is None:
            raise InvalidFilterError(f"Qdrant cannot match '{field_key}' against null")
        if isinstance(value, float):
            # MatchValue holds keywords, integers and booleans only
            return FieldCondition(key=field_key, range=Range(gte=value, lte=value))
        return FieldCondition(key=field_key, match=MatchValue(value=value))

    @classmethod
    def _match_any(cls, field_key: str, values: List[Any]) -> Condition:
        """
        MatchAny holds only all-keyword or all-integer lists; anything else
        becomes a `should` over single matches.
        """
        if all(isinstance(v, str) for v in values):
            return FieldCondition(key=field_key, match=MatchAny(any=values))
        if all(isinstance(v, int) and not isinstance(v, bool) for v in values):
            return FieldCondition(key=field_key, match=MatchAny(any=values))
        return Filter(should=[cls._match(field_key, v) for v in values])

    @staticmethod
    def _normalize(value: Any) -> Any:
        """Dates are stored as Unix timestamps in the payload."""
        if isinstance(value, tuple):
            return list(value)
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            return value.timestamp()
        if isinstance(value, date):
            return datetime.combine(value, time(), tzinfo=timezone.utc).timestamp()
        return value

    def _get_field_key(self, key: Key) -> str:
        """
        Get the Qdrant field key for a field name.
        Adds metadata prefix for non-root fields.
        """
        field = self.remove_outer_quotes(key.key) if self.has_outer_quotes(key.key) else key.key
        if field in self.root_fields:
            return field
        return self.namespaced_key(key)
