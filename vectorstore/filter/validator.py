#!/usr/bin/env python3
"""
Pre-flight validation for MongoDB-style filters.
Validates filter structure, operators, and values before they are parsed
and converted for a vector store.
"""

from datetime import date
from typing import Any, Dict, Optional, Set

from ..exceptions import InvalidFilterError


_PRIMITIVES = (str, int, float, bool, date, type(None))


class FilterValidator:
    """
    Validates MongoDB-style filters before processing.

    Features:
    - Validates operator syntax and combinations
    - Type checking for operator values
    - Field whitelisting (nested paths allowed when the root is allowed)
    - Security checks (max depth, size limits)
    """

    COMPARISON_OPS = {"$eq", "$ne", "$gt", "$gte", "$lt", "$lte"}

    ARRAY_OPS = {"$in", "$nin"}

    LOGICAL_OPS = {"$and", "$or", "$not", "$nor"}

    ALL_OPS = COMPARISON_OPS | ARRAY_OPS | LOGICAL_OPS

    def __init__(self,
                 max_depth: int = 10,
                 max_filter_size: int = 1000,
                 max_array_size: int = 100,
                 allowed_fields: Optional[Set[str]] = None):
        """
        Initialize validator with constraints.

        Args:
            max_depth: Maximum nesting depth for filters
            max_filter_size: Maximum size of filter dictionary
            max_array_size: Maximum size for $in/$nin lists
            allowed_fields: Whitelist of allowed field names (None = all allowed)
        """
        self.max_depth = max_depth
        self.max_filter_size = max_filter_size
        self.max_array_size = max_array_size
        self.allowed_fields = allowed_fields

    def validate(self, filters: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate filters.

        Args:
            filters: MongoDB-style filter dictionary

        Returns:
            The same filters, once validated

        Raises:
            InvalidFilterError: If validation fails
        """
        if self._get_dict_size(filters) > self.max_filter_size:
            raise InvalidFilterError(
                f"Filter too large: exceeds {self.max_filter_size} elements"
            )

        self._validate_level(filters, depth=0)
        return filters

    def _validate_level(self, obj: Any, depth: int) -> None:
        """Validate a filter level recursively."""
        if depth > self.max_depth:
            raise InvalidFilterError(f"Filter exceeds maximum depth of {self.max_depth}")

        if not isinstance(obj, dict):
            raise InvalidFilterError(f"Expected dict, got {type(obj).__name__}")

        for key, value in obj.items():
            if key.startswith("$"):
                if key not in self.LOGICAL_OPS:
                    raise InvalidFilterError(f"Unknown operator: {key}")
                self._validate_logical_op(key, value, depth)
            else:
                self._validate_field(key, value)

    def _validate_logical_op(self, op: str, value: Any, depth: int) -> None:
        """Validate logical operators ($and, $or, $not, $nor)."""
        if op == "$not":
            if not isinstance(value, dict):
                raise InvalidFilterError(f"$not requires a dict, got {type(value).__name__}")
            self._validate_level(value, depth + 1)
            return

        if not isinstance(value, list):
            raise InvalidFilterError(f"{op} requires an array, got {type(value).__name__}")

        if len(value) == 0:
            raise InvalidFilterError(f"{op} requires at least one condition")

        for i, condition in enumerate(value):
            if not isinstance(condition, dict):
                raise InvalidFilterError(
                    f"{op}[{i}] must be a dict, got {type(condition).__name__}"
                )
            self._validate_level(condition, depth + 1)

    def _validate_field(self, field: str, value: Any) -> None:
        """Validate a field and its conditions."""
        if self.allowed_fields is not None and field not in self.allowed_fields:
            root_field = field.split('.')[0]
            if root_field not in self.allowed_fields:
                raise InvalidFilterError(f"Field not allowed: {field}")

        if not isinstance(value, dict):
            # Direct value comparison (implicit $eq)
            self._validate_comparison_op("$eq", value)
            return

        for op, op_value in value.items():
            if not op.startswith("$"):
                raise InvalidFilterError(
                    f"Invalid operator '{op}' for field '{field}' - operators must start with $"
                )
            if op in self.COMPARISON_OPS:
                self._validate_comparison_op(op, op_value)
            elif op in self.ARRAY_OPS:
                self._validate_array_op(op, op_value)
            else:
                raise InvalidFilterError(f"Unknown operator: {op}")

    def _validate_comparison_op(self, op: str, value: Any) -> None:
        """Validate comparison operators ($eq, $ne, $gt, etc)."""
        if not isinstance(value, _PRIMITIVES):
            raise InvalidFilterError(
                f"{op} value must be string, number, boolean, or datetime, got {type(value).__name__}"
            )

    def _validate_array_op(self, op: str, value: Any) -> None:
        """Validate array operators ($in, $nin)."""
        if not isinstance(value, list):
            raise InvalidFilterError(f"{op} requires an array, got {type(value).__name__}")

        if len(value) > self.max_array_size:
            raise InvalidFilterError(
                f"{op} array exceeds maximum size of {self.max_array_size}"
            )

        for item in value:
            if not isinstance(item, _PRIMITIVES):
                raise InvalidFilterError(
                    f"{op} array items must be primitive types, got {type(item).__name__}"
                )

    def _get_dict_size(self, obj: Any) -> int:
        """Count total elements in nested structure."""
        if isinstance(obj, dict):
            return len(obj) + sum(self._get_dict_size(v) for v in obj.values())
        if isinstance(obj, list):
            return len(obj) + sum(self._get_dict_size(item) for item in obj)
        return 1

    @classmethod
    def create_default(cls) -> 'FilterValidator':
        """Create a validator with sensible defaults."""
        return cls(max_depth=10, max_filter_size=1000, max_array_size=100)

    @classmethod
    def create_strict(cls, allowed_fields: Set[str]) -> 'FilterValidator':
        """Create a strict validator with field restrictions."""
        return cls(
            max_depth=5,
            max_filter_size=500,
            max_array_size=50,
            allowed_fields=allowed_fields,
        )
