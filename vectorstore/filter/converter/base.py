#!/usr/bin/env python3
"""
Base filter expression converters.

FilterExpressionConverter is the contract every backend implements.
AbstractFilterExpressionConverter holds the shared tree walk for backends
whose native filter is a text fragment; subclasses only supply their
operator table, compound syntax, key namespacing and literal rules.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Union

from ..expression import Expression, ExpressionType, Group, Key, Value
from ...exceptions import (
    ConfigurationError, MalformedExpressionError, UnsupportedOperatorError
)


class FilterExpressionConverter(ABC):
    """
    Abstract base class for filter converters.
    Each vector store implements this to turn Expression trees into the
    filter fragment its query API expects.
    """

    # Backend name used in error messages
    BACKEND_NAME = "unknown"

    # Fragment meaning "no filtering applied"
    MATCH_ALL = "*"

    # Operator -> backend token
    OPERATORS: Dict[ExpressionType, str] = {}

    def __init__(self, metadata_prefix: Optional[str] = "metadata"):
        """
        Initialize the converter.

        Args:
            metadata_prefix: Namespace prepended to metadata keys (None or "" for none)

        Raises:
            ConfigurationError: If the operator table is malformed
        """
        self.metadata_prefix = metadata_prefix
        self.logger = logging.getLogger(__name__)
        self._check_operator_table()

    @abstractmethod
    def convert_expression(self, expression: Optional[Expression]) -> str:
        """
        Convert an expression tree to the backend's filter fragment.

        Args:
            expression: The filter expression tree, or None for no filter

        Returns:
            Backend-specific filter fragment
        """
        pass

    def supports_operator(self, operator: ExpressionType) -> bool:
        """Check if this backend supports an operator."""
        return operator in self.OPERATORS

    def validate_expression(self, expression: Union[Expression, Group]) -> None:
        """
        Validate that all operators in the expression are supported.

        Runs over the whole tree before anything is emitted, so an
        unsupported operator never yields a half-built fragment.

        Raises:
            UnsupportedOperatorError: If an unsupported operator is found
            MalformedExpressionError: If a node is not part of the filter model
        """
        if isinstance(expression, Group):
            self.validate_expression(expression.content)
        elif isinstance(expression, Expression):
            if not self.supports_operator(expression.type):
                raise UnsupportedOperatorError(expression.type, self.BACKEND_NAME)
            for operand in (expression.left, expression.right):
                if isinstance(operand, (Expression, Group)):
                    self.validate_expression(operand)
        else:
            raise MalformedExpressionError(
                f"Expected Expression or Group, got {type(expression).__name__}"
            )

    def operation_symbol(self, expression: Expression) -> str:
        """Look up the backend token for an expression's operator."""
        try:
            return self.OPERATORS[expression.type]
        except KeyError:
            raise UnsupportedOperatorError(expression.type, self.BACKEND_NAME) from None

    def namespaced_key(self, key: Key, separator: str = ".") -> str:
        """Strip caller quoting from a key and apply the metadata namespace."""
        identifier = self.remove_outer_quotes(key.key) if self.has_outer_quotes(key.key) else key.key
        if self.metadata_prefix:
            return f"{self.metadata_prefix}{separator}{identifier}"
        return identifier

    @staticmethod
    def has_outer_quotes(text: str) -> bool:
        text = text.strip()
        return len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"')

    @staticmethod
    def remove_outer_quotes(text: str) -> str:
        return text.strip()[1:-1]

    def _check_operator_table(self) -> None:
        for operator, token in self.OPERATORS.items():
            if not isinstance(operator, ExpressionType):
                raise ConfigurationError(
                    f"{self.BACKEND_NAME} operator table has an unknown operator: {operator!r}"
                )
            if not isinstance(token, str):
                raise ConfigurationError(
                    f"{self.BACKEND_NAME} token for {operator.value} must be a string, got {token!r}"
                )


class AbstractFilterExpressionConverter(FilterExpressionConverter):
    """
    Shared tree walk for text-based filter fragments.

    The walk appends to a list of string parts; subclasses implement
    do_expression and do_key and may override the value and group hooks.
    """

    def convert_expression(self, expression: Optional[Expression]) -> str:
        if expression is None:
            return self.MATCH_ALL

        self.validate_expression(expression)

        context: List[str] = []
        self.convert_operand(expression, context)
        result = "".join(context)

        self.logger.debug(f"{self.BACKEND_NAME} filter: {expression!r} -> {result}")
        return result

    def convert_operand(self, operand: Any, context: List[str]) -> None:
        """Dispatch an operand to the matching hook."""
        if isinstance(operand, Group):
            self.do_group(operand, context)
        elif isinstance(operand, Expression):
            self.do_expression(operand, context)
        elif isinstance(operand, Key):
            self.do_key(operand, context)
        elif isinstance(operand, Value):
            self.do_value(operand, context)
        else:
            raise MalformedExpressionError(f"Unexpected operand type: {type(operand).__name__}")

    @abstractmethod
    def do_expression(self, expression: Expression, context: List[str]) -> None:
        pass

    @abstractmethod
    def do_key(self, key: Key, context: List[str]) -> None:
        pass

    def do_group(self, group: Group, context: List[str]) -> None:
        context.append("(")
        self.convert_operand(group.content, context)
        context.append(")")

    def do_value(self, value: Value, context: List[str]) -> None:
        if value.is_list:
            self.do_start_value_range(value, context)
            for i, item in enumerate(value.value):
                if i > 0:
                    self.do_add_value_range_separator(value, context)
                self.do_single_value(item, context)
            self.do_end_value_range(value, context)
        else:
            self.do_single_value(value.value, context)

    def do_single_value(self, value: Any, context: List[str]) -> None:
        """Render one literal: JSON-style strings, bare numbers and booleans."""
        context.append(self.format_literal(value))

    def do_start_value_range(self, value: Value, context: List[str]) -> None:
        context.append("[")

    def do_add_value_range_separator(self, value: Value, context: List[str]) -> None:
        context.append(",")

    def do_end_value_range(self, value: Value, context: List[str]) -> None:
        context.append("]")

    @staticmethod
    def format_literal(value: Any) -> str:
        if value is None:
            return "null"
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return json.dumps(value)
        if isinstance(value, (date, datetime)):
            return json.dumps(format_date(value))
        return json.dumps(str(value), ensure_ascii=False)


def format_date(value: date) -> str:
    """ISO-8601 UTC text for a date or datetime; naive datetimes are taken as UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value.strftime("%Y-%m-%dT%H:%M:%SZ")
    return value.isoformat()
