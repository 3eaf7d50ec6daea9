"""
Exception classes for vectorstore filters.
"""


class VectorStoreError(Exception):
    """Base exception for all vectorstore errors."""
    pass


class ConfigurationError(VectorStoreError):
    """Raised when a converter or environment setting is invalid."""
    pass


class FilterError(VectorStoreError):
    """Base exception for filter-related errors."""
    pass


class UnsupportedOperatorError(FilterError):
    """Raised when a backend doesn't support an operator."""
    def __init__(self, operator, backend: str):
        name = getattr(operator, "value", operator)
        super().__init__(f"Operator {name} is not supported by {backend}")
        self.operator = operator
        self.backend = backend


class MalformedExpressionError(FilterError):
    """Raised when an expression tree is not well-typed."""
    pass


class InvalidFilterError(FilterError):
    """Raised when a filter is malformed or invalid."""
    pass
