"""
Vectorstore Filters
Portable metadata filter expressions converted to native vector store queries.
"""

from .exceptions import (
    VectorStoreError,
    ConfigurationError,
    FilterError,
    UnsupportedOperatorError,
    MalformedExpressionError,
    InvalidFilterError,
)
from .filter import (
    Expression,
    ExpressionType,
    Group,
    Key,
    Value,
    FilterExpressionBuilder,
    FilterExpressionTextParser,
    MongoFilterParser,
    create_converter,
)
from .config import Config

__version__ = "0.1.0"

__all__ = [
    "Expression",
    "ExpressionType",
    "Group",
    "Key",
    "Value",
    "FilterExpressionBuilder",
    "FilterExpressionTextParser",
    "MongoFilterParser",
    "create_converter",
    "Config",
    "VectorStoreError",
    "ConfigurationError",
    "FilterError",
    "UnsupportedOperatorError",
    "MalformedExpressionError",
    "InvalidFilterError",
]
