"""
Portable metadata filters for vector stores.

This module provides one way to express metadata filters and convert them to
the native filter syntax of different vector stores (MongoDB Atlas,
Elasticsearch, SQLite, Qdrant, Weaviate).

Example usage:
    from vectorstore.filter import FilterExpressionTextParser, create_converter

    expression = FilterExpressionTextParser().parse(
        "country == 'BG' && (year >= 2020 || genre in ['comedy', 'drama'])"
    )

    converter = create_converter("mongodb-atlas")
    vector_search_filter = converter.convert_expression(expression)
"""

from .expression import Expression, ExpressionType, Group, Key, Value
from .builder import FilterExpressionBuilder
from .text_parser import FilterExpressionTextParser
from .mongo_parser import MongoFilterParser
from .validator import FilterValidator
from .converter import (
    FilterExpressionConverter,
    AbstractFilterExpressionConverter,
    ElasticsearchAiSearchFilterExpressionConverter,
    MongoDBAtlasFilterExpressionConverter,
    QdrantFilterExpressionConverter,
    SQLiteFilterExpressionConverter,
    WeaviateFilterExpressionConverter,
    available_dialects,
    create_converter,
)

__all__ = [
    # Model
    'Expression',
    'ExpressionType',
    'Group',
    'Key',
    'Value',

    # Building and parsing
    'FilterExpressionBuilder',
    'FilterExpressionTextParser',
    'MongoFilterParser',
    'FilterValidator',

    # Converters
    'FilterExpressionConverter',
    'AbstractFilterExpressionConverter',
    'ElasticsearchAiSearchFilterExpressionConverter',
    'MongoDBAtlasFilterExpressionConverter',
    'QdrantFilterExpressionConverter',
    'SQLiteFilterExpressionConverter',
    'WeaviateFilterExpressionConverter',
    'available_dialects',
    'create_converter',
]
