"""
Filter expression converters, one per vector store backend.
"""

import logging
from typing import Dict, List, Type

from .base import AbstractFilterExpressionConverter, FilterExpressionConverter
from .elasticsearch import ElasticsearchAiSearchFilterExpressionConverter
from .mongodb_atlas import MongoDBAtlasFilterExpressionConverter
from .qdrant import QdrantFilterExpressionConverter
from .sqlite import SQLiteFilterExpressionConverter
from .weaviate import WeaviateFilterExpressionConverter
from ...exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_CONVERTER_REGISTRY: Dict[str, Type[FilterExpressionConverter]] = {
    "elasticsearch": ElasticsearchAiSearchFilterExpressionConverter,
    "mongodb-atlas": MongoDBAtlasFilterExpressionConverter,
    "qdrant": QdrantFilterExpressionConverter,
    "sqlite": SQLiteFilterExpressionConverter,
    "weaviate": WeaviateFilterExpressionConverter,
}


def available_dialects() -> List[str]:
    return sorted(_CONVERTER_REGISTRY)


def create_converter(dialect: str, **options) -> FilterExpressionConverter:
    """
    Create the converter for a backend dialect.

    Args:
        dialect: Registered dialect name (see available_dialects())
        **options: Keyword arguments for the converter's constructor

    Raises:
        ConfigurationError: If the dialect is unknown or the options don't fit it
    """
    converter_cls = _CONVERTER_REGISTRY.get(dialect.lower().replace("_", "-"))
    if converter_cls is None:
        raise ConfigurationError(
            f"Filter dialect {dialect} is not supported. "
            f"Available dialects: {available_dialects()}"
        )
    try:
        converter = converter_cls(**options)
    except TypeError as e:
        raise ConfigurationError(f"Invalid options for {dialect} converter: {e}") from e

    logger.info(f"Created {converter_cls.__name__} for dialect {dialect}")
    return converter


__all__ = [
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
