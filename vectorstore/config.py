"""
Configuration helpers for vectorstore filters.
Supports environment variables for easy deployment configuration.
"""

import os
from typing import Any, Dict, Optional

from .exceptions import ConfigurationError
from .filter.converter import FilterExpressionConverter, available_dialects, create_converter


class Config:
    """
    Configuration helper that reads from environment variables.

    Environment variables:
        VECTORSTORE_FILTER_DIALECT: Target backend (default: elasticsearch)
        VECTORSTORE_METADATA_PREFIX: Metadata namespace; the JSON column for sqlite
        VECTORSTORE_FILTER_MAX_DEPTH: Maximum filter nesting accepted by parsers (default: 10)
    """

    DEFAULT_DIALECT = "elasticsearch"
    DEFAULT_MAX_DEPTH = 10

    @staticmethod
    def from_env() -> Dict[str, Any]:
        """
        Create converter configuration from environment variables.

        Returns:
            Dict with the dialect and its converter options

        Example:
            from vectorstore.config import Config
            from vectorstore.filter import create_converter

            converter = create_converter(**Config.from_env())
        """
        dialect = os.getenv("VECTORSTORE_FILTER_DIALECT", Config.DEFAULT_DIALECT)
        return Config.for_dialect(dialect, metadata_prefix=os.getenv("VECTORSTORE_METADATA_PREFIX"))

    @staticmethod
    def for_dialect(dialect: str, metadata_prefix: Optional[str] = None, **overrides) -> Dict[str, Any]:
        """
        Configuration for one backend.

        Args:
            dialect: Backend dialect name
            metadata_prefix: Metadata namespace (None keeps the backend default)
            **overrides: Extra converter options

        Returns:
            Configuration dict for create_converter()

        Raises:
            ConfigurationError: If the dialect is unknown
        """
        dialect = dialect.strip().lower().replace("_", "-")
        if dialect not in available_dialects():
            raise ConfigurationError(
                f"Filter dialect {dialect} is not supported. "
                f"Available dialects: {available_dialects()}"
            )

        config: Dict[str, Any] = {"dialect": dialect}
        if metadata_prefix is not None:
            if dialect == "sqlite":
                config["metadata_column"] = metadata_prefix
            else:
                config["metadata_prefix"] = metadata_prefix
        config.update(overrides)
        return config

    @staticmethod
    def parser_options() -> Dict[str, Any]:
        """
        Parser configuration from environment variables.

        Returns:
            Dict with keyword arguments for MongoFilterParser

        Raises:
            ConfigurationError: If VECTORSTORE_FILTER_MAX_DEPTH is not a positive integer
        """
        raw = os.getenv("VECTORSTORE_FILTER_MAX_DEPTH", str(Config.DEFAULT_MAX_DEPTH))
        try:
            max_depth = int(raw)
        except ValueError:
            raise ConfigurationError(f"VECTORSTORE_FILTER_MAX_DEPTH must be an integer, got {raw!r}") from None
        if max_depth < 1:
            raise ConfigurationError(f"VECTORSTORE_FILTER_MAX_DEPTH must be positive, got {max_depth}")
        return {"max_depth": max_depth}

    @staticmethod
    def converter_from_env() -> FilterExpressionConverter:
        """Build the converter described by the environment."""
        return create_converter(**Config.from_env())
