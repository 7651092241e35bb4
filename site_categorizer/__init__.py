"""Blocklist-backed URL, domain and IP categorization."""

from site_categorizer.client import CategoryClient, CategoryStore
from site_categorizer.config import CategorizerSettings, DatasetConfig
from site_categorizer.errors import (
    CategorizerError,
    CategoryReferenceError,
    ConfigurationError,
    DatasetConfigurationError,
    DatasetDownloadError,
    DatasetError,
    DatasetParseError,
    InvalidInputError,
)
from site_categorizer.graph import CategoryGraph, CategoryGraphBuilder

__version__ = "0.1.0"

__all__ = [
    "CategoryClient",
    "CategoryStore",
    "CategorizerSettings",
    "DatasetConfig",
    "CategoryGraph",
    "CategoryGraphBuilder",
    "CategorizerError",
    "ConfigurationError",
    "CategoryReferenceError",
    "InvalidInputError",
    "DatasetError",
    "DatasetConfigurationError",
    "DatasetParseError",
    "DatasetDownloadError",
]
