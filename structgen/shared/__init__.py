"""Shared utilities for struct generation."""

from .catalog import (
    CatalogReader,
    ColumnDescriptor,
    parse_datasource,
    DEFAULT_DATASOURCE,
)
from .config_loader import (
    load_config,
    CONFIG_KEYS,
)
from .naming import (
    to_upper_camel,
    to_snake,
)
from .errors import (
    GeneratorError,
    DatasourceError,
    CatalogError,
    CatalogConnectionError,
    CatalogQueryError,
    OutputError,
    OutputDirectoryError,
    OutputWriteError,
    InvalidIdentifierError,
    ConfigError,
)

__all__ = [
    # Catalog access
    "CatalogReader",
    "ColumnDescriptor",
    "parse_datasource",
    "DEFAULT_DATASOURCE",
    # Configuration
    "load_config",
    "CONFIG_KEYS",
    # Naming utilities
    "to_upper_camel",
    "to_snake",
    # Errors
    "GeneratorError",
    "DatasourceError",
    "CatalogError",
    "CatalogConnectionError",
    "CatalogQueryError",
    "OutputError",
    "OutputDirectoryError",
    "OutputWriteError",
    "InvalidIdentifierError",
    "ConfigError",
]
