"""Custom exceptions for struct generation."""

from __future__ import annotations


class GeneratorError(Exception):
    """Base exception for generation errors."""

    def __init__(self, message: str, table: str | None = None) -> None:
        self.table = table
        # Set by the pipeline on abort: tables fully emitted before the failure.
        self.completed: int | None = None
        full_message = f"{message}" if not table else f"[{table}] {message}"
        super().__init__(full_message)


class DatasourceError(GeneratorError):
    """Raised when a datasource string cannot be parsed."""

    def __init__(self, message: str, datasource: str) -> None:
        self.datasource = datasource
        super().__init__(f"Datasource '{datasource}': {message}")


class CatalogError(GeneratorError):
    """Base exception for catalog access failures."""


class CatalogConnectionError(CatalogError):
    """Raised when the catalog connection cannot be opened."""


class CatalogQueryError(CatalogError):
    """Raised when a catalog query fails."""


class OutputError(GeneratorError):
    """Base exception for output failures."""

    def __init__(
        self,
        message: str,
        path: str,
        table: str | None = None,
    ) -> None:
        self.path = path
        super().__init__(f"{message} ({path})", table)


class OutputDirectoryError(OutputError):
    """Raised when the output directory cannot be created."""


class OutputWriteError(OutputError):
    """Raised when a generated file cannot be written."""


class InvalidIdentifierError(GeneratorError):
    """Raised when a name does not yield a usable identifier."""

    def __init__(self, name: str, table: str | None = None) -> None:
        self.name = name
        super().__init__(f"'{name}' does not produce a valid identifier", table)


class ConfigError(GeneratorError):
    """Raised when a configuration file is unreadable or invalid."""

    def __init__(
        self,
        message: str,
        config_path: str | None = None,
        key: str | None = None,
    ) -> None:
        self.config_path = config_path
        self.key = key
        if key:
            message = f"Key '{key}': {message}"
        if config_path:
            message = f"[{config_path}] {message}"
        super().__init__(message)
