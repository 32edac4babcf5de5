"""Catalog access: reads table and column metadata from information_schema."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Final, Mapping
from urllib.parse import parse_qsl

import pymysql
import pymysql.charset
import pymysql.cursors

from .errors import CatalogConnectionError, CatalogQueryError, DatasourceError

logger = logging.getLogger(__name__)

DEFAULT_DATASOURCE: Final[str] = "root:@tcp(localhost:3306)/test"
DEFAULT_PORT: Final[int] = 3306
DEFAULT_CHARSET: Final[str] = "utf8mb4"

TABLES_QUERY: Final[str] = (
    "SELECT TABLE_NAME AS table_name FROM information_schema.TABLES "
    "WHERE TABLE_SCHEMA = %s ORDER BY TABLE_NAME"
)

COLUMNS_QUERY: Final[str] = (
    "SELECT COLUMN_NAME AS column_name, DATA_TYPE AS data_type, "
    "IS_NULLABLE AS is_nullable, COLUMN_KEY AS column_key, "
    "COLUMN_DEFAULT AS column_default, EXTRA AS extra, "
    "COLUMN_COMMENT AS column_comment "
    "FROM information_schema.COLUMNS "
    "WHERE TABLE_SCHEMA = %s AND TABLE_NAME = %s "
    "ORDER BY ORDINAL_POSITION"
)


def _text(value: Any) -> str | None:
    """Normalize a catalog cell to text (some servers return bytes)."""
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8")
    return str(value)


@dataclass(frozen=True, slots=True)
class ColumnDescriptor:
    """A column as reported by the catalog."""

    name: str
    data_type: str
    is_nullable: bool
    key: str = ""
    default: str | None = None
    extra: str = ""
    comment: str | None = None

    @property
    def is_primary_key(self) -> bool:
        return self.key == "PRI"

    @property
    def is_auto_increment(self) -> bool:
        return "auto_increment" in self.extra.lower()

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> ColumnDescriptor:
        """Create a descriptor from a raw information_schema.COLUMNS row."""
        return cls(
            name=_text(row["column_name"]) or "",
            data_type=_text(row["data_type"]) or "",
            is_nullable=(_text(row.get("is_nullable")) or "").upper() == "YES",
            key=_text(row.get("column_key")) or "",
            default=_text(row.get("column_default")),
            extra=_text(row.get("extra")) or "",
            comment=_text(row.get("column_comment")) or None,
        )


def parse_datasource(datasource: str) -> dict[str, Any]:
    """Parse a Go-style MySQL DSN into PyMySQL connect arguments.

    Accepted shape: ``[user[:password]@][tcp(host[:port])|unix(path)]/[dbname][?params]``.
    Only the ``charset`` parameter is honoured.

    Raises:
        DatasourceError: If the string does not follow that shape.
    """
    dsn, _, query = datasource.partition("?")
    head, slash, database = dsn.rpartition("/")
    if not slash:
        raise DatasourceError("missing '/<dbname>' section", datasource)

    credentials, at, address = head.rpartition("@")
    if not at:
        credentials, address = "", head
    user, _, password = credentials.partition(":")

    params: dict[str, Any] = {
        "user": user or None,
        "password": password,
        "database": database or None,
        "charset": DEFAULT_CHARSET,
    }

    for key, value in parse_qsl(query):
        if key == "charset":
            if pymysql.charset.charset_by_name(value) is None:
                raise DatasourceError(f"unknown charset '{value}'", datasource)
            params["charset"] = value
        else:
            logger.debug("Ignoring datasource parameter %s", key)

    if not address:
        params.update(host="localhost", port=DEFAULT_PORT)
        return params

    protocol, paren, rest = address.partition("(")
    if paren and not rest.endswith(")"):
        raise DatasourceError("unterminated address", datasource)
    target = rest[:-1] if paren else ""

    if protocol == "tcp":
        host, colon, port = target.rpartition(":")
        if not colon:
            host, port = target, ""
        try:
            params.update(
                host=host or "localhost",
                port=int(port) if port else DEFAULT_PORT,
            )
        except ValueError as e:
            raise DatasourceError(f"invalid port '{port}'", datasource) from e
    elif protocol == "unix":
        if not target:
            raise DatasourceError("unix protocol requires a socket path", datasource)
        params["unix_socket"] = target
    else:
        raise DatasourceError(f"unsupported protocol '{protocol}'", datasource)

    return params


class CatalogReader:
    """Reads schema metadata through an open DB-API connection.

    Usage:
        with CatalogReader.connect(dsn) as reader:
            for table in reader.list_tables("shop"):
                columns = reader.list_columns("shop", table)
    """

    __slots__ = ("_connection", "default_database")

    def __init__(self, connection: Any, default_database: str | None = None) -> None:
        self._connection = connection
        self.default_database = default_database

    @classmethod
    def connect(cls, datasource: str) -> CatalogReader:
        """Open a catalog connection from a DSN.

        Raises:
            DatasourceError: If the DSN is malformed.
            CatalogConnectionError: If the server cannot be reached.
        """
        params = parse_datasource(datasource)
        try:
            connection = pymysql.connect(
                **params,
                cursorclass=pymysql.cursors.DictCursor,
            )
        except (pymysql.MySQLError, ValueError, UnicodeError) as e:
            # Invalid settings such as a non-latin1 password surface as plain errors.
            raise CatalogConnectionError(f"Failed to connect to catalog: {e}") from e
        return cls(connection, default_database=params["database"])

    def _query(
        self,
        sql: str,
        args: tuple[str, ...],
        table: str | None = None,
    ) -> list[Mapping[str, Any]]:
        logger.debug("Catalog query %s %s", sql, args)
        try:
            with self._connection.cursor() as cursor:
                cursor.execute(sql, args)
                return list(cursor.fetchall())
        except pymysql.MySQLError as e:
            raise CatalogQueryError(f"Catalog query failed: {e}", table) from e

    def list_tables(self, database: str) -> list[str]:
        """Return the table names in a schema."""
        logger.info("Fetching tables from %s", database)
        rows = self._query(TABLES_QUERY, (database,))
        try:
            return [_text(row["table_name"]) or "" for row in rows]
        except UnicodeDecodeError as e:
            raise CatalogQueryError(f"Undecodable table name: {e}") from e

    def list_columns(self, database: str, table: str) -> list[ColumnDescriptor]:
        """Return a table's columns in catalog (ordinal) order."""
        rows = self._query(COLUMNS_QUERY, (database, table), table)
        try:
            return [ColumnDescriptor.from_row(row) for row in rows]
        except UnicodeDecodeError as e:
            raise CatalogQueryError(f"Undecodable column metadata: {e}", table) from e

    def close(self) -> None:
        self._connection.close()

    def __enter__(self) -> CatalogReader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
