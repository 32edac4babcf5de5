from unittest.mock import MagicMock, patch

import pymysql
import pytest

from structgen.shared.catalog import (
    COLUMNS_QUERY,
    TABLES_QUERY,
    CatalogReader,
    ColumnDescriptor,
    parse_datasource,
)
from structgen.shared.errors import (
    CatalogConnectionError,
    CatalogQueryError,
    DatasourceError,
)


def _reader(rows, database="shop"):
    connection = MagicMock()
    cursor = connection.cursor.return_value.__enter__.return_value
    cursor.fetchall.return_value = rows
    return CatalogReader(connection, database), connection, cursor


def _column_row(name, data_type="varchar", nullable="NO", key="", default=None,
                extra="", comment=""):
    return {
        "column_name": name,
        "data_type": data_type,
        "is_nullable": nullable,
        "column_key": key,
        "column_default": default,
        "extra": extra,
        "column_comment": comment,
    }


class TestParseDatasource:
    def test_default_shape(self):
        params = parse_datasource("root:@tcp(localhost:3306)/test")
        assert params == {
            "user": "root",
            "password": "",
            "database": "test",
            "charset": "utf8mb4",
            "host": "localhost",
            "port": 3306,
        }

    def test_password_containing_at_sign(self):
        params = parse_datasource("app:s3cr@t@tcp(db.internal:3307)/shop")
        assert params["user"] == "app"
        assert params["password"] == "s3cr@t"
        assert params["host"] == "db.internal"
        assert params["port"] == 3307

    def test_charset_parameter(self):
        params = parse_datasource("root@tcp(localhost:3306)/shop?charset=utf8&parseTime=true")
        assert params["charset"] == "utf8"
        assert "parseTime" not in params

    def test_no_credentials_or_address(self):
        params = parse_datasource("/shop")
        assert params["user"] is None
        assert params["host"] == "localhost"
        assert params["port"] == 3306
        assert params["database"] == "shop"

    def test_tcp_without_port(self):
        params = parse_datasource("root@tcp(db)/shop")
        assert params["host"] == "db"
        assert params["port"] == 3306

    def test_empty_database(self):
        params = parse_datasource("root:pw@tcp(localhost:3306)/")
        assert params["database"] is None

    def test_unix_socket(self):
        params = parse_datasource("root@unix(/var/run/mysqld/mysqld.sock)/shop")
        assert params["unix_socket"] == "/var/run/mysqld/mysqld.sock"
        assert "host" not in params

    @pytest.mark.parametrize(
        "datasource",
        [
            "root@tcp(localhost:3306)",
            "root@tcp(localhost:abc)/shop",
            "root@udp(localhost:3306)/shop",
            "root@tcp(localhost:3306/shop",
            "root@unix()/shop",
        ],
    )
    def test_invalid(self, datasource):
        with pytest.raises(DatasourceError) as exc_info:
            parse_datasource(datasource)
        assert exc_info.value.datasource == datasource


class TestColumnDescriptor:
    def test_from_row(self):
        column = ColumnDescriptor.from_row(
            _column_row("user_id", "bigint", "NO", "PRI", None, "auto_increment", "owner")
        )
        assert column == ColumnDescriptor(
            name="user_id",
            data_type="bigint",
            is_nullable=False,
            key="PRI",
            default=None,
            extra="auto_increment",
            comment="owner",
        )
        assert column.is_primary_key
        assert column.is_auto_increment

    def test_from_row_nullable_with_default(self):
        column = ColumnDescriptor.from_row(_column_row("status", "tinyint", "YES", default="1"))
        assert column.is_nullable
        assert column.default == "1"
        assert not column.is_primary_key
        assert not column.is_auto_increment

    def test_from_row_empty_comment_is_none(self):
        column = ColumnDescriptor.from_row(_column_row("name"))
        assert column.comment is None

    def test_from_row_decodes_bytes(self):
        row = _column_row("name")
        row["data_type"] = b"varchar"
        row["column_comment"] = "display name".encode()
        column = ColumnDescriptor.from_row(row)
        assert column.data_type == "varchar"
        assert column.comment == "display name"

    def test_auto_increment_case_insensitive(self):
        column = ColumnDescriptor("id", "int", False, extra="AUTO_INCREMENT")
        assert column.is_auto_increment

    def test_frozen(self):
        column = ColumnDescriptor("id", "int", False)
        with pytest.raises(AttributeError):
            column.name = "other"


class TestCatalogReader:
    def test_list_tables(self):
        reader, _, cursor = _reader([{"table_name": "orders"}, {"table_name": "users"}])

        assert reader.list_tables("shop") == ["orders", "users"]
        cursor.execute.assert_called_once_with(TABLES_QUERY, ("shop",))

    def test_list_columns_preserves_order(self):
        rows = [
            _column_row("id", "bigint", key="PRI"),
            _column_row("name"),
            _column_row("created_at", "datetime", "YES"),
        ]
        reader, _, cursor = _reader(rows)

        columns = reader.list_columns("shop", "users")

        assert [c.name for c in columns] == ["id", "name", "created_at"]
        cursor.execute.assert_called_once_with(COLUMNS_QUERY, ("shop", "users"))

    def test_list_columns_empty_table(self):
        reader, _, _ = _reader([])
        assert reader.list_columns("shop", "empty") == []

    def test_query_failure_names_table(self):
        reader, _, cursor = _reader([])
        cursor.execute.side_effect = pymysql.err.OperationalError(2013, "Lost connection")

        with pytest.raises(CatalogQueryError) as exc_info:
            reader.list_columns("shop", "orders")

        assert exc_info.value.table == "orders"
        assert "Lost connection" in str(exc_info.value)

    def test_table_list_failure(self):
        reader, _, cursor = _reader([])
        cursor.execute.side_effect = pymysql.err.ProgrammingError(1146, "no such table")

        with pytest.raises(CatalogQueryError) as exc_info:
            reader.list_tables("shop")

        assert exc_info.value.table is None

    def test_context_manager_closes(self):
        reader, connection, _ = _reader([])
        with reader as entered:
            assert entered is reader
        connection.close.assert_called_once()

    @patch("structgen.shared.catalog.pymysql.connect")
    def test_connect(self, mock_connect):
        reader = CatalogReader.connect("root:pw@tcp(db:3307)/shop")

        assert reader.default_database == "shop"
        mock_connect.assert_called_once_with(
            user="root",
            password="pw",
            database="shop",
            charset="utf8mb4",
            host="db",
            port=3307,
            cursorclass=pymysql.cursors.DictCursor,
        )

    @patch("structgen.shared.catalog.pymysql.connect")
    def test_connect_failure(self, mock_connect):
        mock_connect.side_effect = pymysql.err.OperationalError(2003, "Can't connect")

        with pytest.raises(CatalogConnectionError) as exc_info:
            CatalogReader.connect("root@tcp(localhost:3306)/shop")

        assert "Can't connect" in str(exc_info.value)

    @patch("structgen.shared.catalog.pymysql.connect")
    def test_connect_bad_datasource_never_dials(self, mock_connect):
        with pytest.raises(DatasourceError):
            CatalogReader.connect("not a dsn")
        mock_connect.assert_not_called()


class TestCatalogReaderSettingsErrors:
    def test_unknown_charset_rejected_before_connect(self):
        with patch("structgen.shared.catalog.pymysql.connect") as mock_connect:
            with pytest.raises(DatasourceError) as exc_info:
                CatalogReader.connect("root:@tcp(127.0.0.1:1)/x?charset=bogus")

        assert "unknown charset 'bogus'" in str(exc_info.value)
        mock_connect.assert_not_called()

    @pytest.mark.parametrize(
        "error",
        [
            UnicodeEncodeError("latin-1", "pässword", 1, 2, "ordinal not in range(256)"),
            ValueError("connect_timeout should be >0 and <=31536000"),
        ],
    )
    @patch("structgen.shared.catalog.pymysql.connect")
    def test_invalid_connect_settings(self, mock_connect, error):
        mock_connect.side_effect = error

        with pytest.raises(CatalogConnectionError) as exc_info:
            CatalogReader.connect("root:pässword@tcp(localhost:3306)/shop")

        assert exc_info.value.__cause__ is error


class TestCatalogReaderUndecodableRows:
    def test_undecodable_column_names_table(self):
        reader, _, _ = _reader([_column_row("note", comment=b"\xff\xfe")])

        with pytest.raises(CatalogQueryError) as exc_info:
            reader.list_columns("shop", "notes")

        assert exc_info.value.table == "notes"
        assert "Undecodable column metadata" in str(exc_info.value)

    def test_undecodable_table_name(self):
        reader, _, _ = _reader([{"table_name": b"\xff"}])

        with pytest.raises(CatalogQueryError):
            reader.list_tables("shop")
