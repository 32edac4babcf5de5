from structgen.shared.errors import (
    CatalogConnectionError,
    CatalogError,
    CatalogQueryError,
    ConfigError,
    DatasourceError,
    GeneratorError,
    InvalidIdentifierError,
    OutputDirectoryError,
    OutputError,
    OutputWriteError,
)


class TestGeneratorError:
    def test_init_no_table(self):
        error = GeneratorError("test message")
        assert str(error) == "test message"
        assert error.table is None
        assert error.completed is None

    def test_init_with_table(self):
        error = GeneratorError("test message", "users")
        assert str(error) == "[users] test message"
        assert error.table == "users"


class TestDatasourceError:
    def test_init(self):
        error = DatasourceError("missing '/<dbname>' section", "root@tcp(localhost)")
        assert str(error) == "Datasource 'root@tcp(localhost)': missing '/<dbname>' section"
        assert error.datasource == "root@tcp(localhost)"
        assert isinstance(error, GeneratorError)


class TestCatalogErrors:
    def test_hierarchy(self):
        assert issubclass(CatalogConnectionError, CatalogError)
        assert issubclass(CatalogQueryError, CatalogError)
        assert issubclass(CatalogError, GeneratorError)

    def test_query_error_with_table(self):
        error = CatalogQueryError("Catalog query failed: timeout", "orders")
        assert str(error) == "[orders] Catalog query failed: timeout"
        assert error.table == "orders"


class TestOutputErrors:
    def test_directory_error(self):
        error = OutputDirectoryError("Failed to create output directory", "out/model")
        assert str(error) == "Failed to create output directory (out/model)"
        assert error.path == "out/model"
        assert error.table is None
        assert isinstance(error, OutputError)

    def test_write_error_with_table(self):
        error = OutputWriteError("Failed to write", "out/users.go", "users")
        assert str(error) == "[users] Failed to write (out/users.go)"
        assert error.path == "out/users.go"
        assert error.table == "users"


class TestInvalidIdentifierError:
    def test_init(self):
        error = InvalidIdentifierError("___", "___")
        assert str(error) == "[___] '___' does not produce a valid identifier"
        assert error.name == "___"


class TestConfigError:
    def test_init_no_key_no_path(self):
        error = ConfigError("invalid")
        assert str(error) == "invalid"
        assert error.key is None
        assert error.config_path is None

    def test_init_with_key(self):
        error = ConfigError("unknown key", key="colour")
        assert str(error) == "Key 'colour': unknown key"

    def test_init_with_key_and_path(self):
        error = ConfigError("expected bool, got str", "structgen.yaml", "format")
        assert str(error) == "[structgen.yaml] Key 'format': expected bool, got str"
        assert error.config_path == "structgen.yaml"
        assert error.key == "format"
