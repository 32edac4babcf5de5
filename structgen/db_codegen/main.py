"""
DB Code Generator - Generates Go model structs from MySQL catalog metadata.

Every table becomes one Go source file holding:
- a struct whose fields carry ``gorm`` and ``json`` tags
- a ``tableName<Struct>`` constant and a ``TableName()`` accessor

Column types are mapped through a fixed family table; the mapping and
tag synthesis are configured by ``MappingOptions``.
"""

from __future__ import annotations

import argparse
import enum
import json
import logging
import re
import shutil
import subprocess
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Final, Iterable, Mapping, Protocol

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..shared import (
    DEFAULT_DATASOURCE,
    CatalogReader,
    ColumnDescriptor,
    ConfigError,
    GeneratorError,
    InvalidIdentifierError,
    OutputDirectoryError,
    OutputWriteError,
    load_config,
    to_snake,
    to_upper_camel,
)

logger = logging.getLogger(__name__)


class FieldType(enum.Enum):
    """Semantic field types, independent of the output language."""

    INT8 = "8-bit signed integer"
    INT64 = "64-bit signed integer"
    FLOAT64 = "64-bit floating point"
    TEXT = "text"
    TIMESTAMP = "timestamp"
    OPAQUE = "opaque"
    NULL_INT64 = "nullable 64-bit signed integer"
    NULL_FLOAT64 = "nullable 64-bit floating point"
    NULL_TEXT = "nullable text"
    NULL_TIMESTAMP = "nullable timestamp"


class JsonTagSource(enum.Enum):
    """Where the JSON tag of a field comes from."""

    COLUMN = "column"
    IDENTIFIER = "identifier"


class ErrorPolicy(enum.Enum):
    """How per-table failures propagate out of ``generate``."""

    ABORT = "abort"
    COLLECT = "collect"


# MySQL type families to semantic types
TYPE_FAMILIES: Final[dict[str, FieldType]] = {
    "tinyint": FieldType.INT8,
    "smallint": FieldType.INT8,
    "mediumint": FieldType.INT8,
    "bigint": FieldType.INT64,
    "int": FieldType.INT64,
    "float": FieldType.FLOAT64,
    "double": FieldType.FLOAT64,
    "decimal": FieldType.FLOAT64,
    "char": FieldType.TEXT,
    "varchar": FieldType.TEXT,
    "enum": FieldType.TEXT,
    "set": FieldType.TEXT,
    "text": FieldType.TEXT,
    "mediumtext": FieldType.TEXT,
    "longtext": FieldType.TEXT,
    "date": FieldType.TIMESTAMP,
    "datetime": FieldType.TIMESTAMP,
    "timestamp": FieldType.TIMESTAMP,
}

# Substitutions applied to nullable columns when nullable types are enabled
NULLABLE_VARIANTS: Final[dict[FieldType, FieldType]] = {
    FieldType.INT8: FieldType.NULL_INT64,
    FieldType.INT64: FieldType.NULL_INT64,
    FieldType.FLOAT64: FieldType.NULL_FLOAT64,
    FieldType.TEXT: FieldType.NULL_TEXT,
    FieldType.TIMESTAMP: FieldType.NULL_TIMESTAMP,
}

# Template configuration
TEMPLATE_DIR: Final[Path] = Path(__file__).parent / "templates"


@dataclass(frozen=True, slots=True)
class Dialect:
    """Everything the emitter needs to know about one output language."""

    name: str
    template_name: str
    extension: str
    type_names: Mapping[FieldType, str]
    type_imports: Mapping[FieldType, str]
    formatter: tuple[str, ...] = ()


GO_DIALECT: Final[Dialect] = Dialect(
    name="go",
    template_name="model.go.j2",
    extension="go",
    type_names={
        FieldType.INT8: "int8",
        FieldType.INT64: "int64",
        FieldType.FLOAT64: "float64",
        FieldType.TEXT: "string",
        FieldType.TIMESTAMP: "time.Time",
        FieldType.OPAQUE: "interface{}",
        FieldType.NULL_INT64: "sql.NullInt64",
        FieldType.NULL_FLOAT64: "sql.NullFloat64",
        FieldType.NULL_TEXT: "sql.NullString",
        FieldType.NULL_TIMESTAMP: "sql.NullTime",
    },
    type_imports={
        FieldType.TIMESTAMP: "time",
        FieldType.NULL_INT64: "database/sql",
        FieldType.NULL_FLOAT64: "database/sql",
        FieldType.NULL_TEXT: "database/sql",
        FieldType.NULL_TIMESTAMP: "database/sql",
    },
    formatter=("gofmt",),
)

DIALECTS: Final[dict[str, Dialect]] = {GO_DIALECT.name: GO_DIALECT}


@dataclass(frozen=True, slots=True)
class MappingOptions:
    """Switches for the column mapping variants."""

    nullable_types: bool = False
    json_tag_source: JsonTagSource = JsonTagSource.COLUMN
    primary_key_implies_not_null: bool = True


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    """A struct field derived from one catalog column."""

    name: str
    column: str
    field_type: FieldType
    gorm_tag: str
    json_tag: str
    comment: str | None = None


@dataclass(frozen=True, slots=True)
class RecordDefinition:
    """One table, ready to be emitted as one struct."""

    table_name: str
    database_name: str
    fields: tuple[FieldDescriptor, ...]
    package: str = "model"
    output_dir: Path | None = None

    @property
    def struct_name(self) -> str:
        return to_upper_camel(self.table_name)


@lru_cache(maxsize=256)
def _quote(value: str) -> str:
    """Quote a string for Go literal embedding. Cached for performance."""
    return json.dumps(value)


def _one_line(value: str) -> str:
    """Collapse line breaks so a comment stays on its field's line."""
    return re.sub(r"\s*[\r\n]+\s*", " ", value).strip()


def _tag_value(value: str) -> str:
    """Quote one struct tag value the way ``reflect.StructTag`` unquotes it."""
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _struct_tag(gorm_tag: str, json_tag: str) -> str:
    """Build the Go struct tag literal for a field.

    A raw string literal cannot hold a backtick, so such tags fall back to
    an interpreted string literal.
    """
    body = f"gorm:{_tag_value(gorm_tag)} json:{_tag_value(json_tag)}"
    if "`" in body:
        return _quote(body)
    return f"`{body}`"


def _type_family(data_type: str) -> str:
    """Reduce a declared type such as ``decimal(10,2) unsigned`` to ``decimal``."""
    head = data_type.split("(", 1)[0].split()
    return head[0].lower() if head else ""


def resolve_field_type(
    column: ColumnDescriptor,
    options: MappingOptions = MappingOptions(),
) -> FieldType:
    """Resolve the semantic type of a column.

    Unknown or malformed declared types fall back to ``FieldType.OPAQUE``.
    """
    base = TYPE_FAMILIES.get(_type_family(column.data_type), FieldType.OPAQUE)
    if options.nullable_types and column.is_nullable:
        return NULLABLE_VARIANTS.get(base, base)
    return base


def build_gorm_tag(
    column: ColumnDescriptor,
    options: MappingOptions = MappingOptions(),
) -> str:
    """Build the ``gorm`` tag value for a column.

    Clause order is fixed: column, AUTO_INCREMENT, primaryKey, default,
    NOT NULL.
    """
    clauses = [f"column:{column.name}"]
    if column.is_auto_increment:
        clauses.append("AUTO_INCREMENT")
    if column.is_primary_key:
        clauses.append("primaryKey")
    if column.default:
        clauses.append(f"default:{column.default}")

    not_null_implied = column.is_primary_key and options.primary_key_implies_not_null
    if not column.is_nullable and not not_null_implied:
        clauses.append("NOT NULL")

    return ";".join(clauses)


def build_json_tag(
    column: ColumnDescriptor,
    options: MappingOptions = MappingOptions(),
) -> str:
    if options.json_tag_source is JsonTagSource.IDENTIFIER:
        return to_snake(to_upper_camel(column.name))
    return column.name


def map_column(
    column: ColumnDescriptor,
    options: MappingOptions = MappingOptions(),
) -> FieldDescriptor:
    """Map one catalog column to a struct field."""
    return FieldDescriptor(
        name=to_upper_camel(column.name),
        column=column.name,
        field_type=resolve_field_type(column, options),
        gorm_tag=build_gorm_tag(column, options),
        json_tag=build_json_tag(column, options),
        comment=column.comment or None,
    )


def assemble_record(
    table_name: str,
    database_name: str,
    fields: Iterable[FieldDescriptor],
    package: str = "model",
    output_dir: Path | str | None = None,
) -> RecordDefinition:
    """Combine a table and its mapped fields into a record definition."""
    return RecordDefinition(
        table_name=table_name,
        database_name=database_name,
        fields=tuple(fields),
        package=package,
        output_dir=Path(output_dir) if output_dir else None,
    )


@dataclass
class Emitter:
    """Renders record definitions and writes them to disk."""

    dialect: Dialect = GO_DIALECT
    format_source: bool = True
    template_env: Environment = field(init=False)

    def __post_init__(self) -> None:
        self.template_env = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
            auto_reload=False,
        )
        self.template_env.filters["quote"] = _quote
        self.template_env.filters["one_line"] = _one_line
        self._template = self.template_env.get_template(self.dialect.template_name)

    def _context(self, record: RecordDefinition) -> dict[str, Any]:
        imports = sorted({
            self.dialect.type_imports[f.field_type]
            for f in record.fields
            if f.field_type in self.dialect.type_imports
        })
        fields = [
            {
                "name": f.name,
                "type": self.dialect.type_names[f.field_type],
                "tag": _struct_tag(f.gorm_tag, f.json_tag),
                "comment": f.comment,
            }
            for f in record.fields
        ]
        return {
            "package": record.package,
            "imports": imports,
            "struct_name": record.struct_name,
            "table_name": record.table_name,
            "database_name": record.database_name,
            "fields": fields,
        }

    def format(self, source: str, table: str | None = None) -> str:
        """Run the dialect formatter, returning ``source`` unchanged on failure."""
        if not self.format_source or not self.dialect.formatter:
            return source

        command = list(self.dialect.formatter)
        executable = shutil.which(command[0])
        if executable is None:
            logger.warning("%s not found; writing unformatted source", command[0])
            return source
        command[0] = executable

        try:
            result = subprocess.run(
                command,
                input=source,
                capture_output=True,
                encoding="utf-8",
                check=True,
            )
        except subprocess.CalledProcessError as e:
            logger.warning(
                "%s rejected output for %s; writing unformatted source: %s",
                self.dialect.formatter[0],
                table,
                (e.stderr or "").strip(),
            )
            return source
        except (OSError, ValueError) as e:
            logger.warning(
                "%s could not run for %s; writing unformatted source: %s",
                self.dialect.formatter[0],
                table,
                e,
            )
            return source

        return result.stdout

    def render(self, record: RecordDefinition) -> str:
        """Render a record to (formatted, when possible) source text.

        Raises:
            InvalidIdentifierError: If the table name yields no identifier.
        """
        if not record.struct_name:
            raise InvalidIdentifierError(record.table_name, record.table_name)
        rendered = self._template.render(**self._context(record))
        return self.format(rendered, record.table_name)

    def output_path(self, record: RecordDefinition) -> Path:
        file_name = f"{record.table_name}.{self.dialect.extension}"
        if record.output_dir is None:
            return Path(file_name)
        return record.output_dir / file_name

    def emit(self, record: RecordDefinition) -> Path:
        """Render a record and write it to its output path.

        The file is truncated before writing; a failed write can leave a
        partial file behind.

        Returns:
            The path written.

        Raises:
            InvalidIdentifierError: If the table name yields no identifier.
            OutputDirectoryError: If the output directory cannot be created.
            OutputWriteError: If the file cannot be written.
        """
        source = self.render(record)
        path = self.output_path(record)

        if record.output_dir is not None:
            try:
                record.output_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise OutputDirectoryError(
                    f"Failed to create output directory: {e}",
                    str(record.output_dir),
                    record.table_name,
                ) from e

        try:
            with path.open("w", encoding="utf-8") as fh:
                fh.write(source)
        except (OSError, UnicodeError) as e:
            raise OutputWriteError(
                f"Failed to write generated source: {e}",
                str(path),
                record.table_name,
            ) from e

        return path


class CatalogSource(Protocol):
    """The catalog operations ``generate`` relies on."""

    def list_tables(self, database: str) -> list[str]: ...

    def list_columns(self, database: str, table: str) -> list[ColumnDescriptor]: ...


@dataclass(frozen=True, slots=True)
class TableFailure:
    """A table that could not be generated under the collect policy."""

    table: str
    error: GeneratorError


@dataclass
class GenerationReport:
    """Outcome of one generation run."""

    generated: list[Path] = field(default_factory=list)
    failures: list[TableFailure] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.generated)

    @property
    def ok(self) -> bool:
        return not self.failures


def build_record(
    catalog: CatalogSource,
    database: str,
    table: str,
    package: str = "model",
    output_dir: Path | str | None = None,
    options: MappingOptions = MappingOptions(),
) -> RecordDefinition:
    """Read a table's columns and assemble its record definition."""
    columns = catalog.list_columns(database, table)
    fields = [map_column(column, options) for column in columns]
    return assemble_record(table, database, fields, package, output_dir)


def generate(
    catalog: CatalogSource,
    database: str,
    *,
    table: str | None = None,
    package: str = "model",
    output_dir: Path | str | None = None,
    options: MappingOptions = MappingOptions(),
    emitter: Emitter | None = None,
    error_policy: ErrorPolicy = ErrorPolicy.ABORT,
) -> GenerationReport:
    """Generate one source file per table.

    Args:
        catalog: Source of table and column metadata.
        database: Schema to introspect.
        table: Single table to generate; all tables when None or empty.
        package: Target package name written into each file.
        output_dir: Directory for generated files (created if missing).
        options: Column mapping variants.
        emitter: Emitter to use; a Go emitter by default.
        error_policy: ABORT re-raises the first per-table error, COLLECT
            records it in the report and moves on.

    Returns:
        The report of generated files and collected failures.

    Raises:
        CatalogQueryError: If the table list cannot be read, or a column
            query fails under ABORT.
        OutputDirectoryError: If the output directory cannot be created.
        GeneratorError: The first per-table error under ABORT. Its
            ``completed`` attribute holds the number of tables done.
    """
    emitter = emitter or Emitter()
    tables = [table] if table else catalog.list_tables(database)
    report = GenerationReport()

    for name in tables:
        logger.info("Generating %s", name)
        try:
            record = build_record(catalog, database, name, package, output_dir, options)
            path = emitter.emit(record)
        except OutputDirectoryError as e:
            e.completed = report.count
            raise
        except GeneratorError as e:
            if error_policy is ErrorPolicy.ABORT:
                e.completed = report.count
                raise
            logger.error("Skipping %s: %s", name, e)
            report.failures.append(TableFailure(table=name, error=e))
            continue

        logger.debug("Wrote %s", path)
        report.generated.append(path)

    logger.info("Generated %d of %d table(s)", report.count, len(tables))
    return report


DEFAULT_SETTINGS: Final[dict[str, Any]] = {
    "datasource": DEFAULT_DATASOURCE,
    "table": "",
    "database": "",
    "dir": "",
    "model": "model",
    "nullable_types": False,
    "json_tag_source": JsonTagSource.COLUMN.value,
    "pk_not_null_from_column": False,
    "error_policy": ErrorPolicy.ABORT.value,
    "format": True,
    "dialect": GO_DIALECT.name,
}


def resolve_settings(
    cli_values: Mapping[str, Any],
    config_path: Path | None = None,
) -> dict[str, Any]:
    """Merge defaults, the optional config file and command-line values.

    Command-line values win over the config file; ``None`` means unset.

    Raises:
        ConfigError: If the config file or an enumerated value is invalid.
    """
    settings = dict(DEFAULT_SETTINGS)
    if config_path is not None:
        settings.update(load_config(config_path))
    settings.update(
        (key, value)
        for key, value in cli_values.items()
        if key in DEFAULT_SETTINGS and value is not None
    )

    source = str(config_path) if config_path else None
    for key, enum_type in (
        ("json_tag_source", JsonTagSource),
        ("error_policy", ErrorPolicy),
    ):
        try:
            enum_type(settings[key])
        except ValueError as e:
            choices = ", ".join(member.value for member in enum_type)
            raise ConfigError(
                f"'{settings[key]}' is not one of: {choices}", source, key=key
            ) from e

    dialect = settings["dialect"]
    if dialect not in DIALECTS:
        choices = ", ".join(sorted(DIALECTS))
        raise ConfigError(f"'{dialect}' is not one of: {choices}", source, key="dialect")

    return settings


def mapping_options(settings: Mapping[str, Any]) -> MappingOptions:
    return MappingOptions(
        nullable_types=settings["nullable_types"],
        json_tag_source=JsonTagSource(settings["json_tag_source"]),
        primary_key_implies_not_null=not settings["pk_not_null_from_column"],
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate Go model structs from a MySQL schema",
    )
    parser.add_argument(
        "--datasource",
        default=None,
        help=f"MySQL datasource string (default: {DEFAULT_DATASOURCE})",
    )
    parser.add_argument(
        "--table",
        default=None,
        help="MySQL table name; all tables in the database when omitted",
    )
    parser.add_argument(
        "--database",
        default=None,
        help="MySQL database to introspect (default: the datasource's database)",
    )
    parser.add_argument(
        "--dir",
        default=None,
        help="Output directory, created if missing (default: current directory)",
    )
    parser.add_argument(
        "--model",
        default=None,
        help="Go package name for generated files (default: model)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML file with default values for any of these options",
    )
    parser.add_argument(
        "--nullable-types",
        action="store_true",
        default=None,
        help="Use sql.Null* types for nullable columns",
    )
    parser.add_argument(
        "--json-tag-source",
        choices=[source.value for source in JsonTagSource],
        default=None,
        help="Derive json tags from the raw column name or the field identifier",
    )
    parser.add_argument(
        "--pk-not-null-from-column",
        action="store_true",
        default=None,
        help="Tag primary keys NOT NULL from the nullability column",
    )
    parser.add_argument(
        "--error-policy",
        choices=[policy.value for policy in ErrorPolicy],
        default=None,
        help="Stop at the first failing table or report all failures at the end",
    )
    parser.add_argument(
        "--no-format",
        dest="format",
        action="store_false",
        default=None,
        help="Skip gofmt on generated files",
    )
    parser.add_argument(
        "--dialect",
        choices=sorted(DIALECTS),
        default=None,
        help=f"Output language (default: {GO_DIALECT.name})",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = resolve_settings(vars(args), args.config)
        emitter = Emitter(
            dialect=DIALECTS[settings["dialect"]],
            format_source=settings["format"],
        )

        with CatalogReader.connect(settings["datasource"]) as catalog:
            database = settings["database"] or catalog.default_database
            if not database:
                raise ConfigError(
                    "no database selected; pass --database or name one in --datasource"
                )
            report = generate(
                catalog,
                database,
                table=settings["table"] or None,
                package=settings["model"],
                output_dir=settings["dir"] or None,
                options=mapping_options(settings),
                emitter=emitter,
                error_policy=ErrorPolicy(settings["error_policy"]),
            )
    except GeneratorError as e:
        if e.completed is not None:
            print(f"Aborted after {e.completed} table(s)")
        raise SystemExit(f"Error: {e}") from e

    print(f"Generated {report.count} struct file(s) from database '{database}'")

    if not report.ok:
        for failure in report.failures:
            print(f"  failed {failure.table}: {failure.error}")
        raise SystemExit(f"Error: {len(report.failures)} table(s) failed")


if __name__ == "__main__":
    main()
