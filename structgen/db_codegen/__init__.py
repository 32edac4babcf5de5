"""DB Code Generator - Generates Go model structs from MySQL catalog metadata."""

from .main import (
    FieldType,
    JsonTagSource,
    ErrorPolicy,
    MappingOptions,
    FieldDescriptor,
    RecordDefinition,
    Dialect,
    Emitter,
    GenerationReport,
    TableFailure,
    map_column,
    assemble_record,
    build_record,
    generate,
    TYPE_FAMILIES,
    GO_DIALECT,
    DIALECTS,
)

__all__ = [
    "FieldType",
    "JsonTagSource",
    "ErrorPolicy",
    "MappingOptions",
    "FieldDescriptor",
    "RecordDefinition",
    "Dialect",
    "Emitter",
    "GenerationReport",
    "TableFailure",
    "map_column",
    "assemble_record",
    "build_record",
    "generate",
    "TYPE_FAMILIES",
    "GO_DIALECT",
    "DIALECTS",
]
