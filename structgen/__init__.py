"""Generate Go model structs from MySQL catalog metadata."""

__version__ = "0.1.0"
