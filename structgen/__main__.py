#!/usr/bin/env python3
"""
structgen command line.

Usage:
    python -m structgen <command> [options]

Commands:
    generate    Generate Go model structs from a MySQL schema
    tables      List the tables of a MySQL schema

Examples:
    python -m structgen generate --datasource "root:secret@tcp(localhost:3306)/shop" --dir model
    python -m structgen generate --database shop --table order_items --nullable-types
    python -m structgen tables --datasource "root:@tcp(localhost:3306)/shop"
"""

from __future__ import annotations

import argparse
import sys


def cmd_generate(args: list[str]) -> int:
    """Generate Go model structs."""
    from structgen.db_codegen.main import main as generate_main
    try:
        generate_main(args)
        return 0
    except SystemExit as e:
        if e.code is None or isinstance(e.code, int):
            return e.code or 0
        print(e.code, file=sys.stderr)
        return 1


def cmd_tables(args: list[str]) -> int:
    """List the tables of a schema."""
    from structgen.shared import DEFAULT_DATASOURCE, CatalogReader, GeneratorError

    parser = argparse.ArgumentParser(
        prog="structgen tables",
        description="List the tables of a MySQL schema",
    )
    parser.add_argument("--datasource", default=DEFAULT_DATASOURCE)
    parser.add_argument("--database", default="")
    parsed = parser.parse_args(args)

    try:
        with CatalogReader.connect(parsed.datasource) as catalog:
            database = parsed.database or catalog.default_database or ""
            tables = catalog.list_tables(database)
    except GeneratorError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for table in tables:
        print(table)
    return 0


COMMANDS = {
    "generate": (cmd_generate, "Generate Go model structs from a MySQL schema"),
    "tables": (cmd_tables, "List the tables of a MySQL schema"),
}


def main() -> int:
    if len(sys.argv) < 2 or sys.argv[1] in ("-h", "--help"):
        print(__doc__)
        print("Available commands:")
        for name, (_, desc) in COMMANDS.items():
            print(f"  {name:12} {desc}")
        print("\nUse '<command> --help' for command-specific options.")
        return 0

    command = sys.argv[1]
    args = sys.argv[2:]

    if command not in COMMANDS:
        print(f"Unknown command: {command}")
        print(f"Available commands: {', '.join(COMMANDS.keys())}")
        return 1

    handler, _ = COMMANDS[command]
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
