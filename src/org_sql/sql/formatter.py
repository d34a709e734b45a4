"""Render values and column types as dialect-specific SQL text.

Every rule here is a total function of (dialect, semantic type, value).
"""

from typing import Any

from org_sql.config import Dialect
from org_sql.exceptions import SchemaError
from org_sql.schema.registry import Column, ColumnType, Table

NEWLINE_FUNCTIONS = {
    Dialect.SQLITE: "char(10)",
    Dialect.POSTGRES: "chr(10)",
}

BOOLEAN_LITERALS = {
    Dialect.SQLITE: ("1", "0"),
    Dialect.POSTGRES: ("TRUE", "FALSE"),
}


def enum_type_name(table: Table, column: Column) -> str:
    """Name of the postgres enum type backing an enum column."""
    return f"enum_{table.name}_{column.name}"


def quote_string(value: str) -> str:
    """Single-quote a string that contains no newlines."""
    return "'" + value.replace("'", "''") + "'"


def format_text(dialect: Dialect, value: str) -> str:
    """Quote text, splicing newlines in with the dialect's char function.

    Examples:
        >>> format_text(Dialect.SQLITE, "foo\\nbar")
        "'foo'||char(10)||'bar'"
    """
    newline = NEWLINE_FUNCTIONS[Dialect(dialect)]
    return f"||{newline}||".join(quote_string(s) for s in value.split("\n"))


def format_value(dialect: Dialect, column: Column, value: Any) -> str:
    """
    Render a python value as a SQL literal for a column.

    Args:
        dialect: Target dialect
        column: Column the value is destined for
        value: Python value, None for NULL

    Returns:
        SQL literal text

    Raises:
        SchemaError: If an enum value is not allowed or the value has the wrong type
    """
    dialect = Dialect(dialect)
    if value is None:
        return "NULL"

    if column.type == ColumnType.BOOLEAN:
        true, false = BOOLEAN_LITERALS[dialect]
        return true if value else false

    if column.type == ColumnType.ENUM:
        if value not in column.allowed:
            raise SchemaError(
                f"Value {value!r} not allowed for column {column.name}: {column.allowed}"
            )
        return quote_string(str(value))

    if column.type == ColumnType.INTEGER:
        if not isinstance(value, int):
            raise SchemaError(f"Expected integer for column {column.name}, got {value!r}")
        return str(int(value))

    if not isinstance(value, str):
        raise SchemaError(f"Expected text for column {column.name}, got {value!r}")
    return format_text(dialect, value)


def format_type(dialect: Dialect, table: Table, column: Column) -> str:
    """Render the DDL type name of a column."""
    dialect = Dialect(dialect)
    if dialect == Dialect.SQLITE:
        if column.type in (ColumnType.BOOLEAN, ColumnType.INTEGER):
            return "INTEGER"
        # enums are stored as text and constrained with a CHECK clause
        return "TEXT"

    if column.type == ColumnType.BOOLEAN:
        return "BOOLEAN"
    if column.type == ColumnType.INTEGER:
        return "INTEGER"
    if column.type == ColumnType.ENUM:
        return enum_type_name(table, column)
    return "TEXT"
