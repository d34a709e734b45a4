"""Compile statements and the schema into dialect-specific SQL text.

All functions are pure given the schema registry. Referencing a table, column
or enum value the registry does not declare raises SchemaError; rows handed
to the compiler are produced by this package, never by users.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from loguru import logger

from org_sql.config import Dialect
from org_sql.exceptions import SchemaError
from org_sql.schema import SCHEMA, Schema, Table
from org_sql.schema.registry import Column, ColumnType
from org_sql.sql.formatter import enum_type_name, format_type, format_value, quote_string
from org_sql.sql.statements import Delete, Insert, Select, Update


def _columns(table: Table, names) -> List[Column]:
    """Validate names against the table and return columns in schema order."""
    wanted = set(names)
    for name in wanted:
        table.get_column(name)
    return [c for c in table.columns if c.name in wanted]


def _assignments(dialect: Dialect, table: Table, pairs: Dict[str, Any]) -> List[str]:
    return [f"{c.name}={format_value(dialect, c, pairs[c.name])}" for c in _columns(table, pairs)]


def _where(dialect: Dialect, table: Table, where: Optional[Dict[str, Any]]) -> str:
    if not where:
        return ""
    clauses = []
    for column in _columns(table, where):
        value = where[column.name]
        if value is None:
            clauses.append(f"{column.name} IS NULL")
        else:
            clauses.append(f"{column.name}={format_value(dialect, column, value)}")
    return " WHERE " + " AND ".join(clauses)


def compile_insert(
    dialect: Dialect, table: str, values: Dict[str, Any], schema: Schema = SCHEMA
) -> str:
    """
    Compile an INSERT statement.

    Columns are emitted in schema-declared order regardless of the order of
    ``values``.

    Examples:
        >>> compile_insert("sqlite", "files", {"size": 1, "file_path": "a.org", "md5": "x"})
        "INSERT INTO files (file_path,md5,size) VALUES ('a.org','x',1);"
    """
    t = schema.get_table(table)
    if not values:
        raise SchemaError(f"INSERT into {table} needs at least one column")
    columns = _columns(t, values)
    names = ",".join(c.name for c in columns)
    formatted = ",".join(format_value(dialect, c, values[c.name]) for c in columns)
    return f"INSERT INTO {t.name} ({names}) VALUES ({formatted});"


def compile_update(
    dialect: Dialect,
    table: str,
    set_values: Dict[str, Any],
    where: Optional[Dict[str, Any]] = None,
    schema: Schema = SCHEMA,
) -> str:
    """Compile an UPDATE statement; the WHERE clause is omitted when empty."""
    t = schema.get_table(table)
    if not set_values:
        raise SchemaError(f"UPDATE of {table} needs at least one column")
    assignments = ",".join(_assignments(dialect, t, set_values))
    return f"UPDATE {t.name} SET {assignments}{_where(dialect, t, where)};"


def compile_delete(
    dialect: Dialect,
    table: str,
    where: Optional[Dict[str, Any]] = None,
    schema: Schema = SCHEMA,
) -> str:
    """Compile a DELETE statement."""
    t = schema.get_table(table)
    return f"DELETE FROM {t.name}{_where(dialect, t, where)};"


def compile_select(
    dialect: Dialect,
    table: str,
    columns: Optional[Sequence[str]] = None,
    where: Optional[Dict[str, Any]] = None,
    schema: Schema = SCHEMA,
) -> str:
    """Compile a SELECT statement, selecting ``*`` when no columns are given."""
    t = schema.get_table(table)
    selected = ",".join(c.name for c in _columns(t, columns)) if columns else "*"
    return f"SELECT {selected} FROM {t.name}{_where(dialect, t, where)};"


def compile_statement(dialect: Dialect, statement, schema: Schema = SCHEMA) -> str:
    """Compile any statement of the intermediate representation."""
    if isinstance(statement, Insert):
        return compile_insert(dialect, statement.table, statement.values, schema)
    if isinstance(statement, Update):
        return compile_update(dialect, statement.table, statement.set, statement.where, schema)
    if isinstance(statement, Delete):
        return compile_delete(dialect, statement.table, statement.where, schema)
    if isinstance(statement, Select):
        return compile_select(dialect, statement.table, statement.columns, statement.where, schema)
    raise TypeError(f"Cannot compile {statement!r}")


def compile_inserts(
    dialect: Dialect, rows: Mapping[str, Sequence[Dict[str, Any]]], schema: Schema = SCHEMA
) -> List[str]:
    """Compile a row set into INSERTs, parent tables first."""
    for name in rows:
        schema.get_table(name)
    statements = []
    for table in schema.tables:
        for row in rows.get(table.name, ()):
            statements.append(compile_insert(dialect, table.name, row, schema))
    logger.debug(f"Compiled {len(statements)} insert statements")
    return statements


def _column_spec(dialect: Dialect, table: Table, column: Column) -> str:
    spec = f"{column.name} {format_type(dialect, table, column)}"
    if column.not_null:
        spec += " NOT NULL"
    if dialect == Dialect.SQLITE and column.type == ColumnType.ENUM:
        allowed = ",".join(quote_string(v) for v in column.allowed)
        spec += f" CHECK ({column.name} IN ({allowed}))"
    return spec


def compile_create_table(dialect: Dialect, table: Table) -> str:
    """Compile the CREATE TABLE statement for one table."""
    specs = [_column_spec(dialect, table, c) for c in table.columns]
    specs.append(f"PRIMARY KEY ({','.join(table.primary_key)})")
    for fk in table.foreign_keys:
        specs.append(
            f"FOREIGN KEY ({','.join(fk.columns)}) "
            f"REFERENCES {fk.parent} ({','.join(fk.parent_columns)}) "
            f"ON DELETE {fk.on_delete} ON UPDATE {fk.on_update}"
        )
    return f"CREATE TABLE IF NOT EXISTS {table.name} ({','.join(specs)});"


def compile_create_schema(dialect: Dialect, schema: Schema = SCHEMA) -> List[str]:
    """
    Compile the DDL for a whole schema.

    For postgres one ``CREATE TYPE ... AS ENUM`` is emitted per enum column,
    all before the first table.

    Returns:
        Statements in execution order
    """
    dialect = Dialect(dialect)
    statements = []
    if dialect == Dialect.POSTGRES:
        for table, column in schema.enum_columns():
            allowed = ",".join(quote_string(v) for v in column.allowed)
            statements.append(f"CREATE TYPE {enum_type_name(table, column)} AS ENUM ({allowed});")
    statements.extend(compile_create_table(dialect, t) for t in schema.tables)
    return statements


def compile_drop_schema(dialect: Dialect, schema: Schema = SCHEMA) -> List[str]:
    """Compile statements removing every table (children first) and enum type."""
    dialect = Dialect(dialect)
    statements = [f"DROP TABLE IF EXISTS {t.name};" for t in reversed(schema.tables)]
    if dialect == Dialect.POSTGRES:
        for table, column in schema.enum_columns():
            statements.append(f"DROP TYPE IF EXISTS {enum_type_name(table, column)};")
    return statements


def compile_transaction(dialect: Dialect, statements: Sequence[str]) -> str:
    """Wrap statements in a transaction.

    sqlite needs foreign keys switched on per connection, so its preamble
    starts with the pragma.
    """
    dialect = Dialect(dialect)
    preamble = ["BEGIN TRANSACTION;"]
    if dialect == Dialect.SQLITE:
        preamble.insert(0, "PRAGMA foreign_keys = ON;")
    return "\n".join([*preamble, *statements, "COMMIT;"])
