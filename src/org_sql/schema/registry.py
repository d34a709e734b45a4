"""Pydantic models for the schema registry.

The registry is plain data: tables, their columns and constraints. The type
formatter and statement compiler are its only consumers.
"""

from enum import Enum
from typing import Iterator, Optional, Tuple

from pydantic import BaseModel, ConfigDict, model_validator

from org_sql.exceptions import SchemaError


class ColumnType(str, Enum):
    """Semantic column types understood by the formatter."""

    BOOLEAN = "boolean"
    ENUM = "enum"
    INTEGER = "integer"
    TEXT = "text"


class Column(BaseModel):
    """A single table column."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: ColumnType
    description: str = ""
    not_null: bool = False
    allowed: Tuple[str, ...] = ()

    @model_validator(mode="after")
    def check_allowed(self) -> "Column":
        if self.type == ColumnType.ENUM and not self.allowed:
            raise ValueError(f"enum column {self.name} must declare allowed values")
        return self


class ForeignKey(BaseModel):
    """A foreign key constraint with its cascade actions."""

    model_config = ConfigDict(frozen=True)

    columns: Tuple[str, ...]
    parent: str
    parent_columns: Tuple[str, ...]
    on_delete: str = "CASCADE"
    on_update: str = "CASCADE"


class Table(BaseModel):
    """A table with ordered columns, a primary key and foreign keys."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    columns: Tuple[Column, ...]
    primary_key: Tuple[str, ...]
    foreign_keys: Tuple[ForeignKey, ...] = ()

    @model_validator(mode="after")
    def check_constraints(self) -> "Table":
        names = set(self.column_names)
        for name in self.primary_key:
            if name not in names:
                raise ValueError(f"primary key column {name} not in table {self.name}")
        for fk in self.foreign_keys:
            for name in fk.columns:
                if name not in names:
                    raise ValueError(f"foreign key column {name} not in table {self.name}")
        return self

    @property
    def column_names(self) -> Tuple[str, ...]:
        return tuple(c.name for c in self.columns)

    def get_column(self, name: str) -> Column:
        """Look up a column by name.

        Raises:
            SchemaError: If the column is not declared
        """
        for column in self.columns:
            if column.name == name:
                return column
        raise SchemaError(f"Unknown column {name} in table {self.name}")


class Schema(BaseModel):
    """An ordered collection of tables; parents are declared before children."""

    model_config = ConfigDict(frozen=True)

    tables: Tuple[Table, ...]

    @model_validator(mode="after")
    def check_references(self) -> "Schema":
        seen = set()
        for table in self.tables:
            for fk in table.foreign_keys:
                if fk.parent not in seen:
                    raise ValueError(
                        f"table {table.name} references {fk.parent} before it is declared"
                    )
            seen.add(table.name)
        return self

    @property
    def table_names(self) -> Tuple[str, ...]:
        return tuple(t.name for t in self.tables)

    def get_table(self, name: str) -> Table:
        """Look up a table by name.

        Raises:
            SchemaError: If the table is not declared
        """
        for table in self.tables:
            if table.name == name:
                return table
        raise SchemaError(f"Unknown table {name}")

    def get_column(self, table: str, column: str) -> Column:
        return self.get_table(table).get_column(column)

    def enum_columns(self, table: Optional[str] = None) -> Iterator[Tuple[Table, Column]]:
        """Yield (table, column) for every enum column in declaration order."""
        tables = self.tables if table is None else (self.get_table(table),)
        for t in tables:
            for column in t.columns:
                if column.type == ColumnType.ENUM:
                    yield t, column
