"""Schema registry describing the org-sql tables."""

from org_sql.schema.registry import Column, ColumnType, ForeignKey, Schema, Table
from org_sql.schema.tables import SCHEMA

__all__ = [
    "Column",
    "ColumnType",
    "ForeignKey",
    "Schema",
    "Table",
    "SCHEMA",
]
