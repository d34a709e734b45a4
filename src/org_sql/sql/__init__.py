"""SQL generation for org-sql."""

from org_sql.config import Dialect
from org_sql.sql.compiler import (
    compile_create_schema,
    compile_delete,
    compile_drop_schema,
    compile_insert,
    compile_inserts,
    compile_select,
    compile_statement,
    compile_transaction,
    compile_update,
)
from org_sql.sql.formatter import format_type, format_value
from org_sql.sql.statements import Delete, Insert, Select, Update

__all__ = [
    "Dialect",
    "Delete",
    "Insert",
    "Select",
    "Update",
    "compile_create_schema",
    "compile_delete",
    "compile_drop_schema",
    "compile_insert",
    "compile_inserts",
    "compile_select",
    "compile_statement",
    "compile_transaction",
    "compile_update",
    "format_type",
    "format_value",
]
