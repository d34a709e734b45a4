"""Tests for the schema registry."""

import pytest
from pydantic import ValidationError

from org_sql.exceptions import SchemaError
from org_sql.schema import SCHEMA, Column, ColumnType, ForeignKey, Schema, Table


def test_schema_declares_parents_first():
    seen = set()
    for table in SCHEMA.tables:
        for fk in table.foreign_keys:
            assert fk.parent in seen
        seen.add(table.name)


def test_every_table_hangs_off_files():
    for table in SCHEMA.tables:
        assert table.columns[0].name == "file_path"
        assert "file_path" in table.primary_key


def test_foreign_keys_cascade():
    for table in SCHEMA.tables:
        for fk in table.foreign_keys:
            assert fk.on_delete == "CASCADE"
            assert fk.on_update == "CASCADE"


def test_get_table_and_column():
    headlines = SCHEMA.get_table("headlines")
    assert headlines.primary_key == ("file_path", "headline_offset")
    assert SCHEMA.get_column("headlines", "is_archived").type == ColumnType.BOOLEAN


def test_unknown_names_raise_schema_error():
    with pytest.raises(SchemaError):
        SCHEMA.get_table("nope")
    with pytest.raises(SchemaError):
        SCHEMA.get_column("headlines", "nope")


def test_enum_columns_in_declaration_order():
    names = [(t.name, c.name) for t, c in SCHEMA.enum_columns()]
    assert names == [
        ("timestamps", "warning_type"),
        ("timestamps", "warning_unit"),
        ("timestamps", "repeat_type"),
        ("timestamps", "repeat_unit"),
        ("planning_entries", "planning_type"),
    ]
    assert list(SCHEMA.enum_columns("files")) == []


def test_enum_column_requires_allowed_values():
    with pytest.raises(ValidationError):
        Column(name="kind", type=ColumnType.ENUM)


def test_table_rejects_unknown_key_columns():
    column = Column(name="a", type=ColumnType.TEXT)
    with pytest.raises(ValidationError):
        Table(name="t", columns=(column,), primary_key=("b",))
    with pytest.raises(ValidationError):
        Table(
            name="t",
            columns=(column,),
            primary_key=("a",),
            foreign_keys=(ForeignKey(columns=("b",), parent="p", parent_columns=("b",)),),
        )


def test_schema_rejects_forward_references():
    parent = Table(
        name="parent", columns=(Column(name="a", type=ColumnType.TEXT),), primary_key=("a",)
    )
    child = Table(
        name="child",
        columns=(Column(name="a", type=ColumnType.TEXT),),
        primary_key=("a",),
        foreign_keys=(ForeignKey(columns=("a",), parent="parent", parent_columns=("a",)),),
    )
    assert Schema(tables=(parent, child)).table_names == ("parent", "child")
    with pytest.raises(ValidationError):
        Schema(tables=(child, parent))
