"""Tests for the statement compiler."""

import pytest

from org_sql.config import Dialect
from org_sql.exceptions import SchemaError
from org_sql.sql import (
    Delete,
    Insert,
    Select,
    Update,
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


def test_insert_uses_schema_column_order():
    sql = compile_insert(Dialect.SQLITE, "files", {"size": 1, "file_path": "a.org", "md5": "x"})
    assert sql == "INSERT INTO files (file_path,md5,size) VALUES ('a.org','x',1);"


def test_insert_formats_per_dialect():
    row = {"file_path": "a.org", "headline_offset": 1, "tag": "x", "is_inherited": True}
    assert compile_insert(Dialect.POSTGRES, "headline_tags", row).endswith(
        "VALUES ('a.org',1,'x',TRUE);"
    )


def test_insert_needs_values():
    with pytest.raises(SchemaError):
        compile_insert(Dialect.SQLITE, "files", {})


def test_update():
    sql = compile_update(Dialect.SQLITE, "files", {"file_path": "b.org"}, {"file_path": "a.org"})
    assert sql == "UPDATE files SET file_path='b.org' WHERE file_path='a.org';"
    assert compile_update(Dialect.SQLITE, "files", {"size": 2, "md5": "y"}) == (
        "UPDATE files SET md5='y',size=2;"
    )


def test_delete():
    assert compile_delete(Dialect.SQLITE, "files") == "DELETE FROM files;"
    assert compile_delete(Dialect.SQLITE, "files", {"file_path": "a.org", "size": 3}) == (
        "DELETE FROM files WHERE file_path='a.org' AND size=3;"
    )


def test_select():
    assert compile_select(Dialect.SQLITE, "files") == "SELECT * FROM files;"
    assert compile_select(Dialect.SQLITE, "files", ["md5", "file_path"]) == (
        "SELECT file_path,md5 FROM files;"
    )
    assert compile_select(Dialect.SQLITE, "headlines", ["headline_text"], {"keyword": None}) == (
        "SELECT headline_text FROM headlines WHERE keyword IS NULL;"
    )


def test_unknown_table_or_column():
    with pytest.raises(SchemaError):
        compile_select(Dialect.SQLITE, "nope")
    with pytest.raises(SchemaError):
        compile_insert(Dialect.SQLITE, "files", {"nope": 1})
    with pytest.raises(SchemaError):
        compile_delete(Dialect.SQLITE, "files", {"nope": 1})


def test_compile_statement_dispatch():
    assert compile_statement(Dialect.SQLITE, Insert("files", {"file_path": "a.org"})) == (
        "INSERT INTO files (file_path) VALUES ('a.org');"
    )
    assert compile_statement(Dialect.SQLITE, Update("files", {"size": 1})) == (
        "UPDATE files SET size=1;"
    )
    assert compile_statement(Dialect.SQLITE, Delete("files")) == "DELETE FROM files;"
    assert compile_statement(Dialect.SQLITE, Select("files", ("md5",))) == "SELECT md5 FROM files;"
    with pytest.raises(TypeError):
        compile_statement(Dialect.SQLITE, "DELETE FROM files;")


def test_compile_inserts_parents_first():
    rows = {
        "headlines": [
            {
                "file_path": "a.org",
                "headline_offset": 1,
                "headline_text": "x",
                "is_archived": False,
                "is_commented": False,
            }
        ],
        "files": [{"file_path": "a.org", "md5": "m", "size": 3}],
        "links": [],
    }
    statements = compile_inserts(Dialect.SQLITE, rows)
    assert len(statements) == 2
    assert statements[0].startswith("INSERT INTO files ")
    assert statements[1].startswith("INSERT INTO headlines ")


def test_create_table_sqlite():
    statements = compile_create_schema(Dialect.SQLITE)
    assert statements[0] == (
        "CREATE TABLE IF NOT EXISTS files "
        "(file_path TEXT NOT NULL,md5 TEXT NOT NULL,size INTEGER NOT NULL,PRIMARY KEY (file_path));"
    )
    planning = next(s for s in statements if "TABLE IF NOT EXISTS planning_entries" in s)
    assert (
        "planning_type TEXT NOT NULL CHECK (planning_type IN ('closed','deadline','scheduled'))"
        in planning
    )
    assert (
        "FOREIGN KEY (file_path,headline_offset) REFERENCES headlines (file_path,headline_offset) "
        "ON DELETE CASCADE ON UPDATE CASCADE" in planning
    )
    assert not any(s.startswith("CREATE TYPE") for s in statements)


def test_create_schema_postgres_types_first():
    statements = compile_create_schema(Dialect.POSTGRES)
    first_table = next(i for i, s in enumerate(statements) if s.startswith("CREATE TABLE"))
    types = [s for s in statements if s.startswith("CREATE TYPE")]
    assert len(types) == 5
    assert all(s.startswith("CREATE TYPE") for s in statements[:first_table])
    assert (
        "CREATE TYPE enum_planning_entries_planning_type AS ENUM ('closed','deadline','scheduled');"
        in types
    )
    planning = next(s for s in statements if "TABLE IF NOT EXISTS planning_entries" in s)
    assert "planning_type enum_planning_entries_planning_type NOT NULL" in planning


def test_drop_schema_children_first():
    sqlite = compile_drop_schema(Dialect.SQLITE)
    assert sqlite[0] == "DROP TABLE IF EXISTS planning_changes;"
    assert sqlite[-1] == "DROP TABLE IF EXISTS files;"

    postgres = compile_drop_schema(Dialect.POSTGRES)
    assert postgres[-1] == "DROP TYPE IF EXISTS enum_planning_entries_planning_type;"


def test_transaction():
    statements = ["DELETE FROM files;"]
    assert compile_transaction(Dialect.SQLITE, statements) == (
        "PRAGMA foreign_keys = ON;\nBEGIN TRANSACTION;\nDELETE FROM files;\nCOMMIT;"
    )
    assert compile_transaction(Dialect.POSTGRES, statements) == (
        "BEGIN TRANSACTION;\nDELETE FROM files;\nCOMMIT;"
    )
