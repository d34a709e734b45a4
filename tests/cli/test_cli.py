"""Tests for the org-sql command line."""

from io import StringIO
from pathlib import Path

import pytest
from rich.console import Console
from typer.testing import CliRunner

import org_sql.cli.commands  # noqa: F401  registers commands
from org_sql.cli.app import app
from org_sql.cli.commands import sync as sync_commands
from org_sql.sync.utils import FileMeta, SyncReport

runner = CliRunner()


@pytest.fixture
def cli_env(config_home, monkeypatch) -> Path:
    """Wide terminal so rich does not wrap table cells."""
    monkeypatch.setenv("COLUMNS", "250")
    return config_home


@pytest.fixture
def console(monkeypatch):
    """Create test console that captures output."""
    output = StringIO()
    monkeypatch.setattr(sync_commands, "console", Console(file=output, width=200))
    return output


def test_version(cli_env):
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "org-sql version" in result.stdout


def test_init(cli_env):
    result = runner.invoke(app, ["init"])
    assert result.exit_code == 0
    assert "Created 15 tables" in result.stdout

    result = runner.invoke(app, ["init"])
    assert result.exit_code == 0
    assert "already initialized" in result.stdout


def test_push_and_dump(cli_env, org_dir: Path):
    (org_dir / "todo.org").write_text("* TODO hello\n")

    result = runner.invoke(app, ["push", str(org_dir)])
    assert result.exit_code == 0
    assert "Synced 1 files" in result.stdout

    result = runner.invoke(app, ["push", str(org_dir)])
    assert "Everything up to date" in result.stdout

    result = runner.invoke(app, ["dump", "headlines"])
    assert result.exit_code == 0
    assert "hello" in result.stdout


def test_dump_unknown_table(cli_env):
    result = runner.invoke(app, ["dump", "nope"])
    assert result.exit_code == 1


def test_sql_prints_transaction(cli_env, org_dir: Path):
    (org_dir / "todo.org").write_text("* TODO hello\n")

    result = runner.invoke(app, ["sql", str(org_dir)])
    assert result.exit_code == 0
    lines = result.stdout.splitlines()
    assert lines[0] == "PRAGMA foreign_keys = ON;"
    assert lines[1] == "BEGIN TRANSACTION;"
    assert lines[2].startswith("INSERT INTO files ")
    assert lines[-1] == "COMMIT;"


def test_paths_required(cli_env):
    result = runner.invoke(app, ["sql"])
    assert result.exit_code == 1


def test_status(cli_env, org_dir: Path):
    (org_dir / "todo.org").write_text("* TODO hello\n")
    result = runner.invoke(app, ["status", str(org_dir)])
    assert result.exit_code == 0
    assert "New" in result.stdout


def test_reset(cli_env):
    result = runner.invoke(app, ["reset", "--force"])
    assert result.exit_code == 0
    assert "Database reset" in result.stdout

    result = runner.invoke(app, ["reset"], input="n\n")
    assert result.exit_code == 1


def test_display_summary(console):
    report = SyncReport(
        insert=[FileMeta(hash="aaaaaaaaaa", disk_path="new.org")],
        update=[FileMeta(hash="bbbbbbbbbb", disk_path="b.org", store_path="old-b.org")],
    )
    sync_commands.display_sync_summary(report)
    assert "Synced 2 files (1 new, 1 moved)" in console.getvalue()


def test_display_tree(console):
    report = SyncReport(
        update=[FileMeta(hash="bbbbbbbbbb", disk_path="b.org", store_path="old-b.org")],
        delete=[FileMeta(hash="cccccccccc", store_path="gone.org")],
    )
    sync_commands.display_sync_tree(report)
    output = console.getvalue()
    assert "b.org (bbbbbbbb) (from old-b.org)" in output
    assert "gone.org (cccccccc)" in output

    sync_commands.display_sync_tree(SyncReport())
    assert "Everything up to date" in console.getvalue()
