"""Command module for org-sql sync operations."""

import asyncio
from pathlib import Path
from typing import List, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.tree import Tree

from org_sql import db
from org_sql.cli.app import app, get_config
from org_sql.config import OrgSqlConfig
from org_sql.sql import compile_transaction
from org_sql.sync.sync_service import SyncService
from org_sql.sync.utils import FileMeta, SyncReport

console = Console()

PATHS_ARGUMENT = typer.Argument(
    None, help="Org files or directories; defaults to the configured org_dirs."
)


def resolve_paths(config: OrgSqlConfig, paths: Optional[List[Path]]) -> List[Path]:
    """Use the given paths, falling back to the configured directories."""
    resolved = list(paths or config.org_dirs)
    if not resolved:
        typer.echo("No paths given and no org_dirs configured", err=True)
        raise typer.Exit(1)
    return resolved


def display_sync_summary(report: SyncReport) -> None:
    """Display a one-line summary of sync changes."""
    total_changes = report.total_changes
    if total_changes == 0:
        console.print("[green]Everything up to date[/green]")
        return

    # Format as: "Synced X files (A new, B moved, C deleted)"
    changes = []
    if report.insert:
        changes.append(f"[green]{len(report.insert)} new[/green]")
    if report.update:
        changes.append(f"[blue]{len(report.update)} moved[/blue]")
    if report.delete:
        changes.append(f"[red]{len(report.delete)} deleted[/red]")

    console.print(f"Synced {total_changes} files ({', '.join(changes)})")


def _add_files(tree: Tree, label: str, style: str, files: List[FileMeta]) -> None:
    if not files:
        return
    branch = tree.add(f"[{style}]{label}[/{style}]")
    for meta in sorted(files, key=lambda m: m.path):
        if meta.is_move:
            branch.add(f"[{style}]{meta.disk_path}[/{style}] ({meta.hash[:8]}) (from {meta.store_path})")
        else:
            branch.add(f"[{style}]{meta.path}[/{style}] ({meta.hash[:8]})")


def display_sync_tree(report: SyncReport, title: str = "Org Files") -> None:
    """Display the partitions of a sync report as a tree."""
    if report.total_changes == 0:
        console.print("\n[green]Everything up to date[/green]")
        return

    tree = Tree(f"[bold]{title}[/bold]")
    _add_files(tree, "New", "green", report.insert)
    _add_files(tree, "Moved", "blue", report.update)
    _add_files(tree, "Deleted", "red", report.delete)
    console.print(tree)


async def run_push(paths: Optional[List[Path]], verbose: bool = False) -> SyncReport:
    config = get_config()
    async with db.engine_context(config) as engine:
        sync_service = SyncService.from_config(config, engine)
        report = await sync_service.sync(resolve_paths(config, paths))

    if verbose:
        display_sync_tree(report, "Sync Results")
    else:
        display_sync_summary(report)
    return report


async def run_sql(paths: Optional[List[Path]]) -> str:
    config = get_config()
    sync_service = SyncService.from_config(config)
    report = await sync_service.find_changes(resolve_paths(config, paths))
    statements = await sync_service.build_statements(report)
    return compile_transaction(config.database_backend, statements)


async def run_status(paths: Optional[List[Path]]) -> SyncReport:
    config = get_config()
    async with db.engine_context(config) as engine:
        sync_service = SyncService.from_config(config, engine)
        report = await sync_service.find_changes(resolve_paths(config, paths))

    display_sync_tree(report, "Status")
    if report.noop:
        console.print(f"[dim]{len(report.noop)} unchanged[/dim]")
    return report


@app.command()
def push(
    paths: Optional[List[Path]] = PATHS_ARGUMENT,
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Show detailed sync information.",
    ),
) -> None:
    """Sync org files with the database."""
    try:
        asyncio.run(run_push(paths, verbose))

    except Exception as e:
        if not isinstance(e, typer.Exit):
            logger.exception("Sync failed")
            typer.echo(f"Error during sync: {e}", err=True)
            raise typer.Exit(1)
        raise


@app.command()
def sql(paths: Optional[List[Path]] = PATHS_ARGUMENT) -> None:
    """Print the SQL script importing org files into an empty database."""
    try:
        typer.echo(asyncio.run(run_sql(paths)))

    except Exception as e:
        if not isinstance(e, typer.Exit):
            logger.exception("Compiling SQL failed")
            typer.echo(f"Error compiling SQL: {e}", err=True)
            raise typer.Exit(1)
        raise


@app.command()
def status(paths: Optional[List[Path]] = PATHS_ARGUMENT) -> None:
    """Show which files a sync would insert, move or delete."""
    try:
        asyncio.run(run_status(paths))

    except Exception as e:
        if not isinstance(e, typer.Exit):
            logger.exception("Error checking status")
            typer.echo(f"Error checking status: {e}", err=True)
            raise typer.Exit(1)
        raise
