"""Database commands for org-sql."""

import asyncio
from typing import Any, Dict, List

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table as RichTable

from org_sql import db
from org_sql.cli.app import app, get_config
from org_sql.exceptions import SchemaError
from org_sql.schema import SCHEMA
from org_sql.sql import compile_select

console = Console()


async def run_init() -> bool:
    config = get_config()
    async with db.engine_context(config, init=False) as engine:
        return await db.init_db(engine, config.database_backend)


async def run_reset() -> None:
    config = get_config()
    async with db.engine_context(config, init=False) as engine:
        await db.reset_db(engine, config.database_backend)


async def run_dump(table: str) -> List[Dict[str, Any]]:
    config = get_config()
    sql = compile_select(config.database_backend, table)
    async with db.engine_context(config) as engine:
        return await db.fetch_rows(engine, sql)


@app.command()
def init() -> None:
    """Create the org-sql tables."""
    try:
        created = asyncio.run(run_init())
        if created:
            console.print(f"[green]Created {len(SCHEMA.tables)} tables[/green]")
        else:
            console.print("[yellow]Database already initialized[/yellow]")

    except Exception as e:
        logger.exception("Init failed")
        typer.echo(f"Error initializing database: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def reset(
    force: bool = typer.Option(False, "--force", "-f", help="Do not ask for confirmation."),
) -> None:
    """Drop and recreate all org-sql tables."""
    if not force and not typer.confirm("This deletes all stored org data. Continue?"):
        raise typer.Exit(1)
    try:
        asyncio.run(run_reset())
        console.print("[green]Database reset[/green]")

    except Exception as e:
        logger.exception("Reset failed")
        typer.echo(f"Error resetting database: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def dump(table: str = typer.Argument(..., help="Table to print.")) -> None:
    """Print the rows of one table."""
    try:
        rows = asyncio.run(run_dump(table))
    except SchemaError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)
    except Exception as e:
        logger.exception("Dump failed")
        typer.echo(f"Error reading {table}: {e}", err=True)
        raise typer.Exit(1)

    output = RichTable(title=table)
    for column in SCHEMA.get_table(table).column_names:
        output.add_column(column)
    for row in rows:
        output.add_row(*("" if v is None else str(v) for v in row.values()))
    console.print(output)
