from typing import Optional

import typer

from org_sql.config import OrgSqlConfig


def get_config() -> OrgSqlConfig:
    """Load configuration from the environment and ``.env``."""
    return OrgSqlConfig()


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        import org_sql

        config = get_config()
        typer.echo(f"org-sql version: {org_sql.__version__}")
        typer.echo(f"Database backend: {config.database_backend.value}")
        typer.echo(f"Home: {config.home}")
        raise typer.Exit()


app = typer.Typer(name="org-sql")


@app.callback()
def app_callback(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """org-sql - Mirror org-mode files into a SQL database."""
