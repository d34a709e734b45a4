"""Main CLI entry point for org-sql."""  # pragma: no cover

from org_sql.cli.app import app, get_config  # pragma: no cover
from org_sql.utils import setup_logging  # pragma: no cover

# Register commands
from org_sql.cli.commands import database, sync  # pragma: no cover

__all__ = ["app", "database", "sync"]  # pragma: no cover


# Set up logging when module is imported
setup_logging(log_file=".org-sql/org-sql-cli.log", level=get_config().log_level)  # pragma: no cover

if __name__ == "__main__":  # pragma: no cover
    app()
