"""CLI commands for org-sql."""

from . import database, sync

__all__ = ["database", "sync"]
