"""org-sql - store org-mode outlines in a SQL database."""

__version__ = "0.1.0"
