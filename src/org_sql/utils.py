"""Utility functions for org-sql."""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger


def setup_logging(
    log_file: Optional[str] = None,
    level: str = "INFO",
    console: bool = True,
) -> None:
    """
    Configure loguru sinks for org-sql.

    Args:
        log_file: Path relative to the home directory for a rotating log file
        level: Minimum level for all sinks
        console: Also log to stderr
    """
    logger.remove()

    if console:
        logger.add(sys.stderr, level=level, backtrace=True, diagnose=False, colorize=True)

    if log_file:
        log_path = Path.home() / log_file
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_path),
            level=level,
            rotation="10 MB",
            retention="10 days",
            backtrace=True,
            diagnose=False,
            enqueue=True,
        )


def parse_duration(value: Optional[str]) -> Optional[int]:
    """Convert an org duration (``H:MM`` or plain minutes) to minutes.

    Examples:
        >>> parse_duration("1:30")
        90
        >>> parse_duration("45")
        45
    """
    if value is None:
        return None
    value = value.strip()
    if ":" in value:
        hours, _, minutes = value.partition(":")
        if hours.isdigit() and minutes.isdigit():
            return int(hours) * 60 + int(minutes)
        return None
    if value.isdigit():
        return int(value)
    return None
