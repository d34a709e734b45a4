"""Utilities for file operations."""
import hashlib
from typing import Union

from loguru import logger

from org_sql.exceptions import OrgSqlError


class FileError(OrgSqlError):
    """Base exception for file operations."""
    pass


class ParseError(FileError):
    """Raised when parsing file content fails."""
    pass


async def compute_checksum(content: Union[str, bytes]) -> str:
    """
    Compute the MD5 checksum of content.

    Args:
        content: Text or raw file bytes to hash; text is hashed as UTF-8

    Returns:
        MD5 hex digest

    Raises:
        FileError: If checksum computation fails
    """
    try:
        if isinstance(content, str):
            content = content.encode()
        return hashlib.md5(content).hexdigest()
    except Exception as e:
        logger.error(f"Failed to compute checksum: {e}")
        raise FileError(f"Failed to compute checksum: {e}")

