"""Service for finding org files and their checksums on disk."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Sequence

from loguru import logger

from org_sql.file_utils import compute_checksum
from org_sql.sync.utils import FileMeta

ORG_EXTENSION = ".org"


@dataclass
class ScanResult:
    """Result of scanning directories."""

    files: List[FileMeta] = field(default_factory=list)
    # file_path -> error message
    errors: Dict[str, str] = field(default_factory=dict)


class FileScanner:
    """
    Finds org files below a set of directories.
    The filesystem is treated as the source of truth.
    """

    def __init__(self, extension: str = ORG_EXTENSION):
        self.extension = extension

    def is_org_file(self, path: Path) -> bool:
        return path.is_file() and path.name.endswith(self.extension)

    async def scan_file(self, path: Path) -> FileMeta:
        """Hash the raw bytes of one file and return its identity record."""
        content = path.read_bytes()
        checksum = await compute_checksum(content)
        return FileMeta(hash=checksum, disk_path=str(path), size=len(content))

    async def scan_directory(self, directory: Path, result: ScanResult) -> None:
        """
        Add the org files below a directory to result.
        Only processes .org files, logs and skips others.

        Args:
            directory: Directory to scan
            result: ScanResult collecting found files and any errors
        """
        logger.debug(f"Scanning directory: {directory}")

        if not directory.exists():
            logger.debug(f"Directory does not exist: {directory}")
            return

        for path in sorted(directory.rglob("*")):
            if not self.is_org_file(path):
                if path.is_file():
                    logger.debug(f"Skipping non-org file: {path}")
                continue

            try:
                result.files.append(await self.scan_file(path))
            except Exception as e:
                result.errors[str(path)] = str(e)
                logger.error(f"Failed to read {path}: {e}")

    async def scan_directories(self, paths: Sequence[Path]) -> ScanResult:
        """
        Scan directories (or single org files) for org files.

        Args:
            paths: Directories to search recursively, or individual files

        Returns:
            ScanResult containing found files and any errors
        """
        result = ScanResult()
        for path in paths:
            if path.is_file():
                try:
                    result.files.append(await self.scan_file(path))
                except Exception as e:
                    result.errors[str(path)] = str(e)
                    logger.error(f"Failed to read {path}: {e}")
            else:
                await self.scan_directory(path, result)

        logger.debug(f"Found {len(result.files)} org files")
        if result.errors:
            logger.warning(f"Encountered {len(result.errors)} errors while scanning")
        return result
