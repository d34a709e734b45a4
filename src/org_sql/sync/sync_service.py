"""Service for syncing org files with the database."""

from pathlib import Path
from typing import List, Optional, Sequence

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine

from org_sql.config import Dialect, OrgSqlConfig
from org_sql.db import execute_statements, get_store_files
from org_sql.outline import OutlineMapper, OutlineParser, RowSet
from org_sql.sql import compile_delete, compile_inserts, compile_update
from org_sql.sync.classifier import classify_files
from org_sql.sync.file_scanner import FileScanner, ScanResult
from org_sql.sync.utils import FileMeta, SyncReport

MOVE_SUFFIX = ".org-sql-move-"


class SyncService:
    """Syncs org files on disk with the database.

    Without an engine the store is treated as empty, which lets the service
    build a full import script for an unreachable or not yet created database.
    """

    def __init__(
        self,
        scanner: FileScanner,
        parser: OutlineParser,
        mapper: OutlineMapper,
        dialect: Dialect,
        engine: Optional[AsyncEngine] = None,
    ):
        self.scanner = scanner
        self.parser = parser
        self.mapper = mapper
        self.dialect = Dialect(dialect)
        self.engine = engine

    @classmethod
    def from_config(
        cls, config: OrgSqlConfig, engine: Optional[AsyncEngine] = None
    ) -> "SyncService":
        return cls(
            scanner=FileScanner(),
            parser=OutlineParser.from_config(config.mapper),
            mapper=OutlineMapper(config.mapper),
            dialect=config.database_backend,
            engine=engine,
        )

    async def find_changes(self, paths: Sequence[Path]) -> SyncReport:
        """Compare the org files below paths with the stored files."""
        scan_result: ScanResult = await self.scanner.scan_directories(paths)
        if scan_result.errors:
            logger.warning("Files skipped due to errors:")
            for file_path, error in scan_result.errors.items():
                logger.warning(f"  {file_path}: {error}")

        store = await get_store_files(self.engine, self.dialect) if self.engine else []
        return classify_files(scan_result.files, store)

    async def map_file(self, meta: FileMeta) -> RowSet:
        """Parse a file on disk and map it to rows."""
        try:
            document = await self.parser.parse_file(Path(meta.disk_path))
            return self.mapper.map_document(document, meta.disk_path, meta.hash, meta.size)
        except Exception as e:
            logger.error(f"Failed to sync {meta.disk_path}: {e}")
            raise

    async def build_statements(self, report: SyncReport) -> List[str]:
        """
        Compile the statements applying a report.

        Deletes come first, then renames of moved files, then inserts. Child
        rows follow their ``files`` row through cascading foreign keys.

        Renames run in two passes through temporary paths, so a move onto a
        path still held by another moved file (a chain or a swap) never
        collides with it.
        """
        statements = [
            compile_delete(self.dialect, "files", {"file_path": meta.store_path})
            for meta in report.delete
        ]
        moves = [
            (meta, f"{meta.store_path}{MOVE_SUFFIX}{n}")
            for n, meta in enumerate(report.update)
        ]
        statements.extend(
            compile_update(
                self.dialect, "files", {"file_path": temp}, {"file_path": meta.store_path}
            )
            for meta, temp in moves
        )
        statements.extend(
            compile_update(
                self.dialect, "files", {"file_path": meta.disk_path}, {"file_path": temp}
            )
            for meta, temp in moves
        )
        for meta in report.insert:
            logger.debug(f"Mapping file: {meta.disk_path}")
            statements.extend(compile_inserts(self.dialect, await self.map_file(meta)))
        return statements

    async def sync(self, paths: Sequence[Path]) -> SyncReport:
        """Sync all org files below paths with the database."""
        if self.engine is None:
            raise ValueError("SyncService.sync needs a database engine")

        changes = await self.find_changes(paths)
        logger.info(f"Found {changes.total_changes} changes")

        statements = await self.build_statements(changes)
        if statements:
            await execute_statements(self.engine, statements)
        logger.info(
            f"Synced: {len(changes.insert)} inserted, {len(changes.update)} moved, "
            f"{len(changes.delete)} deleted, {len(changes.noop)} unchanged"
        )
        return changes
