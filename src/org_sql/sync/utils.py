"""Types and utilities for file sync."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class FileMeta:
    """Identity of one org file on disk, in the store, or both.

    Attributes:
        hash: MD5 of the file contents, the join key between both sides
        disk_path: Path of the file on disk, None for store-only records
        store_path: ``files.file_path`` of the stored record, None for disk-only records
        size: Size in bytes, when known
    """

    hash: str
    disk_path: Optional[str] = None
    store_path: Optional[str] = None
    size: Optional[int] = None

    @property
    def path(self) -> str:
        """The disk path if there is one, else the store path."""
        return self.disk_path or self.store_path

    @property
    def is_move(self) -> bool:
        return (
            self.disk_path is not None
            and self.store_path is not None
            and self.disk_path != self.store_path
        )


@dataclass
class SyncReport:
    """Report of file changes found compared to database state.

    Attributes:
        insert: Files on disk whose content is not in the store
        update: Files whose content is stored under another path (both paths set)
        delete: Stored files whose content is no longer on disk
        noop: Files stored under the same path with the same content
    """

    insert: List[FileMeta] = field(default_factory=list)
    update: List[FileMeta] = field(default_factory=list)
    delete: List[FileMeta] = field(default_factory=list)
    noop: List[FileMeta] = field(default_factory=list)

    @property
    def total_changes(self) -> int:
        """Total number of files that need attention."""
        return len(self.insert) + len(self.update) + len(self.delete)
