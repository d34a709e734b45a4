"""Partition disk and store files by content hash."""

from typing import Dict, List, Sequence, Tuple

from loguru import logger

from org_sql.sync.utils import FileMeta, SyncReport


def _group_by_hash(
    disk: Sequence[FileMeta], store: Sequence[FileMeta]
) -> Dict[str, Tuple[List[FileMeta], List[FileMeta]]]:
    groups: Dict[str, Tuple[List[FileMeta], List[FileMeta]]] = {}
    for meta in disk:
        groups.setdefault(meta.hash, ([], []))[0].append(meta)
    for meta in store:
        groups.setdefault(meta.hash, ([], []))[1].append(meta)
    return groups


def classify_files(disk: Sequence[FileMeta], store: Sequence[FileMeta]) -> SyncReport:
    """
    Decide what to do with every file on either side.

    A hash found only on disk is inserted, one found only in the store is
    deleted. When both sides have it, the same path is a no-op and a different
    path is an update (the file moved). If a hash occurs several times, exact
    path matches pair first and the rest pair up in input order; unpaired
    items fall back to insert or delete.

    Callers should apply deletes, then updates, then inserts, so that a file
    edited in place (deleted under its old hash, inserted under its new one)
    never collides with itself.

    Args:
        disk: Files found on disk, with ``disk_path`` set
        store: Files recorded in the store, with ``store_path`` set

    Returns:
        SyncReport in which every input item appears exactly once
    """
    report = SyncReport()
    for file_hash, (on_disk, in_store) in _group_by_hash(disk, store).items():
        unmatched_store = list(in_store)
        unmatched_disk = []
        for d in on_disk:
            same = next((s for s in unmatched_store if s.store_path == d.disk_path), None)
            if same is None:
                unmatched_disk.append(d)
                continue
            unmatched_store.remove(same)
            report.noop.append(
                FileMeta(hash=file_hash, disk_path=d.disk_path, store_path=same.store_path, size=d.size)
            )

        for d, s in zip(unmatched_disk, unmatched_store):
            report.update.append(
                FileMeta(hash=file_hash, disk_path=d.disk_path, store_path=s.store_path, size=d.size)
            )
        paired = min(len(unmatched_disk), len(unmatched_store))
        report.insert.extend(unmatched_disk[paired:])
        report.delete.extend(unmatched_store[paired:])

    logger.debug(f"Changes found: {report.total_changes}")
    logger.debug(f"  Insert: {len(report.insert)}")
    logger.debug(f"  Update: {len(report.update)}")
    logger.debug(f"  Delete: {len(report.delete)}")
    return report
