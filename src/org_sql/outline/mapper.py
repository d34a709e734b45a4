"""Map a parsed outline document to relational rows.

The mapper walks the headline tree once, depth first, keeping a stack of the
currently open headlines. Closure rows and inherited tags both come from that
stack, so no parent references are stored and no second pass is needed.

Rows are plain dicts keyed by column name, grouped per table in source order,
ready for ``org_sql.sql.compile_inserts``.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

from loguru import logger

from org_sql.config import MapperConfig, is_excluded
from org_sql.exceptions import TimestampError
from org_sql.outline.logbook import (
    STATE_TYPE,
    ClockItem,
    LogbookClassifier,
    LogbookItem,
)
from org_sql.outline.schemas import DrawerEntry, Headline, OutlineDocument, Token
from org_sql.outline.timestamps import DecodedTimestamp, decode_timestamp
from org_sql.schema import SCHEMA, Schema
from org_sql.utils import parse_duration

ARCHIVE_TAG = "ARCHIVE"
EFFORT_PROPERTY = "Effort"

LINK_RE = re.compile(r"^\[\[(?P<target>[^\[\]]+)\](?:\[(?P<description>[^\[\]]*)\])?\]$")
SCHEME_RE = re.compile(r"^(?P<type>[A-Za-z][A-Za-z0-9+.-]*):(?P<path>.*)$", re.DOTALL)

Row = Dict[str, Any]
RowSet = Dict[str, List[Row]]


@dataclass
class _OpenHeadline:
    """An entry of the ancestor stack."""

    offset: int
    level: int
    tags: List[str]


def split_link(raw: str) -> Optional[Tuple[str, str, str]]:
    """
    Split a bracket link into (type, path, description).

    Examples:
        >>> split_link("[[https://orgmode.org][org]]")
        ('https', '//orgmode.org', 'org')
        >>> split_link("[[#intro]]")
        ('custom-id', 'intro', '')
    """
    m = LINK_RE.match(raw.strip())
    if not m:
        return None
    target = m.group("target").strip()
    description = m.group("description") or ""

    scheme = SCHEME_RE.match(target)
    if scheme:
        return scheme.group("type"), scheme.group("path"), description
    if target.startswith("#"):
        return "custom-id", target[1:], description
    if target.startswith("(") and target.endswith(")"):
        return "coderef", target[1:-1], description
    if target.startswith(("/", "./", "../", "~/")):
        return "file", target, description
    return "fuzzy", target, description


def _dedupe(values: List[str]) -> List[str]:
    """Drop repeated values, keeping source order."""
    return list(dict.fromkeys(values))


def _walk(headlines: List[Headline]) -> Iterator[Headline]:
    """Yield headlines depth first in document order."""
    pending = list(reversed(headlines))
    while pending:
        headline = pending.pop()
        yield headline
        pending.extend(reversed(headline.children))


class OutlineMapper:
    """Derives rows for every table of the schema from one outline document.

    Args:
        config: Row filters and logbook settings
        schema: Registry naming the tables to produce
    """

    def __init__(self, config: Optional[MapperConfig] = None, schema: Schema = SCHEMA):
        self.config = config or MapperConfig()
        self.schema = schema
        self.classifier = LogbookClassifier.from_config(self.config)

    def map_document(
        self, document: OutlineDocument, file_path: str, md5: str, size: int
    ) -> RowSet:
        """
        Produce the rows for one document.

        Args:
            document: Parsed outline
            file_path: Path identifying the file in the store
            md5: Content hash of the file
            size: File size in bytes

        Returns:
            Mapping of every table name to its ordered rows
        """
        rows: RowSet = {name: [] for name in self.schema.table_names}
        rows["files"].append({"file_path": file_path, "md5": md5, "size": size})

        file_tags = _dedupe(document.tags)
        self._add_file_tags(rows, file_path, file_tags)
        for prop in document.properties:
            if self._add_property(rows, file_path, prop.offset, prop.key, prop.value):
                rows["file_properties"].append(
                    {"file_path": file_path, "property_offset": prop.offset}
                )

        stack: List[_OpenHeadline] = []
        count = 0
        for headline in _walk(document.headlines):
            while stack and stack[-1].level >= headline.level:
                stack.pop()
            inherited = self._inherited_tags(file_tags, stack)
            stack.append(_OpenHeadline(headline.offset, headline.level, headline.tags))

            self._add_headline(rows, file_path, headline)
            for depth, ancestor in enumerate(reversed(stack)):
                rows["headline_closures"].append(
                    {
                        "file_path": file_path,
                        "headline_offset": headline.offset,
                        "parent_offset": ancestor.offset,
                        "depth": depth,
                    }
                )
            self._add_headline_tags(rows, file_path, headline, inherited)
            self._add_headline_properties(rows, file_path, headline)
            self._add_planning(rows, file_path, headline)
            self._add_content_timestamps(rows, file_path, headline)
            self._add_links(rows, file_path, headline)
            self._add_logbook(rows, file_path, headline)
            count += 1

        logger.debug(f"Mapped {count} headlines from {file_path}")
        return rows

    # tags

    def _add_file_tags(self, rows: RowSet, file_path: str, tags: List[str]) -> None:
        for tag in tags:
            if not is_excluded(self.config.excluded_tags, tag):
                rows["file_tags"].append({"file_path": file_path, "tag": tag})

    def _inherited_tags(self, file_tags: List[str], stack: List[_OpenHeadline]) -> List[str]:
        if not self.config.use_tag_inheritance:
            return []
        tags = list(file_tags)
        for ancestor in stack:
            tags.extend(ancestor.tags)
        excluded = self.config.tags_excluded_from_inheritance
        return [t for t in _dedupe(tags) if t not in excluded]

    def _add_headline_tags(
        self, rows: RowSet, file_path: str, headline: Headline, inherited: List[str]
    ) -> None:
        direct = _dedupe(headline.tags)
        tagged = [(tag, False) for tag in direct]
        if not self.config.exclude_inherited_tags:
            tagged.extend((tag, True) for tag in inherited if tag not in direct)
        for tag, is_inherited in tagged:
            if is_excluded(self.config.excluded_tags, tag):
                continue
            rows["headline_tags"].append(
                {
                    "file_path": file_path,
                    "headline_offset": headline.offset,
                    "tag": tag,
                    "is_inherited": is_inherited,
                }
            )

    # headlines and properties

    def _add_headline(self, rows: RowSet, file_path: str, headline: Headline) -> None:
        rows["headlines"].append(
            {
                "file_path": file_path,
                "headline_offset": headline.offset,
                "headline_text": headline.title,
                "keyword": headline.keyword,
                "effort": parse_duration(headline.get_property(EFFORT_PROPERTY)),
                "priority": headline.priority,
                "is_archived": ARCHIVE_TAG in headline.tags,
                "is_commented": headline.commented,
                "content": headline.content,
            }
        )

    def _add_property(
        self, rows: RowSet, file_path: str, offset: int, key: str, value: str
    ) -> bool:
        if is_excluded(self.config.excluded_properties, key):
            return False
        rows["properties"].append(
            {"file_path": file_path, "property_offset": offset, "key_text": key, "val_text": value}
        )
        return True

    def _add_headline_properties(self, rows: RowSet, file_path: str, headline: Headline) -> None:
        for prop in headline.properties:
            if self._add_property(rows, file_path, prop.offset, prop.key, prop.value):
                rows["headline_properties"].append(
                    {
                        "file_path": file_path,
                        "property_offset": prop.offset,
                        "headline_offset": headline.offset,
                    }
                )

    # timestamps

    def _decode(self, token: Token) -> Optional[DecodedTimestamp]:
        try:
            return decode_timestamp(token.text, token.offset)
        except TimestampError as e:
            logger.warning(f"Skipping timestamp at {token.offset}: {e}")
            return None

    def _add_timestamp(
        self, rows: RowSet, file_path: str, headline_offset: int, ts: DecodedTimestamp
    ) -> None:
        warning = ts.warning
        repeater = ts.repeater
        rows["timestamps"].append(
            {
                "file_path": file_path,
                "timestamp_offset": ts.offset,
                "headline_offset": headline_offset,
                "raw_value": ts.raw_value,
                "is_active": ts.is_active,
                "warning_type": warning.type if warning else None,
                "warning_value": warning.value if warning else None,
                "warning_unit": warning.unit if warning else None,
                "repeat_type": repeater.type if repeater else None,
                "repeat_value": repeater.value if repeater else None,
                "repeat_unit": repeater.unit if repeater else None,
                "time_start": ts.time_start,
                "start_is_long": ts.start_is_long,
                "time_end": ts.time_end,
                "end_is_long": ts.end_is_long,
            }
        )

    def _add_planning(self, rows: RowSet, file_path: str, headline: Headline) -> None:
        for planning in headline.planning:
            if is_excluded(self.config.excluded_headline_planning_types, planning.type):
                continue
            ts = self._decode(planning.timestamp)
            if ts is None:
                continue
            self._add_timestamp(rows, file_path, headline.offset, ts)
            rows["planning_entries"].append(
                {
                    "file_path": file_path,
                    "headline_offset": headline.offset,
                    "planning_type": planning.type,
                    "timestamp_offset": ts.offset,
                }
            )

    def _add_content_timestamps(self, rows: RowSet, file_path: str, headline: Headline) -> None:
        for token in headline.timestamps:
            ts = self._decode(token)
            if ts is None:
                continue
            kind = "active" if ts.is_active else "inactive"
            if is_excluded(self.config.excluded_contents_timestamp_types, kind):
                continue
            self._add_timestamp(rows, file_path, headline.offset, ts)

    # links

    def _add_links(self, rows: RowSet, file_path: str, headline: Headline) -> None:
        for token in headline.links:
            parts = split_link(token.text)
            if parts is None:
                logger.debug(f"Skipping unrecognized link at {token.offset}: {token.text}")
                continue
            link_type, path, description = parts
            if is_excluded(self.config.excluded_link_types, link_type):
                continue
            rows["links"].append(
                {
                    "file_path": file_path,
                    "link_offset": token.offset,
                    "headline_offset": headline.offset,
                    "link_path": path,
                    "link_text": description,
                    "link_type": link_type,
                }
            )

    # logbook

    def _logbook_entries(self, headline: Headline) -> List[DrawerEntry]:
        if self.config.log_into_drawer is None:
            return headline.section_items
        drawer = headline.get_drawer(self.config.log_into_drawer)
        return drawer.entries if drawer else []

    def _add_logbook(self, rows: RowSet, file_path: str, headline: Headline) -> None:
        for entry in self.classifier.classify(self._logbook_entries(headline)):
            if isinstance(entry, ClockItem):
                self._add_clock(rows, file_path, headline, entry)
            else:
                self._add_logbook_item(rows, file_path, headline, entry)

    def _add_clock(
        self, rows: RowSet, file_path: str, headline: Headline, clock: ClockItem
    ) -> None:
        if self.config.exclude_clocks:
            return
        rows["clocking"].append(
            {
                "file_path": file_path,
                "clock_offset": clock.offset,
                "headline_offset": headline.offset,
                "time_start": clock.time_start,
                "time_end": clock.time_end,
                "clock_note": None if self.config.exclude_clock_notes else clock.note,
            }
        )

    def _add_logbook_item(
        self, rows: RowSet, file_path: str, headline: Headline, item: LogbookItem
    ) -> None:
        if is_excluded(self.config.excluded_logbook_types, item.type):
            return
        rows["logbook_entries"].append(
            {
                "file_path": file_path,
                "entry_offset": item.offset,
                "headline_offset": headline.offset,
                "entry_type": item.type,
                "time_logged": item.time_logged,
                "header": item.header,
                "note": item.note,
            }
        )
        if item.type == STATE_TYPE:
            rows["state_changes"].append(
                {
                    "file_path": file_path,
                    "entry_offset": item.offset,
                    "state_old": item.old_state,
                    "state_new": item.new_state,
                }
            )
        elif item.old_timestamp is not None:
            self._add_timestamp(rows, file_path, headline.offset, item.old_timestamp)
            rows["planning_changes"].append(
                {
                    "file_path": file_path,
                    "entry_offset": item.offset,
                    "timestamp_offset": item.old_timestamp.offset,
                }
            )


def map_document(
    document: OutlineDocument,
    file_path: str,
    md5: str,
    size: int,
    config: Optional[MapperConfig] = None,
) -> RowSet:
    """Map one document with a throwaway mapper."""
    return OutlineMapper(config).map_document(document, file_path, md5, size)
