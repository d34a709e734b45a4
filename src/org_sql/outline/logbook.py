"""Classify logbook drawer entries using org note templates.

Each entry type is described by a message template such as
``"State %-12s from %-12S %t"``. Templates are compiled to regular
expressions; every list item header is tried against them in configured
order and the first match determines the entry type. Items matching no
template get the type ``none``.

Placeholders:

- ``%t`` / ``%T``: inactive / active timestamp
- ``%d`` / ``%D``: inactive / active date-only timestamp
- ``%s`` / ``%S``: new / old value (TODO keyword or timestamp)
- ``%u`` / ``%U``: short / full user name
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from loguru import logger
from pydantic import BaseModel

from org_sql.config import MapperConfig
from org_sql.exceptions import TimestampError
from org_sql.outline.schemas import DrawerEntry
from org_sql.outline.timestamps import DecodedTimestamp, decode_timestamp

DEFAULT_TEMPLATES: Dict[str, str] = {
    "done": "CLOSING NOTE %t",
    "state": "State %-12s from %-12S %t",
    "note": "Note taken on %t",
    "reschedule": "Rescheduled from %S on %t",
    "delschedule": "Not scheduled, was %S on %t",
    "redeadline": "New deadline from %S on %t",
    "deldeadline": "Removed deadline, was %S on %t",
    "refile": "Refiled on %t",
}

NONE_TYPE = "none"
STATE_TYPE = "state"
PLANNING_CHANGE_TYPES = ("reschedule", "delschedule", "redeadline", "deldeadline")

PLACEHOLDER_RE = re.compile(r"%-?\d*([tTdDsSuU])")
GROUP_PATTERNS = {
    "t": r"\[\d{4}-\d{2}-\d{2}[^\]\n]*\]",
    "T": r"<\d{4}-\d{2}-\d{2}[^>\n]*>",
    "d": r"\[\d{4}-\d{2}-\d{2}(?: [^\]\s\d]+)?\]",
    "D": r"<\d{4}-\d{2}-\d{2}(?: [^>\s\d]+)?>",
    "s": r".*?",
    "S": r".*?",
    "u": r"\S+",
    "U": r".+?",
}
TIMESTAMP_GROUPS = "tTdD"

CLOCK_RE = re.compile(
    r"^CLOCK:\s*(?P<ts>\[[^\]\n]+\](?:--\[[^\]\n]+\])?)(?:\s*=>\s*-?\d+:\d{2})?\s*$"
)
HEADER_BREAK_RE = re.compile(r"\s*\\\\\s*$")


class LogbookItem(BaseModel):
    """One classified logbook list item; fields a template does not capture stay None."""

    type: str
    offset: int
    header: str
    note: Optional[str] = None
    time_logged: Optional[int] = None
    user: Optional[str] = None
    old_text: Optional[str] = None
    new_text: Optional[str] = None
    old_state: Optional[str] = None
    new_state: Optional[str] = None
    old_timestamp: Optional[DecodedTimestamp] = None


class ClockItem(BaseModel):
    offset: int
    time_start: int
    time_end: Optional[int] = None
    note: Optional[str] = None


LogbookEntry = Union[LogbookItem, ClockItem]


@dataclass(frozen=True)
class CompiledTemplate:
    type: str
    pattern: re.Pattern
    placeholders: Tuple[str, ...]


def _literal(text: str) -> str:
    # whitespace in templates may be padded (e.g. %-12s), so any run matches
    return r"\s+".join(re.escape(chunk) for chunk in re.split(r"\s+", text))


def compile_template(entry_type: str, template: str) -> CompiledTemplate:
    """Compile a note template into a regular expression.

    Literal text is escaped and each placeholder becomes one capturing group.
    """
    parts = []
    placeholders = []
    pos = 0
    for m in PLACEHOLDER_RE.finditer(template):
        parts.append(_literal(template[pos : m.start()]))
        parts.append(f"({GROUP_PATTERNS[m.group(1)]})")
        placeholders.append(m.group(1))
        pos = m.end()
    parts.append(_literal(template[pos:]))
    return CompiledTemplate(
        type=entry_type,
        pattern=re.compile("^" + "".join(parts) + "$"),
        placeholders=tuple(placeholders),
    )


def _unquote(text: Optional[str]) -> Tuple[Optional[str], int]:
    """Strip surrounding double quotes; return the text and the leading shift."""
    if text is None:
        return None, 0
    text = text.strip()
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        return text[1:-1] or None, 1
    return text or None, 0


def split_item(text: str) -> Tuple[str, Optional[str]]:
    """Split item text into its header line and the note lines below it."""
    header, _, rest = text.partition("\n")
    header = HEADER_BREAK_RE.sub("", header).strip()
    note = rest.strip()
    return header, note or None


class LogbookClassifier:
    """Turns drawer entries into typed logbook items and clocks.

    Args:
        templates: Extra or overriding templates keyed by entry type
    """

    def __init__(self, templates: Optional[Mapping[str, str]] = None):
        merged = {**DEFAULT_TEMPLATES, **(templates or {})}
        self.templates: List[CompiledTemplate] = [
            compile_template(entry_type, template)
            for entry_type, template in merged.items()
            if template.strip()
        ]

    @classmethod
    def from_config(cls, config: MapperConfig) -> "LogbookClassifier":
        return cls(config.logbook_templates)

    def match(self, header: str) -> Optional[Tuple[CompiledTemplate, re.Match]]:
        """Return the first template matching a header."""
        for template in self.templates:
            m = template.pattern.match(header)
            if m:
                return template, m
        return None

    def classify_item(self, entry: DrawerEntry) -> LogbookItem:
        """Classify a single list item."""
        header, note = split_item(entry.text)
        matched = self.match(header)
        if matched is None:
            return LogbookItem(type=NONE_TYPE, offset=entry.offset, header=header, note=note)

        template, m = matched
        item = LogbookItem(type=template.type, offset=entry.offset, header=header, note=note)
        old_index = None
        for index, placeholder in enumerate(template.placeholders, start=1):
            value = m.group(index)
            if placeholder in TIMESTAMP_GROUPS and item.time_logged is None:
                item.time_logged = self._decode(value, entry.header_offset + m.start(index))
            elif placeholder in "uU" and item.user is None:
                item.user = value.strip() or None
            elif placeholder == "s" and item.new_text is None:
                item.new_text = value
            elif placeholder == "S" and item.old_text is None:
                item.old_text = value
                old_index = index

        if template.type == STATE_TYPE:
            item.old_state, _ = _unquote(item.old_text)
            item.new_state, _ = _unquote(item.new_text)
        elif template.type in PLANNING_CHANGE_TYPES and old_index is not None:
            old, shift = _unquote(item.old_text)
            if old is not None:
                offset = entry.header_offset + m.start(old_index) + shift
                try:
                    item.old_timestamp = decode_timestamp(old, offset)
                except TimestampError as e:
                    logger.warning(f"Skipping old timestamp of entry at {entry.offset}: {e}")
        return item

    def _decode(self, text: str, offset: int) -> Optional[int]:
        try:
            return decode_timestamp(text, offset).time_start
        except TimestampError as e:
            logger.warning(f"Skipping logged time at {offset}: {e}")
            return None

    def parse_clock(self, entry: DrawerEntry) -> Optional[ClockItem]:
        """Parse a ``CLOCK:`` line; returns None if it does not match the grammar."""
        m = CLOCK_RE.match(entry.text.strip())
        if not m:
            logger.warning(f"Skipping malformed clock line at {entry.offset}: {entry.text}")
            return None
        try:
            ts = decode_timestamp(m.group("ts"), entry.offset)
        except TimestampError as e:
            logger.warning(f"Skipping clock at {entry.offset}: {e}")
            return None
        return ClockItem(offset=entry.offset, time_start=ts.time_start, time_end=ts.time_end)

    def classify(self, entries: Sequence[DrawerEntry]) -> List[LogbookEntry]:
        """
        Classify drawer entries in source order.

        A list item directly after a clock line that matches no template is
        that clock's note rather than a logbook item.
        """
        results: List[LogbookEntry] = []
        previous: Optional[LogbookEntry] = None
        for entry in entries:
            if entry.kind == "clock":
                clock = self.parse_clock(entry)
                if clock is not None:
                    results.append(clock)
                previous = clock
                continue

            item = self.classify_item(entry)
            if (
                item.type == NONE_TYPE
                and isinstance(previous, ClockItem)
                and previous.note is None
            ):
                previous.note = entry.text.strip()
                previous = None
                continue

            results.append(item)
            previous = item
        return results
