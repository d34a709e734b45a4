"""Reader turning org text into an OutlineDocument.

This is a line-oriented reader for the structures the outline mapper
consumes: file keywords, headings, planning lines, drawers, list items,
timestamps and links. It is not a complete org-mode grammar.
"""

import re
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from org_sql.config import MapperConfig
from org_sql.file_utils import FileError, ParseError
from org_sql.outline.schemas import (
    Drawer,
    DrawerEntry,
    Headline,
    OutlineDocument,
    PlanningToken,
    PropertyEntry,
    Token,
)

ACTIVE_TS = r"<\d{4}-\d{2}-\d{2}[^>\n]*>"
INACTIVE_TS = r"\[\d{4}-\d{2}-\d{2}[^\]\n]*\]"
TIMESTAMP = rf"(?:{ACTIVE_TS}(?:--{ACTIVE_TS})?|{INACTIVE_TS}(?:--{INACTIVE_TS})?)"

TIMESTAMP_RE = re.compile(TIMESTAMP)
LINK_RE = re.compile(r"\[\[([^\[\]]+)\](?:\[([^\[\]]*)\])?\]")
HEADING_RE = re.compile(r"^(\*+)(?:[ \t]+(.*))?$")
TAGS_RE = re.compile(r"[ \t]+(:(?:[\w@#%]+:)+)[ \t]*$")
PRIORITY_RE = re.compile(r"^\[#([A-Za-z0-9])\][ \t]*")
PLANNING_LINE_RE = re.compile(r"^[ \t]*(?:SCHEDULED|DEADLINE|CLOSED):")
PLANNING_RE = re.compile(rf"(SCHEDULED|DEADLINE|CLOSED):[ \t]*({TIMESTAMP})")
KEYWORD_RE = re.compile(r"^#\+(\w+):[ \t]*(.*?)[ \t]*$")
DRAWER_START_RE = re.compile(r"^([ \t]*):([\w-]+):[ \t]*$")
DRAWER_END_RE = re.compile(r"^[ \t]*:END:[ \t]*$", re.IGNORECASE)
PROPERTY_RE = re.compile(r"^([ \t]*):([^:\s]+):(?:[ \t]+(.*?))?[ \t]*$")
ITEM_RE = re.compile(r"^([ \t]*)[-+](?:[ \t]+|$)")
CLOCK_RE = re.compile(r"^([ \t]*)CLOCK:")

# (offset of the first character, line text)
Line = Tuple[int, str]


def _lines(content: str) -> List[Line]:
    lines = []
    pos = 1
    for line in content.split("\n"):
        lines.append((pos, line))
        pos += len(line) + 1
    return lines


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip(" \t"))


def _find_end(lines: Sequence[Line], start: int) -> Optional[int]:
    """Index of the :END: line closing a drawer opened at start, if any."""
    for i in range(start + 1, len(lines)):
        if DRAWER_END_RE.match(lines[i][1]):
            return i
        if HEADING_RE.match(lines[i][1]):
            return None
    return None


def read_entries(
    lines: Sequence[Line], start: int, stop: Callable[[str], bool], strict: bool = False
) -> Tuple[List[DrawerEntry], int]:
    """
    Read clock lines and list items until stop(line) is true.

    Lines indented deeper than the current item's bullet continue that item.
    Other lines are skipped, or end the read when strict is set.

    Returns:
        The entries and the index of the first line not consumed
    """
    entries: List[DrawerEntry] = []
    item_indent: Optional[int] = None
    i = start
    while i < len(lines):
        pos, line = lines[i]
        if stop(line):
            break

        clock = CLOCK_RE.match(line)
        item = ITEM_RE.match(line)
        if clock:
            indent = len(clock.group(1))
            entries.append(
                DrawerEntry(kind="clock", offset=pos + indent, header_offset=pos + indent, text=line.strip())
            )
            item_indent = None
        elif item and (item_indent is None or len(item.group(1)) <= item_indent):
            indent = len(item.group(1))
            entries.append(
                DrawerEntry(
                    kind="item",
                    offset=pos + indent,
                    header_offset=pos + item.end(),
                    text=line[item.end():].rstrip(),
                )
            )
            item_indent = indent
        elif line.strip() and item_indent is not None and _indent(line) > item_indent:
            current = entries[-1]
            entries[-1] = current.model_copy(update={"text": current.text + "\n" + line.strip()})
        elif strict:
            break
        elif line.strip():
            logger.debug(f"Ignoring unrecognized drawer line at {pos}: {line.strip()}")
        i += 1
    return entries, i


def _parse_properties(lines: Sequence[Line], start: int, end: int) -> List[PropertyEntry]:
    properties = []
    for pos, line in lines[start + 1 : end]:
        m = PROPERTY_RE.match(line)
        if m:
            properties.append(
                PropertyEntry(offset=pos + len(m.group(1)), key=m.group(2), value=m.group(3) or "")
            )
    return properties


def _scan_tokens(pattern: re.Pattern, pos: int, line: str) -> Iterable[Token]:
    for m in pattern.finditer(line):
        yield Token(offset=pos + m.start(), text=m.group(0))


class OutlineParser:
    """Parser for org files.

    Args:
        todo_keywords: Words recognized as TODO keywords at the start of a heading
        log_into_drawer: Drawer holding logbook notes; when None, the list at the
            top of each section is read as the logbook instead of as body text
    """

    def __init__(
        self,
        todo_keywords: Optional[Sequence[str]] = None,
        log_into_drawer: Optional[str] = "LOGBOOK",
    ):
        self.todo_keywords = list(todo_keywords or ["TODO", "DONE"])
        self.log_into_drawer = log_into_drawer

    @classmethod
    def from_config(cls, config: MapperConfig) -> "OutlineParser":
        return cls(todo_keywords=config.todo_keywords, log_into_drawer=config.log_into_drawer)

    async def parse_file(self, path: Path, encoding: str = "utf-8") -> OutlineDocument:
        """
        Parse an org file.

        Raises:
            FileError: If file cannot be read
            ParseError: If content cannot be parsed
        """
        if not path.exists():
            raise FileError(f"File does not exist: {path}")

        try:
            content = path.read_text(encoding=encoding)
            return self.parse_content(content)

        except UnicodeError as e:
            if encoding == "utf-8":
                return await self.parse_file(path, encoding="utf-16")
            raise ParseError(f"Failed to decode {path}: {str(e)}") from e

        except Exception as e:
            if not isinstance(e, (FileError, ParseError)):
                logger.error(f"Failed to parse {path}: {e}")
                raise ParseError(f"Failed to parse {path}: {str(e)}") from e
            raise

    def parse_content(self, content: str) -> OutlineDocument:
        """Parse raw org text into a document tree."""
        lines = _lines(content)
        document = OutlineDocument()

        heading_indexes = [i for i, (_, line) in enumerate(lines) if HEADING_RE.match(line)]
        first = heading_indexes[0] if heading_indexes else len(lines)
        self._parse_preamble(document, lines[:first])

        stack: List[Headline] = []
        bounds = heading_indexes + [len(lines)]
        for start, end in zip(bounds, bounds[1:]):
            headline = self._parse_heading(*lines[start])
            self._parse_section(headline, lines[start + 1 : end])

            while stack and stack[-1].level >= headline.level:
                stack.pop()
            if stack:
                stack[-1].children.append(headline)
            else:
                document.headlines.append(headline)
            stack.append(headline)

        logger.debug(f"Parsed {len(heading_indexes)} headlines")
        return document

    def _parse_preamble(self, document: OutlineDocument, lines: Sequence[Line]) -> None:
        i = 0
        while i < len(lines):
            pos, line = lines[i]
            keyword = KEYWORD_RE.match(line)
            if keyword:
                name, value = keyword.group(1).upper(), keyword.group(2)
                if name == "FILETAGS":
                    for tag in re.split(r"[:\s]+", value):
                        if tag and tag not in document.tags:
                            document.tags.append(tag)
                elif name == "PROPERTY":
                    key, _, val = value.partition(" ")
                    if key:
                        document.properties.append(PropertyEntry(offset=pos, key=key, value=val.strip()))
            elif line.strip().upper() == ":PROPERTIES:":
                end = _find_end(lines, i)
                if end is not None:
                    document.properties.extend(_parse_properties(lines, i, end))
                    i = end
            i += 1

    def _parse_heading(self, pos: int, line: str) -> Headline:
        m = HEADING_RE.match(line)
        stars, rest = m.group(1), m.group(2) or ""

        tags: List[str] = []
        tag_match = TAGS_RE.search(" " + rest)
        if tag_match:
            tags = [t for t in tag_match.group(1).split(":") if t]
            rest = rest[: tag_match.start()]

        keyword = None
        first, _, remainder = rest.strip().partition(" ")
        if first in self.todo_keywords:
            keyword, rest = first, remainder

        priority = None
        rest = rest.strip()
        priority_match = PRIORITY_RE.match(rest)
        if priority_match:
            priority = priority_match.group(1)
            rest = rest[priority_match.end():]

        commented = False
        if rest == "COMMENT" or rest.startswith("COMMENT "):
            commented = True
            rest = rest[len("COMMENT"):]

        return Headline(
            offset=pos,
            level=len(stars),
            title=rest.strip(),
            keyword=keyword,
            priority=priority,
            commented=commented,
            tags=tags,
        )

    def _parse_section(self, headline: Headline, lines: Sequence[Line]) -> None:
        i = 0
        if i < len(lines) and PLANNING_LINE_RE.match(lines[i][1]):
            pos, line = lines[i]
            for m in PLANNING_RE.finditer(line):
                headline.planning.append(
                    PlanningToken(
                        type=m.group(1).lower(),
                        timestamp=Token(offset=pos + m.start(2), text=m.group(2)),
                    )
                )
            i += 1

        if i < len(lines) and lines[i][1].strip().upper() == ":PROPERTIES:":
            end = _find_end(lines, i)
            if end is not None:
                headline.properties.extend(_parse_properties(lines, i, end))
                i = end + 1

        body: List[str] = []
        leading = True
        while i < len(lines):
            pos, line = lines[i]
            drawer_match = DRAWER_START_RE.match(line)
            if drawer_match and not DRAWER_END_RE.match(line):
                end = _find_end(lines, i)
                if end is not None:
                    drawer = Drawer(name=drawer_match.group(2), offset=pos + len(drawer_match.group(1)))
                    drawer.entries, _ = read_entries(lines[:end], i + 1, lambda _: False)
                    headline.drawers.append(drawer)
                    i = end + 1
                    continue

            if (
                leading
                and self.log_into_drawer is None
                and (ITEM_RE.match(line) or CLOCK_RE.match(line))
            ):
                entries, i = read_entries(
                    lines,
                    i,
                    lambda text: not text.strip() or DRAWER_START_RE.match(text) is not None,
                    strict=True,
                )
                headline.section_items.extend(entries)
                continue

            if line.strip():
                leading = False
            body.append(line)
            headline.timestamps.extend(_scan_tokens(TIMESTAMP_RE, pos, line))
            headline.links.extend(_scan_tokens(LINK_RE, pos, line))
            i += 1

        content = "\n".join(body).strip()
        headline.content = content or None
