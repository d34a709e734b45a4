"""Tests for the org outline reader."""

from pathlib import Path
from textwrap import dedent

import pytest

from org_sql.config import MapperConfig
from org_sql.file_utils import FileError
from org_sql.outline import OutlineParser


def offset(text: str, needle: str) -> int:
    """1-based position of needle in text."""
    return text.index(needle) + 1


def test_single_headline(parser):
    doc = parser.parse_content("* headline")
    assert len(doc.headlines) == 1
    headline = doc.headlines[0]
    assert headline.offset == 1
    assert headline.level == 1
    assert headline.title == "headline"
    assert headline.keyword is None
    assert headline.content is None


def test_nesting(parser):
    doc = parser.parse_content("* parent\n** child\n*** grandchild\n* sibling")
    parent, sibling = doc.headlines
    assert parent.children[0].title == "child"
    assert parent.children[0].offset == 10
    assert parent.children[0].children[0].title == "grandchild"
    assert sibling.title == "sibling"


def test_heading_parts(parser):
    doc = parser.parse_content("* TODO [#B] COMMENT Write report :work:urgent:")
    headline = doc.headlines[0]
    assert headline.keyword == "TODO"
    assert headline.priority == "B"
    assert headline.commented
    assert headline.title == "Write report"
    assert headline.tags == ["work", "urgent"]


def test_custom_todo_keywords():
    parser = OutlineParser.from_config(MapperConfig(todo_keywords=["NEXT", "WAITING"]))
    doc = parser.parse_content("* NEXT call\n* TODO call")
    assert doc.headlines[0].keyword == "NEXT"
    assert doc.headlines[1].keyword is None
    assert doc.headlines[1].title == "TODO call"


def test_file_preamble(parser, sample_org):
    doc = parser.parse_content(sample_org)
    assert doc.tags == ["work"]
    assert len(doc.properties) == 1
    prop = doc.properties[0]
    assert (prop.key, prop.value) == ("owner", "alice")
    assert prop.offset == offset(sample_org, "#+PROPERTY")


def test_file_property_drawer(parser):
    content = ":PROPERTIES:\n:ID: abc\n:END:\n* headline"
    doc = parser.parse_content(content)
    assert [(p.key, p.value, p.offset) for p in doc.properties] == [("ID", "abc", 14)]


def test_section_structures(parser, sample_org):
    doc = parser.parse_content(sample_org)
    parent = doc.headlines[0]

    assert [(p.type, p.timestamp.text) for p in parent.planning] == [
        ("scheduled", "<2112-01-01 Fri>")
    ]
    assert parent.planning[0].timestamp.offset == offset(sample_org, "<2112-01-01 Fri>")
    assert parent.get_property("effort") == "1:30"
    assert parent.properties[0].offset == offset(sample_org, ":Effort:")

    assert parent.content == "Body with <2112-01-05 Tue> and [[https://orgmode.org][org]]."
    assert [t.text for t in parent.timestamps] == ["<2112-01-05 Tue>"]
    assert parent.timestamps[0].offset == offset(sample_org, "<2112-01-05 Tue>")
    assert [link.text for link in parent.links] == ["[[https://orgmode.org][org]]"]

    child = parent.children[0]
    assert [t.text for t in child.timestamps] == ["[2112-01-06 Wed]"]
    assert [link.text for link in child.links] == ["[[file:other.org]]"]


def test_logbook_drawer(parser, logbook_org):
    doc = parser.parse_content(logbook_org)
    headline = doc.headlines[0]
    assert headline.content is None
    assert headline.timestamps == []

    drawer = headline.get_drawer("logbook")
    assert [e.kind for e in drawer.entries] == ["item", "item", "item", "clock", "item"]
    note = drawer.entries[2]
    assert note.text == "Note taken on [2112-01-02 Sat 08:00] \\\\\nremember the milk"
    assert note.offset == offset(logbook_org, "- Note")
    assert note.header_offset == offset(logbook_org, "Note taken")
    assert drawer.entries[3].offset == offset(logbook_org, "CLOCK:")


def test_section_items_without_drawer():
    content = dedent("""\
        * TODO Task
        - Note taken on [2112-01-02 Sat 08:00]
        Some body text with [2112-01-04 Mon].
        - a later list item
        """)
    parser = OutlineParser(log_into_drawer=None)
    headline = parser.parse_content(content).headlines[0]
    assert [e.text for e in headline.section_items] == ["Note taken on [2112-01-02 Sat 08:00]"]
    assert headline.content == "Some body text with [2112-01-04 Mon].\n- a later list item"
    assert [t.text for t in headline.timestamps] == ["[2112-01-04 Mon]"]

    # with a logbook drawer configured the list is ordinary body text
    headline = OutlineParser().parse_content(content).headlines[0]
    assert headline.section_items == []
    assert len(headline.timestamps) == 2


@pytest.mark.asyncio
async def test_parse_file(parser, tmp_path: Path, sample_org):
    path = tmp_path / "notes.org"
    path.write_text(sample_org)
    doc = await parser.parse_file(path)
    assert doc.headlines[0].title == "Parent"


@pytest.mark.asyncio
async def test_parse_utf16_file(parser, tmp_path: Path):
    path = tmp_path / "wide.org"
    path.write_text("* héllo", encoding="utf-16")
    doc = await parser.parse_file(path)
    assert doc.headlines[0].title == "héllo"


@pytest.mark.asyncio
async def test_parse_missing_file(parser, tmp_path: Path):
    with pytest.raises(FileError):
        await parser.parse_file(tmp_path / "missing.org")
