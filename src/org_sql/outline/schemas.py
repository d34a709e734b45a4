"""Schema models for parsed org outlines.

The outline mapper only traverses these models; it never sees raw text
except for the individual tokens (timestamps, links, drawer entries) it
decodes itself. Offsets are 1-based character positions in the source.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class Token(BaseModel):
    """Verbatim source text found at an offset."""

    offset: int
    text: str


class PropertyEntry(BaseModel):
    """One ``:key: value`` line of a property drawer or a ``#+PROPERTY`` line."""

    offset: int
    key: str
    value: str


class PlanningToken(BaseModel):
    """One keyword/timestamp pair from a planning line."""

    type: Literal["scheduled", "deadline", "closed"]
    timestamp: Token


class DrawerEntry(BaseModel):
    """A clock line or a list item inside a drawer.

    For items, ``text`` starts after the bullet and holds continuation lines
    joined with newlines; ``header_offset`` is the position of its first
    character.
    """

    kind: Literal["clock", "item"]
    offset: int
    header_offset: int
    text: str


class Drawer(BaseModel):
    name: str
    offset: int
    entries: List[DrawerEntry] = Field(default_factory=list)


class Headline(BaseModel):
    """A heading and the structures of its section."""

    offset: int
    level: int
    title: str
    keyword: Optional[str] = None
    priority: Optional[str] = None
    commented: bool = False
    tags: List[str] = Field(default_factory=list)
    properties: List[PropertyEntry] = Field(default_factory=list)
    planning: List[PlanningToken] = Field(default_factory=list)
    drawers: List[Drawer] = Field(default_factory=list)
    # clock lines and list items at the top of the section, used when
    # notes are not logged into a drawer
    section_items: List[DrawerEntry] = Field(default_factory=list)
    content: Optional[str] = None
    timestamps: List[Token] = Field(default_factory=list)
    links: List[Token] = Field(default_factory=list)
    children: List["Headline"] = Field(default_factory=list)

    def get_drawer(self, name: str) -> Optional[Drawer]:
        """Return the first drawer with a name, case-insensitively."""
        for drawer in self.drawers:
            if drawer.name.upper() == name.upper():
                return drawer
        return None

    def get_property(self, key: str) -> Optional[str]:
        for prop in self.properties:
            if prop.key.upper() == key.upper():
                return prop.value
        return None


class OutlineDocument(BaseModel):
    """A whole org file."""

    tags: List[str] = Field(default_factory=list)
    properties: List[PropertyEntry] = Field(default_factory=list)
    headlines: List[Headline] = Field(default_factory=list)


Headline.model_rebuild()
