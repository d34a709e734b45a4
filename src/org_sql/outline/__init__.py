"""Reading org outlines and mapping them to rows."""

from org_sql.outline.logbook import ClockItem, LogbookClassifier, LogbookItem
from org_sql.outline.mapper import OutlineMapper, RowSet, map_document, split_link
from org_sql.outline.parser import OutlineParser
from org_sql.outline.schemas import Headline, OutlineDocument
from org_sql.outline.timestamps import DecodedTimestamp, decode_timestamp

__all__ = [
    "ClockItem",
    "DecodedTimestamp",
    "Headline",
    "LogbookClassifier",
    "LogbookItem",
    "OutlineDocument",
    "OutlineMapper",
    "OutlineParser",
    "RowSet",
    "decode_timestamp",
    "map_document",
    "split_link",
]
