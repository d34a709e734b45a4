"""Decode org timestamp tokens into structured fields.

Handles active ``<...>`` and inactive ``[...]`` stamps, optional time of day,
same-day time ranges (``10:00-11:00``), date ranges (``<a>--<b>``) and the
repeater/warning suffix grammar:

- repeater: ``+1w`` cumulate, ``++1w`` catch-up, ``.+1w`` restart
- warning: ``-2d`` all occurrences, ``--2d`` first occurrence only

Times are local wall-clock times converted to integer epoch seconds.
"""

import re
from datetime import datetime
from typing import Literal, Optional, Tuple

from loguru import logger
from pydantic import BaseModel

from org_sql.exceptions import TimestampError

UNITS = {"h": "hour", "d": "day", "w": "week", "m": "month", "y": "year"}
REPEATER_TYPES = {"+": "cumulate", "++": "catch-up", ".+": "restart"}
WARNING_TYPES = {"-": "all", "--": "first"}

STAMP = (
    r"(?P<open{n}>[<\[])"
    r"(?P<date{n}>\d{{4}}-\d{{2}}-\d{{2}})"
    r"(?:[ \t]+(?P<day{n}>[^\s\d<>\[\]+.-]+))?"
    r"(?:[ \t]+(?P<start{n}>\d{{1,2}}:\d{{2}})(?:-(?P<end{n}>\d{{1,2}}:\d{{2}}))?)?"
    r"(?P<suffix{n}>[^<>\[\]]*)"
    r"(?P<close{n}>[>\]])"
)
TIMESTAMP_RE = re.compile("^" + STAMP.format(n=1) + "(?:--" + STAMP.format(n=2) + ")?$")
REPEATER_RE = re.compile(r"^(\.\+|\+\+|\+)(\d+)([hdwmy])(?:/\d+[hdwmy])?$")
WARNING_RE = re.compile(r"^(--|-)(\d+)([hdwmy])$")

CLOSING = {"<": ">", "[": "]"}


class Repeater(BaseModel):
    type: Literal["cumulate", "catch-up", "restart"]
    value: int
    unit: Literal["hour", "day", "week", "month", "year"]


class TimestampWarning(BaseModel):
    type: Literal["all", "first"]
    value: int
    unit: Literal["hour", "day", "week", "month", "year"]


class DecodedTimestamp(BaseModel):
    """Structured fields of one timestamp token."""

    offset: Optional[int] = None
    raw_value: str
    is_active: bool
    time_start: int
    start_is_long: bool
    time_end: Optional[int] = None
    end_is_long: Optional[bool] = None
    repeater: Optional[Repeater] = None
    warning: Optional[TimestampWarning] = None


def _to_epoch(date: str, clock: Optional[str]) -> int:
    try:
        year, month, day = (int(x) for x in date.split("-"))
        hour, minute = (int(x) for x in clock.split(":")) if clock else (0, 0)
        return int(datetime(year, month, day, hour, minute).timestamp())
    except ValueError as e:
        raise TimestampError(f"Invalid date {date} {clock or ''}: {e}") from e


def decode_suffix(suffix: str) -> Tuple[Optional[Repeater], Optional[TimestampWarning]]:
    """
    Parse the repeater and warning tokens trailing a timestamp.

    Unrecognized tokens are ignored, leaving the corresponding field None.

    Examples:
        >>> decode_suffix(" .+1d --2w")
        (Repeater(type='restart', value=1, unit='day'), TimestampWarning(type='first', value=2, unit='week'))
    """
    repeater = None
    warning = None
    for token in suffix.split():
        m = REPEATER_RE.match(token)
        if m and repeater is None:
            repeater = Repeater(
                type=REPEATER_TYPES[m.group(1)], value=int(m.group(2)), unit=UNITS[m.group(3)]
            )
            continue
        m = WARNING_RE.match(token)
        if m and warning is None:
            warning = TimestampWarning(
                type=WARNING_TYPES[m.group(1)], value=int(m.group(2)), unit=UNITS[m.group(3)]
            )
            continue
        logger.debug(f"Ignoring timestamp suffix token: {token}")
    return repeater, warning


def decode_timestamp(raw: str, offset: Optional[int] = None) -> DecodedTimestamp:
    """
    Decode one timestamp token.

    Args:
        raw: Verbatim timestamp text, e.g. ``<2112-01-01 Fri 10:00 +1w>``
        offset: Position of the token in the source, carried through

    Returns:
        DecodedTimestamp

    Raises:
        TimestampError: If the date part cannot be parsed
    """
    text = raw.strip()
    m = TIMESTAMP_RE.match(text)
    if not m:
        raise TimestampError(f"Not a timestamp: {raw!r}")
    if CLOSING[m.group("open1")] != m.group("close1"):
        raise TimestampError(f"Mismatched brackets in timestamp: {raw!r}")

    start_clock = m.group("start1")
    time_start = _to_epoch(m.group("date1"), start_clock)

    time_end = None
    end_is_long = None
    if m.group("date2"):
        end_clock = m.group("start2")
        time_end = _to_epoch(m.group("date2"), end_clock)
        end_is_long = end_clock is not None
    elif m.group("end1"):
        time_end = _to_epoch(m.group("date1"), m.group("end1"))
        end_is_long = True

    repeater, warning = decode_suffix(m.group("suffix1") or "")

    return DecodedTimestamp(
        offset=offset,
        raw_value=text,
        is_active=m.group("open1") == "<",
        time_start=time_start,
        start_is_long=start_clock is not None,
        time_end=time_end,
        end_is_long=end_is_long,
        repeater=repeater,
        warning=warning,
    )
