"""Dialect-independent statement representation consumed by the compiler."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Insert:
    table: str
    values: Dict[str, Any]


@dataclass(frozen=True)
class Update:
    table: str
    set: Dict[str, Any]
    where: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Delete:
    table: str
    where: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Select:
    table: str
    columns: Optional[Tuple[str, ...]] = None
    where: Dict[str, Any] = field(default_factory=dict)
