"""AST nodes for ``#[scope::options { key = value; }]`` annotation blocks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from .source_location import SourceLocation

LiteralKind = Literal["string", "integer", "float", "boolean", "identifier"]


@dataclass
class OptionValue:
    """A literal on the right-hand side of an option assignment."""

    kind: LiteralKind
    value: Any
    raw: str = ""

    @property
    def is_number(self) -> bool:
        return self.kind in ("integer", "float")


@dataclass
class OptionEntry:
    key: str
    value: OptionValue
    location: Optional[SourceLocation] = None


@dataclass
class OptionBlock:
    """All option entries attached to a single declaration.

    ``scope`` is the annotation prefix as written (``document``, ``field``,
    ``item``, ``enum``, ``process`` or ``endpoint``).
    """

    scope: str
    entries: List[OptionEntry] = field(default_factory=list)
    location: Optional[SourceLocation] = None

    def get(self, key: str) -> Optional[OptionValue]:
        for entry in reversed(self.entries):
            if entry.key == key:
                return entry.value
        return None

    def as_dict(self) -> Dict[str, Any]:
        return {entry.key: entry.value.value for entry in self.entries}

    def keys(self) -> List[str]:
        return [entry.key for entry in self.entries]


__all__ = ["LiteralKind", "OptionValue", "OptionEntry", "OptionBlock"]
