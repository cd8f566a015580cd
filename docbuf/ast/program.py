"""Program/module level AST nodes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

from .declarations import Declaration, DocumentDecl, EnumDecl, ProcessDecl
from .source_location import SourceLocation


@dataclass
class Import:
    """Represents an ``import "<path>";`` statement inside a module.

    ``resolved_module`` is filled in by the loader once the imported file
    has been parsed.
    """

    path: str
    resolved_module: Optional[str] = None
    resolved_path: Optional[str] = None
    location: Optional[SourceLocation] = None


@dataclass
class Module:
    """Parsed module containing top-level declarations."""

    name: Optional[str] = None
    language_version: Optional[Tuple[int, int]] = None
    path: str = ""
    imports: List[Import] = field(default_factory=list)
    body: List[Declaration] = field(default_factory=list)
    doc: Optional[str] = None

    @property
    def documents(self) -> List[DocumentDecl]:
        return [decl for decl in self.body if isinstance(decl, DocumentDecl)]

    @property
    def enums(self) -> List[EnumDecl]:
        return [decl for decl in self.body if isinstance(decl, EnumDecl)]

    @property
    def processes(self) -> List[ProcessDecl]:
        return [decl for decl in self.body if isinstance(decl, ProcessDecl)]


@dataclass
class Program:
    """Collection of modules participating in a compilation unit."""

    modules: List[Module] = field(default_factory=list)
    entry: Optional[str] = None

    def __iter__(self) -> Iterator[Module]:
        return iter(self.modules)


__all__ = ["Import", "Module", "Program"]
