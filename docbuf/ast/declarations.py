"""AST nodes for documents, enumerables and processes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union

from .options import OptionBlock
from .source_location import SourceLocation


@dataclass
class TypeName:
    """A named type reference, possibly module-qualified (``other.Type``)."""

    name: str
    location: Optional[SourceLocation] = None

    def __str__(self) -> str:
        return self.name


@dataclass
class ListOf:
    """A ``[T]`` type reference."""

    element: "TypeExpr"
    location: Optional[SourceLocation] = None

    def __str__(self) -> str:
        return f"[{self.element}]"


TypeExpr = Union[TypeName, ListOf]


@dataclass
class FieldDecl:
    name: str
    type: TypeExpr
    options: Optional[OptionBlock] = None
    doc: Optional[str] = None
    location: Optional[SourceLocation] = None


@dataclass
class DocumentDecl:
    name: str
    fields: List[FieldDecl] = field(default_factory=list)
    options: Optional[OptionBlock] = None
    doc: Optional[str] = None
    location: Optional[SourceLocation] = None


@dataclass
class VariantDecl:
    """An enum variant; ``type`` is ``None`` for unit variants."""

    name: str
    type: Optional[TypeExpr] = None
    options: Optional[OptionBlock] = None
    doc: Optional[str] = None
    location: Optional[SourceLocation] = None


@dataclass
class EnumDecl:
    name: str
    variants: List[VariantDecl] = field(default_factory=list)
    options: Optional[OptionBlock] = None
    doc: Optional[str] = None
    location: Optional[SourceLocation] = None


@dataclass
class EndpointDecl:
    """A terminating ``name: Request -> ()`` member of a process.

    ``response`` stays ``None`` for the unit response ``()``.
    """

    name: str
    request: TypeExpr
    response: Optional[TypeExpr] = None
    options: Optional[OptionBlock] = None
    doc: Optional[str] = None
    location: Optional[SourceLocation] = None


@dataclass
class ProcessDecl:
    name: str
    endpoints: List[EndpointDecl] = field(default_factory=list)
    options: Optional[OptionBlock] = None
    doc: Optional[str] = None
    location: Optional[SourceLocation] = None


Declaration = Union[DocumentDecl, EnumDecl, ProcessDecl]


__all__ = [
    "TypeName",
    "ListOf",
    "TypeExpr",
    "FieldDecl",
    "DocumentDecl",
    "VariantDecl",
    "EnumDecl",
    "EndpointDecl",
    "ProcessDecl",
    "Declaration",
]
