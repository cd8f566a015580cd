"""Dataclasses representing the abstract syntax tree of DocBuf schemas."""

from .declarations import (
    Declaration,
    DocumentDecl,
    EndpointDecl,
    EnumDecl,
    FieldDecl,
    ListOf,
    ProcessDecl,
    TypeExpr,
    TypeName,
    VariantDecl,
)
from .options import OptionBlock, OptionEntry, OptionValue
from .program import Import, Module, Program
from .source_location import SourceLocation

__all__ = [
    "Declaration",
    "DocumentDecl",
    "EndpointDecl",
    "EnumDecl",
    "FieldDecl",
    "ListOf",
    "ProcessDecl",
    "TypeExpr",
    "TypeName",
    "VariantDecl",
    "OptionBlock",
    "OptionEntry",
    "OptionValue",
    "Import",
    "Module",
    "Program",
    "SourceLocation",
]
