"""
The validated, immutable schema model.

A :class:`SchemaModel` is produced once per compilation session by the
validator and shared read-only by the codec, the signing envelope, the
endpoint descriptors and the binding generator. Every class here is a frozen
dataclass holding tuples, so a model can be used from any number of threads
without locking.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, Iterator, Optional, Tuple

from .process import ProcessConfig
from .types import DocumentRef, EnumRef, ListType, TypeRef

SCHEMA_FORMAT_VERSION = 1


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> "re.Pattern[str]":
    """Compile a ``regex`` option once per process."""
    return re.compile(pattern)


@dataclass(frozen=True)
class FieldOptions:
    """Constraints declared through ``#[field::options {...}]``.

    ``default`` holds a Python value of the field's type; for enum-typed
    fields it is the name of a unit variant.
    """

    required: bool = False
    default: Any = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    regex: Optional[str] = None
    name: Optional[str] = None

    @property
    def has_default(self) -> bool:
        return self.default is not None

    @property
    def pattern(self) -> Optional["re.Pattern[str]"]:
        return compile_pattern(self.regex) if self.regex is not None else None

    @property
    def has_constraints(self) -> bool:
        return any(
            value is not None
            for value in (self.min_length, self.max_length, self.min_value, self.max_value, self.regex)
        )


@dataclass(frozen=True)
class FieldSchema:
    name: str
    tag: int
    type: TypeRef
    options: FieldOptions = field(default_factory=FieldOptions)
    doc: Optional[str] = None

    @property
    def required(self) -> bool:
        return self.options.required

    @property
    def output_name(self) -> str:
        return self.options.name or self.name


@dataclass(frozen=True)
class DocumentSchema:
    name: str
    module: str
    fields: Tuple[FieldSchema, ...] = ()
    root: bool = False
    rename: Optional[str] = None
    doc: Optional[str] = None
    _by_tag: Dict[int, FieldSchema] = field(init=False, repr=False, compare=False)
    _by_name: Dict[str, FieldSchema] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_by_tag", {f.tag: f for f in self.fields})
        object.__setattr__(self, "_by_name", {f.name: f for f in self.fields})

    @property
    def qualified_name(self) -> str:
        return f"{self.module}.{self.name}"

    @property
    def output_name(self) -> str:
        return self.rename or self.name

    def get_field(self, name: str) -> FieldSchema:
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"Document '{self.qualified_name}' has no field '{name}'") from None

    def field_by_tag(self, tag: int) -> Optional[FieldSchema]:
        return self._by_tag.get(tag)

    def has_field(self, name: str) -> bool:
        return name in self._by_name


@dataclass(frozen=True)
class VariantSchema:
    """An enum variant; ``type`` is ``None`` for unit variants."""

    name: str
    tag: int
    type: Optional[TypeRef] = None
    options: FieldOptions = field(default_factory=FieldOptions)
    doc: Optional[str] = None

    @property
    def is_unit(self) -> bool:
        return self.type is None

    @property
    def output_name(self) -> str:
        return self.options.name or self.name


@dataclass(frozen=True)
class EnumSchema:
    name: str
    module: str
    variants: Tuple[VariantSchema, ...] = ()
    rename: Optional[str] = None
    doc: Optional[str] = None
    _by_tag: Dict[int, VariantSchema] = field(init=False, repr=False, compare=False)
    _by_name: Dict[str, VariantSchema] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_by_tag", {v.tag: v for v in self.variants})
        object.__setattr__(self, "_by_name", {v.name: v for v in self.variants})

    @property
    def qualified_name(self) -> str:
        return f"{self.module}.{self.name}"

    @property
    def output_name(self) -> str:
        return self.rename or self.name

    def variant(self, name: str) -> VariantSchema:
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"Enumerable '{self.qualified_name}' has no variant '{name}'") from None

    def variant_by_tag(self, tag: int) -> Optional[VariantSchema]:
        return self._by_tag.get(tag)


@dataclass(frozen=True)
class EndpointSchema:
    """
    A process endpoint.

    ``request`` is a :class:`DocumentRef` or a :class:`ListType` of one.
    Responses are always the unit ``()``; ``stream`` marks endpoints that
    accept a sequence of requests on one call.
    """

    name: str
    id: int
    request: TypeRef
    stream: bool = False
    required: bool = False
    rate_limit: Optional[int] = None
    signature_required: bool = False
    doc: Optional[str] = None

    @property
    def request_document(self) -> str:
        """Qualified name of the document carried by the request."""
        ref = self.request.element if isinstance(self.request, ListType) else self.request
        return ref.name

    @property
    def request_is_list(self) -> bool:
        return isinstance(self.request, ListType)


@dataclass(frozen=True)
class ProcessSchema:
    name: str
    module: str
    endpoints: Tuple[EndpointSchema, ...] = ()
    config: ProcessConfig = field(default_factory=ProcessConfig)
    doc: Optional[str] = None

    @property
    def qualified_name(self) -> str:
        return f"{self.module}.{self.name}"

    def endpoint(self, name: str) -> EndpointSchema:
        for endpoint in self.endpoints:
            if endpoint.name == name:
                return endpoint
        raise KeyError(f"Process '{self.qualified_name}' has no endpoint '{name}'")


@dataclass(frozen=True)
class ModuleSchema:
    name: str
    path: str = ""
    version: Tuple[int, int] = (1, 0)
    imports: Tuple[str, ...] = ()
    documents: Tuple[DocumentSchema, ...] = ()
    enums: Tuple[EnumSchema, ...] = ()
    processes: Tuple[ProcessSchema, ...] = ()
    doc: Optional[str] = None


def _index(items) -> Tuple[Dict[str, Any], Dict[str, Tuple[str, ...]]]:
    qualified: Dict[str, Any] = {}
    short: Dict[str, Tuple[str, ...]] = {}
    for item in items:
        qualified[item.qualified_name] = item
        short[item.name] = short.get(item.name, ()) + (item.qualified_name,)
    return qualified, short


def _lookup(name: str, qualified: Dict[str, Any], short: Dict[str, Tuple[str, ...]], kind: str):
    if name in qualified:
        return qualified[name]
    matches = short.get(name, ())
    if len(matches) == 1:
        return qualified[matches[0]]
    if matches:
        raise KeyError(f"{kind} name '{name}' is ambiguous; use one of: {', '.join(matches)}")
    raise KeyError(f"Unknown {kind.lower()} '{name}'")


@dataclass(frozen=True)
class SchemaModel:
    """The closure of all validated modules of one compilation unit."""

    modules: Tuple[ModuleSchema, ...] = ()
    format_version: int = SCHEMA_FORMAT_VERSION
    _documents: Dict[str, DocumentSchema] = field(init=False, repr=False, compare=False)
    _document_names: Dict[str, Tuple[str, ...]] = field(init=False, repr=False, compare=False)
    _enums: Dict[str, EnumSchema] = field(init=False, repr=False, compare=False)
    _enum_names: Dict[str, Tuple[str, ...]] = field(init=False, repr=False, compare=False)
    _processes: Dict[str, ProcessSchema] = field(init=False, repr=False, compare=False)
    _process_names: Dict[str, Tuple[str, ...]] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        documents, document_names = _index(self.documents)
        enums, enum_names = _index(self.enums)
        processes, process_names = _index(self.processes)
        object.__setattr__(self, "_documents", documents)
        object.__setattr__(self, "_document_names", document_names)
        object.__setattr__(self, "_enums", enums)
        object.__setattr__(self, "_enum_names", enum_names)
        object.__setattr__(self, "_processes", processes)
        object.__setattr__(self, "_process_names", process_names)

    @property
    def documents(self) -> Iterator[DocumentSchema]:
        for module in self.modules:
            yield from module.documents

    @property
    def enums(self) -> Iterator[EnumSchema]:
        for module in self.modules:
            yield from module.enums

    @property
    def processes(self) -> Iterator[ProcessSchema]:
        for module in self.modules:
            yield from module.processes

    @property
    def root(self) -> DocumentSchema:
        for document in self.documents:
            if document.root:
                return document
        raise LookupError("Schema has no root document")

    def module(self, name: str) -> ModuleSchema:
        for module in self.modules:
            if module.name == name:
                return module
        raise KeyError(f"Unknown module '{name}'")

    def document(self, name: str) -> DocumentSchema:
        """Look up a document by qualified name or by unique short name."""
        return _lookup(name, self._documents, self._document_names, "Document")

    def enum(self, name: str) -> EnumSchema:
        return _lookup(name, self._enums, self._enum_names, "Enumerable")

    def process(self, name: str) -> ProcessSchema:
        return _lookup(name, self._processes, self._process_names, "Process")

    def resolve(self, ref: TypeRef):
        """Return the declaration a document or enum reference points at."""
        if isinstance(ref, DocumentRef):
            return self._documents[ref.name]
        if isinstance(ref, EnumRef):
            return self._enums[ref.name]
        raise TypeError(f"{ref!r} does not reference a declaration")


__all__ = [
    "SCHEMA_FORMAT_VERSION",
    "compile_pattern",
    "FieldOptions",
    "FieldSchema",
    "DocumentSchema",
    "VariantSchema",
    "EnumSchema",
    "EndpointSchema",
    "ProcessSchema",
    "ModuleSchema",
    "SchemaModel",
]
