"""Resolved type references used by the schema model and the codec."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple, Union


class ScalarKind(str, Enum):
    """Built-in scalar types, valued by their spelling in source."""

    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    I64 = "i64"
    F32 = "f32"
    F64 = "f64"
    BOOL = "bool"
    STRING = "String"
    BYTES = "bytes"

    @property
    def is_integer(self) -> bool:
        return self in INTEGER_RANGES

    @property
    def is_float(self) -> bool:
        return self in (ScalarKind.F32, ScalarKind.F64)

    @property
    def is_numeric(self) -> bool:
        return self.is_integer or self.is_float

    @property
    def is_sized(self) -> bool:
        """String and bytes carry a length."""
        return self in (ScalarKind.STRING, ScalarKind.BYTES)


INTEGER_RANGES: Dict[ScalarKind, Tuple[int, int]] = {
    ScalarKind.U8: (0, 2**8 - 1),
    ScalarKind.U16: (0, 2**16 - 1),
    ScalarKind.U32: (0, 2**32 - 1),
    ScalarKind.U64: (0, 2**64 - 1),
    ScalarKind.I8: (-(2**7), 2**7 - 1),
    ScalarKind.I16: (-(2**15), 2**15 - 1),
    ScalarKind.I32: (-(2**31), 2**31 - 1),
    ScalarKind.I64: (-(2**63), 2**63 - 1),
}

_SCALARS_BY_NAME = {kind.value: kind for kind in ScalarKind}


def scalar_kind(name: str) -> Optional[ScalarKind]:
    """Return the scalar kind spelled ``name`` or ``None``."""
    return _SCALARS_BY_NAME.get(name)


@dataclass(frozen=True)
class ScalarType:
    kind: ScalarKind

    def __str__(self) -> str:
        return self.kind.value


@dataclass(frozen=True)
class ListType:
    element: "TypeRef"

    def __str__(self) -> str:
        return f"[{self.element}]"


@dataclass(frozen=True)
class DocumentRef:
    """Reference to a document by module-qualified name (``module.Name``)."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class EnumRef:
    """Reference to an enumerable by module-qualified name."""

    name: str

    def __str__(self) -> str:
        return self.name


TypeRef = Union[ScalarType, ListType, DocumentRef, EnumRef]


def is_document_list(type_ref: TypeRef) -> bool:
    return isinstance(type_ref, ListType) and isinstance(type_ref.element, DocumentRef)


__all__ = [
    "ScalarKind",
    "INTEGER_RANGES",
    "scalar_kind",
    "ScalarType",
    "ListType",
    "DocumentRef",
    "EnumRef",
    "TypeRef",
    "is_document_list",
]
