"""Validated schema model, the validator that builds it, and its JSON export."""

from __future__ import annotations

from .types import (
    INTEGER_RANGES,
    DocumentRef,
    EnumRef,
    ListType,
    ScalarKind,
    ScalarType,
    TypeRef,
    scalar_kind,
)
from .process import ProcessConfig, SIGNATURE_ALGORITHMS, HASH_ALGORITHMS
from .model import (
    DocumentSchema,
    EndpointSchema,
    EnumSchema,
    FieldOptions,
    FieldSchema,
    ModuleSchema,
    ProcessSchema,
    SchemaModel,
    VariantSchema,
)
from .constraints import check_constraints, fits_scalar, narrow_f32
from .validator import SchemaResolver, validate_module, validate_program
from .serialization import deserialize_schema, read_schema, serialize_schema, write_schema

__all__ = [
    "INTEGER_RANGES",
    "DocumentRef",
    "EnumRef",
    "ListType",
    "ScalarKind",
    "ScalarType",
    "TypeRef",
    "scalar_kind",
    "ProcessConfig",
    "SIGNATURE_ALGORITHMS",
    "HASH_ALGORITHMS",
    "DocumentSchema",
    "EndpointSchema",
    "EnumSchema",
    "FieldOptions",
    "FieldSchema",
    "ModuleSchema",
    "ProcessSchema",
    "SchemaModel",
    "VariantSchema",
    "check_constraints",
    "fits_scalar",
    "narrow_f32",
    "SchemaResolver",
    "validate_module",
    "validate_program",
    "deserialize_schema",
    "read_schema",
    "serialize_schema",
    "write_schema",
]
