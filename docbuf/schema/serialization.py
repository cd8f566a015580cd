"""
Schema model serialization - JSON import/export of a validated model.

Lets the model be persisted as a build artifact and consumed by code
generators or transport layers without re-running the compiler.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .model import (
    SCHEMA_FORMAT_VERSION,
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
from .process import ProcessConfig
from .types import DocumentRef, EnumRef, ListType, ScalarKind, ScalarType, TypeRef

_OPTION_KEYS = ("required", "default", "min_length", "max_length", "min_value", "max_value", "regex", "name")


def type_to_dict(type_ref: TypeRef) -> Dict[str, Any]:
    if isinstance(type_ref, ScalarType):
        return {"scalar": type_ref.kind.value}
    if isinstance(type_ref, ListType):
        return {"list": type_to_dict(type_ref.element)}
    if isinstance(type_ref, DocumentRef):
        return {"document": type_ref.name}
    if isinstance(type_ref, EnumRef):
        return {"enum": type_ref.name}
    raise TypeError(f"Cannot serialize type reference {type_ref!r}")


def type_from_dict(data: Dict[str, Any]) -> TypeRef:
    if "scalar" in data:
        return ScalarType(ScalarKind(data["scalar"]))
    if "list" in data:
        return ListType(type_from_dict(data["list"]))
    if "document" in data:
        return DocumentRef(data["document"])
    if "enum" in data:
        return EnumRef(data["enum"])
    raise ValueError(f"Unrecognized type reference: {data!r}")


def _options_to_dict(options: FieldOptions) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    for key in _OPTION_KEYS:
        value = getattr(options, key)
        if value is None or (key == "required" and not value):
            continue
        data[key] = value
    return data


def _options_from_dict(data: Optional[Dict[str, Any]]) -> FieldOptions:
    return FieldOptions(**{key: value for key, value in (data or {}).items() if key in _OPTION_KEYS})


def _field_to_dict(field: FieldSchema) -> Dict[str, Any]:
    return {
        "name": field.name,
        "tag": field.tag,
        "type": type_to_dict(field.type),
        "options": _options_to_dict(field.options),
        "doc": field.doc,
    }


def _variant_to_dict(variant: VariantSchema) -> Dict[str, Any]:
    return {
        "name": variant.name,
        "tag": variant.tag,
        "type": type_to_dict(variant.type) if variant.type is not None else None,
        "options": _options_to_dict(variant.options),
        "doc": variant.doc,
    }


def _endpoint_to_dict(endpoint: EndpointSchema) -> Dict[str, Any]:
    return {
        "name": endpoint.name,
        "id": endpoint.id,
        "request": type_to_dict(endpoint.request),
        "stream": endpoint.stream,
        "required": endpoint.required,
        "rate_limit": endpoint.rate_limit,
        "signature_required": endpoint.signature_required,
        "doc": endpoint.doc,
    }


def _module_to_dict(module: ModuleSchema) -> Dict[str, Any]:
    return {
        "name": module.name,
        "path": module.path,
        "version": list(module.version),
        "imports": list(module.imports),
        "doc": module.doc,
        "documents": [
            {
                "name": document.name,
                "root": document.root,
                "output_name": document.rename,
                "doc": document.doc,
                "fields": [_field_to_dict(field) for field in document.fields],
            }
            for document in module.documents
        ],
        "enums": [
            {
                "name": enum.name,
                "output_name": enum.rename,
                "doc": enum.doc,
                "variants": [_variant_to_dict(variant) for variant in enum.variants],
            }
            for enum in module.enums
        ],
        "processes": [
            {
                "name": process.name,
                "doc": process.doc,
                "config": process.config.model_dump(),
                "endpoints": [_endpoint_to_dict(endpoint) for endpoint in process.endpoints],
            }
            for process in module.processes
        ],
    }


def _module_from_dict(data: Dict[str, Any]) -> ModuleSchema:
    name = data["name"]
    documents = tuple(
        DocumentSchema(
            name=item["name"],
            module=name,
            root=bool(item.get("root", False)),
            rename=item.get("output_name"),
            doc=item.get("doc"),
            fields=tuple(
                FieldSchema(
                    name=field["name"],
                    tag=int(field["tag"]),
                    type=type_from_dict(field["type"]),
                    options=_options_from_dict(field.get("options")),
                    doc=field.get("doc"),
                )
                for field in item.get("fields", [])
            ),
        )
        for item in data.get("documents", [])
    )
    enums = tuple(
        EnumSchema(
            name=item["name"],
            module=name,
            rename=item.get("output_name"),
            doc=item.get("doc"),
            variants=tuple(
                VariantSchema(
                    name=variant["name"],
                    tag=int(variant["tag"]),
                    type=type_from_dict(variant["type"]) if variant.get("type") else None,
                    options=_options_from_dict(variant.get("options")),
                    doc=variant.get("doc"),
                )
                for variant in item.get("variants", [])
            ),
        )
        for item in data.get("enums", [])
    )
    processes = tuple(
        ProcessSchema(
            name=item["name"],
            module=name,
            doc=item.get("doc"),
            config=ProcessConfig.model_validate(item.get("config") or {}),
            endpoints=tuple(
                EndpointSchema(
                    name=endpoint["name"],
                    id=int(endpoint["id"]),
                    request=type_from_dict(endpoint["request"]),
                    stream=bool(endpoint.get("stream", False)),
                    required=bool(endpoint.get("required", False)),
                    rate_limit=endpoint.get("rate_limit"),
                    signature_required=bool(endpoint.get("signature_required", False)),
                    doc=endpoint.get("doc"),
                )
                for endpoint in item.get("endpoints", [])
            ),
        )
        for item in data.get("processes", [])
    )
    return ModuleSchema(
        name=name,
        path=data.get("path", ""),
        version=tuple(data.get("version", (1, 0))),
        imports=tuple(data.get("imports", ())),
        documents=documents,
        enums=enums,
        processes=processes,
        doc=data.get("doc"),
    )


def serialize_schema(model: SchemaModel) -> Dict[str, Any]:
    """
    Serialize a SchemaModel to a JSON-compatible dictionary.

    Example:
        >>> model = compile_file("shop.docbuf")
        >>> data = serialize_schema(model)
        >>> json.dumps(data)
    """
    return {
        "format_version": model.format_version,
        "modules": [_module_to_dict(module) for module in model.modules],
    }


def deserialize_schema(data: Dict[str, Any]) -> SchemaModel:
    """
    Rebuild a SchemaModel from :func:`serialize_schema` output.

    Raises:
        ValueError: If the data was written by an incompatible format version
    """
    version = int(data.get("format_version", SCHEMA_FORMAT_VERSION))
    if version != SCHEMA_FORMAT_VERSION:
        raise ValueError(f"Unsupported schema format version {version} (expected {SCHEMA_FORMAT_VERSION})")
    return SchemaModel(
        modules=tuple(_module_from_dict(module) for module in data.get("modules", [])),
        format_version=version,
    )


def write_schema(model: SchemaModel, path: Union[str, Path]) -> None:
    """Write a SchemaModel to a JSON file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(serialize_schema(model), f, indent=2)


def read_schema(path: Union[str, Path]) -> SchemaModel:
    """Read a SchemaModel from a JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return deserialize_schema(data)


__all__ = [
    "type_to_dict",
    "type_from_dict",
    "serialize_schema",
    "deserialize_schema",
    "write_schema",
    "read_schema",
]
