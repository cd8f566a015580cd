"""Optional constraint validation of document instances before encoding."""

from __future__ import annotations

from typing import Any, Mapping, Union

from docbuf.errors import ConstraintViolation
from docbuf.schema.constraints import check_constraints
from docbuf.schema.model import DocumentSchema, FieldOptions, SchemaModel
from docbuf.schema.types import DocumentRef, EnumRef, ListType, TypeRef

from .values import EnumValue


def _check_nested(model: SchemaModel, type_ref: TypeRef, value: Any, path: str) -> None:
    if isinstance(type_ref, DocumentRef) and isinstance(value, Mapping):
        _check_document(model, model.resolve(type_ref), value, path)
    elif isinstance(type_ref, ListType) and isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            _check_nested(model, type_ref.element, item, f"{path}[{index}]")
    elif isinstance(type_ref, EnumRef) and isinstance(value, EnumValue) and value.value is not None:
        enum = model.resolve(type_ref)
        try:
            variant = enum.variant(value.variant)
        except KeyError:
            return
        if variant.type is not None:
            _check_value(model, variant.options, variant.type, value.value, f"{path}.{variant.name}")


def _check_value(model: SchemaModel, options: FieldOptions, type_ref: TypeRef, value: Any, path: str) -> None:
    if options.has_constraints:
        reason = check_constraints(options, None, value)
        if reason is not None:
            raise ConstraintViolation(f"{path}: {reason}", field=path)
    _check_nested(model, type_ref, value, path)


def _check_document(model: SchemaModel, document: DocumentSchema, instance: Mapping[str, Any], path: str) -> None:
    for field in document.fields:
        value = instance.get(field.name)
        if value is None:
            continue
        _check_value(model, field.options, field.type, value, f"{path}.{field.name}")


def validate_value(model: SchemaModel, type_ref: TypeRef, value: Any) -> None:
    """Check the documents and enum payloads nested anywhere inside ``value``."""
    _check_nested(model, type_ref, value, "value")


def validate_instance(
    model: SchemaModel,
    document: Union[str, DocumentSchema],
    instance: Mapping[str, Any],
) -> None:
    """
    Check ``min_*``/``max_*``/``regex`` options of every present field.

    Raises:
        ConstraintViolation: naming the dotted path of the first offending field
    """
    schema = model.document(document) if isinstance(document, str) else document
    _check_document(model, schema, instance, schema.name)


__all__ = ["validate_instance", "validate_value"]
