"""Encoding of document instances into DocBuf wire bytes."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

from docbuf.config import CodecLimits
from docbuf.errors import MalformedData, MissingRequiredField, NestingTooDeep, TypeMismatch
from docbuf.schema.constraints import F32_MAX, fits_scalar, narrow_f32
from docbuf.schema.model import DocumentSchema, SchemaModel
from docbuf.schema.types import DocumentRef, EnumRef, ListType, ScalarKind, ScalarType, TypeRef

from .constraints import validate_instance, validate_value
from .values import EnumValue
from .wire import Writer, wire_type_for


def _describe(value: Any) -> str:
    return type(value).__name__


def _scalar_hint(kind: ScalarKind, value: Any) -> Optional[str]:
    if kind == ScalarKind.F32 and isinstance(value, float) and abs(value) <= F32_MAX:
        return f"f32 keeps 24 bits of precision; pass narrow_f32({value!r}) = {narrow_f32(value)!r}"
    return None


class Encoder:
    """
    Stateless encoder bound to one schema model.

    An encoder holds no per-call state, so one instance can be shared by
    any number of threads.

    Example:
        >>> encoder = Encoder(model)
        >>> data = encoder.encode("Order", {"id": 7, "items": []})
    """

    def __init__(
        self,
        model: SchemaModel,
        *,
        validate_before_encode: bool = False,
        max_depth: int = CodecLimits.max_depth,
        max_message_size: Optional[int] = CodecLimits.max_message_size,
    ):
        self.model = model
        self.validate_before_encode = validate_before_encode
        self.max_depth = max_depth
        self.max_message_size = max_message_size

    @classmethod
    def from_limits(cls, model: SchemaModel, limits: CodecLimits) -> "Encoder":
        return cls(
            model,
            validate_before_encode=limits.validate_before_encode,
            max_depth=limits.max_depth,
            max_message_size=limits.max_message_size,
        )

    def _document(self, document: Union[str, DocumentSchema]) -> DocumentSchema:
        return self.model.document(document) if isinstance(document, str) else document

    def _check_size(self, data: bytes) -> bytes:
        if self.max_message_size is not None and len(data) > self.max_message_size:
            raise MalformedData(
                f"Encoded message is {len(data)} bytes; max_message_size is {self.max_message_size}"
            )
        return data

    def encode(self, document: Union[str, DocumentSchema], instance: Mapping[str, Any]) -> bytes:
        """
        Encode ``instance`` as the body of ``document``.

        Raises:
            MissingRequiredField: a required field is absent or ``None``
            TypeMismatch: a value does not have its field's type
            ConstraintViolation: with ``validate_before_encode``, an option is violated
        """
        schema = self._document(document)
        if self.validate_before_encode:
            validate_instance(self.model, schema, instance)
        writer = Writer()
        self._write_document(writer, schema, instance, schema.name, 0)
        return self._check_size(writer.getvalue())

    def encode_value(self, type_ref: TypeRef, value: Any) -> bytes:
        """Encode any value as a wire-type byte followed by its payload."""
        if self.validate_before_encode:
            validate_value(self.model, type_ref, value)
        writer = Writer()
        writer.write_byte(wire_type_for(type_ref))
        self._write_payload(writer, type_ref, value, "value", 0)
        return self._check_size(writer.getvalue())

    # ====================================================================
    # Payload writers
    # ====================================================================

    def _write_document(
        self, writer: Writer, schema: DocumentSchema, instance: Any, path: str, depth: int
    ) -> None:
        if depth > self.max_depth:
            raise NestingTooDeep(f"{path}: nesting deeper than {self.max_depth} levels", field=path)
        if not isinstance(instance, Mapping):
            raise TypeMismatch(f"{path}: expected a mapping for {schema.name}, got {_describe(instance)}", field=path)

        unknown = [key for key in instance if not schema.has_field(key)]
        if unknown:
            raise TypeMismatch(
                f"{path}: {schema.name} has no field(s) {', '.join(sorted(map(str, unknown)))}",
                field=path,
            )

        for field in schema.fields:
            value = instance.get(field.name)
            field_path = f"{path}.{field.name}"
            if value is None:
                if field.required:
                    raise MissingRequiredField(f"{field_path} is required", field=field_path)
                continue
            writer.write_varint(field.tag)
            writer.write_byte(wire_type_for(field.type))
            self._write_payload(writer, field.type, value, field_path, depth)

    def _write_payload(self, writer: Writer, type_ref: TypeRef, value: Any, path: str, depth: int) -> None:
        if isinstance(type_ref, ScalarType):
            self._write_scalar(writer, type_ref.kind, value, path)
        elif isinstance(type_ref, ListType):
            self._write_list(writer, type_ref, value, path, depth + 1)
        elif isinstance(type_ref, DocumentRef):
            nested = Writer()
            self._write_document(nested, self.model.resolve(type_ref), value, path, depth + 1)
            writer.write_length_prefixed(nested.getvalue())
        elif isinstance(type_ref, EnumRef):
            self._write_enum(writer, type_ref, value, path, depth + 1)
        else:
            raise TypeMismatch(f"{path}: unsupported type {type_ref!r}", field=path)

    def _write_scalar(self, writer: Writer, kind: ScalarKind, value: Any, path: str) -> None:
        if kind == ScalarKind.STRING:
            if not isinstance(value, str):
                raise TypeMismatch(f"{path}: expected String, got {_describe(value)}", field=path)
            writer.write_length_prefixed(value.encode("utf-8"))
            return
        if kind == ScalarKind.BYTES:
            if not isinstance(value, (bytes, bytearray, memoryview)):
                raise TypeMismatch(f"{path}: expected bytes, got {_describe(value)}", field=path)
            writer.write_length_prefixed(bytes(value))
            return
        if not fits_scalar(kind, value):
            raise TypeMismatch(
                f"{path}: {value!r} is not a valid {kind.value}",
                field=path,
                hint=_scalar_hint(kind, value),
            )
        if kind.is_float:
            value = float(value)
        if kind == ScalarKind.BOOL:
            value = 1 if value else 0
        writer.write_fixed(wire_type_for(ScalarType(kind)), value)

    def _write_list(self, writer: Writer, type_ref: ListType, value: Any, path: str, depth: int) -> None:
        if depth > self.max_depth:
            raise NestingTooDeep(f"{path}: nesting deeper than {self.max_depth} levels", field=path)
        if not isinstance(value, (list, tuple)):
            raise TypeMismatch(f"{path}: expected a list, got {_describe(value)}", field=path)
        element_type = wire_type_for(type_ref.element)
        writer.write_byte(element_type)
        writer.write_varint(len(value))
        for index, item in enumerate(value):
            item_path = f"{path}[{index}]"
            if item is None:
                raise TypeMismatch(f"{item_path}: list elements cannot be None", field=item_path)
            self._write_payload(writer, type_ref.element, item, item_path, depth)

    def _write_enum(self, writer: Writer, type_ref: EnumRef, value: Any, path: str, depth: int) -> None:
        if depth > self.max_depth:
            raise NestingTooDeep(f"{path}: nesting deeper than {self.max_depth} levels", field=path)
        enum = self.model.resolve(type_ref)
        if isinstance(value, str):
            value = EnumValue(value)
        if not isinstance(value, EnumValue):
            raise TypeMismatch(f"{path}: expected EnumValue for {enum.name}, got {_describe(value)}", field=path)
        try:
            variant = enum.variant(value.variant)
        except KeyError:
            raise TypeMismatch(f"{path}: {enum.name} has no variant '{value.variant}'", field=path) from None

        body = Writer()
        body.write_byte(variant.tag)
        if variant.type is None:
            if value.value is not None:
                raise TypeMismatch(f"{path}: unit variant {enum.name}.{variant.name} carries no value", field=path)
        else:
            if value.value is None:
                raise TypeMismatch(f"{path}: variant {enum.name}.{variant.name} requires a value", field=path)
            self._write_payload(body, variant.type, value.value, f"{path}.{variant.name}", depth)
        writer.write_length_prefixed(body.getvalue())


def encode(
    model: SchemaModel,
    document: Union[str, DocumentSchema],
    instance: Mapping[str, Any],
    *,
    validate_before_encode: bool = False,
) -> bytes:
    """Encode ``instance`` as ``document``; see :meth:`Encoder.encode`."""
    return Encoder(model, validate_before_encode=validate_before_encode).encode(document, instance)


__all__ = ["Encoder", "encode"]
