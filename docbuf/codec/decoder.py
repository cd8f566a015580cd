"""Decoding of DocBuf wire bytes into document instances."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from docbuf.config import CodecLimits
from docbuf.errors import (
    MalformedData,
    MissingRequiredField,
    NestingTooDeep,
    TypeMismatch,
    UnexpectedEof,
    UnknownTag,
)
from docbuf.observability.logging import get_logger
from docbuf.schema.model import DocumentSchema, FieldSchema, SchemaModel
from docbuf.schema.types import DocumentRef, EnumRef, ListType, ScalarKind, ScalarType, TypeRef

from .values import EnumValue
from .wire import FIXED_FORMATS, Reader, WireType, skip_payload, wire_type_for

logger = get_logger(__name__)


class Decoder:
    """
    Stateless decoder bound to one schema model.

    Decoding either returns a complete value or raises a
    :class:`~docbuf.errors.CodecError`; callers never see a partially
    populated result. Fields whose tag the schema does not know are skipped.
    """

    def __init__(
        self,
        model: SchemaModel,
        *,
        fill_defaults: bool = CodecLimits.fill_defaults,
        max_depth: int = CodecLimits.max_depth,
        max_message_size: Optional[int] = CodecLimits.max_message_size,
    ):
        self.model = model
        self.fill_defaults = fill_defaults
        self.max_depth = max_depth
        self.max_message_size = max_message_size

    @classmethod
    def from_limits(cls, model: SchemaModel, limits: CodecLimits) -> "Decoder":
        return cls(
            model,
            fill_defaults=limits.fill_defaults,
            max_depth=limits.max_depth,
            max_message_size=limits.max_message_size,
        )

    def _check_size(self, data: Union[bytes, bytearray, memoryview]) -> None:
        if self.max_message_size is not None and len(data) > self.max_message_size:
            raise MalformedData(
                f"Message is {len(data)} bytes; max_message_size is {self.max_message_size}",
                offset=0,
            )

    def decode(self, document: Union[str, DocumentSchema], data: Union[bytes, bytearray, memoryview]) -> Dict[str, Any]:
        """
        Decode ``data`` as the body of ``document``.

        Raises:
            UnexpectedEof: the input ends inside a field
            MissingRequiredField: a required field is absent
            TypeMismatch: a field's wire type disagrees with the schema
            UnknownTag: an enumerable variant tag is not in the schema
            MalformedData: structurally invalid input
        """
        schema = self.model.document(document) if isinstance(document, str) else document
        self._check_size(data)
        return self._read_document(Reader(data), schema, schema.name, 0)

    def decode_value(self, type_ref: TypeRef, data: Union[bytes, bytearray, memoryview]) -> Any:
        """Decode the output of :meth:`Encoder.encode_value`."""
        self._check_size(data)
        reader = Reader(data)
        self._expect_wire_type(reader, type_ref, "value")
        value = self._read_payload(reader, type_ref, "value", 0)
        if not reader.at_end:
            raise MalformedData(f"{reader.remaining} trailing byte(s) after value", offset=reader.offset)
        return value

    # ====================================================================
    # Payload readers
    # ====================================================================

    def _expect_wire_type(self, reader: Reader, type_ref: TypeRef, path: str) -> WireType:
        offset = reader.offset
        wire_type = reader.read_wire_type()
        expected = wire_type_for(type_ref)
        if wire_type != expected:
            raise TypeMismatch(
                f"{path}: expected wire type {expected.name}, found {wire_type.name}",
                offset=offset,
                field=path,
            )
        return wire_type

    def _read_document(self, reader: Reader, schema: DocumentSchema, path: str, depth: int) -> Dict[str, Any]:
        if depth > self.max_depth:
            raise NestingTooDeep(f"{path}: nesting deeper than {self.max_depth} levels", offset=reader.offset, field=path)

        result: Dict[str, Any] = {}
        while not reader.at_end:
            offset = reader.offset
            tag = reader.read_varint()
            field = schema.field_by_tag(tag)
            if field is None:
                wire_type = reader.read_wire_type()
                logger.debug("skipping unknown tag %d (%s) in %s at offset %d", tag, wire_type.name, path, offset)
                skip_payload(reader, wire_type, depth, self.max_depth)
                continue
            field_path = f"{path}.{field.name}"
            if field.name in result:
                raise MalformedData(f"{field_path}: tag {tag} appears more than once", offset=offset, field=field_path)
            self._expect_wire_type(reader, field.type, field_path)
            result[field.name] = self._read_payload(reader, field.type, field_path, depth)

        for field in schema.fields:
            if field.name in result:
                continue
            if field.required:
                raise MissingRequiredField(f"{path}.{field.name} is required", offset=reader.offset, field=f"{path}.{field.name}")
            if self.fill_defaults and field.options.has_default:
                result[field.name] = self._default_for(field)
        return result

    def _default_for(self, field: FieldSchema) -> Any:
        if isinstance(field.type, EnumRef):
            return EnumValue(field.options.default)
        return field.options.default

    def _read_payload(self, reader: Reader, type_ref: TypeRef, path: str, depth: int) -> Any:
        if isinstance(type_ref, ScalarType):
            return self._read_scalar(reader, type_ref.kind, path)
        if isinstance(type_ref, ListType):
            return self._read_list(reader, type_ref, path, depth + 1)
        if isinstance(type_ref, DocumentRef):
            length = reader.read_length()
            sub = reader.sub_reader(length)
            return self._read_document(sub, self.model.resolve(type_ref), path, depth + 1)
        if isinstance(type_ref, EnumRef):
            return self._read_enum(reader, type_ref, path, depth + 1)
        raise TypeMismatch(f"{path}: unsupported type {type_ref!r}", offset=reader.offset, field=path)

    def _read_scalar(self, reader: Reader, kind: ScalarKind, path: str) -> Any:
        offset = reader.offset
        if kind == ScalarKind.STRING:
            raw = reader.read(reader.read_length())
            try:
                return raw.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise TypeMismatch(f"{path}: invalid UTF-8 ({exc.reason})", offset=offset, field=path) from None
        if kind == ScalarKind.BYTES:
            return reader.read(reader.read_length())
        wire_type = wire_type_for(ScalarType(kind))
        value = reader.read_fixed(wire_type)
        if kind == ScalarKind.BOOL:
            if value not in (0, 1):
                raise TypeMismatch(f"{path}: invalid bool byte 0x{value:02x}", offset=offset, field=path)
            return value == 1
        return value

    def _read_list(self, reader: Reader, type_ref: ListType, path: str, depth: int) -> List[Any]:
        if depth > self.max_depth:
            raise NestingTooDeep(f"{path}: nesting deeper than {self.max_depth} levels", offset=reader.offset, field=path)
        self._expect_wire_type(reader, type_ref.element, f"{path}[]")
        offset = reader.offset
        count = reader.read_varint()
        element_wire = wire_type_for(type_ref.element)
        minimum = FIXED_FORMATS[element_wire].size if element_wire in FIXED_FORMATS else 1
        if count * minimum > reader.remaining:
            raise UnexpectedEof(
                f"{path}: list claims {count} element(s) but only {reader.remaining} byte(s) remain",
                offset=offset,
                field=path,
            )
        return [
            self._read_payload(reader, type_ref.element, f"{path}[{index}]", depth)
            for index in range(count)
        ]

    def _read_enum(self, reader: Reader, type_ref: EnumRef, path: str, depth: int) -> EnumValue:
        if depth > self.max_depth:
            raise NestingTooDeep(f"{path}: nesting deeper than {self.max_depth} levels", offset=reader.offset, field=path)
        enum = self.model.resolve(type_ref)
        sub = reader.sub_reader(reader.read_length())
        offset = sub.offset
        tag = sub.read_byte()
        variant = enum.variant_by_tag(tag)
        if variant is None:
            raise UnknownTag(f"{path}: {enum.name} has no variant with tag {tag}", tag=tag, offset=offset, field=path)
        if variant.type is None:
            value = EnumValue(variant.name)
        else:
            value = EnumValue(variant.name, self._read_payload(sub, variant.type, f"{path}.{variant.name}", depth))
        if not sub.at_end:
            raise MalformedData(f"{path}: {sub.remaining} trailing byte(s) in enum payload", offset=sub.offset, field=path)
        return value


def decode(
    model: SchemaModel,
    document: Union[str, DocumentSchema],
    data: Union[bytes, bytearray, memoryview],
    *,
    fill_defaults: bool = True,
) -> Dict[str, Any]:
    """Decode ``data`` as ``document``; see :meth:`Decoder.decode`."""
    return Decoder(model, fill_defaults=fill_defaults).decode(document, data)


__all__ = ["Decoder", "decode"]
