"""
Low-level wire primitives.

A document body is a sequence of fields::

    field    = varint tag , wire-type byte , payload
    payload  = fixed-width little-endian scalar
             | varint length , bytes                     (String, bytes)
             | element wire-type byte , varint count , element payloads   (list)
             | varint length , document body             (document)
             | varint length , variant tag byte , payload  (enumerable)

Every payload can be skipped from its wire-type byte alone, which is what
lets decoders ignore fields added by newer schemas.
"""

from __future__ import annotations

import struct
from enum import IntEnum
from typing import Any, Dict, Optional, Union

from docbuf.errors import MalformedData, NestingTooDeep, UnexpectedEof
from docbuf.schema.types import DocumentRef, EnumRef, ListType, ScalarKind, ScalarType, TypeRef

MAX_VARINT_BYTES = 10
MAX_VARINT = 2**64 - 1


class WireType(IntEnum):
    """One-byte discriminant written in front of every field payload."""

    U8 = 0x01
    U16 = 0x02
    U32 = 0x03
    U64 = 0x04
    I8 = 0x05
    I16 = 0x06
    I32 = 0x07
    I64 = 0x08
    F32 = 0x09
    F64 = 0x0A
    BOOL = 0x0B
    STRING = 0x0C
    BYTES = 0x0D
    LIST = 0x0E
    DOCUMENT = 0x0F
    ENUM = 0x10


FIXED_FORMATS: Dict[WireType, struct.Struct] = {
    WireType.U8: struct.Struct("<B"),
    WireType.U16: struct.Struct("<H"),
    WireType.U32: struct.Struct("<I"),
    WireType.U64: struct.Struct("<Q"),
    WireType.I8: struct.Struct("<b"),
    WireType.I16: struct.Struct("<h"),
    WireType.I32: struct.Struct("<i"),
    WireType.I64: struct.Struct("<q"),
    WireType.F32: struct.Struct("<f"),
    WireType.F64: struct.Struct("<d"),
    WireType.BOOL: struct.Struct("<B"),
}

LENGTH_PREFIXED = frozenset({WireType.STRING, WireType.BYTES, WireType.DOCUMENT, WireType.ENUM})

_SCALAR_WIRE_TYPES = {
    ScalarKind.U8: WireType.U8,
    ScalarKind.U16: WireType.U16,
    ScalarKind.U32: WireType.U32,
    ScalarKind.U64: WireType.U64,
    ScalarKind.I8: WireType.I8,
    ScalarKind.I16: WireType.I16,
    ScalarKind.I32: WireType.I32,
    ScalarKind.I64: WireType.I64,
    ScalarKind.F32: WireType.F32,
    ScalarKind.F64: WireType.F64,
    ScalarKind.BOOL: WireType.BOOL,
    ScalarKind.STRING: WireType.STRING,
    ScalarKind.BYTES: WireType.BYTES,
}


def wire_type_for(type_ref: TypeRef) -> WireType:
    if isinstance(type_ref, ScalarType):
        return _SCALAR_WIRE_TYPES[type_ref.kind]
    if isinstance(type_ref, ListType):
        return WireType.LIST
    if isinstance(type_ref, DocumentRef):
        return WireType.DOCUMENT
    if isinstance(type_ref, EnumRef):
        return WireType.ENUM
    raise TypeError(f"No wire type for {type_ref!r}")


def encode_varint(value: int) -> bytes:
    """Unsigned LEB128 encoding."""
    if value < 0 or value > MAX_VARINT:
        raise ValueError(f"varint out of range: {value}")
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


class Writer:
    """Append-only byte buffer with wire helpers."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    def __len__(self) -> int:
        return len(self._buffer)

    def write_byte(self, value: int) -> None:
        self._buffer.append(value)

    def write_varint(self, value: int) -> None:
        self._buffer += encode_varint(value)

    def write_fixed(self, wire_type: WireType, value: Any) -> None:
        self._buffer += FIXED_FORMATS[wire_type].pack(value)

    def write_raw(self, data: Union[bytes, bytearray, memoryview]) -> None:
        self._buffer += data

    def write_length_prefixed(self, data: Union[bytes, bytearray, memoryview]) -> None:
        self.write_varint(len(data))
        self._buffer += data

    def getvalue(self) -> bytes:
        return bytes(self._buffer)


class Reader:
    """Bounds-checked cursor over an immutable buffer.

    ``offset`` is always absolute within the original buffer so errors can
    point at the failing byte.
    """

    def __init__(self, data: Union[bytes, bytearray, memoryview], offset: int = 0, end: Optional[int] = None):
        self._data = memoryview(data) if not isinstance(data, memoryview) else data
        self.offset = offset
        self.end = len(self._data) if end is None else end

    @property
    def remaining(self) -> int:
        return self.end - self.offset

    @property
    def at_end(self) -> bool:
        return self.offset >= self.end

    def _require(self, count: int) -> None:
        if count > self.remaining:
            raise UnexpectedEof(
                f"Need {count} byte(s) at offset {self.offset}, only {self.remaining} left",
                offset=self.offset,
            )

    def read_byte(self) -> int:
        self._require(1)
        value = self._data[self.offset]
        self.offset += 1
        return value

    def read(self, count: int) -> bytes:
        self._require(count)
        chunk = bytes(self._data[self.offset:self.offset + count])
        self.offset += count
        return chunk

    def read_varint(self) -> int:
        start = self.offset
        result = 0
        for index in range(MAX_VARINT_BYTES):
            byte = self.read_byte()
            result |= (byte & 0x7F) << (7 * index)
            if not byte & 0x80:
                if result > MAX_VARINT:
                    raise MalformedData(f"Varint at offset {start} overflows 64 bits", offset=start)
                return result
        raise MalformedData(f"Varint at offset {start} is longer than {MAX_VARINT_BYTES} bytes", offset=start)

    def read_fixed(self, wire_type: WireType) -> Any:
        fmt = FIXED_FORMATS[wire_type]
        self._require(fmt.size)
        (value,) = fmt.unpack_from(self._data, self.offset)
        self.offset += fmt.size
        return value

    def read_wire_type(self) -> WireType:
        offset = self.offset
        byte = self.read_byte()
        try:
            return WireType(byte)
        except ValueError:
            raise MalformedData(f"Unknown wire type 0x{byte:02x} at offset {offset}", offset=offset) from None

    def read_length(self) -> int:
        """Read a varint length and check the bytes are actually present."""
        length = self.read_varint()
        self._require(length)
        return length

    def sub_reader(self, length: int) -> "Reader":
        """Return a reader over the next ``length`` bytes and skip past them."""
        self._require(length)
        sub = Reader(self._data, self.offset, self.offset + length)
        self.offset += length
        return sub


def skip_payload(reader: Reader, wire_type: WireType, depth: int = 0, max_depth: int = 64) -> None:
    """Skip one payload without schema knowledge."""
    if depth > max_depth:
        raise NestingTooDeep(f"Nesting deeper than {max_depth} levels", offset=reader.offset)
    if wire_type in FIXED_FORMATS:
        reader.read(FIXED_FORMATS[wire_type].size)
    elif wire_type in LENGTH_PREFIXED:
        reader.read(reader.read_length())
    elif wire_type == WireType.LIST:
        element = reader.read_wire_type()
        count = reader.read_varint()
        if count > reader.remaining:
            raise UnexpectedEof(f"List of {count} element(s) exceeds the remaining input", offset=reader.offset)
        if element in FIXED_FORMATS:
            reader.read(count * FIXED_FORMATS[element].size)
        else:
            for _ in range(count):
                skip_payload(reader, element, depth + 1, max_depth)
    else:
        raise MalformedData(f"Cannot skip wire type {wire_type!r}", offset=reader.offset)


__all__ = [
    "MAX_VARINT_BYTES",
    "WireType",
    "FIXED_FORMATS",
    "wire_type_for",
    "encode_varint",
    "Writer",
    "Reader",
    "skip_payload",
]
