"""Binary codec: schema-driven encoding and decoding of document instances."""

from __future__ import annotations

from .wire import WireType, Reader, Writer, encode_varint, skip_payload, wire_type_for
from .values import EnumValue
from .constraints import validate_instance, validate_value
from .encoder import Encoder, encode
from .decoder import Decoder, decode

__all__ = [
    "WireType",
    "Reader",
    "Writer",
    "encode_varint",
    "skip_payload",
    "wire_type_for",
    "EnumValue",
    "validate_instance",
    "validate_value",
    "Encoder",
    "encode",
    "Decoder",
    "decode",
]
