"""Checks of individual values against declared field options.

Shared by the validator, which checks ``default`` literals at compile time,
and by the codec's optional instance validation.
"""

from __future__ import annotations

import math
import struct
from typing import Any, Optional

from .model import FieldOptions
from .types import INTEGER_RANGES, ScalarKind, ScalarType, TypeRef

# Largest finite single-precision float.
F32_MAX = 3.4028234663852886e38

_F32 = struct.Struct("<f")


def narrow_f32(value: float) -> float:
    """
    Round ``value`` to the nearest single-precision float.

    An ``f32`` field only accepts values this leaves unchanged, so callers
    holding arbitrary doubles narrow them before encoding.

    Raises:
        OverflowError: ``value`` is finite and beyond the f32 range.
    """
    return _F32.unpack(_F32.pack(value))[0]


def fits_scalar(kind: ScalarKind, value: Any) -> bool:
    """True when ``value`` is representable by the scalar ``kind``."""
    if kind == ScalarKind.BOOL:
        return isinstance(value, bool)
    if kind == ScalarKind.STRING:
        return isinstance(value, str)
    if kind == ScalarKind.BYTES:
        return isinstance(value, (bytes, bytearray))
    if isinstance(value, bool):
        return False
    if kind.is_integer:
        if not isinstance(value, int):
            return False
        low, high = INTEGER_RANGES[kind]
        return low <= value <= high
    if not isinstance(value, (int, float)):
        return False
    if isinstance(value, int):
        # the wire carries floats; integers must convert exactly
        try:
            as_float = float(value)
        except OverflowError:
            return False
        if as_float != value:
            return False
        value = as_float
    if kind == ScalarKind.F32 and math.isfinite(value):
        return abs(value) <= F32_MAX and narrow_f32(value) == value
    return True


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def check_constraints(options: FieldOptions, type_ref: Optional[TypeRef], value: Any) -> Optional[str]:
    """Return the reason ``value`` violates ``options``, or ``None``."""
    if options.min_length is not None or options.max_length is not None:
        if isinstance(value, (str, bytes, bytearray, list, tuple)):
            length = len(value)
            if options.min_length is not None and length < options.min_length:
                return f"length {length} is below min_length {options.min_length}"
            if options.max_length is not None and length > options.max_length:
                return f"length {length} exceeds max_length {options.max_length}"

    if _is_number(value):
        if options.min_value is not None and value < options.min_value:
            return f"value {value} is below min_value {options.min_value}"
        if options.max_value is not None and value > options.max_value:
            return f"value {value} exceeds max_value {options.max_value}"

    if options.regex is not None and isinstance(value, str):
        if options.pattern.search(value) is None:
            return f"value {value!r} does not match regex {options.regex!r}"

    if isinstance(type_ref, ScalarType) and not fits_scalar(type_ref.kind, value):
        return f"value {value!r} does not fit {type_ref.kind.value}"

    return None


__all__ = ["F32_MAX", "narrow_f32", "fits_scalar", "check_constraints"]
