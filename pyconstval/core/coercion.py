"""Per-kind numeric coercion.
Implements fixed-width integer truncation, floating narrowing, binary32
rounding and string conversion with the target language's semantics, both
for single concrete values and for whole qualifiers.
"""

from __future__ import annotations

import math
import struct
from decimal import Decimal
from typing import Any

from pyconstval.core.exceptions import CoercionError
from pyconstval.core.qualifiers import (
    UNKNOWN,
    BoolSet,
    DoubleSet,
    IntSet,
    Qualifier,
    StringSet,
    make_for_kind,
)
from pyconstval.core.types import ValueKind

LONG_MIN = -(2**63)
LONG_MAX = 2**63 - 1
INT_MIN = -(2**31)
INT_MAX = 2**31 - 1


def _wrap(value: int, bits: int) -> int:
    mask = (1 << bits) - 1
    value &= mask
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


def to_long(value: int) -> int:
    return _wrap(value, 64)


def to_int(value: int) -> int:
    return _wrap(value, 32)


def to_short(value: int) -> int:
    return _wrap(value, 16)


def to_byte(value: int) -> int:
    return _wrap(value, 8)


def to_char(value: int) -> int:
    """char is the only unsigned integral kind."""
    return value & 0xFFFF


def to_float(value: float) -> float:
    """Round a double to the nearest binary32 value."""
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def double_to_long(value: float) -> int:
    if math.isnan(value):
        return 0
    if value >= 2.0**63:
        return LONG_MAX
    if value <= -(2.0**63):
        return LONG_MIN
    return int(value)


def double_to_int(value: float) -> int:
    if math.isnan(value):
        return 0
    if value >= INT_MAX:
        return INT_MAX
    if value <= INT_MIN:
        return INT_MIN
    return int(value)


_TRUNCATE = {
    ValueKind.LONG: to_long,
    ValueKind.INT: to_int,
    ValueKind.SHORT: to_short,
    ValueKind.BYTE: to_byte,
    ValueKind.CHAR: to_char,
}


def truncate(value: int, kind: ValueKind) -> int:
    """Truncate an integer to the width of an integral kind."""
    return _TRUNCATE[kind](value)


def _java_decimal(text: str, negative: bool) -> str:
    dec = Decimal(text)
    sign = "-" if negative else ""
    if Decimal("0.001") <= dec < Decimal("10000000"):
        fixed = format(dec, "f")
        if "." not in fixed:
            fixed += ".0"
        return sign + fixed
    digits = "".join(str(d) for d in dec.as_tuple().digits).rstrip("0") or "0"
    mantissa = digits[0] + "." + (digits[1:] or "0")
    return f"{sign}{mantissa}E{dec.adjusted()}"


def java_double_string(value: float) -> str:
    """Format a double the way Double.toString does."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0.0:
        return "-0.0" if math.copysign(1.0, value) < 0 else "0.0"
    return _java_decimal(repr(abs(value)), value < 0)


def java_float_string(value: float) -> str:
    """Format a binary32 value the way Float.toString does."""
    if math.isnan(value) or math.isinf(value) or value == 0.0:
        return java_double_string(value)
    magnitude = abs(value)
    text = repr(magnitude)
    for precision in range(1, 10):
        candidate = f"{magnitude:.{precision}g}"
        if to_float(float(candidate)) == magnitude:
            text = candidate
            break
    return _java_decimal(text, value < 0)


def java_string(value: Any, kind: ValueKind | None = None) -> str:
    """String conversion used by casts to string and by concatenation."""
    if kind is None:
        kind = _infer_kind(value)
    if kind is ValueKind.BOOLEAN:
        return "true" if value else "false"
    if kind is ValueKind.CHAR:
        return value if isinstance(value, str) else chr(to_char(int(value)))
    if kind.is_integral:
        return str(int(value))
    if kind is ValueKind.DOUBLE:
        return java_double_string(float(value))
    if kind is ValueKind.FLOAT:
        return java_float_string(float(value))
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _infer_kind(value: Any) -> ValueKind:
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int):
        return ValueKind.LONG
    if isinstance(value, float):
        return ValueKind.DOUBLE
    if isinstance(value, (str, bytes)):
        return ValueKind.STRING
    raise CoercionError(f"unsupported value {value!r}", value=value)


def convert(value: Any, source: ValueKind, target: ValueKind) -> Any:
    """Convert one concrete value from one kind's representation to another's.
    Integral kinds are represented as int, floating kinds as float, booleans
    as bool and strings (including byte arrays) as str.
    """
    if target.is_textual:
        if source.is_textual:
            return value
        if target is ValueKind.BYTE_ARRAY:
            raise CoercionError(f"cannot convert {source.name} to byte[]", value=value)
        return java_string(value, source)
    if target is ValueKind.BOOLEAN:
        if source is ValueKind.BOOLEAN:
            return bool(value)
        raise CoercionError(f"cannot convert {source.name} to boolean", value=value)
    if not source.is_numeric:
        raise CoercionError(f"cannot convert {source.name} to {target.name}", value=value)
    if target.is_integral:
        if source.is_integral:
            return truncate(int(value), target)
        if target is ValueKind.LONG:
            return double_to_long(float(value))
        return truncate(double_to_int(float(value)), target)
    if target is ValueKind.FLOAT:
        return to_float(float(value))
    return float(value)


def kind_of_qualifier(q: Qualifier) -> ValueKind | None:
    """The widest kind a value set's elements are stored in."""
    if isinstance(q, IntSet):
        return ValueKind.LONG
    if isinstance(q, DoubleSet):
        return ValueKind.DOUBLE
    if isinstance(q, BoolSet):
        return ValueKind.BOOLEAN
    if isinstance(q, StringSet):
        return ValueKind.STRING
    return None


def cast_values(
    q: Qualifier,
    target: ValueKind,
    source: ValueKind | None = None,
) -> list[Any]:
    """Convert every element of a value set to the target representation.
    Raises CoercionError when any element cannot be converted.
    """
    if source is None or not _compatible(q, source):
        source = kind_of_qualifier(q)
    if source is None:
        raise CoercionError(f"{q} holds no convertible values")
    return [convert(v, source, target) for v in q.values]


def _compatible(q: Qualifier, source: ValueKind) -> bool:
    if isinstance(q, IntSet):
        return source.is_integral
    if isinstance(q, DoubleSet):
        return source.is_floating
    if isinstance(q, BoolSet):
        return source is ValueKind.BOOLEAN
    if isinstance(q, StringSet):
        return source.is_textual
    return False


def cast_qualifier(
    q: Qualifier,
    target: ValueKind,
    source: ValueKind | None = None,
) -> Qualifier:
    """Apply the cast rule to a whole qualifier.
    Non-values and casts to boolean are no-ops, as are casts of a BoolSet to
    anything but a string. A string that cannot become a number is Unknown.
    """
    if q.is_non_value or target is ValueKind.BOOLEAN:
        return q
    if isinstance(q, BoolSet) and not target.is_textual:
        return q
    try:
        values = cast_values(q, target, source)
    except CoercionError:
        return UNKNOWN
    return make_for_kind(target, values)


__all__ = [
    "LONG_MIN",
    "LONG_MAX",
    "INT_MIN",
    "INT_MAX",
    "to_long",
    "to_int",
    "to_short",
    "to_byte",
    "to_char",
    "to_float",
    "double_to_long",
    "double_to_int",
    "truncate",
    "java_double_string",
    "java_float_string",
    "java_string",
    "convert",
    "kind_of_qualifier",
    "cast_values",
    "cast_qualifier",
]
