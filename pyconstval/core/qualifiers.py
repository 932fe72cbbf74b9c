"""
Qualifiers of the constant-value domain.
A qualifier is the abstract value of one expression:
- IntSet: possible values of an integral expression (64-bit signed)
- DoubleSet: possible values of a float/double expression
- BoolSet: possible values of a boolean expression
- StringSet: possible values of a string or fixed-content byte array
- ArrayLenSet: possible lengths of an array expression
- Bottom: no value (unreachable)
- Unknown: no information (top)
Every value set holds between 1 and MAX_VALUES distinct elements. Building
a set outside that range yields UNKNOWN instead. Qualifiers are frozen, so a
qualifier handed out by the evaluator can be cached and shared freely.
"""

from __future__ import annotations

import math
import struct
from abc import ABC
from collections.abc import Iterable
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, ClassVar

import z3

from pyconstval.core.exceptions import CapacityError
from pyconstval.core.types import ValueKind

MAX_VALUES = 10

_CANONICAL_NAN_BITS = 0x7FF8000000000000


class Qualifier(ABC):
    """Base class for every element of the qualifier lattice."""

    @property
    def is_unknown(self) -> bool:
        return False

    @property
    def is_bottom(self) -> bool:
        return False

    @property
    def is_value(self) -> bool:
        """True for every value-set variant (including ArrayLenSet)."""
        return False

    @property
    def is_non_value(self) -> bool:
        """Qualifiers operators cannot consume: Unknown, Bottom, ArrayLenSet."""
        return True

    def to_z3_constraint(self, var: z3.ExprRef) -> z3.BoolRef:
        """Membership constraint for a z3 variable standing for this expression."""
        return z3.BoolVal(True)


@dataclass(frozen=True)
class Unknown(Qualifier):
    """Top of the lattice."""

    @property
    def is_unknown(self) -> bool:
        return True

    def __repr__(self) -> str:
        return "Unknown"


@dataclass(frozen=True)
class Bottom(Qualifier):
    """Bottom of the lattice: the expression has no value."""

    @property
    def is_bottom(self) -> bool:
        return True

    def to_z3_constraint(self, var: z3.ExprRef) -> z3.BoolRef:
        return z3.BoolVal(False)

    def __repr__(self) -> str:
        return "Bottom"


UNKNOWN = Unknown()
BOTTOM = Bottom()


@dataclass(frozen=True)
class ValueSetQualifier(Qualifier):
    """A non-empty, bounded set of concrete values.
    Elements are stored as hashable keys (see encode/decode) so that value
    equality follows the analyzed language rather than Python's.
    """

    keys: frozenset

    label: ClassVar[str] = "ValueSet"

    def __post_init__(self):
        if not self.keys:
            raise ValueError(f"{type(self).__name__} must not be empty")
        if len(self.keys) > MAX_VALUES:
            raise ValueError(f"{type(self).__name__} holds more than {MAX_VALUES} values")

    @classmethod
    def encode(cls, value: Any) -> Any:
        return value

    @classmethod
    def decode(cls, key: Any) -> Any:
        return key

    @classmethod
    def sort_key(cls, value: Any) -> Any:
        return value

    @classmethod
    def of(cls, values: Iterable[Any]) -> Qualifier:
        """Build a set from concrete values; UNKNOWN if empty or too large.
        None elements are ignored.
        """
        keys = set()
        for v in values:
            if v is None:
                continue
            keys.add(cls.encode(v))
            if len(keys) > MAX_VALUES:
                return UNKNOWN
        if not keys:
            return UNKNOWN
        return cls(frozenset(keys))

    @property
    def is_value(self) -> bool:
        return True

    @property
    def is_non_value(self) -> bool:
        return False

    @property
    def values(self) -> tuple:
        """Decoded elements in a deterministic order."""
        return tuple(sorted((self.decode(k) for k in self.keys), key=self.sort_key))

    def __len__(self) -> int:
        return len(self.keys)

    def __iter__(self):
        return iter(self.values)

    def __contains__(self, value: Any) -> bool:
        try:
            return self.encode(value) in self.keys
        except (TypeError, ValueError):
            return False

    def issubset(self, other: ValueSetQualifier) -> bool:
        return type(self) is type(other) and self.keys <= other.keys

    def union(self, other: ValueSetQualifier) -> Qualifier:
        """Same-variant union, collapsing to UNKNOWN above MAX_VALUES."""
        if type(self) is not type(other):
            raise TypeError(f"cannot union {self.label} with {other.label}")
        merged = self.keys | other.keys
        if len(merged) > MAX_VALUES:
            return UNKNOWN
        return type(self)(merged)

    def _format_value(self, value: Any) -> str:
        return repr(value)

    def __repr__(self) -> str:
        inner = ", ".join(self._format_value(v) for v in self.values)
        return f"{self.label}{{{inner}}}"


def _to_long(value: int) -> int:
    value &= (1 << 64) - 1
    if value >= 1 << 63:
        value -= 1 << 64
    return value


def _membership(var: z3.ExprRef, literals: list[z3.ExprRef]) -> z3.BoolRef:
    clauses = [var == lit for lit in literals]
    if len(clauses) == 1:
        return clauses[0]
    return z3.Or(*clauses)


@dataclass(frozen=True, repr=False)
class IntSet(ValueSetQualifier):
    """Values of byte/short/char/int/long expressions, widened to 64 bits."""

    label: ClassVar[str] = "IntSet"

    @classmethod
    def encode(cls, value: Any) -> int:
        if isinstance(value, float):
            raise TypeError("IntSet does not hold floating values")
        return _to_long(int(value))

    def to_z3_constraint(self, var: z3.ExprRef) -> z3.BoolRef:
        return _membership(var, [z3.IntVal(v) for v in self.values])


@dataclass(frozen=True, repr=False)
class ArrayLenSet(ValueSetQualifier):
    """Possible lengths of an array expression."""

    label: ClassVar[str] = "ArrayLenSet"

    @property
    def is_non_value(self) -> bool:
        return True

    @classmethod
    def encode(cls, value: Any) -> int:
        length = int(value)
        if length < 0:
            raise ValueError(f"negative array length {length}")
        return length

    def to_z3_constraint(self, var: z3.ExprRef) -> z3.BoolRef:
        return _membership(var, [z3.IntVal(v) for v in self.values])


@dataclass(frozen=True, repr=False)
class DoubleSet(ValueSetQualifier):
    """Values of float/double expressions.
    Keys are IEEE-754 bit patterns, so -0.0 and 0.0 stay distinct and every
    NaN collapses to one canonical element.
    """

    label: ClassVar[str] = "DoubleSet"

    @classmethod
    def encode(cls, value: Any) -> int:
        d = float(value)
        if math.isnan(d):
            return _CANONICAL_NAN_BITS
        return struct.unpack("<q", struct.pack("<d", d))[0]

    @classmethod
    def decode(cls, key: int) -> float:
        return struct.unpack("<d", struct.pack("<q", key))[0]

    @classmethod
    def sort_key(cls, value: float) -> tuple:
        if math.isnan(value):
            return (1, 0.0)
        return (0, value)

    def to_z3_constraint(self, var: z3.ExprRef) -> z3.BoolRef:
        values = self.values
        if any(math.isnan(v) or math.isinf(v) for v in values):
            return z3.BoolVal(True)
        return _membership(var, [z3.RealVal(str(Fraction(v))) for v in values])


@dataclass(frozen=True, repr=False)
class BoolSet(ValueSetQualifier):
    label: ClassVar[str] = "BoolSet"

    @classmethod
    def encode(cls, value: Any) -> bool:
        if not isinstance(value, bool):
            raise TypeError(f"BoolSet holds booleans, not {value!r}")
        return value

    def to_z3_constraint(self, var: z3.ExprRef) -> z3.BoolRef:
        if len(self.keys) == 2:
            return z3.BoolVal(True)
        return var if self.values[0] else z3.Not(var)

    def _format_value(self, value: Any) -> str:
        return "true" if value else "false"


@dataclass(frozen=True, repr=False)
class StringSet(ValueSetQualifier):
    """Values of string expressions and of byte arrays with known content."""

    label: ClassVar[str] = "StringSet"

    @classmethod
    def encode(cls, value: Any) -> str:
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).decode("utf-8", errors="replace")
        if not isinstance(value, str):
            raise TypeError(f"StringSet holds strings, not {value!r}")
        return value

    def to_z3_constraint(self, var: z3.ExprRef) -> z3.BoolRef:
        return _membership(var, [z3.StringVal(s) for s in self.values])


_KIND_VARIANTS: dict[ValueKind, type[ValueSetQualifier]] = {
    ValueKind.BYTE: IntSet,
    ValueKind.SHORT: IntSet,
    ValueKind.CHAR: IntSet,
    ValueKind.INT: IntSet,
    ValueKind.LONG: IntSet,
    ValueKind.FLOAT: DoubleSet,
    ValueKind.DOUBLE: DoubleSet,
    ValueKind.BOOLEAN: BoolSet,
    ValueKind.STRING: StringSet,
    ValueKind.BYTE_ARRAY: StringSet,
}


def variant_for_kind(kind: ValueKind) -> type[ValueSetQualifier]:
    """Qualifier variant holding values of a kind."""
    return _KIND_VARIANTS[kind]


def make_for_kind(kind: ValueKind, values: Iterable[Any]) -> Qualifier:
    """Build the value set matching a kind; UNKNOWN if empty or too large."""
    return variant_for_kind(kind).of(values)


def make_int_set(*values: int) -> Qualifier:
    return IntSet.of(values)


def make_double_set(*values: float) -> Qualifier:
    return DoubleSet.of(values)


def make_bool_set(*values: bool) -> Qualifier:
    return BoolSet.of(values)


def make_string_set(*values: str) -> Qualifier:
    return StringSet.of(values)


def make_array_len_set(*values: int) -> Qualifier:
    return ArrayLenSet.of(values)


def declared(variant: type[ValueSetQualifier], values: Iterable[Any]) -> Qualifier:
    """Qualifier for an explicitly declared value annotation.
    Raises CapacityError when the declaration lists more than MAX_VALUES
    distinct values; the caller reports it and treats the expression as
    Unknown.
    """
    values = [v for v in values if v is not None]
    qualifier = variant.of(values)
    if qualifier.is_unknown and values:
        raise CapacityError(
            f"{variant.label} declares more than {MAX_VALUES} values",
            count=len(values),
        )
    return qualifier


__all__ = [
    "MAX_VALUES",
    "Qualifier",
    "Unknown",
    "Bottom",
    "UNKNOWN",
    "BOTTOM",
    "ValueSetQualifier",
    "IntSet",
    "ArrayLenSet",
    "DoubleSet",
    "BoolSet",
    "StringSet",
    "variant_for_kind",
    "make_for_kind",
    "make_int_set",
    "make_double_set",
    "make_bool_set",
    "make_string_set",
    "make_array_len_set",
    "declared",
]
