"""Static types and the covered-type registry.
Only expressions whose declared type appears in the registry are tracked by
the constant-value domain. Everything else passes through as Unknown.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class ValueKind(Enum):
    """Concrete representation a covered type is computed in."""

    BYTE = auto()
    SHORT = auto()
    CHAR = auto()
    INT = auto()
    LONG = auto()
    FLOAT = auto()
    DOUBLE = auto()
    BOOLEAN = auto()
    STRING = auto()
    BYTE_ARRAY = auto()

    @property
    def is_integral(self) -> bool:
        return self in _INTEGRAL_KINDS

    @property
    def is_floating(self) -> bool:
        return self in (ValueKind.FLOAT, ValueKind.DOUBLE)

    @property
    def is_numeric(self) -> bool:
        return self.is_integral or self.is_floating

    @property
    def is_textual(self) -> bool:
        """Kinds whose values live in a StringSet."""
        return self in (ValueKind.STRING, ValueKind.BYTE_ARRAY)


_INTEGRAL_KINDS = frozenset(
    {ValueKind.BYTE, ValueKind.SHORT, ValueKind.CHAR, ValueKind.INT, ValueKind.LONG}
)


@dataclass(frozen=True)
class StaticType:
    """A declared static type, named as the analyzed language names it."""

    name: str

    @property
    def is_array(self) -> bool:
        return self.name.endswith("[]")

    @property
    def component(self) -> StaticType | None:
        """Element type of an array type, None otherwise."""
        if not self.is_array:
            return None
        return StaticType(self.name[:-2])

    def array_of(self) -> StaticType:
        return StaticType(self.name + "[]")

    def __str__(self) -> str:
        return self.name


BYTE = StaticType("byte")
SHORT = StaticType("short")
CHAR = StaticType("char")
INT = StaticType("int")
LONG = StaticType("long")
FLOAT = StaticType("float")
DOUBLE = StaticType("double")
BOOLEAN = StaticType("boolean")
STRING = StaticType("java.lang.String")
BYTE_ARRAY = StaticType("byte[]")
CHAR_ARRAY = StaticType("char[]")
INT_ARRAY = StaticType("int[]")
OBJECT = StaticType("java.lang.Object")
VOID = StaticType("void")

BOXED_BYTE = StaticType("java.lang.Byte")
BOXED_SHORT = StaticType("java.lang.Short")
BOXED_CHAR = StaticType("java.lang.Character")
BOXED_INT = StaticType("java.lang.Integer")
BOXED_LONG = StaticType("java.lang.Long")
BOXED_FLOAT = StaticType("java.lang.Float")
BOXED_DOUBLE = StaticType("java.lang.Double")
BOXED_BOOLEAN = StaticType("java.lang.Boolean")

COVERED_TYPES: dict[str, ValueKind] = {
    "int": ValueKind.INT,
    "java.lang.Integer": ValueKind.INT,
    "double": ValueKind.DOUBLE,
    "java.lang.Double": ValueKind.DOUBLE,
    "byte": ValueKind.BYTE,
    "java.lang.Byte": ValueKind.BYTE,
    "java.lang.String": ValueKind.STRING,
    "char": ValueKind.CHAR,
    "java.lang.Character": ValueKind.CHAR,
    "float": ValueKind.FLOAT,
    "java.lang.Float": ValueKind.FLOAT,
    "boolean": ValueKind.BOOLEAN,
    "java.lang.Boolean": ValueKind.BOOLEAN,
    "long": ValueKind.LONG,
    "java.lang.Long": ValueKind.LONG,
    "short": ValueKind.SHORT,
    "java.lang.Short": ValueKind.SHORT,
    "byte[]": ValueKind.BYTE_ARRAY,
}

_PRIMITIVES: dict[ValueKind, StaticType] = {
    ValueKind.BYTE: BYTE,
    ValueKind.SHORT: SHORT,
    ValueKind.CHAR: CHAR,
    ValueKind.INT: INT,
    ValueKind.LONG: LONG,
    ValueKind.FLOAT: FLOAT,
    ValueKind.DOUBLE: DOUBLE,
    ValueKind.BOOLEAN: BOOLEAN,
    ValueKind.STRING: STRING,
    ValueKind.BYTE_ARRAY: BYTE_ARRAY,
}


def _name(t: StaticType | str) -> str:
    return t if isinstance(t, str) else t.name


def is_covered(t: StaticType | str | None) -> bool:
    """Check if the domain tracks values for this type."""
    if t is None:
        return False
    return _name(t) in COVERED_TYPES


def value_kind(t: StaticType | str | None) -> ValueKind | None:
    """Get the value kind of a covered type, None if uncovered."""
    if t is None:
        return None
    return COVERED_TYPES.get(_name(t))


def primitive_type(kind: ValueKind) -> StaticType:
    """Canonical (unboxed) static type for a value kind."""
    return _PRIMITIVES[kind]


def type_of(name: str) -> StaticType:
    """Intern a type name, reusing the module constants where possible."""
    for t in _PRIMITIVES.values():
        if t.name == name:
            return t
    return StaticType(name)


__all__ = [
    "ValueKind",
    "StaticType",
    "COVERED_TYPES",
    "is_covered",
    "value_kind",
    "primitive_type",
    "type_of",
    "BYTE",
    "SHORT",
    "CHAR",
    "INT",
    "LONG",
    "FLOAT",
    "DOUBLE",
    "BOOLEAN",
    "STRING",
    "BYTE_ARRAY",
    "CHAR_ARRAY",
    "INT_ARRAY",
    "OBJECT",
    "VOID",
    "BOXED_BYTE",
    "BOXED_SHORT",
    "BOXED_CHAR",
    "BOXED_INT",
    "BOXED_LONG",
    "BOXED_FLOAT",
    "BOXED_DOUBLE",
    "BOXED_BOOLEAN",
]
