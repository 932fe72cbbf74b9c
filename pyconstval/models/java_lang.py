"""Models of analyzable java.lang members.
Each model is a plain Python function with the analyzed language's
semantics for the values the domain tracks. Strings are indexed in UTF-16
code units, integral results wrap like their declared type and failures
raise, which the evaluator reports and drops.
"""

from __future__ import annotations

import math
import re
import unicodedata
from collections.abc import Iterable

from pyconstval.analysis.invocation import CallableRegistry, RegistryBuilder
from pyconstval.analysis.nodes import CallableDecl
from pyconstval.core.coercion import (
    INT_MAX,
    INT_MIN,
    LONG_MAX,
    LONG_MIN,
    java_string,
    to_int,
    to_long,
)
from pyconstval.core.types import StaticType, ValueKind, type_of

MATH = "java.lang.Math"
INTEGER = "java.lang.Integer"
LONG = "java.lang.Long"
BOOLEAN = "java.lang.Boolean"
CHARACTER = "java.lang.Character"
STRING = "java.lang.String"

_INTEGER_LITERAL = re.compile(r"[+-]?[0-9]+")
_TRIMMED = "".join(chr(c) for c in range(0x21))


class NumberFormatError(ValueError):
    """Text is not a number of the requested type."""


def _parse_integral(s: str | None, low: int, high: int) -> int:
    if s is None or not _INTEGER_LITERAL.fullmatch(s):
        raise NumberFormatError(f'For input string: "{s}"')
    value = int(s)
    if not low <= value <= high:
        raise NumberFormatError(f'For input string: "{s}"')
    return value


def parse_int(s: str) -> int:
    return _parse_integral(s, INT_MIN, INT_MAX)


def parse_long(s: str) -> int:
    return _parse_integral(s, LONG_MIN, LONG_MAX)


def parse_boolean(s: str | None) -> bool:
    return s is not None and s.lower() == "true"


def floor_div(a: int, b: int) -> int:
    if b == 0:
        raise ZeroDivisionError("/ by zero")
    return a // b


def floor_mod(a: int, b: int) -> int:
    if b == 0:
        raise ZeroDivisionError("/ by zero")
    return a % b


def is_digit(c: str) -> bool:
    return unicodedata.category(c) == "Nd"


def char_to_upper(c: str) -> str:
    upper = c.upper()
    return upper if len(upper) == 1 else c


def _units(s: str) -> bytes:
    return s.encode("utf-16-le", "surrogatepass")


def _from_units(units: bytes) -> str:
    return units.decode("utf-16-le", "surrogatepass")


def string_length(s: str) -> int:
    return len(_units(s)) // 2


def char_at(s: str, index: int) -> int:
    """The UTF-16 code unit at an index."""
    units = _units(s)
    if not 0 <= index < len(units) // 2:
        raise IndexError(f"index {index}, length {len(units) // 2}")
    return int.from_bytes(units[2 * index : 2 * index + 2], "little")


def substring(s: str, begin: int, end: int | None = None) -> str:
    units = _units(s)
    length = len(units) // 2
    if end is None:
        end = length
    if begin < 0 or end > length or begin > end:
        raise IndexError(f"begin {begin}, end {end}, length {length}")
    return _from_units(units[2 * begin : 2 * end])


def index_of(s: str, target: str) -> int:
    found = s.find(target)
    if found < 0:
        return -1
    return string_length(s[:found])


def trim(s: str) -> str:
    return s.strip(_TRIMMED)


def _abs_double(a: float) -> float:
    return math.fabs(a)


def _max_double(a: float, b: float) -> float:
    if math.isnan(a) or math.isnan(b):
        return math.nan
    if a == b == 0.0:
        return b if math.copysign(1.0, a) < 0 else a
    return max(a, b)


def _min_double(a: float, b: float) -> float:
    if math.isnan(a) or math.isnan(b):
        return math.nan
    if a == b == 0.0:
        return a if math.copysign(1.0, a) < 0 else b
    return min(a, b)


def _register_math(builder: RegistryBuilder) -> None:
    builder.method(MATH, "abs", ["int"], lambda a: to_int(abs(a)))
    builder.method(MATH, "abs", ["long"], lambda a: to_long(abs(a)))
    builder.method(MATH, "abs", ["double"], _abs_double)
    builder.method(MATH, "max", ["int", "int"], max)
    builder.method(MATH, "max", ["long", "long"], max)
    builder.method(MATH, "max", ["double", "double"], _max_double)
    builder.method(MATH, "min", ["int", "int"], min)
    builder.method(MATH, "min", ["long", "long"], min)
    builder.method(MATH, "min", ["double", "double"], _min_double)
    builder.method(MATH, "floorDiv", ["int", "int"], lambda a, b: to_int(floor_div(a, b)))
    builder.method(MATH, "floorDiv", ["long", "long"], lambda a, b: to_long(floor_div(a, b)))
    builder.method(MATH, "floorMod", ["int", "int"], floor_mod)
    builder.method(MATH, "floorMod", ["long", "long"], floor_mod)
    builder.field(MATH, "PI", math.pi)
    builder.field(MATH, "E", math.e)


def _register_boxes(builder: RegistryBuilder) -> None:
    for owner, primitive, parse, low, high in (
        (INTEGER, "int", parse_int, INT_MIN, INT_MAX),
        (LONG, "long", parse_long, LONG_MIN, LONG_MAX),
    ):
        name = "parseInt" if owner == INTEGER else "parseLong"
        builder.method(owner, name, [STRING], parse)
        builder.method(owner, "valueOf", [STRING], parse)
        builder.method(owner, "valueOf", [primitive], lambda v: v)
        builder.method(owner, "toString", [primitive], str)
        builder.constructor(owner, [primitive], lambda v: v)
        builder.constructor(owner, [STRING], parse)
        builder.field(owner, "MAX_VALUE", high)
        builder.field(owner, "MIN_VALUE", low)

    builder.field(BOOLEAN, "TRUE", True)
    builder.field(BOOLEAN, "FALSE", False)
    builder.method(BOOLEAN, "parseBoolean", [STRING], parse_boolean)
    builder.method(BOOLEAN, "valueOf", ["boolean"], lambda v: v)
    builder.method(BOOLEAN, "toString", ["boolean"], lambda v: java_string(v, ValueKind.BOOLEAN))

    builder.method(CHARACTER, "isDigit", ["char"], is_digit)
    builder.method(CHARACTER, "toUpperCase", ["char"], char_to_upper)
    builder.field(CHARACTER, "MAX_VALUE", 0xFFFF)
    builder.field(CHARACTER, "MIN_VALUE", 0)


def _register_string(builder: RegistryBuilder) -> None:
    builder.method(STRING, "length", [], string_length)
    builder.method(STRING, "charAt", ["int"], char_at)
    builder.method(STRING, "substring", ["int"], substring)
    builder.method(STRING, "substring", ["int", "int"], substring)
    builder.method(STRING, "toUpperCase", [], str.upper)
    builder.method(STRING, "toLowerCase", [], str.lower)
    builder.method(STRING, "concat", [STRING], lambda s, other: s + other)
    builder.method(STRING, "equals", ["java.lang.Object"], lambda s, other: s == other)
    builder.method(STRING, "startsWith", [STRING], lambda s, prefix: s.startswith(prefix))
    builder.method(STRING, "endsWith", [STRING], lambda s, suffix: s.endswith(suffix))
    builder.method(STRING, "trim", [], trim)
    builder.method(STRING, "isEmpty", [], lambda s: not s)
    builder.method(STRING, "indexOf", [STRING], index_of)
    builder.method(STRING, "getBytes", [], lambda s: s.encode(builder.charset))
    builder.constructor(STRING, [STRING], lambda s: s)
    builder.constructor(STRING, ["byte[]"], lambda b: b.decode(builder.charset))
    for primitive, kind in _KINDS.items():
        builder.method(STRING, "valueOf", [primitive], lambda v, kind=kind: java_string(v, kind))


_KINDS = {
    "int": ValueKind.INT,
    "long": ValueKind.LONG,
    "char": ValueKind.CHAR,
    "boolean": ValueKind.BOOLEAN,
    "double": ValueKind.DOUBLE,
    "float": ValueKind.FLOAT,
}


def java_lang_builder(charset: str = "utf-8") -> RegistryBuilder:
    """A builder preloaded with the java.lang models, open for additions."""
    builder = RegistryBuilder(charset=charset)
    _register_math(builder)
    _register_boxes(builder)
    _register_string(builder)
    return builder


def java_lang_registry(charset: str = "utf-8") -> CallableRegistry:
    """Registry of the analyzable java.lang members."""
    return java_lang_builder(charset).build()


def analyzable(
    owner: str,
    name: str,
    params: Iterable[StaticType | str] = (),
    returns: StaticType | str = "void",
    static: bool = True,
) -> CallableDecl:
    """Declaration of a method marked statically executable."""
    return CallableDecl(
        owner=owner,
        name=name,
        param_types=tuple(p if isinstance(p, StaticType) else type_of(p) for p in params),
        return_type=returns if isinstance(returns, StaticType) else type_of(returns),
        is_static=static,
        statically_executable=True,
    )


def analyzable_constructor(owner: str, params: Iterable[StaticType | str] = ()) -> CallableDecl:
    """Declaration of a constructor marked statically executable."""
    return CallableDecl(
        owner=owner,
        name=owner.rsplit(".", 1)[-1],
        param_types=tuple(p if isinstance(p, StaticType) else type_of(p) for p in params),
        return_type=type_of(owner),
        is_constructor=True,
        statically_executable=True,
    )


def describe(registry: CallableRegistry) -> list[str]:
    """Human-readable member list, one line per member."""
    lines: list[str] = []
    for owner, name, params in registry.callables():
        lines.append(f"{owner}.{name}({', '.join(params)})")
    for owner, name in registry.fields():
        lines.append(f"{owner}.{name}")
    return lines


__all__ = [
    "NumberFormatError",
    "java_lang_builder",
    "java_lang_registry",
    "analyzable",
    "analyzable_constructor",
    "describe",
    "parse_int",
    "parse_long",
    "parse_boolean",
    "char_at",
    "substring",
    "index_of",
    "string_length",
    "trim",
]
