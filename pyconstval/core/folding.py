"""Result folding.
Packages the concrete results of an operator or call into the qualifier
variant matching the expression's declared result type.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pyconstval.core.coercion import convert, to_float, truncate
from pyconstval.core.exceptions import CoercionError
from pyconstval.core.qualifiers import UNKNOWN, Qualifier, make_for_kind
from pyconstval.core.types import StaticType, ValueKind, value_kind


def normalize_result(value: Any, kind: ValueKind, charset: str = "utf-8") -> Any:
    """Convert one concrete result to the representation of a kind."""
    if kind.is_integral:
        if isinstance(value, str) and len(value) == 1:
            return truncate(ord(value), kind)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise CoercionError(f"{value!r} is not an integral result", value=value)
        if isinstance(value, float):
            return convert(value, ValueKind.DOUBLE, kind)
        return truncate(value, kind)
    if kind.is_floating:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise CoercionError(f"{value!r} is not a floating result", value=value)
        return to_float(float(value)) if kind is ValueKind.FLOAT else float(value)
    if kind is ValueKind.BOOLEAN:
        if not isinstance(value, bool):
            raise CoercionError(f"{value!r} is not a boolean result", value=value)
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode(charset, errors="replace")
    if isinstance(value, str):
        return value
    raise CoercionError(f"{value!r} is not a string result", value=value)


def fold_results(
    result_type: StaticType | ValueKind | None,
    results: Iterable[Any],
    charset: str = "utf-8",
) -> Qualifier:
    """Fold concrete results into a qualifier.
    None results are discarded. No results, more than MAX_VALUES distinct
    results, an uncovered result type or an unconvertible element all give
    UNKNOWN.
    """
    kind = result_type if isinstance(result_type, ValueKind) else value_kind(result_type)
    if kind is None:
        return UNKNOWN
    values = []
    for r in results:
        if r is None:
            continue
        try:
            values.append(normalize_result(r, kind, charset))
        except CoercionError:
            return UNKNOWN
    return make_for_kind(kind, values)


__all__ = ["normalize_result", "fold_results"]
