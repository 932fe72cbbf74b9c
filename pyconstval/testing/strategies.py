"""Property-based testing strategies using Hypothesis.
Provides strategies for generating qualifiers of every lattice variant and
expression trees over them, for exploring the lattice laws and the
evaluator's edge cases.
"""

from __future__ import annotations

from hypothesis import strategies as st

from pyconstval.analysis.nodes import TreeBuilder
from pyconstval.core.coercion import INT_MAX, INT_MIN, LONG_MAX, LONG_MIN
from pyconstval.core.qualifiers import (
    BOTTOM,
    MAX_VALUES,
    UNKNOWN,
    ArrayLenSet,
    BoolSet,
    DoubleSet,
    IntSet,
    StringSet,
)
from pyconstval.core.types import INT


def int_values(min_value: int = LONG_MIN, max_value: int = LONG_MAX) -> st.SearchStrategy:
    return st.integers(min_value=min_value, max_value=max_value)


def double_values(allow_nan: bool = True, allow_infinity: bool = True) -> st.SearchStrategy:
    return st.floats(allow_nan=allow_nan, allow_infinity=allow_infinity)


def _sets(elements: st.SearchStrategy, max_size: int) -> st.SearchStrategy:
    return st.lists(elements, min_size=1, max_size=max_size)


def int_sets(
    max_size: int = MAX_VALUES,
    min_value: int = LONG_MIN,
    max_value: int = LONG_MAX,
) -> st.SearchStrategy:
    """Strategy for IntSet qualifiers."""
    return _sets(int_values(min_value, max_value), max_size).map(IntSet.of)


def double_sets(max_size: int = MAX_VALUES, allow_nan: bool = True) -> st.SearchStrategy:
    """Strategy for DoubleSet qualifiers."""
    return _sets(double_values(allow_nan=allow_nan), max_size).map(DoubleSet.of)


def bool_sets() -> st.SearchStrategy:
    return _sets(st.booleans(), 2).map(BoolSet.of)


def string_sets(max_size: int = MAX_VALUES) -> st.SearchStrategy:
    """Strategy for StringSet qualifiers."""
    return _sets(st.text(max_size=8), max_size).map(StringSet.of)


def array_len_sets(max_size: int = MAX_VALUES) -> st.SearchStrategy:
    return _sets(st.integers(min_value=0, max_value=1000), max_size).map(ArrayLenSet.of)


def value_sets() -> st.SearchStrategy:
    """Any value-set qualifier."""
    return st.one_of(int_sets(), double_sets(), bool_sets(), string_sets(), array_len_sets())


def qualifiers() -> st.SearchStrategy:
    """Any qualifier, including the lattice top and bottom."""
    return st.one_of(st.just(UNKNOWN), st.just(BOTTOM), value_sets())


def numeric_qualifiers() -> st.SearchStrategy:
    """IntSet and DoubleSet qualifiers, the one comparable pair of variants."""
    return st.one_of(
        int_sets(min_value=-(2**53), max_value=2**53),
        double_sets(allow_nan=False),
    )


@st.composite
def int_expressions(draw, max_depth: int = 3) -> tuple[TreeBuilder, int, int]:
    """A random int arithmetic tree with its builder, root and concrete value.
    Division is left out so every tree has a value.
    """
    builder = TreeBuilder()

    def build(depth: int) -> tuple[int, int]:
        if depth == 0 or draw(st.booleans()):
            value = draw(st.integers(min_value=INT_MIN, max_value=INT_MAX))
            return builder.literal(value, INT), value
        op = draw(st.sampled_from(["+", "-", "*", "&", "|", "^"]))
        left, lv = build(depth - 1)
        right, rv = build(depth - 1)
        return builder.binary(op, left, right), _int_op(op, lv, rv)

    root, value = build(max_depth)
    return builder, root, value


def _int_op(op: str, a: int, b: int) -> int:
    result = {
        "+": a + b,
        "-": a - b,
        "*": a * b,
        "&": a & b,
        "|": a | b,
        "^": a ^ b,
    }[op]
    result &= 0xFFFFFFFF
    return result - (1 << 32) if result >= 1 << 31 else result


__all__ = [
    "int_values",
    "double_values",
    "int_sets",
    "double_sets",
    "bool_sets",
    "string_sets",
    "array_len_sets",
    "value_sets",
    "qualifiers",
    "numeric_qualifiers",
    "int_expressions",
]
