"""
Tests for the join and subtype algebra.
The lattice laws are checked with Hypothesis over every qualifier variant.
"""

import warnings
from pathlib import Path

import pytest
from hypothesis import given
from hypothesis import strategies as st

from pyconstval.core import lattice
from pyconstval.core.folding import fold_results
from pyconstval.core.lattice import QualifierHierarchy, is_subtype, least_upper_bound
from pyconstval.core.qualifiers import (
    BOTTOM,
    MAX_VALUES,
    UNKNOWN,
    ArrayLenSet,
    DoubleSet,
    IntSet,
    StringSet,
    make_double_set,
    make_int_set,
    make_string_set,
)
from pyconstval.core.types import INT
from pyconstval.testing.strategies import numeric_qualifiers, qualifiers, value_sets


class TestJoin:
    def test_same_variant_unions(self):
        assert least_upper_bound(make_int_set(1), make_int_set(2)) == make_int_set(1, 2)

    def test_union_over_capacity_is_unknown(self):
        a = IntSet.of(range(0, 6))
        b = IntSet.of(range(5, 11))
        assert least_upper_bound(a, b) == UNKNOWN

    def test_subtype_returns_larger(self):
        small = make_int_set(1)
        large = make_int_set(1, 2)
        assert least_upper_bound(small, large) is large
        assert least_upper_bound(large, small) is large

    def test_int_double_widens(self):
        joined = least_upper_bound(make_int_set(1), make_double_set(2.5))
        assert joined == make_double_set(1.0, 2.5)

    def test_unrelated_variants_are_unknown(self):
        assert least_upper_bound(make_int_set(1), make_string_set("a")) == UNKNOWN
        assert least_upper_bound(ArrayLenSet.of([1]), make_int_set(1)) == UNKNOWN

    def test_top_and_bottom(self):
        q = make_int_set(7)
        assert least_upper_bound(BOTTOM, q) == q
        assert least_upper_bound(q, UNKNOWN) == UNKNOWN

    def test_non_qualifier_is_none(self):
        assert least_upper_bound("x", make_int_set(1)) is None


class TestSubtype:
    def test_set_inclusion(self):
        assert is_subtype(make_int_set(1, 2), make_int_set(1, 2, 3))
        assert not is_subtype(make_int_set(1, 2, 3), make_int_set(1, 2))

    def test_variants_incomparable(self):
        assert not is_subtype(make_string_set("1"), make_int_set(1))
        assert not is_subtype(make_double_set(1.0), make_int_set(1))

    def test_int_below_double(self):
        assert is_subtype(make_int_set(1, 2), make_double_set(1.0, 2.0, 3.5))
        assert not is_subtype(make_int_set(1, 4), make_double_set(1.0, 2.0))

    def test_int_double_scan_compares_as_doubles(self):
        # 2**53 + 1 has no exact double; the scan accepts its rounded value.
        assert is_subtype(make_int_set(2**53 + 1), make_double_set(2.0**53))

    def test_bottom_and_unknown(self):
        q = make_string_set("s")
        assert is_subtype(BOTTOM, q)
        assert is_subtype(q, UNKNOWN)
        assert not is_subtype(UNKNOWN, q)


class TestHierarchy:
    def test_module_compiles_without_warnings(self):
        path = Path(lattice.__file__)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            compile(path.read_text(encoding="utf-8"), str(path), "exec")
        assert "\\   \\" in lattice.__doc__

    def test_top_bottom(self):
        h = QualifierHierarchy()
        assert h.top == UNKNOWN
        assert h.bottom == BOTTOM

    def test_join_all(self):
        h = QualifierHierarchy()
        assert h.join_all([]) == BOTTOM
        assert h.join_all([make_int_set(1), make_int_set(2)]) == make_int_set(1, 2)
        assert h.join_all([make_int_set(1), make_string_set("a"), make_int_set(2)]) == UNKNOWN


class TestLatticeLaws:
    @given(qualifiers(), qualifiers())
    def test_join_is_an_upper_bound(self, a, b):
        joined = least_upper_bound(a, b)
        assert is_subtype(a, joined)
        assert is_subtype(b, joined)

    @given(qualifiers())
    def test_join_idempotent(self, a):
        assert least_upper_bound(a, a) == a

    @given(qualifiers())
    def test_bottom_and_top_bound_everything(self, a):
        assert is_subtype(BOTTOM, a)
        assert is_subtype(a, UNKNOWN)

    @given(numeric_qualifiers(), numeric_qualifiers())
    def test_numeric_join_stays_numeric(self, a, b):
        joined = least_upper_bound(a, b)
        assert isinstance(joined, (IntSet, DoubleSet)) or joined == UNKNOWN

    @given(value_sets())
    def test_value_sets_respect_capacity(self, q):
        assert 1 <= len(q) <= MAX_VALUES


class TestCapacityLaw:
    @given(
        st.lists(
            st.integers(min_value=-(2**31), max_value=2**31 - 1),
            min_size=MAX_VALUES + 1,
            max_size=3 * MAX_VALUES,
            unique=True,
        )
    )
    def test_more_than_max_is_unknown(self, values):
        assert fold_results(INT, values) == UNKNOWN

    @given(
        st.lists(
            st.integers(min_value=-(2**31), max_value=2**31 - 1),
            min_size=MAX_VALUES,
            max_size=MAX_VALUES,
            unique=True,
        )
    )
    def test_exactly_max_is_kept(self, values):
        folded = fold_results(INT, values)
        assert isinstance(folded, IntSet)
        assert set(folded.values) == set(values)

    @pytest.mark.parametrize("variant", [IntSet, StringSet])
    def test_union_collapse(self, variant):
        values = [str(i) for i in range(MAX_VALUES + 1)] if variant is StringSet else list(
            range(MAX_VALUES + 1)
        )
        a = variant.of(values[:6])
        b = variant.of(values[6:])
        assert a.union(b) == UNKNOWN
