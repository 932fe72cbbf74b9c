"""
Tests for the checks consuming computed value sets.
Each check asks z3 whether a faulty value is possible and whether every
value is faulty.
"""

import z3

from pyconstval.analysis.checks import (
    IssueKind,
    check_all,
    check_cast,
    check_division,
    check_index,
    variable,
)
from pyconstval.api import check, create_evaluator
from pyconstval.core.qualifiers import (
    ArrayLenSet,
    make_bool_set,
    make_double_set,
    make_int_set,
    make_string_set,
)
from pyconstval.core.types import BYTE, DOUBLE, INT, INT_ARRAY, LONG


class TestDivision:
    def test_possible_zero(self, builder):
        y = builder.ident("y", INT, make_int_set(0, 4))
        node = builder.binary("/", builder.literal(8), y)
        issue = check_division(create_evaluator(builder.arena), node)
        assert issue.kind is IssueKind.DIVISION_BY_ZERO
        assert not issue.definite
        assert issue.get_counterexample() == {"divisor": 0}

    def test_definite_zero(self, builder):
        y = builder.ident("y", LONG, make_int_set(0))
        node = builder.binary("%", builder.literal(8), y)
        issue = check_division(create_evaluator(builder.arena), node)
        assert issue.definite

    def test_safe_divisor(self, builder):
        y = builder.ident("y", INT, make_int_set(1, 2))
        node = builder.binary("/", builder.literal(8), y)
        assert check_division(create_evaluator(builder.arena), node) is None

    def test_floating_division_not_checked(self, builder):
        y = builder.ident("y", DOUBLE, make_double_set(0.0))
        node = builder.binary("/", builder.literal(1.0), y)
        assert check_division(create_evaluator(builder.arena), node) is None

    def test_unknown_divisor_not_checked(self, builder):
        y = builder.ident("y", INT)
        node = builder.binary("/", builder.literal(8), y)
        assert check_division(create_evaluator(builder.arena), node) is None

    def test_other_nodes_ignored(self, builder):
        node = builder.binary("+", builder.literal(1), builder.literal(0))
        assert check_division(create_evaluator(builder.arena), node) is None


class TestIndex:
    def test_index_past_end(self, builder):
        index = builder.ident("i", INT, make_int_set(0, 3))
        array = builder.ident("a", INT_ARRAY, ArrayLenSet.of([3]))
        issue = check_index(create_evaluator(builder.arena), index, array)
        assert issue.kind is IssueKind.INDEX_OUT_OF_BOUNDS
        assert not issue.definite
        assert issue.get_counterexample() == {"index": 3, "length": 3}

    def test_index_always_past_end(self, builder):
        index = builder.ident("i", INT, make_int_set(5))
        array = builder.ident("a", INT_ARRAY, ArrayLenSet.of([2, 3]))
        assert check_index(create_evaluator(builder.arena), index, array).definite

    def test_index_in_bounds(self, builder):
        index = builder.ident("i", INT, make_int_set(0, 1))
        array = builder.ident("a", INT_ARRAY, ArrayLenSet.of([2, 5]))
        assert check_index(create_evaluator(builder.arena), index, array) is None

    def test_negative_index_with_unknown_length(self, builder):
        index = builder.literal(-1)
        array = builder.ident("a", INT_ARRAY)
        evaluator = create_evaluator(builder.arena)
        assert check_index(evaluator, index, array).definite
        assert check_index(evaluator, builder.literal(7), array) is None


class TestCast:
    def test_possible_loss(self, builder):
        x = builder.ident("x", INT, make_int_set(100, 200))
        node = builder.cast(BYTE, x)
        issue = check_cast(create_evaluator(builder.arena), node)
        assert issue.kind is IssueKind.LOSSY_CAST
        assert not issue.definite
        assert issue.get_counterexample() == {"value": 200}

    def test_definite_loss(self, builder):
        x = builder.ident("x", INT, make_int_set(300))
        assert check_cast(create_evaluator(builder.arena), builder.cast(BYTE, x)).definite

    def test_lossless(self, builder):
        x = builder.ident("x", INT, make_int_set(1, 2))
        assert check_cast(create_evaluator(builder.arena), builder.cast(BYTE, x)) is None

    def test_fractional_double(self, builder):
        d = builder.ident("d", DOUBLE, make_double_set(1.5))
        issue = check_cast(create_evaluator(builder.arena), builder.cast(INT, d))
        assert issue.definite
        assert issue.get_counterexample() == {"value": 1.5}

    def test_integral_double(self, builder):
        d = builder.ident("d", DOUBLE, make_double_set(2.0))
        assert check_cast(create_evaluator(builder.arena), builder.cast(INT, d)) is None

    def test_widening_not_checked(self, builder):
        x = builder.ident("x", INT, make_int_set(1))
        assert check_cast(create_evaluator(builder.arena), builder.cast(DOUBLE, x)) is None


class TestReporting:
    def test_check_all(self, builder):
        y = builder.ident("y", INT, make_int_set(0))
        builder.binary("/", builder.literal(8), y)
        builder.cast(BYTE, builder.literal(1000))
        kinds = [issue.kind for issue in check_all(create_evaluator(builder.arena))]
        assert kinds == [IssueKind.DIVISION_BY_ZERO, IssueKind.LOSSY_CAST]
        assert [issue.kind for issue in check(builder.arena)] == kinds

    def test_format_and_dict(self, builder):
        y = builder.ident("y", INT, make_int_set(0, 1))
        node = builder.binary("/", builder.literal(8), y)
        issue = check_division(create_evaluator(builder.arena), node)
        text = issue.format()
        assert text.startswith("[DIVISION_BY_ZERO]")
        assert "possible" in text
        assert "divisor = 0" in text
        data = issue.to_dict()
        assert data["kind"] == "DIVISION_BY_ZERO"
        assert data["node"] == node
        assert data["counterexample"] == {"divisor": 0}

    def test_variable_sorts(self):
        assert variable("v", make_double_set(1.0)).sort() == z3.RealSort()
        assert variable("v", make_bool_set(True)).sort() == z3.BoolSort()
        assert variable("v", make_string_set("s")).sort() == z3.StringSort()
        assert variable("v", make_int_set(1)).sort() == z3.IntSort()
