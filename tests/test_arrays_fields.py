"""Tests for new-array expressions and field accesses."""

import math

import pytest

from pyconstval.analysis.diagnostics import DiagnosticKind
from pyconstval.analysis.nodes import FieldDecl
from pyconstval.api import create_evaluator
from pyconstval.core.coercion import INT_MAX
from pyconstval.core.qualifiers import (
    BOTTOM,
    UNKNOWN,
    ArrayLenSet,
    make_bool_set,
    make_double_set,
    make_int_set,
    make_string_set,
)
from pyconstval.core.types import (
    BOXED_BOOLEAN,
    BYTE,
    BYTE_ARRAY,
    CHAR,
    CHAR_ARRAY,
    DOUBLE,
    INT,
    INT_ARRAY,
    STRING,
)
from pyconstval.models.java_lang import BOOLEAN, INTEGER, MATH


class TestNewArray:
    def test_dimension_lengths(self, builder):
        n = builder.ident("n", INT, make_int_set(0, 3))
        array = builder.new_array(INT_ARRAY, [n])
        assert create_evaluator(builder.arena).evaluate(array) == ArrayLenSet.of([0, 3])

    def test_negative_lengths_dropped(self, builder):
        n = builder.ident("n", INT, make_int_set(-1, 3))
        never = builder.ident("m", INT, make_int_set(-1))
        evaluator = create_evaluator(builder.arena)
        assert evaluator.evaluate(builder.new_array(INT_ARRAY, [n])) == ArrayLenSet.of([3])
        assert evaluator.evaluate(builder.new_array(INT_ARRAY, [never])) == UNKNOWN

    def test_unknown_dimension(self, builder):
        n = builder.ident("n", INT)
        assert create_evaluator(builder.arena).evaluate(builder.new_array(INT_ARRAY, [n])) == UNKNOWN

    def test_every_dimension(self, builder):
        n = builder.ident("n", INT, make_int_set(2))
        m = builder.ident("m", INT, make_int_set(4, 5))
        grid = builder.new_array(INT_ARRAY.array_of(), [n, m])
        evaluator = create_evaluator(builder.arena)
        assert evaluator.dimension_lengths(grid) == [ArrayLenSet.of([2]), ArrayLenSet.of([4, 5])]
        assert evaluator.evaluate(grid) == ArrayLenSet.of([2])
        with pytest.raises(TypeError):
            evaluator.dimension_lengths(n)

    def test_initializer_length(self, builder):
        items = [builder.literal(v) for v in (1, 2, 3)]
        array = builder.new_array(INT_ARRAY, initializers=items)
        length = builder.array_length(array)
        evaluator = create_evaluator(builder.arena)
        assert evaluator.evaluate(array) == ArrayLenSet.of([3])
        assert evaluator.evaluate(length) == make_int_set(3)

    def test_byte_array_literals_spell_a_string(self, builder):
        array = builder.new_array(BYTE_ARRAY, initializers=[builder.literal(c) for c in b"hi"])
        assert create_evaluator(builder.arena).evaluate(array) == make_string_set("hi")

    def test_char_array_literals_spell_a_string(self, builder):
        chars = [builder.literal(c, CHAR) for c in "ok"]
        array = builder.new_array(CHAR_ARRAY, initializers=chars)
        assert create_evaluator(builder.arena).evaluate(array) == make_string_set("ok")

    def test_empty_byte_array(self, builder):
        array = builder.new_array(BYTE_ARRAY, initializers=[])
        assert create_evaluator(builder.arena).evaluate(array) == make_string_set("")

    def test_non_literal_contents(self, builder):
        b = builder.ident("b", BYTE, make_int_set(1))
        array = builder.new_array(BYTE_ARRAY, initializers=[b, builder.literal(2)])
        assert create_evaluator(builder.arena).evaluate(array) == ArrayLenSet.of([2])

    def test_no_dimensions_or_initializers(self, builder):
        array = builder.new_array(INT_ARRAY)
        assert create_evaluator(builder.arena).evaluate(array) == UNKNOWN


class TestArrayLength:
    def test_unknown_receiver(self, builder):
        array = builder.ident("array", INT_ARRAY)
        assert create_evaluator(builder.arena).evaluate(builder.array_length(array)) == UNKNOWN

    def test_receiver_with_contents(self, builder):
        array = builder.new_array(BYTE_ARRAY, initializers=[builder.literal(1)])
        assert create_evaluator(builder.arena).evaluate(builder.array_length(array)) == UNKNOWN


class TestFieldAccess:
    def test_class_literal(self, builder):
        receiver = builder.ident("s", STRING, make_string_set("x"))
        node = builder.field(receiver, "class", STRING)
        assert create_evaluator(builder.arena).evaluate(node) == UNKNOWN

    def test_compile_time_constant(self, builder):
        limit = builder.static_field(FieldDecl("demo.Limits", "MAX", INT, True, True, constant=64))
        narrow = builder.static_field(FieldDecl("demo.Limits", "B", BYTE, True, True, constant=300))
        evaluator = create_evaluator(builder.arena)
        assert evaluator.evaluate(limit) == make_int_set(64)
        assert evaluator.evaluate(narrow) == make_int_set(44)

    def test_static_final_read(self, builder):
        evaluator = create_evaluator(builder.arena)
        max_value = builder.static_field(FieldDecl(INTEGER, "MAX_VALUE", INT, True, True))
        pi = builder.static_field(FieldDecl(MATH, "PI", DOUBLE, True, True))
        true = builder.static_field(FieldDecl(BOOLEAN, "TRUE", BOXED_BOOLEAN, True, True))
        assert evaluator.evaluate(max_value) == make_int_set(INT_MAX)
        assert evaluator.evaluate(pi) == make_double_set(math.pi)
        assert evaluator.evaluate(true) == make_bool_set(True)

    def test_missing_class(self, builder, sink):
        node = builder.static_field(FieldDecl("demo.Missing", "X", INT, True, True))
        assert create_evaluator(builder.arena, sink=sink).evaluate(node) == UNKNOWN
        [diagnostic] = sink.diagnostics
        assert diagnostic.kind is DiagnosticKind.CLASS_NOT_FOUND
        assert diagnostic.context == ("demo.Missing",)

    def test_missing_field(self, builder, sink):
        node = builder.static_field(FieldDecl(INTEGER, "NOPE", INT, True, True))
        assert create_evaluator(builder.arena, sink=sink).evaluate(node) == UNKNOWN
        [diagnostic] = sink.diagnostics
        assert diagnostic.kind is DiagnosticKind.FIELD_ACCESS_FAILED
        assert diagnostic.context == ("NOPE", INTEGER)

    def test_instance_field_uses_default_policy(self, builder, sink):
        node = builder.field(None, "count", INT, FieldDecl("demo.K", "count", INT))
        assert create_evaluator(builder.arena, sink=sink).evaluate(node) == UNKNOWN
        assert create_evaluator(builder.arena, default_policy=BOTTOM).evaluate(node) == BOTTOM
        assert len(sink) == 0

    def test_undeclared_field(self, builder):
        node = builder.field(None, "size", INT)
        assert create_evaluator(builder.arena).evaluate(node) == UNKNOWN
