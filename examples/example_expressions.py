"""
Example expressions demonstrating PyConstVal evaluation.
Each function builds a small expression tree, evaluates it and prints the
qualifiers and any issues found in the value sets.
"""

from pyconstval import (
    CollectingSink,
    FieldDecl,
    TreeBuilder,
    check,
    create_evaluator,
)
from pyconstval.analysis.nodes import ValueAnnotation
from pyconstval.core.qualifiers import IntSet, make_int_set, make_string_set
from pyconstval.core.types import BYTE, INT, STRING, BYTE_ARRAY, DOUBLE
from pyconstval.models.java_lang import analyzable


def arithmetic() -> None:
    """Wrapping int arithmetic over small value sets."""
    b = TreeBuilder()
    x = b.ident("x", INT, make_int_set(1, 2))
    big = b.literal(2**31 - 1)
    total = b.binary("+", x, big)
    print("x + MAX_VALUE =", create_evaluator(b.arena).evaluate(total))


def narrowing() -> None:
    """A cast to byte and the lossy-cast check."""
    b = TreeBuilder()
    x = b.ident("x", INT, make_int_set(100, 200))
    narrowed = b.cast(BYTE, x)
    print("(byte) x =", create_evaluator(b.arena).evaluate(narrowed))
    for issue in check(b.arena):
        print(issue.format())


def division() -> None:
    """A divisor that may be zero."""
    b = TreeBuilder()
    y = b.ident("y", INT, ValueAnnotation(IntSet, (0, 4)))
    quotient = b.binary("/", b.literal(8), y)
    sink = CollectingSink()
    print("8 / y =", create_evaluator(b.arena, sink=sink).evaluate(quotient))
    for d in sink.diagnostics:
        print(d.format())
    for issue in check(b.arena):
        print(issue.format())


def calls() -> None:
    """Analyzable java.lang calls on every argument combination."""
    b = TreeBuilder()
    s = b.ident("s", STRING, make_string_set("12", "-7"))
    parsed = b.call(analyzable("java.lang.Integer", "parseInt", [STRING], "int"), [s])
    upper = b.call(
        analyzable("java.lang.String", "toUpperCase", returns=STRING, static=False),
        receiver=b.ident("name", STRING, make_string_set("ada", "alan")),
    )
    half = b.binary("/", b.cast(DOUBLE, parsed), b.literal(2.0))
    evaluator = create_evaluator(b.arena)
    print("Integer.parseInt(s) =", evaluator.evaluate(parsed))
    print("name.toUpperCase() =", evaluator.evaluate(upper))
    print("(double) parsed / 2.0 =", evaluator.evaluate(half))


def arrays() -> None:
    """Array lengths and byte arrays with literal contents."""
    b = TreeBuilder()
    n = b.ident("n", INT, make_int_set(0, 3))
    array = b.new_array(INT.array_of(), [n])
    length = b.array_length(array)
    greeting = b.new_array(BYTE_ARRAY, initializers=[b.literal(c) for c in b"hi"])
    limit = b.static_field(FieldDecl("Limits", "MAX", INT, True, True, constant=64))
    evaluator = create_evaluator(b.arena)
    print("new int[n].length =", evaluator.evaluate(length))
    print("new byte[] {'h', 'i'} =", evaluator.evaluate(greeting))
    print("Limits.MAX =", evaluator.evaluate(limit))


if __name__ == "__main__":
    arithmetic()
    narrowing()
    division()
    calls()
    arrays()
