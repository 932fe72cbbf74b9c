"""Tests for the top-level package surface."""

import pyconstval
from pyconstval import (
    BOTTOM,
    UNKNOWN,
    ConstValConfig,
    TreeBuilder,
    evaluate,
    evaluate_all,
    is_subtype,
    join,
)
from pyconstval.config import LimitsConfig
from pyconstval.core.qualifiers import make_int_set
from pyconstval.core.types import INT


def test_version():
    assert pyconstval.__version__ == "0.1.0"


def test_exports_resolve():
    for name in pyconstval.__all__:
        assert hasattr(pyconstval, name), name


def test_evaluate_single_node():
    b = TreeBuilder()
    x = b.ident("x", INT, make_int_set(1, 2))
    total = b.binary("*", x, b.literal(10))
    assert evaluate(b.arena, total) == make_int_set(10, 20)


def test_evaluate_all_every_node():
    b = TreeBuilder()
    one = b.literal(1)
    neg = b.unary("-", one)
    results = evaluate_all(b.arena)
    assert results == {one: make_int_set(1), neg: make_int_set(-1)}


def test_evaluate_with_config():
    b = TreeBuilder()
    x = b.ident("x", INT)
    config = ConstValConfig(limits=LimitsConfig(cache_capacity=1))
    config.evaluation.default_qualifier = "bottom"
    assert evaluate(b.arena, x, config=config) == BOTTOM


def test_join_and_subtype():
    a = make_int_set(1)
    b = make_int_set(2)
    assert join(a, b) == make_int_set(1, 2)
    assert is_subtype(a, join(a, b))
    assert is_subtype(BOTTOM, UNKNOWN)
    assert not is_subtype(UNKNOWN, a)
