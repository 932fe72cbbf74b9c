"""Tests for the LRU cache and the propagation cache built on it."""

import pytest

from pyconstval.analysis.cache import DEFAULT_CAPACITY, LRUCache, PropagationCache
from pyconstval.analysis.nodes import Binary, Identifier, Literal, Unary
from pyconstval.core.operators import BinaryOperator, UnaryOperator
from pyconstval.core.qualifiers import make_int_set
from pyconstval.core.types import INT


class TestLRUCache:
    def test_least_recently_used_is_evicted(self):
        cache = LRUCache(maxsize=2)
        cache.put("a", 1)
        cache.put("b", 2)
        assert cache.get("a") == 1
        cache.put("c", 3)
        assert "b" not in cache
        assert cache.keys() == ["a", "c"]

    def test_put_refreshes_existing_key(self):
        cache = LRUCache(maxsize=2)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.put("a", 10)
        cache.put("c", 3)
        assert cache.get("a") == 10
        assert cache.get("b") is None

    def test_stats(self):
        cache = LRUCache(maxsize=1)
        cache.put("a", 1)
        cache.get("a")
        cache.get("missing", default=0)
        cache.put("b", 2)
        stats = cache.stats()
        assert stats == {
            "size": 1,
            "maxsize": 1,
            "hits": 1,
            "misses": 1,
            "evictions": 1,
            "hit_rate": 0.5,
        }

    def test_remove_and_clear(self):
        cache = LRUCache()
        cache.put("a", 1)
        assert cache.remove("a")
        assert not cache.remove("a")
        cache.put("b", 2)
        cache.get("b")
        cache.clear()
        assert len(cache) == 0
        assert cache.hit_rate == 0.0

    def test_size_must_be_positive(self):
        with pytest.raises(ValueError):
            LRUCache(maxsize=0)


class TestPropagationCache:
    def test_default_capacity(self):
        assert PropagationCache().capacity == DEFAULT_CAPACITY == 200

    def test_only_operator_nodes_accepted(self):
        assert PropagationCache.accepts(Unary(INT, UnaryOperator.UNARY_MINUS, 0))
        assert PropagationCache.accepts(Binary(INT, BinaryOperator.PLUS, 0, 1))
        assert not PropagationCache.accepts(Literal(INT, 1))
        assert not PropagationCache.accepts(Identifier(INT, "x"))

    def test_store_and_lookup(self):
        cache = PropagationCache(capacity=4)
        assert cache.store(3, Binary(INT, BinaryOperator.PLUS, 0, 1), make_int_set(2))
        assert not cache.store(0, Literal(INT, 1), make_int_set(1))
        assert cache.lookup(3) == make_int_set(2)
        assert cache.lookup(0) is None
