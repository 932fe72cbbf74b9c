"""Propagation cache for PyConstVal.
Memoizes the qualifiers of compound operator nodes within one analysis
pass. Entries are keyed by arena index, so structurally equal but distinct
nodes never share an entry, and are never invalidated during the pass.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Any, Generic, TypeVar

from pyconstval.analysis.nodes import Binary, ExprNode, Unary
from pyconstval.core.qualifiers import Qualifier

K = TypeVar("K")
V = TypeVar("V")

DEFAULT_CAPACITY = 200


class LRUCache(Generic[K, V]):
    """LRU cache with size limit.
    Keeps most recently used items in memory up to a maximum size.
    """

    def __init__(self, maxsize: int = 1000):
        if maxsize < 1:
            raise ValueError("maxsize must be positive")
        self.maxsize = maxsize
        self._cache: OrderedDict[K, V] = OrderedDict()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, key: K, default: V | None = None) -> V | None:
        """Get item from cache."""
        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
                self._hits += 1
                return self._cache[key]
            self._misses += 1
            return default

    def put(self, key: K, value: V) -> None:
        """Put item in cache, evicting the least recently used on overflow."""
        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
            self._cache[key] = value
            while len(self._cache) > self.maxsize:
                self._cache.popitem(last=False)
                self._evictions += 1

    def remove(self, key: K) -> bool:
        """Remove item from cache."""
        with self._lock:
            if key in self._cache:
                del self._cache[key]
                return True
            return False

    def clear(self) -> None:
        """Clear all items."""
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0

    def keys(self) -> list[K]:
        """Keys from least to most recently used."""
        with self._lock:
            return list(self._cache)

    def __contains__(self, key: K) -> bool:
        with self._lock:
            return key in self._cache

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    @property
    def hit_rate(self) -> float:
        """Get cache hit rate."""
        total = self._hits + self._misses
        return self._hits / total if total > 0 else 0.0

    def stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            return {
                "size": len(self._cache),
                "maxsize": self.maxsize,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "hit_rate": self.hit_rate,
            }


class PropagationCache(LRUCache[int, Qualifier]):
    """Qualifiers of Unary and Binary nodes, keyed by node index."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        super().__init__(maxsize=capacity)

    @property
    def capacity(self) -> int:
        return self.maxsize

    @staticmethod
    def accepts(node: ExprNode) -> bool:
        """Only compound operator nodes are memoized."""
        return isinstance(node, (Unary, Binary))

    def lookup(self, index: int) -> Qualifier | None:
        return self.get(index)

    def store(self, index: int, node: ExprNode, qualifier: Qualifier) -> bool:
        """Remember a node's qualifier; returns False for nodes not memoized."""
        if not self.accepts(node):
            return False
        self.put(index, qualifier)
        return True


__all__ = [
    "LRUCache",
    "PropagationCache",
    "DEFAULT_CAPACITY",
]
