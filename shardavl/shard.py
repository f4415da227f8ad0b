"""A lock-protected AVL tree shard that tracks its key bounds and access counters."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from itertools import islice
from typing import Any, Generic, List, Optional, Tuple, TypeVar

from .avl_tree import AVLTree

K = TypeVar("K")
V = TypeVar("V")


@dataclass(frozen=True)
class ShardStats:
    """Snapshot of a shard's counters and key bounds."""

    size: int
    inserts: int
    removes: int
    lookups: int
    min_key: Any = None
    max_key: Any = None
    has_keys: bool = False


class TreeShard(Generic[K, V]):
    """Thread-safe AVL tree with size, bounds and operation counters."""

    def __init__(self) -> None:
        self._tree: AVLTree[K, V] = AVLTree()
        self._lock = threading.Lock()
        self._reset_counters()

    def _reset_counters(self) -> None:
        self._size = 0
        self._inserts = 0
        self._lookups = 0
        self._removes = 0
        self._min_key: Optional[K] = None
        self._max_key: Optional[K] = None
        self._has_keys = False

    def _update_bounds(self, key: K) -> None:
        if not self._has_keys:
            self._min_key = key
            self._max_key = key
            self._has_keys = True
            return
        if key < self._min_key:
            self._min_key = key
        if key > self._max_key:
            self._max_key = key

    def _recompute_bounds(self) -> None:
        if len(self._tree) == 0:
            self._has_keys = False
            self._min_key = None
            self._max_key = None
        else:
            self._min_key = self._tree.min_key()
            self._max_key = self._tree.max_key()

    def insert(self, key: K, value: V = None) -> None:
        """Insert or update ``key``; the insert counter grows either way."""
        with self._lock:
            old_size = len(self._tree)
            self._tree.insert(key, value)
            if len(self._tree) > old_size:
                self._size += 1
                self._update_bounds(key)
            self._inserts += 1

    def remove(self, key: K) -> bool:
        """Remove ``key``; return whether it was present."""
        with self._lock:
            removed = self._tree.remove(key)
            if removed:
                self._size -= 1
                self._removes += 1
                if key == self._min_key or key == self._max_key:
                    self._recompute_bounds()
            return removed

    def contains(self, key: K) -> bool:
        with self._lock:
            self._lookups += 1
            return self._tree.contains(key)

    def get(self, key: K, default: Any = None) -> Any:
        """Return the value under ``key`` or ``default``."""
        with self._lock:
            self._lookups += 1
            return self._tree.get(key, default)

    def intersects_range(self, lo: K, hi: K) -> bool:
        """Whether ``[lo, hi]`` overlaps the shard's ``[min_key, max_key]``."""
        if not self._has_keys:
            return False
        return not (self._max_key < lo or self._min_key > hi)

    def range_query(self, lo: K, hi: K, max_results: Optional[int] = None) -> List[Tuple[K, V]]:
        """Sorted pairs with ``lo <= key <= hi``, at most ``max_results`` of them."""
        with self._lock:
            return list(islice(self._tree.range_items(lo, hi), max_results))

    def stats(self) -> ShardStats:
        if self._has_keys:
            return ShardStats(
                self._size, self._inserts, self._removes, self._lookups,
                self._min_key, self._max_key, True,
            )
        return ShardStats(self._size, self._inserts, self._removes, self._lookups)

    def clear(self) -> None:
        """Drop all keys and reset every counter."""
        with self._lock:
            self._tree.clear()
            self._reset_counters()

    def extract_all(self) -> List[Tuple[K, V]]:
        """All pairs in ascending key order."""
        with self._lock:
            return list(self._tree.items())

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        return f"{type(self).__name__}(size={self._size})"