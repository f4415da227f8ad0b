"""Index of keys stored outside their natural shard."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Hashable, Optional

from .hash_table import RobinHoodTable

# Approximate per-entry cost: an 8-byte key, an 8-byte shard id and overhead.
_ENTRY_BYTES = 8 + 8 + 16


@dataclass(frozen=True)
class RedirectIndexStats:
    """Counters of a redirect index."""

    total_redirects: int
    lookups: int
    hits: int
    hit_rate: float
    index_size: int


class RedirectIndex:
    """Thread-safe map from redirected keys to the shard that actually holds them."""

    def __init__(self) -> None:
        self._redirects: RobinHoodTable = RobinHoodTable(64)
        self._lock = threading.Lock()
        self._total_redirects = 0
        self._lookups = 0
        self._hits = 0

    def record(self, key: Hashable, natural_shard: int, actual_shard: int) -> None:
        """Remember that ``key`` lives in ``actual_shard``; no-op when not redirected."""
        if natural_shard == actual_shard:
            return
        with self._lock:
            self._redirects.insert(key, actual_shard)
            self._total_redirects += 1

    def lookup(self, key: Hashable) -> Optional[int]:
        """Shard holding ``key`` if it was redirected, else None."""
        with self._lock:
            self._lookups += 1
            shard = self._redirects.get(key)
            if shard is not None:
                self._hits += 1
            return shard

    def remove(self, key: Hashable) -> None:
        with self._lock:
            self._redirects.remove(key)

    def clear(self) -> None:
        """Drop every entry and reset the counters."""
        with self._lock:
            self._redirects.clear()
            self._total_redirects = 0
            self._lookups = 0
            self._hits = 0

    def stats(self) -> RedirectIndexStats:
        lookups = self._lookups
        hits = self._hits
        return RedirectIndexStats(
            total_redirects=self._total_redirects,
            lookups=lookups,
            hits=hits,
            hit_rate=hits * 100.0 / lookups if lookups else 0.0,
            index_size=len(self._redirects),
        )

    def memory_bytes(self) -> int:
        """Approximate memory held by the entries."""
        return len(self._redirects) * _ENTRY_BYTES

    def gc(self, get_current_shard: Callable[[Hashable], int]) -> int:
        """Drop entries whose recorded shard equals ``get_current_shard(key)``.

        Returns the number of entries removed.
        """
        with self._lock:
            stale = [
                key
                for key, actual in self._redirects.items()
                if get_current_shard(key) == actual
            ]
            for key in stale:
                self._redirects.remove(key)
            return len(stale)

    def __len__(self) -> int:
        return len(self._redirects)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(size={len(self)})"