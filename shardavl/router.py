"""Shard router with static, load-aware, consistent-hash and adaptive strategies."""

from __future__ import annotations

import threading
from bisect import bisect_left
from dataclasses import dataclass
from enum import Enum
from typing import Hashable, List, Optional

from .hash_table import key_hash, mix64

_MASK64 = (1 << 64) - 1

VNODES_PER_SHARD = 16
HOTSPOT_THRESHOLD = 1.5
MIN_CACHE_INTERVAL = 10
MAX_CACHE_INTERVAL = 500


class RouterStrategy(Enum):
    """How a router picks the shard for a key."""

    STATIC_HASH = "static_hash"
    LOAD_AWARE = "load_aware"
    CONSISTENT_HASH = "consistent_hash"
    INTELLIGENT = "intelligent"


@dataclass(frozen=True)
class RouterStats:
    """Snapshot of the per-shard load distribution seen by a router."""

    total_load: int
    min_load: int
    max_load: int
    avg_load: float
    balance_score: float
    has_hotspot: bool
    suspicious_patterns: int
    blocked_redirects: int


class Router:
    """Maps keys to shard indices and tracks how many keys each shard holds."""

    def __init__(
        self,
        num_shards: int,
        strategy: RouterStrategy = RouterStrategy.INTELLIGENT,
        *,
        seed: Optional[int] = None,
    ) -> None:
        if num_shards < 1:
            raise ValueError("a router needs at least one shard")
        self.num_shards = num_shards
        self.strategy = RouterStrategy(strategy)
        self._loads: List[int] = [0] * num_shards
        self._lock = threading.Lock()

        self._vnode_hashes: List[int] = []
        self._vnode_shards: List[int] = []
        if self.strategy in (RouterStrategy.CONSISTENT_HASH, RouterStrategy.INTELLIGENT):
            ring = sorted(
                (mix64(shard * VNODES_PER_SHARD + vnode), shard)
                for shard in range(num_shards)
                for vnode in range(VNODES_PER_SHARD)
            )
            self._vnode_hashes = [h for h, _ in ring]
            self._vnode_shards = [s for _, s in ring]

        self._ops_since_cache = 0
        self._cached_has_hotspot = False
        self._adaptive_interval = MIN_CACHE_INTERVAL
        self._cached_balance_score = 1.0

        self._suspicious_patterns = 0
        self._blocked_redirects = 0

        base = id(self) if seed is None else seed
        self._rng_state = (base ^ 0xDEADBEEFCAFEBABE) & _MASK64 or 0xDEADBEEFCAFEBABE

    # -- internals ----------------------------------------------------------

    def _next_random(self) -> int:
        with self._lock:
            x = self._rng_state
            x ^= (x << 13) & _MASK64
            x ^= x >> 7
            x ^= (x << 17) & _MASK64
            self._rng_state = x
            return x

    def _route_load_aware(self, natural: int) -> int:
        loads = list(self._loads)
        avg_load = sum(loads) / self.num_shards
        if loads[natural] <= HOTSPOT_THRESHOLD * avg_load:
            return natural
        min_load = min(loads)
        if min_load < avg_load:
            return loads.index(min_load)
        return self._next_random() % self.num_shards

    def _route_consistent(self, key: Hashable) -> int:
        if not self._vnode_hashes:
            return self.natural_shard(key)
        idx = bisect_left(self._vnode_hashes, key_hash(key))
        if idx >= len(self._vnode_hashes):
            idx = 0
        return self._vnode_shards[idx]

    def _update_stats_cache(self) -> None:
        loads = list(self._loads)
        min_load, max_load = min(loads), max(loads)
        avg = sum(loads) / self.num_shards
        if avg > 0:
            balance = max(0.0, 1.0 - (max_load - min_load) / (2.0 * avg))
        else:
            balance = 1.0
        hotspot = max_load > HOTSPOT_THRESHOLD * avg

        self._cached_balance_score = balance
        self._cached_has_hotspot = hotspot

        if hotspot or balance < 0.8:
            interval = MIN_CACHE_INTERVAL
        elif balance > 0.95:
            interval = MAX_CACHE_INTERVAL
        else:
            interval = MIN_CACHE_INTERVAL + int(
                (balance - 0.8) * (MAX_CACHE_INTERVAL - MIN_CACHE_INTERVAL) / 0.15
            )
        self._adaptive_interval = interval

    def _route_intelligent(self, natural: int) -> int:
        interval = self._adaptive_interval
        if interval >= MAX_CACHE_INTERVAL:
            return natural
        with self._lock:
            ops = self._ops_since_cache
            self._ops_since_cache += 1
        if ops >= interval:
            self._ops_since_cache = 0
            self._update_stats_cache()
        if self._cached_has_hotspot or self._cached_balance_score < 0.9:
            return self._route_load_aware(natural)
        return natural

    # -- public API ---------------------------------------------------------

    def natural_shard(self, key: Hashable) -> int:
        """Shard the key hashes to when no redirection takes place."""
        return key_hash(key) % self.num_shards

    def route(self, key: Hashable) -> int:
        """Shard that ``key`` should be stored in under the router's strategy."""
        natural = self.natural_shard(key)
        if self.strategy is RouterStrategy.LOAD_AWARE:
            return self._route_load_aware(natural)
        if self.strategy is RouterStrategy.CONSISTENT_HASH:
            return self._route_consistent(key)
        if self.strategy is RouterStrategy.INTELLIGENT:
            return self._route_intelligent(natural)
        return natural

    def record_insertion(self, shard_idx: int) -> None:
        """Count one more key in ``shard_idx``; out-of-range indices are ignored."""
        if 0 <= shard_idx < self.num_shards:
            with self._lock:
                self._loads[shard_idx] += 1

    def record_removal(self, shard_idx: int) -> None:
        """Count one key fewer in ``shard_idx``, never going below zero."""
        if 0 <= shard_idx < self.num_shards:
            with self._lock:
                if self._loads[shard_idx] > 0:
                    self._loads[shard_idx] -= 1

    def stats(self) -> RouterStats:
        loads = list(self._loads)
        total = sum(loads)
        avg = total / self.num_shards
        if avg > 0:
            variance = sum((load - avg) ** 2 for load in loads) / self.num_shards
            balance = max(0.0, 1.0 - variance ** 0.5 / avg)
        else:
            balance = 1.0
        max_load = max(loads)
        return RouterStats(
            total_load=total,
            min_load=min(loads),
            max_load=max_load,
            avg_load=avg,
            balance_score=balance,
            has_hotspot=max_load > HOTSPOT_THRESHOLD * avg,
            suspicious_patterns=self._suspicious_patterns,
            blocked_redirects=self._blocked_redirects,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(num_shards={self.num_shards}, strategy={self.strategy.name})"