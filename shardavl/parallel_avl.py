"""Sharded ordered map: independent AVL shards behind an adversary-resistant router."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Any, Hashable, List, Optional, TextIO, Tuple

from .hash_table import key_hash
from .redirect_index import RedirectIndex
from .router import Router, RouterStrategy
from .shard import TreeShard

DEFAULT_SHARDS = 8


@dataclass(frozen=True)
class ParallelAVLStats:
    """Snapshot of a parallel tree's shards, router and redirect index."""

    num_shards: int
    total_size: int
    total_ops: int
    shard_sizes: Tuple[int, ...]
    shard_inserts: Tuple[int, ...]
    shard_lookups: Tuple[int, ...]
    balance_score: float
    has_hotspot: bool
    suspicious_patterns: int
    blocked_redirects: int
    redirect_index_size: int
    redirect_index_hits: int
    redirect_hit_rate: float
    redirect_index_memory_bytes: int


class ParallelAVL:
    """Ordered map spread over several AVL shards.

    Keys normally live in their natural shard (hash modulo shard count). The
    router may place a key elsewhere to relieve a hotspot; such keys are
    remembered in a redirect index so lookups stay correct. After the shard
    count changes, lookups fall back to searching every shard until
    :meth:`force_rebalance` puts each key back in its natural shard.
    """

    def __init__(
        self,
        num_shards: int = DEFAULT_SHARDS,
        strategy: RouterStrategy = RouterStrategy.INTELLIGENT,
        *,
        seed: Optional[int] = None,
    ) -> None:
        if num_shards < 0:
            raise ValueError("num_shards must not be negative")
        if num_shards == 0:
            num_shards = DEFAULT_SHARDS
        self._seed = seed
        self._shards: List[TreeShard] = [TreeShard() for _ in range(num_shards)]
        self._router = Router(num_shards, strategy, seed=seed)
        self._redirects = RedirectIndex()
        self._topology_changed = False
        self._has_redirects = False
        self._total_ops = 0
        self._redirect_hits = 0

    # -- internals ----------------------------------------------------------

    def _natural_shard(self, key: Hashable) -> int:
        return key_hash(key) % len(self._shards)

    def _new_router(self, strategy: RouterStrategy) -> Router:
        return Router(len(self._shards), strategy, seed=self._seed)

    # -- core operations ----------------------------------------------------

    @property
    def num_shards(self) -> int:
        """Current number of shards."""
        return len(self._shards)

    def insert(self, key: Hashable, value: Any = None) -> None:
        """Insert ``key`` or replace its value."""
        self._total_ops += 1
        natural = self._natural_shard(key)
        target = self._router.route(key)
        shard = self._shards[target]

        old_size = len(shard)
        shard.insert(key, value)
        if len(shard) > old_size:
            self._router.record_insertion(target)
            if target != natural:
                self._redirects.record(key, natural, target)
                self._has_redirects = True

    def _redirected_shard(self, key: Hashable) -> Optional[int]:
        shard = self._redirects.lookup(key)
        if shard is not None and shard < len(self._shards):
            return shard
        return None

    def contains(self, key: Hashable) -> bool:
        natural = self._natural_shard(key)
        if self._shards[natural].contains(key):
            return True
        if not self._has_redirects and not self._topology_changed:
            return False

        self._total_ops += 1
        if self._has_redirects:
            redirected = self._redirected_shard(key)
            if redirected is not None:
                self._redirect_hits += 1
                return self._shards[redirected].contains(key)

        if self._topology_changed:
            return any(
                shard.contains(key)
                for idx, shard in enumerate(self._shards)
                if idx != natural
            )
        return False

    def get(self, key: Hashable, default: Any = None) -> Any:
        """Value stored under ``key``, or ``default`` if it is absent."""
        missing = object()
        natural = self._natural_shard(key)
        result = self._shards[natural].get(key, missing)
        if result is not missing:
            return result
        if not self._has_redirects and not self._topology_changed:
            return default

        self._total_ops += 1
        if self._has_redirects:
            redirected = self._redirected_shard(key)
            if redirected is not None:
                self._redirect_hits += 1
                return self._shards[redirected].get(key, default)

        if self._topology_changed:
            for idx, shard in enumerate(self._shards):
                if idx == natural:
                    continue
                result = shard.get(key, missing)
                if result is not missing:
                    return result
        return default

    def remove(self, key: Hashable) -> bool:
        """Remove ``key``; return whether it was present."""
        self._total_ops += 1
        natural = self._natural_shard(key)

        if self._shards[natural].remove(key):
            self._router.record_removal(natural)
            self._redirects.remove(key)
            return True

        redirected = self._redirected_shard(key)
        if redirected is not None and self._shards[redirected].remove(key):
            self._router.record_removal(redirected)
            self._redirects.remove(key)
            return True

        if self._topology_changed:
            for idx, shard in enumerate(self._shards):
                if idx == natural:
                    continue
                if shard.remove(key):
                    self._router.record_removal(idx)
                    return True
        return False

    def range_query(
        self, lo: Hashable, hi: Hashable, max_results: Optional[int] = None
    ) -> List[Tuple[Any, Any]]:
        """Pairs with ``lo <= key <= hi`` sorted by key, at most ``max_results``.

        When limited, each shard contributes to a collection buffer of twice
        ``max_results`` entries before the merged result is cut down.
        """
        self._total_ops += 1
        if max_results is not None and max_results < 0:
            raise ValueError("max_results must not be negative")
        buffer_size = None if max_results is None else max_results * 2

        collected: List[Tuple[Any, Any]] = []
        for shard in self._shards:
            if buffer_size is not None and len(collected) >= buffer_size:
                break
            if not shard.intersects_range(lo, hi):
                continue
            remaining = None if buffer_size is None else buffer_size - len(collected)
            collected.extend(shard.range_query(lo, hi, remaining))

        collected.sort(key=lambda pair: pair[0])
        return collected if max_results is None else collected[:max_results]

    def balance_score(self) -> float:
        """Router balance score between 0.0 and 1.0; higher is better."""
        return self._router.stats().balance_score

    def clear(self) -> None:
        """Drop every key and reset the operation counters."""
        for shard in self._shards:
            shard.clear()
        self._redirects.clear()
        self._total_ops = 0
        self._redirect_hits = 0

    # -- dynamic scaling ----------------------------------------------------

    def add_shard(self) -> None:
        """Append an empty shard; existing keys stay where they are."""
        self._shards.append(TreeShard())
        strategy = (
            RouterStrategy.INTELLIGENT
            if self._router.stats().balance_score > 0.9
            else RouterStrategy.LOAD_AWARE
        )
        self._router = self._new_router(strategy)
        self._topology_changed = True

    def remove_shard(self) -> bool:
        """Drop the last shard and re-insert its keys; False if only one shard is left."""
        if len(self._shards) <= 1:
            return False

        removing_id = len(self._shards) - 1
        to_redistribute = self._shards.pop().extract_all()
        self._router = self._new_router(RouterStrategy.INTELLIGENT)
        self._topology_changed = True
        self._redirects.gc(lambda _key: removing_id)

        for key, value in to_redistribute:
            target = self._router.route(key)
            self._shards[target].insert(key, value)
            self._router.record_insertion(target)
        return True

    def force_rebalance(self) -> None:
        """Move every key to its natural shard and drop all redirects."""
        if len(self) == 0:
            return

        all_data = [pair for shard in self._shards for pair in shard.extract_all()]
        for shard in self._shards:
            shard.clear()
        self._redirects.clear()

        self._router = self._new_router(RouterStrategy.STATIC_HASH)
        for key, value in all_data:
            target = self._natural_shard(key)
            self._shards[target].insert(key, value)
            self._router.record_insertion(target)

        self._total_ops = len(all_data)
        self._redirect_hits = 0
        self._topology_changed = False
        self._has_redirects = False

    # -- statistics ---------------------------------------------------------

    def stats(self) -> ParallelAVLStats:
        shard_stats = [shard.stats() for shard in self._shards]
        router_stats = self._router.stats()
        index_stats = self._redirects.stats()
        total_ops = self._total_ops
        hits = self._redirect_hits
        return ParallelAVLStats(
            num_shards=len(self._shards),
            total_size=sum(s.size for s in shard_stats),
            total_ops=total_ops,
            shard_sizes=tuple(s.size for s in shard_stats),
            shard_inserts=tuple(s.inserts for s in shard_stats),
            shard_lookups=tuple(s.lookups for s in shard_stats),
            balance_score=router_stats.balance_score,
            has_hotspot=router_stats.has_hotspot,
            suspicious_patterns=router_stats.suspicious_patterns,
            blocked_redirects=router_stats.blocked_redirects,
            redirect_index_size=index_stats.index_size,
            redirect_index_hits=hits,
            redirect_hit_rate=hits * 100.0 / total_ops if total_ops else 0.0,
            redirect_index_memory_bytes=self._redirects.memory_bytes(),
        )

    def format_stats(self) -> str:
        """Human-readable statistics report."""
        s = self.stats()
        lines = [
            "",
            "+============================================+",
            "|  Parallel AVL Statistics                   |",
            "+============================================+",
            "",
            f"Shards: {s.num_shards}",
            f"Total elements: {s.total_size}",
            f"Total operations: {s.total_ops}",
            f"Balance score: {s.balance_score * 100:.2f}%",
        ]
        if s.has_hotspot:
            lines.append("WARNING: Hotspot detected!")
        if s.suspicious_patterns > 0:
            lines.append(f"ALERT: Suspicious patterns: {s.suspicious_patterns}")
            lines.append(f"Blocked redirects: {s.blocked_redirects}")
        lines += [
            "",
            "Redirect Index:",
            f"  Size: {s.redirect_index_size} entries",
            f"  Hits: {s.redirect_index_hits}",
            f"  Hit rate: {s.redirect_hit_rate:.2f}%",
            f"  Memory: {s.redirect_index_memory_bytes / 1024.0:.2f} KB",
            "",
            "Shard Distribution:",
        ]
        for idx, (size, inserts, lookups) in enumerate(
            zip(s.shard_sizes, s.shard_inserts, s.shard_lookups)
        ):
            pct = size * 100.0 / s.total_size if s.total_size else 0.0
            lines.append(
                f"  Shard {idx}: {size:6d} elements ({pct:5.1f}%) "
                f"| {inserts} inserts | {lookups} lookups"
            )
        lines.append("")
        return "\n".join(lines) + "\n"

    def print_stats(self, file: Optional[TextIO] = None) -> None:
        """Write :meth:`format_stats` to ``file`` (standard output by default)."""
        print(self.format_stats(), end="", file=file if file is not None else sys.stdout)

    def __len__(self) -> int:
        return sum(len(shard) for shard in self._shards)

    def __contains__(self, key: object) -> bool:
        return self.contains(key)  # type: ignore[arg-type]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(num_shards={self.num_shards}, size={len(self)})"