"""Elastic sharded map using consistent hashing and lazy, on-access key migration."""

from __future__ import annotations

import sys
import threading
from bisect import bisect_left
from dataclasses import dataclass, field
from typing import Any, Hashable, List, Optional, TextIO, Tuple

from .avl_tree import AVLTree
from .hash_table import key_hash, mix64


@dataclass(frozen=True)
class ShardedConfig:
    """Construction parameters of a :class:`DynamicShardedTree`."""

    initial_shards: int = 4
    vnodes_per_shard: int = 64

    def __post_init__(self) -> None:
        if self.initial_shards < 1:
            raise ValueError("initial_shards must be at least 1")
        if self.vnodes_per_shard < 1:
            raise ValueError("vnodes_per_shard must be at least 1")


@dataclass(frozen=True)
class DynamicShardStats:
    """Snapshot of the element distribution across shards."""

    num_shards: int
    total_elements: int
    balance_score: float
    elements_per_shard: Tuple[int, ...] = field(default_factory=tuple)


class _Shard:
    __slots__ = ("tree", "lock")

    def __init__(self) -> None:
        self.tree: AVLTree = AVLTree()
        self.lock = threading.Lock()

    def __len__(self) -> int:
        return len(self.tree)


def _vnode_hash(shard_id: int, vnode_idx: int) -> int:
    return mix64((shard_id << 16) ^ vnode_idx)


class DynamicShardedTree:
    """Map spread over AVL shards placed on a consistent-hash ring.

    Adding a shard only changes the ring; keys found outside the shard the
    ring now assigns them are moved there when they are next read. Each
    shard has its own lock, and topology changes take a separate lock.
    """

    def __init__(self, config: Optional[ShardedConfig] = None) -> None:
        self.config = config if config is not None else ShardedConfig()
        self._topology_lock = threading.Lock()
        self._shards: List[_Shard] = [_Shard() for _ in range(self.config.initial_shards)]
        self._ring_hashes: List[int] = []
        self._ring_shards: List[int] = []
        self._topology_version = 0
        with self._topology_lock:
            self._rebuild_ring_locked()

    # -- ring ---------------------------------------------------------------

    def _rebuild_ring_locked(self) -> None:
        ring = sorted(
            (
                (_vnode_hash(s, v), s)
                for s in range(len(self._shards))
                for v in range(self.config.vnodes_per_shard)
            ),
            key=lambda point: point[0],
        )
        self._ring_hashes = [h for h, _ in ring]
        self._ring_shards = [s for _, s in ring]

    def _find_shard_locked(self, hash_value: int) -> int:
        if not self._ring_hashes:
            return 0
        idx = bisect_left(self._ring_hashes, hash_value)
        if idx == len(self._ring_hashes):
            idx = 0
        return self._ring_shards[idx]

    def _locate(self, key: Hashable) -> Tuple[int, List[_Shard]]:
        with self._topology_lock:
            return self._find_shard_locked(key_hash(key)), list(self._shards)

    def _find_and_migrate(self, key: Hashable, missing: object) -> Any:
        """Value of ``key`` (moved to its expected shard if found elsewhere) or ``missing``."""
        expected, shards = self._locate(key)
        home = shards[expected]
        with home.lock:
            value = home.tree.get(key, missing)
            if value is not missing:
                return value

        for idx, shard in enumerate(shards):
            if idx == expected:
                continue
            with shard.lock:
                value = shard.tree.get(key, missing)
                if value is missing:
                    continue
                shard.tree.remove(key)
                with home.lock:
                    home.tree.insert(key, value)
                return value
        return missing

    def _reinsert_locked(self, pairs: List[Tuple[Any, Any]]) -> None:
        for key, value in pairs:
            shard = self._shards[self._find_shard_locked(key_hash(key))]
            with shard.lock:
                shard.tree.insert(key, value)

    # -- core operations ----------------------------------------------------

    def insert(self, key: Hashable, value: Any = None) -> None:
        """Insert ``key`` into the shard the ring assigns it, replacing any value there."""
        expected, shards = self._locate(key)
        shard = shards[expected]
        with shard.lock:
            shard.tree.insert(key, value)

    def contains(self, key: Hashable) -> bool:
        """Whether ``key`` is stored; a key found in the wrong shard is migrated."""
        missing = object()
        return self._find_and_migrate(key, missing) is not missing

    def get(self, key: Hashable, default: Any = None) -> Any:
        """Value of ``key`` or ``default``; a key found in the wrong shard is migrated."""
        missing = object()
        value = self._find_and_migrate(key, missing)
        return default if value is missing else value

    def remove(self, key: Hashable) -> bool:
        """Remove the first copy of ``key`` found; return whether one was found."""
        with self._topology_lock:
            shards = list(self._shards)
        for shard in shards:
            with shard.lock:
                if shard.tree.remove(key):
                    return True
        return False

    # -- dynamic scaling ----------------------------------------------------

    @property
    def num_shards(self) -> int:
        return len(self._shards)

    @property
    def topology_version(self) -> int:
        """Incremented on every shard addition or removal."""
        return self._topology_version

    def add_shard(self) -> None:
        """Append an empty shard; existing keys migrate lazily as they are read."""
        with self._topology_lock:
            self._shards.append(_Shard())
            self._rebuild_ring_locked()
            self._topology_version += 1

    def remove_shard(self) -> bool:
        """Drop the last shard and re-home its keys; False if only one shard remains."""
        with self._topology_lock:
            if len(self._shards) <= 1:
                return False
            last = self._shards[-1]
            with last.lock:
                pairs = list(last.tree.items())
            self._shards.pop()
            self._rebuild_ring_locked()
            self._topology_version += 1
            self._reinsert_locked(pairs)
            return True

    def force_rebalance(self) -> None:
        """Move every key to the shard the ring currently assigns it."""
        with self._topology_lock:
            pairs: List[Tuple[Any, Any]] = []
            for shard in self._shards:
                with shard.lock:
                    pairs.extend(shard.tree.items())
            self._shards = [_Shard() for _ in self._shards]
            self._reinsert_locked(pairs)

    # -- statistics ---------------------------------------------------------

    def stats(self) -> DynamicShardStats:
        with self._topology_lock:
            counts = tuple(len(shard) for shard in self._shards)
        total = sum(counts)
        n = len(counts)
        if total > 0 and n > 0:
            avg = total / n
            variance = sum((c - avg) ** 2 for c in counts) / n
            balance = max(0.0, 1.0 - variance ** 0.5 / avg)
        else:
            balance = 1.0
        return DynamicShardStats(n, total, balance, counts)

    def format_stats(self) -> str:
        """Human-readable distribution report."""
        s = self.stats()
        lines = [
            "",
            "╔═══════════════════════════════════════════════╗",
            "║  Dynamic Sharded Tree Statistics              ║",
            "╚═══════════════════════════════════════════════╝",
            "",
            f"  Shards: {s.num_shards}",
            f"  Total elements: {s.total_elements}",
            f"  Balance score: {s.balance_score * 100:.1f}%",
            "",
            "  Distribution:",
        ]
        for idx, count in enumerate(s.elements_per_shard):
            pct = 100.0 * count / s.total_elements if s.total_elements else 0.0
            lines.append(f"    Shard {idx}: {count:6d} ({pct:.1f}%)")
        lines.append("")
        return "\n".join(lines) + "\n"

    def print_stats(self, file: Optional[TextIO] = None) -> None:
        """Write :meth:`format_stats` to ``file`` (standard output by default)."""
        print(self.format_stats(), end="", file=file if file is not None else sys.stdout)

    def __len__(self) -> int:
        with self._topology_lock:
            return sum(len(shard) for shard in self._shards)

    def __contains__(self, key: object) -> bool:
        return self.contains(key)  # type: ignore[arg-type]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(num_shards={self.num_shards}, size={len(self)})"