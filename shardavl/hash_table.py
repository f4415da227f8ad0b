"""Open-addressing hash table using Robin Hood probing and backward-shift deletion."""

from __future__ import annotations

from typing import Any, Generic, Hashable, Iterator, List, Optional, Tuple, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

_MASK64 = (1 << 64) - 1


def mix64(key: int) -> int:
    """Murmur3 64-bit finalizer applied to ``key`` taken as an unsigned 64-bit value."""
    h = key & _MASK64
    h ^= h >> 33
    h = (h * 0xFF51AFD7ED558CCD) & _MASK64
    h ^= h >> 33
    h = (h * 0xC4CEB9FE1A85EC53) & _MASK64
    h ^= h >> 33
    return h


def key_hash(key: Hashable) -> int:
    """64-bit hash of ``key``: integers are mixed directly, other keys via ``hash()``."""
    if isinstance(key, int):
        return mix64(key)
    return mix64(hash(key))


def _next_power_of_two(n: int) -> int:
    return 1 if n <= 1 else 1 << (n - 1).bit_length()


class _Entry:
    __slots__ = ("key", "value", "dist")

    def __init__(self, key: Any, value: Any, dist: int = 0) -> None:
        self.key = key
        self.value = value
        self.dist = dist


class RobinHoodTable(Generic[K, V]):
    """Hash map with power-of-two capacity, Robin Hood insertion and backward-shift removal."""

    MIN_CAPACITY = 16
    LOAD_FACTOR_MAX = 0.7
    MAX_PROBE = 255

    def __init__(self, initial_capacity: int = MIN_CAPACITY) -> None:
        capacity = _next_power_of_two(max(initial_capacity, self.MIN_CAPACITY))
        self._slots: List[Optional[_Entry]] = [None] * capacity
        self._size = 0
        self._max_probe = 0

    # -- internals ----------------------------------------------------------

    def _resize(self, new_capacity: int) -> None:
        old = [entry for entry in self._slots if entry is not None]
        self._slots = [None] * new_capacity
        self._size = 0
        self._max_probe = 0
        for entry in old:
            self._place(entry.key, entry.value)

    def _place(self, key: K, value: V) -> None:
        mask = len(self._slots) - 1
        idx = key_hash(key) & mask
        dist = 0
        entry = _Entry(key, value)
        while True:
            slot = self._slots[idx]
            if slot is None:
                entry.dist = dist
                self._slots[idx] = entry
                self._size += 1
                self._max_probe = max(self._max_probe, dist)
                return
            if slot.key == entry.key:
                slot.value = entry.value
                return
            if dist > slot.dist:
                entry.dist = dist
                self._slots[idx] = entry
                self._max_probe = max(self._max_probe, dist)
                entry = slot
                dist = slot.dist
            idx = (idx + 1) & mask
            dist += 1
            if dist > self.MAX_PROBE:
                raise OverflowError("probe sequence exceeded the maximum distance")

    def _find_index(self, key: K) -> Optional[int]:
        mask = len(self._slots) - 1
        idx = key_hash(key) & mask
        dist = 0
        while dist <= self._max_probe:
            slot = self._slots[idx]
            if slot is None:
                return None
            if slot.key == key:
                return idx
            if dist > slot.dist:
                return None
            idx = (idx + 1) & mask
            dist += 1
        return None

    # -- public API ---------------------------------------------------------

    def insert(self, key: K, value: V) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        if (self._size + 1) / len(self._slots) > self.LOAD_FACTOR_MAX:
            self._resize(len(self._slots) * 2)
        self._place(key, value)

    def get(self, key: K, default: Any = None) -> Any:
        """Return the value under ``key`` or ``default`` if absent."""
        idx = self._find_index(key)
        if idx is None:
            return default
        entry = self._slots[idx]
        assert entry is not None
        return entry.value

    def remove(self, key: K) -> bool:
        """Delete ``key``; return whether it was present."""
        idx = self._find_index(key)
        if idx is None:
            return False
        mask = len(self._slots) - 1
        curr = idx
        while True:
            nxt = (curr + 1) & mask
            following = self._slots[nxt]
            if following is None or following.dist == 0:
                self._slots[curr] = None
                break
            following.dist -= 1
            self._slots[curr] = following
            curr = nxt
        self._size -= 1
        return True

    def clear(self) -> None:
        """Remove every entry, keeping the current capacity."""
        self._slots = [None] * len(self._slots)
        self._size = 0
        self._max_probe = 0

    def items(self) -> Iterator[Tuple[K, V]]:
        """Yield ``(key, value)`` pairs in slot order."""
        for entry in self._slots:
            if entry is not None:
                yield entry.key, entry.value

    def capacity(self) -> int:
        """Number of slots (always a power of two)."""
        return len(self._slots)

    def __len__(self) -> int:
        return self._size

    def __contains__(self, key: object) -> bool:
        return self._find_index(key) is not None  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[K]:
        return (key for key, _ in self.items())

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict(self.items())!r})"