"""Bounded least-recently-used memoisation shared by the solar engine."""

from __future__ import annotations

from collections import OrderedDict
from threading import Lock
from typing import Callable, Hashable, Generic, Optional, TypeVar

__all__ = [
    "LRUCache",
    "CACHE_MAX_LARGE",
    "CACHE_MAX_MEDIUM",
    "CACHE_MAX_SMALL",
]

# Per-day sun data (solar days, positions, twilight bands).
CACHE_MAX_LARGE = 200_000
# Timezone lookups (local-time inversion, offsets).
CACHE_MAX_MEDIUM = 5_000
# Aggregates (year series, milestone lists).
CACHE_MAX_SMALL = 1_000

V = TypeVar("V")

_MISSING = object()


class LRUCache(Generic[V]):
    """Fixed-capacity key/value store evicting the least recently used entry.

    Every check/evict/insert sequence runs under a lock, so instances can be
    shared by threads building results in parallel.
    """

    def __init__(self, max_size: int) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._max = max_size
        self._data: "OrderedDict[Hashable, V]" = OrderedDict()
        self._lock = Lock()

    @property
    def max_size(self) -> int:
        return self._max

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._data

    def get(self, key: Hashable, default: Optional[V] = None) -> Optional[V]:
        with self._lock:
            value = self._data.get(key, _MISSING)
            if value is _MISSING:
                return default
            self._data.move_to_end(key)
            return value  # type: ignore[return-value]

    def set(self, key: Hashable, value: V) -> None:
        with self._lock:
            if key in self._data:
                self._data.move_to_end(key)
            elif len(self._data) >= self._max:
                self._data.popitem(last=False)
            self._data[key] = value

    def get_or_compute(self, key: Hashable, factory: Callable[[], V]) -> V:
        """Return the cached value for *key*, computing and storing it on a miss.

        *factory* runs outside the lock; results are pure functions of the key
        so a concurrent duplicate computation stores an equal value.
        """

        value = self.get(key, _MISSING)  # type: ignore[arg-type]
        if value is not _MISSING:
            return value  # type: ignore[return-value]
        value = factory()
        self.set(key, value)
        return value

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
