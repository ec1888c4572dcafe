"""Thread-safe TTL cache owned by a scheduler or positions service instance."""

import threading
import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Generic, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass(slots=True)
class _Entry(Generic[V]):
    value: V
    expires_at: float


class TTLCache(Generic[K, V]):
    """Bounded map whose entries expire after a per-entry TTL.

    Expired entries are dropped lazily on ``get`` and in bulk by ``prune``.
    When full, the oldest inserted entry is evicted.
    """

    def __init__(self, maxsize: int = 512, clock: Callable[[], float] = time.monotonic):
        if maxsize < 1:
            raise ValueError("maxsize must be at least 1")
        self.maxsize = maxsize
        self._clock = clock
        self._lock = threading.Lock()
        self._data: dict[K, _Entry[V]] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def get(self, key: K) -> V | None:
        now = self._clock()
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            if entry.expires_at <= now:
                del self._data[key]
                return None
            return entry.value

    def set(self, key: K, value: V, ttl_seconds: float) -> None:
        expires_at = self._clock() + float(ttl_seconds)
        with self._lock:
            self._data.pop(key, None)
            while len(self._data) >= self.maxsize:
                self._data.pop(next(iter(self._data)))
            self._data[key] = _Entry(value=value, expires_at=expires_at)

    def prune(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, e in self._data.items() if e.expires_at <= now]
            for key in expired:
                del self._data[key]
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


def round_coord(value: float, decimals: int = 4) -> float:
    """Round a coordinate for use in a cache key (4 decimals is about 11 m)."""
    return round(value, decimals)
