"""In-memory key/value cache with lazy time-to-live expiry."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

DEFAULT_TTL_SECONDS = 5 * 60


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    stored_at: float


class TTLCache:
    """Thread-safe TTL cache.

    Entries older than ``ttl_seconds`` are treated as absent and evicted on
    the next ``get`` for that key. There is no background sweeping and no
    bound on the number of entries.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0.")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.stored_at > self.ttl_seconds:
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(value=value, stored_at=self._clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
