"""
app/cache.py

In-process TTL cache shared by the readings query endpoints.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from functools import lru_cache
from typing import Any

from app.config import get_cache_settings


class TTLCache:
    """
    Thread-safe key/value cache with per-entry expiry.

    Expiry uses the monotonic clock. When ``max_entries`` is reached the
    oldest inserted entry is evicted.
    """

    def __init__(self, *, max_entries: int = 1000, clock: Any = time.monotonic) -> None:
        self._max_entries = max(1, max_entries)
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, Any]] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            return

        with self._lock:
            expires_at = self._clock() + ttl_seconds
            if key in self._entries:
                del self._entries[key]
            elif len(self._entries) >= self._max_entries:
                self._evict_expired()
                while len(self._entries) >= self._max_entries:
                    self._entries.popitem(last=False)
            self._entries[key] = (expires_at, value)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _evict_expired(self) -> None:
        now = self._clock()
        expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]


@lru_cache(maxsize=1)
def get_query_cache() -> TTLCache:
    """
    Process-wide cache instance; ingestion clears it after new rows land.
    """

    return TTLCache(max_entries=get_cache_settings().max_entries)
