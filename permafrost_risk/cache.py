"""
cache.py — Caller-owned response cache with expiry.

The pipeline never keeps module-level state: whoever wants caching (the
FastAPI app) creates a ResponseCache and passes it in. Providers treat a
miss, an expired entry or no cache at all the same way: fetch live.
"""

import time
from typing import Any, Callable, Hashable, Optional

from config import RESPONSE_CACHE_TTL_S


class ResponseCache:
    def __init__(self, ttl_s: float = RESPONSE_CACHE_TTL_S, clock: Callable[[], float] = time.monotonic):
        self.ttl_s = ttl_s
        self._clock = clock
        self._entries: dict[Hashable, tuple[float, Any]] = {}

    def get(self, key: Hashable) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: Hashable, value: Any) -> None:
        self._entries[key] = (self._clock() + self.ttl_s, value)

    def __len__(self) -> int:
        return len(self._entries)
