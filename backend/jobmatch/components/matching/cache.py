"""In-memory memoization of match analyses keyed by (profile_id, job_id).

Entries live for the lifetime of the owning service unless a TTL is set.
There is no size bound. Two concurrent misses for the same key both call
Claude; the later write wins.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Dict, Optional, Tuple

from .schemas import MatchAnalysis

CacheKey = Tuple[str, str]


def cache_key_for(profile_id: str, job_id: str) -> CacheKey:
    return (str(profile_id), str(job_id))


class MatchResultCache:
    def __init__(self, ttl_seconds: float | None = None, clock: Callable[[], float] = time.monotonic):
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive when set")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[CacheKey, Tuple[float, MatchAnalysis]] = {}
        self._lock = threading.Lock()

    def get(self, key: CacheKey) -> Optional[MatchAnalysis]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if self.ttl_seconds is not None and self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[key]
                return None
            return value

    def set(self, key: CacheKey, value: MatchAnalysis) -> None:
        with self._lock:
            self._entries[key] = (self._clock(), value)

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
