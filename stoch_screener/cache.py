"""
In-memory TTL cache for price series and other per-scan data.

Features:
- Tuple keys: (symbol, lookback_days) or (kind, symbol)
- Lazy expiration on read
- Periodic background sweep so symbols that are no longer scanned
  do not accumulate

All access happens on the event loop that drives the scan, so there is
no locking.
"""

import asyncio
import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any

from .constants import CACHE_SWEEP_MINUTES, CACHE_TTL_MINUTES
from .logger import logger


@dataclass
class CacheEntry:
    key: Hashable
    payload: Any
    stored_at: float


class TTLCache:
    """Key-value cache with a fixed time-to-live per entry"""

    def __init__(self, ttl_seconds: float = CACHE_TTL_MINUTES * 60,
                 clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def _expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.stored_at > self.ttl_seconds

    def get(self, key: Hashable) -> Any | None:
        """
        Get cached payload for key.

        Returns:
            Payload or None if not cached or expired (expired entries are removed)
        """
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if self._expired(entry, self._clock()):
            logger.debug("cache.expired", key=key)
            del self._entries[key]
            self._misses += 1
            return None

        self._hits += 1
        return entry.payload

    def set(self, key: Hashable, payload: Any):
        self._entries[key] = CacheEntry(key=key, payload=payload, stored_at=self._clock())
        logger.debug("cache.set", key=key)

    def has(self, key: Hashable) -> bool:
        return self.get(key) is not None

    def delete(self, key: Hashable) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self):
        self._entries.clear()

    def clear_expired(self) -> int:
        """Remove all expired entries from cache"""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if self._expired(entry, now)]

        for key in expired:
            del self._entries[key]

        if expired:
            logger.info("cache.expired_cleared", count=len(expired), remaining=len(self._entries))
        return len(expired)

    def get_stats(self) -> dict:
        """Get cache statistics"""
        now = self._clock()
        ages = [now - entry.stored_at for entry in self._entries.values()]
        expired_count = len([age for age in ages if age > self.ttl_seconds])

        return {
            "total_entries": len(self._entries),
            "expired_entries": expired_count,
            "valid_entries": len(self._entries) - expired_count,
            "oldest_entry_seconds": round(max(ages), 1) if ages else None,
            "hits": self._hits,
            "misses": self._misses,
            "ttl_seconds": self.ttl_seconds,
        }

    async def run_sweeper(self, interval: float = CACHE_SWEEP_MINUTES * 60):
        """Remove expired entries every ``interval`` seconds until cancelled"""
        while True:
            await asyncio.sleep(interval)
            self.clear_expired()

    def start_sweeper(self, interval: float = CACHE_SWEEP_MINUTES * 60) -> asyncio.Task:
        """Schedule run_sweeper on the running event loop"""
        logger.debug("cache.sweeper_started", interval=interval)
        return asyncio.get_running_loop().create_task(self.run_sweeper(interval))
