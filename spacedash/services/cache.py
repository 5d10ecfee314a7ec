"""In-memory cache-through accessor with per-entry TTL.

One ``TTLCache`` is created per application and handed to every service, so
tests can swap in a fresh instance with a controllable clock.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from spacedash.observability.metrics import CACHE_LOOKUPS

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAXSIZE = 1024


@dataclass(slots=True)
class CacheEntry:
    key: str
    value: Any
    stored_at: float
    ttl_seconds: int

    def is_expired(self, now: float) -> bool:
        return now >= self.stored_at + self.ttl_seconds


class TTLCache:
    """Key/value store whose entries become misses after their TTL.

    Holds at most ``maxsize`` entries. Storing a new key first drops every
    expired entry, then the least recently used ones while still full.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        maxsize: int = DEFAULT_MAXSIZE,
    ) -> None:
        self._clock = clock
        self.maxsize = max(1, maxsize)
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._locks: dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self._live_entry(key) is not None

    def _live_entry(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            self._entries.pop(key, None)
            return None
        self._entries.move_to_end(key)
        return entry

    def _evict(self, now: float) -> None:
        for key in [k for k, e in self._entries.items() if e.is_expired(now)]:
            del self._entries[key]
        while len(self._entries) >= self.maxsize:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Cache full, evicted %s", evicted)

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._live_entry(key)
        return default if entry is None else entry.value

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        now = self._clock()
        if key in self._entries:
            self._entries.pop(key)
        else:
            self._evict(now)
        self._entries[key] = CacheEntry(
            key=key, value=value, stored_at=now, ttl_seconds=ttl_seconds
        )

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> None:
        for key in [k for k in self._entries if k.startswith(prefix)]:
            self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    async def get_or_compute(
        self,
        key: str,
        ttl_seconds: int,
        producer: Callable[[], Awaitable[T]],
    ) -> T:
        """Return the live value for ``key`` or await ``producer`` once and store it.

        Concurrent misses on the same key wait on a shared lock, so only the
        first caller runs ``producer``. Exceptions from ``producer`` propagate
        and leave the key empty.
        """
        entry = self._live_entry(key)
        if entry is not None:
            CACHE_LOOKUPS.labels("hit").inc()
            return entry.value

        lock = self._locks.setdefault(key, asyncio.Lock())
        try:
            async with lock:
                entry = self._live_entry(key)
                if entry is not None:
                    CACHE_LOOKUPS.labels("hit").inc()
                    return entry.value

                CACHE_LOOKUPS.labels("miss").inc()
                logger.debug("Cache miss for %s", key)
                value = await producer()
                self.set(key, value, ttl_seconds)
                return value
        finally:
            if not lock.locked():
                self._locks.pop(key, None)
