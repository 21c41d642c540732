"""In-memory TTL cache for API responses.

Bounded by entry count with insertion-order (FIFO) eviction. Expired
entries are dropped lazily on read and in bulk by ``sweep()``, which a
background task can run on a fixed interval.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

log = logging.getLogger("wpcontent.cache")

DEFAULT_MAX_SIZE = 100
DEFAULT_SWEEP_INTERVAL = 300.0


@dataclass(frozen=True)
class CacheEntry:
    """TTL-based cache entry."""

    data: Any
    stored_at: float
    ttl: float

    def is_valid(self, now: float) -> bool:
        return now - self.stored_at <= self.ttl


class ResponseCache:
    """Simple in-memory TTL cache for API responses."""

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE, clock: Callable[[], float] = time.monotonic) -> None:
        self.max_size = max(1, max_size)
        self._clock = clock
        # dicts keep insertion order, so the first key is the oldest write
        self._store: dict[str, CacheEntry] = {}
        self._sweeper: asyncio.Task | None = None

    def get(self, key: str) -> Any | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        if not entry.is_valid(self._clock()):
            del self._store[key]
            return None
        return entry.data

    def set(self, key: str, data: Any, ttl_seconds: float) -> None:
        # Re-inserting moves the key to the back of the eviction order.
        self._store.pop(key, None)
        while len(self._store) >= self.max_size:
            oldest = next(iter(self._store))
            del self._store[oldest]
            log.debug("Cache full, evicted %s", oldest)
        self._store[key] = CacheEntry(data=data, stored_at=self._clock(), ttl=ttl_seconds)

    def delete(self, key: str) -> bool:
        return self._store.pop(key, None) is not None

    def clear(self) -> None:
        self._store.clear()

    def sweep(self) -> int:
        """Remove every expired entry. Returns how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._store.items() if not entry.is_valid(now)]
        for key in expired:
            del self._store[key]
        if expired:
            log.debug("Swept %d expired cache entries", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        entry = self._store.get(key)  # type: ignore[arg-type]
        return entry is not None and entry.is_valid(self._clock())

    # ── Background sweeper ────────────────────────────────────────────

    @property
    def sweeper_running(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    def start_sweeper(self, interval: float = DEFAULT_SWEEP_INTERVAL) -> None:
        """Start the periodic sweep task on the running loop. Idempotent."""
        if self.sweeper_running:
            return
        self._sweeper = asyncio.get_running_loop().create_task(self._sweep_forever(interval))

    async def stop_sweeper(self) -> None:
        task, self._sweeper = self._sweeper, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _sweep_forever(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                self.sweep()
            except Exception as e:
                log.warning("Cache sweep failed: %s", e)
