"""In-memory TTL cache for translation results.

Responsibilities:
- Store values with an absolute expiry and hide stale entries from callers.
- Track hit/miss telemetry for cache diagnostics.
- Sweep expired entries periodically on the running event loop.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from time import monotonic
from typing import Any, Callable

from loguru import logger

from ..models.datatypes import CacheEntry, CacheStats


@dataclass(slots=True)
class CacheStore:
    """Volatile single-process key/value store with per-entry TTL.

    All mutation happens on one event loop, so no locking is required.
    """

    sweep_interval_seconds: float = 60.0
    clock: Callable[[], float] = monotonic
    hits: int = 0
    misses: int = 0
    _entries: dict[str, CacheEntry] = field(default_factory=dict)
    _sweeper: asyncio.Task[None] | None = None

    def get(self, key: str) -> Any | None:
        """Return a live cached value and update hit/miss counters."""

        entry = self._entries.get(key)
        if entry is not None:
            if self.clock() < entry.expires_at:
                self.hits += 1
                return entry.value
            del self._entries[key]

        self.misses += 1
        return None

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store a value under key, overwriting any previous entry."""

        self._entries[key] = CacheEntry(value=value, expires_at=self.clock() + ttl_seconds)

    def delete(self, key: str) -> None:
        """Remove one entry if present."""

        self._entries.pop(key, None)

    def clear(self) -> None:
        """Remove all entries and reset hit/miss counters."""

        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def get_stats(self) -> CacheStats:
        """Return hit/miss counters, hit rate, and physical entry count."""

        total = self.hits + self.misses
        hit_rate = self.hits / float(total) if total > 0 else 0.0
        return CacheStats(
            hits=self.hits,
            misses=self.misses,
            hit_rate=hit_rate,
            size=len(self._entries),
        )

    def size(self) -> int:
        """Return the physical entry count, including expired entries not yet swept."""

        return len(self._entries)

    def sweep(self) -> int:
        """Remove expired entries and return how many were dropped."""

        now = self.clock()
        expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("cache sweep removed {} expired entries", len(expired))
        return len(expired)

    def start_sweeper(self) -> None:
        """Start the periodic sweep task on the running loop if not already running."""

        if self.sweep_interval_seconds <= 0:
            return
        if self._sweeper is not None and not self._sweeper.done():
            return
        self._sweeper = asyncio.get_running_loop().create_task(self._sweep_forever())

    async def _sweep_forever(self) -> None:
        """Sweep expired entries once per interval until cancelled."""

        while True:
            await asyncio.sleep(self.sweep_interval_seconds)
            self.sweep()

    def destroy(self) -> None:
        """Stop the sweep task and drop all entries."""

        if self._sweeper is not None:
            self._sweeper.cancel()
            self._sweeper = None
        self._entries.clear()
