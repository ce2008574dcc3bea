"""
In-process cache of rendered pages, keyed by email.
"""

import asyncio
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, Optional

from shared.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector

DEFAULT_CLEAN_INTERVAL = 5 * 60 * 60  # 5 hours between sweeps
DEFAULT_MAX_AGE = 2 * 24 * 60 * 60  # 2 days max for a cached page


@dataclass(frozen=True)
class RenderCacheEntry:
    markup: str
    produced_at: float


class RenderCache:
    """Rendered markup per email with periodic eviction.

    Reads never take the lock. Inserts and sweeps hold it only for the
    single mutation. Entries are not checked for age when read; only the
    background sweep removes them.
    """

    def __init__(
        self,
        clean_interval: float = DEFAULT_CLEAN_INTERVAL,
        max_age: float = DEFAULT_MAX_AGE,
        *,
        clock: Callable[[], float] = time.time,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.clean_interval = clean_interval
        self.max_age = max_age
        self.clock = clock
        self.metrics = metrics
        self.logger = get_logger("hallway.rendering.cache")

        self._entries: Dict[str, RenderCacheEntry] = {}
        self._lock = threading.Lock()
        self._maintenance_task: Optional[asyncio.Task] = None
        self.running = False

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        return entry.markup if entry is not None else None

    def get_or_render(self, key: str, render: Callable[[], str]) -> str:
        """Cached markup for ``key``, rendering and storing it on a miss.

        Two concurrent misses for the same key both render; the last store
        wins. ``render`` exceptions propagate and nothing is stored.
        """
        cached = self._entries.get(key)
        if cached is not None:
            if self.metrics:
                self.metrics.increment_counter("render_cache_hits_total")
            return cached.markup

        if self.metrics:
            self.metrics.increment_counter("render_cache_misses_total")

        self.logger.debug("Start rendering", key=key)
        markup = render()

        entry = RenderCacheEntry(markup=markup, produced_at=self.clock())
        with self._lock:
            self._entries[key] = entry
            size = len(self._entries)

        if self.metrics:
            self.metrics.set_gauge("render_cache_entries", size)
        return markup

    def _is_expired(self, key: str, entry: RenderCacheEntry, now: float) -> bool:
        age = now - entry.produced_at
        if age < 0:
            self.logger.warning(
                "Cache entry is in the future, did the clock change?",
                key=key,
                produced_at=entry.produced_at,
                now=now,
            )
            return True
        return age >= self.max_age

    def evict_expired(self) -> int:
        """Drop every entry older than ``max_age``. Returns how many went."""
        now = self.clock()
        with self._lock:
            expired = [
                key for key, entry in self._entries.items()
                if self._is_expired(key, entry, now)
            ]
            for key in expired:
                del self._entries[key]
            size = len(self._entries)

        if expired:
            self.logger.info("Evicted old renders", evicted=len(expired), remaining=size)
        if self.metrics:
            self.metrics.increment_counter("render_cache_evictions_total", len(expired))
            self.metrics.set_gauge("render_cache_entries", size)
        return len(expired)

    async def start(self):
        """Start the periodic sweep on the running event loop."""
        if self._maintenance_task is not None:
            return
        self.running = True
        self._maintenance_task = asyncio.create_task(self._maintenance_loop())
        self.logger.info(
            "Render cache maintenance started",
            clean_interval=self.clean_interval,
            max_age=self.max_age,
        )

    async def stop(self):
        self.running = False
        if self._maintenance_task:
            self._maintenance_task.cancel()
            try:
                await self._maintenance_task
            except asyncio.CancelledError:
                pass
            self._maintenance_task = None
        self.logger.info("Render cache maintenance stopped")

    async def _maintenance_loop(self):
        while self.running:
            await asyncio.sleep(self.clean_interval)
            try:
                self.evict_expired()
            except Exception as e:
                self.logger.error("Error in render cache sweep", error=str(e))
