"""Query cache: TTL-bounded memo of filtered/sorted record lists."""

import asyncio
import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from schooldesk.domain.entities import Identity, RecordType, type_tag

logger = logging.getLogger(__name__)


def make_cache_key(
    record_type: RecordType | str,
    filters: dict[str, Any] | None,
    identity: Identity | None,
) -> str:
    """Canonical key for a query: type, sorted filters and the viewer."""
    viewer = [identity.role.value, identity.display_name] if identity else None
    return json.dumps(
        {"type": type_tag(record_type), "filters": filters or {}, "viewer": viewer},
        sort_keys=True,
        default=str,
    )


@dataclass(frozen=True)
class _CacheEntry:
    value: Any
    timestamp: float


class QueryCache:
    """Key → (value, timestamp) store with lazy expiry and a periodic sweep.

    An entry is stale once ``now - timestamp > ttl``; ``get`` treats stale
    entries as absent without waiting for the sweep. When disabled, ``get``
    always misses and ``set`` does nothing.
    """

    def __init__(
        self,
        ttl_seconds: float,
        *,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._enabled = enabled
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}
        self._sweeper: asyncio.Task | None = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Any | None:
        if not self._enabled:
            return None
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.timestamp > self._ttl:
            self._entries.pop(key, None)
            return None
        return entry.value

    def set(self, key: str, value: Any) -> None:
        if not self._enabled:
            return
        self._entries[key] = _CacheEntry(value=value, timestamp=self._clock())

    def invalidate_all(self) -> None:
        self._entries.clear()

    def sweep(self) -> int:
        """Evict every expired entry; returns how many were dropped."""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if now - e.timestamp > self._ttl]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Cache sweep evicted %d entries", len(expired))
        return len(expired)

    # ── Background sweep ─────────────────────────────────────────────

    async def start_sweeper(self, interval_seconds: float) -> None:
        """Start the periodic sweep task (no-op when caching is disabled)."""
        if not self._enabled or self._sweeper is not None:
            return
        self._sweeper = asyncio.create_task(self._sweep_loop(interval_seconds))
        logger.info("Cache sweeper started (every %ss, ttl=%ss)", interval_seconds, self._ttl)

    async def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None
        logger.info("Cache sweeper stopped")

    async def _sweep_loop(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            self.sweep()
