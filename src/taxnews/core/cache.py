"""TTL-bounded news cache with single-flight refresh."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional, Sequence

from taxnews.core.entities import CacheSnapshot, CacheState, NewsItem
from taxnews.core.exceptions import AggregationError

logger = logging.getLogger(__name__)

RefreshFunc = Callable[[], Awaitable[Sequence[NewsItem]]]
Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NewsCache:
    """Owns the current snapshot and coordinates refreshes.

    At most one refresh runs at a time. Callers arriving while a refresh is
    in flight await the same task and receive the same snapshot. The
    snapshot reference and the in-flight task are only touched under
    `self._lock`; a new snapshot is built completely before it is swapped in.
    """

    def __init__(
        self,
        refresh: RefreshFunc,
        ttl: timedelta = timedelta(minutes=10),
        clock: Clock = utcnow,
    ) -> None:
        self._refresh = refresh
        self.ttl = ttl
        self._clock = clock
        self._snapshot: Optional[CacheSnapshot] = None
        self._inflight: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()

    @property
    def snapshot(self) -> Optional[CacheSnapshot]:
        return self._snapshot

    @property
    def state(self) -> CacheState:
        if self._inflight is not None:
            return CacheState.REFRESHING
        if self._snapshot is None:
            return CacheState.EMPTY
        if self._is_stale(self._snapshot):
            return CacheState.STALE
        return CacheState.FRESH

    def _is_stale(self, snapshot: CacheSnapshot) -> bool:
        return self._clock() - snapshot.generated_at > self.ttl

    async def get(self) -> CacheSnapshot:
        """Return the current snapshot, refreshing first if empty or stale."""
        async with self._lock:
            snapshot = self._snapshot
            if snapshot is not None and not self._is_stale(snapshot):
                return snapshot
            task = self._ensure_refresh()
        return await asyncio.shield(task)

    async def force_refresh(self) -> CacheSnapshot:
        """Refresh unconditionally, joining a refresh already in flight."""
        async with self._lock:
            task = self._ensure_refresh()
        return await asyncio.shield(task)

    def _ensure_refresh(self) -> asyncio.Task:
        # Caller holds self._lock.
        if self._inflight is None:
            self._inflight = asyncio.create_task(self._run_refresh())
        return self._inflight

    async def _run_refresh(self) -> CacheSnapshot:
        try:
            items = await self._refresh()
        except Exception as e:
            async with self._lock:
                self._inflight = None
                previous = self._snapshot
            if previous is None:
                logger.error("News refresh failed with no cached snapshot: %s", e)
                raise AggregationError(f"News refresh failed: {e}") from e
            logger.warning(
                "News refresh failed, keeping snapshot from %s: %s",
                previous.generated_at.isoformat(), e,
            )
            return previous
        except BaseException:
            async with self._lock:
                self._inflight = None
            raise

        snapshot = CacheSnapshot(generated_at=self._clock(), items=tuple(items))
        async with self._lock:
            self._snapshot = snapshot
            self._inflight = None
        logger.info("News cache refreshed: %d items", snapshot.total)
        return snapshot
