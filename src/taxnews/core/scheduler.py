"""Periodic background refresh."""

import asyncio
import logging
from typing import Optional

from taxnews.core.cache import NewsCache

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """Force a cache refresh every `interval` seconds, independent of traffic."""

    def __init__(self, cache: NewsCache, interval: float = 600.0, run_on_startup: bool = True) -> None:
        if interval <= 0:
            raise ValueError("Refresh interval must be positive")
        self.cache = cache
        self.interval = interval
        self.run_on_startup = run_on_startup
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="news-refresh-scheduler")
        logger.info("Refresh scheduler started (every %.0fs)", self.interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Refresh scheduler stopped")

    async def _loop(self) -> None:
        if self.run_on_startup:
            await self._tick()
        while True:
            await asyncio.sleep(self.interval)
            await self._tick()

    async def _tick(self) -> None:
        logger.info("Auto-refreshing news...")
        try:
            await self.cache.force_refresh()
        except Exception:
            logger.exception("Scheduled refresh failed, retrying in %.0fs", self.interval)
