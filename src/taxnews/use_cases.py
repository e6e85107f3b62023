"""Business logic use cases."""

from datetime import timedelta
from typing import Optional

from taxnews.adapters.sources import RSSFeedSource
from taxnews.config import Settings
from taxnews.core import (
    CacheSnapshot,
    FeedFetcher,
    KeywordClassifier,
    NewsAggregator,
    NewsCache,
    NewsItem,
    RefreshScheduler,
    SourceDescriptor,
    SourceRegistry,
)


class NewsService:
    """Entry point used by the API layer and the CLI.

    Wires registry, aggregator, cache and scheduler around one shared cache.
    """

    def __init__(
        self,
        registry: SourceRegistry,
        aggregator: NewsAggregator,
        ttl: timedelta = timedelta(minutes=10),
        refresh_interval: Optional[float] = None,
        run_on_startup: bool = True,
    ) -> None:
        self.registry = registry
        self.aggregator = aggregator
        self.cache = NewsCache(self._aggregate, ttl=ttl)
        if refresh_interval is None:
            refresh_interval = ttl.total_seconds()
        self.scheduler = RefreshScheduler(
            self.cache,
            interval=refresh_interval,
            run_on_startup=run_on_startup,
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, fetcher: Optional[FeedFetcher] = None
    ) -> "NewsService":
        """Build the service from settings.

        Raises:
            ConfigurationError: if the source list is malformed
        """
        registry = SourceRegistry.from_config(settings.sources)
        fetcher = fetcher or RSSFeedSource(
            timeout=settings.fetch.timeout_seconds,
            user_agent=settings.fetch.user_agent,
        )
        aggregator = NewsAggregator(fetcher, KeywordClassifier(settings.classifier))
        return cls(
            registry=registry,
            aggregator=aggregator,
            ttl=timedelta(seconds=settings.cache.ttl_seconds),
            refresh_interval=settings.scheduler.interval_seconds,
            run_on_startup=settings.scheduler.run_on_startup,
        )

    async def _aggregate(self) -> list[NewsItem]:
        return await self.aggregator.run(self.registry.list())

    def list_sources(self) -> list[SourceDescriptor]:
        return self.registry.list()

    async def get_news(self) -> CacheSnapshot:
        """Cached news, refreshed lazily once the TTL expires."""
        return await self.cache.get()

    async def refresh_news(self) -> CacheSnapshot:
        """Refresh now, or join a refresh already running."""
        return await self.cache.force_refresh()
