"""Fan-out fetch, classify and merge."""

import asyncio
import dataclasses
import logging
from datetime import datetime
from typing import Sequence

from taxnews.core.classifier import KeywordClassifier, make_item_id
from taxnews.core.entities import NewsItem, RawItem, SourceDescriptor
from taxnews.core.interfaces import FeedFetcher

logger = logging.getLogger(__name__)


class NewsAggregator:
    """Fetch every source concurrently and merge the results newest first."""

    def __init__(self, fetcher: FeedFetcher, classifier: KeywordClassifier) -> None:
        self.fetcher = fetcher
        self.classifier = classifier
        # Source id -> item id -> first time an undated entry was seen.
        self._first_seen: dict[str, dict[str, datetime]] = {}

    async def run(self, sources: Sequence[SourceDescriptor]) -> list[NewsItem]:
        """Run one aggregation cycle.

        All fetches complete (or fail in isolation) before merging. The sort
        is stable, so items with equal timestamps keep registry and feed order.
        """
        results = await asyncio.gather(
            *(self.fetcher.fetch(source) for source in sources),
            return_exceptions=True,
        )

        items: list[NewsItem] = []

        for source, result in zip(sources, results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                logger.warning("Skipping %s: unexpected fetch error: %s", source.name, result)
                continue

            resolved = self._resolve_timestamps(source, result)
            items.extend(self.classifier.classify(raw, source) for raw in resolved)

        # Sources dropped from the registry take their memory with them.
        active = {source.id for source in sources}
        self._first_seen = {k: v for k, v in self._first_seen.items() if k in active}

        items.sort(key=lambda item: item.published_at, reverse=True)

        logger.info("Aggregated %d items from %d sources", len(items), len(sources))
        return items

    def _resolve_timestamps(self, source: SourceDescriptor, raws: list[RawItem]) -> list[RawItem]:
        """Give undated entries the time they were first observed.

        A failed fetch and an empty feed look the same, so an empty result
        keeps the source's memory; otherwise it is pruned to the entries
        still present in the feed.
        """
        if not raws:
            return []

        previous = self._first_seen.get(source.id, {})
        current: dict[str, datetime] = {}
        resolved: list[RawItem] = []

        for raw in raws:
            if raw.published_at is not None:
                resolved.append(raw)
                continue
            item_id = make_item_id(source.id, raw.identity)
            first_seen = current.get(item_id) or previous.get(item_id) or raw.fetched_at
            current[item_id] = first_seen
            resolved.append(dataclasses.replace(raw, published_at=first_seen))

        self._first_seen[source.id] = current
        return resolved
