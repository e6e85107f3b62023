"""Core interfaces for adapters."""

from abc import ABC, abstractmethod

from taxnews.core.entities import RawItem, SourceDescriptor


class FeedFetcher(ABC):
    """Interface for reading one feed into raw items."""

    @abstractmethod
    async def fetch(self, source: SourceDescriptor) -> list[RawItem]:
        """Fetch and parse a feed.

        Implementations must not raise for network or parse failures;
        they log a warning and return an empty list instead.
        """
        pass
