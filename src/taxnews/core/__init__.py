"""Core domain layer."""

from taxnews.core.aggregator import NewsAggregator
from taxnews.core.cache import NewsCache
from taxnews.core.classifier import KeywordClassifier, KeywordSets
from taxnews.core.entities import (
    CacheSnapshot,
    CacheState,
    NewsItem,
    Priority,
    RawItem,
    SourceDescriptor,
)
from taxnews.core.exceptions import (
    AggregationError,
    ConfigurationError,
    SourceFetchError,
    TaxNewsError,
)
from taxnews.core.interfaces import FeedFetcher
from taxnews.core.registry import SourceRegistry
from taxnews.core.scheduler import RefreshScheduler

__all__ = [
    "NewsItem",
    "RawItem",
    "SourceDescriptor",
    "CacheSnapshot",
    "CacheState",
    "Priority",
    "FeedFetcher",
    "KeywordClassifier",
    "KeywordSets",
    "NewsAggregator",
    "NewsCache",
    "RefreshScheduler",
    "SourceRegistry",
    "TaxNewsError",
    "SourceFetchError",
    "AggregationError",
    "ConfigurationError",
]
