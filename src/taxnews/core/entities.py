"""Core domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class Priority(str, Enum):
    """Priority of a news item."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CacheState(str, Enum):
    """Lifecycle state of the news cache."""

    EMPTY = "empty"
    REFRESHING = "refreshing"
    FRESH = "fresh"
    STALE = "stale"


@dataclass(frozen=True)
class SourceDescriptor:
    """A configured feed."""

    id: str
    name: str
    url: str
    category: str
    priority: Priority = Priority.MEDIUM

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Source id cannot be empty")
        if not self.url:
            raise ValueError("Source URL cannot be empty")


@dataclass(frozen=True)
class RawItem:
    """Parsed but unclassified feed entry."""

    title: str
    summary: str
    content: str
    link: str
    guid: str
    author: str
    fetched_at: datetime
    published_at: Optional[datetime] = None

    @property
    def identity(self) -> str:
        """Feed-level identity: guid if present, else link."""
        return self.guid or self.link


@dataclass(frozen=True)
class NewsItem:
    """Normalized, classified news item."""

    id: str
    title: str
    summary: str
    content: str
    source_id: str
    source_name: str
    category: str
    priority: Priority
    tags: tuple[str, ...]
    published_at: datetime
    url: str
    author: str
    is_breaking: bool = False


@dataclass(frozen=True)
class CacheSnapshot:
    """One complete, merged result of an aggregation cycle."""

    generated_at: datetime
    items: tuple[NewsItem, ...] = field(default_factory=tuple)

    @property
    def total(self) -> int:
        return len(self.items)
