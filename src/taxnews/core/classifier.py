"""Keyword-based classification of news items."""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from taxnews.core.entities import NewsItem, Priority, RawItem, SourceDescriptor

MAX_TAGS = 3
ID_SEPARATOR = "_"

# Greek stems; matching is substring-based so partial words are intentional.
DEFAULT_HIGH_PRIORITY = ["επείγ", "προσοχή", "λήγει", "τελευταί", "άμεσα"]
DEFAULT_MEDIUM_PRIORITY = ["σημαντικ", "νέ", "αλλαγ", "ανακοίνωση"]
DEFAULT_BREAKING = ["επείγ", "breaking", "έκτακτο", "προσοχή"]
DEFAULT_TAGS = {
    "Νέο": ["νέ", "καινούργι"],
    "Επείγον": ["επείγ", "άμεσα"],
    "Φορολογία": ["φόρος", "φπα", "φορολογ"],
    "Επιδότηση": ["επιδότηση", "χρηματοδότηση"],
}


@dataclass
class KeywordSets:
    """Vocabulary driving the classifier.

    `tags` is ordered: when more than MAX_TAGS labels match, the first ones
    in declaration order win.
    """
    high_priority: list[str] = field(default_factory=lambda: list(DEFAULT_HIGH_PRIORITY))
    medium_priority: list[str] = field(default_factory=lambda: list(DEFAULT_MEDIUM_PRIORITY))
    breaking: list[str] = field(default_factory=lambda: list(DEFAULT_BREAKING))
    tags: dict[str, list[str]] = field(
        default_factory=lambda: {label: list(words) for label, words in DEFAULT_TAGS.items()}
    )


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    """True if any keyword occurs in text (both sides lowercased)."""
    lowered = text.lower()
    return any(keyword.lower() in lowered for keyword in keywords)


def make_item_id(source_id: str, identity: str) -> str:
    return f"{source_id}{ID_SEPARATOR}{identity}"


class KeywordClassifier:
    """Derives priority, tags and breaking flag from title and summary."""

    def __init__(self, keywords: Optional[KeywordSets] = None) -> None:
        self.keywords = keywords or KeywordSets()

    @staticmethod
    def _text(title: str, summary: Optional[str]) -> str:
        return f"{title or ''} {summary or ''}".lower()

    def priority(self, title: str, summary: Optional[str] = None) -> Priority:
        text = self._text(title, summary)
        if contains_any(text, self.keywords.high_priority):
            return Priority.HIGH
        if contains_any(text, self.keywords.medium_priority):
            return Priority.MEDIUM
        return Priority.LOW

    def is_breaking(self, title: str, summary: Optional[str] = None) -> bool:
        return contains_any(self._text(title, summary), self.keywords.breaking)

    def tags(self, title: str, summary: Optional[str] = None) -> list[str]:
        text = self._text(title, summary)
        found: list[str] = []
        for label, words in self.keywords.tags.items():
            if len(found) >= MAX_TAGS:
                break
            if contains_any(text, words):
                found.append(label)
        return found

    def classify(self, raw: RawItem, source: SourceDescriptor) -> NewsItem:
        """Build the final item; computed priority replaces the source hint."""
        return NewsItem(
            id=make_item_id(source.id, raw.identity),
            title=raw.title,
            summary=raw.summary,
            content=raw.content,
            source_id=source.id,
            source_name=source.name,
            category=source.category,
            priority=self.priority(raw.title, raw.summary),
            tags=tuple(self.tags(raw.title, raw.summary)),
            published_at=raw.published_at or raw.fetched_at,
            url=raw.link,
            author=raw.author or source.name,
            is_breaking=self.is_breaking(raw.title, raw.summary),
        )
