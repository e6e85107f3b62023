"""Static catalog of configured feeds."""

from typing import Any, Iterable, Iterator, Optional

from taxnews.core.entities import Priority, SourceDescriptor
from taxnews.core.exceptions import ConfigurationError


class SourceRegistry:
    """Read-only list of feed descriptors, fixed for the process lifetime."""

    def __init__(self, sources: Iterable[SourceDescriptor]) -> None:
        self._sources = tuple(sources)
        self._by_id: dict[str, SourceDescriptor] = {}

        for source in self._sources:
            if source.id in self._by_id:
                raise ConfigurationError(f"Duplicate source id: {source.id}")
            self._by_id[source.id] = source

    @classmethod
    def from_config(cls, entries: Iterable[dict[str, Any]]) -> "SourceRegistry":
        """Build a registry from config mappings.

        Raises:
            ConfigurationError: if any entry is malformed
        """
        return cls(_parse_entry(index, entry) for index, entry in enumerate(entries))

    def list(self) -> list[SourceDescriptor]:
        return list(self._sources)

    def get(self, source_id: str) -> Optional[SourceDescriptor]:
        return self._by_id.get(source_id)

    def __len__(self) -> int:
        return len(self._sources)

    def __iter__(self) -> Iterator[SourceDescriptor]:
        return iter(self._sources)


def _parse_entry(index: int, entry: Any) -> SourceDescriptor:
    if not isinstance(entry, dict):
        raise ConfigurationError(f"Source #{index} must be a mapping, got {type(entry).__name__}")

    missing = [key for key in ("id", "name", "url") if not entry.get(key)]
    if missing:
        raise ConfigurationError(f"Source #{index} is missing: {', '.join(missing)}")

    url = str(entry["url"])
    if not url.startswith(("http://", "https://")):
        raise ConfigurationError(f"Source {entry['id']} has a non-HTTP URL: {url}")

    unknown = set(entry) - {"id", "name", "url", "category", "priority"}
    if unknown:
        raise ConfigurationError(f"Source {entry['id']} has unknown keys: {', '.join(sorted(unknown))}")

    try:
        priority = Priority(str(entry.get("priority", Priority.MEDIUM.value)).lower())
    except ValueError:
        raise ConfigurationError(
            f"Source {entry['id']} has invalid priority: {entry.get('priority')!r}"
        ) from None

    return SourceDescriptor(
        id=str(entry["id"]),
        name=str(entry["name"]),
        url=url,
        category=str(entry.get("category", "general")),
        priority=priority,
    )
