"""RSS/Atom feed fetcher."""

import asyncio
import calendar
import logging
import time
from datetime import datetime, timezone
from typing import Any, Optional

import feedparser
import httpx
from bs4 import BeautifulSoup

from taxnews.core import FeedFetcher, RawItem, SourceDescriptor, SourceFetchError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "taxnews/0.1 (+https://github.com/taxnews/taxnews)"


class RSSFeedSource(FeedFetcher):
    """Fetch one feed over HTTP and parse it with feedparser."""

    def __init__(
        self,
        timeout: float = 10.0,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._transport = transport

    async def fetch(self, source: SourceDescriptor) -> list[RawItem]:
        """Fetch a feed; failures are logged and yield no items."""
        logger.info("Fetching %s...", source.name)
        try:
            return await asyncio.wait_for(self._fetch_items(source), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Error fetching %s: timed out after %.1fs", source.name, self.timeout)
        except SourceFetchError as e:
            logger.warning("Error fetching %s: %s", source.name, e)
        return []

    async def _fetch_items(self, source: SourceDescriptor) -> list[RawItem]:
        content = await self._download(source)
        fetched_at = datetime.now(timezone.utc)
        # Parsing is CPU-bound; run it off the loop so the timeout still applies.
        items = await asyncio.to_thread(self._parse_items, source, content, fetched_at)
        logger.info("  └─ %s: %d items", source.name, len(items))
        return items

    def _parse_items(
        self, source: SourceDescriptor, content: bytes, fetched_at: datetime
    ) -> list[RawItem]:
        items: list[RawItem] = []
        for entry in self._parse_feed(source, content):
            item = self._to_raw_item(entry, source, fetched_at)
            if item is None:
                logger.debug("Discarding entry without guid or link from %s", source.id)
                continue
            items.append(item)
        return items

    async def _download(self, source: SourceDescriptor) -> bytes:
        headers = {"User-Agent": self.user_agent}
        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            headers=headers,
            transport=self._transport,
        ) as client:
            try:
                response = await client.get(source.url)
            except httpx.HTTPError as e:
                raise SourceFetchError(source.id, f"request failed ({e.__class__.__name__}: {e})") from e

        if response.status_code != 200:
            raise SourceFetchError(source.id, f"HTTP {response.status_code}")
        return response.content

    def _parse_feed(self, source: SourceDescriptor, content: bytes) -> list[Any]:
        """Parse RSS/Atom bytes into feedparser entries.

        Feeds flagged as malformed are still accepted when feedparser
        recovered entries from them.
        """
        feed = feedparser.parse(content)
        entries = getattr(feed, "entries", None)
        if not isinstance(entries, list):
            raise SourceFetchError(source.id, "feed has no entries list")
        if getattr(feed, "bozo", 0) and not entries:
            exc = getattr(feed, "bozo_exception", None)
            raise SourceFetchError(source.id, f"invalid RSS/Atom feed ({exc})")
        return entries

    def _to_raw_item(
        self, entry: Any, source: SourceDescriptor, fetched_at: datetime
    ) -> Optional[RawItem]:
        guid = _clean(entry.get("id"))
        link = _clean(entry.get("link"))
        if not guid and not link:
            return None

        description = entry.get("summary") or entry.get("description") or ""
        content = ""
        content_parts = entry.get("content")
        if isinstance(content_parts, list) and content_parts:
            content = content_parts[0].get("value") or ""

        summary = strip_html(description) or strip_html(content)
        author = _clean(entry.get("author")) or source.name

        return RawItem(
            title=_clean(entry.get("title")),
            summary=summary,
            content=content or description or summary,
            link=link,
            guid=guid,
            author=author,
            fetched_at=fetched_at,
            published_at=parse_entry_date(entry),
        )


def strip_html(html: str) -> str:
    """Plain text of an HTML fragment, whitespace collapsed."""
    if not html:
        return ""
    if "<" not in html and "&" not in html:
        return " ".join(html.split())
    text = BeautifulSoup(html, "html.parser").get_text(" ", strip=True)
    return " ".join(text.split())


def parse_entry_date(entry: Any) -> Optional[datetime]:
    """Timezone-aware UTC publish date, or None when the feed omits one.

    feedparser normalizes *_parsed fields to UTC struct_time.
    """
    for key in ("published_parsed", "updated_parsed", "created_parsed"):
        value = entry.get(key)
        if isinstance(value, time.struct_time):
            try:
                return datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc)
            except (OverflowError, ValueError, OSError):
                continue
    return None


def _clean(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""
