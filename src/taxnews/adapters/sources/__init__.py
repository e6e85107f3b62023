"""Source adapters for fetching feeds."""

from taxnews.adapters.sources.rss_feed_source import RSSFeedSource

__all__ = ["RSSFeedSource"]
