"""
Article Deduplication Filter
============================

Keeps only articles that have not been seen before. An article is seen
when its URL is already bookmarked or already in the feed history, or
when it was published no later than the feed's last successful fetch.
"""

from typing import List

from ..database.connection import DatabaseConnection
from ..database.models import Article, Feed, ensure_utc
from ..storage.bookmark_repository import BookmarkRepository
from ..storage.feed_item_repository import FeedItemRepository
from ..utils.logging import get_logger_for_component


class ArticleFilter:
    """Drops already-ingested articles for a feed."""

    def __init__(self, db_connection: DatabaseConnection):
        """Initialize filter.

        Args:
            db_connection: Database connection manager
        """
        self.bookmarks = BookmarkRepository(db_connection)
        self.feed_items = FeedItemRepository(db_connection)
        self.logger = get_logger_for_component("filter")

    def filter_new_articles(self, articles: List[Article], feed: Feed) -> List[Article]:
        """Return the articles from ``articles`` that are new for ``feed``.

        URL matching is exact. Articles without a publish date pass the
        timestamp check. Input order is preserved.

        Args:
            articles: Parsed articles
            feed: Source feed

        Returns:
            New articles

        Raises:
            DatabaseError: If the URL lookup fails
        """
        if not articles:
            return []

        urls = [article.url for article in articles]
        seen = self.bookmarks.find_existing_urls(urls) | self.feed_items.find_existing_urls(urls)

        fresh = [article for article in articles if article.url not in seen]

        last_fetched_at = ensure_utc(feed.last_fetched_at)
        if last_fetched_at is not None:
            fresh = [
                article for article in fresh
                if article.published_at is None or article.published_at > last_fetched_at
            ]

        self.logger.debug(
            f"Deduplication for feed {feed.id}: {len(articles)} -> {len(fresh)}",
            extra={"feed_id": feed.id, "known_urls": len(seen)},
        )
        return fresh
