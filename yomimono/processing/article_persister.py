"""
Article Persister
=================

Stores new articles for one feed. Each article becomes an unread bookmark
plus a feed history row, written together in one transaction.
"""

from datetime import datetime
from typing import List, Optional

from ..database.connection import DatabaseConnection
from ..database.models import Article, Bookmark, FeedHistoryItem, utc_now
from ..storage.bookmark_repository import BookmarkRepository
from ..storage.feed_item_repository import FeedItemRepository
from ..storage.feed_repository import FeedRepository
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import YomimonoError


class ArticlePersister:
    """Writes articles and advances the feed's fetch time."""

    def __init__(self, db_connection: DatabaseConnection, feed_id: int):
        """Initialize persister for one feed.

        Args:
            db_connection: Database connection manager
            feed_id: Feed the articles belong to
        """
        self.db = db_connection
        self.feed_id = feed_id
        self.bookmarks = BookmarkRepository(db_connection)
        self.feed_items = FeedItemRepository(db_connection)
        self.feeds = FeedRepository(db_connection)
        self.logger = get_logger_for_component("persister", feed_id=feed_id)

    def save_articles(self, articles: List[Article]) -> int:
        """Persist articles one at a time.

        A failing article is logged and skipped; the rest are still saved.

        Args:
            articles: New articles, typically from ``ArticleFilter``

        Returns:
            Number of articles whose bookmark and history row were committed
        """
        if not articles:
            return 0

        created = 0
        for article in articles:
            try:
                self._save_one(article)
                created += 1
            except Exception as e:
                self.logger.error(
                    f"Failed to save article {article.url}: {e}",
                    extra={"article_url": article.url},
                )

        self.logger.info(f"Saved {created}/{len(articles)} articles")
        return created

    def _save_one(self, article: Article) -> None:
        now = utc_now()
        with self.db.transaction() as conn:
            self.bookmarks.add(Bookmark.from_article(article, now=now), conn=conn)
            self.feed_items.add(FeedHistoryItem.from_article(self.feed_id, article, now=now), conn=conn)

    def mark_fetched(self, fetched_at: Optional[datetime] = None) -> bool:
        """Advance the feed's last_fetched_at.

        Failures are logged and reported as False so a successful ingest is
        not turned into a feed error.
        """
        try:
            updated = self.feeds.update_last_fetched_at(self.feed_id, fetched_at or utc_now())
        except YomimonoError as e:
            self.logger.error(f"Failed to update last_fetched_at: {e}")
            return False

        if not updated:
            self.logger.warning("Feed row missing while updating last_fetched_at")
        return updated
