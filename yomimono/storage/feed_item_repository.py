"""
Feed Item Repository
====================

Data access for ``rss_feed_items``, the per-feed history of ingested
articles. Rows outlive bookmark deletion, so this table is what keeps a
deleted bookmark from being re-created on the next batch.
"""

import sqlite3
from typing import Iterable, List, Optional, Set

from ..database.connection import DatabaseConnection
from ..database.models import FeedHistoryItem, to_db_timestamp
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, ErrorCode
from .bookmark_repository import find_existing_urls


class FeedItemRepository:
    """Repository for feed history rows."""

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection
        self.logger = get_logger_for_component("feed_item_repository")

    def find_existing_urls(self, urls: Iterable[str]) -> Set[str]:
        """Get the URLs from ``urls`` already recorded for any feed.

        Raises:
            DatabaseError: If the lookup fails
        """
        try:
            return find_existing_urls(self.db, "rss_feed_items", urls)
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to look up feed item URLs: {e}",
                error_code=ErrorCode.DATABASE_ERROR,
            ) from e

    def add(self, item: FeedHistoryItem, conn: Optional[sqlite3.Connection] = None) -> int:
        """Insert a history row, inside ``conn``'s transaction when given.

        Raises:
            DatabaseError: If the insert fails
        """
        query = """
            INSERT INTO rss_feed_items (
                feed_id, guid, url, title, description, published_at, fetched_at, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """
        params = (
            item.feed_id,
            item.guid,
            item.url,
            item.title,
            item.description,
            to_db_timestamp(item.published_at),
            to_db_timestamp(item.fetched_at),
            to_db_timestamp(item.created_at),
        )

        try:
            if conn is not None:
                return conn.execute(query, params).lastrowid
            return self.db.execute_insert(query, params)

        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to record feed item {item.url} for feed {item.feed_id}: {e}",
                error_code=ErrorCode.DATABASE_ERROR,
            ) from e

    def get_items_for_feed(self, feed_id: int, limit: int = 100) -> List[FeedHistoryItem]:
        try:
            rows = self.db.execute_query(
                "SELECT * FROM rss_feed_items WHERE feed_id = ? ORDER BY id DESC LIMIT ?",
                (feed_id, limit),
            )
            return [FeedHistoryItem(**dict(row)) for row in rows]

        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to list items for feed {feed_id}: {e}",
                error_code=ErrorCode.DATABASE_ERROR,
            ) from e
