"""
Feed Repository
===============

Repository for RSS feed sources stored in ``rss_feeds``.
"""

import sqlite3
from datetime import datetime
from typing import List, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.models import Feed, utc_now, to_db_timestamp
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, ErrorCode


class FeedRepository:
    """Repository for managing RSS feed data in the database."""

    def __init__(self, db_connection: DatabaseConnection):
        """Initialize feed repository.

        Args:
            db_connection: Database connection manager
        """
        self.db = db_connection
        self.logger = get_logger_for_component("feed_repository")

    def create_feed(self, feed: Feed) -> int:
        """Create a new feed in the database.

        Args:
            feed: Feed object to create

        Returns:
            Feed ID

        Raises:
            DatabaseError: If the URL already exists or the insert fails
        """
        now = utc_now()
        try:
            with self.db.get_connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO rss_feeds (
                        name, url, is_active, last_fetched_at, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                    (
                        feed.name,
                        feed.url,
                        feed.is_active,
                        to_db_timestamp(feed.last_fetched_at),
                        to_db_timestamp(feed.created_at or now),
                        to_db_timestamp(feed.updated_at or now),
                    ),
                )
                feed_id = cursor.lastrowid
                conn.commit()

                self.logger.info(f"Created feed {feed_id}: {feed.url}")
                return feed_id

        except sqlite3.IntegrityError as e:
            raise DatabaseError(
                f"Feed already exists: {feed.url}",
                error_code=ErrorCode.DATABASE_CONSTRAINT,
                user_message="A feed with this URL is already registered",
                recoverable=False,
            ) from e
        except sqlite3.Error as e:
            self.logger.error(f"Failed to create feed: {e}")
            raise DatabaseError(
                f"Failed to create feed: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def get_feed_by_id(self, feed_id: int) -> Optional[Feed]:
        """Get feed by ID, or None if it does not exist."""
        try:
            row = self.db.execute_one("SELECT * FROM rss_feeds WHERE id = ?", (feed_id,))
            return self._row_to_feed(row) if row else None

        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to get feed {feed_id}: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def get_feed_by_url(self, url: str) -> Optional[Feed]:
        """Get feed by URL, or None if it does not exist."""
        try:
            row = self.db.execute_one("SELECT * FROM rss_feeds WHERE url = ?", (url,))
            return self._row_to_feed(row) if row else None

        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to get feed by URL {url}: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def get_all_active_feeds(self, feed_ids: Optional[Sequence[int]] = None) -> List[Feed]:
        """Get active feeds, optionally restricted to the given IDs.

        Args:
            feed_ids: Only return active feeds with these IDs. An empty or
                missing list means every active feed.

        Returns:
            List of active Feed objects ordered by ID

        Raises:
            DatabaseError: If the query fails
        """
        query = "SELECT * FROM rss_feeds WHERE is_active = 1"
        params: tuple = ()
        if feed_ids:
            placeholders = ",".join("?" for _ in feed_ids)
            query += f" AND id IN ({placeholders})"
            params = tuple(feed_ids)
        query += " ORDER BY id"

        try:
            rows = self.db.execute_query(query, params)
            return [self._row_to_feed(row) for row in rows]

        except sqlite3.Error as e:
            self.logger.error(f"Failed to get active feeds: {e}")
            raise DatabaseError(
                f"Failed to get active feeds: {e}",
                query=query,
                error_code=ErrorCode.DATABASE_ERROR,
            ) from e

    def get_all_feeds(self) -> List[Feed]:
        """Get every feed, active or not."""
        try:
            rows = self.db.execute_query("SELECT * FROM rss_feeds ORDER BY id")
            return [self._row_to_feed(row) for row in rows]

        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to list feeds: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def count_active_feeds(self) -> int:
        try:
            row = self.db.execute_one("SELECT COUNT(*) FROM rss_feeds WHERE is_active = 1")
            return row[0] if row else 0

        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to count feeds: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def update_last_fetched_at(self, feed_id: int, fetched_at: Optional[datetime] = None) -> bool:
        """Set last_fetched_at and updated_at for a feed.

        Args:
            feed_id: Feed ID
            fetched_at: Fetch time, defaults to now

        Returns:
            True if a row was updated

        Raises:
            DatabaseError: If the update fails
        """
        fetched_at = fetched_at or utc_now()
        try:
            affected = self.db.execute_update(
                "UPDATE rss_feeds SET last_fetched_at = ?, updated_at = ? WHERE id = ?",
                (to_db_timestamp(fetched_at), to_db_timestamp(fetched_at), feed_id),
            )
            return affected > 0

        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to update last_fetched_at for feed {feed_id}: {e}",
                error_code=ErrorCode.DATABASE_ERROR,
            ) from e

    def set_active(self, feed_id: int, is_active: bool) -> bool:
        try:
            affected = self.db.execute_update(
                "UPDATE rss_feeds SET is_active = ?, updated_at = ? WHERE id = ?",
                (is_active, to_db_timestamp(utc_now()), feed_id),
            )
            return affected > 0

        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to update feed {feed_id}: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def _row_to_feed(self, row: sqlite3.Row) -> Feed:
        """Convert database row to Feed object."""
        return Feed(
            id=row["id"],
            name=row["name"],
            url=row["url"],
            is_active=bool(row["is_active"]),
            last_fetched_at=row["last_fetched_at"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
