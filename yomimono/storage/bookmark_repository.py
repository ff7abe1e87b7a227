"""
Bookmark Repository
===================

Data access for the ``bookmarks`` reading list. The ingestion pipeline only
inserts unread bookmarks and checks which URLs are already bookmarked.
"""

import sqlite3
from typing import Iterable, List, Optional, Set

from ..database.connection import DatabaseConnection
from ..database.models import Bookmark, to_db_timestamp
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, ErrorCode

# Stays under SQLite's bound-parameter limit
URL_LOOKUP_CHUNK = 500


def find_existing_urls(db: DatabaseConnection, table: str, urls: Iterable[str]) -> Set[str]:
    """Return the subset of ``urls`` present in ``table.url``."""
    candidates = list(dict.fromkeys(urls))
    found: Set[str] = set()

    for start in range(0, len(candidates), URL_LOOKUP_CHUNK):
        chunk = candidates[start:start + URL_LOOKUP_CHUNK]
        placeholders = ",".join("?" for _ in chunk)
        rows = db.execute_query(
            f"SELECT url FROM {table} WHERE url IN ({placeholders})", tuple(chunk)
        )
        found.update(row["url"] for row in rows)

    return found


class BookmarkRepository:
    """Repository for bookmark rows."""

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection
        self.logger = get_logger_for_component("bookmark_repository")

    def find_existing_urls(self, urls: Iterable[str]) -> Set[str]:
        """Get the URLs from ``urls`` that are already bookmarked.

        Raises:
            DatabaseError: If the lookup fails
        """
        try:
            return find_existing_urls(self.db, "bookmarks", urls)
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to look up bookmarked URLs: {e}",
                error_code=ErrorCode.DATABASE_ERROR,
            ) from e

    def add(self, bookmark: Bookmark, conn: Optional[sqlite3.Connection] = None) -> int:
        """Insert a bookmark.

        Args:
            bookmark: Bookmark to insert
            conn: Connection of an open transaction. Without it the insert
                runs and commits on its own pooled connection.

        Returns:
            New bookmark ID

        Raises:
            DatabaseError: If the insert fails
        """
        params = (
            bookmark.url,
            bookmark.title,
            bookmark.is_read,
            to_db_timestamp(bookmark.created_at),
            to_db_timestamp(bookmark.updated_at),
        )
        query = """
            INSERT INTO bookmarks (url, title, is_read, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
        """

        try:
            if conn is not None:
                return conn.execute(query, params).lastrowid
            return self.db.execute_insert(query, params)

        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to create bookmark for {bookmark.url}: {e}",
                error_code=ErrorCode.DATABASE_ERROR,
            ) from e

    def get_recent(self, limit: int = 10) -> List[Bookmark]:
        """Get the most recently created bookmarks."""
        try:
            rows = self.db.execute_query(
                "SELECT * FROM bookmarks ORDER BY created_at DESC, id DESC LIMIT ?",
                (limit,),
            )
            return [
                Bookmark(
                    id=row["id"],
                    url=row["url"],
                    title=row["title"],
                    is_read=bool(row["is_read"]),
                    created_at=row["created_at"],
                    updated_at=row["updated_at"],
                )
                for row in rows
            ]

        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to list bookmarks: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e
