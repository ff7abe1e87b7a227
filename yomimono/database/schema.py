"""
Yomimono Database Schema
========================

SQLite schema for RSS ingestion:
- rss_feeds: feed sources and their last fetch time
- rss_feed_items: per-feed history of ingested articles (dedup ledger)
- rss_batch_logs: whole-batch (feed_id = 0) and per-feed run records
- bookmarks: reading list entries created from new articles
"""

import sqlite3
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

EXPECTED_TABLES = {"bookmarks", "rss_batch_logs", "rss_feed_items", "rss_feeds"}


class DatabaseSchema:
    """Database schema manager for the Yomimono SQLite database."""

    def __init__(self, db_path: str = "data/yomimono.db"):
        """Initialize database schema manager.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all tables and indexes if they do not exist."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("PRAGMA foreign_keys = ON")

            self._create_bookmarks_table(conn)
            self._create_feeds_table(conn)
            self._create_feed_items_table(conn)
            self._create_batch_logs_table(conn)

            self._create_indexes(conn)

            conn.commit()
            logger.info("Database schema created successfully")

    def _create_bookmarks_table(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS bookmarks (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                url TEXT NOT NULL,
                title TEXT,
                is_read BOOLEAN NOT NULL DEFAULT FALSE,
                created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

    def _create_feeds_table(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS rss_feeds (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                url TEXT NOT NULL UNIQUE,
                is_active BOOLEAN NOT NULL DEFAULT TRUE,
                last_fetched_at TIMESTAMP,
                created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

    def _create_feed_items_table(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS rss_feed_items (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                feed_id INTEGER NOT NULL,
                guid TEXT NOT NULL,
                url TEXT NOT NULL,
                title TEXT NOT NULL,
                description TEXT,
                published_at TIMESTAMP,
                fetched_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (feed_id) REFERENCES rss_feeds(id) ON DELETE CASCADE
            )
        """
        )

    def _create_batch_logs_table(self, conn: sqlite3.Connection) -> None:
        """Create batch log table.

        feed_id 0 marks a whole-batch row, so it carries no foreign key.
        """
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS rss_batch_logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                feed_id INTEGER NOT NULL,
                status TEXT NOT NULL CHECK (status IN ('in_progress', 'success', 'error', 'partial_failure', 'completed')),
                items_fetched INTEGER NOT NULL DEFAULT 0,
                items_created INTEGER NOT NULL DEFAULT 0,
                error_message TEXT,
                started_at TIMESTAMP NOT NULL,
                finished_at TIMESTAMP,
                created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

    def _create_indexes(self, conn: sqlite3.Connection) -> None:
        indexes = [
            "CREATE INDEX IF NOT EXISTS idx_bookmarks_url ON bookmarks(url)",
            "CREATE INDEX IF NOT EXISTS idx_bookmarks_created ON bookmarks(created_at)",
            "CREATE INDEX IF NOT EXISTS idx_rss_feeds_active ON rss_feeds(is_active)",
            "CREATE INDEX IF NOT EXISTS idx_rss_feed_items_feed ON rss_feed_items(feed_id)",
            "CREATE INDEX IF NOT EXISTS idx_rss_feed_items_url ON rss_feed_items(url)",
            "CREATE INDEX IF NOT EXISTS idx_rss_batch_logs_started ON rss_batch_logs(started_at)",
            "CREATE INDEX IF NOT EXISTS idx_rss_batch_logs_feed ON rss_batch_logs(feed_id)",
        ]

        for index_sql in indexes:
            conn.execute(index_sql)

    def drop_tables(self) -> None:
        """Drop all tables (for testing/reset purposes)."""
        with sqlite3.connect(self.db_path) as conn:
            for table in ("rss_batch_logs", "rss_feed_items", "rss_feeds", "bookmarks"):
                conn.execute(f"DROP TABLE IF EXISTS {table}")

            conn.commit()
            logger.info("All database tables dropped")

    def verify_schema(self) -> bool:
        """Verify all expected tables exist."""
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.execute(
                    """
                    SELECT name FROM sqlite_master
                    WHERE type='table' AND name NOT LIKE 'sqlite_%'
                """
                )
                tables = {row[0] for row in cursor.fetchall()}

                missing = EXPECTED_TABLES - tables
                if missing:
                    logger.error(f"Missing tables: {sorted(missing)}")
                    return False

                conn.execute("PRAGMA foreign_key_check")

                logger.info("Database schema verification passed")
                return True

        except sqlite3.Error as e:
            logger.error(f"Schema verification failed: {e}")
            return False
