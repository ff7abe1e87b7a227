"""
Yomimono Database Connection Management
=======================================

Small pool of SQLite connections shared by the repositories. Batch feeds
run as coroutines on one event loop, so the pool mostly bounds how many
handles stay open between runs.
"""

import sqlite3
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Iterator, Any, List, Dict
from queue import Queue, Empty, Full

logger = logging.getLogger(__name__)

TABLES = ("rss_feeds", "rss_feed_items", "rss_batch_logs", "bookmarks")


class DatabaseConnection:
    """Pooled SQLite access with per-call commits and explicit transactions."""

    def __init__(self, db_path: str = "data/yomimono.db", pool_size: int = 5):
        """Initialize database connection manager.

        Args:
            db_path: Path to SQLite database file
            pool_size: Number of idle connections kept open
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.pool: Queue = Queue(maxsize=pool_size)

        for _ in range(pool_size):
            self.pool.put(self._connect())

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, check_same_thread=False, timeout=30.0)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("PRAGMA journal_mode = WAL")
        return conn

    @contextmanager
    def get_connection(self) -> Iterator[sqlite3.Connection]:
        """Borrow a connection; an open transaction is rolled back on return."""
        try:
            conn = self.pool.get_nowait()
        except Empty:
            logger.debug("Connection pool empty, opening an extra connection")
            conn = self._connect()

        try:
            yield conn
        finally:
            if conn.in_transaction:
                conn.rollback()
            try:
                self.pool.put_nowait(conn)
            except Full:
                conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run statements atomically: commit on success, roll back on error."""
        with self.get_connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except Exception as e:
                conn.rollback()
                logger.debug(f"Transaction rolled back: {e}")
                raise
            conn.commit()

    def execute_query(self, query: str, params: tuple = ()) -> List[sqlite3.Row]:
        with self.get_connection() as conn:
            return conn.execute(query, params).fetchall()

    def execute_one(self, query: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        with self.get_connection() as conn:
            return conn.execute(query, params).fetchone()

    def execute_update(self, query: str, params: tuple = ()) -> int:
        """Run an UPDATE or DELETE and commit. Returns the affected row count."""
        with self.get_connection() as conn:
            cursor = conn.execute(query, params)
            conn.commit()
            return cursor.rowcount

    def execute_insert(self, query: str, params: tuple = ()) -> int:
        """Run an INSERT and commit. Returns the new row id."""
        with self.get_connection() as conn:
            cursor = conn.execute(query, params)
            conn.commit()
            return cursor.lastrowid

    def get_database_info(self) -> Dict[str, Any]:
        """Database file size and row count per table."""
        with self.get_connection() as conn:
            page_count = conn.execute("PRAGMA page_count").fetchone()[0]
            page_size = conn.execute("PRAGMA page_size").fetchone()[0]
            table_counts = {
                table: conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
                for table in TABLES
            }

        return {
            "database_size_mb": page_count * page_size / (1024 * 1024),
            "table_counts": table_counts,
        }

    def close_all_connections(self) -> None:
        """Close every idle connection in the pool."""
        while True:
            try:
                self.pool.get_nowait().close()
            except Empty:
                break


_db_manager: Optional[DatabaseConnection] = None


def get_db_manager(db_path: Optional[str] = None, pool_size: Optional[int] = None) -> DatabaseConnection:
    """Process-wide connection manager, opened on the configured database by default."""
    global _db_manager

    if _db_manager is None:
        if db_path is None or pool_size is None:
            from ..config.settings import get_settings
            settings = get_settings()
            db_path = db_path or settings.database.path
            pool_size = pool_size or settings.database.pool_size
        _db_manager = DatabaseConnection(db_path, pool_size=pool_size)

    return _db_manager


def reset_db_manager() -> None:
    """Close and forget the process-wide manager."""
    global _db_manager

    if _db_manager is not None:
        _db_manager.close_all_connections()
        _db_manager = None
