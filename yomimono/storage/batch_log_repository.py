"""
Batch Log Repository
====================

Data access for ``rss_batch_logs``.
"""

import sqlite3
from datetime import datetime
from typing import List

from ..database.connection import DatabaseConnection
from ..database.models import BatchLogEntry, BatchStatus, to_db_timestamp
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, ErrorCode


class BatchLogRepository:
    """Repository for batch log rows."""

    def __init__(self, db_connection: DatabaseConnection):
        """Initialize batch log repository.

        Args:
            db_connection: Database connection manager
        """
        self.db = db_connection
        self.logger = get_logger_for_component("batch_log_repository")

    def create(self, entry: BatchLogEntry) -> int:
        """Insert a log row.

        Args:
            entry: Row to insert

        Returns:
            New row ID

        Raises:
            DatabaseError: If the insert fails
        """
        try:
            return self.db.execute_insert(
                """
                INSERT INTO rss_batch_logs (
                    feed_id, status, items_fetched, items_created,
                    error_message, started_at, finished_at, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    entry.feed_id,
                    entry.status.value,
                    entry.items_fetched,
                    entry.items_created,
                    entry.error_message,
                    to_db_timestamp(entry.started_at),
                    to_db_timestamp(entry.finished_at),
                    to_db_timestamp(entry.created_at),
                ),
            )

        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to write batch log: {e}",
                error_code=ErrorCode.DATABASE_ERROR,
            ) from e

    def complete(
        self,
        batch_log_id: int,
        status: BatchStatus,
        finished_at: datetime,
        items_fetched: int,
        items_created: int,
    ) -> bool:
        """Finalize a batch row with its outcome and counts.

        Returns:
            True if the row existed and was updated

        Raises:
            DatabaseError: If the update fails
        """
        try:
            affected = self.db.execute_update(
                """
                UPDATE rss_batch_logs
                SET status = ?, finished_at = ?, items_fetched = ?, items_created = ?
                WHERE id = ?
            """,
                (
                    status.value,
                    to_db_timestamp(finished_at),
                    items_fetched,
                    items_created,
                    batch_log_id,
                ),
            )
            return affected > 0

        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to complete batch log {batch_log_id}: {e}",
                error_code=ErrorCode.DATABASE_ERROR,
            ) from e

    def get_by_id(self, batch_log_id: int):
        try:
            row = self.db.execute_one("SELECT * FROM rss_batch_logs WHERE id = ?", (batch_log_id,))
            return self._row_to_entry(row) if row else None

        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to get batch log {batch_log_id}: {e}",
                error_code=ErrorCode.DATABASE_ERROR,
            ) from e

    def list_recent(self, limit: int = 10) -> List[BatchLogEntry]:
        """Newest rows first by start time."""
        try:
            rows = self.db.execute_query(
                "SELECT * FROM rss_batch_logs ORDER BY started_at DESC, id DESC LIMIT ?",
                (limit,),
            )
            return [self._row_to_entry(row) for row in rows]

        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to list batch logs: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def _row_to_entry(self, row: sqlite3.Row) -> BatchLogEntry:
        return BatchLogEntry(
            id=row["id"],
            feed_id=row["feed_id"],
            status=BatchStatus(row["status"]),
            items_fetched=row["items_fetched"],
            items_created=row["items_created"],
            error_message=row["error_message"],
            started_at=row["started_at"],
            finished_at=row["finished_at"],
            created_at=row["created_at"],
        )
