"""
Batch Log Recorder
==================

Writes run outcomes to ``rss_batch_logs``: one whole-batch row per run
(``feed_id`` 0) and one row per feed attempt.

Start and completion writes raise, since a run without its log row is an
infrastructure failure. Error and per-feed writes never raise: a failed
log write must not hide the processing outcome it describes.
"""

from datetime import datetime
from typing import List, Optional

from ..database.connection import DatabaseConnection
from ..database.models import BatchLogEntry, BatchStatus, WHOLE_BATCH_FEED_ID, utc_now
from ..storage.batch_log_repository import BatchLogRepository
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import BatchError, DatabaseError, ErrorCode, plain_message

FEED_STATUSES = (BatchStatus.SUCCESS, BatchStatus.ERROR)
COMPLETION_STATUSES = (BatchStatus.COMPLETED, BatchStatus.PARTIAL_FAILURE, BatchStatus.ERROR)


class BatchLogRecorder:
    """Records batch and per-feed outcomes."""

    def __init__(self, db_connection: DatabaseConnection):
        """Initialize recorder.

        Args:
            db_connection: Database connection manager
        """
        self.repository = BatchLogRepository(db_connection)
        self.logger = get_logger_for_component("batch_log")

    def log_batch_start(self, description: str = "Scheduled RSS batch") -> int:
        """Insert the in-progress row for a run.

        Args:
            description: Human-readable run label, written to the application log

        Returns:
            Batch log ID

        Raises:
            BatchError: If the row cannot be written
        """
        self.logger.info(f"Starting batch: {description}")
        try:
            batch_log_id = self.repository.create(
                BatchLogEntry(
                    feed_id=WHOLE_BATCH_FEED_ID,
                    status=BatchStatus.IN_PROGRESS,
                    started_at=utc_now(),
                )
            )
        except DatabaseError as e:
            raise BatchError(
                f"Failed to log batch start: {e.message}",
                error_code=ErrorCode.BATCH_LOG_FAILED,
            ) from e

        self.logger.info(f"Batch log ID: {batch_log_id}", extra={"batch_log_id": batch_log_id})
        return batch_log_id

    def log_batch_complete(
        self,
        batch_log_id: int,
        status: BatchStatus,
        total_feeds: int,
        success_count: int,
        error_count: int,
    ) -> None:
        """Finalize a run.

        ``items_fetched`` records the number of feeds processed and
        ``items_created`` the number that succeeded.

        Raises:
            BatchError: If the status is not a completion status or the
                update fails
        """
        if status not in COMPLETION_STATUSES:
            raise BatchError(
                f"Invalid completion status: {status}",
                batch_log_id=batch_log_id,
                recoverable=False,
            )

        try:
            self.repository.complete(
                batch_log_id,
                status=status,
                finished_at=utc_now(),
                items_fetched=total_feeds,
                items_created=success_count,
            )
        except DatabaseError as e:
            raise BatchError(
                f"Failed to log batch complete: {e.message}",
                batch_log_id=batch_log_id,
                error_code=ErrorCode.BATCH_LOG_FAILED,
            ) from e

        self.logger.info(
            f"Batch {batch_log_id} finished: status={status.value}, "
            f"total={total_feeds}, success={success_count}, errors={error_count}",
            extra={"batch_log_id": batch_log_id},
        )

    def log_batch_error(self, error: BaseException) -> Optional[int]:
        """Insert a whole-batch error row. Never raises.

        Returns:
            New row ID, or None if the write failed
        """
        now = utc_now()
        try:
            return self.repository.create(
                BatchLogEntry(
                    feed_id=WHOLE_BATCH_FEED_ID,
                    status=BatchStatus.ERROR,
                    error_message=plain_message(error),
                    started_at=now,
                    finished_at=now,
                )
            )
        except Exception as log_error:
            self.logger.error(f"Error logging batch error: {log_error}")
            return None

    def log_feed_process(
        self,
        feed_id: int,
        status: BatchStatus,
        items_fetched: int,
        items_created: int,
        started_at: datetime,
        finished_at: datetime,
        error_message: Optional[str] = None,
    ) -> Optional[int]:
        """Insert a per-feed row with status success or error. Never raises.

        Returns:
            New row ID, or None if the write failed
        """
        try:
            if status not in FEED_STATUSES:
                raise ValueError(f"Invalid feed status: {status}")

            return self.repository.create(
                BatchLogEntry(
                    feed_id=feed_id,
                    status=status,
                    items_fetched=items_fetched,
                    items_created=items_created,
                    error_message=error_message,
                    started_at=started_at,
                    finished_at=finished_at,
                )
            )
        except Exception as log_error:
            self.logger.error(
                f"Error logging feed process: {log_error}", extra={"feed_id": feed_id}
            )
            return None

    def list_recent(self, limit: int = 10) -> List[BatchLogEntry]:
        """Newest log rows first.

        Raises:
            DatabaseError: If the query fails
        """
        return self.repository.list_recent(limit)
