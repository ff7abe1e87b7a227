"""
Tests for BatchLogRecorder.
"""

from unittest.mock import patch

import pytest

from yomimono.batch.log_recorder import BatchLogRecorder
from yomimono.database.models import BatchStatus, utc_now
from yomimono.storage.batch_log_repository import BatchLogRepository
from yomimono.utils.exceptions import BatchError, DatabaseError, ErrorCode, FeedFetchError


class TestBatchRows:
    """Whole-batch start, completion and error rows."""

    def test_start_inserts_in_progress_row(self, db_connection):
        recorder = BatchLogRecorder(db_connection)

        batch_log_id = recorder.log_batch_start("Manual batch (all feeds)")

        entry = BatchLogRepository(db_connection).get_by_id(batch_log_id)
        assert entry.status == BatchStatus.IN_PROGRESS
        assert entry.is_whole_batch
        assert entry.finished_at is None

    def test_complete_records_feed_counts(self, db_connection):
        recorder = BatchLogRecorder(db_connection)
        batch_log_id = recorder.log_batch_start()

        recorder.log_batch_complete(batch_log_id, BatchStatus.PARTIAL_FAILURE, 5, 3, 2)

        entry = BatchLogRepository(db_connection).get_by_id(batch_log_id)
        assert entry.status == BatchStatus.PARTIAL_FAILURE
        assert entry.items_fetched == 5
        assert entry.items_created == 3
        assert entry.finished_at is not None

    def test_complete_accepts_error_when_every_feed_failed(self, db_connection):
        recorder = BatchLogRecorder(db_connection)
        batch_log_id = recorder.log_batch_start()

        recorder.log_batch_complete(batch_log_id, BatchStatus.ERROR, 2, 0, 2)

        entry = BatchLogRepository(db_connection).get_by_id(batch_log_id)
        assert entry.status == BatchStatus.ERROR
        assert (entry.items_fetched, entry.items_created) == (2, 0)

    @pytest.mark.parametrize("status", [BatchStatus.SUCCESS, BatchStatus.IN_PROGRESS])
    def test_complete_rejects_non_completion_status(self, db_connection, status):
        recorder = BatchLogRecorder(db_connection)
        batch_log_id = recorder.log_batch_start()

        with pytest.raises(BatchError):
            recorder.log_batch_complete(batch_log_id, status, 1, 1, 0)

    def test_start_failure_raises_batch_error(self, db_connection):
        recorder = BatchLogRecorder(db_connection)

        with patch.object(BatchLogRepository, "create", side_effect=DatabaseError("locked")):
            with pytest.raises(BatchError) as exc_info:
                recorder.log_batch_start()

        assert exc_info.value.error_code == ErrorCode.BATCH_LOG_FAILED

    def test_complete_failure_raises_batch_error(self, db_connection):
        recorder = BatchLogRecorder(db_connection)
        batch_log_id = recorder.log_batch_start()

        with patch.object(BatchLogRepository, "complete", side_effect=DatabaseError("locked")):
            with pytest.raises(BatchError):
                recorder.log_batch_complete(batch_log_id, BatchStatus.COMPLETED, 0, 0, 0)

    def test_error_row_stores_plain_message(self, db_connection):
        recorder = BatchLogRecorder(db_connection)

        row_id = recorder.log_batch_error(BatchError("Failed to fetch active feeds"))

        entry = BatchLogRepository(db_connection).get_by_id(row_id)
        assert entry.status == BatchStatus.ERROR
        assert entry.feed_id == 0
        assert entry.error_message == "Failed to fetch active feeds"
        assert entry.finished_at is not None

    def test_error_row_write_failure_is_swallowed(self, db_connection):
        recorder = BatchLogRecorder(db_connection)

        with patch.object(BatchLogRepository, "create", side_effect=DatabaseError("locked")):
            assert recorder.log_batch_error(RuntimeError("boom")) is None


class TestFeedRows:
    """Per-feed rows."""

    def test_success_row(self, db_connection, feed_factory):
        feed = feed_factory()
        started = utc_now()

        row_id = BatchLogRecorder(db_connection).log_feed_process(
            feed.id, BatchStatus.SUCCESS, 4, 2, started_at=started, finished_at=utc_now()
        )

        entry = BatchLogRepository(db_connection).get_by_id(row_id)
        assert entry.feed_id == feed.id
        assert entry.status == BatchStatus.SUCCESS
        assert (entry.items_fetched, entry.items_created) == (4, 2)
        assert entry.error_message is None

    def test_error_row_keeps_message(self, db_connection, feed_factory):
        feed = feed_factory()
        error = FeedFetchError("Failed to fetch RSS: 503 Service Unavailable", status=503)

        row_id = BatchLogRecorder(db_connection).log_feed_process(
            feed.id, BatchStatus.ERROR, 0, 0, utc_now(), utc_now(), error_message=error.message
        )

        entry = BatchLogRepository(db_connection).get_by_id(row_id)
        assert entry.error_message == "Failed to fetch RSS: 503 Service Unavailable"

    def test_invalid_status_is_not_written(self, db_connection, feed_factory):
        feed = feed_factory()
        recorder = BatchLogRecorder(db_connection)

        assert recorder.log_feed_process(
            feed.id, BatchStatus.COMPLETED, 0, 0, utc_now(), utc_now()
        ) is None
        assert recorder.list_recent() == []

    def test_write_failure_is_swallowed(self, db_connection):
        recorder = BatchLogRecorder(db_connection)

        with patch.object(BatchLogRepository, "create", side_effect=DatabaseError("locked")):
            assert recorder.log_feed_process(
                1, BatchStatus.SUCCESS, 0, 0, utc_now(), utc_now()
            ) is None


class TestListRecent:
    def test_newest_first_and_limited(self, db_connection):
        recorder = BatchLogRecorder(db_connection)
        ids = [recorder.log_batch_start() for _ in range(3)]

        entries = recorder.list_recent(limit=2)

        assert [e.id for e in entries] == [ids[2], ids[1]]
