"""
Foundation Tests for Yomimono
=============================

Test suite for core foundation components including database schema,
connection pooling, configuration, logging and exceptions.
"""

import json
import logging
import sqlite3

import pytest

from yomimono.config.settings import BatchSettings, YomimonoSettings, load_settings
from yomimono.database.connection import DatabaseConnection, get_db_manager, reset_db_manager
from yomimono.database.models import BatchLogEntry, BatchStatus, utc_now
from yomimono.database.schema import EXPECTED_TABLES, DatabaseSchema
from yomimono.utils.exceptions import (
    BatchError,
    ConfigurationError,
    DatabaseError,
    ErrorCode,
    FeedFetchError,
    YomimonoError,
    handle_exception,
    plain_message,
)
from yomimono.utils.logging import (
    PerformanceLogger,
    StructuredFormatter,
    get_logger_for_component,
)


class TestDatabaseSchema:
    """Test database schema creation and validation."""

    def test_create_tables(self, tmp_path):
        db_path = tmp_path / "test.db"
        DatabaseSchema(str(db_path)).create_tables()

        with sqlite3.connect(db_path) as conn:
            cursor = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
            tables = {row[0] for row in cursor.fetchall()}

        assert tables == EXPECTED_TABLES

    def test_verify_schema(self, tmp_path):
        schema = DatabaseSchema(str(tmp_path / "test.db"))

        assert not schema.verify_schema()

        schema.create_tables()
        assert schema.verify_schema()

    def test_create_tables_is_idempotent(self, tmp_path):
        schema = DatabaseSchema(str(tmp_path / "test.db"))
        schema.create_tables()
        schema.create_tables()

        assert schema.verify_schema()

    def test_batch_log_status_is_constrained(self, temp_db):
        with sqlite3.connect(temp_db) as conn:
            with pytest.raises(sqlite3.IntegrityError):
                conn.execute(
                    "INSERT INTO rss_batch_logs (feed_id, status, started_at) VALUES (0, 'bogus', ?)",
                    (utc_now().isoformat(),),
                )


class TestDatabaseConnection:
    """Test pooled connection manager."""

    def test_transaction_rolls_back(self, db_connection):
        with pytest.raises(RuntimeError):
            with db_connection.transaction() as conn:
                conn.execute("INSERT INTO bookmarks (url, title) VALUES ('https://example.com/r', 'r')")
                raise RuntimeError("abort")

        assert db_connection.execute_query("SELECT * FROM bookmarks") == []

    def test_execute_insert_returns_row_id(self, db_connection):
        first = db_connection.execute_insert(
            "INSERT INTO bookmarks (url, title) VALUES (?, ?)", ("https://example.com/1", "1")
        )
        second = db_connection.execute_insert(
            "INSERT INTO bookmarks (url, title) VALUES (?, ?)", ("https://example.com/2", "2")
        )

        assert second == first + 1

    def test_uncommitted_work_is_discarded_on_return(self, db_connection):
        with db_connection.get_connection() as conn:
            conn.execute("INSERT INTO bookmarks (url, title) VALUES ('https://example.com/u', 'u')")
            assert conn.in_transaction

        assert db_connection.execute_query("SELECT * FROM bookmarks") == []

    def test_extra_connection_when_pool_is_empty(self, temp_db):
        connection = DatabaseConnection(temp_db, pool_size=1)
        with connection.get_connection() as first:
            with connection.get_connection() as second:
                assert second is not first
        assert connection.pool.qsize() == 1
        connection.close_all_connections()
        assert connection.pool.qsize() == 0

    def test_database_info(self, db_connection):
        info = db_connection.get_database_info()

        assert set(info["table_counts"]) == EXPECTED_TABLES
        assert info["database_size_mb"] > 0

    def test_global_manager_is_shared_until_reset(self, temp_db):
        first = get_db_manager(temp_db, pool_size=1)
        try:
            assert get_db_manager() is first
        finally:
            reset_db_manager()

        second = get_db_manager(temp_db, pool_size=1)
        assert second is not first
        reset_db_manager()

    def test_drop_tables(self, temp_db):
        schema = DatabaseSchema(temp_db)
        schema.drop_tables()

        assert not schema.verify_schema()


class TestSettings:
    """Test configuration loading."""

    def test_defaults(self):
        batch = BatchSettings()

        assert batch.chunk_size == 10
        assert batch.user_agent == "Yomimono RSS Reader 1.0"
        assert batch.cache_ttl_seconds == 300
        assert batch.request_timeout == 30

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("YOMIMONO_BATCH__CHUNK_SIZE", "5")
        monkeypatch.setenv("YOMIMONO_DATABASE__PATH", str(tmp_path / "env.db"))

        settings = YomimonoSettings()

        assert settings.batch.chunk_size == 5
        assert settings.database.path == str(tmp_path / "env.db")

    def test_blank_user_agent_rejected(self):
        with pytest.raises(ValueError):
            BatchSettings(user_agent="   ")

    def test_invalid_environment_raises_configuration_error(self, monkeypatch):
        monkeypatch.setenv("YOMIMONO_BATCH__CHUNK_SIZE", "0")

        with pytest.raises(ConfigurationError):
            load_settings()

    def test_debug_forces_debug_level(self):
        assert YomimonoSettings(debug=True).get_effective_log_level() == "DEBUG"


class TestExceptions:
    """Test exception hierarchy and helpers."""

    def test_str_carries_code_but_plain_message_does_not(self):
        error = BatchError("Failed to fetch active feeds", error_code=ErrorCode.BATCH_FEEDS_UNAVAILABLE)

        assert str(error) == "[B001] Failed to fetch active feeds"
        assert plain_message(error) == "Failed to fetch active feeds"
        assert plain_message(ValueError("bad")) == "bad"

    def test_fetch_error_context(self):
        error = FeedFetchError("Failed to fetch RSS: 502 Bad Gateway", status=502, feed_url="https://x.example/rss")

        data = error.to_dict()
        assert data["error_code"] == ErrorCode.FEED_NETWORK_ERROR.value
        assert data["context"] == {"http_status": 502, "feed_url": "https://x.example/rss"}

    def test_handle_exception_wraps_unknown_errors(self):
        logger = get_logger_for_component("test")

        wrapped = handle_exception(KeyError("missing"), logger, "lookup")

        assert isinstance(wrapped, YomimonoError)
        assert wrapped.context["operation"] == "lookup"
        assert wrapped.context["original_exception_type"] == "KeyError"

    def test_handle_exception_passes_through_own_errors(self):
        error = DatabaseError("locked")

        assert handle_exception(error, get_logger_for_component("test"), "query") is error


class TestLogging:
    """Test component loggers and formatters."""

    def test_component_logger_context(self):
        adapter = get_logger_for_component("fetcher", feed_id=3)

        assert adapter.logger.name == "yomimono.fetcher"
        assert adapter.extra == {"component": "fetcher", "feed_id": 3}
        assert adapter.bind(batch_log_id=9).extra["batch_log_id"] == 9

    def test_structured_formatter_includes_extras(self):
        record = logging.LogRecord("yomimono.batch", logging.INFO, __file__, 1, "done", None, None)
        record.batch_log_id = 4

        data = json.loads(StructuredFormatter().format(record))

        assert data["message"] == "done"
        assert data["extra"]["batch_log_id"] == 4

    def test_performance_logger_records_duration(self):
        with PerformanceLogger(get_logger_for_component("test"), "noop") as perf:
            pass

        assert perf.duration is not None and perf.duration >= 0


class TestModels:
    def test_batch_log_api_shape(self):
        entry = BatchLogEntry(id=1, status=BatchStatus.COMPLETED, items_fetched=2, items_created=1)

        data = entry.to_api_dict()

        assert data["feedId"] == 0
        assert data["status"] == "completed"
        assert (data["itemsFetched"], data["itemsCreated"]) == (2, 1)
