"""
Batch Orchestrator
==================

Runs one RSS batch: lists active feeds, processes them in chunks of
concurrent tasks, and finalizes the whole-batch log row.

``run()`` never raises. Feed failures are counted per feed; anything that
breaks the run itself is written as a whole-batch error row.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import aiohttp

from ..config.settings import YomimonoSettings, get_settings
from ..database.connection import DatabaseConnection
from ..database.models import BatchStatus, Feed
from ..processing.feed_fetcher import FeedFetcher
from ..storage.feed_repository import FeedRepository
from ..utils.logging import get_batch_logger
from ..utils.exceptions import BatchError, DatabaseError, ErrorCode, handle_exception, plain_message
from .feed_processor import FeedProcessor, FeedResult
from .log_recorder import BatchLogRecorder


@dataclass
class BatchRunSummary:
    """Summary of one batch run."""

    status: BatchStatus
    batch_log_id: Optional[int] = None
    total_feeds: int = 0
    successful_feeds: int = 0
    failed_feeds: int = 0
    total_items_created: int = 0
    feed_results: List[FeedResult] = field(default_factory=list)
    processing_time_seconds: float = 0.0
    error: Optional[str] = None


def chunked(items: Sequence[Feed], size: int) -> List[List[Feed]]:
    """Split ``items`` into consecutive lists of at most ``size``."""
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def completion_status(success_count: int, error_count: int) -> BatchStatus:
    """completed when no feed failed, error when none succeeded, else partial_failure."""
    if error_count == 0:
        return BatchStatus.COMPLETED
    if success_count == 0:
        return BatchStatus.ERROR
    return BatchStatus.PARTIAL_FAILURE


def describe_target(feed_ids: Optional[Sequence[int]], manual: bool) -> str:
    if not manual:
        return "Scheduled RSS batch"
    if feed_ids:
        return f"Manual batch ({len(feed_ids)} feeds)"
    return "Manual batch (all feeds)"


class BatchOrchestrator:
    """Coordinates feed processing for a batch run."""

    def __init__(
        self,
        db_connection: DatabaseConnection,
        settings: Optional[YomimonoSettings] = None,
        fetcher: Optional[FeedFetcher] = None,
        recorder: Optional[BatchLogRecorder] = None,
    ):
        """Initialize orchestrator.

        Args:
            db_connection: Database connection manager
            settings: Application settings (default from config)
            fetcher: Feed fetcher, built from settings when omitted
            recorder: Batch log recorder, built on ``db_connection`` when omitted
        """
        self.db = db_connection
        self.settings = settings or get_settings()
        self.chunk_size = self.settings.batch.chunk_size
        self.fetcher = fetcher or FeedFetcher(self.settings.batch)
        self.recorder = recorder or BatchLogRecorder(db_connection)
        self.feed_repository = FeedRepository(db_connection)
        self.logger = get_batch_logger()

    async def run(
        self,
        feed_ids: Optional[Sequence[int]] = None,
        description: Optional[str] = None,
    ) -> BatchRunSummary:
        """Run a batch over active feeds.

        Args:
            feed_ids: Restrict the run to these active feeds; all when empty
            description: Label for the run, used in application logs

        Returns:
            BatchRunSummary; status ERROR when every feed failed or the run
            itself failed, in which case ``error`` holds the reason
        """
        start = time.time()
        summary = BatchRunSummary(status=BatchStatus.IN_PROGRESS)

        try:
            summary.batch_log_id = self.recorder.log_batch_start(
                description or describe_target(feed_ids, manual=feed_ids is not None)
            )
            logger = self.logger.bind(batch_log_id=summary.batch_log_id)

            feeds = self._load_feeds(feed_ids)
            summary.total_feeds = len(feeds)

            if not feeds:
                logger.info("No feeds to process")
                self.recorder.log_batch_complete(
                    summary.batch_log_id, BatchStatus.COMPLETED, 0, 0, 0
                )
                summary.status = BatchStatus.COMPLETED
                return summary

            logger.info(f"Processing {len(feeds)} feeds in chunks of {self.chunk_size}")

            async with self.fetcher.get_session() as session:
                for chunk in chunked(feeds, self.chunk_size):
                    results = await asyncio.gather(
                        *(self._process_feed(feed, session) for feed in chunk)
                    )
                    summary.feed_results.extend(results)

            summary.successful_feeds = sum(1 for r in summary.feed_results if r.success)
            summary.failed_feeds = summary.total_feeds - summary.successful_feeds
            summary.total_items_created = sum(r.items_created for r in summary.feed_results)
            summary.status = completion_status(summary.successful_feeds, summary.failed_feeds)

            self.recorder.log_batch_complete(
                summary.batch_log_id,
                summary.status,
                summary.total_feeds,
                summary.successful_feeds,
                summary.failed_feeds,
            )

        except Exception as e:
            error = handle_exception(e, self.logger, "rss_batch", {"batch_log_id": summary.batch_log_id})
            self.recorder.log_batch_error(e)
            summary.status = BatchStatus.ERROR
            summary.error = error.message

        finally:
            summary.processing_time_seconds = time.time() - start

        return summary

    def _load_feeds(self, feed_ids: Optional[Sequence[int]]) -> List[Feed]:
        try:
            return self.feed_repository.get_all_active_feeds(feed_ids)
        except DatabaseError as e:
            raise BatchError(
                "Failed to fetch active feeds",
                error_code=ErrorCode.BATCH_FEEDS_UNAVAILABLE,
            ) from e

    async def _process_feed(self, feed: Feed, session: aiohttp.ClientSession) -> FeedResult:
        """Per-feed boundary: a failure becomes an unsuccessful FeedResult."""
        processor = FeedProcessor(feed, self.db, self.fetcher, self.recorder)
        try:
            return await processor.process(session=session)
        except Exception as e:
            message = plain_message(e)
            self.logger.error(
                f"Feed processing error ({feed.name}): {message}", extra={"feed_id": feed.id}
            )
            return FeedResult(
                feed_id=feed.id, feed_name=feed.name, success=False, error=message
            )


async def run_scheduled_batch(
    db_connection: DatabaseConnection, settings: Optional[YomimonoSettings] = None
) -> BatchRunSummary:
    """Entry point for the scheduled trigger."""
    return await BatchOrchestrator(db_connection, settings=settings).run()
