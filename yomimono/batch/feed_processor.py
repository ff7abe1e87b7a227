"""
Feed Processor
==============

One feed's unit of work: fetch, parse, filter, persist, advance the fetch
time, then record the outcome in the batch log.
"""

from dataclasses import dataclass
from typing import Optional

import aiohttp

from ..database.connection import DatabaseConnection
from ..database.models import BatchStatus, Feed, utc_now
from ..processing.article_filter import ArticleFilter
from ..processing.article_persister import ArticlePersister
from ..processing.feed_fetcher import FeedFetcher
from ..processing.feed_parser import parse_feed
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import plain_message
from .log_recorder import BatchLogRecorder


@dataclass
class FeedResult:
    """Outcome of processing a single feed."""

    feed_id: int
    feed_name: str
    success: bool
    items_fetched: int = 0
    items_created: int = 0
    error: Optional[str] = None


class FeedProcessor:
    """Processes one feed end to end."""

    def __init__(
        self,
        feed: Feed,
        db_connection: DatabaseConnection,
        fetcher: FeedFetcher,
        recorder: BatchLogRecorder,
    ):
        self.feed = feed
        self.db = db_connection
        self.fetcher = fetcher
        self.recorder = recorder
        self.article_filter = ArticleFilter(db_connection)
        self.persister = ArticlePersister(db_connection, feed.id)
        self.logger = get_logger_for_component("feed_processor", feed_id=feed.id)

    async def process(self, session: Optional[aiohttp.ClientSession] = None) -> FeedResult:
        """Run the pipeline for this feed.

        The per-feed log row is written on both success and failure.

        Args:
            session: Shared HTTP session for the batch

        Returns:
            FeedResult for a successful run

        Raises:
            Exception: Whatever stopped the feed, after its error row is logged
        """
        started_at = utc_now()
        items_fetched = 0
        items_created = 0

        try:
            raw_xml = await self.fetcher.fetch_feed(self.feed.url, session=session)

            articles = parse_feed(raw_xml)
            items_fetched = len(articles)

            new_articles = self.article_filter.filter_new_articles(articles, self.feed)
            items_created = self.persister.save_articles(new_articles)

            self.persister.mark_fetched()

            self.recorder.log_feed_process(
                self.feed.id,
                BatchStatus.SUCCESS,
                items_fetched=items_fetched,
                items_created=items_created,
                started_at=started_at,
                finished_at=utc_now(),
            )

        except Exception as e:
            self.recorder.log_feed_process(
                self.feed.id,
                BatchStatus.ERROR,
                items_fetched=items_fetched,
                items_created=items_created,
                started_at=started_at,
                finished_at=utc_now(),
                error_message=plain_message(e),
            )
            raise

        self.logger.info(
            f"Processed {self.feed.name}: {items_fetched} fetched, {items_created} created"
        )
        return FeedResult(
            feed_id=self.feed.id,
            feed_name=self.feed.name,
            success=True,
            items_fetched=items_fetched,
            items_created=items_created,
        )
