"""
Tests for the storage repositories against a temporary SQLite database.
"""

from datetime import datetime, timezone

import pytest

from yomimono.database.models import Bookmark, Feed, FeedHistoryItem
from yomimono.storage.bookmark_repository import URL_LOOKUP_CHUNK, BookmarkRepository
from yomimono.storage.feed_item_repository import FeedItemRepository
from yomimono.storage.feed_repository import FeedRepository
from yomimono.utils.exceptions import DatabaseError, ErrorCode


class TestFeedRepository:
    """Test feed CRUD operations."""

    def test_create_and_get(self, db_connection):
        repo = FeedRepository(db_connection)

        feed_id = repo.create_feed(Feed(name="Tech", url="https://tech.example.com/rss"))

        feed = repo.get_feed_by_id(feed_id)
        assert feed.name == "Tech"
        assert feed.is_active is True
        assert feed.last_fetched_at is None
        assert repo.get_feed_by_url("https://tech.example.com/rss").id == feed_id

    def test_duplicate_url_rejected(self, db_connection):
        repo = FeedRepository(db_connection)
        repo.create_feed(Feed(name="A", url="https://dup.example.com/rss"))

        with pytest.raises(DatabaseError) as exc_info:
            repo.create_feed(Feed(name="B", url="https://dup.example.com/rss"))

        assert exc_info.value.error_code == ErrorCode.DATABASE_CONSTRAINT

    def test_active_feeds_only(self, db_connection, feed_factory):
        active = feed_factory()
        feed_factory(is_active=False)

        repo = FeedRepository(db_connection)

        assert [f.id for f in repo.get_all_active_feeds()] == [active.id]
        assert len(repo.get_all_feeds()) == 2
        assert repo.count_active_feeds() == 1

    def test_active_feeds_by_id(self, db_connection, feed_factory):
        feeds = [feed_factory() for _ in range(3)]
        repo = FeedRepository(db_connection)

        selected = repo.get_all_active_feeds([feeds[2].id, feeds[0].id, 999])

        assert [f.id for f in selected] == [feeds[0].id, feeds[2].id]

    def test_set_active(self, db_connection, feed_factory):
        feed = feed_factory()
        repo = FeedRepository(db_connection)

        assert repo.set_active(feed.id, False) is True
        assert repo.get_all_active_feeds() == []

    def test_update_last_fetched_at(self, db_connection, feed_factory):
        feed = feed_factory()
        repo = FeedRepository(db_connection)
        fetched_at = datetime(2024, 3, 4, 5, 6, 7, tzinfo=timezone.utc)

        assert repo.update_last_fetched_at(feed.id, fetched_at) is True
        assert repo.get_feed_by_id(feed.id).last_fetched_at == fetched_at
        assert repo.update_last_fetched_at(12345) is False

    def test_invalid_url_rejected_by_model(self):
        with pytest.raises(ValueError):
            Feed(name="Bad", url="ftp://example.com/feed")


class TestUrlLookups:
    """Test existing-URL lookups used for deduplication."""

    def test_bookmark_lookup(self, db_connection):
        repo = BookmarkRepository(db_connection)
        repo.add(Bookmark(url="https://example.com/a", title="A"))

        found = repo.find_existing_urls(["https://example.com/a", "https://example.com/b"])

        assert found == {"https://example.com/a"}

    def test_lookup_with_no_urls(self, db_connection):
        assert BookmarkRepository(db_connection).find_existing_urls([]) == set()

    def test_lookup_spans_chunks(self, db_connection):
        repo = BookmarkRepository(db_connection)
        urls = [f"https://example.com/{n}" for n in range(URL_LOOKUP_CHUNK + 5)]
        repo.add(Bookmark(url=urls[0]))
        repo.add(Bookmark(url=urls[-1]))

        assert repo.find_existing_urls(urls) == {urls[0], urls[-1]}

    def test_feed_item_lookup(self, db_connection, feed_factory):
        feed = feed_factory()
        repo = FeedItemRepository(db_connection)
        repo.add(FeedHistoryItem(feed_id=feed.id, guid="g1", url="https://example.com/x", title="X"))

        assert repo.find_existing_urls(["https://example.com/x", "https://example.com/y"]) == {
            "https://example.com/x"
        }

    def test_recent_bookmarks_newest_first(self, db_connection):
        repo = BookmarkRepository(db_connection)
        repo.add(Bookmark(url="https://example.com/old", created_at=datetime(2024, 1, 1, tzinfo=timezone.utc)))
        repo.add(Bookmark(url="https://example.com/new", created_at=datetime(2024, 2, 1, tzinfo=timezone.utc)))

        assert [b.url for b in repo.get_recent(limit=10)] == [
            "https://example.com/new",
            "https://example.com/old",
        ]
