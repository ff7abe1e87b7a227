"""
PyTest Configuration and Fixtures
=================================

Shared fixtures for Yomimono tests: temporary SQLite databases, settings
pointing at them, and sample RSS / Atom documents.
"""

import os
import tempfile
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Union

import pytest

# Keep tests away from the developer's data and log files
os.environ["YOMIMONO_LOGGING__FILE_PATH"] = ""
os.environ["YOMIMONO_LOGGING__CONSOLE_LOGGING"] = "false"
os.environ["YOMIMONO_DATABASE__PATH"] = str(
    Path(tempfile.gettempdir()) / "yomimono_tests" / "default.db"
)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def temp_db():
    """Temporary database file with the schema created."""
    from yomimono.database.schema import DatabaseSchema

    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name

    DatabaseSchema(db_path).create_tables()

    yield db_path

    for suffix in ("", "-wal", "-shm"):
        try:
            os.unlink(db_path + suffix)
        except FileNotFoundError:
            pass


@pytest.fixture
def db_connection(temp_db):
    """Database connection manager on the temporary database."""
    from yomimono.database.connection import DatabaseConnection

    connection = DatabaseConnection(temp_db, pool_size=2)
    yield connection
    connection.close_all_connections()


@pytest.fixture
def settings(temp_db):
    """Settings bound to the temporary database."""
    from yomimono.config.settings import YomimonoSettings

    return YomimonoSettings(
        database={"path": temp_db, "pool_size": 2},
        logging={"file_path": None, "console_logging": False},
    )


@pytest.fixture
def feed_factory(db_connection):
    """Insert feeds and return them as loaded from the database."""
    from yomimono.database.models import Feed
    from yomimono.storage.feed_repository import FeedRepository

    repo = FeedRepository(db_connection)
    counter = {"n": 0}

    def make(
        name: Optional[str] = None,
        url: Optional[str] = None,
        is_active: bool = True,
        last_fetched_at: Optional[datetime] = None,
    ) -> Feed:
        counter["n"] += 1
        n = counter["n"]
        feed_id = repo.create_feed(
            Feed(
                name=name or f"Feed {n}",
                url=url or f"https://feeds.example.com/{n}.xml",
                is_active=is_active,
                last_fetched_at=last_fetched_at,
            )
        )
        return repo.get_feed_by_id(feed_id)

    return make


# ============================================================================
# Feed documents
# ============================================================================


def rss_document(*items: Dict[str, str], title: str = "Example Channel") -> str:
    """Build an RSS 2.0 document from item field dicts."""
    body = []
    for item in items:
        parts = []
        for tag, value in item.items():
            if tag == "categories":
                parts.extend(f"<category>{c}</category>" for c in value)
            else:
                parts.append(f"<{tag}>{value}</{tag}>")
        body.append("<item>" + "".join(parts) + "</item>")

    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0"><channel>'
        f"<title>{title}</title><link>https://example.com/</link>"
        "<description>Example</description>"
        + "".join(body)
        + "</channel></rss>"
    )


def atom_document(*entries: str, title: str = "Example Atom") -> str:
    """Wrap raw <entry> fragments in an Atom feed."""
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        '<feed xmlns="http://www.w3.org/2005/Atom">'
        f"<title>{title}</title><id>urn:example:feed</id>"
        "<updated>2024-03-01T00:00:00Z</updated>"
        + "".join(entries)
        + "</feed>"
    )


@pytest.fixture
def single_item_rss():
    return rss_document(
        {
            "title": "First Post",
            "link": "https://example.com/posts/1",
            "guid": "post-1",
            "description": "Hello world",
            "pubDate": "Mon, 01 Jan 2024 12:00:00 GMT",
            "categories": ["python"],
        }
    )


# ============================================================================
# Fetcher double
# ============================================================================


class FakeFetcher:
    """Stands in for FeedFetcher, serving documents or errors per URL."""

    def __init__(self, responses: Dict[str, Union[str, Exception]], delay: float = 0.0):
        self.responses = responses
        self.delay = delay
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    @asynccontextmanager
    async def get_session(self):
        yield None

    async def fetch_feed(self, url, session=None):
        import asyncio

        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            response = self.responses[url]
            if isinstance(response, Exception):
                raise response
            return response
        finally:
            self.in_flight -= 1


@pytest.fixture
def fake_fetcher_cls():
    return FakeFetcher


@pytest.fixture
def rss_builder():
    return rss_document


@pytest.fixture
def atom_builder():
    return atom_document
