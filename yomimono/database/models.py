"""
Yomimono Data Models
====================

Pydantic data models for the ingestion pipeline. Persisted models mirror
the database schema; ``Article`` is the transient parser output.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Dict, Any

from pydantic import BaseModel, Field, field_validator


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC so stored and parsed values compare."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_db_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime for a TIMESTAMP column."""
    value = ensure_utc(value)
    return value.isoformat() if value else None


class BatchStatus(str, Enum):
    """Status values stored in rss_batch_logs."""
    IN_PROGRESS = "in_progress"
    SUCCESS = "success"
    ERROR = "error"
    PARTIAL_FAILURE = "partial_failure"
    COMPLETED = "completed"


WHOLE_BATCH_FEED_ID = 0


class Feed(BaseModel):
    """RSS feed source."""
    id: Optional[int] = Field(default=None, description="Database primary key")
    name: str = Field(..., min_length=1, max_length=255, description="Display name")
    url: str = Field(..., min_length=1, description="Feed URL")
    is_active: bool = Field(default=True, description="Whether the feed is ingested by batches")
    last_fetched_at: Optional[datetime] = Field(default=None, description="Last successful processing time")
    created_at: Optional[datetime] = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = Field(default_factory=utc_now)

    @field_validator('url')
    @classmethod
    def validate_url(cls, v):
        """Feed URLs must be http(s)."""
        v = v.strip()
        if not v.startswith(('http://', 'https://')):
            raise ValueError("Feed URL must start with http:// or https://")
        return v

    @field_validator('last_fetched_at', 'created_at', 'updated_at')
    @classmethod
    def normalize_timestamps(cls, v):
        return ensure_utc(v)

    def __str__(self) -> str:
        return f"Feed({self.id}:{self.name})"


class Article(BaseModel):
    """Normalized article parsed from an RSS item or Atom entry."""
    guid: str = Field(..., description="Item guid or entry id")
    url: str = Field(..., description="Article link")
    title: str = Field(default="", description="Article title")
    description: Optional[str] = Field(default=None, description="Summary or content")
    author: Optional[str] = Field(default=None, description="Author name")
    published_at: Optional[datetime] = Field(default=None, description="Publication date")
    categories: List[str] = Field(default_factory=list, description="Category labels")

    @field_validator('published_at')
    @classmethod
    def normalize_published_at(cls, v):
        return ensure_utc(v)

    def __str__(self) -> str:
        return f"Article({self.title[:50]})"


class Bookmark(BaseModel):
    """Reading list entry."""
    id: Optional[int] = Field(default=None, description="Database primary key")
    url: str = Field(..., description="Bookmarked URL")
    title: Optional[str] = Field(default=None, description="Display title")
    is_read: bool = Field(default=False, description="Whether the entry has been read")
    created_at: Optional[datetime] = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = Field(default_factory=utc_now)

    @classmethod
    def from_article(cls, article: Article, now: Optional[datetime] = None) -> "Bookmark":
        """Build an unread bookmark dated by the article's publish time."""
        now = now or utc_now()
        return cls(
            url=article.url,
            title=article.title,
            is_read=False,
            created_at=article.published_at or now,
            updated_at=now,
        )


class FeedHistoryItem(BaseModel):
    """Record of an article ingested from a specific feed."""
    id: Optional[int] = Field(default=None, description="Database primary key")
    feed_id: int = Field(..., description="Source feed ID")
    guid: str = Field(..., description="Item guid")
    url: str = Field(..., description="Article link")
    title: str = Field(default="", description="Article title")
    description: Optional[str] = Field(default=None, description="Article summary")
    published_at: Optional[datetime] = Field(default=None)
    fetched_at: Optional[datetime] = Field(default_factory=utc_now)
    created_at: Optional[datetime] = Field(default_factory=utc_now)

    @classmethod
    def from_article(cls, feed_id: int, article: Article, now: Optional[datetime] = None) -> "FeedHistoryItem":
        now = now or utc_now()
        return cls(
            feed_id=feed_id,
            guid=article.guid,
            url=article.url,
            title=article.title,
            description=article.description,
            published_at=article.published_at,
            fetched_at=now,
            created_at=now,
        )


class BatchLogEntry(BaseModel):
    """Row of rss_batch_logs. ``feed_id`` 0 is the whole-batch entry."""
    id: Optional[int] = Field(default=None, description="Database primary key")
    feed_id: int = Field(default=WHOLE_BATCH_FEED_ID, ge=0)
    status: BatchStatus = Field(..., description="Run status")
    items_fetched: int = Field(default=0, ge=0)
    items_created: int = Field(default=0, ge=0)
    error_message: Optional[str] = Field(default=None)
    started_at: datetime = Field(default_factory=utc_now)
    finished_at: Optional[datetime] = Field(default=None)
    created_at: Optional[datetime] = Field(default_factory=utc_now)

    @property
    def is_whole_batch(self) -> bool:
        return self.feed_id == WHOLE_BATCH_FEED_ID

    def to_api_dict(self) -> Dict[str, Any]:
        """Serialize with the camelCase keys used by the HTTP API."""
        return {
            "id": self.id,
            "feedId": self.feed_id,
            "status": self.status.value,
            "itemsFetched": self.items_fetched,
            "itemsCreated": self.items_created,
            "errorMessage": self.error_message,
            "startedAt": self.started_at.isoformat() if self.started_at else None,
            "finishedAt": self.finished_at.isoformat() if self.finished_at else None,
        }

    def __str__(self) -> str:
        return f"BatchLogEntry({self.id}:{self.feed_id}:{self.status.value})"
