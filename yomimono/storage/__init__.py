"""
Yomimono Storage Layer
======================

Repository implementations for data access abstraction.
"""

from .feed_repository import FeedRepository
from .bookmark_repository import BookmarkRepository
from .feed_item_repository import FeedItemRepository
from .batch_log_repository import BatchLogRepository

__all__ = [
    "FeedRepository",
    "BookmarkRepository",
    "FeedItemRepository",
    "BatchLogRepository",
]
