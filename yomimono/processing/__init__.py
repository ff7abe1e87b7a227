"""
Yomimono Processing Module
==========================

Per-feed ingestion steps: fetching, parsing, deduplication and persistence.
"""

from .feed_fetcher import FeedFetcher
from .feed_parser import parse_feed
from .article_filter import ArticleFilter
from .article_persister import ArticlePersister

__all__ = [
    'FeedFetcher',
    'parse_feed',
    'ArticleFilter',
    'ArticlePersister',
]
