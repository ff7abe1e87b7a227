"""
Feed Parser
===========

Turns a raw RSS 2.0 or Atom document into normalized ``Article`` models.

The document is parsed once with feedparser and resolved into one of three
shapes: ``RssChannel``, ``AtomFeed`` or ``Unrecognized``. Each shape has
its own entry mapping; an unrecognized document is rejected outright.
"""

import calendar
import io
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional, Union
from xml.etree import ElementTree

import feedparser

from ..database.models import Article
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import FeedParseError, ErrorCode

logger = get_logger_for_component("parser")

# Encoding notices that still leave a fully parsed document
_HARMLESS_BOZO = (feedparser.CharacterEncodingOverride, feedparser.NonXMLContentType)

# The fetcher hands over decoded text, so the XML declaration's charset no
# longer applies to the bytes feedparser sees.
_RESPONSE_HEADERS = {"content-type": "application/xml; charset=utf-8"}

# feedparser versions for documents rooted at <rss>. rss090 and rss10 are RDF.
_RSS_ROOT_VERSIONS = frozenset(
    {"rss", "rss091u", "rss091n", "rss092", "rss093", "rss094", "rss20"}
)

_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")


@dataclass
class RssChannel:
    """<rss> document with a <channel>, RSS 0.91 to 2.0."""
    title: str
    items: List[Any] = field(default_factory=list)


@dataclass
class AtomFeed:
    """Atom 0.3 / 1.0 feed."""
    title: str
    entries: List[Any] = field(default_factory=list)


@dataclass
class Unrecognized:
    """Well-formed XML that is neither an RSS channel nor an Atom feed.

    RSS 1.0 (RDF) and an <rss> root without a channel land here.
    """
    version: str


FeedDocument = Union[RssChannel, AtomFeed, Unrecognized]


def resolve_document(raw_xml: str) -> FeedDocument:
    """Parse raw XML once and classify it.

    Raises:
        FeedParseError: If the document is not well-formed XML
    """
    parsed = feedparser.parse(
        io.BytesIO(raw_xml.encode("utf-8")), response_headers=_RESPONSE_HEADERS
    )

    if parsed.get("bozo") and not isinstance(parsed.get("bozo_exception"), _HARMLESS_BOZO):
        raise FeedParseError(
            f"Malformed feed XML: {parsed.get('bozo_exception')}",
            error_code=ErrorCode.FEED_PARSE_ERROR,
        )

    version = parsed.get("version") or ""
    title = parsed.feed.get("title", "")

    if version in _RSS_ROOT_VERSIONS and _has_rss_channel(raw_xml):
        return RssChannel(title=title, items=list(parsed.entries))
    if version.startswith("atom"):
        return AtomFeed(title=title, entries=list(parsed.entries))
    return Unrecognized(version=version)


def parse_feed(raw_xml: str) -> List[Article]:
    """Parse an RSS or Atom document into articles.

    Args:
        raw_xml: Feed document text

    Returns:
        Articles in document order. Entries without any link are dropped.

    Raises:
        FeedParseError: If the XML is malformed or the format is unsupported
    """
    document = resolve_document(raw_xml)

    if isinstance(document, RssChannel):
        candidates = [_article_from_rss_item(item) for item in document.items]
    elif isinstance(document, AtomFeed):
        candidates = [_article_from_atom_entry(entry) for entry in document.entries]
    else:
        raise FeedParseError(
            "Unsupported feed format",
            error_code=ErrorCode.FEED_UNSUPPORTED_FORMAT,
            context={"detected_version": document.version},
        )

    articles = [article for article in candidates if article is not None]
    if len(articles) != len(candidates):
        logger.warning(f"Dropped {len(candidates) - len(articles)} entries without a link")
    return articles


def _article_from_rss_item(item: Any) -> Optional[Article]:
    url = item.get("link") or ""
    guid = item.get("id") or url
    if not url:
        return None

    return Article(
        guid=guid,
        url=url,
        title=item.get("title", ""),
        description=item.get("summary") or None,
        author=item.get("author") or None,
        published_at=_to_datetime(item.get("published_parsed")),
        categories=_categories(item),
    )


def _article_from_atom_entry(entry: Any) -> Optional[Article]:
    links = entry.get("links") or []
    url = links[0].get("href") if links else entry.get("link")
    if not url:
        return None

    description = entry.get("summary")
    if not description and entry.get("content"):
        description = entry.content[0].get("value")

    author = None
    if entry.get("author_detail"):
        author = entry.author_detail.get("name")
    author = author or entry.get("author")

    return Article(
        guid=entry.get("id") or url,
        url=url,
        title=entry.get("title", ""),
        description=description or None,
        author=author or None,
        published_at=_to_datetime(entry.get("updated_parsed") or entry.get("published_parsed")),
        categories=_categories(entry),
    )


def _categories(entry: Any) -> List[str]:
    return [tag.get("term") for tag in entry.get("tags") or [] if tag.get("term")]


def _to_datetime(value: Optional[time.struct_time]) -> Optional[datetime]:
    """feedparser normalizes dates to UTC struct_time."""
    if not value:
        return None
    return datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc)


def _has_rss_channel(raw_xml: str) -> bool:
    """True when the root is <rss> with a <channel> child.

    feedparser reports the RSS version from the root alone and files items
    found anywhere under it, so the channel is checked on the tree itself.
    """
    text = _XML_DECLARATION.sub("", raw_xml.lstrip("\ufeff"), count=1)
    try:
        root = ElementTree.fromstring(text)
    except ElementTree.ParseError as e:
        raise FeedParseError(f"Malformed feed XML: {e}") from e
    return root.tag == "rss" and root.find("channel") is not None
