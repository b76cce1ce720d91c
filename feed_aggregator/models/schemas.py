"""Data models for feed_aggregator.

This module defines the core data structures for feeds and articles.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Feed:
    """Represents a subscribed feed source."""

    id: int
    url: str
    title: Optional[str]
    category: Optional[str]
    created_at: Optional[str]
    last_updated: Optional[str]


@dataclass
class Article:
    """Represents a stored article.

    ``feed_title`` and ``category`` are only populated when the article is
    read back joined with its owning feed.
    """

    id: int
    feed_id: int
    title: Optional[str]
    link: str
    summary: Optional[str]
    image: Optional[str]
    published_at: Optional[str]
    is_read: bool
    is_bookmarked: bool
    feed_title: Optional[str] = None
    category: Optional[str] = None


@dataclass
class NormalizedArticle:
    """An item from any source, mapped onto the common article shape."""

    title: str
    link: str
    summary: str
    image: Optional[str]
    published_at: Optional[str]
    feed_title: Optional[str]


@dataclass
class FetchResult:
    """Outcome of running the fetch pipeline for one URL."""

    title: str
    url: str
    items: List[NormalizedArticle] = field(default_factory=list)
