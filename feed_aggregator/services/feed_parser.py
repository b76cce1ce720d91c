"""Feed parser service.

This module fetches RSS/Atom feeds and normalizes their entries.
"""

import logging
from dataclasses import dataclass, field
from typing import List

import feedparser
import httpx

from feed_aggregator.models.schemas import NormalizedArticle
from feed_aggregator.services.normalizer import normalize_entry
from feed_aggregator.services.sources import FeedFetchError


logger = logging.getLogger(__name__)

HTTP_TIMEOUT = 30.0

REQUEST_HEADERS = {
    "User-Agent": "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 Chrome/118.0 Safari/537.36",
    "Accept": "application/rss+xml, application/xml;q=0.9, */*;q=0.8",
}


@dataclass
class ParsedFeed:
    """A fetched feed: its display title and normalized items."""

    title: str
    items: List[NormalizedArticle] = field(default_factory=list)


async def parse_feed(feed_url: str) -> ParsedFeed:
    """Fetch an RSS/Atom feed and extract its articles.

    Args:
        feed_url: URL of the feed to parse

    Returns:
        ParsedFeed with the feed title and normalized articles

    Raises:
        FeedFetchError: If the request fails or the body is not a feed
    """
    logger.info(f"Parsing feed: {feed_url}")

    async with httpx.AsyncClient(
        follow_redirects=True,
        timeout=HTTP_TIMEOUT,
        headers=REQUEST_HEADERS,
    ) as client:
        try:
            response = await client.get(feed_url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise FeedFetchError(f"Failed to fetch feed {feed_url}: {e}") from e

    return parse_feed_document(response.content, feed_url)


def parse_feed_document(document, feed_url: str) -> ParsedFeed:
    """Parse an already fetched feed document.

    Args:
        document: Raw feed body (bytes or str)
        feed_url: URL the document came from, used as the fallback title

    Returns:
        ParsedFeed with the feed title and normalized articles

    Raises:
        FeedFetchError: If the document is not a well-formed feed
    """
    feed = feedparser.parse(document)

    if feed.bozo and not feed.entries:
        raise FeedFetchError(f"Feed parsing error for {feed_url}: {feed.get('bozo_exception')}")

    if not feed.get("version") and not feed.entries:
        raise FeedFetchError(f"Not a feed document: {feed_url}")

    title = (feed.feed.get("title") or "").strip() or feed_url

    items = []
    for entry in feed.entries:
        article = normalize_entry(entry, title)
        if article is None:
            continue
        items.append(article)

    logger.info(f"Parsed {len(items)} articles from feed")
    return ParsedFeed(title=title, items=items)
