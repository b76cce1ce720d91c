"""Fetch pipeline.

Classify a URL, fetch it with the matching strategy, and store the feed and
its articles. Used both by the fetch endpoint and by the refresher.
"""

import logging
from typing import Optional, Tuple

import aiosqlite

from feed_aggregator.config import TwitterCredentials
from feed_aggregator.models.schemas import FetchResult
from feed_aggregator.services.feed_parser import ParsedFeed, parse_feed
from feed_aggregator.services.sources import FeedFetchError, SourceKind, classify_source
from feed_aggregator.services.twitter import fetch_timeline
from feed_aggregator.services.youtube import channel_feed_url, playlist_feed_url, resolve_youtube_handle
from feed_aggregator.storage import database


logger = logging.getLogger(__name__)


async def resolve_fetch_target(url: str) -> str:
    """Return the URL the generic feed fetcher should read for a source.

    YouTube handles, channels and playlists are rewritten to YouTube's feed
    endpoint; every other URL is returned unchanged.

    Raises:
        FeedFetchError: If a YouTube handle cannot be resolved
    """
    source = classify_source(url)

    if source.kind is SourceKind.YOUTUBE_HANDLE:
        resolved = await resolve_youtube_handle(source.url)
        if resolved is None:
            raise FeedFetchError("Unable to resolve YouTube handle")
        return resolved

    if source.kind is SourceKind.YOUTUBE_CHANNEL:
        return channel_feed_url(source.identifier)

    if source.kind is SourceKind.YOUTUBE_PLAYLIST:
        return playlist_feed_url(source.identifier)

    return source.url


async def fetch_source(
    url: str, twitter: Optional[TwitterCredentials] = None
) -> Tuple[str, ParsedFeed]:
    """Fetch a source without storing anything.

    Args:
        url: Source URL as submitted
        twitter: Credentials for Twitter/X profiles

    Returns:
        Tuple of (url the feed is stored under, parsed feed)

    Raises:
        FeedFetchError: If the source cannot be fetched
    """
    source = classify_source(url)

    if source.kind is SourceKind.TWITTER_PROFILE:
        parsed = await fetch_timeline(source.identifier, twitter or TwitterCredentials())
        return source.url, parsed

    target = await resolve_fetch_target(source.url)
    logger.info(f"Fetching feed: {target}")
    return target, await parse_feed(target)


async def fetch_and_store(
    db: aiosqlite.Connection,
    url: str,
    twitter: Optional[TwitterCredentials] = None,
    feed_id: Optional[int] = None,
) -> FetchResult:
    """Run the full pipeline for one URL.

    The feed row is inserted if absent (an existing title is kept), new
    articles are inserted by link, and the feed's last_updated timestamp is
    set whether or not anything new was found.

    When ``feed_id`` is given the articles are stored under that existing
    feed instead, even if its stored URL differs from the one actually
    fetched (e.g. an imported YouTube channel page).

    Args:
        db: Database connection
        url: Source URL as submitted
        twitter: Credentials for Twitter/X profiles
        feed_id: Existing feed to store into

    Returns:
        FetchResult with the fetched title, stored URL and items

    Raises:
        FeedFetchError: If the source cannot be fetched, or ``feed_id``
            no longer exists
    """
    feed_url, parsed = await fetch_source(url, twitter)

    if feed_id is not None:
        feed = await database.get_feed(db, feed_id)
        if feed is None:
            raise FeedFetchError(f"Feed {feed_id} no longer exists")
        feed_url = feed.url
    else:
        await database.upsert_feed(db, feed_url, parsed.title)
        feed = await database.get_feed_by_url(db, feed_url)

    added = await database.add_articles(db, feed.id, parsed.items)
    await database.touch_feed(db, feed.id)

    logger.info(f"Stored {added} new of {len(parsed.items)} articles for {feed_url}")
    return FetchResult(title=parsed.title, url=feed_url, items=parsed.items)
