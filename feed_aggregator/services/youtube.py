"""YouTube source support.

Channel and playlist URLs are rewritten to YouTube's public Atom feed.
Handle URLs (youtube.com/@name) need one request to the handle page to
find the channel id first.
"""

import logging
import re
from typing import Optional

import httpx


logger = logging.getLogger(__name__)

FEED_BASE_URL = "https://www.youtube.com/feeds/videos.xml"

_CHANNEL_ID_JSON_RE = re.compile(r'"channelId":"(UC[0-9A-Za-z_-]+)"')
# Fallback: the canonical <link> tag of the channel page
_CHANNEL_ID_LINK_RE = re.compile(r"youtube\.com/channel/(UC[0-9A-Za-z_-]+)")

_HEADERS = {"User-Agent": "Mozilla/5.0"}


def channel_feed_url(channel_id: str) -> str:
    return f"{FEED_BASE_URL}?channel_id={channel_id}"


def playlist_feed_url(playlist_id: str) -> str:
    return f"{FEED_BASE_URL}?playlist_id={playlist_id}"


def find_channel_id(html: str) -> Optional[str]:
    """Find a channel id in the markup of a YouTube page."""
    for pattern in (_CHANNEL_ID_JSON_RE, _CHANNEL_ID_LINK_RE):
        match = pattern.search(html)
        if match:
            return match.group(1)
    return None


async def resolve_youtube_handle(url: str) -> Optional[str]:
    """Resolve a YouTube handle URL to the channel's feed URL.

    Args:
        url: Handle page URL, e.g. https://www.youtube.com/@name

    Returns:
        The channel feed URL, or None if the page could not be fetched or
        carries no channel id
    """
    logger.info(f"Resolving YouTube handle: {url}")

    async with httpx.AsyncClient(
        follow_redirects=True,
        timeout=30.0,
        headers=_HEADERS,
    ) as client:
        try:
            response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to resolve YouTube handle: {e}")
            return None

    channel_id = find_channel_id(response.text)
    if channel_id is None:
        logger.warning(f"No channel id found on {url}")
        return None

    return channel_feed_url(channel_id)
