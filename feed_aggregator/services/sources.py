"""Source classification.

This module decides, from the URL alone, which fetch strategy applies to a
subscribed source. No network access happens here.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import urlsplit


class FeedFetchError(Exception):
    """Raised when a source cannot be fetched or parsed."""


class SourceKind(str, Enum):
    GENERIC = "generic"
    YOUTUBE_HANDLE = "youtube_handle"
    YOUTUBE_CHANNEL = "youtube_channel"
    YOUTUBE_PLAYLIST = "youtube_playlist"
    TWITTER_PROFILE = "twitter_profile"


@dataclass
class ClassifiedSource:
    """A URL together with the strategy that should fetch it."""

    kind: SourceKind
    url: str
    identifier: Optional[str] = None


_YOUTUBE_HANDLE_RE = re.compile(r"youtube\.com/@")
_YOUTUBE_CHANNEL_RE = re.compile(r"youtube\.com/channel/([A-Za-z0-9_\-]+)")
_YOUTUBE_PLAYLIST_RE = re.compile(r"list=([A-Za-z0-9_\-]+)")
_TWITTER_USERNAME_RE = re.compile(r"^/([A-Za-z0-9_]+)")

TWITTER_HOSTS = {
    "twitter.com",
    "www.twitter.com",
    "mobile.twitter.com",
    "x.com",
    "www.x.com",
    "mobile.x.com",
}


def _is_youtube(url: str) -> bool:
    return "youtube.com" in url or "youtu.be" in url


def _twitter_username(url: str) -> Optional[str]:
    # Tolerate scheme-less input such as "x.com/jack"
    parts = urlsplit(url if "://" in url else f"https://{url}")
    if (parts.hostname or "").lower() not in TWITTER_HOSTS:
        return None

    match = _TWITTER_USERNAME_RE.match(parts.path)
    return match.group(1) if match else None


def classify_source(url: str) -> ClassifiedSource:
    """Classify a source URL.

    YouTube URLs are checked for a handle first, then a playlist parameter
    (which wins over a channel path), then a channel path. YouTube URLs
    matching none of these, including YouTube's own feed endpoint, are
    treated as generic feeds.

    Args:
        url: Raw URL as submitted by the user or stored for a feed

    Returns:
        ClassifiedSource describing the strategy and the matched identifier
    """
    url = url.strip()

    if _is_youtube(url):
        if _YOUTUBE_HANDLE_RE.search(url):
            return ClassifiedSource(SourceKind.YOUTUBE_HANDLE, url, url)

        playlist = _YOUTUBE_PLAYLIST_RE.search(url)
        if playlist:
            return ClassifiedSource(SourceKind.YOUTUBE_PLAYLIST, url, playlist.group(1))

        channel = _YOUTUBE_CHANNEL_RE.search(url)
        if channel:
            return ClassifiedSource(SourceKind.YOUTUBE_CHANNEL, url, channel.group(1))

        return ClassifiedSource(SourceKind.GENERIC, url)

    username = _twitter_username(url)
    if username:
        return ClassifiedSource(SourceKind.TWITTER_PROFILE, url, username)

    return ClassifiedSource(SourceKind.GENERIC, url)
