"""Item normalization.

This module maps feedparser entries and tweets onto the common article
shape. Only the fields the read side needs are kept.
"""

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Optional
from urllib.parse import urlsplit

from bs4 import BeautifulSoup

from feed_aggregator.models.schemas import NormalizedArticle


TWEET_TITLE_LENGTH = 80

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp", ".svg", ".avif")


def _entry_html(entry: dict) -> str:
    """Return the richest HTML body of an entry.

    Mirrors how feeds are usually read: full content (content:encoded or
    Atom <content>) first, then the description/summary.
    """
    for content in entry.get("content") or []:
        value = content.get("value")
        if value:
            return value
    return entry.get("summary") or entry.get("description") or ""


def make_snippet(html: str) -> str:
    """Strip markup from an HTML fragment, collapsing whitespace."""
    if not html:
        return ""
    if "<" not in html:
        return " ".join(html.split())
    text = BeautifulSoup(html, "lxml").get_text(" ", strip=True)
    return " ".join(text.split())


def first_image_src(html: str) -> Optional[str]:
    """Return the src of the first <img> in an HTML fragment, if any."""
    if not html or "<img" not in html.lower():
        return None

    soup = BeautifulSoup(html, "lxml")
    for img in soup.find_all("img"):
        src = (img.get("src") or "").strip()
        if src:
            return src

    return None


def _is_image_url(url: str) -> bool:
    path = urlsplit(url).path.lower()
    return path.endswith(IMAGE_EXTENSIONS)


def extract_image(entry: dict) -> Optional[str]:
    """Best-effort image for an entry.

    First <img> in the content, else the first enclosure whose URL has an
    image extension, else None.
    """
    for html in (_entry_html(entry), entry.get("summary") or ""):
        src = first_image_src(html)
        if src:
            return src

    for enclosure in entry.get("enclosures") or []:
        href = (enclosure.get("href") or enclosure.get("url") or "").strip()
        if href and _is_image_url(href):
            return href

    return None


def _struct_to_iso(value: Any) -> Optional[str]:
    try:
        return datetime(*value[:6], tzinfo=timezone.utc).isoformat()
    except (TypeError, ValueError):
        return None


def _raw_to_iso(value: str) -> Optional[str]:
    """Parse a raw RFC-822 or ISO-8601 date string into ISO-8601 UTC."""
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).replace(microsecond=0).isoformat()


def pick_published(entry: dict) -> Optional[str]:
    """Pick the publication timestamp of an entry.

    Parsed dates are preferred; a raw string feedparser could not parse is
    tried as RFC-822 and ISO-8601. The result is always ISO-8601 UTC, so
    stored values sort chronologically. Unparseable dates yield None.
    """
    for field in ("published", "updated"):
        parsed = entry.get(f"{field}_parsed")
        if parsed:
            iso = _struct_to_iso(parsed)
            if iso:
                return iso

    for field in ("published", "updated"):
        raw = entry.get(field)
        if raw:
            iso = _raw_to_iso(raw)
            if iso:
                return iso

    return None


def entry_link(entry: dict) -> Optional[str]:
    """Return the permalink of an entry."""
    link = (entry.get("link") or "").strip()
    if link:
        return link

    for candidate in entry.get("links") or []:
        if candidate.get("rel", "alternate") == "alternate" and candidate.get("href"):
            return candidate["href"].strip()

    return None


def normalize_entry(entry: dict, feed_title: Optional[str]) -> Optional[NormalizedArticle]:
    """Map a feedparser entry onto the article shape.

    Args:
        entry: feedparser entry
        feed_title: Title of the feed the entry belongs to

    Returns:
        NormalizedArticle, or None when the entry has no link to key it by
    """
    link = entry_link(entry)
    if not link:
        return None

    html = _entry_html(entry)

    return NormalizedArticle(
        title=entry.get("title") or "",
        link=link,
        summary=make_snippet(html) or html,
        image=extract_image(entry),
        published_at=pick_published(entry),
        feed_title=feed_title,
    )


def tweet_permalink(username: str, tweet_id: Any) -> str:
    return f"https://x.com/{username}/status/{tweet_id}"


def normalize_tweet(tweet: Any, username: str, feed_title: str) -> NormalizedArticle:
    """Map a tweet onto the article shape.

    Tweets carry no image; the title is the start of the text.
    """
    text = tweet.text or ""
    created_at = tweet.created_at

    if isinstance(created_at, datetime):
        published_at = created_at.isoformat()
    else:
        published_at = created_at

    return NormalizedArticle(
        title=text[:TWEET_TITLE_LENGTH],
        link=tweet_permalink(username, tweet.id),
        summary=text,
        image=None,
        published_at=published_at,
        feed_title=feed_title,
    )
