"""Services for feed_aggregator."""

from .sources import ClassifiedSource, FeedFetchError, SourceKind, classify_source
from .feed_parser import ParsedFeed, parse_feed
from .pipeline import fetch_and_store, fetch_source, resolve_fetch_target
from .opml import OpmlEntry, OpmlError, build_opml, parse_opml
from .refresher import FeedRefresher, RefreshSummary

__all__ = [
    "ClassifiedSource",
    "FeedFetchError",
    "SourceKind",
    "classify_source",
    "ParsedFeed",
    "parse_feed",
    "fetch_and_store",
    "fetch_source",
    "resolve_fetch_target",
    "OpmlEntry",
    "OpmlError",
    "build_opml",
    "parse_opml",
    "FeedRefresher",
    "RefreshSummary",
]
