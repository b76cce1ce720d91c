"""Data models for feed_aggregator."""

from .schemas import Article, Feed, FetchResult, NormalizedArticle

__all__ = [
    "Article",
    "Feed",
    "FetchResult",
    "NormalizedArticle",
]
