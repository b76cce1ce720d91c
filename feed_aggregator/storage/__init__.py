"""Storage layer for feed_aggregator."""

from .database import (
    open_database,
    init_database,
    close_database,
    upsert_feed,
    get_feed,
    get_feed_by_url,
    list_feeds,
    list_refresh_targets,
    delete_feed,
    set_feed_category,
    touch_feed,
    add_articles,
    search_articles,
    set_article_read,
    set_article_bookmarked,
)

__all__ = [
    "open_database",
    "init_database",
    "close_database",
    "upsert_feed",
    "get_feed",
    "get_feed_by_url",
    "list_feeds",
    "list_refresh_targets",
    "delete_feed",
    "set_feed_category",
    "touch_feed",
    "add_articles",
    "search_articles",
    "set_article_read",
    "set_article_bookmarked",
]
