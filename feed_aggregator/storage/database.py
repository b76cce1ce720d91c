"""Database storage for feed_aggregator.

This module provides async SQLite operations for managing feeds and articles.
Every operation takes the connection it works on; the connection is opened
once at startup with ``open_database`` and closed with ``close_database``.
Database location: ~/.feed_aggregator/feed_aggregator.db (or FEED_AGGREGATOR_DB_PATH env var)
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

import aiosqlite

from feed_aggregator.models.schemas import Article, Feed, NormalizedArticle


# Default page size when listing articles without a search term
DEFAULT_ARTICLE_LIMIT = 100


async def open_database(db_path: Union[str, Path]) -> aiosqlite.Connection:
    """Open a database connection and make sure the schema exists.

    Args:
        db_path: Path of the SQLite file, or ":memory:"

    Returns:
        Active database connection
    """
    if str(db_path) != ":memory:":
        # Ensure directory exists
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    db = await aiosqlite.connect(db_path)
    db.row_factory = aiosqlite.Row
    # SQLite's own LIKE/lower() only fold ASCII letters
    await db.create_function("casefold", 1, _casefold, deterministic=True)
    await init_database(db)
    return db


def _casefold(value: Optional[str]) -> Optional[str]:
    return value.casefold() if value else value


async def init_database(db: aiosqlite.Connection) -> None:
    """Initialize database tables if they don't exist.

    Args:
        db: Database connection
    """
    await db.execute("PRAGMA foreign_keys = ON")

    await db.execute("""
        CREATE TABLE IF NOT EXISTS feeds (
            id INTEGER PRIMARY KEY,
            url TEXT NOT NULL UNIQUE,
            title TEXT,
            category TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            last_updated TIMESTAMP
        )
    """)

    await db.execute("""
        CREATE TABLE IF NOT EXISTS articles (
            id INTEGER PRIMARY KEY,
            feed_id INTEGER NOT NULL,
            title TEXT,
            link TEXT NOT NULL UNIQUE,
            summary TEXT,
            image TEXT,
            published_at TIMESTAMP,
            is_read BOOLEAN DEFAULT FALSE,
            is_bookmarked BOOLEAN DEFAULT FALSE,
            FOREIGN KEY (feed_id) REFERENCES feeds(id) ON DELETE CASCADE
        )
    """)

    # Create indexes for faster lookups
    await db.execute("""
        CREATE INDEX IF NOT EXISTS idx_articles_feed_id ON articles(feed_id)
    """)

    await db.execute("""
        CREATE INDEX IF NOT EXISTS idx_articles_published_at ON articles(published_at)
    """)

    await db.commit()


async def close_database(db: Optional[aiosqlite.Connection]) -> None:
    """Close the database connection."""
    if db is not None:
        await db.close()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_feed(row: aiosqlite.Row) -> Feed:
    return Feed(
        id=row["id"],
        url=row["url"],
        title=row["title"],
        category=row["category"],
        created_at=row["created_at"],
        last_updated=row["last_updated"],
    )


def _row_to_article(row: aiosqlite.Row) -> Article:
    keys = row.keys()
    return Article(
        id=row["id"],
        feed_id=row["feed_id"],
        title=row["title"],
        link=row["link"],
        summary=row["summary"],
        image=row["image"],
        published_at=row["published_at"],
        is_read=bool(row["is_read"]),
        is_bookmarked=bool(row["is_bookmarked"]),
        feed_title=row["feed_title"] if "feed_title" in keys else None,
        category=row["category"] if "category" in keys else None,
    )


async def upsert_feed(
    db: aiosqlite.Connection,
    url: str,
    title: Optional[str],
    category: Optional[str] = None,
) -> bool:
    """Insert a feed unless one with the same URL already exists.

    An existing feed keeps its title and category.

    Args:
        db: Database connection
        url: Feed URL (unique key)
        title: Display title
        category: Optional category

    Returns:
        True if a new row was inserted
    """
    cursor = await db.execute(
        "INSERT OR IGNORE INTO feeds (url, title, category) VALUES (?, ?, ?)",
        (url, title, category),
    )
    await db.commit()
    return cursor.rowcount > 0


async def get_feed_by_url(db: aiosqlite.Connection, url: str) -> Optional[Feed]:
    """Get a feed by its URL.

    Args:
        db: Database connection
        url: Feed URL

    Returns:
        Feed object if found, None otherwise
    """
    cursor = await db.execute("SELECT * FROM feeds WHERE url = ?", (url,))
    row = await cursor.fetchone()

    if row is None:
        return None

    return _row_to_feed(row)


async def get_feed(db: aiosqlite.Connection, feed_id: int) -> Optional[Feed]:
    """Get a feed by its id."""
    cursor = await db.execute("SELECT * FROM feeds WHERE id = ?", (feed_id,))
    row = await cursor.fetchone()
    return _row_to_feed(row) if row is not None else None


async def list_feeds(db: aiosqlite.Connection) -> List[Feed]:
    """List all feeds, most recently created first.

    Args:
        db: Database connection

    Returns:
        List of Feed objects
    """
    cursor = await db.execute("SELECT * FROM feeds ORDER BY created_at DESC, id DESC")

    feeds = []
    async for row in cursor:
        feeds.append(_row_to_feed(row))

    return feeds


async def list_refresh_targets(db: aiosqlite.Connection) -> List[Tuple[int, str]]:
    """Return (id, url) of every known feed, in insertion order."""
    cursor = await db.execute("SELECT id, url FROM feeds ORDER BY id")
    return [(row["id"], row["url"]) async for row in cursor]


async def delete_feed(db: aiosqlite.Connection, feed_id: int) -> bool:
    """Remove a feed and all its articles.

    Args:
        db: Database connection
        feed_id: ID of the feed to remove

    Returns:
        True if the feed existed and was removed
    """
    # Delete articles first (foreign key constraint)
    await db.execute("DELETE FROM articles WHERE feed_id = ?", (feed_id,))

    cursor = await db.execute("DELETE FROM feeds WHERE id = ?", (feed_id,))
    await db.commit()

    return cursor.rowcount > 0


async def set_feed_category(
    db: aiosqlite.Connection, feed_id: int, category: Optional[str]
) -> int:
    """Overwrite a feed's category.

    Returns:
        Number of feeds updated (0 if the id is unknown)
    """
    cursor = await db.execute(
        "UPDATE feeds SET category = ? WHERE id = ?",
        (category, feed_id),
    )
    await db.commit()
    return cursor.rowcount


async def touch_feed(db: aiosqlite.Connection, feed_id: int) -> None:
    """Update the last_updated timestamp for a feed.

    Args:
        db: Database connection
        feed_id: ID of the feed
    """
    await db.execute(
        "UPDATE feeds SET last_updated = ? WHERE id = ?",
        (_now(), feed_id),
    )
    await db.commit()


async def add_articles(
    db: aiosqlite.Connection, feed_id: int, articles: Iterable[NormalizedArticle]
) -> int:
    """Add new articles to the database, skipping links already stored.

    Existing rows are never updated, even when the upstream content changed.

    Args:
        db: Database connection
        feed_id: ID of the feed these articles belong to
        articles: Normalized articles

    Returns:
        Number of articles actually added (excludes duplicates)
    """
    added_count = 0

    for article in articles:
        cursor = await db.execute(
            """
            INSERT OR IGNORE INTO articles (feed_id, title, link, summary, image, published_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                feed_id,
                article.title,
                article.link,
                article.summary,
                article.image,
                article.published_at,
            ),
        )
        added_count += cursor.rowcount

    await db.commit()
    return added_count


async def search_articles(
    db: aiosqlite.Connection,
    query: Optional[str] = None,
    limit: int = DEFAULT_ARTICLE_LIMIT,
) -> List[Article]:
    """Search or list articles joined with their feed's title and category.

    With a query, returns every article whose title or summary contains it
    as a literal substring, compared case-insensitively (Unicode casefold).
    Without one, returns the ``limit`` most recently published articles.

    Args:
        db: Database connection
        query: Optional search term
        limit: Maximum number of articles when listing without a query

    Returns:
        List of Article objects, newest first
    """
    sql = """
        SELECT a.*, f.title AS feed_title, f.category AS category
        FROM articles a
        JOIN feeds f ON a.feed_id = f.id
    """
    params: List = []

    if query:
        term = query.casefold()
        sql += " WHERE instr(casefold(a.title), ?) > 0 OR instr(casefold(a.summary), ?) > 0"
        params.extend([term, term])
        sql += " ORDER BY a.published_at DESC, a.id DESC"
    else:
        sql += " ORDER BY a.published_at DESC, a.id DESC LIMIT ?"
        params.append(limit)

    cursor = await db.execute(sql, params)

    articles = []
    async for row in cursor:
        articles.append(_row_to_article(row))

    return articles


async def set_article_read(db: aiosqlite.Connection, article_id: int, is_read: bool) -> int:
    """Overwrite an article's read flag.

    Returns:
        Number of articles updated (0 if the id is unknown)
    """
    cursor = await db.execute(
        "UPDATE articles SET is_read = ? WHERE id = ?",
        (1 if is_read else 0, article_id),
    )
    await db.commit()
    return cursor.rowcount


async def set_article_bookmarked(
    db: aiosqlite.Connection, article_id: int, is_bookmarked: bool
) -> int:
    """Overwrite an article's bookmarked flag.

    Returns:
        Number of articles updated (0 if the id is unknown)
    """
    cursor = await db.execute(
        "UPDATE articles SET is_bookmarked = ? WHERE id = ?",
        (1 if is_bookmarked else 0, article_id),
    )
    await db.commit()
    return cursor.rowcount
