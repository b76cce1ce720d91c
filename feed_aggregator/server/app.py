"""feed_aggregator - HTTP API

This module implements the JSON API with FastAPI: fetching feeds, listing and
searching articles, read/bookmark state, categories, OPML import/export and
manual refresh. The database connection and the background refresher are
owned by the application lifespan.
"""

import sys
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import aiosqlite
import click
import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from feed_aggregator.config import ServerConfig, get_config
from feed_aggregator.logging_config import logger, setup_logging
from feed_aggregator.models.schemas import Article, Feed, NormalizedArticle
from feed_aggregator.services.opml import OpmlError, build_opml, parse_opml
from feed_aggregator.services.pipeline import fetch_and_store
from feed_aggregator.services.refresher import FeedRefresher
from feed_aggregator.storage import database


class CategoryUpdate(BaseModel):
    category: Optional[str] = None


class ReadUpdate(BaseModel):
    isRead: bool = False


class BookmarkUpdate(BaseModel):
    isBookmarked: bool = False


class OpmlImport(BaseModel):
    xml: Optional[str] = None


def feed_to_dict(feed: Feed) -> Dict[str, Any]:
    return {
        "id": feed.id,
        "url": feed.url,
        "title": feed.title,
        "category": feed.category,
        "createdAt": feed.created_at,
        "lastUpdated": feed.last_updated,
    }


def article_to_dict(article: Article) -> Dict[str, Any]:
    return {
        "id": article.id,
        "feedId": article.feed_id,
        "title": article.title,
        "link": article.link,
        "summary": article.summary,
        "image": article.image,
        "publishedAt": article.published_at,
        "isRead": article.is_read,
        "isBookmarked": article.is_bookmarked,
        "feedTitle": article.feed_title,
        "category": article.category,
    }


def item_to_dict(item: NormalizedArticle) -> Dict[str, Any]:
    return {
        "title": item.title,
        "link": item.link,
        "summary": item.summary,
        "image": item.image,
        "publishedAt": item.published_at,
        "feedTitle": item.feed_title,
    }


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def get_db(request: Request) -> aiosqlite.Connection:
    return request.app.state.db


def get_refresher(request: Request) -> FeedRefresher:
    return request.app.state.refresher


def get_server_config(request: Request) -> ServerConfig:
    return request.app.state.config


router = APIRouter(prefix="/api")


# ---------------------------------------------------------------------------
# Fetch
# ---------------------------------------------------------------------------

@router.get("/fetch")
async def fetch_feed(
    url: Optional[str] = None,
    db: aiosqlite.Connection = Depends(get_db),
    config: ServerConfig = Depends(get_server_config),
):
    if not url or not url.strip():
        return error_response(400, "Missing ?url=")

    try:
        result = await fetch_and_store(db, url.strip(), config.twitter)
    except Exception as e:
        logger.error(f"Error parsing feed {url}: {e}")
        return error_response(500, "Failed to fetch feed")

    return {
        "title": result.title,
        "url": result.url,
        "items": [item_to_dict(item) for item in result.items],
    }


# ---------------------------------------------------------------------------
# Feed management
# ---------------------------------------------------------------------------

@router.get("/feeds")
async def list_feeds(db: aiosqlite.Connection = Depends(get_db)):
    feeds = await database.list_feeds(db)
    return [feed_to_dict(feed) for feed in feeds]


@router.get("/feeds/export")
async def export_feeds(db: aiosqlite.Connection = Depends(get_db)):
    feeds = await database.list_feeds(db)
    return Response(
        content=build_opml(feeds),
        media_type="text/xml",
        headers={"Content-Disposition": "attachment; filename=feeds.opml"},
    )


@router.post("/feeds/import")
async def import_feeds(payload: OpmlImport, db: aiosqlite.Connection = Depends(get_db)):
    if not payload.xml:
        return error_response(400, "Missing OPML XML data")

    try:
        entries = parse_opml(payload.xml)
    except OpmlError as e:
        logger.error(f"OPML import failed: {e}")
        return error_response(500, "Invalid OPML file")

    imported = 0
    for entry in entries:
        if await database.upsert_feed(db, entry.url, entry.title, entry.category):
            imported += 1

    logger.info(f"Imported {imported} of {len(entries)} OPML feeds")
    return {"success": True, "imported": imported}


@router.post("/feeds/refresh")
async def refresh_feeds(refresher: FeedRefresher = Depends(get_refresher)):
    try:
        await refresher.refresh_all()
    except Exception as e:
        logger.error(f"Manual refresh failed: {e}")
        return error_response(500, "Refresh failed")

    return {"success": True}


@router.delete("/feeds/{feed_id}")
async def delete_feed(feed_id: int, db: aiosqlite.Connection = Depends(get_db)):
    removed = await database.delete_feed(db, feed_id)
    return {"success": removed}


@router.post("/feeds/{feed_id}/category")
async def set_category(
    feed_id: int, payload: CategoryUpdate, db: aiosqlite.Connection = Depends(get_db)
):
    await database.set_feed_category(db, feed_id, payload.category)
    return {"success": True}


# ---------------------------------------------------------------------------
# Articles + search
# ---------------------------------------------------------------------------

@router.get("/articles")
async def list_articles(q: Optional[str] = None, db: aiosqlite.Connection = Depends(get_db)):
    articles = await database.search_articles(db, q or None)
    return [article_to_dict(article) for article in articles]


@router.post("/articles/{article_id}/read")
async def mark_read(
    article_id: int, payload: ReadUpdate, db: aiosqlite.Connection = Depends(get_db)
):
    await database.set_article_read(db, article_id, payload.isRead)
    return {"success": True}


@router.post("/articles/{article_id}/bookmark")
async def mark_bookmarked(
    article_id: int, payload: BookmarkUpdate, db: aiosqlite.Connection = Depends(get_db)
):
    await database.set_article_bookmarked(db, article_id, payload.isBookmarked)
    return {"success": True}


def create_app(config: Optional[ServerConfig] = None) -> FastAPI:
    """Create and configure the API application.

    Args:
        config: Optional server configuration

    Returns:
        Configured FastAPI application
    """
    if config is None:
        config = get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(config)
        logger.info(f"Opening database at {config.db_path}")

        db = await database.open_database(config.db_path)
        refresher = FeedRefresher(db, config)
        app.state.db = db
        app.state.refresher = refresher
        refresher.start()

        try:
            yield
        finally:
            refresher.shutdown()
            await database.close_database(db)
            logger.info("Database closed")

    app = FastAPI(title=config.name, lifespan=lifespan)
    app.state.config = config

    # The frontend is hosted separately
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)

    return app


@click.command()
@click.option("--host", default=None, help="Host to bind to (use 0.0.0.0 for Docker)")
@click.option("--port", default=None, type=int, help="Port to listen on")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level (defaults to LOG_LEVEL or INFO)",
)
def main(host: Optional[str], port: Optional[int], log_level: Optional[str]) -> int:
    """Run the feed_aggregator API server."""
    config = get_config()
    if host:
        config.host = host
    if port:
        config.port = port
    if log_level:
        config.log_level = log_level.upper()

    setup_logging(config)

    try:
        logger.info(f"Server running on http://{config.host}:{config.port}")
        uvicorn.run(create_app(config), host=config.host, port=config.port, log_level=config.log_level.lower())
        return 0
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
        return 0
    except Exception as e:
        logger.error(f"Failed to start server: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
