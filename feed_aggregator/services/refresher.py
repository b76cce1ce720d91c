"""Background refresh of every known feed.

Runs are serialized: a manual trigger that arrives while a timer run is in
progress waits for it to finish, then performs its own full pass. Within a
run, feeds are fetched one after another.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

import aiosqlite
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from feed_aggregator.config import ServerConfig
from feed_aggregator.services.pipeline import fetch_and_store
from feed_aggregator.storage import database


logger = logging.getLogger(__name__)

REFRESH_JOB_ID = "refresh_feeds"


@dataclass
class RefreshSummary:
    """Per-run outcome, used for logging only."""

    attempted: int = 0
    succeeded: int = 0
    failed: List[str] = field(default_factory=list)


class FeedRefresher:
    """Re-fetches every stored feed, on demand or on a timer."""

    def __init__(self, db: aiosqlite.Connection, config: ServerConfig):
        self.db = db
        self.config = config
        self._lock = asyncio.Lock()
        self._scheduler: Optional[AsyncIOScheduler] = None

    @property
    def running(self) -> bool:
        return self._lock.locked()

    async def refresh_feed(self, url: str, feed_id: Optional[int] = None) -> bool:
        """Refresh one feed; failures are logged, never raised."""
        try:
            await fetch_and_store(self.db, url, self.config.twitter, feed_id=feed_id)
        except Exception as e:
            logger.warning(f"Failed to refresh {url}: {e}")
            return False

        logger.info(f"Refreshed: {url}")
        return True

    async def refresh_all(self) -> RefreshSummary:
        """Run one full refresh cycle over the current feed list."""
        async with self._lock:
            targets = await database.list_refresh_targets(self.db)
            logger.info(f"Auto-refreshing {len(targets)} feeds...")

            summary = RefreshSummary(attempted=len(targets))
            for feed_id, url in targets:
                if await self.refresh_feed(url, feed_id):
                    summary.succeeded += 1
                else:
                    summary.failed.append(url)

        logger.info(
            f"Refresh cycle done: {summary.succeeded}/{summary.attempted} succeeded"
        )
        return summary

    async def _scheduled_refresh(self) -> None:
        try:
            await self.refresh_all()
        except Exception as e:
            logger.error(f"Scheduled refresh failed: {e}", exc_info=True)

    def start(self) -> None:
        """Schedule refresh_all on the configured interval.

        A non-positive interval leaves the timer disabled.
        """
        interval = self.config.refresh_interval_minutes
        if interval <= 0:
            logger.info("Background refresh disabled")
            return

        self._scheduler = AsyncIOScheduler(
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": 30,
            }
        )
        self._scheduler.add_job(
            self._scheduled_refresh, "interval", minutes=interval, id=REFRESH_JOB_ID
        )
        self._scheduler.start()
        logger.info(f"Background refresh every {interval} minutes")

    def shutdown(self) -> None:
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
