"""Unit tests for the feed refresher."""

import anyio
import pytest
from unittest.mock import AsyncMock, patch

from feed_aggregator.config import ServerConfig
from feed_aggregator.services.refresher import REFRESH_JOB_ID, FeedRefresher
from feed_aggregator.services.sources import FeedFetchError
from feed_aggregator.storage.database import close_database, open_database, upsert_feed


# Mark all tests as async
pytestmark = pytest.mark.anyio


@pytest.fixture
def anyio_backend():
    # APScheduler's AsyncIOScheduler needs an asyncio loop
    return "asyncio"


@pytest.fixture
async def db():
    connection = await open_database(":memory:")
    yield connection
    await close_database(connection)


@pytest.fixture
async def refresher(db):
    await upsert_feed(db, "https://a.example/feed", "A")
    await upsert_feed(db, "https://b.example/feed", "B")
    await upsert_feed(db, "https://c.example/feed", "C")
    refresher = FeedRefresher(db, ServerConfig(refresh_interval_minutes=0))
    yield refresher
    refresher.shutdown()


class TestRefreshAll:
    """Tests for a full refresh cycle."""

    async def test_refreshes_every_feed_in_order(self, refresher):
        with patch("feed_aggregator.services.refresher.fetch_and_store", AsyncMock()) as fetch:
            summary = await refresher.refresh_all()

        urls = [call.args[1] for call in fetch.await_args_list]
        assert urls == [
            "https://a.example/feed",
            "https://b.example/feed",
            "https://c.example/feed",
        ]
        assert summary.attempted == 3
        assert summary.succeeded == 3
        assert summary.failed == []

    async def test_refresh_targets_existing_rows(self, db, refresher):
        with patch("feed_aggregator.services.refresher.fetch_and_store", AsyncMock()) as fetch:
            await refresher.refresh_all()

        cursor = await db.execute("SELECT id FROM feeds ORDER BY id")
        ids = [row["id"] for row in await cursor.fetchall()]
        assert [call.kwargs["feed_id"] for call in fetch.await_args_list] == ids

    async def test_failures_are_swallowed_and_cycle_continues(self, refresher):
        async def flaky(db, url, twitter, feed_id=None):
            if "b.example" in url:
                raise FeedFetchError("upstream down")

        with patch("feed_aggregator.services.refresher.fetch_and_store", side_effect=flaky) as fetch:
            summary = await refresher.refresh_all()

        assert fetch.await_count == 3
        assert summary.succeeded == 2
        assert summary.failed == ["https://b.example/feed"]

    async def test_empty_store(self, db):
        refresher = FeedRefresher(db, ServerConfig(refresh_interval_minutes=0))

        with patch("feed_aggregator.services.refresher.fetch_and_store", AsyncMock()) as fetch:
            summary = await refresher.refresh_all()

        assert summary.attempted == 0
        fetch.assert_not_awaited()

    async def test_concurrent_runs_are_serialized(self, refresher):
        active = 0
        peak = 0

        async def slow(db, url, twitter, feed_id=None):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await anyio.sleep(0.01)
            active -= 1

        with patch("feed_aggregator.services.refresher.fetch_and_store", side_effect=slow) as fetch:
            async with anyio.create_task_group() as tg:
                tg.start_soon(refresher.refresh_all)
                tg.start_soon(refresher.refresh_all)

        assert peak == 1
        assert fetch.await_count == 6
        assert refresher.running is False


class TestScheduling:
    """Tests for the interval timer."""

    async def test_disabled_interval_schedules_nothing(self, refresher):
        refresher.start()

        assert refresher._scheduler is None

    async def test_interval_job_is_registered(self, db):
        refresher = FeedRefresher(db, ServerConfig(refresh_interval_minutes=15))
        refresher.start()
        try:
            job = refresher._scheduler.get_job(REFRESH_JOB_ID)
            assert job is not None
            assert job.trigger.interval.total_seconds() == 15 * 60
        finally:
            refresher.shutdown()

        assert refresher._scheduler is None
