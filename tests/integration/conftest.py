"""Fixtures for API integration tests."""

import pytest
from fastapi.testclient import TestClient

from feed_aggregator.config import ServerConfig, TwitterCredentials
from feed_aggregator.server.app import create_app


@pytest.fixture
def config(tmp_path):
    # Timer disabled; refreshes are triggered explicitly
    return ServerConfig(
        db_path=tmp_path / "feeds.db",
        refresh_interval_minutes=0,
        twitter=TwitterCredentials(),
    )


@pytest.fixture
def app(config):
    return create_app(config)


@pytest.fixture
def client(app):
    # Context manager runs the lifespan, which opens the database
    with TestClient(app) as c:
        yield c
