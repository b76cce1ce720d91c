"""Configuration for feed_aggregator.

Settings come from environment variables. A ``.env`` file in the working
directory is loaded first, so local development can keep the Twitter/X
tokens out of the shell environment.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


DEFAULT_PORT = 3001
DEFAULT_REFRESH_INTERVAL_MINUTES = 15


@dataclass
class TwitterCredentials:
    """Service tokens for the Twitter/X API (OAuth 1.0a user context)."""

    app_key: Optional[str] = None
    app_secret: Optional[str] = None
    access_token: Optional[str] = None
    access_secret: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return all((self.app_key, self.app_secret, self.access_token, self.access_secret))


@dataclass
class ServerConfig:
    """Runtime settings for the aggregator server."""

    name: str = "feed_aggregator"
    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    db_path: Path = field(default_factory=lambda: Path.home() / ".feed_aggregator" / "feed_aggregator.db")
    log_level: str = "INFO"
    refresh_interval_minutes: int = DEFAULT_REFRESH_INTERVAL_MINUTES
    twitter: TwitterCredentials = field(default_factory=TwitterCredentials)


def _int_env(name: str, default: int) -> int:
    value = os.environ.get(name, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ValueError(f"Environment variable {name} must be an integer, got {value!r}") from e


def load_config() -> ServerConfig:
    """Build a ServerConfig from the environment.

    Returns:
        A freshly loaded configuration
    """
    load_dotenv()

    db_path = os.environ.get("FEED_AGGREGATOR_DB_PATH")

    return ServerConfig(
        host=os.environ.get("HOST", "127.0.0.1"),
        port=_int_env("PORT", DEFAULT_PORT),
        db_path=Path(db_path) if db_path else Path.home() / ".feed_aggregator" / "feed_aggregator.db",
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        refresh_interval_minutes=_int_env("REFRESH_INTERVAL_MINUTES", DEFAULT_REFRESH_INTERVAL_MINUTES),
        twitter=TwitterCredentials(
            app_key=os.environ.get("TWITTER_APP_KEY"),
            app_secret=os.environ.get("TWITTER_APP_SECRET"),
            access_token=os.environ.get("TWITTER_ACCESS_TOKEN"),
            access_secret=os.environ.get("TWITTER_ACCESS_SECRET"),
        ),
    )


_config: Optional[ServerConfig] = None


def get_config() -> ServerConfig:
    """Return the process-wide configuration, loading it on first use."""
    global _config

    if _config is None:
        _config = load_config()

    return _config
