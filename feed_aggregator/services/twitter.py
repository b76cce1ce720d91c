"""Twitter/X timeline service.

This module fetches a profile's recent tweets through the Twitter API v2
and normalizes them into articles.
"""

import logging

import tweepy
from tweepy.asynchronous import AsyncClient

from feed_aggregator.config import TwitterCredentials
from feed_aggregator.services.feed_parser import ParsedFeed
from feed_aggregator.services.normalizer import normalize_tweet
from feed_aggregator.services.sources import FeedFetchError


logger = logging.getLogger(__name__)

TIMELINE_SIZE = 10


def timeline_title(username: str) -> str:
    return f"Tweets by {username}"


def _make_client(credentials: TwitterCredentials) -> AsyncClient:
    return AsyncClient(
        consumer_key=credentials.app_key,
        consumer_secret=credentials.app_secret,
        access_token=credentials.access_token,
        access_token_secret=credentials.access_secret,
    )


async def fetch_timeline(username: str, credentials: TwitterCredentials) -> ParsedFeed:
    """Fetch the most recent tweets of a profile.

    Args:
        username: Profile username, without the leading @
        credentials: Service tokens for the API

    Returns:
        ParsedFeed titled "Tweets by <username>" with up to 10 items

    Raises:
        FeedFetchError: If credentials are missing, the user does not exist
            or the API call fails
    """
    if not credentials.is_complete:
        raise FeedFetchError("Twitter/X credentials are not configured")

    logger.info(f"Using Twitter API for {username}")
    client = _make_client(credentials)

    try:
        user = await client.get_user(username=username, user_auth=True)
        if user.data is None:
            raise FeedFetchError(f"Twitter/X user not found: {username}")

        tweets = await client.get_users_tweets(
            user.data.id,
            max_results=TIMELINE_SIZE,
            tweet_fields=["created_at", "text"],
            user_auth=True,
        )
    except tweepy.TweepyException as e:
        raise FeedFetchError(f"Twitter/X API request failed for {username}: {e}") from e

    title = timeline_title(username)
    items = [normalize_tweet(tweet, username, title) for tweet in tweets.data or []]

    logger.info(f"Fetched {len(items)} tweets for {username}")
    return ParsedFeed(title=title, items=items)
