"""Unit tests for source classification."""

import pytest

from feed_aggregator.services.sources import SourceKind, classify_source


class TestClassifySource:
    """Tests for URL classification."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com/feed.xml",
            "https://blog.example.org/rss",
            "https://netflix.com/jobs",
            "https://www.youtube.com/feeds/videos.xml?channel_id=UC123",
            "https://www.youtube.com/feeds/videos.xml?playlist_id=PL123",
        ],
    )
    def test_generic_urls(self, url):
        """Test that ordinary and already-rewritten URLs are generic."""
        assert classify_source(url).kind is SourceKind.GENERIC

    def test_youtube_handle(self):
        source = classify_source("https://www.youtube.com/@SomeCreator")

        assert source.kind is SourceKind.YOUTUBE_HANDLE
        assert source.identifier == "https://www.youtube.com/@SomeCreator"

    def test_youtube_channel(self):
        source = classify_source("https://www.youtube.com/channel/ABC123")

        assert source.kind is SourceKind.YOUTUBE_CHANNEL
        assert source.identifier == "ABC123"

    def test_youtube_playlist(self):
        source = classify_source("https://www.youtube.com/playlist?list=PL123")

        assert source.kind is SourceKind.YOUTUBE_PLAYLIST
        assert source.identifier == "PL123"

    def test_youtube_short_link_with_playlist(self):
        source = classify_source("https://youtu.be/dQw4w9WgXcQ?list=PLabc_-1")

        assert source.kind is SourceKind.YOUTUBE_PLAYLIST
        assert source.identifier == "PLabc_-1"

    def test_playlist_wins_over_channel(self):
        """Test that a list= parameter takes precedence over a channel path."""
        source = classify_source("https://www.youtube.com/channel/UC1?list=PL9")

        assert source.kind is SourceKind.YOUTUBE_PLAYLIST
        assert source.identifier == "PL9"

    def test_unmatched_youtube_url_is_generic(self):
        """Test that a watch page falls through to the generic fetcher."""
        source = classify_source("https://www.youtube.com/watch?v=abc")

        assert source.kind is SourceKind.GENERIC

    @pytest.mark.parametrize(
        "url",
        [
            "https://twitter.com/jack",
            "https://x.com/jack",
            "https://www.x.com/jack/",
            "https://mobile.twitter.com/jack/with_replies",
            "x.com/jack",
        ],
    )
    def test_twitter_profiles(self, url):
        source = classify_source(url)

        assert source.kind is SourceKind.TWITTER_PROFILE
        assert source.identifier == "jack"

    def test_twitter_without_username_is_generic(self):
        assert classify_source("https://x.com/").kind is SourceKind.GENERIC

    def test_surrounding_whitespace_is_ignored(self):
        source = classify_source("  https://www.youtube.com/channel/ABC123  ")

        assert source.kind is SourceKind.YOUTUBE_CHANNEL
        assert source.url == "https://www.youtube.com/channel/ABC123"
