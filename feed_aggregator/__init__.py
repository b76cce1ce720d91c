"""feed_aggregator - personal RSS/Atom, YouTube and Twitter/X feed aggregator."""

__version__ = "0.1.0"
