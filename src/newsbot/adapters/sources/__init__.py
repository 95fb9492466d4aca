"""Source adapters: feed retrieval and source discovery."""

from newsbot.adapters.sources.feed_fetcher import HttpFeedFetcher
from newsbot.adapters.sources.hn_popularity import HNPopularityDiscovery

__all__ = ["HttpFeedFetcher", "HNPopularityDiscovery"]
