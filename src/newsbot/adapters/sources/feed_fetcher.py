"""HTTP feed retrieval and parsing."""

import logging
from calendar import timegm
from datetime import datetime, timezone
from typing import Optional

import feedparser
import httpx

from newsbot.core import FeedFetcher, FeedFetchError, RawFeedEntry

logger = logging.getLogger(__name__)


class HttpFeedFetcher(FeedFetcher):
    """Fetch a URL with httpx and parse it as RSS/Atom with feedparser."""

    def __init__(self, timeout: float = 15.0, user_agent: str = "newsbot/0.1") -> None:
        self.timeout = timeout
        self.user_agent = user_agent

    async def fetch(self, url: str) -> list[RawFeedEntry]:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
            ) as client:
                response = await client.get(url)
        except httpx.RequestError as e:
            raise FeedFetchError(f"GET {url}: {e}") from e

        if response.status_code != 200:
            raise FeedFetchError(f"GET {url}: HTTP {response.status_code}")

        return self._parse_feed(url, response.content, response.headers.get("content-type", ""))

    def _parse_feed(self, url: str, content: bytes, content_type: str = "") -> list[RawFeedEntry]:
        """Parse RSS/Atom bytes into transport-neutral entries."""
        feed = feedparser.parse(content, response_headers={"content-type": content_type})

        if feed.bozo and not feed.entries:
            raise FeedFetchError(f"{url}: not a feed ({feed.get('bozo_exception')})")
        if not feed.version and not feed.entries:
            raise FeedFetchError(f"{url}: not an RSS or Atom document")

        logger.debug("Parsed %d entries from %s", len(feed.entries), url)
        return [self._entry_to_raw(entry) for entry in feed.entries]

    @staticmethod
    def _entry_to_raw(entry: feedparser.FeedParserDict) -> RawFeedEntry:
        contents = entry.get("content") or []
        content = contents[0].get("value", "") if contents else ""
        links = [link.get("href", "") for link in entry.get("links", []) if link.get("href")]

        return RawFeedEntry(
            title=entry.get("title", ""),
            link=entry.get("link", ""),
            links=links,
            summary=entry.get("summary", ""),
            content=content,
            published=_parse_time(entry.get("published_parsed")),
            updated=_parse_time(entry.get("updated_parsed")),
        )


def _parse_time(time_struct) -> Optional[datetime]:
    if not time_struct:
        return None
    try:
        return datetime.fromtimestamp(timegm(time_struct), tz=timezone.utc)
    except (ValueError, OverflowError, TypeError):
        return None
