"""Shared test data builders and fakes."""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from newsbot.adapters.storage import SQLiteItemStore
from newsbot.config import PromptsConfig
from newsbot.core import (
    DeliveryError,
    Enrichment,
    FeedFetcher,
    FeedFetchError,
    Item,
    LLMClient,
    Notifier,
    RawFeedEntry,
)

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return NOW


def make_item(
    url: str,
    source: str = "example.com",
    title: str = "Test Article",
    summary: str = "Article summary",
    published_at: Optional[datetime] = NOW - timedelta(hours=1),
) -> Item:
    return Item(
        source=source,
        title=title,
        url=url,
        summary=summary,
        published_at=published_at,
        harvested_at=NOW,
    )


def make_enrichment(
    item_id: int,
    relevance: int = 5,
    quality: int = 5,
    timeliness: int = 5,
    synopsis: str = "A synopsis",
    category: str = "Systems",
    keywords: Optional[list[str]] = None,
) -> Enrichment:
    return Enrichment(
        item_id=item_id,
        relevance=relevance,
        quality=quality,
        timeliness=timeliness,
        category=category,
        keywords=["rust", "databases"] if keywords is None else keywords,
        enriched_at=NOW,
        synopsis=synopsis,
        localized_title="Localized" if synopsis else "",
        recommendation="Worth reading" if synopsis else "",
    )


def stored_item(store: SQLiteItemStore, url: str, **kwargs) -> Item:
    """Insert an item and return it with its id."""
    store.insert_item_if_absent(make_item(url, **kwargs))
    return next(i for i in store.latest_items(1000) if i.url == url)


def make_entry(n: int, published: Optional[datetime] = NOW - timedelta(hours=2)) -> RawFeedEntry:
    return RawFeedEntry(
        title=f"Post {n}",
        link=f"https://blog.example.com/post-{n}",
        summary=f"<p>Body of post {n}</p>",
        published=published,
    )


def score_json(relevance: int = 8, quality: int = 7, timeliness: int = 6) -> str:
    return json.dumps({
        "relevance": relevance,
        "quality": quality,
        "timeliness": timeliness,
        "category": "AI/ML",
        "keywords": ["llm", "inference"],
    })


def summary_json(summary: str = "Short synopsis.") -> str:
    return json.dumps({
        "summary": summary,
        "title_localized": "Localized title",
        "recommend_reason": "Worth reading",
    })


def trends_json() -> str:
    return json.dumps({
        "trends": [
            {"title": "Local inference", "description": "Models move to the edge.",
             "articles": ["Post 1"]},
            {"title": "Databases", "description": "SQLite everywhere.", "articles": []},
        ]
    })


Reply = Union[str, Exception]


class ScriptedLLM(LLMClient):
    """Model backend answering by stage (score, summary, trends).

    A stage maps to one reply used for every call, or a list consumed in order
    (the last entry repeats). Exceptions are raised instead of returned.
    """

    def __init__(self, prompts: Optional[PromptsConfig] = None, **replies) -> None:
        self.prompts = prompts or PromptsConfig()
        self.replies = replies
        self.calls: list[tuple[str, str]] = []

    def _stage(self, system_prompt: str) -> str:
        for name in ("score", "summary", "trends"):
            if getattr(self.prompts, name)["system"] == system_prompt:
                return name
        raise AssertionError("unexpected system prompt")

    def count(self, stage: str) -> int:
        return sum(1 for name, _ in self.calls if name == stage)

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        stage = self._stage(system_prompt)
        self.calls.append((stage, user_prompt))

        reply = self.replies[stage]
        if isinstance(reply, list):
            n = self.count(stage) - 1
            reply = reply[min(n, len(reply) - 1)]
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeFetcher(FeedFetcher):
    """Feed transport serving canned entries by URL.

    Unknown URLs raise FeedFetchError; URLs in ``hang`` sleep past any timeout.
    """

    def __init__(self, feeds: Optional[dict] = None, hang: Optional[set] = None) -> None:
        self.feeds = feeds or {}
        self.hang = hang or set()
        self.requested: list[str] = []

    async def fetch(self, url: str) -> list[RawFeedEntry]:
        self.requested.append(url)
        if url in self.hang:
            await asyncio.sleep(3600)
        result = self.feeds.get(url)
        if result is None:
            raise FeedFetchError(f"GET {url}: HTTP 404")
        if isinstance(result, Exception):
            raise result
        return result


class RecordingNotifier(Notifier):
    def __init__(self, markup: str = "markdown", fail: bool = False) -> None:
        self.markup = markup
        self.fail = fail
        self.sent: list[tuple[str, str]] = []

    async def send(self, title: str, body: str) -> None:
        if self.fail:
            raise DeliveryError("channel unavailable")
        self.sent.append((title, body))


async def no_sleep(seconds: float) -> None:
    return None
