"""Core interfaces for adapters."""

from abc import ABC, abstractmethod
from typing import Optional

from newsbot.core.entities import Enrichment, Item, RankedItem, RawFeedEntry, Source
from newsbot.core.windows import TimeWindow


class ItemStore(ABC):
    """Durable record of sources, items and enrichments."""

    @abstractmethod
    def upsert_sources(self, sources: list[Source]) -> None:
        """Insert or replace sources keyed by domain."""
        pass

    @abstractmethod
    def list_sources(self) -> list[Source]:
        """All sources ordered by rank."""
        pass

    @abstractmethod
    def insert_item_if_absent(self, item: Item) -> bool:
        """Insert an item unless its URL is known. Returns True if inserted."""
        pass

    @abstractmethod
    def items_in_window(self, window: TimeWindow) -> list[Item]:
        pass

    @abstractmethod
    def latest_items(self, limit: int) -> list[Item]:
        pass

    @abstractmethod
    def unenriched_items(self, window: TimeWindow) -> list[Item]:
        """Items in the window without an enrichment row."""
        pass

    @abstractmethod
    def unsummarized_enriched(self, window: TimeWindow, min_score: int = 0) -> list[RankedItem]:
        """Scored items in the window whose summary is still empty."""
        pass

    @abstractmethod
    def ranked_enriched(self, window: TimeWindow, limit: Optional[int] = None) -> list[RankedItem]:
        """Enriched items in the window by total score, highest first."""
        pass

    @abstractmethod
    def undelivered_ranked(self, window: TimeWindow, limit: int = 20) -> list[RankedItem]:
        """Like ranked_enriched, restricted to items not yet delivered."""
        pass

    @abstractmethod
    def get_ranked_item(self, item_id: int) -> Optional[RankedItem]:
        pass

    @abstractmethod
    def upsert_enrichment(self, enrichment: Enrichment) -> None:
        """Insert or overwrite the enrichment of an item (never its delivery mark)."""
        pass

    @abstractmethod
    def mark_delivered(self, item_ids: list[int]) -> int:
        """Set the delivery mark on items that do not have one yet."""
        pass


class LLMClient(ABC):
    """Interface for model backends."""

    @abstractmethod
    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Return the model's reply text."""
        pass


class Notifier(ABC):
    """Delivery channel for digests."""

    markup = "markdown"

    @abstractmethod
    async def send(self, title: str, body: str) -> None:
        """Deliver a message. Raises DeliveryError on failure."""
        pass


class FeedFetcher(ABC):
    """Retrieval transport for feeds."""

    @abstractmethod
    async def fetch(self, url: str) -> list[RawFeedEntry]:
        """Fetch and parse the feed at url."""
        pass


class SourceDiscovery(ABC):
    """Ranks candidate sources."""

    @abstractmethod
    async def fetch_top_sources(self, limit: int) -> list[Source]:
        pass
