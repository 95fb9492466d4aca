"""Core domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class Source:
    """Ranked origin (a web domain) that items are harvested from."""

    domain: str
    score: int = 0
    author: str = ""
    rank: int = 0
    id: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.domain:
            raise ValueError("Domain cannot be empty")


@dataclass
class Item:
    """Harvested article, unique by URL."""

    source: str
    title: str
    url: str
    summary: str
    published_at: Optional[datetime]
    harvested_at: datetime
    id: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("URL cannot be empty")


@dataclass
class Enrichment:
    """Model-derived scores and summary attached to one item."""

    item_id: int
    relevance: int
    quality: int
    timeliness: int
    category: str
    keywords: list[str]
    enriched_at: datetime
    synopsis: str = ""
    localized_title: str = ""
    recommendation: str = ""
    delivered_at: Optional[datetime] = None

    @property
    def total_score(self) -> int:
        return self.relevance + self.quality + self.timeliness

    @property
    def is_summarized(self) -> bool:
        return bool(self.synopsis)


@dataclass
class RankedItem:
    """Item joined with its enrichment."""

    item: Item
    enrichment: Enrichment


@dataclass
class RawFeedEntry:
    """Feed entry as returned by the retrieval transport."""

    title: str = ""
    link: str = ""
    links: list[str] = field(default_factory=list)
    summary: str = ""
    content: str = ""
    published: Optional[datetime] = None
    updated: Optional[datetime] = None


@dataclass
class ScoreResult:
    """Stage A output: sub-scores, category and keywords."""

    relevance: int
    quality: int
    timeliness: int
    category: str
    keywords: list[str]

    @property
    def total_score(self) -> int:
        return self.relevance + self.quality + self.timeliness


@dataclass
class SummaryResult:
    """Stage B output."""

    synopsis: str
    localized_title: str
    recommendation: str


@dataclass
class Trend:
    """Thematic cluster of ranked items."""

    title: str
    description: str
    articles: list[str]


@dataclass
class TrendReport:
    trends: list[Trend]


@dataclass
class StageFailure:
    """Failure recorded by the orchestrator for one stage."""

    stage: str
    message: str


@dataclass
class CycleReport:
    """Outcome of one pipeline cycle."""

    harvested: int = 0
    enriched: int = 0
    summarized: int = 0
    delivered: int = 0
    errors: list[StageFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors
