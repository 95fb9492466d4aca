"""Core domain layer."""

from newsbot.core.entities import (
    CycleReport,
    Enrichment,
    Item,
    RankedItem,
    RawFeedEntry,
    ScoreResult,
    Source,
    StageFailure,
    SummaryResult,
    Trend,
    TrendReport,
)
from newsbot.core.errors import (
    ConfigError,
    DeliveryError,
    DiscoveryError,
    FeedFetchError,
    FeedNotFoundError,
    ModelBackendError,
    ModelResponseError,
    NewsbotError,
    RetryExhaustedError,
    StoreError,
    UnsupportedWindowError,
)
from newsbot.core.interfaces import FeedFetcher, ItemStore, LLMClient, Notifier, SourceDiscovery
from newsbot.core.retry import RetryPolicy
from newsbot.core.windows import TimeWindow, utc_now

__all__ = [
    "Source",
    "Item",
    "Enrichment",
    "RankedItem",
    "RawFeedEntry",
    "ScoreResult",
    "SummaryResult",
    "Trend",
    "TrendReport",
    "StageFailure",
    "CycleReport",
    "NewsbotError",
    "ConfigError",
    "UnsupportedWindowError",
    "FeedFetchError",
    "FeedNotFoundError",
    "ModelBackendError",
    "ModelResponseError",
    "RetryExhaustedError",
    "StoreError",
    "DeliveryError",
    "DiscoveryError",
    "ItemStore",
    "LLMClient",
    "Notifier",
    "FeedFetcher",
    "SourceDiscovery",
    "RetryPolicy",
    "TimeWindow",
    "utc_now",
]
