"""Business logic use cases."""

import asyncio
import dataclasses
import logging
from datetime import datetime
from typing import Callable, Optional

from newsbot.config import EnrichmentConfig, HarvestConfig, PromptsConfig
from newsbot.core import (
    Enrichment,
    FeedFetcher,
    FeedNotFoundError,
    Item,
    ItemStore,
    LLMClient,
    ModelResponseError,
    RankedItem,
    RawFeedEntry,
    RetryExhaustedError,
    RetryPolicy,
    ScoreResult,
    Source,
    StoreError,
    SummaryResult,
    TimeWindow,
    Trend,
    TrendReport,
    utc_now,
)
from newsbot.core.model_output import parse_model_json
from newsbot.core.text import strip_tags, truncate

logger = logging.getLogger(__name__)


def normalize_entry(
    entry: RawFeedEntry,
    source_domain: str,
    harvested_at: datetime,
    summary_max_chars: int = 500,
) -> Optional[Item]:
    """Turn a feed entry into an Item, or None if it has no link."""
    url = entry.link or (entry.links[0] if entry.links else "")
    if not url:
        return None

    summary = truncate(strip_tags(entry.summary or entry.content), summary_max_chars)

    return Item(
        source=source_domain,
        title=entry.title.strip(),
        url=url,
        summary=summary,
        published_at=entry.published or entry.updated,
        harvested_at=harvested_at,
    )


class HarvestService:
    """Fetch recent items from every source with bounded concurrency."""

    def __init__(
        self,
        store: ItemStore,
        fetcher: FeedFetcher,
        config: HarvestConfig,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.fetcher = fetcher
        self.config = config
        self.clock = clock

    async def harvest(self, sources: list[Source]) -> int:
        """Harvest all sources. Returns the number of newly stored items."""
        semaphore = asyncio.Semaphore(self.config.max_concurrency)

        async def worker(source: Source) -> int:
            async with semaphore:
                try:
                    return await self.harvest_source(source)
                except FeedNotFoundError as e:
                    logger.info("Skipping %s: %s", source.domain, e)
                except Exception as e:
                    logger.warning("Harvest of %s failed: %s", source.domain, e)
                return 0

        counts = await asyncio.gather(*(worker(source) for source in sources))
        total = sum(counts)
        logger.info("Harvested %d new items from %d sources", total, len(sources))
        return total

    async def harvest_source(self, source: Source) -> int:
        url, entries = await self.find_feed(source.domain)
        harvested_at = self.clock()

        inserted = 0
        for entry in entries[: self.config.max_items_per_source]:
            item = normalize_entry(entry, source.domain, harvested_at, self.config.summary_max_chars)
            if item is None:
                continue
            try:
                if self.store.insert_item_if_absent(item):
                    inserted += 1
            except StoreError as e:
                logger.warning("Could not store %s: %s", item.url, e)

        logger.debug("%s: %d new items from %s", source.domain, inserted, url)
        return inserted

    def candidate_urls(self, domain: str) -> list[str]:
        """Conventional feed locations, then the site root."""
        urls = [f"https://{domain}{path}" for path in self.config.feed_paths]
        urls.append(f"https://{domain}")
        return urls

    async def find_feed(self, domain: str) -> tuple[str, list[RawFeedEntry]]:
        """Return the first candidate URL that yields entries, with its entries.

        Raises:
            FeedNotFoundError: if no candidate yields anything.
        """
        for url in self.candidate_urls(domain):
            try:
                entries = await asyncio.wait_for(
                    self.fetcher.fetch(url), timeout=self.config.request_timeout
                )
            except asyncio.TimeoutError:
                logger.debug("Timed out fetching %s", url)
                continue
            except Exception as e:
                logger.debug("No feed at %s: %s", url, e)
                continue

            if entries:
                return url, entries

        raise FeedNotFoundError(f"no feed found for {domain}")


def _score_value(data: dict, key: str) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ModelResponseError(f"'{key}' must be an integer, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise ModelResponseError(f"'{key}' must be an integer, got {value!r}")
    value = int(value)
    if not 1 <= value <= 10:
        raise ModelResponseError(f"'{key}' out of range 1..10: {value}")
    return value


def parse_score(data: dict) -> ScoreResult:
    """Validate the structure of a scoring reply."""
    category = data.get("category")
    if not isinstance(category, str):
        raise ModelResponseError(f"'category' must be a string, got {category!r}")

    keywords = data.get("keywords")
    if not isinstance(keywords, list) or not all(isinstance(k, str) for k in keywords):
        raise ModelResponseError(f"'keywords' must be a list of strings, got {keywords!r}")

    return ScoreResult(
        relevance=_score_value(data, "relevance"),
        quality=_score_value(data, "quality"),
        timeliness=_score_value(data, "timeliness"),
        category=category.strip(),
        keywords=[k.strip() for k in keywords if k.strip()],
    )


def parse_summary(data: dict) -> SummaryResult:
    """Validate the structure of a summary reply."""
    synopsis = data.get("summary")
    if not isinstance(synopsis, str) or not synopsis.strip():
        raise ModelResponseError("'summary' must be a non-empty string")

    localized_title = data.get("title_localized", "")
    recommendation = data.get("recommend_reason", "")
    if not isinstance(localized_title, str) or not isinstance(recommendation, str):
        raise ModelResponseError("'title_localized' and 'recommend_reason' must be strings")

    return SummaryResult(
        synopsis=synopsis.strip(),
        localized_title=localized_title.strip(),
        recommendation=recommendation.strip(),
    )


class EnrichmentService:
    """Score and summarize items with the model backend."""

    def __init__(
        self,
        store: ItemStore,
        llm_client: LLMClient,
        prompts: PromptsConfig,
        config: EnrichmentConfig,
        retry_policy: Optional[RetryPolicy] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.llm_client = llm_client
        self.prompts = prompts
        self.config = config
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=config.summary_max_attempts,
            delay=config.summary_retry_delay,
        )
        self.clock = clock

    def _user_prompt(self, template: str, item: Item) -> str:
        return template.format(
            title=item.title,
            source=item.source,
            summary=truncate(item.summary, self.config.content_max_chars),
        )

    async def score_item(self, item: Item) -> ScoreResult:
        """Stage A: one model call, no retry."""
        response = await self.llm_client.complete(
            self.prompts.score["system"],
            self._user_prompt(self.prompts.score["user"], item),
        )
        return parse_score(parse_model_json(response))

    async def summarize_item(self, item: Item) -> SummaryResult:
        """Stage B under the retry policy.

        Raises:
            RetryExhaustedError: when every attempt failed.
        """
        async def attempt() -> SummaryResult:
            response = await self.llm_client.complete(
                self.prompts.summary["system"],
                self._user_prompt(self.prompts.summary["user"], item),
            )
            return parse_summary(parse_model_json(response))

        return await self.retry_policy.run(attempt, description=f"summarize {item.url}")

    async def enrich_item(self, item: Item) -> Enrichment:
        """Score, then summarize, then store one enrichment row.

        A failed summary leaves the Stage-B fields empty; a failed score
        stores nothing.
        """
        if item.id is None:
            raise ValueError("item must be stored before enrichment")

        score = await self.score_item(item)

        try:
            summary = await self.summarize_item(item)
        except RetryExhaustedError as e:
            logger.warning("No summary for %r: %s", item.title, e)
            summary = SummaryResult(synopsis="", localized_title="", recommendation="")

        enrichment = Enrichment(
            item_id=item.id,
            relevance=score.relevance,
            quality=score.quality,
            timeliness=score.timeliness,
            category=score.category,
            keywords=score.keywords,
            enriched_at=self.clock(),
            synopsis=summary.synopsis,
            localized_title=summary.localized_title,
            recommendation=summary.recommendation,
        )
        self.store.upsert_enrichment(enrichment)
        return enrichment

    async def enrich_new(self, window: TimeWindow) -> tuple[int, int]:
        """Enrich every unenriched item in the window, one at a time.

        Returns:
            Tuple of (enriched count, of which summarized)
        """
        items = self.store.unenriched_items(window)
        logger.info("Enriching %d items (%s)", len(items), window.value)

        enriched = summarized = 0
        for i, item in enumerate(items, 1):
            try:
                enrichment = await self.enrich_item(item)
            except Exception as e:
                logger.warning("[%d/%d] Failed to enrich %r: %s", i, len(items), item.title, e)
                continue

            enriched += 1
            if enrichment.is_summarized:
                summarized += 1
            logger.debug(
                "[%d/%d] %r scored %d", i, len(items), item.title, enrichment.total_score
            )

        return enriched, summarized

    async def retry_unsummarized(self, window: TimeWindow) -> int:
        """Rerun Stage B for scored items that still lack a summary."""
        pending = self.store.unsummarized_enriched(window, self.config.min_retry_score)
        if pending:
            logger.info("Retrying summaries for %d items", len(pending))

        summarized = 0
        for entry in pending:
            try:
                summary = await self.summarize_item(entry.item)
                self.store.upsert_enrichment(
                    dataclasses.replace(
                        entry.enrichment,
                        synopsis=summary.synopsis,
                        localized_title=summary.localized_title,
                        recommendation=summary.recommendation,
                    )
                )
            except Exception as e:
                logger.warning("Retry summary of %r failed: %s", entry.item.title, e)
                continue
            summarized += 1

        return summarized


class SelectionService:
    """Time-windowed reads over the store."""

    def __init__(self, store: ItemStore) -> None:
        self.store = store

    def ranked(self, window: TimeWindow, limit: Optional[int] = None) -> list[RankedItem]:
        return self.store.ranked_enriched(window, limit)

    def undelivered(self, window: TimeWindow, limit: int = 20) -> list[RankedItem]:
        return self.store.undelivered_ranked(window, limit)

    def items_in_window(self, window: TimeWindow) -> list[Item]:
        return self.store.items_in_window(window)

    def latest(self, limit: int = 20) -> list[Item]:
        return self.store.latest_items(limit)

    def get(self, item_id: int) -> Optional[RankedItem]:
        return self.store.get_ranked_item(item_id)


def format_trend_input(ranked: list[RankedItem]) -> str:
    lines = []
    for i, entry in enumerate(ranked, 1):
        enrichment = entry.enrichment
        lines.append(
            f"{i}. [{entry.item.source}] {entry.item.title} "
            f"(score: {enrichment.total_score}, category: {enrichment.category}, "
            f"keywords: {', '.join(enrichment.keywords)})"
        )
    return "\n".join(lines)


class TrendService:
    """Cluster ranked items into a few themes with one model call."""

    def __init__(self, llm_client: LLMClient, prompts: PromptsConfig) -> None:
        self.llm_client = llm_client
        self.prompts = prompts

    async def analyze(self, ranked: list[RankedItem]) -> TrendReport:
        if not ranked:
            return TrendReport(trends=[])

        response = await self.llm_client.complete(
            self.prompts.trends["system"],
            self.prompts.trends["user"].format(articles=format_trend_input(ranked)),
        )
        data = parse_model_json(response)

        raw_trends = data.get("trends")
        if not isinstance(raw_trends, list):
            raise ModelResponseError("reply has no 'trends' list", raw=response)

        trends = []
        for raw in raw_trends:
            if not isinstance(raw, dict) or not isinstance(raw.get("title"), str):
                raise ModelResponseError(f"malformed trend: {raw!r}", raw=response)
            articles = raw.get("articles")
            if not isinstance(articles, list):
                articles = []
            trends.append(
                Trend(
                    title=raw["title"].strip(),
                    description=str(raw.get("description", "")).strip(),
                    articles=[a for a in articles if isinstance(a, str)],
                )
            )

        logger.info("Identified %d trends", len(trends))
        return TrendReport(trends=trends)
