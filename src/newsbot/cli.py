"""CLI entry point for newsbot."""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer

from newsbot.adapters.digest import format_digest
from newsbot.adapters.llm import create_llm_client
from newsbot.adapters.notifications import create_notifier
from newsbot.adapters.sources import HNPopularityDiscovery, HttpFeedFetcher
from newsbot.adapters.storage import SQLiteItemStore
from newsbot.config import Settings, get_settings
from newsbot.core import ConfigError, CycleReport, ItemStore, NewsbotError, TimeWindow
from newsbot.pipeline import PipelineOrchestrator
from newsbot.scheduler import PipelineScheduler
from newsbot.use_cases import EnrichmentService, HarvestService, SelectionService, TrendService

app = typer.Typer(help="Discover, harvest, enrich and deliver tech news digests.", no_args_is_help=True)


def build_discovery(settings: Settings) -> HNPopularityDiscovery:
    return HNPopularityDiscovery(settings.discovery.base_url, timeout=settings.discovery.timeout)


def build_orchestrator(settings: Settings, store: ItemStore) -> PipelineOrchestrator:
    """Wire services and adapters from settings."""
    llm_client = create_llm_client(settings.model)
    fetcher = HttpFeedFetcher(
        timeout=settings.harvest.request_timeout,
        user_agent=settings.harvest.user_agent,
    )

    return PipelineOrchestrator(
        store=store,
        harvest_service=HarvestService(store, fetcher, settings.harvest),
        enrichment_service=EnrichmentService(store, llm_client, settings.prompts, settings.enrichment),
        selection_service=SelectionService(store),
        trend_service=TrendService(llm_client, settings.prompts),
        notifier=create_notifier(settings),
        delivery=settings.delivery,
        lookback_window=settings.lookback_window,
        discovery=build_discovery(settings) if settings.discovery.enabled else None,
        discovery_limit=settings.discovery.limit,
    )


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj["settings"]


def _open_store(settings: Settings) -> SQLiteItemStore:
    return SQLiteItemStore(settings.paths.database)


def _parse_window(value: str) -> TimeWindow:
    try:
        return TimeWindow.parse(value)
    except ConfigError as e:
        print(f"❌ {e}")
        raise typer.Exit(code=2)


def _print_report(report: CycleReport) -> None:
    print("\n" + "=" * 70)
    print("📊 CYCLE SUMMARY")
    print("=" * 70)
    print(f"  • Harvested:  {report.harvested}")
    print(f"  • Enriched:   {report.enriched}")
    print(f"  • Summarized: {report.summarized}")
    print(f"  • Delivered:  {report.delivered}")
    if report.errors:
        print(f"\n⚠️  Failed stages ({len(report.errors)}):")
        for failure in report.errors:
            print(f"  └─ {failure.stage}: {failure.message}")


@app.callback()
def main(
    ctx: typer.Context,
    config: Path = typer.Option(Path("newsbot.yaml"), "--config", "-c", help="YAML config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Tech news pipeline."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        settings = get_settings(config)
    except ConfigError as e:
        print(f"❌ Configuration error: {e}")
        raise typer.Exit(code=2)
    ctx.obj = {"settings": settings}


@app.command("fetch-sources")
def fetch_sources(ctx: typer.Context) -> None:
    """Download the top sources and store them."""
    settings = _settings(ctx)
    discovery = build_discovery(settings)

    try:
        sources = asyncio.run(discovery.fetch_top_sources(settings.discovery.limit))
    except NewsbotError as e:
        print(f"❌ {e}")
        raise typer.Exit(code=1)

    with _open_store(settings) as store:
        store.upsert_sources(sources)

    print(f"✓ Saved {len(sources)} sources")
    for source in sources[:10]:
        author = f" ({source.author})" if source.author else ""
        print(f"  {source.rank:>3}. {source.domain}{author}: {source.score}")


@app.command()
def harvest(ctx: typer.Context) -> None:
    """Fetch new items from every stored source."""
    settings = _settings(ctx)

    with _open_store(settings) as store:
        sources = store.list_sources()
        if not sources:
            print("⚠️  No sources stored. Run 'newsbot fetch-sources' first.")
            raise typer.Exit(code=1)

        print(f"📥 Harvesting {len(sources)} sources...")
        fetcher = HttpFeedFetcher(
            timeout=settings.harvest.request_timeout,
            user_agent=settings.harvest.user_agent,
        )
        count = asyncio.run(HarvestService(store, fetcher, settings.harvest).harvest(sources))

    print(f"✓ New items: {count}")


@app.command()
def enrich(
    ctx: typer.Context,
    window: str = typer.Argument("24h", help="24h, 3days or 7days"),
) -> None:
    """Score and summarize unenriched items in the window."""
    settings = _settings(ctx)
    time_window = _parse_window(window)

    with _open_store(settings) as store:
        service = EnrichmentService(
            store, create_llm_client(settings.model), settings.prompts, settings.enrichment
        )

        async def run() -> tuple[int, int, int]:
            enriched, summarized = await service.enrich_new(time_window)
            retried = await service.retry_unsummarized(time_window)
            return enriched, summarized, retried

        enriched, summarized, retried = asyncio.run(run())

    print(f"✓ Enriched: {enriched} (summarized: {summarized})")
    if retried:
        print(f"✓ Summaries recovered on retry: {retried}")


@app.command()
def report(
    ctx: typer.Context,
    window: str = typer.Argument("24h", help="24h, 3days or 7days"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Digest file path"),
    no_trends: bool = typer.Option(False, "--no-trends", help="Skip trend analysis"),
) -> None:
    """Print the ranked items and trends, and save a Markdown digest."""
    settings = _settings(ctx)
    time_window = _parse_window(window)

    with _open_store(settings) as store:
        ranked = SelectionService(store).ranked(time_window, settings.delivery.max_items)

    if not ranked:
        print(f"No enriched articles in the last {time_window.value}.")
        return

    print("\n" + "=" * 70)
    print(f"🏆 TOP ARTICLES ({time_window.value})")
    print("=" * 70)
    for i, entry in enumerate(ranked, 1):
        enrichment = entry.enrichment
        print(f"{i:>3}. [{enrichment.total_score}] {entry.item.title}")
        print(f"     └─ {entry.item.source} | {enrichment.category} | {entry.item.url}")

    trends = None
    if not no_trends:
        try:
            trends = asyncio.run(
                TrendService(create_llm_client(settings.model), settings.prompts).analyze(ranked)
            )
        except NewsbotError as e:
            print(f"\n⚠️  Trend analysis failed: {e}")

    if trends and trends.trends:
        print("\n" + "=" * 70)
        print("📈 TRENDS")
        print("=" * 70)
        for i, trend in enumerate(trends.trends, 1):
            print(f"{i}. {trend.title}")
            print(f"   {trend.description}")

    digest = format_digest(ranked, trends, time_window.value, markup="markdown",
                           limit=settings.delivery.max_items)
    if output is None:
        timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        output = settings.paths.output_dir / f"{timestamp}_{time_window.value}_digest.md"

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(digest, encoding="utf-8")
    print(f"\n📄 Digest saved to {output}")


@app.command()
def notify(
    ctx: typer.Context,
    window: str = typer.Argument("24h", help="24h, 3days or 7days"),
) -> None:
    """Deliver undelivered items in the window to the configured channel."""
    settings = _settings(ctx)
    time_window = _parse_window(window)

    with _open_store(settings) as store:
        orchestrator = build_orchestrator(settings, store)
        if orchestrator.notifier is None:
            print("❌ No delivery channel configured (set TG_BOT_TOKEN/TG_CHAT_ID or SLACK_WEBHOOK_URL)")
            raise typer.Exit(code=1)

        result = asyncio.run(orchestrator.deliver(time_window))

    if result.errors:
        for failure in result.errors:
            print(f"❌ {failure.stage}: {failure.message}")
        raise typer.Exit(code=1)
    print(f"✓ Delivered {result.delivered} items")


@app.command()
def latest(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", "-n", help="Number of items"),
) -> None:
    """List recently harvested items."""
    settings = _settings(ctx)

    with _open_store(settings) as store:
        items = SelectionService(store).latest(limit)

    if not items:
        print("No items harvested yet")
        return

    for item in items:
        published = item.published_at.strftime("%Y-%m-%d %H:%M") if item.published_at else "unknown"
        print(f"{item.id:>6}  {published}  [{item.source}] {item.title}")


@app.command()
def show(ctx: typer.Context, item_id: int = typer.Argument(..., help="Item id")) -> None:
    """Show one enriched item."""
    settings = _settings(ctx)

    with _open_store(settings) as store:
        entry = SelectionService(store).get(item_id)

    if entry is None:
        print(f"❌ No enriched item with id {item_id}")
        raise typer.Exit(code=1)

    item, enrichment = entry.item, entry.enrichment
    published = item.published_at.isoformat() if item.published_at else "unknown"
    print(f"\n{item.title}")
    print(f"🔗 {item.url}")
    print(f"Source: {item.source} | Published: {published}")
    print(
        f"Score: {enrichment.total_score} (relevance {enrichment.relevance}, "
        f"quality {enrichment.quality}, timeliness {enrichment.timeliness})"
    )
    print(f"Category: {enrichment.category} | Keywords: {', '.join(enrichment.keywords)}")
    if enrichment.localized_title:
        print(f"Title: {enrichment.localized_title}")
    if enrichment.synopsis:
        print(f"\n{enrichment.synopsis}")
    if enrichment.recommendation:
        print(f"\nWhy: {enrichment.recommendation}")
    if enrichment.delivered_at:
        print(f"\nDelivered at {enrichment.delivered_at.isoformat()}")


@app.command()
def run(ctx: typer.Context) -> None:
    """Run one full pipeline cycle."""
    settings = _settings(ctx)

    with _open_store(settings) as store:
        cycle = asyncio.run(build_orchestrator(settings, store).run_cycle())

    _print_report(cycle)
    if not cycle.ok:
        raise typer.Exit(code=1)


@app.command()
def schedule(ctx: typer.Context) -> None:
    """Run the pipeline now and then on the configured cron schedule."""
    settings = _settings(ctx)

    with _open_store(settings) as store:
        scheduler = PipelineScheduler(build_orchestrator(settings, store), settings.schedule)
        print(f"⏰ Schedule: {settings.schedule.cron} ({settings.schedule.timezone})")
        asyncio.run(scheduler.serve())

    print("✓ Scheduler stopped")


if __name__ == "__main__":
    app()
