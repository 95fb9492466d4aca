"""One end-to-end pipeline cycle: discover, harvest, enrich, select, deliver."""

import logging
from typing import Any, Awaitable, Callable, Optional

from newsbot.adapters.digest import digest_title, format_digest
from newsbot.config import DeliveryConfig
from newsbot.core import (
    CycleReport,
    ItemStore,
    Notifier,
    SourceDiscovery,
    StageFailure,
    TimeWindow,
)
from newsbot.use_cases import (
    EnrichmentService,
    HarvestService,
    SelectionService,
    TrendService,
)

logger = logging.getLogger(__name__)


class PipelineOrchestrator:
    """Sequence the stages of a cycle and isolate their failures.

    A failed stage is logged and recorded in the cycle report; later stages
    still run on whatever the store holds. Items are marked delivered only
    after the notifier accepted the digest.
    """

    def __init__(
        self,
        store: ItemStore,
        harvest_service: HarvestService,
        enrichment_service: EnrichmentService,
        selection_service: SelectionService,
        trend_service: TrendService,
        notifier: Optional[Notifier],
        delivery: DeliveryConfig,
        lookback_window: TimeWindow = TimeWindow.WEEK,
        discovery: Optional[SourceDiscovery] = None,
        discovery_limit: int = 100,
    ) -> None:
        self.store = store
        self.harvest_service = harvest_service
        self.enrichment_service = enrichment_service
        self.selection_service = selection_service
        self.trend_service = trend_service
        self.notifier = notifier
        self.delivery = delivery
        self.lookback_window = lookback_window
        self.discovery = discovery
        self.discovery_limit = discovery_limit

    @property
    def delivery_window(self) -> TimeWindow:
        return TimeWindow.parse(self.delivery.window)

    async def _run_stage(
        self,
        report: CycleReport,
        stage: str,
        operation: Callable[[], Awaitable[Any]],
    ) -> tuple[bool, Any]:
        try:
            return True, await operation()
        except Exception as e:
            logger.error("Stage '%s' failed: %s", stage, e)
            report.errors.append(StageFailure(stage=stage, message=str(e)))
            return False, None

    async def _discover(self) -> int:
        sources = await self.discovery.fetch_top_sources(self.discovery_limit)
        self.store.upsert_sources(sources)
        return len(sources)

    async def _harvest(self) -> int:
        sources = self.store.list_sources()
        if not sources:
            logger.warning("No sources stored; nothing to harvest")
            return 0
        return await self.harvest_service.harvest(sources)

    async def run_cycle(self) -> CycleReport:
        report = CycleReport()
        logger.info("Pipeline cycle started")

        if self.discovery is not None:
            ok, count = await self._run_stage(report, "discover", self._discover)
            if ok:
                logger.info("Discovered %d sources", count)
            else:
                logger.info("Using previously stored sources")

        ok, harvested = await self._run_stage(report, "harvest", self._harvest)
        if ok:
            report.harvested = harvested

        ok, counts = await self._run_stage(
            report, "enrich",
            lambda: self.enrichment_service.enrich_new(self.lookback_window),
        )
        if ok:
            report.enriched, report.summarized = counts

        ok, retried = await self._run_stage(
            report, "retry_summaries",
            lambda: self.enrichment_service.retry_unsummarized(self.lookback_window),
        )
        if ok:
            report.summarized += retried

        await self.deliver(report=report)

        logger.info(
            "Pipeline cycle done: harvested=%d enriched=%d summarized=%d delivered=%d errors=%d",
            report.harvested, report.enriched, report.summarized,
            report.delivered, len(report.errors),
        )
        return report

    async def deliver(
        self,
        window: Optional[TimeWindow] = None,
        report: Optional[CycleReport] = None,
    ) -> CycleReport:
        """Select undelivered items, send them as one digest and mark them."""
        window = window or self.delivery_window
        report = report if report is not None else CycleReport()

        async def select():
            return self.selection_service.undelivered(window, self.delivery.max_items)

        ok, entries = await self._run_stage(report, "select", select)
        if not ok:
            return report
        if not entries:
            logger.info("No new items to deliver")
            return report
        if self.notifier is None:
            logger.info("No delivery channel configured; %d items left undelivered", len(entries))
            return report

        ok, trends = await self._run_stage(
            report, "trends", lambda: self.trend_service.analyze(entries)
        )
        if not ok:
            if not self.delivery.deliver_without_trends:
                return report
            logger.info("Delivering without trends")

        title = self.delivery.title or digest_title(len(entries), window.value)
        body = format_digest(
            entries, trends, window.value,
            markup=self.notifier.markup, limit=self.delivery.max_items,
        )

        ok, _ = await self._run_stage(
            report, "deliver", lambda: self.notifier.send(title, body)
        )
        if not ok:
            return report

        async def mark():
            return self.store.mark_delivered([entry.item.id for entry in entries])

        ok, marked = await self._run_stage(report, "mark_delivered", mark)
        if ok:
            report.delivered = marked
            logger.info("Delivered %d items", marked)
        return report
