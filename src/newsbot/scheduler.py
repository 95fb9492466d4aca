"""Periodic pipeline execution."""

import asyncio
import logging
import signal
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from newsbot.config import ScheduleConfig
from newsbot.core import ConfigError, CycleReport
from newsbot.pipeline import PipelineOrchestrator

logger = logging.getLogger(__name__)


def build_trigger(config: ScheduleConfig) -> CronTrigger:
    try:
        return CronTrigger.from_crontab(config.cron, timezone=config.timezone)
    except ValueError as e:
        raise ConfigError(f"invalid schedule.cron {config.cron!r}: {e}") from e


class PipelineScheduler:
    """Run one cycle at start, then on a cron schedule until stopped.

    At most one cycle runs at a time. ``stop()`` (wired to SIGINT/SIGTERM)
    cancels the running cycle and ends ``serve()``.
    """

    def __init__(self, orchestrator: PipelineOrchestrator, config: ScheduleConfig) -> None:
        self.orchestrator = orchestrator
        self.config = config
        self.trigger = build_trigger(config)
        self.scheduler = AsyncIOScheduler(timezone=config.timezone)
        self._current: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._stopping = False

    async def run_once(self) -> Optional[CycleReport]:
        """Run one cycle unless one is already in flight."""
        if self._current is not None and not self._current.done():
            logger.warning("Previous cycle still running; skipping this run")
            return None

        self._current = asyncio.create_task(self.orchestrator.run_cycle())
        try:
            return await self._current
        except asyncio.CancelledError:
            if not self._stopping:
                raise
            logger.warning("Pipeline cycle cancelled")
            return None
        finally:
            self._current = None

    def stop(self) -> None:
        """Cancel the running cycle and end ``serve()``."""
        logger.info("Stopping scheduler")
        self._stopping = True
        if self._current is not None and not self._current.done():
            self._current.cancel()
        if self._stop_event is not None:
            self._stop_event.set()

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.stop)
            except NotImplementedError:
                logger.debug("Signal handlers unavailable on this platform")

    async def serve(self) -> None:
        """Block until ``stop()`` is called."""
        self._stop_event = asyncio.Event()
        self._stopping = False
        self._install_signal_handlers()

        if self.config.run_on_start:
            logger.info("Running initial pipeline cycle")
            await self.run_once()

        if self._stop_event.is_set():
            return

        self.scheduler.add_job(
            self.run_once,
            self.trigger,
            id="pipeline_cycle",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info("Scheduler started with schedule: %s (%s)", self.config.cron, self.config.timezone)

        try:
            await self._stop_event.wait()
        finally:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler shut down")
