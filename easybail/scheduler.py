"""APScheduler integration for the periodic automation scan."""

import logging
from datetime import datetime, timezone
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from easybail.schemas.execution import ScanReport
from easybail.services.automation_engine import AutomationEngine
from easybail.services.email_outbox import EmailOutbox

log = logging.getLogger(__name__)

MIN_INTERVAL_SECONDS = 10


class AutomationScheduler:
    """
    Background timer that asks the engine to run due automations.

    One instance is built by the application's composition root. ``start`` is
    idempotent and the scan job has a fixed id, so repeated starts from
    different call sites still leave exactly one timer. A tick that fires while
    the previous scan is still running is dropped, not queued.
    """

    JOB_ID = "automation_scan_job"

    def __init__(
        self,
        engine: AutomationEngine,
        outbox: Optional[EmailOutbox] = None,
        interval_seconds: int = 600,
        scheduler: Optional[AsyncIOScheduler] = None
    ):
        self.engine = engine
        self.outbox = outbox
        self.interval_seconds = max(interval_seconds, MIN_INTERVAL_SECONDS)
        self.scheduler = scheduler or AsyncIOScheduler(timezone=timezone.utc)
        self._active = False
        self._scan_running = False

    def _trigger(self) -> IntervalTrigger:
        return IntervalTrigger(seconds=self.interval_seconds, timezone=timezone.utc)

    def start(self) -> None:
        """Start scanning: once immediately, then every ``interval_seconds``."""
        if self._active:
            return

        if not self.scheduler.running:
            self.scheduler.start()
            log.info("APScheduler started successfully")

        self.scheduler.add_job(
            self.tick,
            trigger=self._trigger(),
            id=self.JOB_ID,
            replace_existing=True,
            next_run_time=datetime.now(timezone.utc),
            coalesce=True,
            max_instances=1
        )
        self._active = True
        log.info(f"Automation scheduler started (interval: {self.interval_seconds}s)")

    def stop(self) -> None:
        """Cancel future ticks. A scan already in progress finishes normally."""
        if not self._active:
            return

        if self.scheduler.get_job(self.JOB_ID):
            self.scheduler.remove_job(self.JOB_ID)
        self._active = False
        log.info("Automation scheduler stopped")

    def shutdown(self) -> None:
        """Stop the scan job and the underlying APScheduler (application exit)."""
        self.stop()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            log.info("APScheduler shut down successfully")

    def is_active(self) -> bool:
        return self._active

    @property
    def scan_running(self) -> bool:
        return self._scan_running

    def next_run_time(self) -> Optional[datetime]:
        job = self.scheduler.get_job(self.JOB_ID) if self._active else None
        return job.next_run_time if job else None

    def set_interval(self, seconds: int) -> None:
        """Change the scan period, rescheduling the running job if needed."""
        if seconds < MIN_INTERVAL_SECONDS:
            log.warning(f"Minimum scheduler interval is {MIN_INTERVAL_SECONDS} seconds")
            seconds = MIN_INTERVAL_SECONDS

        self.interval_seconds = seconds
        if self._active and self.scheduler.get_job(self.JOB_ID):
            self.scheduler.reschedule_job(self.JOB_ID, trigger=self._trigger())
            log.info(f"Automation scheduler rescheduled (interval: {seconds}s)")

    async def _run_scan(self, drain_outbox: bool = True) -> ScanReport:
        self._scan_running = True
        try:
            report = await self.engine.scan()
            if drain_outbox and self.outbox is not None:
                await self.outbox.process()
            return report
        finally:
            self._scan_running = False

    async def tick(self) -> Optional[ScanReport]:
        """Scheduled job body. Returns None when the tick was dropped or failed."""
        if self._scan_running:
            log.warning("Automation scan skipped: previous scan still active")
            return None

        try:
            return await self._run_scan()
        except Exception as e:
            log.error(f"Automation scan failed: {e}", exc_info=True)
            return None

    async def force_check(self) -> Optional[ScanReport]:
        """
        Run a scan right away, outside the timer.

        Subject to the same overlap guard as ticks (returns None when a scan is
        already running). Unlike ticks, errors propagate to the caller.
        """
        if self._scan_running:
            log.warning("Forced automation scan skipped: a scan is already running")
            return None
        log.info("Forced automation scan")
        return await self._run_scan()

    async def execute_all_due(self) -> Optional[ScanReport]:
        """Manual "run due automations" request: a guarded scan without the outbox drain."""
        if self._scan_running:
            log.warning("Manual execution of due automations skipped: a scan is already running")
            return None
        return await self._run_scan(drain_outbox=False)
