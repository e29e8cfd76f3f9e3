"""Due detection and single execution of automations."""

import asyncio
import inspect
import logging
from collections import deque
from datetime import datetime
from typing import Any, Callable, Deque, Iterable, List, Optional, Set

from easybail.constants.automation import ExecutionStatus
from easybail.errors import AutomationNotFound, ExecutorFailure, RepositoryError
from easybail.executors.base import ActionOutcome, BaseActionExecutor
from easybail.repositories.base import AutomationRepository
from easybail.scheduling.frequency import compute_next
from easybail.scheduling.window import ExecutionWindow
from easybail.schemas.automation import AutomationInDB
from easybail.schemas.execution import ExecutionResult, ScanReport
from easybail.services.run_recorder import RunRecorder
from easybail.utils.timeutil import ensure_aware, utcnow

log = logging.getLogger(__name__)

Listener = Callable[[], Any]


class AutomationEngine:
    """
    Runs due automations through an action executor and advances their schedule.

    The engine keeps no automation state between scans: every scan lists the
    repository afresh. The only state it owns is the in-flight set that keeps
    two executions of the same automation from overlapping, and a bounded
    history of recent failures for observability.
    """

    def __init__(
        self,
        repository: AutomationRepository,
        executor: BaseActionExecutor,
        recorder: Optional[RunRecorder] = None,
        executor_timeout: float = 30.0,
        max_concurrency: int = 4,
        advance_from_previous: bool = False,
        window: Optional[ExecutionWindow] = None,
        failure_history_size: int = 100,
        clock: Callable[[], datetime] = utcnow
    ):
        self.repository = repository
        self.executor = executor
        self.recorder = recorder
        self.executor_timeout = executor_timeout
        self.max_concurrency = max(1, max_concurrency)
        self.advance_from_previous = advance_from_previous
        self.window = window
        self.clock = clock
        self.recent_failures: Deque[ExecutionResult] = deque(maxlen=failure_history_size)
        self._in_flight: Set[str] = set()
        self._listeners: List[Listener] = []

    # Listeners

    def add_listener(self, listener: Listener) -> None:
        """Register a callable (sync or async) invoked after the engine mutates automations."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                outcome = listener()
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                log.error(f"Automation listener {listener!r} failed: {e}", exc_info=True)

    # Due detection

    def is_due(self, automation: AutomationInDB, now: datetime) -> bool:
        if not automation.active:
            return False
        if ensure_aware(automation.next_execution) > now:
            return False
        if self.window is not None and not self.window.matches(automation.execution_time, now):
            log.debug(f"Automation '{automation.name}' is due but outside its execution window ({automation.execution_time})")
            return False
        return True

    def find_due(self, automations: Iterable[AutomationInDB], now: datetime) -> List[AutomationInDB]:
        """Filter the due automations, oldest due first (ties broken by id)."""
        now = ensure_aware(now)
        due = [a for a in automations if self.is_due(a, now)]
        return sorted(due, key=lambda a: (ensure_aware(a.next_execution), a.id))

    def is_executing(self, automation_id: str) -> bool:
        return automation_id in self._in_flight

    def next_execution_for(self, automation: AutomationInDB, now: datetime) -> datetime:
        if not self.advance_from_previous:
            return compute_next(automation.frequency, now)
        next_run = compute_next(automation.frequency, ensure_aware(automation.next_execution))
        while next_run <= now:
            next_run = compute_next(automation.frequency, next_run)
        return next_run

    # Execution

    async def _invoke_executor(self, automation: AutomationInDB) -> ActionOutcome:
        try:
            return await asyncio.wait_for(self.executor.execute(automation), timeout=self.executor_timeout)
        except asyncio.TimeoutError:
            return ActionOutcome.failed(f"Executor timed out after {self.executor_timeout:g}s")
        except ExecutorFailure as e:
            return ActionOutcome.failed(str(e))
        except Exception as e:
            log.error(f"Executor raised for automation {automation.id}: {e}", exc_info=True)
            return ActionOutcome.failed(f"{type(e).__name__}: {e}")

    @staticmethod
    def _skipped(automation_id: str, now: datetime, reason: str) -> ExecutionResult:
        return ExecutionResult(
            automation_id=automation_id,
            status=ExecutionStatus.SKIPPED,
            executed_at=now,
            reason=reason
        )

    async def _record(self, result: ExecutionResult, trigger_type: str) -> None:
        if result.failed:
            self.recent_failures.append(result)
        if self.recorder is None:
            return
        try:
            await self.recorder.record(result, trigger_type)
        except RepositoryError as e:
            log.error(f"Could not record run for automation {result.automation_id}: {e}")

    async def execute_one(
        self,
        automation: AutomationInDB,
        now: Optional[datetime] = None,
        trigger_type: str = 'scheduled',
        notify: bool = True
    ) -> ExecutionResult:
        """
        Execute one automation and advance its schedule on success.

        Returns a skipped result without calling the executor when the same
        automation is already executing. Scheduled runs re-read the record
        first and are skipped when it was deleted, deactivated or already
        advanced since the scan listed it. Executor failures and timeouts yield
        a failure result and leave next_execution untouched. Repository errors
        while loading or persisting the schedule propagate.
        """
        now = ensure_aware(now) if now else self.clock()

        if automation.id in self._in_flight:
            log.debug(f"Automation '{automation.name}' already executing, skipped")
            return self._skipped(automation.id, now, "already executing")

        self._in_flight.add(automation.id)
        try:
            if trigger_type == 'scheduled':
                current = await self.repository.get_by_id(automation.id)
                if current is None:
                    log.info(f"Automation {automation.id} was deleted before its turn")
                    return self._skipped(automation.id, now, "automation no longer exists")
                if not self.is_due(current, now):
                    log.info(f"Automation '{current.name}' is no longer due, skipped")
                    return self._skipped(automation.id, now, "no longer due")
                automation = current

            log.info(f"Executing automation '{automation.name}' ({automation.id}, {trigger_type})")
            outcome = await self._invoke_executor(automation)

            if not outcome.success:
                log.warning(f"Automation '{automation.name}' failed: {outcome.reason}")
                result = ExecutionResult(
                    automation_id=automation.id,
                    status=ExecutionStatus.FAILURE,
                    executed_at=now,
                    reason=outcome.reason
                )
                await self._record(result, trigger_type)
                return result

            next_execution = self.next_execution_for(automation, now)
            try:
                await self.repository.update(automation.id, {
                    "last_execution": now,
                    "next_execution": next_execution,
                })
            except AutomationNotFound:
                log.info(f"Automation {automation.id} was deleted while executing")
                return self._skipped(automation.id, now, "automation no longer exists")

            log.info(f"Automation '{automation.name}' executed, next run {next_execution.isoformat()}")
            result = ExecutionResult(
                automation_id=automation.id,
                status=ExecutionStatus.SUCCESS,
                executed_at=now,
                next_execution=next_execution
            )
            await self._record(result, trigger_type)
            if notify:
                await self._notify()
            return result
        finally:
            self._in_flight.discard(automation.id)

    async def scan(self, now: Optional[datetime] = None) -> ScanReport:
        """List automations, execute every due one and report the outcome."""
        now = ensure_aware(now) if now else self.clock()
        report = ScanReport(started_at=now)

        automations = await self.repository.list()
        due = self.find_due(automations, now)
        report.due = len(due)
        if not due:
            log.debug("No automation due")
            report.finished_at = self.clock()
            return report

        log.info(f"{len(due)} automation(s) due out of {len(automations)}")
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _run(automation: AutomationInDB) -> ExecutionResult:
            async with semaphore:
                try:
                    return await self.execute_one(automation, now, notify=False)
                except RepositoryError as e:
                    log.error(f"Could not persist execution of automation {automation.id}: {e}")
                    result = ExecutionResult(
                        automation_id=automation.id,
                        status=ExecutionStatus.FAILURE,
                        executed_at=now,
                        reason=str(e)
                    )
                    self.recent_failures.append(result)
                    return result

        for result in await asyncio.gather(*(_run(a) for a in due)):
            report.add(result)

        report.finished_at = self.clock()
        if report.succeeded:
            await self._notify()
        log.info(
            f"Automation scan finished: attempted={report.attempted}, succeeded={report.succeeded}, "
            f"failed={report.failed}, skipped={report.skipped}"
        )
        return report

    async def execute_all_due(self, now: Optional[datetime] = None) -> int:
        """Run every due automation; returns the number of attempted executions."""
        report = await self.scan(now)
        return report.attempted

    async def execute_now(self, automation_id: str, now: Optional[datetime] = None) -> ExecutionResult:
        """
        Manual trigger: execute regardless of next_execution.

        A manual run is an early scheduled firing, so it advances the schedule
        from ``now`` like any other successful execution.
        """
        now = ensure_aware(now) if now else self.clock()
        automation = await self.repository.get_by_id(automation_id)
        if automation is None:
            raise AutomationNotFound(automation_id)
        if not automation.active:
            return ExecutionResult(
                automation_id=automation_id,
                status=ExecutionStatus.FAILURE,
                executed_at=now,
                reason="automation is inactive"
            )
        return await self.execute_one(automation, now, trigger_type='manual')
