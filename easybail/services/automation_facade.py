"""Single entry point for UI-facing automation operations."""

import inspect
import logging
from typing import Any, Callable, List, Optional

from easybail.errors import AutomationNotFound, EasyBailError
from easybail.repositories.base import AutomationRepository
from easybail.scheduler import AutomationScheduler
from easybail.schemas.automation import AutomationCreate, AutomationInDB, AutomationUpdate
from easybail.schemas.execution import ExecutionResult, ScanReport
from easybail.services.automation_engine import AutomationEngine

log = logging.getLogger(__name__)

Subscriber = Callable[[List[AutomationInDB]], Any]


class AutomationFacade:
    """
    Wraps the repository, engine and scheduler behind one surface.

    Subscribers receive the refreshed automation list after every mutation,
    whether it comes from an API call or from a background scan. Errors are
    raised to the caller as the typed exceptions of ``easybail.errors`` and the
    message of the last one is kept in ``last_error``.
    """

    def __init__(
        self,
        repository: AutomationRepository,
        engine: AutomationEngine,
        scheduler: AutomationScheduler
    ):
        self.repository = repository
        self.engine = engine
        self.scheduler = scheduler
        self.last_error: Optional[str] = None
        self._automations: List[AutomationInDB] = []
        self._subscribers: List[Subscriber] = []
        engine.add_listener(self.refresh)

    # Subscriptions

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a subscriber; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    async def _publish(self) -> None:
        snapshot = list(self._automations)
        for callback in list(self._subscribers):
            try:
                outcome = callback(snapshot)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                log.error(f"Automation subscriber {callback!r} failed: {e}", exc_info=True)

    @property
    def automations(self) -> List[AutomationInDB]:
        """Last loaded snapshot."""
        return list(self._automations)

    async def refresh(self) -> List[AutomationInDB]:
        self._automations = await self.repository.list()
        await self._publish()
        return self.automations

    # Queries

    async def list(self) -> List[AutomationInDB]:
        return await self._call(self.repository.list())

    async def get(self, automation_id: str) -> AutomationInDB:
        automation = await self._call(self.repository.get_by_id(automation_id))
        if automation is None:
            self.last_error = f"Automation not found: {automation_id}"
            raise AutomationNotFound(automation_id)
        return automation

    # Commands

    async def _call(self, awaitable):
        try:
            result = await awaitable
        except EasyBailError as e:
            self.last_error = str(e)
            log.warning(f"Automation operation failed: {e}")
            raise
        self.last_error = None
        return result

    async def create(self, data: AutomationCreate) -> AutomationInDB:
        automation = await self._call(self.repository.create(data))
        await self._call(self.refresh())
        return automation

    async def update(self, automation_id: str, data: AutomationUpdate) -> AutomationInDB:
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            return await self.get(automation_id)
        automation = await self._call(self.repository.update(automation_id, changes))
        await self._call(self.refresh())
        return automation

    async def delete(self, automation_id: str) -> None:
        await self._call(self.repository.delete(automation_id))
        await self._call(self.refresh())

    async def toggle_active(self, automation_id: str) -> AutomationInDB:
        current = await self.get(automation_id)
        automation = await self._call(self.repository.update(automation_id, {"active": not current.active}))
        log.info(f"Automation '{automation.name}' {'activated' if automation.active else 'deactivated'}")
        await self._call(self.refresh())
        return automation

    async def execute_now(self, automation_id: str) -> ExecutionResult:
        # The engine notifies its listeners (our refresh) after a successful run
        return await self._call(self.engine.execute_now(automation_id))

    async def execute_all_due(self) -> Optional[ScanReport]:
        # Shares the scheduler's overlap guard; None when a scan is already running
        return await self._call(self.scheduler.execute_all_due())

    # Scheduler pass-throughs

    def is_scheduler_active(self) -> bool:
        return self.scheduler.is_active()

    def start_scheduler(self) -> None:
        self.scheduler.start()

    def stop_scheduler(self) -> None:
        self.scheduler.stop()

    def set_scheduler_interval(self, seconds: int) -> None:
        self.scheduler.set_interval(seconds)

    async def force_check(self) -> Optional[ScanReport]:
        return await self._call(self.scheduler.force_check())
