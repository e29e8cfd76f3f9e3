"""Persistence of automation execution history."""

import asyncio
from typing import Callable, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from easybail.errors import RepositoryError
from easybail.models.automation_run import AutomationRun
from easybail.schemas.execution import AutomationRunResponse, ExecutionResult
from easybail.utils.timeutil import to_utc


class RunRecorder:
    """Writes one AutomationRun row per execution attempt."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    async def record(self, result: ExecutionResult, trigger_type: str = 'scheduled') -> None:
        def _run() -> None:
            with self._session_factory() as db:
                db.add(AutomationRun(
                    automation_id=result.automation_id,
                    trigger_type=trigger_type,
                    status=result.status.value,
                    executed_at=to_utc(result.executed_at),
                    next_execution=to_utc(result.next_execution),
                    error_message=result.reason if result.failed else None
                ))
                db.commit()

        try:
            await asyncio.to_thread(_run)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to record run for automation {result.automation_id}: {e}") from e

    async def list_for(self, automation_id: str, limit: int = 50) -> List[AutomationRunResponse]:
        def _run() -> List[AutomationRunResponse]:
            with self._session_factory() as db:
                rows = db.query(AutomationRun).filter(
                    AutomationRun.automation_id == automation_id
                ).order_by(AutomationRun.executed_at.desc(), AutomationRun.id.desc()).limit(limit).all()
                return [AutomationRunResponse.model_validate(row) for row in rows]

        try:
            return await asyncio.to_thread(_run)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to list runs for automation {automation_id}: {e}") from e
