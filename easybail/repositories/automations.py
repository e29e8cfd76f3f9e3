"""SQLAlchemy-backed automation repository."""

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from easybail.errors import AutomationNotFound, RepositoryError
from easybail.models.automation import Automation
from easybail.repositories.base import AutomationRepository
from easybail.schemas.automation import AutomationCreate, AutomationInDB
from easybail.utils.timeutil import to_utc

log = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({
    "name",
    "description",
    "type",
    "frequency",
    "next_execution",
    "last_execution",
    "active",
    "property_id",
    "execution_time",
    "email_template_id",
    "document_template_id",
})


def _to_column(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return to_utc(value)
    return value


class SqlAlchemyAutomationRepository(AutomationRepository):
    """
    Stores automations through short-lived sessions from ``session_factory``.

    Records leave the repository as AutomationInDB snapshots so callers never
    hold ORM instances across scans. Session work runs in a worker thread so
    a slow database never blocks the event loop.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    async def list(self) -> List[AutomationInDB]:
        def _run() -> List[AutomationInDB]:
            with self._session_factory() as db:
                rows = db.query(Automation).order_by(Automation.created_at.desc(), Automation.id).all()
                return [AutomationInDB.model_validate(row) for row in rows]

        try:
            return await asyncio.to_thread(_run)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to list automations: {e}") from e

    async def get_by_id(self, automation_id: str) -> Optional[AutomationInDB]:
        def _run() -> Optional[AutomationInDB]:
            with self._session_factory() as db:
                row = db.get(Automation, automation_id)
                return AutomationInDB.model_validate(row) if row else None

        try:
            return await asyncio.to_thread(_run)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to load automation {automation_id}: {e}") from e

    async def create(self, data: AutomationCreate) -> AutomationInDB:
        values = {key: _to_column(value) for key, value in data.model_dump().items()}

        def _run() -> AutomationInDB:
            with self._session_factory() as db:
                row = Automation(**values)
                db.add(row)
                db.commit()
                db.refresh(row)
                return AutomationInDB.model_validate(row)

        try:
            created = await asyncio.to_thread(_run)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to create automation: {e}") from e
        log.info(f"Created automation '{created.name}' (ID: {created.id})")
        return created

    async def update(self, automation_id: str, changes: Dict[str, Any]) -> AutomationInDB:
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update automation fields: {sorted(unknown)}")

        def _run() -> AutomationInDB:
            with self._session_factory() as db:
                row = db.get(Automation, automation_id)
                if row is None:
                    raise AutomationNotFound(automation_id)
                for key, value in changes.items():
                    setattr(row, key, _to_column(value))
                db.commit()
                db.refresh(row)
                return AutomationInDB.model_validate(row)

        try:
            updated = await asyncio.to_thread(_run)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to update automation {automation_id}: {e}") from e
        log.debug(f"Updated automation {automation_id}: {sorted(changes)}")
        return updated

    async def delete(self, automation_id: str) -> None:
        def _run() -> None:
            with self._session_factory() as db:
                row = db.get(Automation, automation_id)
                if row is None:
                    raise AutomationNotFound(automation_id)
                db.delete(row)
                db.commit()

        try:
            await asyncio.to_thread(_run)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to delete automation {automation_id}: {e}") from e
        log.info(f"Deleted automation {automation_id}")
