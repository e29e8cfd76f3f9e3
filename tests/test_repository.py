import threading
import pytest
from datetime import datetime, timedelta, timezone
from sqlalchemy.exc import OperationalError

from easybail.constants.automation import AutomationType, Frequency
from easybail.database import SessionLocal
from easybail.errors import AutomationNotFound, RepositoryError
from easybail.repositories.automations import SqlAlchemyAutomationRepository
from easybail.schemas.automation import AutomationCreate

PARIS_MORNING = datetime(2024, 11, 1, 9, 0, tzinfo=timezone(timedelta(hours=1)))


@pytest.fixture
def repository():
    return SqlAlchemyAutomationRepository(SessionLocal)


def payload(**overrides) -> AutomationCreate:
    values = {
        "name": "Rappel assurance",
        "type": AutomationType.INSURANCE,
        "frequency": Frequency.YEARLY,
        "next_execution": PARIS_MORNING,
        "execution_time": "09:00",
    }
    values.update(overrides)
    return AutomationCreate(**values)


@pytest.mark.asyncio
class TestSqlAlchemyAutomationRepository:
    async def test_create_and_get(self, repository):
        created = await repository.create(payload())

        loaded = await repository.get_by_id(created.id)

        assert loaded is not None
        assert loaded.name == "Rappel assurance"
        assert loaded.type == AutomationType.INSURANCE
        assert loaded.frequency == Frequency.YEARLY
        assert loaded.active is True
        assert loaded.last_execution is None

    async def test_timestamps_come_back_as_utc(self, repository):
        created = await repository.create(payload())

        loaded = await repository.get_by_id(created.id)

        assert loaded.next_execution == PARIS_MORNING
        assert loaded.next_execution.utcoffset() == timedelta(0)
        assert loaded.next_execution.hour == 8

    async def test_get_missing_returns_none(self, repository):
        assert await repository.get_by_id("does-not-exist") is None

    async def test_list(self, repository):
        first = await repository.create(payload(name="A"))
        second = await repository.create(payload(name="B"))

        ids = {a.id for a in await repository.list()}

        assert ids == {first.id, second.id}

    async def test_update(self, repository):
        created = await repository.create(payload())
        executed_at = datetime(2024, 11, 2, 9, 0, tzinfo=timezone.utc)

        updated = await repository.update(created.id, {
            "last_execution": executed_at,
            "next_execution": executed_at + timedelta(days=365),
            "frequency": Frequency.MONTHLY,
        })

        assert updated.last_execution == executed_at
        assert updated.next_execution == datetime(2025, 11, 2, 9, 0, tzinfo=timezone.utc)
        assert updated.frequency == Frequency.MONTHLY
        assert updated.name == "Rappel assurance"

    async def test_update_missing_raises(self, repository):
        with pytest.raises(AutomationNotFound) as exc_info:
            await repository.update("does-not-exist", {"active": False})
        assert exc_info.value.automation_id == "does-not-exist"

    async def test_update_unknown_field_rejected(self, repository):
        created = await repository.create(payload())

        with pytest.raises(ValueError):
            await repository.update(created.id, {"id": "other"})

    async def test_delete(self, repository):
        created = await repository.create(payload())

        await repository.delete(created.id)

        assert await repository.get_by_id(created.id) is None
        with pytest.raises(AutomationNotFound):
            await repository.delete(created.id)

    async def test_storage_failure_is_repository_error(self):
        def broken_session():
            raise OperationalError("SELECT 1", {}, Exception("unable to open database file"))

        repository = SqlAlchemyAutomationRepository(broken_session)

        with pytest.raises(RepositoryError):
            await repository.list()

    async def test_sessions_are_opened_off_the_event_loop_thread(self):
        loop_thread = threading.get_ident()
        session_threads = []

        def tracking_session():
            session_threads.append(threading.get_ident())
            return SessionLocal()

        repository = SqlAlchemyAutomationRepository(tracking_session)
        created = await repository.create(payload())
        await repository.list()
        await repository.get_by_id(created.id)
        await repository.update(created.id, {"active": False})
        await repository.delete(created.id)

        assert len(session_threads) == 5
        assert loop_thread not in session_threads
