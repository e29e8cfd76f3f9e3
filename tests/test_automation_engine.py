import asyncio
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

from easybail.constants.automation import ExecutionStatus, Frequency
from easybail.errors import AutomationNotFound, ExecutorFailure, RepositoryError
from easybail.executors.base import ActionOutcome
from easybail.scheduling.window import ExecutionWindow
from easybail.services.automation_engine import AutomationEngine

from fakes import InMemoryAutomationRepository, make_automation

NOV_1 = datetime(2024, 11, 1, 9, 0, tzinfo=timezone.utc)
NOV_2 = datetime(2024, 11, 2, 9, 0, tzinfo=timezone.utc)


def make_engine(automations=None, executor=None, **kwargs):
    repository = InMemoryAutomationRepository(automations)
    if executor is None:
        executor = MagicMock()
        executor.execute = AsyncMock(return_value=ActionOutcome.ok())
    return AutomationEngine(repository, executor, **kwargs), repository, executor


class TestDuePredicate:
    def test_active_and_past_is_due(self):
        engine, _, _ = make_engine()
        assert engine.is_due(make_automation(next_execution=NOV_1), NOV_2)

    def test_exactly_now_is_due(self):
        engine, _, _ = make_engine()
        assert engine.is_due(make_automation(next_execution=NOV_2), NOV_2)

    def test_future_is_not_due(self):
        engine, _, _ = make_engine()
        assert not engine.is_due(make_automation(next_execution=NOV_2 + timedelta(seconds=1)), NOV_2)

    def test_inactive_is_never_due(self):
        engine, _, _ = make_engine()
        assert not engine.is_due(make_automation(next_execution=NOV_1, active=False), NOV_2)

    def test_find_due_orders_by_next_execution_then_id(self):
        engine, _, _ = make_engine()
        a = make_automation(id="b", next_execution=NOV_1)
        b = make_automation(id="a", next_execution=NOV_1)
        c = make_automation(id="c", next_execution=NOV_1 - timedelta(days=1))
        future = make_automation(id="d", next_execution=NOV_2 + timedelta(days=1))
        assert [x.id for x in engine.find_due([a, b, c, future], NOV_2)] == ["c", "a", "b"]

    def test_window_gates_due_automations(self):
        window = ExecutionWindow("UTC", tolerance_minutes=10)
        engine, _, _ = make_engine(window=window)
        automation = make_automation(next_execution=NOV_1, execution_time="09:00")
        assert engine.is_due(automation, NOV_2)
        assert not engine.is_due(automation, NOV_2.replace(hour=14))


@pytest.mark.asyncio
class TestExecuteOne:
    async def test_success_advances_schedule(self):
        automation = make_automation(next_execution=NOV_1)
        engine, repository, executor = make_engine([automation])

        result = await engine.execute_one(automation, NOV_2)

        assert result.status == ExecutionStatus.SUCCESS
        assert result.next_execution == datetime(2024, 12, 2, 9, 0, tzinfo=timezone.utc)
        stored = repository.items[automation.id]
        assert stored.last_execution == NOV_2
        assert stored.next_execution == result.next_execution
        assert stored.next_execution > NOV_2
        executor.execute.assert_awaited_once_with(automation)

    async def test_failure_leaves_schedule_untouched(self):
        automation = make_automation(next_execution=NOV_1)
        executor = MagicMock()
        executor.execute = AsyncMock(return_value=ActionOutcome.failed("smtp down"))
        engine, repository, _ = make_engine([automation], executor)

        result = await engine.execute_one(automation, NOV_2)

        assert result.status == ExecutionStatus.FAILURE
        assert result.reason == "smtp down"
        assert repository.items[automation.id].next_execution == NOV_1
        assert repository.items[automation.id].last_execution is None
        assert repository.updates == []
        assert list(engine.recent_failures) == [result]

    async def test_executor_failure_exception_is_a_failure_result(self):
        automation = make_automation(next_execution=NOV_1)
        executor = MagicMock()
        executor.execute = AsyncMock(side_effect=ExecutorFailure("template missing"))
        engine, repository, _ = make_engine([automation], executor)

        result = await engine.execute_one(automation, NOV_2)

        assert result.failed
        assert result.reason == "template missing"
        assert repository.items[automation.id].next_execution == NOV_1

    async def test_unexpected_executor_exception_is_a_failure_result(self):
        automation = make_automation(next_execution=NOV_1)
        executor = MagicMock()
        executor.execute = AsyncMock(side_effect=RuntimeError("boom"))
        engine, _, _ = make_engine([automation], executor)

        result = await engine.execute_one(automation, NOV_2)

        assert result.failed
        assert "boom" in result.reason

    async def test_timeout_is_a_failure(self):
        automation = make_automation(next_execution=NOV_1)

        async def slow(_):
            await asyncio.sleep(1)
            return ActionOutcome.ok()

        executor = MagicMock()
        executor.execute = AsyncMock(side_effect=slow)
        engine, repository, _ = make_engine([automation], executor, executor_timeout=0.01)

        result = await engine.execute_one(automation, NOV_2)

        assert result.failed
        assert "timed out" in result.reason
        assert repository.items[automation.id].next_execution == NOV_1
        assert not engine.is_executing(automation.id)

    async def test_concurrent_executions_of_same_automation_run_once(self):
        automation = make_automation(next_execution=NOV_1)

        async def slow(_):
            await asyncio.sleep(0.05)
            return ActionOutcome.ok()

        executor = MagicMock()
        executor.execute = AsyncMock(side_effect=slow)
        engine, _, _ = make_engine([automation], executor)

        first, second = await asyncio.gather(
            engine.execute_one(automation, NOV_2),
            engine.execute_one(automation, NOV_2)
        )

        statuses = sorted([first.status, second.status])
        assert statuses == [ExecutionStatus.SKIPPED, ExecutionStatus.SUCCESS]
        assert executor.execute.await_count == 1
        assert not engine.is_executing(automation.id)

    async def test_deleted_during_execution_is_skipped(self):
        automation = make_automation(next_execution=NOV_1)
        engine, repository, executor = make_engine([automation])

        async def delete_then_succeed(a):
            await repository.delete(a.id)
            return ActionOutcome.ok()

        executor.execute.side_effect = delete_then_succeed

        result = await engine.execute_one(automation, NOV_2)

        assert result.skipped
        assert result.reason == "automation no longer exists"

    async def test_advance_from_previous_steps_past_now(self):
        automation = make_automation(frequency=Frequency.DAILY, next_execution=NOV_2 - timedelta(days=3))
        engine, repository, _ = make_engine([automation], advance_from_previous=True)

        result = await engine.execute_one(automation, NOV_2 + timedelta(hours=1))

        assert result.next_execution == NOV_2 + timedelta(days=1)

    async def test_records_runs(self):
        automation = make_automation(next_execution=NOV_1)
        recorder = MagicMock()
        recorder.record = AsyncMock()
        engine, _, _ = make_engine([automation], recorder=recorder)

        result = await engine.execute_one(automation, NOV_2, trigger_type='manual')

        recorder.record.assert_awaited_once_with(result, 'manual')

    async def test_recorder_errors_do_not_fail_execution(self):
        automation = make_automation(next_execution=NOV_1)
        recorder = MagicMock()
        recorder.record = AsyncMock(side_effect=RepositoryError("disk full"))
        engine, _, _ = make_engine([automation], recorder=recorder)

        result = await engine.execute_one(automation, NOV_2)

        assert result.succeeded


@pytest.mark.asyncio
class TestScan:
    async def test_monthly_end_to_end(self):
        automation = make_automation(frequency=Frequency.MONTHLY, next_execution=NOV_1)
        engine, repository, _ = make_engine([automation])

        report = await engine.scan(NOV_2)

        assert (report.due, report.attempted, report.succeeded, report.failed) == (1, 1, 1, 0)
        stored = repository.items[automation.id]
        assert stored.last_execution == NOV_2
        assert stored.next_execution == datetime(2024, 12, 2, 9, 0, tzinfo=timezone.utc)

        # Same instant again: nothing due anymore
        again = await engine.scan(NOV_2)
        assert again.due == 0
        assert again.attempted == 0

    async def test_partial_failure_is_isolated(self):
        first = make_automation(id="1", next_execution=NOV_1 - timedelta(hours=2))
        second = make_automation(id="2", next_execution=NOV_1 - timedelta(hours=1))
        third = make_automation(id="3", next_execution=NOV_1)

        async def fail_second(automation):
            if automation.id == "2":
                return ActionOutcome.failed("relay unreachable")
            return ActionOutcome.ok()

        executor = MagicMock()
        executor.execute = AsyncMock(side_effect=fail_second)
        engine, repository, _ = make_engine([first, second, third], executor)

        report = await engine.scan(NOV_2)

        assert report.attempted == 3
        assert report.succeeded == 2
        assert report.failed == 1
        assert executor.execute.await_count == 3
        assert repository.items["1"].next_execution > NOV_2
        assert repository.items["2"].next_execution == second.next_execution
        assert repository.items["3"].next_execution > NOV_2

    async def test_repository_error_becomes_failure_result(self):
        good = make_automation(id="good", next_execution=NOV_1)
        bad = make_automation(id="bad", next_execution=NOV_1)
        engine, repository, _ = make_engine([good, bad])
        original_update = repository.update

        async def flaky_update(automation_id, changes):
            if automation_id == "bad":
                raise RepositoryError("connection reset")
            return await original_update(automation_id, changes)

        repository.update = flaky_update

        report = await engine.scan(NOV_2)

        assert report.succeeded == 1
        assert report.failed == 1
        failed = [r for r in report.results if r.failed][0]
        assert failed.automation_id == "bad"
        assert "connection reset" in failed.reason

    async def test_nothing_due(self):
        engine, _, executor = make_engine([make_automation(next_execution=NOV_2 + timedelta(days=1))])

        report = await engine.scan(NOV_2)

        assert report.due == 0
        executor.execute.assert_not_awaited()

    async def test_listeners_notified_once_per_scan(self):
        automations = [make_automation(next_execution=NOV_1) for _ in range(3)]
        engine, _, _ = make_engine(automations)
        listener = AsyncMock()
        engine.add_listener(listener)

        await engine.scan(NOV_2)

        listener.assert_awaited_once()

    async def test_listeners_not_notified_when_nothing_succeeds(self):
        executor = MagicMock()
        executor.execute = AsyncMock(return_value=ActionOutcome.failed("nope"))
        engine, _, _ = make_engine([make_automation(next_execution=NOV_1)], executor)
        listener = MagicMock()
        engine.add_listener(listener)

        await engine.scan(NOV_2)

        listener.assert_not_called()

    async def test_failing_listener_does_not_break_scan(self):
        engine, _, _ = make_engine([make_automation(next_execution=NOV_1)])
        engine.add_listener(MagicMock(side_effect=RuntimeError("ui gone")))

        report = await engine.scan(NOV_2)

        assert report.succeeded == 1

    async def test_execute_all_due_returns_attempted_count(self):
        automations = [make_automation(next_execution=NOV_1), make_automation(next_execution=NOV_1, active=False)]
        engine, _, _ = make_engine(automations)

        assert await engine.execute_all_due(NOV_2) == 1

    async def test_automation_deleted_mid_scan_is_not_executed(self):
        first = make_automation(id="A", next_execution=NOV_1 - timedelta(hours=1))
        second = make_automation(id="B", next_execution=NOV_1)
        engine, repository, executor = make_engine([first, second], max_concurrency=1)
        release = asyncio.Event()

        async def hold_first(automation):
            if automation.id == "A":
                await release.wait()
            return ActionOutcome.ok()

        executor.execute.side_effect = hold_first

        scan = asyncio.create_task(engine.scan(NOV_2))
        await asyncio.sleep(0.01)
        assert engine.is_executing("A")
        await repository.delete("B")
        release.set()
        report = await scan

        assert [call.args[0].id for call in executor.execute.await_args_list] == ["A"]
        skipped = [r for r in report.results if r.skipped]
        assert [(r.automation_id, r.reason) for r in skipped] == [("B", "automation no longer exists")]
        assert (report.attempted, report.succeeded, report.skipped) == (1, 1, 1)

    async def test_automation_run_manually_mid_scan_is_not_executed_twice(self):
        first = make_automation(id="A", next_execution=NOV_1 - timedelta(hours=1))
        second = make_automation(id="B", next_execution=NOV_1)
        engine, repository, executor = make_engine([first, second], max_concurrency=1)
        release = asyncio.Event()

        async def hold_first(automation):
            if automation.id == "A":
                await release.wait()
            return ActionOutcome.ok()

        executor.execute.side_effect = hold_first

        scan = asyncio.create_task(engine.scan(NOV_2))
        await asyncio.sleep(0.01)
        manual = await engine.execute_now("B", NOV_2)
        release.set()
        report = await scan

        assert manual.succeeded
        executed_b = [call for call in executor.execute.await_args_list if call.args[0].id == "B"]
        assert len(executed_b) == 1
        result_b = [r for r in report.results if r.automation_id == "B"][0]
        assert result_b.skipped
        assert result_b.reason == "no longer due"
        assert repository.items["B"].next_execution > NOV_2

    async def test_automation_deactivated_since_listing_is_skipped(self):
        automation = make_automation(next_execution=NOV_1)
        engine, repository, executor = make_engine([automation])
        await repository.update(automation.id, {"active": False})

        result = await engine.execute_one(automation, NOV_2)

        assert result.skipped
        assert result.reason == "no longer due"
        executor.execute.assert_not_awaited()


@pytest.mark.asyncio
class TestExecuteNow:
    async def test_runs_regardless_of_schedule(self):
        automation = make_automation(next_execution=NOV_2 + timedelta(days=10))
        engine, repository, executor = make_engine([automation])

        result = await engine.execute_now(automation.id, NOV_2)

        assert result.succeeded
        assert repository.items[automation.id].next_execution == datetime(2024, 12, 2, 9, 0, tzinfo=timezone.utc)
        executor.execute.assert_awaited_once()

    async def test_unknown_automation_raises(self):
        engine, _, _ = make_engine()

        with pytest.raises(AutomationNotFound):
            await engine.execute_now("missing", NOV_2)

    async def test_inactive_automation_is_not_executed(self):
        automation = make_automation(active=False)
        engine, repository, executor = make_engine([automation])

        result = await engine.execute_now(automation.id, NOV_2)

        assert result.failed
        assert result.reason == "automation is inactive"
        executor.execute.assert_not_awaited()
        assert repository.updates == []

    async def test_notifies_listeners(self):
        automation = make_automation()
        engine, _, _ = make_engine([automation])
        listener = MagicMock()
        engine.add_listener(listener)

        await engine.execute_now(automation.id, NOV_2)

        listener.assert_called_once_with()
