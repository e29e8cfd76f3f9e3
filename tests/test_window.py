import pytest
from datetime import datetime, timezone

from easybail.scheduling.window import ExecutionWindow, parse_execution_time


def test_parse_execution_time():
    assert parse_execution_time("00:00") == 0
    assert parse_execution_time("09:30") == 570
    assert parse_execution_time("23:59") == 1439


@pytest.mark.parametrize("value", ["9:30", "24:00", "12:60", "noon", ""])
def test_parse_execution_time_rejects_invalid(value):
    with pytest.raises(ValueError):
        parse_execution_time(value)


class TestExecutionWindow:
    @pytest.fixture
    def window(self):
        return ExecutionWindow("Europe/Paris", tolerance_minutes=10, default_time="09:00")

    def test_matches_within_tolerance(self, window):
        # 08:05 UTC is 09:05 in Paris (winter time)
        assert window.matches("09:00", datetime(2024, 11, 2, 8, 5, tzinfo=timezone.utc))

    def test_rejects_outside_tolerance(self, window):
        assert not window.matches("09:00", datetime(2024, 11, 2, 11, 0, tzinfo=timezone.utc))

    def test_uses_default_time(self, window):
        assert window.matches(None, datetime(2024, 11, 2, 7, 55, tzinfo=timezone.utc))

    def test_wraps_around_midnight(self):
        window = ExecutionWindow("UTC", tolerance_minutes=10)
        assert window.matches("23:55", datetime(2024, 11, 2, 0, 3, tzinfo=timezone.utc))
        assert window.matches("00:02", datetime(2024, 11, 2, 23, 58, tzinfo=timezone.utc))
        assert not window.matches("23:30", datetime(2024, 11, 2, 0, 3, tzinfo=timezone.utc))
