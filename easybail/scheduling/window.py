"""Optional time-of-day gate applied on top of the due predicate."""

import re
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

EXECUTION_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

_MINUTES_PER_DAY = 24 * 60


def parse_execution_time(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    match = EXECUTION_TIME_PATTERN.match(value or "")
    if not match:
        raise ValueError(f"Invalid execution time: {value!r} (expected HH:MM)")
    return int(match.group(1)) * 60 + int(match.group(2))


class ExecutionWindow:
    """
    Matches when the local time of ``now`` is within ``tolerance_minutes`` of an
    automation's execution time. Distances wrap around midnight, so 23:55 and
    00:03 are 8 minutes apart.
    """

    def __init__(self, timezone: str = "UTC", tolerance_minutes: int = 10, default_time: str = "09:00"):
        self.tz = ZoneInfo(timezone)
        self.tolerance_minutes = tolerance_minutes
        self.default_minutes = parse_execution_time(default_time)

    def matches(self, execution_time: Optional[str], now: datetime) -> bool:
        target = parse_execution_time(execution_time) if execution_time else self.default_minutes
        local = now.astimezone(self.tz)
        current = local.hour * 60 + local.minute
        diff = abs(current - target)
        return min(diff, _MINUTES_PER_DAY - diff) <= self.tolerance_minutes
