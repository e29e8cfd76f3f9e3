"""Pure scheduling rules: frequency arithmetic and the time-of-day window."""

from easybail.scheduling.frequency import compute_next, compute_upcoming
from easybail.scheduling.window import ExecutionWindow

__all__ = ["compute_next", "compute_upcoming", "ExecutionWindow"]
