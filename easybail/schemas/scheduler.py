"""Scheduler schemas for API requests and responses."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SchedulerStatus(BaseModel):
    active: bool
    interval_seconds: int
    scan_running: bool
    next_run: Optional[datetime] = Field(None, description="Next scan time, when active")
    recent_failures: int = 0


class SchedulerIntervalUpdate(BaseModel):
    interval_seconds: int = Field(..., ge=10, description="Seconds between scans (minimum 10)")
