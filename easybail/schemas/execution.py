"""Execution outcome schemas returned by the engine and the scheduler."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from easybail.constants.automation import ExecutionStatus


class ExecutionResult(BaseModel):
    automation_id: str
    status: ExecutionStatus
    executed_at: datetime
    reason: Optional[str] = None  # failure or skip explanation
    next_execution: Optional[datetime] = None  # set on success

    @property
    def succeeded(self) -> bool:
        return self.status == ExecutionStatus.SUCCESS

    @property
    def failed(self) -> bool:
        return self.status == ExecutionStatus.FAILURE

    @property
    def skipped(self) -> bool:
        return self.status == ExecutionStatus.SKIPPED


class ScanReport(BaseModel):
    """Outcome of one due-check-and-execute cycle."""

    started_at: datetime
    finished_at: Optional[datetime] = None
    due: int = 0
    attempted: int = 0  # executor invocations (successes + failures)
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    results: List[ExecutionResult] = Field(default_factory=list)

    def add(self, result: ExecutionResult) -> None:
        self.results.append(result)
        if result.succeeded:
            self.succeeded += 1
            self.attempted += 1
        elif result.failed:
            self.failed += 1
            self.attempted += 1
        else:
            self.skipped += 1


class AutomationRunResponse(BaseModel):
    id: int
    automation_id: str
    trigger_type: str
    status: ExecutionStatus
    executed_at: datetime
    next_execution: Optional[datetime] = None
    error_message: Optional[str] = None

    class Config:
        from_attributes = True
