from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel, Field

from easybail.schemas.automation import AutomationInDB


class ActionOutcome(BaseModel):
    """Success/failure signal reported by an action executor."""
    success: bool = Field(..., description="Whether the side effect was performed")
    reason: Optional[str] = Field(None, description="Failure explanation")
    detail: Optional[str] = Field(None, description="Free-form note, e.g. 'queued' or a relay message id")

    @classmethod
    def ok(cls, detail: Optional[str] = None) -> "ActionOutcome":
        return cls(success=True, detail=detail)

    @classmethod
    def failed(cls, reason: str) -> "ActionOutcome":
        return cls(success=False, reason=reason)


class BaseActionExecutor(ABC):
    """Abstract Base Class for automation side effects (email, documents...).

    Implementations either return a failed ActionOutcome or raise
    ExecutorFailure; both leave the automation due for the next scan.
    """

    @abstractmethod
    async def execute(self, automation: AutomationInDB) -> ActionOutcome:
        """Performs the side effect of one automation."""
        pass
