"""Automation schemas: the domain record handed to the engine and API payloads."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from easybail.constants.automation import AutomationType, Frequency, PROPERTY_REQUIRED_TYPES
from easybail.scheduling.frequency import compute_upcoming
from easybail.scheduling.window import parse_execution_time
from easybail.utils.timeutil import ensure_aware


def _validate_execution_time(v: Optional[str]) -> Optional[str]:
    if v is None or v == "":
        return None
    parse_execution_time(v)
    return v


class AutomationBase(BaseModel):
    """Fields shared by create payloads and stored records."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    type: AutomationType
    frequency: Frequency
    next_execution: datetime
    active: bool = True
    property_id: Optional[str] = None
    execution_time: Optional[str] = Field(None, description="Display hint HH:MM")
    email_template_id: Optional[str] = None
    document_template_id: Optional[str] = None

    @field_validator('execution_time')
    @classmethod
    def validate_execution_time(cls, v: Optional[str]) -> Optional[str]:
        return _validate_execution_time(v)


class AutomationCreate(AutomationBase):
    @field_validator('next_execution')
    @classmethod
    def validate_next_execution(cls, v: datetime) -> datetime:
        return ensure_aware(v)

    @model_validator(mode='after')
    def check_property(self) -> "AutomationCreate":
        if self.type in PROPERTY_REQUIRED_TYPES and not self.property_id:
            raise ValueError(f"property_id is required for '{self.type.value}' automations")
        return self


class AutomationUpdate(BaseModel):
    """Automation update schema - all fields optional."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    type: Optional[AutomationType] = None
    frequency: Optional[Frequency] = None
    next_execution: Optional[datetime] = None
    active: Optional[bool] = None
    property_id: Optional[str] = None
    execution_time: Optional[str] = None
    email_template_id: Optional[str] = None
    document_template_id: Optional[str] = None

    @field_validator('execution_time')
    @classmethod
    def validate_execution_time(cls, v: Optional[str]) -> Optional[str]:
        return _validate_execution_time(v)

    @field_validator('next_execution')
    @classmethod
    def validate_next_execution(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            raise ValueError('next_execution cannot be cleared')
        return ensure_aware(v)


class AutomationInDB(AutomationBase):
    """Automation as read from the repository."""

    id: str
    last_execution: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    @field_validator('next_execution', 'last_execution', 'created_at', 'updated_at')
    @classmethod
    def make_aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_aware(v)

    class Config:
        from_attributes = True


class AutomationResponse(AutomationInDB):
    """Automation response with computed fields."""

    upcoming: List[datetime] = Field(default_factory=list, description="Next 3 run times")
    executing: bool = False

    @classmethod
    def from_record(cls, record: AutomationInDB, executing: bool = False) -> "AutomationResponse":
        upcoming = compute_upcoming(record.frequency, record.next_execution) if record.active else []
        return cls(**record.model_dump(), upcoming=upcoming, executing=executing)
