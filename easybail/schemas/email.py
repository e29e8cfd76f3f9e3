from typing import Optional, Literal
from datetime import datetime
from pydantic import BaseModel, Field


class EmailTemplateBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    subject: str = Field(..., min_length=1, max_length=255)
    content: str
    category: Literal['tenant', 'property', 'financial', 'administrative', 'other'] = 'other'


class EmailTemplateCreate(EmailTemplateBase):
    pass


class EmailTemplateInDB(EmailTemplateBase):
    id: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EmailMessage(BaseModel):
    """Rendered email handed to the mail transport or the outbox."""
    to: str
    subject: str
    html: str
    document_id: Optional[str] = None
    automation_id: Optional[str] = None


class QueuedEmailInDB(BaseModel):
    id: int
    automation_id: Optional[str] = None
    recipient: str
    subject: str
    status: str
    attempts: int
    last_attempt: Optional[datetime] = None
    error: Optional[str] = None
    sent_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class OutboxProcessResponse(BaseModel):
    sent: int
    pending: int
