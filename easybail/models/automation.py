"""Automation model: a persisted recurring unit of scheduled work."""

import uuid

from sqlalchemy import Column, String, Boolean, DateTime, Text
from sqlalchemy.sql import func
from easybail.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Automation(Base):
    """Recurring automation (rent receipts, reminders, reviews...)."""

    __tablename__ = "automations"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    type = Column(String(30), nullable=False, index=True)  # see AutomationType
    frequency = Column(String(20), nullable=False)  # see Frequency

    # Scheduling state
    next_execution = Column(DateTime(timezone=True), nullable=False, index=True)
    last_execution = Column(DateTime(timezone=True), nullable=True)
    active = Column(Boolean, nullable=False, default=True, index=True)
    execution_time = Column(String(5), nullable=True)  # "HH:MM"

    # References consumed by the action executor
    property_id = Column(String(36), nullable=True, index=True)
    email_template_id = Column(String(36), nullable=True)
    document_template_id = Column(String(36), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Automation(id='{self.id}', name='{self.name}', frequency='{self.frequency}', active={self.active})>"
