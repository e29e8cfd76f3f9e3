"""Automation run model for tracking execution attempts."""

from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.sql import func
from easybail.database import Base


class AutomationRun(Base):
    """Execution history of automations, one row per attempt."""

    __tablename__ = "automation_runs"

    id = Column(Integer, primary_key=True, index=True)
    automation_id = Column(String(36), nullable=False, index=True)

    # Execution details
    trigger_type = Column(String(50), nullable=False, default='scheduled')  # 'scheduled', 'manual'
    status = Column(String(20), nullable=False)  # 'success', 'failure', 'skipped'
    executed_at = Column(DateTime(timezone=True), nullable=False)
    next_execution = Column(DateTime(timezone=True), nullable=True)

    # Error information
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<AutomationRun(id={self.id}, automation='{self.automation_id}', status='{self.status}')>"
