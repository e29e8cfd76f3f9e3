"""Outbox model for emails awaiting delivery through the mail relay."""

from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.sql import func
from easybail.database import Base


class QueuedEmail(Base):
    __tablename__ = "email_outbox"

    id = Column(Integer, primary_key=True, index=True)
    automation_id = Column(String(36), nullable=True, index=True)
    recipient = Column(String(255), nullable=False)
    subject = Column(String(255), nullable=False)
    html = Column(Text, nullable=False)
    document_id = Column(String(36), nullable=True)  # attachment reference resolved by the relay

    status = Column(String(20), nullable=False, default='pending', index=True)  # 'pending', 'sent', 'failed'
    attempts = Column(Integer, nullable=False, default=0)
    last_attempt = Column(DateTime(timezone=True), nullable=True)
    error = Column(Text, nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<QueuedEmail(id={self.id}, to='{self.recipient}', status='{self.status}', attempts={self.attempts})>"
