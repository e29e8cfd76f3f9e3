"""Email template model with {{variable}} placeholders."""

import uuid

from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.sql import func
from easybail.database import Base


class EmailTemplate(Base):
    __tablename__ = "email_templates"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False)
    subject = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    category = Column(String(30), nullable=False, default='other')  # 'tenant', 'property', 'financial', 'administrative', 'other'
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<EmailTemplate(id='{self.id}', name='{self.name}')>"
