"""Property model, read by the email executor to fill templates.

Property and tenant management live in the dashboard; only the columns the
automations need are mapped here.
"""

from sqlalchemy import Column, String, Float, Date
from easybail.database import Base


class Property(Base):
    __tablename__ = "properties"

    id = Column(String(36), primary_key=True)
    name = Column(String(200), nullable=False)
    address = Column(String(255), nullable=False, default="")
    type = Column(String(50), nullable=False, default="apartment")
    rent = Column(Float, nullable=False, default=0.0)
    charges = Column(Float, nullable=False, default=0.0)

    # Current tenant
    tenant_first_name = Column(String(100), nullable=True)
    tenant_last_name = Column(String(100), nullable=True)
    tenant_email = Column(String(255), nullable=True)
    tenant_phone = Column(String(50), nullable=True)
    lease_start = Column(Date, nullable=True)
    lease_end = Column(Date, nullable=True)

    def __repr__(self):
        return f"<Property(id='{self.id}', name='{self.name}')>"
