from typing import Optional, Dict, Any, List
from datetime import datetime
from pydantic import BaseModel

class AuditLogBase(BaseModel):
    action: str
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

class AuditLogInDB(AuditLogBase):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True

class PaginatedAuditLogs(BaseModel):
    data: List[AuditLogInDB]
    total: int
