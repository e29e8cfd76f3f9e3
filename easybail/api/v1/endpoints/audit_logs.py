from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from easybail.database import get_db
from easybail.models.audit_log import AuditLog
from easybail.schemas.audit import AuditLogInDB, PaginatedAuditLogs

router = APIRouter()


@router.get("/", response_model=PaginatedAuditLogs)
async def read_audit_logs(
    skip: int = 0,
    limit: int = 100,
    action: Optional[str] = Query(None, description="Filter by specific action"),
    entity_type: Optional[str] = Query(None, description="Filter by entity type: 'automation', 'scheduler', ..."),
    entity_id: Optional[str] = Query(None, description="Filter by entity ID"),
    start_date: Optional[str] = Query(None, description="Filter created_at >= YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, description="Filter created_at <= YYYY-MM-DD"),
    db: Session = Depends(get_db)
):
    """Retrieve audit logs with optional filters, newest first."""
    query = db.query(AuditLog)

    if action:
        query = query.filter(AuditLog.action == action)
    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)
    if entity_id:
        query = query.filter(AuditLog.entity_id == entity_id)
    if start_date:
        query = query.filter(AuditLog.created_at >= datetime.fromisoformat(f"{start_date}T00:00:00"))
    if end_date:
        query = query.filter(AuditLog.created_at <= datetime.fromisoformat(f"{end_date}T23:59:59"))

    total = query.count()
    logs = query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).offset(skip).limit(limit).all()
    return PaginatedAuditLogs(data=logs, total=total)


@router.get("/{log_id}", response_model=AuditLogInDB)
async def read_audit_log(
    log_id: int,
    db: Session = Depends(get_db)
):
    """Retrieve a single audit log by ID."""
    db_log = db.get(AuditLog, log_id)
    if db_log is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Audit log not found")
    return db_log
