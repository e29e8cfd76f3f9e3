"""Audit logging helper for consistent audit trail creation."""

from typing import Optional, Dict, Any
from fastapi import Request
from sqlalchemy.orm import Session

from easybail.models.audit_log import AuditLog
from easybail.utils.ip_extractor import get_client_ip, get_user_agent


def create_audit_log(
    db: Session,
    request: Request,
    action: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Create audit log entry with automatic IP and user agent extraction.

    Args:
        db: Database session
        request: FastAPI Request object (for IP/user-agent extraction)
        action: Action being performed (e.g., 'automation_created', 'scheduler_stopped')
        entity_type: Type of entity affected (e.g., 'automation', 'email_template')
        entity_id: ID of affected entity
        details: Additional context as JSON

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details,
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request)
    )

    db.add(audit_log)
    db.commit()
    db.refresh(audit_log)

    return audit_log
