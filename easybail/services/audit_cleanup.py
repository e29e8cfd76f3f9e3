"""Audit log cleanup service for managing retention policies."""

from datetime import timedelta
from typing import Callable
from sqlalchemy.orm import Session
from sqlalchemy import and_
import logging

from easybail.models.audit_log import AuditLog
from easybail.utils.timeutil import utcnow

log = logging.getLogger(__name__)

# Scheduler lifecycle entries are kept regardless of age
PERMANENT_ACTION_PREFIX = 'scheduler'


def cleanup_old_audit_logs(db: Session, days_to_keep: int = 90) -> int:
    """
    Delete audit log entries older than specified days.
    Scheduler logs (action starts with 'scheduler') are never deleted.

    Args:
        db: Database session
        days_to_keep: Number of days to retain entries (default: 90)

    Returns:
        Number of audit log entries deleted
    """
    cutoff_date = utcnow() - timedelta(days=days_to_keep)

    deleted = db.query(AuditLog).filter(
        and_(
            AuditLog.created_at < cutoff_date,
            ~AuditLog.action.like(f'{PERMANENT_ACTION_PREFIX}%')
        )
    ).delete(synchronize_session=False)

    db.commit()

    log.info(f"Audit cleanup: Deleted {deleted} entries older than {days_to_keep} days (cutoff: {cutoff_date.isoformat()})")

    return deleted


def run_audit_cleanup(session_factory: Callable[[], Session], days_to_keep: int = 90) -> int:
    """Scheduled job body: opens its own session and never raises."""
    try:
        with session_factory() as db:
            return cleanup_old_audit_logs(db, days_to_keep=days_to_keep)
    except Exception as e:
        log.error(f"Audit cleanup failed: {e}", exc_info=True)
        return 0
