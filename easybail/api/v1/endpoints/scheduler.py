"""Scheduler endpoints: status, start/stop, interval and forced scans."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from easybail.api.deps import get_facade
from easybail.database import get_db
from easybail.schemas.execution import ScanReport
from easybail.schemas.scheduler import SchedulerIntervalUpdate, SchedulerStatus
from easybail.services.automation_facade import AutomationFacade
from easybail.utils.audit_logger import create_audit_log

log = logging.getLogger(__name__)
router = APIRouter()


def _status(facade: AutomationFacade) -> SchedulerStatus:
    scheduler = facade.scheduler
    return SchedulerStatus(
        active=facade.is_scheduler_active(),
        interval_seconds=scheduler.interval_seconds,
        scan_running=scheduler.scan_running,
        next_run=scheduler.next_run_time(),
        recent_failures=len(facade.engine.recent_failures)
    )


@router.get("/", response_model=SchedulerStatus)
async def get_scheduler_status(facade: AutomationFacade = Depends(get_facade)):
    """Get current scheduler state."""
    return _status(facade)


@router.post("/start", response_model=SchedulerStatus)
async def start_scheduler(
    http_request: Request,
    db: Session = Depends(get_db),
    facade: AutomationFacade = Depends(get_facade)
):
    """Start the background scan (no-op when already running)."""
    was_active = facade.is_scheduler_active()
    facade.start_scheduler()
    if not was_active:
        create_audit_log(db=db, request=http_request, action="scheduler_started", entity_type="scheduler")
    return _status(facade)


@router.post("/stop", response_model=SchedulerStatus)
async def stop_scheduler(
    http_request: Request,
    db: Session = Depends(get_db),
    facade: AutomationFacade = Depends(get_facade)
):
    """Stop the background scan; a scan in progress is allowed to finish."""
    was_active = facade.is_scheduler_active()
    facade.stop_scheduler()
    if was_active:
        create_audit_log(db=db, request=http_request, action="scheduler_stopped", entity_type="scheduler")
    return _status(facade)


@router.put("/interval", response_model=SchedulerStatus)
async def update_scheduler_interval(
    http_request: Request,
    update: SchedulerIntervalUpdate,
    db: Session = Depends(get_db),
    facade: AutomationFacade = Depends(get_facade)
):
    """Change the number of seconds between scans."""
    old = facade.scheduler.interval_seconds
    facade.set_scheduler_interval(update.interval_seconds)
    create_audit_log(
        db=db,
        request=http_request,
        action="scheduler_interval_updated",
        entity_type="scheduler",
        details={"old": old, "new": facade.scheduler.interval_seconds}
    )
    return _status(facade)


@router.post("/force-check", response_model=Optional[ScanReport])
async def force_check(facade: AutomationFacade = Depends(get_facade)):
    """Run a scan immediately. Returns null when a scan is already in progress."""
    return await facade.force_check()
