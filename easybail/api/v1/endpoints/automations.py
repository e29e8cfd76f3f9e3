"""Automation endpoints: CRUD, toggling and manual execution."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from easybail.api.deps import get_facade, get_run_recorder
from easybail.database import get_db
from easybail.errors import AutomationNotFound
from easybail.schemas.automation import AutomationCreate, AutomationResponse, AutomationUpdate
from easybail.schemas.execution import AutomationRunResponse, ExecutionResult, ScanReport
from easybail.services.automation_facade import AutomationFacade
from easybail.services.run_recorder import RunRecorder
from easybail.utils.audit_logger import create_audit_log

log = logging.getLogger(__name__)
router = APIRouter()


def _not_found(automation_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Automation not found: {automation_id}"
    )


def _response(facade: AutomationFacade, automation) -> AutomationResponse:
    return AutomationResponse.from_record(automation, executing=facade.engine.is_executing(automation.id))


@router.get("/", response_model=List[AutomationResponse])
async def read_automations(
    active: Optional[bool] = None,
    facade: AutomationFacade = Depends(get_facade)
):
    """Retrieve all automations, optionally filtered by active state."""
    automations = await facade.list()
    if active is not None:
        automations = [a for a in automations if a.active == active]
    return [_response(facade, a) for a in automations]


@router.post("/", response_model=AutomationResponse, status_code=status.HTTP_201_CREATED)
async def create_automation(
    http_request: Request,
    automation: AutomationCreate,
    db: Session = Depends(get_db),
    facade: AutomationFacade = Depends(get_facade)
):
    """Create a new automation."""
    created = await facade.create(automation)

    create_audit_log(
        db=db,
        request=http_request,
        action="automation_created",
        entity_type="automation",
        entity_id=created.id,
        details={"type": created.type.value, "frequency": created.frequency.value}
    )
    return _response(facade, created)


@router.post("/execute-due", response_model=Optional[ScanReport])
async def execute_due_automations(
    http_request: Request,
    db: Session = Depends(get_db),
    facade: AutomationFacade = Depends(get_facade)
):
    """
    Execute every due automation now (partial failures are reported, not raised).
    Returns null when a background scan is already in progress.
    """
    report = await facade.execute_all_due()
    if report is None:
        return None

    create_audit_log(
        db=db,
        request=http_request,
        action="automations_executed_due",
        entity_type="automation",
        details={"attempted": report.attempted, "succeeded": report.succeeded, "failed": report.failed}
    )
    return report


@router.get("/{automation_id}", response_model=AutomationResponse)
async def read_automation(
    automation_id: str,
    facade: AutomationFacade = Depends(get_facade)
):
    """Retrieve a single automation by ID."""
    try:
        automation = await facade.get(automation_id)
    except AutomationNotFound:
        raise _not_found(automation_id)
    return _response(facade, automation)


@router.patch("/{automation_id}", response_model=AutomationResponse)
async def update_automation(
    http_request: Request,
    automation_id: str,
    update: AutomationUpdate,
    db: Session = Depends(get_db),
    facade: AutomationFacade = Depends(get_facade)
):
    """Update an existing automation."""
    try:
        automation = await facade.update(automation_id, update)
    except AutomationNotFound:
        raise _not_found(automation_id)

    create_audit_log(
        db=db,
        request=http_request,
        action="automation_updated",
        entity_type="automation",
        entity_id=automation_id,
        details={"fields": sorted(update.model_dump(exclude_unset=True))}
    )
    return _response(facade, automation)


@router.delete("/{automation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_automation(
    http_request: Request,
    automation_id: str,
    db: Session = Depends(get_db),
    facade: AutomationFacade = Depends(get_facade)
):
    """Delete an automation."""
    try:
        await facade.delete(automation_id)
    except AutomationNotFound:
        raise _not_found(automation_id)

    create_audit_log(
        db=db,
        request=http_request,
        action="automation_deleted",
        entity_type="automation",
        entity_id=automation_id
    )
    return


@router.post("/{automation_id}/toggle", response_model=AutomationResponse)
async def toggle_automation(
    http_request: Request,
    automation_id: str,
    db: Session = Depends(get_db),
    facade: AutomationFacade = Depends(get_facade)
):
    """Flip the active flag of an automation."""
    try:
        automation = await facade.toggle_active(automation_id)
    except AutomationNotFound:
        raise _not_found(automation_id)

    create_audit_log(
        db=db,
        request=http_request,
        action="automation_toggled",
        entity_type="automation",
        entity_id=automation_id,
        details={"active": automation.active}
    )
    return _response(facade, automation)


@router.post("/{automation_id}/execute", response_model=ExecutionResult)
async def execute_automation(
    http_request: Request,
    automation_id: str,
    db: Session = Depends(get_db),
    facade: AutomationFacade = Depends(get_facade)
):
    """Execute an automation immediately; a success also resets its schedule."""
    try:
        result = await facade.execute_now(automation_id)
    except AutomationNotFound:
        raise _not_found(automation_id)

    create_audit_log(
        db=db,
        request=http_request,
        action="automation_executed",
        entity_type="automation",
        entity_id=automation_id,
        details={"status": result.status.value, "reason": result.reason}
    )
    return result


@router.get("/{automation_id}/runs", response_model=List[AutomationRunResponse])
async def read_automation_runs(
    automation_id: str,
    limit: int = 50,
    facade: AutomationFacade = Depends(get_facade),
    recorder: RunRecorder = Depends(get_run_recorder)
):
    """Execution history of an automation, newest first."""
    try:
        await facade.get(automation_id)
    except AutomationNotFound:
        raise _not_found(automation_id)
    return await recorder.list_for(automation_id, limit=limit)
