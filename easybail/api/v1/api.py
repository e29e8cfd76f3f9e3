from fastapi import APIRouter

from easybail.api.v1.endpoints import automations, scheduler, email_templates, outbox, audit_logs

api_router = APIRouter()
api_router.include_router(automations.router, prefix="/automations", tags=["automations"])
api_router.include_router(scheduler.router, prefix="/scheduler", tags=["scheduler"])
api_router.include_router(email_templates.router, prefix="/email-templates", tags=["email-templates"])
api_router.include_router(outbox.router, prefix="/outbox", tags=["outbox"])
api_router.include_router(audit_logs.router, prefix="/audit-logs", tags=["audit-logs"])
