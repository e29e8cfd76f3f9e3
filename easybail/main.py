"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager
from datetime import timezone
from functools import partial

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from easybail import __version__
from easybail.api.v1.api import api_router
from easybail.config import settings
from easybail.database import SessionLocal
from easybail.errors import AutomationNotFound, RepositoryError
from easybail.executors.email_executor import EmailActionExecutor
from easybail.repositories.automations import SqlAlchemyAutomationRepository
from easybail.scheduler import AutomationScheduler
from easybail.scheduling.window import ExecutionWindow
from easybail.services.audit_cleanup import run_audit_cleanup
from easybail.services.automation_engine import AutomationEngine
from easybail.services.automation_facade import AutomationFacade
from easybail.services.email_outbox import EmailOutbox
from easybail.services.mail_transport import MailRelayClient
from easybail.services.run_recorder import RunRecorder

# Custom TRACE level
logging.TRACE = 5
logging.addLevelName(logging.TRACE, "TRACE")

# Add trace method to standard Logger class for all instances
def trace_method(self, msg, *args, **kwargs):
    if self.isEnabledFor(logging.TRACE):
        self._log(logging.TRACE, msg, args, **kwargs)

logging.Logger.trace = trace_method

# Configure root logger early
log_level_str = settings.log_level.upper()
log_level = logging.TRACE if log_level_str == "TRACE" else getattr(logging, log_level_str, logging.INFO)
if not logging.getLogger().hasHandlers():
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)-8s - %(message)s'
    )

    root = logging.getLogger()

    # Handle VERBOSE mode and set specific loggers
    if log_level_str == "VERBOSE":
        root_level = logging.DEBUG
        http_level = logging.DEBUG
        engine_level = logging.TRACE
        apscheduler_level = logging.DEBUG
        root.info("VERBOSE mode enabled: mail relay HTTP details and scan traces active for debugging.")
    elif log_level_str == "TRACE":
        root_level = logging.TRACE
        http_level = logging.TRACE
        engine_level = logging.TRACE
        apscheduler_level = logging.DEBUG
    else:
        root_level = log_level
        http_level = logging.WARNING
        engine_level = root_level
        apscheduler_level = logging.WARNING

    root.setLevel(root_level)
    logging.getLogger("httpcore").setLevel(http_level)
    logging.getLogger("httpcore.http11").setLevel(http_level)
    logging.getLogger("httpx").setLevel(http_level)
    logging.getLogger("apscheduler").setLevel(apscheduler_level)
    logging.getLogger("easybail.services.automation_engine").setLevel(engine_level)

    root.trace("Trace logging enabled at startup (verbose details).") if log_level_str == "TRACE" else root.debug("Debug logging enabled at startup.")

log = logging.getLogger(__name__)

AUDIT_CLEANUP_JOB_ID = "audit_cleanup_job"


def build_services(app: FastAPI) -> AutomationFacade:
    """Wire repository, executor, engine, scheduler and facade onto ``app.state``."""
    transport = None
    if settings.mail_enabled and settings.mail_relay_url:
        transport = MailRelayClient(
            settings.mail_relay_url,
            smtp_config=settings.smtp_config,
            sender=settings.mail_from,
            timeout=settings.mail_timeout_seconds
        )
    elif settings.mail_enabled:
        log.warning("MAIL_ENABLED is set but MAIL_RELAY_URL is missing; emails will stay in the outbox")

    repository = SqlAlchemyAutomationRepository(SessionLocal)
    outbox = EmailOutbox(SessionLocal, transport=transport, max_attempts=settings.outbox_max_attempts)
    executor = EmailActionExecutor(
        SessionLocal,
        outbox,
        transport=transport,
        default_recipient=settings.default_recipient,
        landlord_name=settings.landlord_name,
        timezone=settings.scheduler_timezone
    )
    recorder = RunRecorder(SessionLocal)

    window = None
    if settings.enforce_execution_time:
        window = ExecutionWindow(
            settings.scheduler_timezone,
            tolerance_minutes=settings.execution_time_tolerance_minutes,
            default_time=settings.default_execution_time
        )

    engine = AutomationEngine(
        repository,
        executor,
        recorder=recorder,
        executor_timeout=settings.executor_timeout_seconds,
        max_concurrency=settings.scan_concurrency,
        advance_from_previous=settings.advance_from_previous,
        window=window,
        failure_history_size=settings.failure_history_size
    )

    apscheduler = AsyncIOScheduler(timezone=timezone.utc)
    scheduler = AutomationScheduler(
        engine,
        outbox=outbox,
        interval_seconds=settings.scheduler_interval_seconds,
        scheduler=apscheduler
    )
    facade = AutomationFacade(repository, engine, scheduler)

    app.state.transport = transport
    app.state.outbox = outbox
    app.state.run_recorder = recorder
    app.state.engine = engine
    app.state.scheduler = scheduler
    app.state.facade = facade
    return facade


@asynccontextmanager
async def lifespan(app: FastAPI):
    facade = build_services(app)
    scheduler = facade.scheduler

    if not scheduler.scheduler.running:
        scheduler.scheduler.start()
    scheduler.scheduler.add_job(
        partial(run_audit_cleanup, SessionLocal, settings.audit_retention_days),
        IntervalTrigger(days=1, timezone=timezone.utc),
        id=AUDIT_CLEANUP_JOB_ID,
        replace_existing=True
    )

    if settings.scheduler_autostart:
        facade.start_scheduler()
    else:
        log.info("Automation scheduler autostart disabled")

    try:
        yield
    finally:
        scheduler.shutdown()
        if app.state.transport is not None:
            await app.state.transport.close()


app = FastAPI(
    title="EasyBail Automation Scheduler",
    description="Recurring property-management automations (receipts, reminders, reviews) for the EasyBail dashboard",
    version=__version__,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": __version__
    }


@app.get("/")
async def root():
    """Root endpoint - redirect to docs."""
    return {
        "message": "EasyBail Automation Scheduler API",
        "version": __version__,
        "docs": "/docs"
    }


app.include_router(api_router, prefix=settings.api_v1_str)


@app.exception_handler(AutomationNotFound)
async def automation_not_found_handler(request: Request, exc: AutomationNotFound):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc)}
    )


@app.exception_handler(RepositoryError)
async def repository_error_handler(request: Request, exc: RepositoryError):
    log.error(f"Storage error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Automation storage unavailable"}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    log.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="info")
