"""Request-scoped access to the services built at startup."""

from fastapi import Request

from easybail.services.automation_facade import AutomationFacade
from easybail.services.email_outbox import EmailOutbox
from easybail.services.run_recorder import RunRecorder


def get_facade(request: Request) -> AutomationFacade:
    return request.app.state.facade


def get_outbox(request: Request) -> EmailOutbox:
    return request.app.state.outbox


def get_run_recorder(request: Request) -> RunRecorder:
    return request.app.state.run_recorder
