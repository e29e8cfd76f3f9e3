"""Database models."""

from easybail.models.automation import Automation
from easybail.models.automation_run import AutomationRun
from easybail.models.email_template import EmailTemplate
from easybail.models.queued_email import QueuedEmail
from easybail.models.property import Property
from easybail.models.audit_log import AuditLog

__all__ = [
    "Automation",
    "AutomationRun",
    "EmailTemplate",
    "QueuedEmail",
    "Property",
    "AuditLog",
]
