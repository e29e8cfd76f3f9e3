"""Email side effect for automations: render a template and deliver it."""

import asyncio
import logging
from datetime import date
from typing import Any, Callable, Dict, Optional
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from easybail.constants.automation import describe_type
from easybail.errors import ExecutorFailure, MailDeliveryError, TemplateNotFound
from easybail.executors.base import ActionOutcome, BaseActionExecutor
from easybail.models.email_template import EmailTemplate
from easybail.models.property import Property
from easybail.schemas.automation import AutomationInDB
from easybail.schemas.email import EmailMessage
from easybail.services.email_outbox import EmailOutbox
from easybail.services.mail_transport import MailRelayClient
from easybail.services.template_renderer import render_template
from easybail.utils.timeutil import utcnow

log = logging.getLogger(__name__)


def _format_date(value: Optional[date]) -> str:
    return value.strftime("%d/%m/%Y") if value else ""


def _format_amount(value: Optional[float]) -> str:
    return f"{value or 0:.2f}"


class EmailActionExecutor(BaseActionExecutor):
    """
    Sends the email associated with an automation.

    Delivery goes through the mail relay when one is configured. When mail is
    disabled, or the relay fails, the message is stored in the outbox and the
    execution still counts as successful: the outbox owns the retries from
    there on.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        outbox: EmailOutbox,
        transport: Optional[MailRelayClient] = None,
        default_recipient: str = "destinataire@example.com",
        landlord_name: str = "Propriétaire",
        timezone: str = "UTC"
    ):
        self._session_factory = session_factory
        self.outbox = outbox
        self.transport = transport
        self.default_recipient = default_recipient
        self.landlord_name = landlord_name
        self.tz = ZoneInfo(timezone)

    def _property_data(self, db: Session, property_id: str) -> Dict[str, Any]:
        prop = db.get(Property, property_id)
        if prop is None:
            log.warning(f"Property {property_id} not found, sending without property details")
            return {}

        data = {
            "property_name": prop.name,
            "property_address": prop.address,
            "property_type": prop.type,
            "rent_amount": _format_amount(prop.rent),
            "charges_amount": _format_amount(prop.charges),
            "total_amount": _format_amount((prop.rent or 0) + (prop.charges or 0)),
        }
        if prop.tenant_email or prop.tenant_last_name:
            data.update({
                "tenant_name": f"{prop.tenant_first_name or ''} {prop.tenant_last_name or ''}".strip(),
                "tenant_email": prop.tenant_email or "",
                "tenant_phone": prop.tenant_phone or "",
                "lease_start_date": _format_date(prop.lease_start),
                "lease_end_date": _format_date(prop.lease_end),
            })
        return data

    def build_template_data(self, db: Session, automation: AutomationInDB) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if automation.property_id:
            data.update(self._property_data(db, automation.property_id))

        today = utcnow().astimezone(self.tz)
        data.update({
            "current_date": today.strftime("%d/%m/%Y"),
            "month": today.strftime("%B %Y"),
            "landlord_name": self.landlord_name,
            "automation_type": describe_type(automation.type),
        })
        return data

    def compose(self, automation: AutomationInDB) -> EmailMessage:
        """Build the message for an automation without delivering it."""
        try:
            with self._session_factory() as db:
                data = self.build_template_data(db, automation)
                subject = automation.name
                html = automation.description or "Automatisation exécutée"

                if automation.email_template_id:
                    template = db.get(EmailTemplate, automation.email_template_id)
                    if template is None:
                        raise TemplateNotFound(automation.email_template_id)
                    subject = render_template(template.subject, data)
                    html = render_template(template.content, data)
        except SQLAlchemyError as e:
            raise ExecutorFailure(f"Could not load data for automation {automation.id}: {e}") from e

        return EmailMessage(
            to=data.get("tenant_email") or self.default_recipient,
            subject=subject,
            html=html,
            document_id=automation.document_template_id,
            automation_id=automation.id
        )

    async def execute(self, automation: AutomationInDB) -> ActionOutcome:
        message = await asyncio.to_thread(self.compose, automation)

        if self.transport is not None:
            try:
                message_id = await self.transport.send(message)
                log.info(f"Automation '{automation.name}': email sent to {message.to}")
                return ActionOutcome.ok(detail=f"sent:{message_id}")
            except MailDeliveryError as e:
                log.warning(f"Mail relay failed for automation {automation.id}, using outbox: {e}")

        queued_id = await self.outbox.enqueue(message)
        return ActionOutcome.ok(detail=f"queued:{queued_id}")
