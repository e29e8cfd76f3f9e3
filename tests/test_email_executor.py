import threading
import pytest
from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import httpx

from easybail.constants.automation import AutomationType
from easybail.database import SessionLocal
from easybail.errors import MailDeliveryError, TemplateNotFound, TemplateRenderError
from easybail.executors.email_executor import EmailActionExecutor
from easybail.models.email_template import EmailTemplate
from easybail.models.property import Property
from easybail.models.queued_email import QueuedEmail
from easybail.schemas.email import EmailMessage
from easybail.services.email_outbox import EmailOutbox
from easybail.services.mail_transport import MailRelayClient

from fakes import make_automation

PROPERTY_ID = "prop-1"
TEMPLATE_ID = "tpl-1"


@pytest.fixture
def seeded(db):
    db.add(Property(
        id=PROPERTY_ID,
        name="Studio Croix-Rousse",
        address="4 place des Tapis, Lyon",
        rent=600.0,
        charges=40.0,
        tenant_first_name="Léa",
        tenant_last_name="Durand",
        tenant_email="lea.durand@example.com",
        lease_start=date(2023, 9, 1)
    ))
    db.add(EmailTemplate(
        id=TEMPLATE_ID,
        name="Quittance",
        subject="Quittance - {{property_name}}",
        content="Bonjour {{tenant_name}}, total {{total_amount}} € ({{landlord_name}})",
        category="financial"
    ))
    db.commit()


def receipt_automation(**overrides):
    values = {
        "type": AutomationType.RECEIPT,
        "property_id": PROPERTY_ID,
        "email_template_id": TEMPLATE_ID,
        "document_template_id": "doc-9",
    }
    values.update(overrides)
    return make_automation(**values)


def make_executor(transport=None):
    outbox = EmailOutbox(SessionLocal, transport=transport)
    return EmailActionExecutor(SessionLocal, outbox, transport=transport, landlord_name="M. Bernard")


class TestCompose:
    def test_renders_template_with_property_data(self, seeded):
        message = make_executor().compose(receipt_automation())

        assert message.to == "lea.durand@example.com"
        assert message.subject == "Quittance - Studio Croix-Rousse"
        assert message.html == "Bonjour Léa Durand, total 640.00 € (M. Bernard)"
        assert message.document_id == "doc-9"

    def test_defaults_without_template(self, seeded):
        automation = make_automation(name="Rappel", description="Pensez à l'entretien")

        message = make_executor().compose(automation)

        assert message.to == "destinataire@example.com"
        assert message.subject == "Rappel"
        assert message.html == "Pensez à l'entretien"

    def test_missing_template_raises(self, seeded):
        with pytest.raises(TemplateNotFound):
            make_executor().compose(receipt_automation(email_template_id="gone"))

    def test_missing_property_still_renders(self, seeded):
        message = make_executor().compose(receipt_automation(property_id="unknown"))

        assert message.to == "destinataire@example.com"
        assert message.subject == "Quittance - {{ property_name }}"

    def test_broken_template_is_an_executor_failure(self, seeded, db):
        db.get(EmailTemplate, TEMPLATE_ID).content = "Bonjour {% if tenant_name %}"
        db.commit()

        with pytest.raises(TemplateRenderError):
            make_executor().compose(receipt_automation())


@pytest.mark.asyncio
class TestExecute:
    async def test_without_transport_queues_in_outbox(self, seeded, db):
        outcome = await make_executor().execute(receipt_automation())

        assert outcome.success
        assert outcome.detail.startswith("queued:")
        queued = db.query(QueuedEmail).one()
        assert queued.recipient == "lea.durand@example.com"
        assert queued.status == "pending"
        assert queued.document_id == "doc-9"

    async def test_sends_through_transport(self, seeded, db):
        transport = MagicMock()
        transport.send = AsyncMock(return_value="msg-42")

        outcome = await make_executor(transport).execute(receipt_automation())

        assert outcome.success
        assert outcome.detail == "sent:msg-42"
        assert db.query(QueuedEmail).count() == 0

    async def test_relay_failure_falls_back_to_outbox(self, seeded, db):
        transport = MagicMock()
        transport.send = AsyncMock(side_effect=MailDeliveryError("relay down"))

        outcome = await make_executor(transport).execute(receipt_automation())

        assert outcome.success
        assert db.query(QueuedEmail).count() == 1


@pytest.mark.asyncio
class TestEmailOutbox:
    async def test_process_without_transport_is_noop(self):
        outbox = EmailOutbox(SessionLocal)
        await outbox.enqueue(EmailMessage(to="a@example.com", subject="s", html="h"))

        assert await outbox.process() == 0
        assert await outbox.pending_count() == 1

    async def test_process_sends_pending(self):
        transport = MagicMock()
        transport.send = AsyncMock(return_value="id")
        outbox = EmailOutbox(SessionLocal, transport=transport)
        await outbox.enqueue(EmailMessage(to="a@example.com", subject="s", html="h"))

        assert await outbox.process() == 1
        assert await outbox.pending_count() == 0
        sent = await outbox.list(status="sent")
        assert len(sent) == 1
        assert sent[0].attempts == 1

    async def test_marks_failed_after_max_attempts(self):
        transport = MagicMock()
        transport.send = AsyncMock(side_effect=MailDeliveryError("smtp auth failed"))
        outbox = EmailOutbox(SessionLocal, transport=transport, max_attempts=2)
        await outbox.enqueue(EmailMessage(to="a@example.com", subject="s", html="h"))

        await outbox.process()
        assert (await outbox.list())[0].status == "pending"

        await outbox.process()
        failed = (await outbox.list())[0]
        assert failed.status == "failed"
        assert failed.attempts == 2
        assert failed.error == "smtp auth failed"

        # Failed messages are no longer retried
        await outbox.process()
        assert transport.send.await_count == 2

    async def test_database_work_runs_off_the_event_loop_thread(self):
        loop_thread = threading.get_ident()
        session_threads = []
        send_threads = []

        def tracking_session():
            session_threads.append(threading.get_ident())
            return SessionLocal()

        async def send(_):
            send_threads.append(threading.get_ident())
            return "id"

        transport = MagicMock()
        transport.send = AsyncMock(side_effect=send)
        outbox = EmailOutbox(tracking_session, transport=transport)
        await outbox.enqueue(EmailMessage(to="a@example.com", subject="s", html="h"))

        assert await outbox.process() == 1
        assert session_threads
        assert loop_thread not in session_threads
        assert send_threads == [loop_thread]


@pytest.mark.asyncio
class TestMailRelayClient:
    def message(self):
        return EmailMessage(to="a@example.com", subject="Quittance", html="<p>ok</p>", document_id="doc-1")

    async def test_posts_config_and_options(self):
        client = MailRelayClient("http://relay.local/", {"host": "smtp.example.com"}, "noreply@easybail.local")
        with patch('httpx.AsyncClient.post') as mock_post:
            mock_response = MagicMock()
            mock_response.raise_for_status.return_value = None
            mock_response.json.return_value = {"success": True, "messageId": "abc"}
            mock_post.return_value = mock_response

            message_id = await client.send(self.message())

            assert message_id == "abc"
            args, kwargs = mock_post.call_args
            assert args[0] == "/api/send-email"
            assert kwargs["json"]["config"] == {"host": "smtp.example.com"}
            options = kwargs["json"]["emailOptions"]
            assert options["from"] == "noreply@easybail.local"
            assert options["to"] == "a@example.com"
            assert options["attachments"] == [{"documentId": "doc-1"}]
        await client.close()

    async def test_relay_error_response_raises(self):
        client = MailRelayClient("http://relay.local", {}, "noreply@easybail.local")
        with patch('httpx.AsyncClient.post') as mock_post:
            mock_response = MagicMock()
            mock_response.raise_for_status.return_value = None
            mock_response.json.return_value = {"success": False, "error": "Invalid login"}
            mock_post.return_value = mock_response

            with pytest.raises(MailDeliveryError, match="Invalid login"):
                await client.send(self.message())
        await client.close()

    async def test_http_error_raises(self):
        client = MailRelayClient("http://relay.local", {}, "noreply@easybail.local")
        with patch('httpx.AsyncClient.post') as mock_post:
            mock_post.side_effect = httpx.ConnectError("connection refused")

            with pytest.raises(MailDeliveryError):
                await client.send(self.message())
        await client.close()
