"""Outbox for emails that could not be delivered immediately."""

import asyncio
import logging
from typing import Callable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from easybail.errors import MailDeliveryError, RepositoryError
from easybail.models.queued_email import QueuedEmail
from easybail.schemas.email import EmailMessage, QueuedEmailInDB
from easybail.services.mail_transport import MailRelayClient
from easybail.utils.timeutil import utcnow

log = logging.getLogger(__name__)


class EmailOutbox:
    """
    Persistent queue drained after every scheduler tick.

    Messages are retried through the mail relay until they are sent or have
    been attempted ``max_attempts`` times, after which they are marked failed.
    Without a transport (mail disabled) messages simply accumulate. Rows are
    read and updated in a worker thread; only the relay call runs on the loop.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        transport: Optional[MailRelayClient] = None,
        max_attempts: int = 3
    ):
        self._session_factory = session_factory
        self.transport = transport
        self.max_attempts = max_attempts

    async def enqueue(self, message: EmailMessage) -> int:
        def _run() -> int:
            with self._session_factory() as db:
                queued = QueuedEmail(
                    automation_id=message.automation_id,
                    recipient=message.to,
                    subject=message.subject,
                    html=message.html,
                    document_id=message.document_id,
                    status='pending',
                    attempts=0
                )
                db.add(queued)
                db.commit()
                return queued.id

        try:
            queued_id = await asyncio.to_thread(_run)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to queue email: {e}") from e
        log.info(f"Queued email '{message.subject}' to {message.to} (outbox ID: {queued_id})")
        return queued_id

    def _load_pending(self) -> List[Tuple[int, EmailMessage]]:
        with self._session_factory() as db:
            pending = db.query(QueuedEmail).filter(
                QueuedEmail.status == 'pending'
            ).order_by(QueuedEmail.created_at.asc(), QueuedEmail.id.asc()).all()
            return [
                (queued.id, EmailMessage(
                    to=queued.recipient,
                    subject=queued.subject,
                    html=queued.html,
                    document_id=queued.document_id,
                    automation_id=queued.automation_id
                ))
                for queued in pending
            ]

    def _mark_attempt(self, queued_id: int, error: Optional[str]) -> None:
        with self._session_factory() as db:
            queued = db.get(QueuedEmail, queued_id)
            if queued is None:
                return
            queued.attempts += 1
            queued.last_attempt = utcnow()
            queued.error = error
            if error is None:
                queued.status = 'sent'
                queued.sent_at = utcnow()
            elif queued.attempts >= self.max_attempts:
                queued.status = 'failed'
                log.error(f"Giving up on outbox email {queued.id} after {queued.attempts} attempts: {error}")
            else:
                log.warning(f"Outbox email {queued.id} attempt {queued.attempts} failed: {error}")
            db.commit()

    async def process(self) -> int:
        """Attempt delivery of every pending message. Returns the number sent."""
        if self.transport is None:
            return 0

        sent = 0
        try:
            pending = await asyncio.to_thread(self._load_pending)
            for queued_id, message in pending:
                error = None
                try:
                    await self.transport.send(message)
                    sent += 1
                except MailDeliveryError as e:
                    error = str(e)
                await asyncio.to_thread(self._mark_attempt, queued_id, error)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to process email outbox: {e}") from e

        if sent:
            log.info(f"Outbox: {sent} email(s) sent")
        return sent

    async def list(self, status: Optional[str] = None, limit: int = 100) -> List[QueuedEmailInDB]:
        def _run() -> List[QueuedEmailInDB]:
            with self._session_factory() as db:
                query = db.query(QueuedEmail).order_by(QueuedEmail.created_at.desc(), QueuedEmail.id.desc())
                if status:
                    query = query.filter(QueuedEmail.status == status)
                return [QueuedEmailInDB.model_validate(row) for row in query.limit(limit).all()]

        try:
            return await asyncio.to_thread(_run)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to list outbox: {e}") from e

    async def pending_count(self) -> int:
        def _run() -> int:
            with self._session_factory() as db:
                return db.query(QueuedEmail).filter(QueuedEmail.status == 'pending').count()

        try:
            return await asyncio.to_thread(_run)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to count outbox: {e}") from e
