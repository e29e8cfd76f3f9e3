"""HTTP client for the mail relay that forwards messages over SMTP."""

import logging
from typing import Any, Dict, Optional

import httpx

from easybail.errors import MailDeliveryError
from easybail.schemas.email import EmailMessage

log = logging.getLogger(__name__)


class MailRelayClient:
    """
    Posts messages to the relay's ``/api/send-email`` endpoint.

    The relay is stateless: the SMTP configuration travels with every request
    as ``{"config": ..., "emailOptions": ...}``.
    """

    def __init__(self, base_url: str, smtp_config: Dict[str, Any], sender: str, timeout: float = 15.0):
        self.base_url = base_url.rstrip('/')
        self.smtp_config = smtp_config
        self.sender = sender
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    def _payload(self, message: EmailMessage) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "from": self.sender,
            "to": message.to,
            "subject": message.subject,
            "html": message.html,
        }
        if message.document_id:
            options["attachments"] = [{"documentId": message.document_id}]
        return {"config": self.smtp_config, "emailOptions": options}

    async def send(self, message: EmailMessage) -> Optional[str]:
        """Send one message and return the relay's message id."""
        try:
            response = await self._client.post("/api/send-email", json=self._payload(message))
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise MailDeliveryError(f"Mail relay request failed: {e}") from e
        except ValueError as e:
            raise MailDeliveryError(f"Mail relay returned invalid JSON: {e}") from e

        if not data.get("success"):
            raise MailDeliveryError(data.get("error") or "Mail relay reported a failure")

        log.debug(f"Email '{message.subject}' sent to {message.to} (message id: {data.get('messageId')})")
        return data.get("messageId")

    async def close(self):
        await self._client.aclose()
