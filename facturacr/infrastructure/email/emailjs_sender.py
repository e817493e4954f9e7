"""
E-mail dispatch through the EmailJS REST API.

Attachments travel base64-encoded as template parameters; the template on
the EmailJS side maps them to real attachments.
"""

import base64

import httpx

from facturacr.config import get_logger
from facturacr.core.entities.submission import Attachment, EmailResult
from facturacr.core.interfaces import IEmailSender

logger = get_logger(__name__)


class EmailJsSender(IEmailSender):
    """httpx client for the EmailJS send endpoint."""

    def __init__(
        self,
        api_url: str,
        service_id: str,
        template_id: str,
        user_id: str,
        access_token: str = "",
        sender_name: str = "",
        sender_email: str = "",
        timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_url = api_url
        self.service_id = service_id
        self.template_id = template_id
        self.user_id = user_id
        self.access_token = access_token
        self.sender_name = sender_name
        self.sender_email = sender_email
        self.timeout = timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.service_id and self.template_id and self.user_id)

    async def send(
        self, recipient: str, subject: str, attachments: list[Attachment], body: str = ""
    ) -> EmailResult:
        if not self.is_configured:
            return EmailResult(delivered=False, error="e-mail dispatch is not configured")

        params = {
            "to_email": recipient,
            "subject": subject,
            "message": body,
            "from_name": self.sender_name,
            "reply_to": self.sender_email,
        }
        for index, attachment in enumerate(attachments, start=1):
            encoded = base64.b64encode(attachment.content).decode("ascii")
            params[f"attachment_{index}"] = f"data:{attachment.content_type};base64,{encoded}"
            params[f"attachment_{index}_name"] = attachment.filename

        payload = {
            "service_id": self.service_id,
            "template_id": self.template_id,
            "user_id": self.user_id,
            "template_params": params,
        }
        if self.access_token:
            payload["accessToken"] = self.access_token

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.api_url, json=payload)
        except httpx.TransportError as e:
            logger.warning("email_transport_error", recipient=recipient, error=str(e))
            return EmailResult(delivered=False, error=str(e))

        if response.status_code != 200:
            error = f"HTTP {response.status_code}: {response.text[:200]}"
            logger.warning("email_rejected", recipient=recipient, error=error)
            return EmailResult(delivered=False, error=error)

        logger.info("email_sent", recipient=recipient, attachments=len(attachments))
        return EmailResult(delivered=True)
