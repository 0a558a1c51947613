import httpx
import logging
from typing import Optional

from app.notifier.base import EmailMessage, NotificationError, NotificationReceipt

logger = logging.getLogger(__name__)

SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"


class SendGridEmailChannel:
    """SendGrid v3 mail/send over HTTP"""

    def __init__(
        self,
        api_key: str,
        sender_email: str,
        sender_name: str,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.sender_email = sender_email
        self.sender_name = sender_name
        self._http_client = http_client
        self.logger = logging.getLogger(__name__)

    def build_payload(self, message: EmailMessage) -> dict:
        personalization = {"to": [{"email": message.to}]}
        payload = {
            "personalizations": [personalization],
            "from": {"email": self.sender_email, "name": self.sender_name},
            "subject": message.subject,
        }
        if message.template_id:
            personalization["dynamic_template_data"] = message.template_data
            payload["template_id"] = message.template_id
        else:
            payload["content"] = [{"type": "text/plain", "value": message.text or message.subject}]
        return payload

    async def send(self, message: EmailMessage) -> NotificationReceipt:
        self.logger.info(f"send: Entry - to: {message.to}, subject: {message.subject}")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    SENDGRID_SEND_URL, headers=headers, json=self.build_payload(message), timeout=30.0
                )
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(
                        SENDGRID_SEND_URL, headers=headers, json=self.build_payload(message), timeout=30.0
                    )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self.logger.error(f"send: SendGrid error - {e}")
            self.logger.error(f"send: Error response body - {e.response.text}")
            raise NotificationError(
                f"SendGrid rejected the message: {e.response.text}",
                provider="sendgrid",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            self.logger.error(f"send: SendGrid transport error - {e}")
            raise NotificationError(f"SendGrid request failed: {e}", provider="sendgrid") from e

        receipt = NotificationReceipt(
            provider="sendgrid",
            channel="email",
            id=response.headers.get("X-Message-Id"),
            status="accepted",
            to=message.to,
        )
        self.logger.info(f"send: Success - to: {message.to}, id: {receipt.id}")
        return receipt
