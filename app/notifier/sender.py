import logging
import uuid
from typing import List, Tuple

from fastapi import Request

from app.core.config import Settings
from app.notifier.base import EmailMessage, NotificationReceipt, NotificationSender
from app.notifier.email_channel import SendGridEmailChannel
from app.notifier.sms_channel import TwilioSmsChannel

logger = logging.getLogger(__name__)


class LiveNotificationSender(NotificationSender):
    """Delivers through SendGrid (email) and Twilio (SMS, verification)"""

    def __init__(self, email: SendGridEmailChannel, sms: TwilioSmsChannel):
        self.email = email
        self.sms = sms

    async def send_email(self, message: EmailMessage) -> NotificationReceipt:
        return await self.email.send(message)

    async def send_sms(self, to: str, body: str) -> NotificationReceipt:
        return await self.sms.send(to, body)

    async def start_verification(self, phone_number: str) -> NotificationReceipt:
        return await self.sms.start_verification(phone_number)

    async def check_verification(self, phone_number: str, code: str) -> NotificationReceipt:
        return await self.sms.check_verification(phone_number, code)


class RecordingNotificationSender(NotificationSender):
    """Keeps outgoing messages in memory instead of calling providers"""

    def __init__(self):
        self.emails: List[EmailMessage] = []
        self.sms_messages: List[Tuple[str, str]] = []
        self.verifications: List[str] = []
        self.verification_checks: List[Tuple[str, str]] = []
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def _mock_id(prefix: str) -> str:
        return f"MOCK_{prefix}_{uuid.uuid4().hex[:12]}"

    async def send_email(self, message: EmailMessage) -> NotificationReceipt:
        self.logger.info(f"MOCK EMAIL: Would send '{message.subject}' to {message.to}")
        self.emails.append(message)
        return NotificationReceipt(provider="mock", channel="email", id=self._mock_id("EMAIL"), status="sent", to=message.to)

    async def send_sms(self, to: str, body: str) -> NotificationReceipt:
        self.logger.info(f"MOCK SMS: Would send SMS to {to}")
        self.sms_messages.append((to, body))
        return NotificationReceipt(provider="mock", channel="sms", id=self._mock_id("SID"), status="sent", to=to)

    async def start_verification(self, phone_number: str) -> NotificationReceipt:
        self.logger.info(f"MOCK VERIFY: Would send verification code to {phone_number}")
        self.verifications.append(phone_number)
        return NotificationReceipt(
            provider="mock", channel="verification", id=self._mock_id("VERIFICATION_SID"), status="pending", to=phone_number
        )

    async def check_verification(self, phone_number: str, code: str) -> NotificationReceipt:
        self.logger.info(f"MOCK VERIFY: Would verify code for {phone_number}")
        self.verification_checks.append((phone_number, code))
        return NotificationReceipt(
            provider="mock", channel="verification", id=self._mock_id("VERIFICATION_CHECK_SID"), status="approved", to=phone_number
        )


def _has_live_credentials(settings: Settings) -> bool:
    return all([
        settings.sendgrid_api_key,
        settings.twilio_account_sid,
        settings.twilio_auth_token,
        settings.twilio_phone_number,
    ])


def build_notification_sender(settings: Settings) -> NotificationSender:
    """Select the sender implementation once, at startup"""
    mode = settings.notification_mode
    logger.info(f"build_notification_sender: Entry - mode: {mode}, environment: {settings.environment}")

    if mode == "mock":
        if settings.is_production:
            raise RuntimeError("Mock notifications are not allowed in production")
        return RecordingNotificationSender()

    if not _has_live_credentials(settings):
        if mode == "live" or settings.is_production:
            raise RuntimeError("SendGrid and Twilio credentials are required for live notifications")
        logger.warning("build_notification_sender: Provider credentials not configured - using mock sender")
        return RecordingNotificationSender()

    logger.info("build_notification_sender: Success - live sender")
    return LiveNotificationSender(
        email=SendGridEmailChannel(
            api_key=settings.sendgrid_api_key,
            sender_email=settings.sendgrid_sender_email,
            sender_name=settings.sendgrid_sender_name,
        ),
        sms=TwilioSmsChannel(
            account_sid=settings.twilio_account_sid,
            auth_token=settings.twilio_auth_token,
            from_number=settings.twilio_phone_number,
            verify_service_sid=settings.twilio_verify_service_sid,
        ),
    )


def get_notification_sender(request: Request) -> NotificationSender:
    """Dependency returning the sender selected at startup"""
    return request.app.state.notification_sender
