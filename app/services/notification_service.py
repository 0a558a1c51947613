import logging
from typing import Optional

from app.core.config import settings
from app.models.business import Business
from app.models.feedback import Feedback
from app.models.review_request import ReviewRequest
from app.notifier.base import EmailMessage, NotificationReceipt, NotificationSender

logger = logging.getLogger(__name__)


def feedback_url(unique_id: str) -> str:
    return f"{settings.frontend_url}/feedback/{unique_id}"


def dashboard_feedback_url(feedback_id: str) -> str:
    return f"{settings.frontend_url}/dashboard/feedback/{feedback_id}"


def review_request_sms_body(business_name: str, url: str) -> str:
    return f"{business_name} would like your feedback! Please take a moment to share your experience: {url}"


def reminder_sms_body(business_name: str, url: str) -> str:
    return f"Reminder: {business_name} would appreciate your feedback! It only takes a minute: {url}"


class NotificationService:
    """Renders review request, reminder and owner emails/SMS and hands them to a sender"""

    def __init__(self, sender: NotificationSender):
        self.sender = sender
        self.logger = logging.getLogger(__name__)

    def _request_email(self, review_request: ReviewRequest, business: Business, reminder: bool) -> EmailMessage:
        url = feedback_url(review_request.unique_id)
        if reminder:
            subject = f"Reminder: {business.name} would appreciate your feedback"
            template_id = settings.sendgrid_reminder_template_id
            text = (
                f"Hi {review_request.customer_name},\n\n"
                f"Just a friendly reminder that {business.name} would love to hear about your experience.\n\n"
                f"Share your feedback: {url}"
            )
        else:
            subject = f"{business.name} would like your feedback"
            template_id = settings.sendgrid_review_request_template_id
            text = (
                f"Hi {review_request.customer_name},\n\n"
                f"{review_request.message or f'Thank you for choosing {business.name}. We would love to hear about your experience.'}\n\n"
                f"Share your feedback: {url}"
            )

        return EmailMessage(
            to=review_request.customer_email,
            subject=subject,
            template_id=template_id,
            template_data={
                'customerName': review_request.customer_name,
                'businessName': business.name,
                'message': review_request.message or '',
                'feedbackUrl': url,
                'businessLogo': business.logo or '',
            },
            text=text,
        )

    async def send_review_request_email(self, review_request: ReviewRequest, business: Business) -> NotificationReceipt:
        self.logger.info(f"send_review_request_email: Entry - request: {review_request.id}")
        receipt = await self.sender.send_email(self._request_email(review_request, business, reminder=False))
        self.logger.info(f"send_review_request_email: Success - request: {review_request.id}, id: {receipt.id}")
        return receipt

    async def send_review_request_sms(self, review_request: ReviewRequest, business: Business) -> NotificationReceipt:
        self.logger.info(f"send_review_request_sms: Entry - request: {review_request.id}")
        body = review_request_sms_body(business.name, feedback_url(review_request.unique_id))
        receipt = await self.sender.send_sms(review_request.customer_phone, body)
        self.logger.info(f"send_review_request_sms: Success - request: {review_request.id}, id: {receipt.id}")
        return receipt

    async def send_reminder_email(self, review_request: ReviewRequest, business: Business) -> NotificationReceipt:
        self.logger.info(f"send_reminder_email: Entry - request: {review_request.id}")
        receipt = await self.sender.send_email(self._request_email(review_request, business, reminder=True))
        self.logger.info(f"send_reminder_email: Success - request: {review_request.id}, id: {receipt.id}")
        return receipt

    async def send_reminder_sms(self, review_request: ReviewRequest, business: Business) -> NotificationReceipt:
        self.logger.info(f"send_reminder_sms: Entry - request: {review_request.id}")
        body = reminder_sms_body(business.name, feedback_url(review_request.unique_id))
        receipt = await self.sender.send_sms(review_request.customer_phone, body)
        self.logger.info(f"send_reminder_sms: Success - request: {review_request.id}, id: {receipt.id}")
        return receipt

    async def send_feedback_notification(
        self,
        owner_email: Optional[str],
        business: Business,
        feedback: Feedback
    ) -> Optional[NotificationReceipt]:
        """Tell the business owner about new feedback; skipped when the owner has no email"""
        if not owner_email:
            self.logger.warning(f"send_feedback_notification: No owner email - business: {business.id}")
            return None

        self.logger.info(f"send_feedback_notification: Entry - business: {business.id}, feedback: {feedback.id}")
        url = dashboard_feedback_url(feedback.id)
        message = EmailMessage(
            to=owner_email,
            subject=f"New Feedback for {business.name}",
            template_id=settings.sendgrid_feedback_template_id,
            template_data={
                'businessName': business.name,
                'customerName': feedback.customer_name,
                'rating': feedback.rating,
                'comment': feedback.comment or '',
                'sentiment': feedback.sentiment,
                'dashboardUrl': url,
            },
            text=(
                f"{feedback.customer_name} left a {feedback.rating}-star rating for {business.name}.\n\n"
                f"{feedback.comment or ''}\n\n"
                f"View it in your dashboard: {url}"
            ),
        )
        receipt = await self.sender.send_email(message)
        self.logger.info(f"send_feedback_notification: Success - feedback: {feedback.id}, id: {receipt.id}")
        return receipt
