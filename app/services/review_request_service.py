import logging
import secrets
import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import HTTPException, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.core.cache import get_cache, review_request_quota_lock_key
from app.core.config import settings
from app.core.redis_cache import RedisCache
from app.models.business import Business
from app.models.feedback import Feedback
from app.models.review_request import RequestMethod, ReviewRequest, ReviewRequestStatus
from app.models.subscription import SubscriptionPlan
from app.notifier.base import NotificationReceipt, NotificationSender
from app.schemas.review_request import ReviewRequestCreate, ReviewRequestUpdate
from app.services.analytics_service import AnalyticsService
from app.services.business_service import BusinessService
from app.services.notification_service import NotificationService
from app.services.quota_service import QuotaService
from app.services.telemetry_service import TelemetryService

logger = logging.getLogger(__name__)

# Forward-only progression; 'failed' sits outside it
STATUS_ORDER = {
    ReviewRequestStatus.PENDING.value: 0,
    ReviewRequestStatus.SENT.value: 1,
    ReviewRequestStatus.CLICKED.value: 2,
    ReviewRequestStatus.COMPLETED.value: 3,
}

STATUS_TIMESTAMPS = {
    ReviewRequestStatus.SENT.value: 'sent_at',
    ReviewRequestStatus.CLICKED.value: 'clicked_at',
    ReviewRequestStatus.COMPLETED.value: 'completed_at',
}


def validate_contact(request_method: str, customer_email: Optional[str], customer_phone: Optional[str]):
    """Each channel needs its contact field; 'both' needs at least one of them"""
    if request_method == RequestMethod.EMAIL.value and not customer_email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Customer email is required for email review requests"
        )
    if request_method == RequestMethod.SMS.value and not customer_phone:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Customer phone is required for SMS review requests"
        )
    if not customer_email and not customer_phone:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Either customer email or phone is required"
        )


def check_status_transition(current: str, new: str):
    if new == current:
        return
    if new == ReviewRequestStatus.FAILED.value:
        if current == ReviewRequestStatus.COMPLETED.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot mark a completed review request as failed"
            )
        return
    if current == ReviewRequestStatus.FAILED.value or STATUS_ORDER[new] < STATUS_ORDER[current]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot change review request status from {current} to {new}"
        )


def complete_review_request(review_request: ReviewRequest, feedback: Feedback):
    """Link the resulting feedback and close the request; caller commits"""
    review_request.feedback_id = feedback.id
    review_request.status = ReviewRequestStatus.COMPLETED.value
    review_request.completed_at = datetime.utcnow()


def dispatch_error(error: Exception) -> HTTPException:
    """500 for a failed provider call; provider text is hidden in production"""
    detail = "Failed to send notification" if settings.is_production else str(error)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


class ReviewRequestService:
    def __init__(self, sender: NotificationSender, cache: RedisCache = None):
        self.notifications = NotificationService(sender)
        self.cache = cache if cache is not None else get_cache()
        self.business_service = BusinessService()
        self.quota_service = QuotaService()
        self.analytics_service = AnalyticsService()
        self.telemetry = TelemetryService()
        self.logger = logging.getLogger(__name__)

    # Lookups

    def _authorize(self, db: Session, review_request: ReviewRequest, user_id: str, role: str) -> Optional[Business]:
        business = db.query(Business).filter(Business.id == review_request.business_id).first()
        owner_id = business.user_id if business else None
        if owner_id != user_id and role != 'admin':
            self.logger.warning(f"_authorize: Forbidden - request: {review_request.id}, user: {user_id}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized to access this review request"
            )
        return business

    def _require_business(self, business: Optional[Business]) -> Business:
        if business is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Business not found"
            )
        return business

    def get_review_request(self, db: Session, request_id: str, user_id: str, role: str = 'user') -> ReviewRequest:
        """Get a review request and verify the caller owns its business"""
        self.logger.info(f"get_review_request: Entry - request: {request_id}, user: {user_id}")

        review_request = db.query(ReviewRequest).filter(ReviewRequest.id == request_id).first()
        if not review_request:
            self.logger.warning(f"get_review_request: Not found - {request_id}")
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Review request not found"
            )

        self._authorize(db, review_request, user_id, role)
        self.logger.info(f"get_review_request: Success - {request_id}")
        return review_request

    def get_by_unique_id(self, db: Session, unique_id: str) -> ReviewRequest:
        review_request = db.query(ReviewRequest).filter(ReviewRequest.unique_id == unique_id).first()
        if not review_request:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Review request not found"
            )
        return review_request

    def list_for_owner(self, db: Session, user_id: str) -> List[ReviewRequest]:
        """Requests across every business the caller owns, newest first"""
        self.logger.info(f"list_for_owner: Entry - user: {user_id}")

        business_ids = [row.id for row in db.query(Business.id).filter(Business.user_id == user_id).all()]
        if not business_ids:
            return []

        requests = db.query(ReviewRequest).filter(
            ReviewRequest.business_id.in_(business_ids)
        ).order_by(ReviewRequest.created_at.desc()).all()

        self.logger.info(f"list_for_owner: Success - {len(requests)} requests")
        return requests

    def list_for_business(self, db: Session, business_id: str, user_id: str, role: str = 'user') -> List[ReviewRequest]:
        self.logger.info(f"list_for_business: Entry - business: {business_id}, user: {user_id}")

        self.business_service.get_business(db, business_id, user_id, role)
        requests = db.query(ReviewRequest).filter(
            ReviewRequest.business_id == business_id
        ).order_by(ReviewRequest.created_at.desc()).all()

        self.logger.info(f"list_for_business: Success - {len(requests)} requests")
        return requests

    # Dispatch

    async def _dispatch(
        self,
        review_request: ReviewRequest,
        business: Business,
        reminder: bool = False
    ) -> List[NotificationReceipt]:
        """Send over every channel of the request method that has a contact field"""
        receipts = []
        if review_request.uses_email and review_request.customer_email:
            if reminder:
                receipts.append(await self.notifications.send_reminder_email(review_request, business))
            else:
                receipts.append(await self.notifications.send_review_request_email(review_request, business))
        if review_request.uses_sms and review_request.customer_phone:
            if reminder:
                receipts.append(await self.notifications.send_reminder_sms(review_request, business))
            else:
                receipts.append(await self.notifications.send_review_request_sms(review_request, business))
        return receipts

    # Commands

    async def create_and_send(
        self,
        db: Session,
        user_id: str,
        payload: ReviewRequestCreate,
        role: str = 'user',
        plan: str = SubscriptionPlan.FREE.value,
        now: datetime = None
    ) -> ReviewRequest:
        """
        Create a review request and dispatch it in one operation.

        The monthly quota check and the insert run under a per-business lock
        so concurrent creations cannot overshoot the free plan limit. When the
        lock store is unavailable the check proceeds unlocked.
        """
        now = now or datetime.utcnow()
        self.logger.info(f"create_and_send: Entry - user: {user_id}, business: {payload.business_id}")

        business = self.business_service.get_business(db, payload.business_id, user_id, role)
        validate_contact(payload.request_method.value, payload.customer_email, payload.customer_phone)

        lock_key = review_request_quota_lock_key(business.id, now)
        lock_acquired = await run_in_threadpool(
            self.cache.acquire_lock, lock_key, timeout_seconds=10, block_seconds=5
        )

        try:
            if not lock_acquired:
                self.logger.warning(f"create_and_send: Could not acquire lock - {lock_key}")

            if plan == SubscriptionPlan.FREE.value:
                self.quota_service.check_review_request_quota(db, user_id, business.id, now=now)

            review_request = ReviewRequest(
                id=str(uuid.uuid4()),
                business_id=business.id,
                customer_name=payload.customer_name,
                customer_email=payload.customer_email,
                customer_phone=payload.customer_phone,
                request_method=payload.request_method.value,
                message=payload.message,
                status=ReviewRequestStatus.PENDING.value,
                unique_id=secrets.token_hex(16),
                reminder_sent=False,
                created_at=now
            )
            db.add(review_request)
            db.commit()
            db.refresh(review_request)
        except HTTPException:
            raise
        except Exception as e:
            db.rollback()
            self.telemetry.log_failure(action='create_review_request', error=str(e), user_id=user_id)
            self.logger.error(f"create_and_send: Failure - {e}")
            raise
        finally:
            if lock_acquired:
                await run_in_threadpool(self.cache.release_lock, lock_key)

        try:
            receipts = await self._dispatch(review_request, business)
        except Exception as e:
            review_request.status = ReviewRequestStatus.FAILED.value
            db.commit()
            self.telemetry.log_failure(
                action='send_review_request',
                error=str(e),
                user_id=user_id,
                parameters={'review_request_id': review_request.id}
            )
            self.logger.error(f"create_and_send: Dispatch failure - request: {review_request.id}, {e}")
            raise dispatch_error(e)

        review_request.status = ReviewRequestStatus.SENT.value
        review_request.sent_at = datetime.utcnow()
        db.commit()
        db.refresh(review_request)

        self.telemetry.log_success(
            action='create_review_request',
            user_id=user_id,
            parameters={
                'review_request_id': review_request.id,
                'method': review_request.request_method,
                'channels': [receipt.channel for receipt in receipts]
            }
        )
        self.logger.info(f"create_and_send: Success - request: {review_request.id}, channels: {len(receipts)}")
        return review_request

    async def send_reminder(self, db: Session, request_id: str, user_id: str, role: str = 'user') -> ReviewRequest:
        """Re-dispatch once over the original channels"""
        self.logger.info(f"send_reminder: Entry - request: {request_id}, user: {user_id}")

        review_request = self.get_review_request(db, request_id, user_id, role)

        if review_request.reminder_sent:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Reminder has already been sent for this review request"
            )
        if review_request.status == ReviewRequestStatus.COMPLETED.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot send reminder for a completed review request"
            )

        business = self._require_business(review_request.business)

        try:
            await self._dispatch(review_request, business, reminder=True)
        except Exception as e:
            self.telemetry.log_failure(action='send_reminder', error=str(e), user_id=user_id)
            self.logger.error(f"send_reminder: Failure - {e}")
            raise dispatch_error(e)

        review_request.reminder_sent = True
        review_request.reminder_sent_at = datetime.utcnow()
        db.commit()
        db.refresh(review_request)

        self.telemetry.log_success(
            action='send_reminder',
            user_id=user_id,
            parameters={'review_request_id': request_id}
        )
        self.logger.info(f"send_reminder: Success - {request_id}")
        return review_request

    async def send_channel(
        self,
        db: Session,
        request_id: str,
        user_id: str,
        channel: str,
        role: str = 'user'
    ) -> NotificationReceipt:
        """Re-dispatch a single channel ('email' or 'sms')"""
        self.logger.info(f"send_channel: Entry - request: {request_id}, channel: {channel}")

        review_request = self.get_review_request(db, request_id, user_id, role)

        if channel == 'email' and not review_request.customer_email:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Customer email is required"
            )
        if channel == 'sms' and not review_request.customer_phone:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Customer phone number is required"
            )

        business = self._require_business(review_request.business)

        try:
            if channel == 'email':
                receipt = await self.notifications.send_review_request_email(review_request, business)
            else:
                receipt = await self.notifications.send_review_request_sms(review_request, business)
        except Exception as e:
            self.telemetry.log_failure(action=f'send_{channel}', error=str(e), user_id=user_id)
            self.logger.error(f"send_channel: Failure - {e}")
            raise dispatch_error(e)

        if review_request.status in (ReviewRequestStatus.PENDING.value, ReviewRequestStatus.FAILED.value):
            review_request.status = ReviewRequestStatus.SENT.value
            review_request.sent_at = datetime.utcnow()
            db.commit()

        self.telemetry.log_success(
            action=f'send_{channel}',
            user_id=user_id,
            parameters={'review_request_id': request_id}
        )
        self.logger.info(f"send_channel: Success - request: {request_id}, id: {receipt.id}")
        return receipt

    def update_review_request(
        self,
        db: Session,
        request_id: str,
        user_id: str,
        payload: ReviewRequestUpdate,
        role: str = 'user'
    ) -> ReviewRequest:
        self.logger.info(f"update_review_request: Entry - request: {request_id}, user: {user_id}")

        review_request = self.get_review_request(db, request_id, user_id, role)
        changes = payload.model_dump(exclude_unset=True)

        method = changes.get('request_method') or review_request.request_method
        email = changes['customer_email'] if 'customer_email' in changes else review_request.customer_email
        phone = changes['customer_phone'] if 'customer_phone' in changes else review_request.customer_phone
        validate_contact(getattr(method, 'value', method), email, phone)

        new_status = changes.pop('status', None)
        if new_status is not None:
            new_status = getattr(new_status, 'value', new_status)
            check_status_transition(review_request.status, new_status)

        try:
            for field, value in changes.items():
                if field == 'customer_name' and value is None:
                    continue
                setattr(review_request, field, getattr(value, 'value', value))

            if new_status is not None and new_status != review_request.status:
                review_request.status = new_status
                timestamp_field = STATUS_TIMESTAMPS.get(new_status)
                if timestamp_field and getattr(review_request, timestamp_field) is None:
                    setattr(review_request, timestamp_field, datetime.utcnow())

            db.commit()
            db.refresh(review_request)

            self.logger.info(f"update_review_request: Success - {request_id}")
            return review_request
        except Exception as e:
            db.rollback()
            self.telemetry.log_failure(action='update_review_request', error=str(e), user_id=user_id)
            self.logger.error(f"update_review_request: Failure - {e}")
            raise

    def delete_review_request(self, db: Session, request_id: str, user_id: str, role: str = 'user'):
        """Hard delete in any status; linked feedback is kept"""
        self.logger.info(f"delete_review_request: Entry - request: {request_id}, user: {user_id}")

        review_request = self.get_review_request(db, request_id, user_id, role)
        try:
            db.delete(review_request)
            db.commit()

            self.telemetry.log_success(
                action='delete_review_request',
                user_id=user_id,
                parameters={'review_request_id': request_id}
            )
            self.logger.info(f"delete_review_request: Success - {request_id}")
        except Exception as e:
            db.rollback()
            self.telemetry.log_failure(action='delete_review_request', error=str(e), user_id=user_id)
            self.logger.error(f"delete_review_request: Failure - {e}")
            raise

    # Public, token-keyed flows

    def get_form(self, db: Session, unique_id: str) -> dict:
        """Business name and message for the customer form; first view marks the request clicked"""
        self.logger.info("get_form: Entry")

        review_request = self.get_by_unique_id(db, unique_id)
        business = self._require_business(review_request.business)

        if review_request.status == ReviewRequestStatus.SENT.value:
            review_request.status = ReviewRequestStatus.CLICKED.value
            review_request.clicked_at = datetime.utcnow()
            db.commit()

        self.logger.info(f"get_form: Success - request: {review_request.id}")
        return {'business_name': business.name, 'message': review_request.message}

    def analytics(self, db: Session, business_id: str, user_id: str, role: str = 'user', now: datetime = None) -> dict:
        self.business_service.get_business(db, business_id, user_id, role)
        return self.analytics_service.review_request_analytics(db, business_id, now=now)
