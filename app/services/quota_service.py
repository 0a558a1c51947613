from sqlalchemy.orm import Session
from sqlalchemy import and_, func
from fastapi import HTTPException, status
from app.models.business import Business
from app.models.review_request import ReviewRequest
from app.models.subscription import Subscription, SubscriptionPlan
from app.services.subscription_service import PLAN_FEATURES
from app.services.telemetry_service import TelemetryService
from datetime import datetime
import logging

logger = logging.getLogger(__name__)


def start_of_month(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class QuotaService:
    def __init__(self):
        self.telemetry = TelemetryService()
        self.logger = logging.getLogger(__name__)

    def _get_subscription(self, db: Session, user_id: str) -> Subscription:
        subscription = db.query(Subscription).filter(Subscription.user_id == user_id).first()
        if not subscription:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Subscription not found"
            )
        return subscription

    def check_review_request_quota(
        self,
        db: Session,
        user_id: str,
        business_id: str,
        now: datetime = None
    ) -> dict:
        """
        Check the monthly review request quota of a business against the
        owner's plan. Raises 400 when the month's count has reached the limit.

        Callers that insert afterwards must hold the business quota lock
        (see app.core.cache.review_request_quota_lock_key) across the check
        and the insert.

        Returns dict with:
            - 'limit': int - monthly limit, -1 for unlimited
            - 'used': int - requests created this month
        """
        now = now or datetime.utcnow()
        self.logger.info(f"check_review_request_quota: Entry - user: {user_id}, business: {business_id}")

        try:
            subscription = self._get_subscription(db, user_id)
            limit = subscription.review_requests_limit
            if limit is None:
                limit = PLAN_FEATURES[SubscriptionPlan.FREE.value]['review_requests_limit']

            if limit == -1:
                self.logger.info(f"check_review_request_quota: Unlimited - user: {user_id}, plan: {subscription.plan}")
                return {'limit': -1, 'used': None}

            used = db.query(func.count(ReviewRequest.id)).filter(
                and_(
                    ReviewRequest.business_id == business_id,
                    ReviewRequest.created_at >= start_of_month(now)
                )
            ).scalar() or 0

            if used >= limit:
                self.logger.info(f"check_review_request_quota: Quota exceeded - business: {business_id}, used: {used}/{limit}")
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"You have reached your monthly limit of {limit} review requests. Please upgrade to premium."
                )

            self.logger.info(f"check_review_request_quota: Success - business: {business_id}, used: {used}/{limit}")
            return {'limit': limit, 'used': used}
        except HTTPException:
            raise
        except Exception as e:
            self.telemetry.log_failure(
                action='check_review_request_quota',
                error=str(e),
                user_id=user_id,
                parameters={'business_id': business_id}
            )
            self.logger.error(f"check_review_request_quota: Failure - {e}")
            raise

    def check_business_quota(self, db: Session, user_id: str):
        """Free plan owners may hold a single business"""
        self.logger.info(f"check_business_quota: Entry - user: {user_id}")

        subscription = db.query(Subscription).filter(Subscription.user_id == user_id).first()
        if subscription and subscription.multiple_businesses:
            return

        existing = db.query(func.count(Business.id)).filter(Business.user_id == user_id).scalar() or 0
        if existing >= 1:
            self.logger.info(f"check_business_quota: Quota exceeded - user: {user_id}, businesses: {existing}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Free tier users can only create one business. Please upgrade to premium."
            )

        self.logger.info(f"check_business_quota: Success - user: {user_id}")
