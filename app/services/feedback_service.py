import logging
import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.models.business import Business
from app.models.feedback import Feedback, FeedbackPlatform, FeedbackStatus, Sentiment
from app.models.review_request import ReviewRequest, ReviewRequestStatus
from app.models.user import User
from app.notifier.base import NotificationSender
from app.schemas.feedback import FeedbackSubmit
from app.services.analytics_service import AnalyticsService
from app.services.business_service import BusinessService
from app.services.notification_service import NotificationService
from app.services.review_request_service import complete_review_request
from app.services.telemetry_service import TelemetryService

logger = logging.getLogger(__name__)


def derive_sentiment(rating: int) -> str:
    if rating >= 4:
        return Sentiment.POSITIVE.value
    if rating == 3:
        return Sentiment.NEUTRAL.value
    return Sentiment.NEGATIVE.value


class FeedbackService:
    def __init__(self, sender: NotificationSender = None):
        self.notifications = NotificationService(sender) if sender is not None else None
        self.business_service = BusinessService()
        self.analytics_service = AnalyticsService()
        self.telemetry = TelemetryService()
        self.logger = logging.getLogger(__name__)

    def _new_feedback(self, business_id: str, payload: FeedbackSubmit) -> Feedback:
        return Feedback(
            id=str(uuid.uuid4()),
            business_id=business_id,
            customer_name=payload.customer_name,
            customer_email=payload.customer_email,
            customer_phone=payload.customer_phone,
            rating=payload.rating,
            comment=payload.comment,
            sentiment=derive_sentiment(payload.rating),
            status=FeedbackStatus.NEW.value,
            is_public=False,
            redirected_to_review=False,
            platform=FeedbackPlatform.INTERNAL.value,
        )

    async def _notify_owner(self, db: Session, business: Business, feedback: Feedback):
        """Best-effort; a failed notification never undoes the feedback write"""
        if self.notifications is None:
            return
        try:
            owner = db.query(User).filter(User.id == business.user_id).first()
            await self.notifications.send_feedback_notification(
                owner.email if owner else None, business, feedback
            )
        except Exception as e:
            self.telemetry.log_failure(
                action='notify_owner',
                error=str(e),
                parameters={'business_id': business.id, 'feedback_id': feedback.id}
            )
            self.logger.warning(f"_notify_owner: Failure - feedback: {feedback.id}, {e}")

    async def submit(self, db: Session, business_id: str, payload: FeedbackSubmit) -> Feedback:
        """Public feedback against a business"""
        self.logger.info(f"submit: Entry - business: {business_id}, rating: {payload.rating}")

        business = self.business_service.get_business_by_id(db, business_id)

        try:
            feedback = self._new_feedback(business.id, payload)
            db.add(feedback)
            db.commit()
            db.refresh(feedback)
        except Exception as e:
            db.rollback()
            self.telemetry.log_failure(action='submit_feedback', error=str(e), parameters={'business_id': business_id})
            self.logger.error(f"submit: Failure - {e}")
            raise

        await self._notify_owner(db, business, feedback)

        self.telemetry.log_success(
            action='submit_feedback',
            parameters={'business_id': business_id, 'rating': feedback.rating, 'sentiment': feedback.sentiment}
        )
        self.logger.info(f"submit: Success - feedback: {feedback.id}, sentiment: {feedback.sentiment}")
        return feedback

    async def submit_for_request(self, db: Session, unique_id: str, payload: FeedbackSubmit) -> Feedback:
        """Public feedback through a review request token; completes the request"""
        self.logger.info(f"submit_for_request: Entry - rating: {payload.rating}")

        review_request = db.query(ReviewRequest).filter(ReviewRequest.unique_id == unique_id).first()
        if not review_request:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Review request not found"
            )
        if review_request.status == ReviewRequestStatus.COMPLETED.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Feedback has already been submitted for this review request"
            )

        business = self.business_service.get_business_by_id(db, review_request.business_id)

        try:
            feedback = self._new_feedback(business.id, payload)
            db.add(feedback)
            db.flush()
            complete_review_request(review_request, feedback)
            db.commit()
            db.refresh(feedback)
        except Exception as e:
            db.rollback()
            self.telemetry.log_failure(
                action='submit_feedback',
                error=str(e),
                parameters={'review_request_id': review_request.id}
            )
            self.logger.error(f"submit_for_request: Failure - {e}")
            raise

        await self._notify_owner(db, business, feedback)

        self.telemetry.log_success(
            action='submit_feedback',
            parameters={'business_id': business.id, 'review_request_id': review_request.id, 'rating': feedback.rating}
        )
        self.logger.info(f"submit_for_request: Success - feedback: {feedback.id}, request: {review_request.id}")
        return feedback

    def list_for_owner(
        self,
        db: Session,
        user_id: str,
        business_id: Optional[str] = None,
        role: str = 'user'
    ) -> List[Feedback]:
        """Feedback of one business, or of every business the caller owns; newest first"""
        self.logger.info(f"list_for_owner: Entry - user: {user_id}, business: {business_id}")

        if business_id:
            self.business_service.get_business(db, business_id, user_id, role)
            business_ids = [business_id]
        else:
            business_ids = [row.id for row in db.query(Business.id).filter(Business.user_id == user_id).all()]

        if not business_ids:
            return []

        feedback = db.query(Feedback).filter(
            Feedback.business_id.in_(business_ids)
        ).order_by(Feedback.created_at.desc()).all()

        self.logger.info(f"list_for_owner: Success - {len(feedback)} feedback")
        return feedback

    def get_feedback(self, db: Session, feedback_id: str, user_id: str, role: str = 'user') -> Feedback:
        self.logger.info(f"get_feedback: Entry - feedback: {feedback_id}, user: {user_id}")

        feedback = db.query(Feedback).filter(Feedback.id == feedback_id).first()
        if not feedback:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Feedback not found"
            )

        business = db.query(Business).filter(Business.id == feedback.business_id).first()
        owner_id = business.user_id if business else None
        if owner_id != user_id and role != 'admin':
            self.logger.warning(f"get_feedback: Forbidden - feedback: {feedback_id}, user: {user_id}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized to access this feedback"
            )

        self.logger.info(f"get_feedback: Success - {feedback_id}")
        return feedback

    def respond(self, db: Session, feedback_id: str, user_id: str, response: str, role: str = 'user') -> Feedback:
        self.logger.info(f"respond: Entry - feedback: {feedback_id}, user: {user_id}")

        feedback = self.get_feedback(db, feedback_id, user_id, role)
        try:
            feedback.response_content = response
            feedback.responded_at = datetime.utcnow()
            feedback.responded_by = user_id
            db.commit()
            db.refresh(feedback)

            self.telemetry.log_success(action='respond_feedback', user_id=user_id, parameters={'feedback_id': feedback_id})
            self.logger.info(f"respond: Success - {feedback_id}")
            return feedback
        except Exception as e:
            db.rollback()
            self.telemetry.log_failure(action='respond_feedback', error=str(e), user_id=user_id)
            self.logger.error(f"respond: Failure - {e}")
            raise

    def update_status(self, db: Session, feedback_id: str, user_id: str, new_status: str, role: str = 'user') -> Feedback:
        """Any status may follow any other"""
        self.logger.info(f"update_status: Entry - feedback: {feedback_id}, status: {new_status}")

        feedback = self.get_feedback(db, feedback_id, user_id, role)
        try:
            feedback.status = new_status
            db.commit()
            db.refresh(feedback)

            self.logger.info(f"update_status: Success - {feedback_id}")
            return feedback
        except Exception as e:
            db.rollback()
            self.telemetry.log_failure(action='update_feedback_status', error=str(e), user_id=user_id)
            self.logger.error(f"update_status: Failure - {e}")
            raise

    def delete_feedback(self, db: Session, feedback_id: str, user_id: str, role: str = 'user'):
        self.logger.info(f"delete_feedback: Entry - feedback: {feedback_id}, user: {user_id}")

        feedback = self.get_feedback(db, feedback_id, user_id, role)
        try:
            db.query(ReviewRequest).filter(ReviewRequest.feedback_id == feedback_id).update(
                {ReviewRequest.feedback_id: None}, synchronize_session=False
            )
            db.delete(feedback)
            db.commit()

            self.logger.info(f"delete_feedback: Success - {feedback_id}")
        except Exception as e:
            db.rollback()
            self.telemetry.log_failure(action='delete_feedback', error=str(e), user_id=user_id)
            self.logger.error(f"delete_feedback: Failure - {e}")
            raise

    def analytics(self, db: Session, business_id: str, user_id: str, role: str = 'user') -> dict:
        self.business_service.get_business(db, business_id, user_id, role)
        return self.analytics_service.feedback_analytics(db, business_id)
