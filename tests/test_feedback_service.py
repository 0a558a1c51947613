"""
Tests for FeedbackService
"""

import uuid
from datetime import datetime

import pytest
from fastapi import HTTPException

from app.models.feedback import Feedback
from app.models.review_request import ReviewRequest
from app.notifier.base import NotificationError
from app.notifier.sender import RecordingNotificationSender
from app.schemas.feedback import FeedbackSubmit
from app.services.feedback_service import FeedbackService, derive_sentiment


class BrokenSender(RecordingNotificationSender):
    async def send_email(self, message):
        raise NotificationError("SendGrid rejected the message: invalid key", provider="sendgrid", status_code=401)


def _submission(rating=5, comment="Lovely", **overrides):
    values = dict(rating=rating, comment=comment, customer_name="Ana", customer_email="ana@example.com")
    values.update(overrides)
    return FeedbackSubmit(**values)


def _stored_feedback(db, business_id, rating=4, created_at=None):
    feedback = Feedback(
        id=str(uuid.uuid4()),
        business_id=business_id,
        customer_name="Ana",
        customer_email="ana@example.com",
        rating=rating,
        sentiment=derive_sentiment(rating),
        status="new",
        is_public=False,
        redirected_to_review=False,
        platform="internal",
        created_at=created_at or datetime.utcnow(),
    )
    db.add(feedback)
    db.commit()
    return feedback


class TestSentiment:
    @pytest.mark.parametrize("rating,expected", [
        (1, "negative"),
        (2, "negative"),
        (3, "neutral"),
        (4, "positive"),
        (5, "positive"),
    ])
    def test_derived_from_rating(self, rating, expected):
        assert derive_sentiment(rating) == expected


class TestSubmit:
    """Test cases for public submissions"""

    @pytest.mark.asyncio
    async def test_negative_feedback_notifies_owner(self, db_session, business, recording_sender):
        service = FeedbackService(sender=recording_sender)

        feedback = await service.submit(db_session, business.id, _submission(rating=2, comment="slow service"))

        assert feedback.sentiment == "negative"
        assert feedback.status == "new"
        assert feedback.platform == "internal"
        assert feedback.comment == "slow service"
        assert len(recording_sender.emails) == 1
        notification = recording_sender.emails[0]
        assert notification.to == "owner_1@example.com"
        assert notification.subject == "New Feedback for Corner Cafe"
        assert notification.template_data["dashboardUrl"].endswith(f"/dashboard/feedback/{feedback.id}")

    @pytest.mark.asyncio
    async def test_notification_failure_keeps_feedback(self, db_session, business):
        service = FeedbackService(sender=BrokenSender())

        feedback = await service.submit(db_session, business.id, _submission())

        assert db_session.query(Feedback).filter(Feedback.id == feedback.id).first() is not None

    @pytest.mark.asyncio
    async def test_unknown_business(self, db_session, recording_sender):
        with pytest.raises(HTTPException) as exc_info:
            await FeedbackService(sender=recording_sender).submit(db_session, "missing", _submission())

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_submission_completes_review_request(self, db_session, business, recording_sender):
        review_request = ReviewRequest(
            id=str(uuid.uuid4()),
            business_id=business.id,
            customer_name="Ana",
            customer_email="ana@example.com",
            request_method="email",
            status="clicked",
            unique_id="a" * 32,
            reminder_sent=False,
        )
        db_session.add(review_request)
        db_session.commit()
        service = FeedbackService(sender=recording_sender)

        feedback = await service.submit_for_request(db_session, "a" * 32, _submission(rating=3))

        db_session.refresh(review_request)
        assert review_request.status == "completed"
        assert review_request.completed_at is not None
        assert review_request.feedback_id == feedback.id
        assert feedback.sentiment == "neutral"

        with pytest.raises(HTTPException) as exc_info:
            await service.submit_for_request(db_session, "a" * 32, _submission())

        assert exc_info.value.status_code == 400
        assert db_session.query(Feedback).count() == 1

    @pytest.mark.asyncio
    async def test_unknown_review_request_token(self, db_session, recording_sender):
        with pytest.raises(HTTPException) as exc_info:
            await FeedbackService(sender=recording_sender).submit_for_request(db_session, "nope", _submission())

        assert exc_info.value.status_code == 404

    def test_rating_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            _submission(rating=6)

    def test_content_alias_accepted(self):
        submission = FeedbackSubmit.model_validate({
            "rating": 4,
            "content": "  Great coffee  ",
            "customerName": "Ana",
            "customerEmail": "ana@example.com",
        })

        assert submission.comment == "Great coffee"


class TestOwnerOperations:
    """Test cases for listing, responding and status changes"""

    def test_list_newest_first(self, db_session, owner, business):
        older = _stored_feedback(db_session, business.id, created_at=datetime(2024, 1, 1))
        newer = _stored_feedback(db_session, business.id, created_at=datetime(2024, 3, 1))

        listed = FeedbackService().list_for_owner(db_session, owner.id)

        assert [f.id for f in listed] == [newer.id, older.id]

    def test_list_foreign_business_forbidden(self, db_session, business, other_user):
        with pytest.raises(HTTPException) as exc_info:
            FeedbackService().list_for_owner(db_session, other_user.id, business.id)

        assert exc_info.value.status_code == 403

    def test_list_without_businesses(self, db_session, other_user):
        assert FeedbackService().list_for_owner(db_session, other_user.id) == []

    def test_respond_records_responder(self, db_session, owner, business):
        feedback = _stored_feedback(db_session, business.id)

        updated = FeedbackService().respond(db_session, feedback.id, owner.id, "Thanks for the kind words")

        assert updated.response_content == "Thanks for the kind words"
        assert updated.responded_by == owner.id
        assert updated.responded_at is not None

    def test_any_status_transition(self, db_session, owner, business):
        feedback = _stored_feedback(db_session, business.id)
        service = FeedbackService()

        assert service.update_status(db_session, feedback.id, owner.id, "resolved").status == "resolved"
        assert service.update_status(db_session, feedback.id, owner.id, "new").status == "new"

    def test_get_missing_before_forbidden(self, db_session, other_user):
        with pytest.raises(HTTPException) as exc_info:
            FeedbackService().get_feedback(db_session, "missing", other_user.id)

        assert exc_info.value.status_code == 404

    def test_get_foreign_forbidden(self, db_session, business, other_user):
        feedback = _stored_feedback(db_session, business.id)

        with pytest.raises(HTTPException) as exc_info:
            FeedbackService().get_feedback(db_session, feedback.id, other_user.id)

        assert exc_info.value.status_code == 403

    def test_delete_unlinks_review_request(self, db_session, owner, business):
        feedback = _stored_feedback(db_session, business.id)
        review_request = ReviewRequest(
            id=str(uuid.uuid4()),
            business_id=business.id,
            customer_name="Ana",
            customer_email="ana@example.com",
            request_method="email",
            status="completed",
            unique_id="b" * 32,
            reminder_sent=False,
            feedback_id=feedback.id,
        )
        db_session.add(review_request)
        db_session.commit()

        FeedbackService().delete_feedback(db_session, feedback.id, owner.id)

        db_session.expire_all()
        assert db_session.query(Feedback).count() == 0
        assert db_session.query(ReviewRequest).filter(ReviewRequest.id == review_request.id).one().feedback_id is None


class TestFeedbackAnalytics:
    def test_empty_business(self, db_session, owner, business):
        result = FeedbackService().analytics(db_session, business.id, owner.id)

        assert result == {
            'total': 0,
            'averageRating': 0,
            'ratingDistribution': {'1': 0, '2': 0, '3': 0, '4': 0, '5': 0},
        }

    def test_average_and_histogram(self, db_session, owner, business):
        for rating in (5, 4, 4, 1):
            _stored_feedback(db_session, business.id, rating=rating)

        result = FeedbackService().analytics(db_session, business.id, owner.id)

        assert result['total'] == 4
        assert result['averageRating'] == 3.5
        assert result['ratingDistribution'] == {'1': 1, '2': 0, '3': 0, '4': 2, '5': 1}
