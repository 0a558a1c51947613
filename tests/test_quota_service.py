"""
Tests for QuotaService
"""

import uuid
from datetime import datetime

import pytest
from fastapi import HTTPException

from app.models.review_request import ReviewRequest
from app.services.quota_service import QuotaService, start_of_month

NOW = datetime(2024, 5, 20, 12, 0, 0)


def _add_requests(db, business_id, count, created_at=NOW):
    for _ in range(count):
        db.add(ReviewRequest(
            id=str(uuid.uuid4()),
            business_id=business_id,
            customer_name="Ana",
            customer_email="ana@example.com",
            request_method="email",
            status="sent",
            unique_id=uuid.uuid4().hex,
            reminder_sent=False,
            created_at=created_at,
        ))
    db.commit()


class TestStartOfMonth:
    def test_truncates_to_first_day(self):
        assert start_of_month(NOW) == datetime(2024, 5, 1)


class TestReviewRequestQuota:
    """Test cases for check_review_request_quota"""

    def test_under_limit(self, db_session, owner, business):
        _add_requests(db_session, business.id, 49)

        result = QuotaService().check_review_request_quota(db_session, owner.id, business.id, now=NOW)

        assert result == {'limit': 50, 'used': 49}

    def test_fifty_first_request_refused(self, db_session, owner, business):
        _add_requests(db_session, business.id, 50)

        with pytest.raises(HTTPException) as exc_info:
            QuotaService().check_review_request_quota(db_session, owner.id, business.id, now=NOW)

        assert exc_info.value.status_code == 400
        assert "50" in exc_info.value.detail
        assert "upgrade to premium" in exc_info.value.detail

    def test_previous_month_not_counted(self, db_session, owner, business):
        _add_requests(db_session, business.id, 50, created_at=datetime(2024, 4, 30, 23, 59, 59))

        result = QuotaService().check_review_request_quota(db_session, owner.id, business.id, now=NOW)

        assert result['used'] == 0

    def test_other_business_not_counted(self, db_session, premium_owner, owner, business, business_factory):
        other = business_factory(premium_owner.id, name="Elsewhere")
        _add_requests(db_session, other.id, 50)

        result = QuotaService().check_review_request_quota(db_session, owner.id, business.id, now=NOW)

        assert result['used'] == 0

    def test_premium_is_unlimited(self, db_session, premium_owner, business_factory):
        premium_business = business_factory(premium_owner.id)
        _add_requests(db_session, premium_business.id, 60)

        result = QuotaService().check_review_request_quota(
            db_session, premium_owner.id, premium_business.id, now=NOW
        )

        assert result == {'limit': -1, 'used': None}

    def test_missing_subscription_is_bad_request(self, db_session):
        with pytest.raises(HTTPException) as exc_info:
            QuotaService().check_review_request_quota(db_session, 'ghost', 'biz', now=NOW)

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "Subscription not found"


class TestBusinessQuota:
    """Test cases for check_business_quota"""

    def test_first_business_allowed(self, db_session, owner):
        QuotaService().check_business_quota(db_session, owner.id)

    def test_second_business_refused_on_free(self, db_session, owner, business):
        with pytest.raises(HTTPException) as exc_info:
            QuotaService().check_business_quota(db_session, owner.id)

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "Free tier users can only create one business. Please upgrade to premium."

    def test_premium_may_hold_many(self, db_session, premium_owner, business_factory):
        business_factory(premium_owner.id, name="One")
        business_factory(premium_owner.id, name="Two")

        QuotaService().check_business_quota(db_session, premium_owner.id)
