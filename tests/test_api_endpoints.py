"""
Tests for API endpoints
"""

import uuid

import stripe

from app.models.review_request import ReviewRequest
from app.models.subscription import Subscription


def _review_request(db, business_id, status="sent"):
    review_request = ReviewRequest(
        id=str(uuid.uuid4()),
        business_id=business_id,
        customer_name="Ana",
        customer_email="ana@example.com",
        request_method="email",
        status=status,
        unique_id=uuid.uuid4().hex,
        message="Thanks for stopping by",
        reminder_sent=False,
    )
    db.add(review_request)
    db.commit()
    return review_request


class TestHealthEndpoint:
    """Test health check endpoint"""

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "version": "1.0.0"}


class TestAuthentication:
    def test_missing_token(self, client):
        from app.main import app
        from app.core.middleware import get_current_user
        app.dependency_overrides.pop(get_current_user)

        response = client.get("/api/business")

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Not authorized, no token"}

    def test_first_call_provisions_user(self, client, db_session):
        response = client.get("/api/users/me")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == "owner_1"
        assert data["plan"] == "free"
        assert data["subscription"]["features"]["reviewRequestsLimit"] == 50
        assert db_session.query(Subscription).filter(Subscription.user_id == "owner_1").count() == 1


class TestBusinessEndpoints:
    """Business CRUD"""

    def test_create_list_update_delete(self, client):
        response = client.post("/api/business", json={
            "name": "  Corner Cafe ",
            "category": "restaurant",
            "address": {"city": "Springfield", "zipCode": "12345"},
        })
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        business = body["data"]
        assert business["name"] == "Corner Cafe"
        assert business["userId"] == "owner_1"
        assert business["address"] == {"city": "Springfield", "zipCode": "12345"}

        listed = client.get("/api/business").json()
        assert listed["count"] == 1

        updated = client.put(f"/api/business/{business['id']}", json={"description": "Espresso bar"})
        assert updated.status_code == 200
        assert updated.json()["data"]["description"] == "Espresso bar"

        deleted = client.delete(f"/api/business/{business['id']}")
        assert deleted.status_code == 200
        assert client.get(f"/api/business/{business['id']}").status_code == 404

    def test_second_business_on_free_plan(self, client, business):
        response = client.post("/api/business", json={"name": "Second Shop", "category": "retail"})

        assert response.status_code == 400
        assert response.json()["message"] == "Free tier users can only create one business. Please upgrade to premium."

    def test_validation_envelope(self, client):
        response = client.post("/api/business", json={"category": "spaceship"})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"].startswith("Invalid or missing fields")
        assert {error["field"] for error in body["errors"]} == {"name", "category"}

    def test_other_owner_forbidden(self, client, business, login_as):
        login_as("intruder_1")

        response = client.get(f"/api/business/{business.id}")

        assert response.status_code == 403
        assert response.json()["message"] == "Not authorized to access this business"

    def test_null_category_rejected(self, client, business):
        response = client.put(f"/api/business/{business.id}", json={"category": None})

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "category"

    def test_null_active_rejected(self, client, business, db_session):
        response = client.put(f"/api/business/{business.id}", json={"active": None})

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "active"
        db_session.refresh(business)
        assert business.active is True

    def test_unknown_business(self, client):
        assert client.get("/api/business/missing").status_code == 404


class TestReviewRequestEndpoints:
    def test_create_sends_email(self, client, business, recording_sender):
        response = client.post("/api/review-request", json={
            "businessId": business.id,
            "customerName": "Ana",
            "customerEmail": "ana@example.com",
            "requestMethod": "email",
        })

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["status"] == "sent"
        assert data["reminderSent"] is False
        assert recording_sender.emails[0].to == "ana@example.com"

    def test_missing_contact_for_method(self, client, business):
        response = client.post("/api/review-request", json={
            "businessId": business.id,
            "customerName": "Ana",
            "requestMethod": "sms",
        })

        assert response.status_code == 400
        assert response.json()["message"] == "Customer phone is required for SMS review requests"

    def test_null_request_method_rejected(self, client, db_session, business):
        review_request = _review_request(db_session, business.id)

        response = client.put(f"/api/review-request/{review_request.id}", json={"requestMethod": None})

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "requestMethod"
        db_session.refresh(review_request)
        assert review_request.request_method == "email"

    def test_invalid_customer_email(self, client, business):
        response = client.post("/api/review-request", json={
            "businessId": business.id,
            "customerName": "Ana",
            "customerEmail": "ana@",
            "requestMethod": "email",
        })

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "customerEmail"

    def test_public_form_marks_clicked(self, client, db_session, business):
        review_request = _review_request(db_session, business.id)
        from app.main import app
        from app.core.middleware import get_current_user
        app.dependency_overrides.pop(get_current_user)

        response = client.get(f"/api/review-request/form/{review_request.unique_id}")

        assert response.status_code == 200
        assert response.json()["data"] == {"businessName": "Corner Cafe", "message": "Thanks for stopping by"}
        db_session.refresh(review_request)
        assert review_request.status == "clicked"

    def test_analytics_without_requests(self, client, business):
        response = client.get(f"/api/review-request/analytics/{business.id}")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["totalRequests"] == 0
        assert data["responseRate"] == 0

    def test_reminder_twice(self, client, db_session, business):
        review_request = _review_request(db_session, business.id)

        first = client.post(f"/api/review-request/{review_request.id}/remind")
        second = client.post(f"/api/review-request/{review_request.id}/remind")

        assert first.status_code == 200
        assert second.status_code == 400

    def test_other_owner_forbidden(self, client, db_session, business, login_as):
        review_request = _review_request(db_session, business.id)
        login_as("intruder_1")

        response = client.get(f"/api/review-request/{review_request.id}")

        assert response.status_code == 403


class TestFeedbackEndpoints:
    def test_public_submission(self, client, business, recording_sender):
        response = client.post(f"/api/feedback/submit/{business.id}", json={
            "rating": 2,
            "comment": "slow service",
            "customerName": "Ana",
            "customerEmail": "ana@example.com",
        })

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["sentiment"] == "negative"
        assert data["status"] == "new"
        assert recording_sender.emails[0].to == "owner_1@example.com"

    def test_invalid_email_rejected(self, client, business):
        response = client.post(f"/api/feedback/submit/{business.id}", json={
            "rating": 4,
            "customerName": "Ana",
            "customerEmail": "not-an-email",
        })

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "customerEmail"

    def test_submission_through_request_link(self, client, db_session, business):
        review_request = _review_request(db_session, business.id, status="clicked")

        response = client.post(f"/api/feedback/submit/request/{review_request.unique_id}", json={
            "rating": 5,
            "customerName": "Ana",
            "customerEmail": "ana@example.com",
        })

        assert response.status_code == 201
        db_session.refresh(review_request)
        assert review_request.status == "completed"
        assert review_request.feedback_id == response.json()["data"]["id"]

    def test_owner_lists_and_responds(self, client, business):
        created = client.post(f"/api/feedback/submit/{business.id}", json={
            "rating": 5,
            "customerName": "Ana",
            "customerEmail": "ana@example.com",
        }).json()["data"]

        listed = client.get("/api/feedback", params={"businessId": business.id}).json()
        assert listed["count"] == 1

        responded = client.post(f"/api/feedback/{created['id']}/respond", json={"response": "Thank you!"})
        assert responded.json()["data"]["responseContent"] == "Thank you!"

        status_change = client.put(f"/api/feedback/{created['id']}", json={"status": "resolved"})
        assert status_change.json()["data"]["status"] == "resolved"

    def test_analytics_empty(self, client, business):
        data = client.get(f"/api/feedback/analytics/{business.id}").json()["data"]

        assert data["total"] == 0
        assert data["averageRating"] == 0


class TestSubscriptionEndpoints:
    def test_plan_change(self, client, owner):
        response = client.put("/api/subscription", json={"plan": "premium"})

        assert response.status_code == 200
        assert response.json()["data"]["features"]["reviewRequestsLimit"] == -1
        assert client.get("/api/subscription").json()["data"]["plan"] == "premium"

    def test_invalid_plan(self, client, owner):
        response = client.put("/api/subscription", json={"plan": "platinum"})

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid subscription plan"

    def test_checkout(self, client, owner, mock_billing):
        response = client.post("/api/subscription/checkout", json={"plan": "premium"})

        assert response.status_code == 200
        assert response.json()["data"] == {
            "sessionId": "cs_test_123",
            "url": "https://checkout.stripe.com/pay/cs_test_123",
        }

    def test_webhook_bad_signature_changes_nothing(self, client, db_session, user_factory, mock_billing):
        user_factory("payer_9", stripe_customer_id="cus_9")
        mock_billing.construct_event.side_effect = stripe.SignatureVerificationError("bad signature", "sig")

        response = client.post(
            "/api/subscription/webhook",
            content=b'{"type": "checkout.session.completed", "data": {"object": {"customer": "cus_9"}}}',
            headers={"stripe-signature": "sig"},
        )

        assert response.status_code == 400
        assert response.json()["message"].startswith("Webhook Error")
        subscription = db_session.query(Subscription).filter(Subscription.user_id == "payer_9").one()
        assert subscription.plan == "free"

    def test_webhook_applies_verified_event(self, client, db_session, user_factory):
        user_factory("payer_10", stripe_customer_id="cus_10")

        response = client.post(
            "/api/subscription/webhook",
            content=b'{"type": "checkout.session.completed", '
                    b'"data": {"object": {"customer": "cus_10", "subscription": "sub_10"}}}',
            headers={"stripe-signature": "sig"},
        )

        assert response.status_code == 200
        assert response.json() == {"received": True}
        db_session.expire_all()
        subscription = db_session.query(Subscription).filter(Subscription.user_id == "payer_10").one()
        assert subscription.plan == "premium"

    def test_cancel_without_subscription(self, client, owner):
        response = client.post("/api/subscription/cancel")

        assert response.status_code == 400
        assert response.json()["message"] == "No active subscription to cancel"


class TestSmsEndpoints:
    def test_verification_check(self, client):
        response = client.post("/api/sms/verify/check", json={"phoneNumber": "+15551234567", "code": "123456"})

        assert response.status_code == 200
        assert response.json()["data"]["valid"] is True

    def test_verification_needs_phone(self, client):
        response = client.post("/api/sms/verify/send", json={})

        assert response.status_code == 400
        assert response.json()["message"] == "Phone number is required"

    def test_send_requires_message(self, client, recording_sender):
        response = client.post("/api/sms/send", json={"to": "+15551234567"})

        assert response.status_code == 400
        assert recording_sender.sms_messages == []
