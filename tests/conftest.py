"""
Pytest configuration for testing
"""

import os
import uuid
from unittest.mock import MagicMock

import pytest

# Set up environment variables for testing before any imports
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["NOTIFICATION_MODE"] = "mock"
os.environ["FRONTEND_URL"] = "http://localhost:3000"
os.environ["REDIS_URL"] = "redis://localhost:6379/1"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ.pop("FIREBASE_CREDENTIALS_PATH", None)

from app.core.database import Base, SessionLocal, engine  # noqa: E402
from app import models  # noqa: E402,F401
from app.models.business import Business  # noqa: E402
from app.models.subscription import Subscription, SubscriptionStatus  # noqa: E402
from app.models.user import User  # noqa: E402
from app.notifier.sender import RecordingNotificationSender  # noqa: E402
from app.services.subscription_service import apply_plan  # noqa: E402


def make_user(db, user_id, plan="free", role="user", email=None, stripe_customer_id=None):
    """Persist a user together with a subscription derived from its plan"""
    user = User(
        id=user_id,
        email=email or f"{user_id}@example.com",
        first_name="Test",
        last_name=user_id,
        role=role,
        plan=plan,
        stripe_customer_id=stripe_customer_id,
        is_active=True,
    )
    subscription = Subscription(
        id=str(uuid.uuid4()),
        user_id=user_id,
        status=SubscriptionStatus.ACTIVE.value,
        stripe_customer_id=stripe_customer_id,
        cancel_at_period_end=False,
    )
    apply_plan(subscription, plan)
    db.add(user)
    db.add(subscription)
    db.commit()
    return user


def make_business(db, owner_id, name="Corner Cafe", category="restaurant"):
    business = Business(
        id=str(uuid.uuid4()),
        user_id=owner_id,
        name=name,
        category=category,
        address={"city": "Springfield"},
        active=True,
    )
    db.add(business)
    db.commit()
    return business


@pytest.fixture(scope="function")
def db_session():
    """Fresh in-memory schema per test"""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def owner(db_session):
    return make_user(db_session, "owner_1")


@pytest.fixture
def premium_owner(db_session):
    return make_user(db_session, "premium_1", plan="premium")


@pytest.fixture
def other_user(db_session):
    return make_user(db_session, "intruder_1")


@pytest.fixture
def admin_user(db_session):
    return make_user(db_session, "admin_1", role="admin")


@pytest.fixture
def business(db_session, owner):
    return make_business(db_session, owner.id)


@pytest.fixture
def recording_sender():
    return RecordingNotificationSender()


@pytest.fixture
def mock_cache():
    """Lock store that always grants the lock"""
    cache = MagicMock()
    cache.acquire_lock.return_value = True
    return cache


@pytest.fixture
def mock_billing():
    from app.core.billing import BillingClient
    billing = MagicMock(spec=BillingClient)
    billing.create_customer.return_value = "cus_test_123"
    billing.create_checkout_session.return_value = {
        "session_id": "cs_test_123",
        "url": "https://checkout.stripe.com/pay/cs_test_123",
    }
    return billing


@pytest.fixture
def client(db_session, recording_sender, mock_cache, mock_billing):
    """TestClient authenticated as owner_1 with provider clients replaced"""
    from fastapi.testclient import TestClient
    from app.main import app
    from app.core.billing import get_billing_client
    from app.core.database import get_db
    from app.core.middleware import get_current_user
    from app.api.v1.routes.review_requests import get_review_request_service
    from app.services.review_request_service import ReviewRequestService

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: {"uid": "owner_1", "email": "owner_1@example.com"}
    app.dependency_overrides[get_billing_client] = lambda: mock_billing
    app.dependency_overrides[get_review_request_service] = lambda: ReviewRequestService(
        sender=recording_sender, cache=mock_cache
    )
    app.state.notification_sender = recording_sender

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def login_as(client):
    """Switch the authenticated caller of the TestClient"""
    from app.main import app
    from app.core.middleware import get_current_user

    def _login(uid, email=None):
        app.dependency_overrides[get_current_user] = lambda: {"uid": uid, "email": email or f"{uid}@example.com"}

    return _login


@pytest.fixture
def user_factory(db_session):
    def _make(user_id, **kwargs):
        return make_user(db_session, user_id, **kwargs)
    return _make


@pytest.fixture
def business_factory(db_session):
    def _make(owner_id, **kwargs):
        return make_business(db_session, owner_id, **kwargs)
    return _make
