"""
Tests for SubscriptionService
"""

import json

import pytest
import stripe
from fastapi import HTTPException
from unittest.mock import MagicMock

from app.core.billing import BillingClient
from app.models.subscription import Subscription
from app.models.user import User
from app.services.subscription_service import (
    PLAN_FEATURES,
    SubscriptionService,
    apply_plan,
)


def _subscription(db, user_id):
    return db.query(Subscription).filter(Subscription.user_id == user_id).first()


class TestPlanFeatures:
    """The plan -> feature flag mapping"""

    def test_premium_is_unlimited(self):
        assert PLAN_FEATURES['premium']['review_requests_limit'] == -1

    def test_free_limit_is_fifty(self):
        assert PLAN_FEATURES['free']['review_requests_limit'] == 50

    def test_apply_plan_rejects_unknown_plan(self):
        with pytest.raises(ValueError):
            apply_plan(Subscription(), 'enterprise')


class TestChangePlan:
    """Test cases for change_plan"""

    def test_round_trip_leaves_no_stale_flags(self, db_session, owner):
        service = SubscriptionService()

        premium = service.change_plan(db_session, owner.id, 'premium')
        assert premium.features == {
            'reviewRequestsLimit': -1,
            'apiIntegrations': True,
            'advancedAnalytics': True,
            'multipleBusinesses': True,
        }

        free = service.change_plan(db_session, owner.id, 'free')
        assert free.features == {
            'reviewRequestsLimit': 50,
            'apiIntegrations': False,
            'advancedAnalytics': False,
            'multipleBusinesses': False,
        }

    def test_mirrors_plan_on_user(self, db_session, owner):
        SubscriptionService().change_plan(db_session, owner.id, 'premium')

        user = db_session.query(User).filter(User.id == owner.id).first()
        assert user.plan == 'premium'

    def test_invalid_plan_rejected(self, db_session, owner):
        with pytest.raises(HTTPException) as exc_info:
            SubscriptionService().change_plan(db_session, owner.id, 'gold')

        assert exc_info.value.status_code == 400
        assert _subscription(db_session, owner.id).plan == 'free'

    def test_missing_subscription_is_not_found(self, db_session):
        with pytest.raises(HTTPException) as exc_info:
            SubscriptionService().change_plan(db_session, 'nobody', 'premium')

        assert exc_info.value.status_code == 404


class TestBillingEvents:
    """Test cases for apply_billing_event and handle_webhook"""

    def test_checkout_completed_upgrades(self, db_session, user_factory):
        user_factory('payer_1', stripe_customer_id='cus_1')

        result = SubscriptionService().apply_billing_event(db_session, {
            'type': 'checkout.session.completed',
            'data': {'object': {'customer': 'cus_1', 'subscription': 'sub_1'}},
        })

        assert result.plan == 'premium'
        assert result.status == 'active'
        assert result.stripe_subscription_id == 'sub_1'
        assert result.review_requests_limit == -1
        assert db_session.query(User).filter(User.id == 'payer_1').first().plan == 'premium'

    def test_subscription_deleted_downgrades(self, db_session, user_factory):
        user_factory('payer_2', plan='premium', stripe_customer_id='cus_2')
        subscription = _subscription(db_session, 'payer_2')
        subscription.stripe_subscription_id = 'sub_2'
        db_session.commit()

        result = SubscriptionService().apply_billing_event(db_session, {
            'type': 'customer.subscription.deleted',
            'data': {'object': {'customer': 'cus_2', 'id': 'sub_2'}},
        })

        assert result.plan == 'free'
        assert result.status == 'inactive'
        assert result.stripe_subscription_id is None
        assert result.multiple_businesses is False
        assert result.review_requests_limit == 50

    def test_unknown_customer_is_ignored(self, db_session, owner):
        result = SubscriptionService().apply_billing_event(db_session, {
            'type': 'checkout.session.completed',
            'data': {'object': {'customer': 'cus_unknown', 'subscription': 'sub_x'}},
        })

        assert result is None
        assert _subscription(db_session, owner.id).plan == 'free'

    def test_unhandled_event_type_is_ignored(self, db_session):
        assert SubscriptionService().apply_billing_event(db_session, {'type': 'invoice.paid', 'data': {}}) is None

    def test_bad_signature_rejected_without_mutation(self, db_session, user_factory):
        user_factory('payer_3', stripe_customer_id='cus_3')
        billing = BillingClient(secret_key=None, webhook_secret='whsec_test_secret')
        payload = json.dumps({
            'type': 'checkout.session.completed',
            'data': {'object': {'customer': 'cus_3', 'subscription': 'sub_3'}},
        }).encode()

        with pytest.raises(HTTPException) as exc_info:
            SubscriptionService().handle_webhook(db_session, payload, 't=1,v1=not-a-signature', billing)

        assert exc_info.value.status_code == 400
        subscription = _subscription(db_session, 'payer_3')
        assert subscription.plan == 'free'
        assert subscription.stripe_subscription_id is None

    def test_missing_signature_rejected(self, db_session):
        billing = BillingClient(secret_key=None, webhook_secret='whsec_test_secret')

        with pytest.raises(HTTPException) as exc_info:
            SubscriptionService().handle_webhook(db_session, b'{}', None, billing)

        assert exc_info.value.status_code == 400

    def test_verified_webhook_applied(self, db_session, user_factory):
        user_factory('payer_4', stripe_customer_id='cus_4')
        billing = MagicMock(spec=BillingClient)
        payload = json.dumps({
            'type': 'checkout.session.completed',
            'data': {'object': {'customer': 'cus_4', 'subscription': 'sub_4'}},
        }).encode()

        result = SubscriptionService().handle_webhook(db_session, payload, 'sig', billing)

        assert result == {'received': True}
        billing.construct_event.assert_called_once_with(payload, 'sig')
        assert _subscription(db_session, 'payer_4').plan == 'premium'


class TestCancel:
    """Test cases for cancel_subscription"""

    def test_cancel_without_provider_subscription(self, db_session, owner, mock_billing):
        with pytest.raises(HTTPException) as exc_info:
            SubscriptionService().cancel_subscription(db_session, owner.id, mock_billing)

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "No active subscription to cancel"
        mock_billing.cancel_subscription.assert_not_called()

    def test_cancel_downgrades_like_deletion(self, db_session, user_factory, mock_billing):
        user_factory('payer_5', plan='premium', stripe_customer_id='cus_5')
        subscription = _subscription(db_session, 'payer_5')
        subscription.stripe_subscription_id = 'sub_5'
        db_session.commit()

        result = SubscriptionService().cancel_subscription(db_session, 'payer_5', mock_billing)

        mock_billing.cancel_subscription.assert_called_once_with('sub_5')
        assert result.plan == 'free'
        assert result.status == 'inactive'
        assert result.stripe_subscription_id is None
        assert db_session.query(User).filter(User.id == 'payer_5').first().plan == 'free'

    def test_provider_failure_propagates(self, db_session, user_factory, mock_billing):
        user_factory('payer_6', plan='premium', stripe_customer_id='cus_6')
        subscription = _subscription(db_session, 'payer_6')
        subscription.stripe_subscription_id = 'sub_6'
        db_session.commit()
        mock_billing.cancel_subscription.side_effect = stripe.APIConnectionError("network down")

        with pytest.raises(stripe.APIConnectionError):
            SubscriptionService().cancel_subscription(db_session, 'payer_6', mock_billing)

        assert _subscription(db_session, 'payer_6').plan == 'premium'


class TestCheckout:
    """Test cases for create_checkout_session"""

    def test_creates_customer_once(self, db_session, owner, mock_billing):
        service = SubscriptionService()

        session = service.create_checkout_session(db_session, owner.id, 'premium', mock_billing)
        service.create_checkout_session(db_session, owner.id, 'premium', mock_billing)

        assert session['session_id'] == 'cs_test_123'
        mock_billing.create_customer.assert_called_once()
        assert db_session.query(User).filter(User.id == owner.id).first().stripe_customer_id == 'cus_test_123'
        assert _subscription(db_session, owner.id).stripe_customer_id == 'cus_test_123'

    def test_only_premium_checkout(self, db_session, owner, mock_billing):
        with pytest.raises(HTTPException) as exc_info:
            SubscriptionService().create_checkout_session(db_session, owner.id, 'free', mock_billing)

        assert exc_info.value.status_code == 400
