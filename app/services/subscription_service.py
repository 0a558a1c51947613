import json
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, Optional

import stripe
from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.billing import BillingClient, BillingConfigurationError
from app.core.config import settings
from app.models.subscription import Subscription, SubscriptionPlan, SubscriptionStatus
from app.models.user import User
from app.services.telemetry_service import TelemetryService

logger = logging.getLogger(__name__)


# Single source of truth for plan -> feature flags. Premium is unlimited (-1)
# on every write path.
PLAN_FEATURES: Dict[str, Dict[str, Any]] = {
    SubscriptionPlan.FREE.value: {
        'review_requests_limit': 50,
        'api_integrations': False,
        'advanced_analytics': False,
        'multiple_businesses': False,
    },
    SubscriptionPlan.PREMIUM.value: {
        'review_requests_limit': -1,
        'api_integrations': True,
        'advanced_analytics': True,
        'multiple_businesses': True,
    },
}

CHECKOUT_COMPLETED = 'checkout.session.completed'
SUBSCRIPTION_DELETED = 'customer.subscription.deleted'


def apply_plan(subscription: Subscription, plan: str):
    """Set plan and re-derive every feature flag in the same write"""
    if plan not in PLAN_FEATURES:
        raise ValueError(f"Invalid subscription plan: {plan}")
    subscription.plan = plan
    for field, value in PLAN_FEATURES[plan].items():
        setattr(subscription, field, value)


def new_free_subscription(user_id: str) -> Subscription:
    subscription = Subscription(
        id=str(uuid.uuid4()),
        user_id=user_id,
        status=SubscriptionStatus.ACTIVE.value,
        cancel_at_period_end=False,
    )
    apply_plan(subscription, SubscriptionPlan.FREE.value)
    return subscription


class SubscriptionService:
    def __init__(self):
        self.telemetry = TelemetryService()
        self.logger = logging.getLogger(__name__)

    def get_subscription(self, db: Session, user_id: str) -> Subscription:
        """Get the one subscription record of a user"""
        self.logger.info(f"get_subscription: Entry - user: {user_id}")

        subscription = db.query(Subscription).filter(Subscription.user_id == user_id).first()
        if not subscription:
            self.logger.warning(f"get_subscription: Not found - user: {user_id}")
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Subscription not found"
            )

        self.logger.info(f"get_subscription: Success - user: {user_id}, plan: {subscription.plan}")
        return subscription

    def change_plan(self, db: Session, user_id: str, plan: str) -> Subscription:
        """Switch plan, re-deriving feature flags and mirroring the plan on the user"""
        self.logger.info(f"change_plan: Entry - user: {user_id}, plan: {plan}")

        if plan not in PLAN_FEATURES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid subscription plan"
            )

        try:
            subscription = self.get_subscription(db, user_id)
            old_plan = subscription.plan
            apply_plan(subscription, plan)

            user = db.query(User).filter(User.id == user_id).first()
            if user:
                user.plan = plan

            db.commit()
            db.refresh(subscription)

            self.telemetry.log_success(
                action='change_plan',
                user_id=user_id,
                parameters={'from_plan': old_plan, 'to_plan': plan}
            )
            self.logger.info(f"change_plan: Success - user: {user_id}, {old_plan} -> {plan}")
            return subscription
        except HTTPException:
            raise
        except Exception as e:
            db.rollback()
            self.telemetry.log_failure(action='change_plan', error=str(e), user_id=user_id)
            self.logger.error(f"change_plan: Failure - {e}")
            raise

    def create_checkout_session(self, db: Session, user_id: str, plan: str, billing: BillingClient) -> dict:
        """Start a Stripe checkout for the premium plan"""
        self.logger.info(f"create_checkout_session: Entry - user: {user_id}, plan: {plan}")

        if plan != SubscriptionPlan.PREMIUM.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid subscription plan"
            )

        try:
            user = db.query(User).filter(User.id == user_id).first()
            if not user:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

            if not user.stripe_customer_id:
                user.stripe_customer_id = billing.create_customer(
                    email=user.email or "",
                    name=user.full_name,
                    user_id=user.id,
                )
                subscription = db.query(Subscription).filter(Subscription.user_id == user_id).first()
                if subscription:
                    subscription.stripe_customer_id = user.stripe_customer_id
                db.commit()

            session = billing.create_checkout_session(
                customer_id=user.stripe_customer_id,
                success_url=f"{settings.frontend_url}/dashboard?subscription=success",
                cancel_url=f"{settings.frontend_url}/dashboard?subscription=cancel",
            )

            self.telemetry.log_success(action='create_checkout_session', user_id=user_id)
            self.logger.info(f"create_checkout_session: Success - user: {user_id}, session: {session['session_id']}")
            return session
        except HTTPException:
            raise
        except Exception as e:
            db.rollback()
            self.telemetry.log_failure(action='create_checkout_session', error=str(e), user_id=user_id)
            self.logger.error(f"create_checkout_session: Failure - {e}")
            raise

    def handle_webhook(self, db: Session, payload: bytes, signature: Optional[str], billing: BillingClient) -> dict:
        """Verify a Stripe webhook and apply it. Nothing is written unless the signature checks out."""
        self.logger.info("handle_webhook: Entry")

        try:
            billing.construct_event(payload, signature)
            event = json.loads(payload)
        except (stripe.SignatureVerificationError, ValueError) as e:
            self.logger.error(f"handle_webhook: Signature verification failed - {e}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Webhook Error: {e}"
            )
        except BillingConfigurationError as e:
            self.logger.error(f"handle_webhook: Failure - {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(e)
            )

        self.apply_billing_event(db, event)
        self.logger.info("handle_webhook: Success")
        return {"received": True}

    def apply_billing_event(self, db: Session, event: dict) -> Optional[Subscription]:
        """Apply a verified billing event; unknown event types and customers are ignored"""
        event_type = event.get('type')
        data = (event.get('data') or {}).get('object') or {}
        self.logger.info(f"apply_billing_event: Entry - type: {event_type}")

        if event_type not in (CHECKOUT_COMPLETED, SUBSCRIPTION_DELETED):
            self.logger.info(f"apply_billing_event: Unhandled event type {event_type}")
            return None

        try:
            customer_id = data.get('customer')
            user = db.query(User).filter(User.stripe_customer_id == customer_id).first() if customer_id else None
            if not user:
                self.logger.warning(f"apply_billing_event: No user for customer {customer_id}")
                return None

            subscription = db.query(Subscription).filter(Subscription.user_id == user.id).first()
            if not subscription:
                subscription = new_free_subscription(user.id)
                db.add(subscription)

            if event_type == CHECKOUT_COMPLETED:
                apply_plan(subscription, SubscriptionPlan.PREMIUM.value)
                subscription.status = SubscriptionStatus.ACTIVE.value
                subscription.stripe_subscription_id = data.get('subscription')
                subscription.stripe_customer_id = customer_id
                user.plan = SubscriptionPlan.PREMIUM.value
            else:
                self._downgrade(subscription, user)

            db.commit()
            db.refresh(subscription)

            self.telemetry.log_success(
                action='apply_billing_event',
                user_id=user.id,
                parameters={'type': event_type, 'plan': subscription.plan}
            )
            self.logger.info(f"apply_billing_event: Success - user: {user.id}, plan: {subscription.plan}")
            return subscription
        except Exception as e:
            db.rollback()
            self.telemetry.log_failure(action='apply_billing_event', error=str(e), parameters={'type': event_type})
            self.logger.error(f"apply_billing_event: Failure - {e}")
            raise

    def cancel_subscription(self, db: Session, user_id: str, billing: BillingClient) -> Subscription:
        """Cancel the provider subscription, then downgrade exactly like a deletion event"""
        self.logger.info(f"cancel_subscription: Entry - user: {user_id}")

        subscription = db.query(Subscription).filter(Subscription.user_id == user_id).first()
        if not subscription or not subscription.stripe_subscription_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No active subscription to cancel"
            )

        try:
            billing.cancel_subscription(subscription.stripe_subscription_id)

            user = db.query(User).filter(User.id == user_id).first()
            self._downgrade(subscription, user)
            db.commit()
            db.refresh(subscription)

            self.telemetry.log_success(action='cancel_subscription', user_id=user_id)
            self.logger.info(f"cancel_subscription: Success - user: {user_id}")
            return subscription
        except Exception as e:
            db.rollback()
            self.telemetry.log_failure(action='cancel_subscription', error=str(e), user_id=user_id)
            self.logger.error(f"cancel_subscription: Failure - {e}")
            raise

    def _downgrade(self, subscription: Subscription, user: Optional[User]):
        apply_plan(subscription, SubscriptionPlan.FREE.value)
        subscription.status = SubscriptionStatus.INACTIVE.value
        subscription.stripe_subscription_id = None
        subscription.canceled_at = datetime.utcnow()
        if user:
            user.plan = SubscriptionPlan.FREE.value
