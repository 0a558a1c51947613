import logging
from typing import Any, Dict, Optional

import stripe
from fastapi import Request

from app.core.config import Settings

logger = logging.getLogger(__name__)


class BillingConfigurationError(RuntimeError):
    """Raised when a billing call is attempted without Stripe credentials"""


class BillingClient:
    """Thin wrapper over the Stripe SDK.

    The secret key is passed on every call instead of being assigned to
    ``stripe.api_key`` so that several clients (and test doubles) can coexist.
    """

    def __init__(
        self,
        secret_key: Optional[str],
        webhook_secret: Optional[str],
        price_cents: int = 1999,
        currency: str = "usd",
    ):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self.price_cents = price_cents
        self.currency = currency
        self.logger = logging.getLogger(__name__)

    def _require_key(self) -> str:
        if not self.secret_key:
            raise BillingConfigurationError("STRIPE_SECRET_KEY is not configured")
        return self.secret_key

    def create_customer(self, email: str, name: str, user_id: str) -> str:
        """Create a Stripe customer and return its id"""
        self.logger.info(f"create_customer: Entry - user: {user_id}")
        customer = stripe.Customer.create(
            email=email,
            name=name,
            metadata={"user_id": user_id},
            api_key=self._require_key(),
        )
        self.logger.info(f"create_customer: Success - customer: {customer.id}")
        return customer.id

    def create_checkout_session(self, customer_id: str, success_url: str, cancel_url: str) -> Dict[str, Any]:
        """Create a monthly premium subscription checkout session"""
        self.logger.info(f"create_checkout_session: Entry - customer: {customer_id}")
        session = stripe.checkout.Session.create(
            customer=customer_id,
            payment_method_types=["card"],
            line_items=[
                {
                    "price_data": {
                        "currency": self.currency,
                        "product_data": {
                            "name": "Revuverse Premium Subscription",
                            "description": "Unlimited review requests, API integrations, and advanced analytics",
                        },
                        "unit_amount": self.price_cents,
                        "recurring": {"interval": "month"},
                    },
                    "quantity": 1,
                }
            ],
            mode="subscription",
            success_url=success_url,
            cancel_url=cancel_url,
            api_key=self._require_key(),
        )
        self.logger.info(f"create_checkout_session: Success - session: {session.id}")
        return {"session_id": session.id, "url": session.url}

    def cancel_subscription(self, subscription_id: str):
        """Cancel a provider subscription immediately"""
        self.logger.info(f"cancel_subscription: Entry - subscription: {subscription_id}")
        result = stripe.Subscription.cancel(subscription_id, api_key=self._require_key())
        self.logger.info(f"cancel_subscription: Success - subscription: {subscription_id}")
        return result

    def construct_event(self, payload: bytes, signature: Optional[str]):
        """Verify the webhook signature and parse the event.

        Raises ``stripe.SignatureVerificationError`` on a bad or missing
        signature and ``ValueError`` on an unparseable payload.
        """
        if not self.webhook_secret:
            raise BillingConfigurationError("STRIPE_WEBHOOK_SECRET is not configured")
        if not signature:
            raise stripe.SignatureVerificationError("Missing Stripe-Signature header", signature, payload)
        return stripe.Webhook.construct_event(payload, signature, self.webhook_secret)


def build_billing_client(settings: Settings) -> BillingClient:
    return BillingClient(
        secret_key=settings.stripe_secret_key,
        webhook_secret=settings.stripe_webhook_secret,
        price_cents=settings.stripe_premium_price_cents,
        currency=settings.stripe_currency,
    )


def get_billing_client(request: Request) -> BillingClient:
    """Dependency returning the billing client built at startup"""
    return request.app.state.billing_client
