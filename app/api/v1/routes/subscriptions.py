import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.core.billing import BillingClient, get_billing_client
from app.core.database import get_db
from app.core.errors import server_error
from app.core.middleware import get_current_account
from app.schemas.common import envelope
from app.schemas.subscription import CheckoutRequest, PlanChangeRequest, SubscriptionOut
from app.services.subscription_service import SubscriptionService

router = APIRouter()
logger = logging.getLogger(__name__)


def get_subscription_service() -> SubscriptionService:
    """Dependency to get subscription service instance"""
    return SubscriptionService()


def _out(subscription) -> dict:
    return SubscriptionOut.model_validate(subscription).to_json()


@router.get("")
@router.get("/", include_in_schema=False)
async def get_subscription(
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    """Get the caller's subscription"""
    logger.info(f"get_subscription: Entry - user: {account['uid']}")

    try:
        subscription = subscription_service.get_subscription(db, account['uid'])
        return envelope(_out(subscription))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"get_subscription: Failure - {e}")
        raise server_error(e)


@router.put("")
@router.put("/", include_in_schema=False)
async def change_plan(
    plan_data: PlanChangeRequest,
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    """Switch between free and premium"""
    logger.info(f"change_plan: Entry - user: {account['uid']}, plan: {plan_data.plan}")

    try:
        subscription = subscription_service.change_plan(db, account['uid'], plan_data.plan)
        logger.info(f"change_plan: Success - user: {account['uid']}")
        return envelope(_out(subscription))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"change_plan: Failure - {e}")
        raise server_error(e)


@router.post("/checkout")
async def create_checkout_session(
    checkout_data: CheckoutRequest,
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
    billing: BillingClient = Depends(get_billing_client),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    """Start a Stripe checkout for the premium plan"""
    logger.info(f"create_checkout_session: Entry - user: {account['uid']}")

    try:
        session = subscription_service.create_checkout_session(db, account['uid'], checkout_data.plan, billing)
        logger.info(f"create_checkout_session: Success - user: {account['uid']}")
        return envelope({"sessionId": session["session_id"], "url": session["url"]})
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"create_checkout_session: Failure - {e}")
        raise server_error(e, "Error creating checkout session")


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    db: Session = Depends(get_db),
    billing: BillingClient = Depends(get_billing_client),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    """
    Stripe webhook receiver.
    Public endpoint - authenticated by the Stripe-Signature header.
    """
    logger.info("stripe_webhook: Entry")

    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    try:
        result = subscription_service.handle_webhook(db, payload, signature, billing)
        logger.info("stripe_webhook: Success")
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"stripe_webhook: Failure - {e}")
        raise server_error(e)


@router.post("/cancel")
async def cancel_subscription(
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
    billing: BillingClient = Depends(get_billing_client),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    """Cancel the active premium subscription"""
    logger.info(f"cancel_subscription: Entry - user: {account['uid']}")

    try:
        subscription = subscription_service.cancel_subscription(db, account['uid'], billing)
        logger.info(f"cancel_subscription: Success - user: {account['uid']}")
        return envelope(_out(subscription), message="Subscription canceled successfully")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"cancel_subscription: Failure - {e}")
        raise server_error(e, "Error canceling subscription")
