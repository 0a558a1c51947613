from datetime import datetime
from typing import Optional

from app.schemas.common import CamelModel


class PlanChangeRequest(CamelModel):
    plan: str


class CheckoutRequest(CamelModel):
    plan: str


class SubscriptionFeatures(CamelModel):
    review_requests_limit: int
    api_integrations: bool
    advanced_analytics: bool
    multiple_businesses: bool


class SubscriptionOut(CamelModel):
    id: str
    user_id: str
    plan: str
    status: str
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    stripe_price_id: Optional[str] = None
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool
    canceled_at: Optional[datetime] = None
    features: SubscriptionFeatures
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
