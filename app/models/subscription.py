from sqlalchemy import Column, String, DateTime, Boolean, Integer, ForeignKey
from sqlalchemy.orm import relationship
from app.core.database import Base
from datetime import datetime
import enum


class SubscriptionPlan(str, enum.Enum):
    FREE = "free"
    PREMIUM = "premium"


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    CANCELED = "canceled"
    EXPIRED = "expired"
    TRIAL = "trial"
    INACTIVE = "inactive"  # written by downgrades from billing


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, unique=True, index=True)
    plan = Column(String, nullable=False, default=SubscriptionPlan.FREE.value, index=True)
    status = Column(String, nullable=False, default=SubscriptionStatus.ACTIVE.value)
    stripe_customer_id = Column(String, nullable=True)
    stripe_subscription_id = Column(String, nullable=True, index=True)
    stripe_price_id = Column(String, nullable=True)
    current_period_start = Column(DateTime, nullable=True)
    current_period_end = Column(DateTime, nullable=True)
    cancel_at_period_end = Column(Boolean, default=False, nullable=False)
    canceled_at = Column(DateTime, nullable=True)

    # Feature flags, always derived from plan (see services.subscription_service.PLAN_FEATURES)
    review_requests_limit = Column(Integer, nullable=False, default=50)  # -1 = unlimited
    api_integrations = Column(Boolean, nullable=False, default=False)
    advanced_analytics = Column(Boolean, nullable=False, default=False)
    multiple_businesses = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="subscription")

    @property
    def features(self) -> dict:
        return {
            'reviewRequestsLimit': self.review_requests_limit,
            'apiIntegrations': self.api_integrations,
            'advancedAnalytics': self.advanced_analytics,
            'multipleBusinesses': self.multiple_businesses,
        }
