from sqlalchemy import Column, String, DateTime, Boolean, Integer, Text, JSON
from sqlalchemy.orm import relationship
from app.core.database import Base
from datetime import datetime
import enum


class Sentiment(str, enum.Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class FeedbackStatus(str, enum.Enum):
    NEW = "new"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    IGNORED = "ignored"


class FeedbackPlatform(str, enum.Enum):
    GOOGLE = "google"
    FACEBOOK = "facebook"
    YELP = "yelp"
    TRIPADVISOR = "tripadvisor"
    TRUSTPILOT = "trustpilot"
    INTERNAL = "internal"
    OTHER = "other"


class Feedback(Base):
    __tablename__ = "feedback"

    id = Column(String, primary_key=True, index=True)
    # Plain column: business deletion does not cascade
    business_id = Column(String, nullable=False, index=True)
    customer_name = Column(String, nullable=False)
    customer_email = Column(String, nullable=False)
    customer_phone = Column(String, nullable=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    sentiment = Column(String, nullable=False, default=Sentiment.NEUTRAL.value)
    status = Column(String, nullable=False, default=FeedbackStatus.NEW.value, index=True)
    is_public = Column(Boolean, default=False, nullable=False)
    redirected_to_review = Column(Boolean, default=False, nullable=False)
    platform = Column(String, nullable=False, default=FeedbackPlatform.INTERNAL.value)
    response_content = Column(Text, nullable=True)
    responded_at = Column(DateTime, nullable=True)
    responded_by = Column(String, nullable=True)
    tags = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    business = relationship(
        "Business",
        primaryjoin="foreign(Feedback.business_id) == Business.id",
        viewonly=True,
    )
