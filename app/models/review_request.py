from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, Text
from sqlalchemy.orm import relationship
from app.core.database import Base
from datetime import datetime
import enum


class RequestMethod(str, enum.Enum):
    EMAIL = "email"
    SMS = "sms"
    BOTH = "both"


class ReviewRequestStatus(str, enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    CLICKED = "clicked"
    COMPLETED = "completed"
    FAILED = "failed"


class ReviewRequest(Base):
    __tablename__ = "review_requests"

    id = Column(String, primary_key=True, index=True)
    # Plain column: business deletion does not cascade
    business_id = Column(String, nullable=False, index=True)
    customer_name = Column(String, nullable=False)
    customer_email = Column(String, nullable=True)
    customer_phone = Column(String, nullable=True)
    request_method = Column(String, nullable=False)
    message = Column(Text, nullable=True)
    status = Column(String, nullable=False, default=ReviewRequestStatus.PENDING.value, index=True)
    unique_id = Column(String, nullable=False, unique=True, index=True)
    sent_at = Column(DateTime, nullable=True)
    clicked_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    feedback_id = Column(String, ForeignKey("feedback.id"), nullable=True)
    reminder_sent = Column(Boolean, default=False, nullable=False)
    reminder_sent_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    business = relationship(
        "Business",
        primaryjoin="foreign(ReviewRequest.business_id) == Business.id",
        viewonly=True,
    )
    feedback = relationship("Feedback")

    @property
    def uses_email(self) -> bool:
        return self.request_method in (RequestMethod.EMAIL.value, RequestMethod.BOTH.value)

    @property
    def uses_sms(self) -> bool:
        return self.request_method in (RequestMethod.SMS.value, RequestMethod.BOTH.value)
