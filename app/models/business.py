from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, JSON, Text
from sqlalchemy.orm import relationship
from app.core.database import Base
from datetime import datetime
import enum


class BusinessCategory(str, enum.Enum):
    RESTAURANT = "restaurant"
    SALON = "salon"
    RETAIL = "retail"
    SERVICE = "service"
    HEALTHCARE = "healthcare"
    FITNESS = "fitness"
    EDUCATION = "education"
    HOSPITALITY = "hospitality"
    OTHER = "other"


class Business(Base):
    __tablename__ = "businesses"

    id = Column(String, primary_key=True, index=True)
    # No FK cascade: deleting a business leaves its requests and feedback orphaned
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=False)
    address = Column(JSON, nullable=True)  # street, city, state, zipCode, country
    contact_info = Column(JSON, nullable=True)  # phone, email, website
    social_profiles = Column(JSON, nullable=True)  # google/facebook/yelp/tripadvisor/trustpilot
    logo = Column(String, nullable=True)
    cover_image = Column(String, nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    owner = relationship("User", back_populates="businesses")
