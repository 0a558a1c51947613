from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from app.models.review_request import RequestMethod, ReviewRequestStatus
from app.schemas.common import CamelModel, blank_to_none, reject_null


class ReviewRequestCreate(CamelModel):
    business_id: str
    customer_name: str = Field(..., min_length=1)
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[str] = None
    request_method: RequestMethod
    message: Optional[str] = None

    @field_validator('customer_email', 'customer_phone', mode='before')
    @classmethod
    def empty_contact(cls, v):
        return blank_to_none(v)


class ReviewRequestUpdate(CamelModel):
    customer_name: Optional[str] = Field(None, min_length=1)
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[str] = None
    request_method: Optional[RequestMethod] = None
    message: Optional[str] = None
    status: Optional[ReviewRequestStatus] = None

    @field_validator('customer_email', 'customer_phone', mode='before')
    @classmethod
    def empty_contact(cls, v):
        return blank_to_none(v)

    @field_validator('request_method')
    @classmethod
    def method_not_null(cls, v):
        return reject_null(v, "requestMethod")


class ReviewRequestOut(CamelModel):
    id: str
    business_id: str
    customer_name: str
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    request_method: str
    message: Optional[str] = None
    status: str
    unique_id: str
    sent_at: Optional[datetime] = None
    clicked_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    feedback_id: Optional[str] = None
    reminder_sent: bool
    reminder_sent_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ReviewRequestForm(CamelModel):
    business_name: str
    message: Optional[str] = None
