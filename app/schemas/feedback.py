from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, EmailStr, Field, field_validator

from app.models.feedback import FeedbackStatus
from app.schemas.common import CamelModel


class FeedbackSubmit(CamelModel):
    rating: int = Field(..., ge=1, le=5)
    # 'content' is what the original dashboard form posts
    comment: Optional[str] = Field(None, validation_alias=AliasChoices('comment', 'content'))
    customer_name: str = Field(..., min_length=1)
    customer_email: EmailStr
    customer_phone: Optional[str] = None

    @field_validator('comment')
    @classmethod
    def strip_comment(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if isinstance(v, str) else v


class FeedbackStatusUpdate(CamelModel):
    status: FeedbackStatus


class FeedbackRespond(CamelModel):
    response: str = Field(..., min_length=1)


class FeedbackOut(CamelModel):
    id: str
    business_id: str
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    rating: int
    comment: Optional[str] = None
    sentiment: str
    status: str
    is_public: bool
    redirected_to_review: bool
    platform: str
    response_content: Optional[str] = None
    responded_at: Optional[datetime] = None
    responded_by: Optional[str] = None
    tags: Optional[List[str]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
