from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from app.models.business import BusinessCategory
from app.schemas.common import CamelModel, reject_null


class Address(CamelModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


class ContactInfo(CamelModel):
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None


class SocialProfile(CamelModel):
    place_id: Optional[str] = None  # google
    page_id: Optional[str] = None  # facebook
    business_id: Optional[str] = None  # yelp, tripadvisor, trustpilot
    url: Optional[str] = None


class SocialProfiles(CamelModel):
    google: Optional[SocialProfile] = None
    facebook: Optional[SocialProfile] = None
    yelp: Optional[SocialProfile] = None
    tripadvisor: Optional[SocialProfile] = None
    trustpilot: Optional[SocialProfile] = None


class BusinessCreate(CamelModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    category: BusinessCategory
    address: Optional[Address] = None
    contact_info: Optional[ContactInfo] = None
    social_profiles: Optional[SocialProfiles] = None
    logo: Optional[str] = None
    cover_image: Optional[str] = None
    active: bool = True

    @field_validator('name', 'description')
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if isinstance(v, str) else v


class BusinessUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    category: Optional[BusinessCategory] = None
    address: Optional[Address] = None
    contact_info: Optional[ContactInfo] = None
    social_profiles: Optional[SocialProfiles] = None
    logo: Optional[str] = None
    cover_image: Optional[str] = None
    active: Optional[bool] = None

    @field_validator('name')
    @classmethod
    def name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Business name is required")
        return v.strip() if v is not None else v

    @field_validator('category', 'active')
    @classmethod
    def required_columns_not_null(cls, v, info):
        return reject_null(v, info.field_name)


class BusinessOut(CamelModel):
    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    category: str
    address: Optional[dict] = None
    contact_info: Optional[dict] = None
    social_profiles: Optional[dict] = None
    logo: Optional[str] = None
    cover_image: Optional[str] = None
    active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
