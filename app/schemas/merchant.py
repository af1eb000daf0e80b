# app/schemas/merchant.py
import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from sqlmodel import SQLModel

SLUG_PATTERN = r"^[a-z0-9-]+$"

SubscriptionType = Literal["Free", "Pro", "Premium"]
SubscriptionDuration = Literal[3, 6, 12]


class MerchantRegistration(BaseModel):
    """
    Admin onboarding payload: one identity, one profile, one store.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    store_name: str = Field(alias="storeName", min_length=3, max_length=50)
    slug: str = Field(min_length=3, max_length=50, pattern=SLUG_PATTERN)
    category: str = Field(min_length=1, max_length=50)
    subscription_type: SubscriptionType = Field(default="Free", alias="subscriptionType")
    subscription_duration: SubscriptionDuration = Field(
        default=3,
        alias="subscriptionDuration",
    )
    start_date: date = Field(alias="startDate")
    owner_name: str = Field(alias="ownerName", min_length=2, max_length=100)
    phone: str = Field(min_length=7, max_length=20)
    email: EmailStr
    password: str = Field(min_length=6)

    @field_validator("store_name", "category", "owner_name", "phone", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("slug", mode="before")
    @classmethod
    def normalize_slug(cls, v):
        return v.strip() if isinstance(v, str) else v


class StorePlanUpdate(BaseModel):
    """Admin payload to move a store to another plan window."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    subscription_type: SubscriptionType = Field(alias="subscriptionType")
    subscription_duration: SubscriptionDuration = Field(alias="subscriptionDuration")
    start_date: date = Field(alias="startDate")


class SlugAvailability(BaseModel):
    slug: str
    exists: bool


class AdminStoreRead(SQLModel):
    id: uuid.UUID
    name: str
    slug: str
    merchant_id: uuid.UUID
    category: str
    subscription_type: str
    plan_started_at: datetime | None
    plan_expires_at: datetime | None
    is_active: bool
    created_at: datetime
