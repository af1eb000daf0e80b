# app/models/store.py
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field

# Caps on SubscriptionPlan use -1 for "no limit"
UNLIMITED = -1


class SubscriptionPlan(SQLModel, table=True):
    """
    Subscription tier referenced by stores.

    Caps (-1 = unlimited):
      - max_products, max_categories, max_monthly_orders, max_delivery_zones
    """

    __tablename__ = "subscription_plans"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    # Free | Pro | Premium
    name_en: str = Field(unique=True, index=True)
    name_ar: str | None = None

    price_monthly: float = Field(default=0, ge=0)

    max_products: int = Field(default=UNLIMITED)
    max_categories: int = Field(default=UNLIMITED)
    max_monthly_orders: int = Field(default=UNLIMITED)
    max_delivery_zones: int = Field(default=UNLIMITED)

    custom_theme: bool = False
    remove_branding: bool = False
    advanced_reports: bool = False
    free_delivery_all_zones: bool = False
    allow_custom_slug: bool = False

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class Store(SQLModel, table=True):
    """
    Tenant root: one store per merchant.

    `slug` is globally unique and may be changed once; `slug_changed`
    never goes back to False.
    `delivery_fees` holds the raw zone configuration in any of the shapes
    understood by app.services.delivery_zones.
    """

    __tablename__ = "stores"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    merchant_id: uuid.UUID = Field(
        foreign_key="profiles.id",
        index=True,
    )

    name: str = Field(max_length=50)

    slug: str = Field(
        max_length=50,
        unique=True,
        index=True,
        description="Public storefront identifier",
    )
    slug_changed: bool = Field(default=False)

    category: str = Field(max_length=50)

    # Free | Pro | Premium (denormalised plan name, as sent at registration)
    subscription_type: str = Field(default="Free")

    plan_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="subscription_plans.id",
    )
    plan_started_at: datetime | None = None
    plan_expires_at: datetime | None = None

    currency: str = Field(default="IQD", max_length=3)

    delivery_fees: dict[str, Any] | None = Field(
        default=None,
        sa_column=Column(JSON, nullable=True),
    )

    is_active: bool = Field(default=True, index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
