# app/models/order.py
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class Order(SQLModel, table=True):
    """
    Storefront order.

    Field names are shared with the storefront/dashboard clients:
      - customer_info: {name, phone, city, landmark?, notes?}
      - items: [{id, quantity, name, price, selections}]
      - total_price == sum(price * quantity) + delivery_fee
    """

    __tablename__ = "orders"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    store_id: uuid.UUID = Field(
        foreign_key="stores.id",
        index=True,
    )

    customer_info: dict[str, Any] = Field(
        sa_column=Column(JSON, nullable=False),
    )

    # Server-derived names and prices only
    items: list[dict[str, Any]] = Field(
        sa_column=Column(JSON, nullable=False),
    )

    delivery_fee: float = Field(default=0, ge=0)

    total_price: float = Field(
        ge=0,
        description="Items subtotal plus delivery fee",
    )

    governorate: str | None = Field(
        default=None,
        description="Delivery city / governorate",
    )

    # pending | processing | shipped | completed | postponed | returned | cancelled
    status: str = Field(
        default="pending",
        index=True,
        description="Order status lifecycle",
    )

    cancellation_reason: str | None = None

    deleted_at: datetime | None = Field(default=None, index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        description="Creation timestamp (UTC)",
    )
