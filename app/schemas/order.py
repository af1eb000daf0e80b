# app/schemas/order.py
import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlmodel import SQLModel

from app.schemas.common import ActionResult

OrderStatusName = Literal[
    "pending",
    "processing",
    "shipped",
    "completed",
    "postponed",
    "returned",
    "cancelled",
]

PHONE_PATTERN = r"^\+?[0-9\s-]+$"


def _blank_to_none(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    return v or None


class CustomerInfo(BaseModel):
    """
    Delivery contact submitted at checkout.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=2, max_length=100)
    phone: str = Field(min_length=8, max_length=20, pattern=PHONE_PATTERN)
    city: str = Field(min_length=2)
    landmark: str | None = Field(default=None, max_length=500)
    notes: str | None = Field(default=None, max_length=1000)

    @field_validator("name", "phone", "city", mode="before")
    @classmethod
    def strip_required(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("landmark", "notes", mode="before")
    @classmethod
    def normalize_optional(cls, v: Any) -> Any:
        return _blank_to_none(v) if isinstance(v, str) or v is None else v


class OrderItemIn(BaseModel):
    """
    One cart line as sent by the storefront.

    `price` and `name` are tolerated for older clients but never used:
    both are re-derived from the catalog.
    """

    model_config = ConfigDict(extra="forbid")

    id: uuid.UUID
    quantity: int = Field(ge=1, le=100)
    selections: dict[str, str] | None = None
    price: float | None = Field(default=None, ge=0)
    name: str | None = None


class PlaceOrderRequest(BaseModel):
    """
    Public checkout payload.

    Backend derives:
      - item names and unit prices from the catalog
      - delivery_fee from the store's zone configuration
      - total_price, status='pending'
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    store_id: uuid.UUID = Field(alias="storeId")
    customer_info: CustomerInfo = Field(alias="customerInfo")
    items: list[OrderItemIn] = Field(min_length=1)


class PlaceOrderResult(ActionResult):
    model_config = ConfigDict(populate_by_name=True)

    order_id: uuid.UUID | None = Field(default=None, alias="orderId")


class OrderLine(SQLModel):
    """Stored order line (server-derived name/price)."""

    id: uuid.UUID
    quantity: int
    name: str
    price: float
    selections: dict[str, str] | None = None


class OrderRead(SQLModel):
    id: uuid.UUID
    store_id: uuid.UUID
    customer_info: dict[str, Any]
    items: list[OrderLine]
    delivery_fee: float
    total_price: float
    governorate: str | None
    status: OrderStatusName
    cancellation_reason: str | None
    created_at: datetime


class OrderStatusUpdate(BaseModel):
    """
    Merchant payload to change order status.

    `newStatus` is checked against the status enum by the service so an
    unknown value yields the same error envelope as other rejections.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    new_status: str = Field(alias="newStatus")
    cancellation_reason: str | None = Field(
        default=None,
        alias="cancellationReason",
        max_length=1000,
    )

    @field_validator("cancellation_reason", mode="before")
    @classmethod
    def normalize_reason(cls, v: Any) -> Any:
        return _blank_to_none(v) if isinstance(v, str) or v is None else v
