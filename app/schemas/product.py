# app/schemas/product.py
import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from app.services.variants import VariantOption

OutOfStockBehavior = Literal["hide", "show_badge"]


class ProductCreate(SQLModel):
    """
    Payload for creating a product in the merchant's store.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=200)
    description: str | None = None
    price: float = Field(ge=0)
    section_id: uuid.UUID | None = None
    is_available: bool = True
    out_of_stock_behavior: OutOfStockBehavior = "show_badge"

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class ProductUpdate(SQLModel):
    """
    Partial update payload for products.
    All fields are optional.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=200)
    description: str | None = None
    price: float | None = Field(default=None, ge=0)
    section_id: uuid.UUID | None = None
    is_available: bool | None = None
    out_of_stock_behavior: OutOfStockBehavior | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class VariantsUpdate(SQLModel):
    """
    Replace the variant options of a product.

    `prices` maps combination id -> override (null = base price) and is
    applied after regeneration.
    """

    model_config = ConfigDict(extra="forbid")

    options: list[VariantOption]
    prices: dict[str, float | None] | None = None


class ProductRead(SQLModel):
    id: uuid.UUID
    store_id: uuid.UUID
    section_id: uuid.UUID | None
    name: str
    description: str | None
    price: float
    stock_quantity: int
    out_of_stock_behavior: str
    attributes: dict[str, Any]
    created_at: datetime
