# app/models/product.py
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field

# Stock is an availability flag stored as a mock quantity
IN_STOCK_QUANTITY = 999
OUT_OF_STOCK_QUANTITY = 0


class Section(SQLModel, table=True):
    """
    Merchant-defined product category shown on the storefront.
    """

    __tablename__ = "sections"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    store_id: uuid.UUID = Field(
        foreign_key="stores.id",
        index=True,
    )

    name: str = Field(max_length=100)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class Product(SQLModel, table=True):
    """
    Catalog entry of one store.

    `attributes` carries the variant configuration:
        {
          "hasVariants": bool,
          "variantOptions": [{"id", "name", "values": [...]}],
          "variantCombinations": [{"id", "options": {optionId: value}, "price"}]
        }
    """

    __tablename__ = "products"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    store_id: uuid.UUID = Field(
        foreign_key="stores.id",
        index=True,
    )

    section_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="sections.id",
        index=True,
    )

    name: str = Field(
        max_length=200,
        index=True,
        description="Display name",
    )

    description: str | None = Field(
        default=None,
        description="Optional long description",
    )

    price: float = Field(
        ge=0,
        description="Base unit price in the store currency",
    )

    stock_quantity: int = Field(
        default=IN_STOCK_QUANTITY,
        ge=0,
        description="999 when available, 0 when not (never decremented)",
    )

    # hide | show_badge
    out_of_stock_behavior: str = Field(default="show_badge")

    attributes: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )

    deleted_at: datetime | None = Field(default=None, index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

    @property
    def is_available(self) -> bool:
        return self.stock_quantity > 0
