# app/schemas/store.py
import uuid
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.services.delivery_zones import DeliveryZone


class SlugUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # Pattern and length are checked in StoreService.change_slug
    slug: str

    @field_validator("slug", mode="before")
    @classmethod
    def strip_slug(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


class DeliverySettingsUpdate(BaseModel):
    """Merchant delivery settings, always saved in the zoned shape."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    zones: list[DeliveryZone]
    is_free_delivery: bool = Field(default=False, alias="isFreeDelivery")


class CityFeeRead(BaseModel):
    city: str
    fee: float


class DeliveryOptionsRead(BaseModel):
    store_id: uuid.UUID
    currency: str
    is_free_delivery: bool
    cities: list[CityFeeRead]


class DeliverySettingsRead(BaseModel):
    zones: list[DeliveryZone]
    is_free_delivery: bool

