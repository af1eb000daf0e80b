# app/services/delivery_zones.py
"""
Delivery fee resolution over the store's `delivery_fees` JSON.

Three stored shapes exist, oldest last:

  zoned   {"zones": [{"id", "name", "fee", "enabled", "cities": [...]}],
           "isFreeDelivery": bool}
  flat    {"<city>": {"enabled": bool, "fee": n}, ...}        (more than 2 keys)
  legacy  {"baghdad": n, "provinces": n}  or nothing at all

`parse_zone_config` decides the shape once; everything else works on the
parsed models and on the normalised `city -> fee` map.
"""

import logging
from typing import Any, Literal, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from app.core.errors import NotServicedError

logger = logging.getLogger(__name__)

CAPITAL_CITY = "بغداد"

# Reference list of governorates the storefront offers, in display order
GOVERNORATES: tuple[str, ...] = (
    "بغداد",
    "البصرة",
    "الموصل",
    "أربيل",
    "السليمانية",
    "دهوك",
    "كركوك",
    "النجف",
    "كربلاء",
    "الحلة",
    "الأنبار",
    "الديوانية",
    "الكوت",
    "العمارة",
    "الناصرية",
    "السماوة",
    "ديالى",
    "صلاح الدين",
)

DEFAULT_CAPITAL_FEE = 5000.0
DEFAULT_PROVINCES_FEE = 8000.0

# A flat per-city map needs more keys than the legacy {baghdad, provinces} pair
FLAT_MIN_KEYS = 3


class CityFee(BaseModel):
    model_config = ConfigDict(extra="ignore")

    enabled: bool = True
    fee: float = Field(ge=0)


class DeliveryZone(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    name: str | None = None
    fee: float = Field(ge=0)
    enabled: bool = True
    cities: list[str] = Field(default_factory=list)

    @field_validator("cities")
    @classmethod
    def strip_cities(cls, v: list[str]) -> list[str]:
        return [c.strip() for c in v if c and c.strip()]


class ZonedConfig(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    kind: Literal["zoned"] = "zoned"
    zones: list[DeliveryZone] = Field(default_factory=list)
    is_free_delivery: bool = Field(default=False, alias="isFreeDelivery")


class FlatCityConfig(BaseModel):
    kind: Literal["flat"] = "flat"
    cities: dict[str, CityFee] = Field(default_factory=dict)


class LegacyConfig(BaseModel):
    kind: Literal["legacy"] = "legacy"
    baghdad: float = DEFAULT_CAPITAL_FEE
    provinces: float = DEFAULT_PROVINCES_FEE


ZoneConfig = Union[ZonedConfig, FlatCityConfig, LegacyConfig]


def _legacy_fee(value: Any, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def parse_zone_config(
    raw: Any,
    default_capital_fee: float = DEFAULT_CAPITAL_FEE,
    default_provinces_fee: float = DEFAULT_PROVINCES_FEE,
) -> ZoneConfig:
    """
    Decode the stored JSON into one of the three shapes.

    Detection order:
      1. mapping with a list under "zones"            -> ZonedConfig
      2. mapping without "baghdad" and with > 2 keys  -> FlatCityConfig
      3. anything else (including None)               -> LegacyConfig
    """
    if isinstance(raw, (ZonedConfig, FlatCityConfig, LegacyConfig)):
        return raw

    if isinstance(raw, Mapping) and isinstance(raw.get("zones"), list):
        zones: list[DeliveryZone] = []
        for entry in raw["zones"]:
            try:
                zones.append(DeliveryZone.model_validate(entry))
            except ValidationError:
                logger.warning("Skipping malformed delivery zone: %r", entry)
        return ZonedConfig(
            zones=zones,
            is_free_delivery=bool(raw.get("isFreeDelivery", False)),
        )

    if (
        isinstance(raw, Mapping)
        and "baghdad" not in raw
        and len(raw) >= FLAT_MIN_KEYS
    ):
        cities: dict[str, CityFee] = {}
        for city, entry in raw.items():
            if not isinstance(entry, Mapping):
                continue
            try:
                cities[str(city).strip()] = CityFee.model_validate(entry)
            except ValidationError:
                logger.warning("Skipping malformed city fee for %r: %r", city, entry)
        return FlatCityConfig(cities=cities)

    source = raw if isinstance(raw, Mapping) else {}
    return LegacyConfig(
        baghdad=_legacy_fee(source.get("baghdad"), default_capital_fee),
        provinces=_legacy_fee(source.get("provinces"), default_provinces_fee),
    )


def normalize_zone_config(config: Any) -> dict[str, float]:
    """
    Flatten any shape into `city -> fee`.

    Cities of disabled zones / entries are absent. In the zoned shape a city
    listed by two enabled zones keeps the fee of the first one.
    """
    config = parse_zone_config(config)

    if isinstance(config, ZonedConfig):
        fees: dict[str, float] = {}
        for zone in config.zones:
            if not zone.enabled:
                continue
            for city in zone.cities:
                fees.setdefault(city, zone.fee)
        return fees

    if isinstance(config, FlatCityConfig):
        return {
            city: entry.fee
            for city, entry in config.cities.items()
            if entry.enabled
        }

    return {
        city: config.baghdad if city == CAPITAL_CITY else config.provinces
        for city in GOVERNORATES
    }


def resolve_fee(config: Any, city: str) -> float:
    """
    Delivery fee for `city`.

    Raises:
        NotServicedError: the city has no enabled fee in this configuration.
    """
    fees = normalize_zone_config(config)
    key = (city or "").strip()
    if key not in fees:
        raise NotServicedError(f"Delivery is not available to {key or 'this city'}")
    return fees[key]


def is_free_delivery(config: Any) -> bool:
    """Store-wide free delivery switch (only the zoned shape can carry it)."""
    config = parse_zone_config(config)
    return isinstance(config, ZonedConfig) and config.is_free_delivery


def serviced_cities(config: Any) -> list[tuple[str, float]]:
    """
    Cities a checkout may offer, reference-list order first, then any
    extra cities in configuration order.
    """
    fees = normalize_zone_config(config)
    ordered = [(city, fees[city]) for city in GOVERNORATES if city in fees]
    ordered += [(city, fee) for city, fee in fees.items() if city not in GOVERNORATES]
    return ordered


def migrate_to_zones(
    config: Any,
    default_capital_fee: float = DEFAULT_CAPITAL_FEE,
) -> ZonedConfig:
    """
    Convert any shape to the zoned shape.

    Flat maps are grouped by fee (enabled cities only); if nothing is
    enabled the result is a single capital zone. Legacy becomes a capital
    zone and a provinces zone.
    """
    config = parse_zone_config(config, default_capital_fee=default_capital_fee)

    if isinstance(config, ZonedConfig):
        return config

    if isinstance(config, FlatCityConfig):
        grouped: dict[float, list[str]] = {}
        for city, entry in config.cities.items():
            if entry.enabled:
                grouped.setdefault(entry.fee, []).append(city)

        zones = [
            DeliveryZone(
                id=f"zone-{idx}",
                name=f"{fee:g} zone",
                fee=fee,
                cities=cities,
            )
            for idx, (fee, cities) in enumerate(grouped.items(), start=1)
        ]
        if not zones:
            zones = [
                DeliveryZone(
                    id="zone-1",
                    name="Capital",
                    fee=default_capital_fee,
                    cities=[CAPITAL_CITY],
                )
            ]
        return ZonedConfig(zones=zones)

    return ZonedConfig(
        zones=[
            DeliveryZone(
                id="zone-1",
                name="Capital",
                fee=config.baghdad,
                cities=[CAPITAL_CITY],
            ),
            DeliveryZone(
                id="zone-2",
                name="Provinces",
                fee=config.provinces,
                cities=[c for c in GOVERNORATES if c != CAPITAL_CITY],
            ),
        ]
    )


def dump_zoned_config(config: ZonedConfig) -> dict[str, Any]:
    """JSON shape written back to stores.delivery_fees."""
    return config.model_dump(by_alias=True, exclude={"kind"})
