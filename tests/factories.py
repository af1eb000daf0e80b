"""
Model factories for creating valid test data.

Every factory inserts and commits a valid row. Override any field via kwargs.

Usage:
    store = make_store(session, delivery_fees={"zones": [...]})
"""

import uuid

from sqlmodel import Session

from app.models.product import Product
from app.models.profile import Profile
from app.models.store import Store, SubscriptionPlan

BAGHDAD = "بغداد"
BASRA = "البصرة"
MOSUL = "الموصل"
ERBIL = "أربيل"


def _save(session: Session, row):
    session.add(row)
    session.commit()
    session.refresh(row)
    return row


def make_plan(session: Session, **overrides) -> SubscriptionPlan:
    defaults = {
        "name_en": "Free",
        "name_ar": "مجاني",
        "price_monthly": 0,
    }
    defaults.update(overrides)
    return _save(session, SubscriptionPlan(**defaults))


def make_profile(session: Session, **overrides) -> Profile:
    defaults = {
        "id": uuid.uuid4(),
        "full_name": "Test Merchant",
        "role": "merchant",
        "phone_number": "07701234567",
    }
    defaults.update(overrides)
    return _save(session, Profile(**defaults))


def make_admin(session: Session, **overrides) -> Profile:
    overrides.setdefault("full_name", "Platform Admin")
    overrides.setdefault("role", "super_admin")
    return make_profile(session, **overrides)


def make_store(session: Session, merchant: Profile | None = None, **overrides) -> Store:
    merchant = merchant or make_profile(session)
    defaults = {
        "merchant_id": merchant.id,
        "name": "Test Store",
        "slug": f"store-{uuid.uuid4().hex[:8]}",
        "category": "general",
        "delivery_fees": {
            "zones": [
                {"id": "zone-1", "name": "Capital", "fee": 5000, "enabled": True, "cities": [BAGHDAD]},
                {"id": "zone-2", "name": "South", "fee": 8000, "enabled": True, "cities": [BASRA]},
            ],
            "isFreeDelivery": False,
        },
    }
    defaults.update(overrides)
    return _save(session, Store(**defaults))


def make_product(session: Session, store: Store, **overrides) -> Product:
    defaults = {
        "store_id": store.id,
        "name": "Chocolate Cake",
        "price": 25000,
        "attributes": {},
    }
    defaults.update(overrides)
    return _save(session, Product(**defaults))


def size_color_attributes(prices: dict[str, float | None] | None = None) -> dict:
    """Two options x two values, combination ids in canonical form."""
    combos = []
    for size in ("S", "M"):
        for color in ("Red", "Blue"):
            combo_id = f"opt-color:{color}|opt-size:{size}"
            combos.append(
                {
                    "id": combo_id,
                    "options": {"opt-size": size, "opt-color": color},
                    "price": (prices or {}).get(combo_id),
                }
            )
    return {
        "hasVariants": True,
        "variantOptions": [
            {"id": "opt-size", "name": "Size", "values": ["S", "M"]},
            {"id": "opt-color", "name": "Color", "values": ["Red", "Blue"]},
        ],
        "variantCombinations": combos,
    }
