# app/routers/stores.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.core.auth import require_merchant
from app.database import get_session
from app.models.profile import Profile
from app.repositories.store_repo import StoreRepository
from app.schemas.merchant import AdminStoreRead
from app.schemas.store import DeliverySettingsRead, DeliverySettingsUpdate, SlugUpdate
from app.services.store_service import StoreService

router = APIRouter(prefix="/stores", tags=["Stores"])

repo = StoreRepository()
service = StoreService(repo)


# -------- Merchant endpoints --------


@router.get("/me", response_model=AdminStoreRead)
def get_my_store(
    session: Session = Depends(get_session),
    current: Profile = Depends(require_merchant),
):
    """Return the caller's store."""
    return service.get_merchant_store(session, current.id)


@router.patch("/me/slug", response_model=AdminStoreRead)
def change_my_slug(
    payload: SlugUpdate,
    session: Session = Depends(get_session),
    current: Profile = Depends(require_merchant),
):
    """
    Change the store link. Allowed once.
    """
    return service.change_slug(session, current.id, payload.slug)


@router.get("/me/delivery", response_model=DeliverySettingsRead)
def get_my_delivery(
    session: Session = Depends(get_session),
    current: Profile = Depends(require_merchant),
):
    """
    Delivery configuration in the zoned form (older shapes are converted).
    """
    return service.get_delivery_settings(session, current.id)


@router.put("/me/delivery", response_model=DeliverySettingsRead)
def update_my_delivery(
    payload: DeliverySettingsUpdate,
    session: Session = Depends(get_session),
    current: Profile = Depends(require_merchant),
):
    """
    Replace delivery zones and the free delivery switch.
    """
    return service.update_delivery_zones(session, current.id, payload)
