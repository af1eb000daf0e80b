# app/routers/merchants.py
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from app.core.auth import require_super_admin
from app.core.identity import IdentityService, get_identity_service
from app.database import get_session
from app.models.profile import Profile
from app.repositories.profile_repo import ProfileRepository
from app.repositories.store_repo import StoreRepository
from app.schemas.merchant import (
    AdminStoreRead,
    MerchantRegistration,
    SlugAvailability,
    StorePlanUpdate,
)
from app.services.merchant_service import MerchantService

router = APIRouter(prefix="/admin", tags=["Admin"])

store_repo = StoreRepository()
profile_repo = ProfileRepository()


def get_merchant_service(
    identity: IdentityService = Depends(get_identity_service),
) -> MerchantService:
    return MerchantService(store_repo, profile_repo, identity)


# -------- Super admin endpoints --------


@router.post(
    "/merchants",
    response_model=AdminStoreRead,
    status_code=status.HTTP_201_CREATED,
)
def provision_merchant(
    payload: MerchantRegistration,
    session: Session = Depends(get_session),
    current: Profile = Depends(require_super_admin),
    service: MerchantService = Depends(get_merchant_service),
):
    """
    Create a merchant account, its profile and its store in one go.

    A failure after the account was created removes the account again.
    """
    return service.provision_merchant(session, current, payload)


@router.get(
    "/merchants",
    response_model=list[AdminStoreRead],
    dependencies=[Depends(require_super_admin)],
)
def list_merchant_stores(
    session: Session = Depends(get_session),
    service: MerchantService = Depends(get_merchant_service),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
):
    """
    List all stores, newest first.
    """
    return service.list_stores(session, skip=skip, limit=limit)


@router.patch(
    "/stores/{store_id}/plan",
    response_model=AdminStoreRead,
    dependencies=[Depends(require_super_admin)],
)
def update_store_plan(
    store_id: uuid.UUID,
    payload: StorePlanUpdate,
    session: Session = Depends(get_session),
    service: MerchantService = Depends(get_merchant_service),
):
    """
    Move a store to another plan and subscription window.
    """
    return service.update_store_plan(session, store_id, payload)


@router.get(
    "/slugs/{slug}",
    response_model=SlugAvailability,
    dependencies=[Depends(require_super_admin)],
)
def check_slug(
    slug: str,
    session: Session = Depends(get_session),
    service: MerchantService = Depends(get_merchant_service),
):
    """
    Whether a store already uses `slug`.
    """
    return SlugAvailability(slug=slug, exists=service.check_slug_exists(session, slug))
