# app/routers/products.py
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from app.core.auth import require_merchant
from app.database import get_session
from app.models.profile import Profile
from app.repositories.product_repo import ProductRepository
from app.repositories.store_repo import StoreRepository
from app.schemas.product import (
    ProductCreate,
    ProductRead,
    ProductUpdate,
    VariantsUpdate,
)
from app.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])

repo = ProductRepository()
service = ProductService(repo, StoreRepository())


# -------- Merchant endpoints --------


@router.get("", response_model=list[ProductRead])
def list_products(
    session: Session = Depends(get_session),
    current: Profile = Depends(require_merchant),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
):
    """
    List the caller's products (soft-deleted ones hidden).
    """
    return service.list_products(session, current.id, skip=skip, limit=limit)


@router.get("/{product_id}", response_model=ProductRead)
def get_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    current: Profile = Depends(require_merchant),
):
    return service.get_product(session, current.id, product_id)


@router.post(
    "",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
)
def create_product(
    payload: ProductCreate,
    session: Session = Depends(get_session),
    current: Profile = Depends(require_merchant),
):
    """
    Create a product (subject to the plan's product cap).
    """
    return service.create_product(session, current.id, payload)


@router.patch("/{product_id}", response_model=ProductRead)
def update_product(
    product_id: uuid.UUID,
    payload: ProductUpdate,
    session: Session = Depends(get_session),
    current: Profile = Depends(require_merchant),
):
    """
    Partial update.
    """
    return service.update_product(session, current.id, product_id, payload)


@router.put("/{product_id}/variants", response_model=ProductRead)
def set_product_variants(
    product_id: uuid.UUID,
    payload: VariantsUpdate,
    session: Session = Depends(get_session),
    current: Profile = Depends(require_merchant),
):
    """
    Replace variant options; combinations are regenerated and keep the
    price overrides of combinations that still exist.
    """
    return service.set_variants(session, current.id, product_id, payload)


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    current: Profile = Depends(require_merchant),
):
    """
    Soft delete a product.
    """
    service.delete_product(session, current.id, product_id)
    return None
