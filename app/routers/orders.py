# app/routers/orders.py
import uuid

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app.core.auth import require_merchant
from app.core.events import get_event_bus
from app.database import get_session
from app.models.profile import Profile
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.repositories.store_repo import StoreRepository
from app.schemas.common import ActionResult
from app.schemas.order import OrderRead, OrderStatusUpdate
from app.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])

order_repo = OrderRepository()
product_repo = ProductRepository()
store_repo = StoreRepository()
service = OrderService(order_repo, product_repo, store_repo, events=get_event_bus())


# -------- Merchant endpoints --------


@router.get(
    "",
    response_model=list[OrderRead],
)
def list_orders(
    session: Session = Depends(get_session),
    current: Profile = Depends(require_merchant),
    active_only: bool = False,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
):
    """
    Orders of the caller's store, newest first.
    """
    return service.list_store_orders(session, current.id, active_only, skip, limit)


@router.patch(
    "/{order_id}/status",
    response_model=ActionResult,
)
def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
    current: Profile = Depends(require_merchant),
):
    """
    Change the status of one of the caller's orders.

      pending -> processing -> shipped -> completed

      pending | processing | shipped -> cancelled | returned

    Any known status is accepted as target; `cancellationReason` is kept
    only for cancelled and returned.
    """
    service.update_status(session, current.id, order_id, payload)
    return ActionResult(success=True)


@router.delete(
    "/{order_id}",
    response_model=ActionResult,
)
def delete_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    current: Profile = Depends(require_merchant),
):
    """
    Hide an order from the caller's lists.
    """
    service.soft_delete_order(session, current.id, order_id)
    return ActionResult(success=True)
