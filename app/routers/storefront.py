# app/routers/storefront.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.core.events import get_event_bus
from app.database import get_session
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.repositories.store_repo import StoreRepository
from app.schemas.order import PlaceOrderRequest, PlaceOrderResult
from app.schemas.store import DeliveryOptionsRead
from app.services.order_service import OrderService
from app.services.store_service import StoreService

router = APIRouter(prefix="/storefront", tags=["Storefront"])

store_repo = StoreRepository()
order_service = OrderService(
    OrderRepository(),
    ProductRepository(),
    store_repo,
    events=get_event_bus(),
)
store_service = StoreService(store_repo)


# -------- Public endpoints --------


@router.post(
    "/orders",
    response_model=PlaceOrderResult,
)
def place_order(
    payload: PlaceOrderRequest,
    session: Session = Depends(get_session),
):
    """
    Place an order on a storefront (no login).

    Prices, names and the delivery fee are derived on the server; any
    client-sent price is ignored.
    """
    order = order_service.place_order(session, payload)
    return PlaceOrderResult(success=True, order_id=order.id)


@router.get(
    "/{slug}/delivery",
    response_model=DeliveryOptionsRead,
)
def get_delivery_options(
    slug: str,
    session: Session = Depends(get_session),
):
    """
    Cities the store delivers to, with fees, for the checkout form.
    """
    return store_service.get_delivery_options(session, slug)
