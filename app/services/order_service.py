# app/services/order_service.py
import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.core.config import get_settings
from app.core.errors import (
    AuthorizationError,
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
)
from app.core.events import (
    ORDER_CREATED,
    ORDER_STATUS_CHANGED,
    OrderEvent,
    OrderEventBus,
)
from app.models.order import Order
from app.models.product import Product
from app.models.store import Store, UNLIMITED
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.repositories.store_repo import StoreRepository
from app.schemas.order import OrderStatusUpdate, PlaceOrderRequest
from app.services.delivery_zones import is_free_delivery, parse_zone_config, resolve_fee
from app.services.order_status import (
    INITIAL_STATUS,
    REASON_STATUSES,
    active_statuses,
    is_intended_transition,
    is_terminal,
    validate_target,
)
from app.services.variants import (
    describe_selections,
    effective_price,
    find_combination,
    has_variants,
)

settings = get_settings()
logger = logging.getLogger(__name__)


def _month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class OrderService:
    """
    Business logic for orders.

    Responsibilities:
      - Place storefront orders with server-derived prices and fees
      - Reject the whole order on any unknown / unavailable product or
        unserviced city (no partial orders)
      - Apply merchant-driven status changes after re-deriving store ownership
      - Publish order events (fire-and-forget)

    Concurrent status updates of one order are last-write-wins: there is no
    row lock or version check.
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        product_repo: ProductRepository,
        store_repo: StoreRepository,
        events: OrderEventBus | None = None,
    ):
        self.order_repo = order_repo
        self.product_repo = product_repo
        self.store_repo = store_repo
        self.events = events

    # -------- Storefront --------

    def place_order(self, session: Session, payload: PlaceOrderRequest) -> Order:
        """
        Validate a storefront cart and persist it as a pending Order.

        Steps:
          1. Store must exist and be active.
          2. Every requested product must be in the store's catalog and
             available; otherwise the order is rejected.
          3. Monthly order quota of the store's plan.
          4. Delivery fee for customer_info.city (unserviced => rejected).
          5. Unit prices and names from the catalog, never from the client.
          6. total_price = subtotal + delivery_fee; insert one row.
        """
        try:
            store = self.store_repo.get_by_id(session, payload.store_id)
            if store is None or not store.is_active:
                raise NotFoundError("Store not found")

            # 2) Catalog lookup
            requested_ids = [item.id for item in payload.items]
            products = {
                p.id: p
                for p in self.product_repo.get_many_for_store(session, store.id, requested_ids)
            }
        except SQLAlchemyError as exc:
            logger.exception("Catalog lookup failed for store %s", payload.store_id)
            raise DependencyError("Failed to load the store catalog") from exc

        for item in payload.items:
            product = products.get(item.id)
            if product is None:
                logger.warning("Order for store %s rejected: product %s unavailable", store.id, item.id)
                raise NotFoundError(f"Product {item.id} is unavailable")
            if not product.is_available:
                raise ValidationError(f"{product.name} is out of stock")

        # 3) Plan quota
        plan = self.store_repo.get_plan(session, store.plan_id)
        self._check_monthly_quota(session, store, plan.max_monthly_orders if plan else UNLIMITED)

        # 4) Delivery fee
        city = payload.customer_info.city
        delivery_fee = self._delivery_fee(store, city, plan.free_delivery_all_zones if plan else False)

        # 5) Server-side pricing
        lines: list[dict] = []
        subtotal = 0.0
        for item in payload.items:
            product = products[item.id]
            line = self._build_line(product, item.quantity, item.selections)
            subtotal += line["price"] * line["quantity"]
            lines.append(line)

        # 6) Persist
        order = Order(
            store_id=store.id,
            customer_info=payload.customer_info.model_dump(),
            items=lines,
            delivery_fee=delivery_fee,
            total_price=round(subtotal + delivery_fee, 2),
            governorate=city,
            status=INITIAL_STATUS.value,
        )

        try:
            order = self.order_repo.create_order(session, order)
            session.commit()
            session.refresh(order)
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Failed to insert order for store %s", store.id)
            raise DependencyError("Failed to create the order") from exc

        logger.info(
            "Order %s placed for store %s: %d line(s), total %.2f",
            order.id,
            store.id,
            len(lines),
            order.total_price,
        )
        self._publish(ORDER_CREATED, order)
        return order

    # -------- Merchant operations --------

    def update_status(
        self,
        session: Session,
        actor_id: uuid.UUID,
        order_id: uuid.UUID,
        payload: OrderStatusUpdate,
    ) -> Order:
        """
        Apply a status change requested by a merchant.

        Guard: the target must be a known status. Any source -> target is
        accepted (the UI offers the intended transitions); unusual jumps are
        only logged.

        Ownership is derived from the caller: the caller's store must be
        the order's store.
        """
        order = self._get_owned_order(session, actor_id, order_id)
        target = validate_target(payload.new_status)

        previous = order.status
        if not is_intended_transition(previous, target):
            logger.info("Order %s: unusual transition %s -> %s", order.id, previous, target.value)

        order.status = target.value
        order.cancellation_reason = (
            payload.cancellation_reason if target in REASON_STATUSES else None
        )

        try:
            self.order_repo.update_order(session, order)
            session.commit()
            session.refresh(order)
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Failed to update status of order %s", order.id)
            raise DependencyError("Failed to update the order status") from exc

        logger.info(
            "Order %s: %s -> %s%s",
            order.id,
            previous,
            order.status,
            " (terminal)" if is_terminal(order.status) else "",
        )
        self._publish(ORDER_STATUS_CHANGED, order, previous_status=previous)
        return order

    def list_store_orders(
        self,
        session: Session,
        actor_id: uuid.UUID,
        active_only: bool = False,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Order]:
        """
        Orders of the caller's store, newest first.

        `active_only` hides terminal orders (completed, cancelled, returned).
        """
        store = self._get_actor_store(session, actor_id)
        statuses = list(active_statuses()) if active_only else None
        return self.order_repo.list_for_store(session, store.id, statuses, skip, limit)

    def soft_delete_order(
        self,
        session: Session,
        actor_id: uuid.UUID,
        order_id: uuid.UUID,
    ) -> None:
        """Hide an order from the merchant's lists (sets deleted_at)."""
        order = self._get_owned_order(session, actor_id, order_id)
        order.deleted_at = datetime.now(timezone.utc)
        try:
            self.order_repo.update_order(session, order)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Failed to delete order %s", order.id)
            raise DependencyError("Failed to delete the order") from exc

    # -------- Helpers --------

    def _get_actor_store(self, session: Session, actor_id: uuid.UUID) -> Store:
        store = self.store_repo.get_by_merchant(session, actor_id)
        if store is None:
            raise NotFoundError("Store not found for this account")
        return store

    def _get_owned_order(
        self,
        session: Session,
        actor_id: uuid.UUID,
        order_id: uuid.UUID,
    ) -> Order:
        store = self._get_actor_store(session, actor_id)
        order = self.order_repo.get_by_id(session, order_id)
        if order is None or order.store_id != store.id or order.deleted_at is not None:
            logger.warning("Actor %s denied access to order %s", actor_id, order_id)
            raise AuthorizationError("This order does not belong to your store")
        return order

    def _check_monthly_quota(self, session: Session, store: Store, cap: int) -> None:
        if cap == UNLIMITED:
            return
        since = _month_start(datetime.now(timezone.utc))
        if self.order_repo.count_since(session, store.id, since) >= cap:
            logger.warning("Store %s reached its monthly order cap (%d)", store.id, cap)
            raise ConflictError("This store cannot accept more orders this month")

    def _delivery_fee(self, store: Store, city: str, plan_free_delivery: bool) -> float:
        config = parse_zone_config(
            store.delivery_fees,
            default_capital_fee=settings.LEGACY_CAPITAL_FEE,
            default_provinces_fee=settings.LEGACY_PROVINCES_FEE,
        )
        # Raises NotServicedError for unknown / disabled cities, free or not
        fee = resolve_fee(config, city)
        if plan_free_delivery or is_free_delivery(config):
            return 0.0
        return float(fee)

    @staticmethod
    def _build_line(
        product: Product,
        quantity: int,
        selections: dict[str, str] | None,
    ) -> dict:
        if has_variants(product.attributes) and find_combination(product.attributes, selections) is None:
            raise ValidationError(f"Please choose an available option for {product.name}")
        return {
            "id": str(product.id),
            "quantity": quantity,
            "name": product.name,
            "price": effective_price(product.price, product.attributes, selections),
            "selections": describe_selections(product.attributes, selections),
        }

    def _publish(self, kind: str, order: Order, previous_status: str | None = None) -> None:
        if self.events is None:
            return
        self.events.publish(
            OrderEvent(
                kind=kind,
                store_id=order.store_id,
                order_id=order.id,
                status=order.status,
                previous_status=previous_status,
                data={"total_price": order.total_price},
            )
        )
