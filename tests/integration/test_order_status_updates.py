"""Integration tests for merchant-driven order status changes."""

import uuid

import pytest

from app.core.errors import AuthorizationError, NotFoundError, ValidationError
from app.core.events import ORDER_STATUS_CHANGED, OrderEventBus
from app.models.order import Order
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.repositories.store_repo import StoreRepository
from app.schemas.order import OrderStatusUpdate
from app.services.order_service import OrderService
from app.services.order_status import PendingOrderCounter
from tests.factories import BAGHDAD, make_profile, make_store

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def events():
    return OrderEventBus()


@pytest.fixture
def service(events):
    return OrderService(OrderRepository(), ProductRepository(), StoreRepository(), events=events)


def _make_order(session, store, status="pending"):
    order = Order(
        store_id=store.id,
        customer_info={"name": "Ali", "phone": "07701234567", "city": BAGHDAD},
        items=[{"id": str(uuid.uuid4()), "quantity": 1, "name": "Cake", "price": 1000}],
        delivery_fee=5000,
        total_price=6000,
        governorate=BAGHDAD,
        status=status,
    )
    session.add(order)
    session.commit()
    session.refresh(order)
    return order


def _update(new_status, reason=None):
    return OrderStatusUpdate.model_validate({"newStatus": new_status, "cancellationReason": reason})


@pytest.fixture
def merchant_store(session):
    merchant = make_profile(session)
    store = make_store(session, merchant=merchant)
    return merchant, store


# ---------------------------------------------------------------------------
# Guard
# ---------------------------------------------------------------------------


@pytest.mark.integration
def test_status_change_is_persisted(session, service, merchant_store):
    merchant, store = merchant_store
    order = _make_order(session, store)

    updated = service.update_status(session, merchant.id, order.id, _update("processing"))

    assert updated.status == "processing"
    session.refresh(order)
    assert order.status == "processing"


@pytest.mark.integration
def test_unknown_status_is_rejected(session, service, merchant_store):
    merchant, store = merchant_store
    order = _make_order(session, store)

    with pytest.raises(ValidationError):
        service.update_status(session, merchant.id, order.id, _update("delivered"))

    session.refresh(order)
    assert order.status == "pending"


@pytest.mark.integration
def test_unusual_jump_is_allowed(session, service, merchant_store):
    merchant, store = merchant_store
    order = _make_order(session, store, status="completed")

    updated = service.update_status(session, merchant.id, order.id, _update("pending"))

    assert updated.status == "pending"


@pytest.mark.integration
def test_other_store_order_is_rejected(session, service, merchant_store):
    merchant, _ = merchant_store
    foreign_order = _make_order(session, make_store(session))

    with pytest.raises(AuthorizationError):
        service.update_status(session, merchant.id, foreign_order.id, _update("cancelled"))

    session.refresh(foreign_order)
    assert foreign_order.status == "pending"


@pytest.mark.integration
def test_unknown_order_gets_same_rejection(session, service, merchant_store):
    merchant, _ = merchant_store
    with pytest.raises(AuthorizationError):
        service.update_status(session, merchant.id, uuid.uuid4(), _update("cancelled"))


@pytest.mark.integration
def test_caller_without_store(session, service):
    stranger = make_profile(session)
    with pytest.raises(NotFoundError):
        service.update_status(session, stranger.id, uuid.uuid4(), _update("cancelled"))


# ---------------------------------------------------------------------------
# Cancellation reason
# ---------------------------------------------------------------------------


@pytest.mark.integration
def test_reason_kept_for_cancelled(session, service, merchant_store):
    merchant, store = merchant_store
    order = _make_order(session, store)

    updated = service.update_status(session, merchant.id, order.id, _update("cancelled", "Customer unreachable"))

    assert updated.cancellation_reason == "Customer unreachable"


@pytest.mark.integration
def test_reason_cleared_for_other_targets(session, service, merchant_store):
    merchant, store = merchant_store
    order = _make_order(session, store)
    service.update_status(session, merchant.id, order.id, _update("returned", "Damaged"))

    updated = service.update_status(session, merchant.id, order.id, _update("processing", "ignored"))

    assert updated.cancellation_reason is None


# ---------------------------------------------------------------------------
# Listing, deletion, events
# ---------------------------------------------------------------------------


@pytest.mark.integration
def test_active_only_listing_hides_terminal(session, service, merchant_store):
    merchant, store = merchant_store
    pending = _make_order(session, store)
    _make_order(session, store, status="completed")

    active = service.list_store_orders(session, merchant.id, active_only=True)
    everything = service.list_store_orders(session, merchant.id)

    assert [o.id for o in active] == [pending.id]
    assert len(everything) == 2


@pytest.mark.integration
def test_soft_deleted_order_is_hidden(session, service, merchant_store):
    merchant, store = merchant_store
    order = _make_order(session, store)

    service.soft_delete_order(session, merchant.id, order.id)

    assert service.list_store_orders(session, merchant.id) == []
    with pytest.raises(AuthorizationError):
        service.update_status(session, merchant.id, order.id, _update("processing"))


@pytest.mark.integration
def test_status_event_updates_pending_counter(session, service, events, merchant_store):
    merchant, store = merchant_store
    counter = PendingOrderCounter()
    received = []
    events.subscribe(counter)
    events.subscribe(received.append)
    order = _make_order(session, store)
    counter.reconcile(store.id, lambda _: 1)

    service.update_status(session, merchant.id, order.id, _update("processing"))

    assert received[0].kind == ORDER_STATUS_CHANGED
    assert received[0].previous_status == "pending"
    assert counter.get(store.id) == 0
