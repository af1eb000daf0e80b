"""Unit tests for the order status lifecycle and its event consumers."""

import uuid

import pytest

from app.core.errors import ValidationError
from app.core.events import ORDER_CREATED, ORDER_STATUS_CHANGED, OrderEvent, OrderEventBus
from app.services.order_status import (
    OptimisticStatusUpdate,
    OrderStatus,
    PendingOrderCounter,
    SEEN_EVENTS_PER_STORE,
    active_statuses,
    is_intended_transition,
    is_terminal,
    validate_target,
)

STORE = uuid.uuid4()


def _created(order_id):
    return OrderEvent(kind=ORDER_CREATED, store_id=STORE, order_id=order_id, status="pending")


def _changed(order_id, previous, status):
    return OrderEvent(
        kind=ORDER_STATUS_CHANGED,
        store_id=STORE,
        order_id=order_id,
        status=status,
        previous_status=previous,
    )


@pytest.mark.unit
class TestStatusRules:
    def test_unknown_target_is_rejected(self):
        with pytest.raises(ValidationError):
            validate_target("delivered")

    def test_every_known_status_is_accepted(self):
        for status in OrderStatus:
            assert validate_target(status.value) is status

    def test_terminal_statuses(self):
        assert is_terminal("completed")
        assert is_terminal(OrderStatus.CANCELLED)
        assert not is_terminal("shipped")
        assert not is_terminal("nonsense")

    def test_intended_transitions(self):
        assert is_intended_transition("pending", "processing")
        assert is_intended_transition("shipped", "returned")
        assert not is_intended_transition("pending", "completed")
        assert not is_intended_transition("completed", "pending")

    def test_active_statuses_exclude_terminal(self):
        assert set(active_statuses()) == {"pending", "processing", "shipped", "postponed"}


@pytest.mark.unit
class TestPendingOrderCounter:
    def test_follows_created_and_changed_events(self):
        counter = PendingOrderCounter()
        first, second = uuid.uuid4(), uuid.uuid4()
        counter(_created(first))
        counter(_created(second))
        counter(_changed(first, "pending", "processing"))
        assert counter.get(STORE) == 1

    def test_duplicate_delivery_is_counted_once(self):
        counter = PendingOrderCounter()
        event = _created(uuid.uuid4())
        counter(event)
        counter(event)
        assert counter.get(STORE) == 1

    def test_duplicate_window_is_bounded(self):
        counter = PendingOrderCounter()
        total = SEEN_EVENTS_PER_STORE * 4
        for _ in range(total):
            counter(_created(uuid.uuid4()))
        assert counter.get(STORE) == total
        assert len(counter._seen[STORE]) == SEEN_EVENTS_PER_STORE

    def test_never_negative(self):
        counter = PendingOrderCounter()
        counter(_changed(uuid.uuid4(), "pending", "cancelled"))
        assert counter.get(STORE) == 0

    def test_reconcile_replaces_count(self):
        counter = PendingOrderCounter()
        counter(_created(uuid.uuid4()))
        assert counter.reconcile(STORE, lambda _: 7) == 7
        assert counter.get(STORE) == 7
        assert counter.is_tracked(STORE)

    def test_subscriber_failure_does_not_stop_delivery(self):
        bus = OrderEventBus()
        counter = PendingOrderCounter()

        def broken(event):
            raise RuntimeError("boom")

        bus.subscribe(broken)
        bus.subscribe(counter, store_id=STORE)
        bus.publish(_created(uuid.uuid4()))
        assert counter.get(STORE) == 1

    def test_unsubscribe(self):
        bus = OrderEventBus()
        counter = PendingOrderCounter()
        unsubscribe = bus.subscribe(counter)
        unsubscribe()
        bus.publish(_created(uuid.uuid4()))
        assert counter.get(STORE) == 0


@pytest.mark.unit
class TestOptimisticStatusUpdate:
    def test_success_keeps_new_status(self):
        order_id = uuid.uuid4()
        view = {order_id: "pending"}
        update = OptimisticStatusUpdate(view, order_id, "processing")
        assert update.commit(lambda: True) is True
        assert view[order_id] == "processing"

    def test_falsy_result_reverts(self):
        order_id = uuid.uuid4()
        view = {order_id: "pending"}
        update = OptimisticStatusUpdate(view, order_id, "processing")
        assert update.commit(lambda: False) is False
        assert view[order_id] == "pending"

    def test_exception_reverts_and_propagates(self):
        order_id = uuid.uuid4()
        view = {order_id: "pending"}

        def failing():
            raise ConnectionError("offline")

        update = OptimisticStatusUpdate(view, order_id, "shipped")
        with pytest.raises(ConnectionError):
            update.commit(failing)
        assert view[order_id] == "pending"

    def test_unknown_status_is_rejected_up_front(self):
        with pytest.raises(ValidationError):
            OptimisticStatusUpdate({}, uuid.uuid4(), "lost")
