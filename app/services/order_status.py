# app/services/order_status.py
"""
Order status lifecycle.

    pending -> processing -> shipped -> completed
    pending | processing | shipped -> cancelled | returned
    postponed is reserved.

The server guard only checks that the target is a known status
(`validate_target`). `is_intended_transition` describes the diagram above for
callers that want the stricter view; it is not enforced on update.
"""

import logging
import threading
import uuid
from collections import deque
from enum import Enum
from typing import Callable, Iterable

from app.core.errors import ValidationError
from app.core.events import ORDER_CREATED, ORDER_STATUS_CHANGED, OrderEvent

logger = logging.getLogger(__name__)


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    COMPLETED = "completed"
    POSTPONED = "postponed"
    RETURNED = "returned"
    CANCELLED = "cancelled"


INITIAL_STATUS = OrderStatus.PENDING

TERMINAL_STATUSES = frozenset(
    {OrderStatus.COMPLETED, OrderStatus.CANCELLED, OrderStatus.RETURNED}
)

# Statuses that may carry a cancellation_reason
REASON_STATUSES = frozenset({OrderStatus.CANCELLED, OrderStatus.RETURNED})

HAPPY_PATH: dict[OrderStatus, OrderStatus] = {
    OrderStatus.PENDING: OrderStatus.PROCESSING,
    OrderStatus.PROCESSING: OrderStatus.SHIPPED,
    OrderStatus.SHIPPED: OrderStatus.COMPLETED,
}

DEVIATIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    source: frozenset({OrderStatus.CANCELLED, OrderStatus.RETURNED})
    for source in (OrderStatus.PENDING, OrderStatus.PROCESSING, OrderStatus.SHIPPED)
}


def validate_target(value: str) -> OrderStatus:
    """
    Parse a requested status.

    Raises:
        ValidationError: value is not one of OrderStatus.
    """
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError("Invalid order status") from None


def is_terminal(status: str | OrderStatus) -> bool:
    try:
        return OrderStatus(status) in TERMINAL_STATUSES
    except ValueError:
        return False


def is_intended_transition(source: str | OrderStatus, target: str | OrderStatus) -> bool:
    try:
        source, target = OrderStatus(source), OrderStatus(target)
    except ValueError:
        return False
    return HAPPY_PATH.get(source) == target or target in DEVIATIONS.get(source, ())


# ---------------------------------------------------------------------------
# Consumers of order events
# ---------------------------------------------------------------------------


SEEN_EVENTS_PER_STORE = 256


class PendingOrderCounter:
    """
    Per-store count of pending orders kept current from order events.

    Events may be missed or duplicated, so the count is advisory;
    `reconcile` replaces it with an authoritative read.
    Duplicates are recognised among the last SEEN_EVENTS_PER_STORE events
    of each store.
    """

    def __init__(self) -> None:
        self._counts: dict[uuid.UUID, int] = {}
        self._seen: dict[uuid.UUID, deque] = {}
        self._lock = threading.Lock()

    def get(self, store_id: uuid.UUID) -> int:
        with self._lock:
            return self._counts.get(store_id, 0)

    def is_tracked(self, store_id: uuid.UUID) -> bool:
        with self._lock:
            return store_id in self._counts

    def __call__(self, event: OrderEvent) -> None:
        marker = (
            event.order_id,
            event.kind,
            event.previous_status,
            event.status,
            event.occurred_at,
        )
        with self._lock:
            seen = self._seen.setdefault(event.store_id, deque(maxlen=SEEN_EVENTS_PER_STORE))
            if marker in seen:
                return
            seen.append(marker)

            delta = 0
            if event.kind == ORDER_CREATED and event.status == OrderStatus.PENDING:
                delta = 1
            elif event.kind == ORDER_STATUS_CHANGED:
                if event.previous_status == OrderStatus.PENDING:
                    delta -= 1
                if event.status == OrderStatus.PENDING:
                    delta += 1

            current = self._counts.get(event.store_id, 0)
            self._counts[event.store_id] = max(0, current + delta)

    def reconcile(self, store_id: uuid.UUID, fetch_count: Callable[[uuid.UUID], int]) -> int:
        count = fetch_count(store_id)
        with self._lock:
            self._counts[store_id] = count
        return count


class OptimisticStatusUpdate:
    """
    Compensating update for a locally held view of orders.

    `apply` sets the tentative status and records the inverse; `commit`
    runs the authoritative call and applies the inverse if it fails
    (raising or returning a falsy result).

        update = OptimisticStatusUpdate(view, order_id, "shipped")
        ok = update.commit(lambda: api.update_status(order_id, "shipped"))
    """

    def __init__(self, view: dict[uuid.UUID, str], order_id: uuid.UUID, new_status: str):
        self.view = view
        self.order_id = order_id
        self.new_status = validate_target(new_status).value
        self._previous: str | None = None
        self._applied = False

    def apply(self) -> None:
        self._previous = self.view.get(self.order_id)
        self.view[self.order_id] = self.new_status
        self._applied = True

    def revert(self) -> None:
        if not self._applied:
            return
        if self._previous is None:
            self.view.pop(self.order_id, None)
        else:
            self.view[self.order_id] = self._previous
        self._applied = False

    def commit(self, authoritative_call: Callable[[], object]) -> bool:
        if not self._applied:
            self.apply()
        try:
            result = authoritative_call()
        except Exception:
            logger.warning("Status update for %s failed; reverting", self.order_id)
            self.revert()
            raise
        if not result:
            self.revert()
            return False
        return True


def active_statuses() -> Iterable[str]:
    """Statuses shown in "active orders" views."""
    return [s.value for s in OrderStatus if s not in TERMINAL_STATUSES]
