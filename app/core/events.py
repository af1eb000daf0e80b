# app/core/events.py
"""
In-process publish/subscribe for order notifications.

Subscriptions are keyed by store id. Delivery is fire-and-forget: a failing
subscriber is logged and does not affect the publisher or other subscribers.
Consumers must tolerate missed or duplicate events and reconcile with direct
reads (see `app.services.order_status.PendingOrderCounter`).
"""

import logging
import threading
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

logger = logging.getLogger(__name__)

ORDER_CREATED = "order.created"
ORDER_STATUS_CHANGED = "order.status_changed"


@dataclass(frozen=True)
class OrderEvent:
    kind: str
    store_id: uuid.UUID
    order_id: uuid.UUID
    status: str
    previous_status: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


Subscriber = Callable[[OrderEvent], None]


class OrderEventBus:
    def __init__(self) -> None:
        self._subscribers: dict[uuid.UUID | None, list[Subscriber]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(
        self,
        callback: Subscriber,
        store_id: uuid.UUID | None = None,
    ) -> Callable[[], None]:
        """
        Register `callback` for one store, or for all stores when store_id is None.

        Returns an unsubscribe function.
        """
        with self._lock:
            self._subscribers[store_id].append(callback)

        def _unsubscribe() -> None:
            self.unsubscribe(callback, store_id)

        return _unsubscribe

    def unsubscribe(
        self,
        callback: Subscriber,
        store_id: uuid.UUID | None = None,
    ) -> None:
        with self._lock:
            callbacks = self._subscribers.get(store_id, [])
            if callback in callbacks:
                callbacks.remove(callback)

    def publish(self, event: OrderEvent) -> None:
        with self._lock:
            targets = list(self._subscribers.get(event.store_id, []))
            targets += list(self._subscribers.get(None, []))

        for callback in targets:
            try:
                callback(event)
            except Exception:
                logger.exception(
                    "Subscriber %r failed on %s for order %s",
                    callback,
                    event.kind,
                    event.order_id,
                )


_bus = OrderEventBus()


def get_event_bus() -> OrderEventBus:
    """Process-wide bus. FastAPI dependency and plain accessor."""
    return _bus
