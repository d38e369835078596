"""Order repository kept in process memory."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from gorder.order_domain import NotFoundError, Order

_log = logging.getLogger(__name__)


class MemoryOrderRepository:
    """Thread-safe list of orders, seeded with one placeholder order."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._lock = threading.Lock()
        self._clock = clock
        self._store: list[Order] = [
            Order(
                id="fake_id",
                customer_id="fake_customerID",
                status="fake_status",
                payment_link="fake_link",
                items=[],
            )
        ]

    def create(self, order: Order) -> Order:
        """Store a copy of ``order`` under a timestamp id and return it."""
        created = Order(
            id=str(int(self._clock())),
            customer_id=order.customer_id,
            status=order.status,
            payment_link=order.payment_link,
            items=order.items,
        )
        with self._lock:
            self._store.append(created)
        _log.debug("memory_order_repo_created", extra={"input_order": order, "created": created})
        return created

    def get(self, order_id: str, customer_id: str) -> Order:
        """Return the order with this id and customer, or raise NotFoundError."""
        with self._lock:
            for stored in self._store:
                if stored.id == order_id and stored.customer_id == customer_id:
                    _log.debug("memory_order_repo_found id=%s customerID=%s", order_id, customer_id)
                    return stored
        raise NotFoundError(order_id)

    def update(self, order: Order, update_fn: Callable[[Order], Order]) -> None:
        """Replace every stored match of ``order`` with ``update_fn(order)``."""
        with self._lock:
            found = False
            for index, stored in enumerate(self._store):
                if stored.id == order.id and stored.customer_id == order.customer_id:
                    found = True
                    self._store[index] = update_fn(order)
            if not found:
                raise NotFoundError(order.id)