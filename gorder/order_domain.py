"""Order entities, the order aggregate, its repository interface and DTOs."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

STATUS_PENDING = "pending"
STATUS_PAID = "paid"


@dataclass
class Item:
    id: str = ""
    name: str = ""
    quantity: int = 0
    price_id: str = ""


@dataclass
class ItemWithQuantity:
    id: str = ""
    quantity: int = 0


@dataclass
class Order:
    """An order placed by a customer."""

    id: str = ""
    customer_id: str = ""
    status: str = ""
    payment_link: str = ""
    items: list[Item] = field(default_factory=list)

    @classmethod
    def new(
        cls,
        order_id: str,
        customer_id: str,
        status: str,
        payment_link: str,
        items: list[Item] | None,
    ) -> Order:
        """Build a validated order; raises ValueError on a missing field."""
        if not order_id:
            raise ValueError("empty ID")
        if not customer_id:
            raise ValueError("empty customerID")
        if not status:
            raise ValueError("empty status")
        if not items:
            raise ValueError("empty items")
        return cls(
            id=order_id,
            customer_id=customer_id,
            status=status,
            payment_link=payment_link,
            items=list(items),
        )

    @classmethod
    def pending(cls, customer_id: str, items: list[Item] | None) -> Order:
        """Build a not-yet-stored order in the pending state."""
        if not items:
            raise ValueError("empty items")
        return cls(customer_id=customer_id, status=STATUS_PENDING, items=list(items))

    def ensure_paid(self) -> None:
        """Raise ValueError unless the order has been paid."""
        if self.status != STATUS_PAID:
            raise ValueError(f"order status not paid, order id = {self.id}, status = {self.status}")


class NotFoundError(LookupError):
    """No order with the given id exists for the customer."""

    def __init__(self, order_id: str) -> None:
        super().__init__(f"order with id {order_id} not found")
        self.order_id = order_id


@dataclass
class CreateOrderResponse:
    order_id: str
    customer_id: str
    redirect_url: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "customer_id": self.customer_id,
            "redirect_url": self.redirect_url,
        }


class Repository(Protocol):
    """Storage for orders."""

    def create(self, order: Order) -> Order: ...

    def get(self, order_id: str, customer_id: str) -> Order: ...

    def update(self, order: Order, update_fn: Callable[[Order], Order]) -> None: ...