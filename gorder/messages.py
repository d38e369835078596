"""Wire messages exchanged between services, and the service interfaces."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol


def _fold(data: Any) -> dict[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return {str(key).lower(): value for key, value in data.items()}


def _text(fields: Mapping[str, Any], key: str) -> str:
    value = fields.get(key)
    return "" if value is None else str(value)


def _number(fields: Mapping[str, Any], key: str) -> int:
    value = fields.get(key)
    return 0 if value is None else int(value)


@dataclass
class ItemMessage:
    """An item with its name, quantity and price identifier."""

    id: str = ""
    name: str = ""
    quantity: int = 0
    price_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"ID": self.id, "Name": self.name, "Quantity": self.quantity, "PriceID": self.price_id}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ItemMessage:
        """Build from a JSON object; key matching ignores case."""
        fields = _fold(data)
        return cls(
            id=_text(fields, "id"),
            name=_text(fields, "name"),
            quantity=_number(fields, "quantity"),
            price_id=_text(fields, "priceid"),
        )


@dataclass
class ItemWithQuantityMessage:
    """An item identifier with a requested quantity."""

    id: str = ""
    quantity: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"ID": self.id, "Quantity": self.quantity}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ItemWithQuantityMessage:
        fields = _fold(data)
        return cls(id=_text(fields, "id"), quantity=_number(fields, "quantity"))


@dataclass
class OrderMessage:
    """An order as it travels between services."""

    id: str = ""
    customer_id: str = ""
    status: str = ""
    payment_link: str = ""
    items: list[ItemMessage] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ID": self.id,
            "CustomerID": self.customer_id,
            "Status": self.status,
            "PaymentLink": self.payment_link,
            "Items": [item.to_dict() for item in self.items],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> OrderMessage:
        """Build from a JSON object; key matching ignores case."""
        fields = _fold(data)
        return cls(
            id=_text(fields, "id"),
            customer_id=_text(fields, "customerid"),
            status=_text(fields, "status"),
            payment_link=_text(fields, "paymentlink"),
            items=[ItemMessage.from_dict(item) for item in fields.get("items") or []],
        )


@dataclass
class CreateOrderRequest:
    customer_id: str = ""
    items: list[ItemWithQuantityMessage] = field(default_factory=list)


@dataclass
class GetOrderRequest:
    customer_id: str = ""
    order_id: str = ""


class Processor(Protocol):
    """Creates a payment link for an order."""

    def create_payment_link(self, order: OrderMessage) -> str: ...


class StockService(Protocol):
    """Stock lookups used by the order service."""

    def check_if_item_in_stock(self, items: Sequence[ItemWithQuantityMessage]) -> list[ItemMessage]: ...

    def get_items(self, item_ids: Sequence[str]) -> list[ItemMessage]: ...


class OrderService(Protocol):
    """Order updates used by the payment and kitchen services."""

    def update_order(self, order: OrderMessage) -> None: ...