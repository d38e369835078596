"""Conversions between order entities, wire messages and HTTP client bodies."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from gorder.messages import ItemMessage, ItemWithQuantityMessage, OrderMessage
from gorder.order_domain import Item, ItemWithQuantity, Order


def _check(order: Any) -> None:
    if order is None:
        raise ValueError("cannot convert None order")


def item_to_message(item: Item) -> ItemMessage:
    return ItemMessage(id=item.id, name=item.name, quantity=item.quantity, price_id=item.price_id)


def item_from_message(msg: ItemMessage) -> Item:
    return Item(id=msg.id, name=msg.name, quantity=msg.quantity, price_id=msg.price_id)


def items_to_messages(items: Iterable[Item] | None) -> list[ItemMessage]:
    return [item_to_message(item) for item in items or ()]


def items_from_messages(msgs: Iterable[ItemMessage] | None) -> list[Item]:
    return [item_from_message(msg) for msg in msgs or ()]


def item_to_client(item: Item) -> dict[str, Any]:
    return {"id": item.id, "name": item.name, "quantity": item.quantity, "priceId": item.price_id}


def item_from_client(data: Mapping[str, Any]) -> Item:
    return Item(
        id=str(data.get("id", "")),
        name=str(data.get("name", "")),
        quantity=int(data.get("quantity", 0)),
        price_id=str(data.get("priceId", "")),
    )


def quantity_to_message(item: ItemWithQuantity) -> ItemWithQuantityMessage:
    return ItemWithQuantityMessage(id=item.id, quantity=item.quantity)


def quantity_from_message(msg: ItemWithQuantityMessage) -> ItemWithQuantity:
    return ItemWithQuantity(id=msg.id, quantity=msg.quantity)


def quantity_from_client(data: Mapping[str, Any]) -> ItemWithQuantity:
    return ItemWithQuantity(id=str(data.get("id", "")), quantity=int(data.get("quantity", 0)))


def quantities_to_messages(items: Iterable[ItemWithQuantity] | None) -> list[ItemWithQuantityMessage]:
    return [quantity_to_message(item) for item in items or ()]


def quantities_from_messages(msgs: Iterable[ItemWithQuantityMessage] | None) -> list[ItemWithQuantity]:
    return [quantity_from_message(msg) for msg in msgs or ()]


def quantities_from_clients(items: Iterable[Mapping[str, Any]] | None) -> list[ItemWithQuantity]:
    return [quantity_from_client(item) for item in items or ()]


def order_to_message(order: Order) -> OrderMessage:
    _check(order)
    return OrderMessage(
        id=order.id,
        customer_id=order.customer_id,
        status=order.status,
        payment_link=order.payment_link,
        items=items_to_messages(order.items),
    )


def order_from_message(msg: OrderMessage) -> Order:
    _check(msg)
    return Order(
        id=msg.id,
        customer_id=msg.customer_id,
        status=msg.status,
        payment_link=msg.payment_link,
        items=items_from_messages(msg.items),
    )


def order_to_client(order: Order) -> dict[str, Any]:
    _check(order)
    return {
        "id": order.id,
        "customerId": order.customer_id,
        "status": order.status,
        "paymentLink": order.payment_link,
        "items": [item_to_client(item) for item in order.items or ()],
    }


def order_from_client(data: Mapping[str, Any]) -> Order:
    _check(data)
    return Order(
        id=str(data.get("id", "")),
        customer_id=str(data.get("customerId", "")),
        status=str(data.get("status", "")),
        payment_link=str(data.get("paymentLink", "")),
        items=[item_from_client(item) for item in data.get("items") or ()],
    )