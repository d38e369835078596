"""Order commands: create a pending order and update a stored one."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

import pika

from gorder import tracing
from gorder.broker import (
    EVENT_ORDER_CREATED,
    JSON_CONTENT_TYPE,
    PERSISTENT_DELIVERY_MODE,
    inject_headers,
)
from gorder.decorator import LoggingDecorator, MetricsClient, apply_command_decorators
from gorder.messages import StockService
from gorder.order_convertor import items_from_messages, order_to_message, quantities_to_messages
from gorder.order_domain import Item, ItemWithQuantity, Order, Repository

_log = logging.getLogger(__name__)

UpdateFn = Callable[[Order], Order]


@dataclass
class CreateOrder:
    customer_id: str
    items: list[ItemWithQuantity] = field(default_factory=list)


@dataclass
class CreateOrderResult:
    order_id: str


@dataclass
class UpdateOrder:
    order: Order
    update_fn: UpdateFn | None = None


def pack_items(items: Iterable[ItemWithQuantity]) -> list[ItemWithQuantity]:
    """Merge entries with the same id, summing their quantities."""
    merged: dict[str, int] = {}
    for item in items:
        merged[item.id] = merged.get(item.id, 0) + item.quantity
    return [ItemWithQuantity(id=item_id, quantity=quantity) for item_id, quantity in merged.items()]


def _queue_name(result: Any, default: str) -> str:
    return getattr(getattr(result, "method", None), "queue", default)


class CreateOrderHandler:
    """Checks stock, stores a pending order and announces it on the broker."""

    def __init__(self, order_repo: Repository, stock_service: StockService, channel: Any) -> None:
        self._order_repo = order_repo
        self._stock_service = stock_service
        self._channel = channel

    def handle(self, cmd: CreateOrder) -> CreateOrderResult:
        declared = self._channel.queue_declare(queue=EVENT_ORDER_CREATED, durable=True)
        queue = _queue_name(declared, EVENT_ORDER_CREATED)

        valid_items = self._validate(cmd.items)
        pending = Order.pending(cmd.customer_id, valid_items)
        created = self._order_repo.create(pending)
        _log.info("input_order=%s", created)

        body = json.dumps(order_to_message(created).to_dict()).encode("utf-8")
        with tracing.start(f"rabbitmq.{queue}.publish"):
            headers = inject_headers()
            self._channel.basic_publish(
                exchange="",
                routing_key=queue,
                body=body,
                properties=pika.BasicProperties(
                    headers=headers,
                    content_type=JSON_CONTENT_TYPE,
                    delivery_mode=PERSISTENT_DELIVERY_MODE,
                ),
            )
        return CreateOrderResult(order_id=created.id)

    def _validate(self, items: list[ItemWithQuantity] | None) -> list[Item]:
        with tracing.start("checkItemIfInStock"):
            if not items:
                raise ValueError("must have one item")
            packed = pack_items(items)
            checked = self._stock_service.check_if_item_in_stock(quantities_to_messages(packed))
            return items_from_messages(checked)


class UpdateOrderHandler:
    """Applies an update function to a stored order."""

    def __init__(self, order_repo: Repository) -> None:
        self._order_repo = order_repo

    def handle(self, cmd: UpdateOrder) -> None:
        update_fn = cmd.update_fn
        if update_fn is None:
            _log.warning("updateOrderHandler got no update function, order=%s", cmd.order)

            def update_fn(order: Order) -> Order:
                return order

        self._order_repo.update(cmd.order, update_fn)
        return None


def new_create_order_handler(
    order_repo: Repository | None,
    logger: logging.Logger | logging.LoggerAdapter | None,
    metrics_client: MetricsClient,
    stock_service: StockService | None,
    channel: Any,
) -> LoggingDecorator:
    """Build the create-order handler wrapped with logging and metrics."""
    if order_repo is None:
        raise ValueError("nil orderRepo")
    if logger is None:
        raise ValueError("nil logger")
    if stock_service is None:
        raise ValueError("nil stockGRPC")
    if channel is None:
        raise ValueError("nil channel")
    return apply_command_decorators(
        CreateOrderHandler(order_repo, stock_service, channel), logger, metrics_client
    )


def new_update_order_handler(
    order_repo: Repository | None,
    logger: logging.Logger | logging.LoggerAdapter,
    metrics_client: MetricsClient,
) -> LoggingDecorator:
    """Build the update-order handler wrapped with logging and metrics."""
    if order_repo is None:
        raise ValueError("nil orderRepo")
    return apply_command_decorators(UpdateOrderHandler(order_repo), logger, metrics_client)