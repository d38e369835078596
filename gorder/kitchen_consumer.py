"""Kitchen service: cooks paid orders and marks them ready."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from typing import Any

from gorder import tracing
from gorder.broker import EVENT_ORDER_PAID, Delivery, extract_headers, handle_retry
from gorder.messages import OrderMessage, OrderService

STATUS_PAID = "paid"
STATUS_READY = "ready"
COOK_SECONDS = 5.0

_log = logging.getLogger(__name__)


class OrderClientAdapter:
    """Forwards order updates to a remote order service client."""

    def __init__(self, client: Any) -> None:
        self._client = client

    def update_order(self, order: OrderMessage) -> None:
        self._client.update_order(order)


def cook(order: OrderMessage, delay: float = COOK_SECONDS) -> None:
    """Prepare the order, which takes ``delay`` seconds."""
    _log.info("chief is cooking %s", order)
    time.sleep(delay)


def _delivery_from(method: Any, properties: Any, body: bytes) -> Delivery:
    return Delivery(
        body=body,
        headers=getattr(properties, "headers", None),
        exchange=getattr(method, "exchange", "") or "",
        routing_key=getattr(method, "routing_key", "") or "",
        message_id=getattr(properties, "message_id", None),
        delivery_tag=getattr(method, "delivery_tag", 0),
    )


class KitchenConsumer:
    """Listens for paid orders, cooks them and reports them ready."""

    def __init__(
        self,
        order_service: OrderService,
        max_retry: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
        cook_delay: float = COOK_SECONDS,
    ) -> None:
        self._order_service = order_service
        self._max_retry = max_retry
        self._sleep = sleep
        self._cook_delay = cook_delay
        self._queue = ""

    def listen(self, channel: Any) -> None:
        """Bind a private queue to the paid-order exchange and consume."""
        declared = channel.queue_declare(queue="", durable=True, exclusive=True)
        self._queue = getattr(getattr(declared, "method", None), "queue", "")
        channel.queue_bind(queue=self._queue, exchange=EVENT_ORDER_PAID, routing_key="")

        def on_message(ch: Any, method: Any, properties: Any, body: bytes) -> None:
            self.handle_message(ch, _delivery_from(method, properties, body))

        channel.basic_consume(queue=self._queue, on_message_callback=on_message, auto_ack=False)
        channel.start_consuming()

    def handle_message(self, channel: Any, delivery: Delivery) -> bool:
        """Process one message; ack it on success, otherwise nack. Returns success."""
        _log.info("Kitchen receive a message from %s, msg=%r", self._queue, delivery.body)
        with extract_headers(delivery.headers):
            with tracing.start("kitchen_consume_a_msg") as span:
                ok = self._process(channel, delivery, span)
        if ok:
            channel.basic_ack(delivery_tag=delivery.delivery_tag)
        else:
            channel.basic_nack(delivery_tag=delivery.delivery_tag, requeue=False)
        return ok

    def _retry(self, channel: Any, delivery: Delivery) -> bool:
        try:
            handle_retry(channel, delivery, self._max_retry, self._sleep)
        except Exception as exc:
            _log.warning("kitchen: error handling retry, messageID=%s, err=%s", delivery.message_id, exc)
            return False
        return True

    def _process(self, channel: Any, delivery: Delivery, span: tracing.Span) -> bool:
        try:
            order = OrderMessage.from_dict(json.loads(delivery.body))
        except (ValueError, TypeError) as exc:
            _log.warning("fail to unmarshal msg to order, err=%s", exc)
            return False

        not_paid = order.status != STATUS_PAID
        cook(order, self._cook_delay)
        if not_paid:
            _log.info("order not paid, cannot cook, orderID=%s", order.id)
            self._retry(channel, delivery)
            return False

        span.add_event("payment.created")
        try:
            self._order_service.update_order(
                OrderMessage(
                    id=order.id,
                    customer_id=order.customer_id,
                    status=STATUS_READY,
                    payment_link=order.payment_link,
                    items=list(order.items),
                )
            )
        except Exception as exc:
            _log.info("error updating order, orderID=%s, err=%s", order.id, exc)
            # A message successfully handed back for retry counts as handled.
            return self._retry(channel, delivery)

        span.add_event("kitchen.order.finish.updated")
        _log.info("consume success")
        return True