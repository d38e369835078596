"""Consumer that marks orders paid when payment events arrive."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from typing import Any

from gorder import tracing
from gorder.broker import EVENT_ORDER_PAID, Delivery, extract_headers, handle_retry
from gorder.messages import OrderMessage
from gorder.order_commands import UpdateOrder
from gorder.order_convertor import order_from_message
from gorder.order_domain import Order
from gorder.order_queries import Application

_log = logging.getLogger(__name__)


def _delivery_from(method: Any, properties: Any, body: bytes) -> Delivery:
    return Delivery(
        body=body,
        headers=getattr(properties, "headers", None),
        exchange=getattr(method, "exchange", "") or "",
        routing_key=getattr(method, "routing_key", "") or "",
        message_id=getattr(properties, "message_id", None),
        delivery_tag=getattr(method, "delivery_tag", 0),
    )


class OrderConsumer:
    """Listens on the paid-order exchange and updates the stored orders."""

    def __init__(
        self,
        app: Application,
        max_retry: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._app = app
        self._max_retry = max_retry
        self._sleep = sleep
        self._queue = EVENT_ORDER_PAID

    def listen(self, channel: Any) -> None:
        """Bind a queue to the paid-order exchange and consume until stopped."""
        declared = channel.queue_declare(queue=EVENT_ORDER_PAID, durable=True, auto_delete=True)
        self._queue = getattr(getattr(declared, "method", None), "queue", EVENT_ORDER_PAID)
        channel.queue_bind(queue=self._queue, exchange=EVENT_ORDER_PAID, routing_key="")

        def on_message(ch: Any, method: Any, properties: Any, body: bytes) -> None:
            self.handle_message(ch, _delivery_from(method, properties, body))

        channel.basic_consume(queue=self._queue, on_message_callback=on_message, auto_ack=False)
        channel.start_consuming()

    def handle_message(self, channel: Any, delivery: Delivery) -> bool:
        """Process one message; ack it on success, otherwise nack. Returns success."""
        with extract_headers(delivery.headers):
            with tracing.start(f"rabbitmq.{self._queue}.consume") as span:
                ok = self._process(channel, delivery, span)
        if ok:
            channel.basic_ack(delivery_tag=delivery.delivery_tag)
        else:
            channel.basic_nack(delivery_tag=delivery.delivery_tag, requeue=False)
        return ok

    def _process(self, channel: Any, delivery: Delivery, span: tracing.Span) -> bool:
        try:
            order = order_from_message(OrderMessage.from_dict(json.loads(delivery.body)))
        except (ValueError, TypeError) as exc:
            _log.info("error unmarshalling msg to order: %s", exc)
            return False

        def require_paid(stored: Order) -> Order:
            order.ensure_paid()
            return stored

        try:
            self._app.commands.update_order.handle(UpdateOrder(order=order, update_fn=require_paid))
        except Exception as exc:
            _log.info("error updating order, orderID=%s, err=%s", order.id, exc)
            try:
                handle_retry(channel, delivery, self._max_retry, self._sleep)
            except Exception as retry_exc:
                _log.warning(
                    "retry_error, error handling retry, messageID=%s, err=%s",
                    delivery.message_id,
                    retry_exc,
                )
            return False

        span.add_event("order.updated")
        _log.info("order consume paid event success!")
        return True