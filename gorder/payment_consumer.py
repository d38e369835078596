"""Consumer that creates payment links for newly created orders."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from typing import Any

from gorder import tracing
from gorder.broker import EVENT_ORDER_CREATED, Delivery, extract_headers, handle_retry
from gorder.messages import OrderMessage
from gorder.payment_commands import CreatePayment, PaymentApplication

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


class PaymentConsumer:
    """Listens on the order-created queue and requests payment for each order."""

    def __init__(
        self,
        app: PaymentApplication,
        max_retry: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._app = app
        self._max_retry = max_retry
        self._sleep = sleep
        self._queue = EVENT_ORDER_CREATED

    def listen(self, channel: Any) -> None:
        """Consume the order-created queue until the channel stops."""
        declared = channel.queue_declare(queue=EVENT_ORDER_CREATED, durable=True)
        self._queue = getattr(getattr(declared, "method", None), "queue", EVENT_ORDER_CREATED)

        def on_message(ch: Any, method: Any, properties: Any, body: bytes) -> None:
            self.handle_message(ch, _delivery_from(method, properties, body))

        channel.basic_consume(queue=self._queue, on_message_callback=on_message, auto_ack=False)
        channel.start_consuming()

    def handle_message(self, channel: Any, delivery: Delivery) -> bool:
        """Process one message; ack on success, otherwise nack. Returns success."""
        _log.info("Payment receive a message from %s, msg=%r", self._queue, delivery.body)
        with extract_headers(delivery.headers):
            with tracing.start("consume") as span:
                ok = self._process(channel, delivery, span)
        if ok:
            channel.basic_ack(delivery_tag=delivery.delivery_tag)
        else:
            channel.basic_nack(delivery_tag=delivery.delivery_tag, requeue=False)
        return ok

    def _process(self, channel: Any, delivery: Delivery, span: tracing.Span) -> bool:
        try:
            order = OrderMessage.from_dict(json.loads(delivery.body))
        except (ValueError, TypeError) as exc:
            _log.warning("fail to unmarshal msg to order, err=%s", exc)
            return False
        try:
            self._app.create_payment.handle(CreatePayment(order=order))
        except Exception as exc:
            _log.warning("fail to create paymentLink for order, orderID=%s, err=%s", order.id, exc)
            try:
                handle_retry(channel, delivery, self._max_retry, self._sleep)
            except Exception as retry_exc:
                _log.warning(
                    "retry_error, error handling retry, messageID=%s, err=%s",
                    delivery.message_id,
                    retry_exc,
                )
            return False
        span.add_event("payment.created")
        _log.info("consume order successfully")
        return True