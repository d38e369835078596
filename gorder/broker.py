"""RabbitMQ topology, retry handling and trace header propagation."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

import pika

from gorder import tracing
from gorder.config import get_config

EVENT_ORDER_CREATED = "order.created"
EVENT_ORDER_PAID = "order.paid"

DLX = "dlx"
DLQ = "dlq"
SHARE_QUEUE = "share_queue"
RETRY_HEADER_KEY = "x-retry-count"
PERSISTENT_DELIVERY_MODE = 2
JSON_CONTENT_TYPE = "application/json"

_log = logging.getLogger(__name__)


@dataclass
class Delivery:
    """A message received from the broker."""

    body: bytes
    headers: dict[str, Any] | None = None
    exchange: str = ""
    routing_key: str = ""
    message_id: str | None = None
    delivery_tag: int = 0
    extra: dict[str, Any] = field(default_factory=dict)


def declare_topology(channel: Any) -> None:
    """Declare the event exchanges, the dead-letter exchange and queues."""
    channel.exchange_declare(exchange=EVENT_ORDER_CREATED, exchange_type="direct", durable=True)
    channel.exchange_declare(exchange=EVENT_ORDER_PAID, exchange_type="fanout", durable=True)
    result = channel.queue_declare(queue=SHARE_QUEUE, durable=True)
    queue_name = getattr(getattr(result, "method", None), "queue", SHARE_QUEUE)
    channel.exchange_declare(exchange=DLX, exchange_type="fanout", durable=True)
    channel.queue_bind(queue=queue_name, exchange=DLX, routing_key=EVENT_ORDER_CREATED)
    channel.queue_declare(queue=DLQ, durable=True)


def connect(user: str, password: str, host: str, port: str | int) -> tuple[Any, Callable[[], None]]:
    """Open a channel with the topology declared; return it with a closer."""
    address = f"amqp://{quote(user, safe='')}:{quote(password, safe='')}@{host}:{port}/"
    connection = pika.BlockingConnection(pika.URLParameters(address))
    channel = connection.channel()
    declare_topology(channel)
    return channel, connection.close


def _properties(headers: dict[str, Any]) -> pika.BasicProperties:
    return pika.BasicProperties(
        headers=headers,
        content_type=JSON_CONTENT_TYPE,
        delivery_mode=PERSISTENT_DELIVERY_MODE,
    )


def handle_retry(
    channel: Any,
    delivery: Delivery,
    max_retry: int | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Republish a failed message, or move it to the DLQ once retries run out.

    Returns the retry count now stored in the message headers.
    """
    if max_retry is None:
        max_retry = get_config().get_int("rabbitmq.max-retry", 0)
    if delivery.headers is None:
        delivery.headers = {}
    previous = delivery.headers.get(RETRY_HEADER_KEY)
    retry_count = previous if isinstance(previous, int) and not isinstance(previous, bool) else 0
    retry_count += 1
    delivery.headers[RETRY_HEADER_KEY] = retry_count

    if retry_count >= max_retry:
        _log.info("moving message %s to DLQ", delivery.message_id)
        channel.basic_publish(
            exchange="",
            routing_key=DLQ,
            body=delivery.body,
            properties=_properties(delivery.headers),
        )
        return retry_count

    _log.info("retrying message %s, count=%d", delivery.message_id, retry_count)
    sleep(retry_count)
    _log.info("exchange=%s, key=%s", delivery.exchange, delivery.routing_key)
    channel.basic_publish(
        exchange=delivery.exchange,
        routing_key=delivery.routing_key,
        body=delivery.body,
        properties=_properties(delivery.headers),
    )
    return retry_count


def inject_headers() -> dict[str, Any]:
    """Return message headers carrying the active trace context."""
    carrier: dict[str, Any] = {}
    tracing.inject(carrier)
    return carrier


def extract_headers(headers: dict[str, Any] | None) -> AbstractContextManager[tracing.Span | None]:
    """Activate the trace context carried by message headers."""
    return tracing.extract(dict(headers or {}))