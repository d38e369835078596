"""Stripe webhook handling: signature checks and paid-order publishing."""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import time
from typing import Any

import pika
from flask import Flask, jsonify, request

from gorder import tracing
from gorder.broker import EVENT_ORDER_PAID, JSON_CONTENT_TYPE, PERSISTENT_DELIVERY_MODE, inject_headers
from gorder.config import get_config
from gorder.messages import ItemMessage, OrderMessage

MAX_BODY_BYTES = 65536
DEFAULT_TOLERANCE = 300
SIGNATURE_HEADER = "Stripe-Signature"
WEBHOOK_PATH = "/api/webhook"
EVENT_CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
PAYMENT_STATUS_PAID = "paid"

_log = logging.getLogger(__name__)


class WebhookError(ValueError):
    """A webhook payload could not be verified or parsed."""


def compute_signature(timestamp: int, payload: bytes, secret: str) -> str:
    """HMAC-SHA256 of ``"<timestamp>.<payload>"`` under ``secret``, in hex."""
    signed = str(int(timestamp)).encode() + b"." + payload
    return hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()


def _parse_header(signature: str) -> tuple[int, list[str]]:
    timestamp: int | None = None
    signatures: list[str] = []
    for part in signature.split(","):
        key, sep, value = part.strip().partition("=")
        if not sep:
            continue
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError:
                raise WebhookError("invalid timestamp in signature header") from None
        elif key == "v1":
            signatures.append(value)
    if timestamp is None:
        raise WebhookError("signature header has no timestamp")
    if not signatures:
        raise WebhookError("signature header has no v1 signature")
    return timestamp, signatures


def construct_event(
    payload: bytes | str,
    signature: str,
    secret: str,
    tolerance: float = DEFAULT_TOLERANCE,
) -> dict[str, Any]:
    """Verify ``signature`` over ``payload`` and return the decoded event."""
    if isinstance(payload, str):
        payload = payload.encode()
    if not signature:
        raise WebhookError("missing signature header")
    timestamp, signatures = _parse_header(signature)
    if tolerance and time.time() - timestamp > tolerance:
        raise WebhookError("timestamp is too old")
    expected = compute_signature(timestamp, payload, secret)
    if not any(hmac.compare_digest(expected, candidate) for candidate in signatures):
        raise WebhookError("no signature matches the payload")
    try:
        event = json.loads(payload)
    except ValueError as exc:
        raise WebhookError(f"invalid event payload: {exc}") from exc
    if not isinstance(event, dict):
        raise WebhookError("event payload is not an object")
    return event


def _items_from_metadata(raw: Any) -> list[ItemMessage]:
    try:
        decoded = json.loads(raw) if raw else None
    except (ValueError, TypeError):
        return []
    if not isinstance(decoded, list):
        return []
    items = []
    for entry in decoded:
        try:
            items.append(ItemMessage.from_dict(entry))
        except (ValueError, TypeError):
            continue
    return items


class PaymentHandler:
    """Receives payment webhooks and announces paid orders on the broker."""

    def __init__(
        self,
        channel: Any,
        endpoint_secret: str | None = None,
        tolerance: float = DEFAULT_TOLERANCE,
    ) -> None:
        self._channel = channel
        self._endpoint_secret = endpoint_secret
        self._tolerance = tolerance

    def _secret(self) -> str:
        if self._endpoint_secret is not None:
            return self._endpoint_secret
        return str(get_config().get("endpoint-stripe-secret", "") or "")

    def handle_webhook(self, payload: bytes, signature: str) -> tuple[int, Any]:
        """Process one webhook call; returns an HTTP status and a JSON body."""
        _log.info("webhook called by stripe")
        if len(payload) > MAX_BODY_BYTES:
            _log.info("Error reading request body: too large")
            return 503, "http: request body too large"
        try:
            event = construct_event(payload, signature, self._secret(), self._tolerance)
        except WebhookError as exc:
            _log.info("Error verifying webhook signature: %s", exc)
            return 503, str(exc)

        event_type = event.get("type")
        if event_type != EVENT_CHECKOUT_SESSION_COMPLETED:
            _log.info("Unhandled event type: %s", event_type)
            return 200, None

        data = event.get("data")
        session = data.get("object") if isinstance(data, dict) else None
        if not isinstance(session, dict):
            _log.info("error unmarshal event data into session")
            return 400, "event data is not a checkout session"
        if session.get("payment_status") != PAYMENT_STATUS_PAID:
            return 200, None

        _log.info("payment for checkout session %s success", session.get("id"))
        metadata = session.get("metadata") or {}
        order = OrderMessage(
            id=str(metadata.get("orderID", "")),
            customer_id=str(metadata.get("customerID", "")),
            status=PAYMENT_STATUS_PAID,
            payment_link=str(metadata.get("paymentLink", "")),
            items=_items_from_metadata(metadata.get("items")),
        )
        body = json.dumps(order.to_dict()).encode("utf-8")
        with tracing.start(f"rabbitmq.{EVENT_ORDER_PAID}.publish"):
            headers = inject_headers()
            try:
                self._channel.basic_publish(
                    exchange=EVENT_ORDER_PAID,
                    routing_key="",
                    body=body,
                    properties=pika.BasicProperties(
                        headers=headers,
                        content_type=JSON_CONTENT_TYPE,
                        delivery_mode=PERSISTENT_DELIVERY_MODE,
                    ),
                )
            except Exception as exc:
                _log.info("Error publishing order %s: %s", session.get("id"), exc)
                return 400, str(exc)
        _log.info("Successfully published order to %s, body: %s", EVENT_ORDER_PAID, body.decode())
        return 200, None

    def register_routes(self, app: Flask) -> None:
        """Add the webhook endpoint to ``app``."""

        def webhook() -> Any:
            status, body = self.handle_webhook(request.get_data(), request.headers.get(SIGNATURE_HEADER, ""))
            return jsonify(body), status

        app.add_url_rule(WEBHOOK_PATH, "payment_webhook", webhook, methods=["POST"])