"""Payment link processors: an in-memory stand-in and Stripe Checkout."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from typing import Any

import requests

from gorder import tracing
from gorder.messages import OrderMessage

INMEM_PAYMENT_LINK = "inmem_paymentLink"
DEFAULT_SUCCESS_URL = "http://centos2:8282/success"
DEFAULT_API_BASE = "https://api.stripe.com"
CHECKOUT_SESSIONS_PATH = "/v1/checkout/sessions"
CHECKOUT_MODE_PAYMENT = "payment"

_log = logging.getLogger(__name__)


class InmemProcessor:
    """Returns a fixed payment link without contacting any provider."""

    def create_payment_link(self, order: OrderMessage) -> str:
        _log.debug("in-memory payment link for order %s", order.id)
        return INMEM_PAYMENT_LINK


def _line_items(order: OrderMessage) -> list[dict[str, Any]]:
    return [{"Price": item.price_id, "Quantity": item.quantity} for item in order.items]


def build_checkout_params(order: OrderMessage, success_url: str = DEFAULT_SUCCESS_URL) -> dict[str, str]:
    """Form parameters for a checkout session paying for ``order``."""
    line_items = _line_items(order)
    params = {
        "mode": CHECKOUT_MODE_PAYMENT,
        "success_url": f"{success_url}?customerID={order.customer_id}&orderID={order.id}",
        "metadata[orderID]": order.id,
        "metadata[customerID]": order.customer_id,
        "metadata[status]": order.status,
        "metadata[items]": json.dumps(line_items) if line_items else "null",
        "metadata[paymentLink]": order.payment_link,
    }
    for index, item in enumerate(line_items):
        params[f"line_items[{index}][price]"] = item["Price"]
        params[f"line_items[{index}][quantity]"] = str(item["Quantity"])
    return params


class StripeProcessor:
    """Creates Stripe Checkout sessions and returns their URLs."""

    def __init__(
        self,
        api_key: str,
        success_url: str = DEFAULT_SUCCESS_URL,
        session: Any = None,
        api_base: str = DEFAULT_API_BASE,
        on_duration: Callable[[float], None] | None = None,
        timeout: float = 30.0,
    ) -> None:
        if not api_key:
            raise ValueError("empty api key")
        self._api_key = api_key
        self._success_url = success_url
        self._session = session if session is not None else requests.Session()
        self._api_base = api_base.rstrip("/")
        self._on_duration = on_duration
        self._timeout = timeout

    def create_payment_link(self, order: OrderMessage) -> str:
        """Create a checkout session for ``order`` and return its URL."""
        with tracing.start("CreatePaymentLink"):
            params = build_checkout_params(order, self._success_url)
            started = time.monotonic()
            response = self._session.post(
                f"{self._api_base}{CHECKOUT_SESSIONS_PATH}",
                data=params,
                auth=(self._api_key, ""),
                timeout=self._timeout,
            )
            response.raise_for_status()
            result = response.json()
            duration = time.monotonic() - started
            _log.info("Payment link created in %.3fs", duration)
            if self._on_duration is not None:
                self._on_duration(duration)
            return str(result.get("url") or "")