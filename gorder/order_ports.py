"""RPC service and HTTP handlers exposing the order application."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from flask import Flask, jsonify, request

from gorder import tracing
from gorder.messages import CreateOrderRequest, GetOrderRequest, OrderMessage
from gorder.order_commands import CreateOrder, UpdateOrder
from gorder.order_convertor import (
    items_from_messages,
    order_to_client,
    order_to_message,
    quantities_from_clients,
    quantities_from_messages,
)
from gorder.order_domain import CreateOrderResponse, ItemWithQuantity, Order
from gorder.order_queries import Application, GetCustomerOrder
from gorder.response import respond

API_BASE_URL = "/api"
SUCCESS_PAGE = "http://centos2:8282/success"

_log = logging.getLogger(__name__)


class OrderRpcService:
    """Remote-call surface of the order service."""

    def __init__(self, app: Application) -> None:
        self._app = app

    def create_order(self, request: CreateOrderRequest) -> None:
        """Create an order; failures are raised as RuntimeError."""
        try:
            self._app.commands.create_order.handle(
                CreateOrder(customer_id=request.customer_id, items=quantities_from_messages(request.items))
            )
        except Exception as exc:
            raise RuntimeError(str(exc)) from exc

    def get_order(self, request: GetOrderRequest) -> OrderMessage:
        """Return the requested order; failures are raised as LookupError."""
        try:
            order = self._app.queries.get_customer_order.handle(
                GetCustomerOrder(customer_id=request.customer_id, order_id=request.order_id)
            )
        except Exception as exc:
            raise LookupError(str(exc)) from exc
        return order_to_message(order)

    def update_order(self, request: OrderMessage) -> None:
        """Overwrite a stored order with the one given."""
        with tracing.start("UpdateOrder"):
            _log.info("order_grpc||request_in||request=%s", request)
            try:
                order = Order.new(
                    request.id,
                    request.customer_id,
                    request.status,
                    request.payment_link,
                    items_from_messages(request.items),
                )
            except ValueError as exc:
                raise RuntimeError(str(exc)) from exc
            self._app.commands.update_order.handle(UpdateOrder(order=order, update_fn=lambda stored: stored))


def _parse_create_request(body: Any) -> tuple[str, list[ItemWithQuantity]]:
    if not isinstance(body, Mapping):
        raise ValueError("invalid request body")
    customer_id = body.get("customerId")
    items = body.get("items")
    if items is None:
        items = []
    if not isinstance(items, list) or not all(isinstance(item, Mapping) for item in items):
        raise ValueError("items must be a list of objects")
    try:
        parsed = quantities_from_clients(items)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"invalid item: {exc}") from exc
    return ("" if customer_id is None else str(customer_id)), parsed


def _validate(items: list[ItemWithQuantity]) -> None:
    if any(item.quantity <= 0 for item in items):
        raise ValueError("quantity must be positive")


class OrderHttpHandlers:
    """HTTP handlers; each returns a (status, body) pair."""

    def __init__(self, app: Application) -> None:
        self._app = app

    def post_customer_orders(self, customer_id: str, body: Any) -> tuple[int, dict[str, Any]]:
        error: Exception | None = None
        data: Any = None
        try:
            req_customer, items = _parse_create_request(body)
            try:
                _validate(items)
            except ValueError as exc:
                _log.warning("validate request error: %s", exc)
                raise
            result = self._app.commands.create_order.handle(CreateOrder(customer_id=req_customer, items=items))
            data = CreateOrderResponse(
                order_id=result.order_id,
                customer_id=req_customer,
                redirect_url=f"{SUCCESS_PAGE}?customerID={req_customer}&orderID={result.order_id}",
            ).to_dict()
        except Exception as exc:
            error = exc
        return respond(error, data)

    def get_customer_order(self, customer_id: str, order_id: str) -> tuple[int, dict[str, Any]]:
        error: Exception | None = None
        data: Any = None
        try:
            order = self._app.queries.get_customer_order.handle(
                GetCustomerOrder(customer_id=customer_id, order_id=order_id)
            )
            data = {"Order": order_to_client(order)}
        except Exception as exc:
            error = exc
        return respond(error, data)


def create_http_app(application: Application) -> Flask:
    """Build the Flask app serving the order HTTP API under /api."""
    handlers = OrderHttpHandlers(application)
    app = Flask(__name__)

    @app.post(f"{API_BASE_URL}/customer/<customer_id>/orders")
    def post_customer_orders(customer_id: str) -> Any:
        status, body = handlers.post_customer_orders(customer_id, request.get_json(silent=True))
        return jsonify(body), status

    @app.get(f"{API_BASE_URL}/customer/<customer_id>/orders/<order_id>")
    def get_customer_order(customer_id: str, order_id: str) -> Any:
        status, body = handlers.get_customer_order(customer_id, order_id)
        return jsonify(body), status

    return app