"""Order queries and the order application's handler registry."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from gorder import tracing
from gorder.decorator import LoggingDecorator, MetricsClient, apply_query_decorators
from gorder.order_domain import Order, Repository


@dataclass
class GetCustomerOrder:
    customer_id: str
    order_id: str


class GetCustomerOrderHandler:
    """Looks up one order belonging to a customer."""

    def __init__(self, order_repo: Repository) -> None:
        self._order_repo = order_repo

    def handle(self, query: GetCustomerOrder) -> Order:
        with tracing.start("getCustomerOrderHandler"):
            return self._order_repo.get(query.order_id, query.customer_id)


@dataclass
class Commands:
    create_order: Any
    update_order: Any


@dataclass
class Queries:
    get_customer_order: Any


@dataclass
class Application:
    commands: Commands
    queries: Queries


def new_get_customer_order_handler(
    order_repo: Repository | None,
    logger: logging.Logger | logging.LoggerAdapter,
    metrics_client: MetricsClient,
) -> LoggingDecorator:
    """Build the get-order handler wrapped with logging and metrics."""
    if order_repo is None:
        raise ValueError("nil orderRepo")
    return apply_query_decorators(GetCustomerOrderHandler(order_repo), logger, metrics_client)