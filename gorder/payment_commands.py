"""Payment commands and the payment application's handler registry."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from gorder import tracing
from gorder.decorator import LoggingDecorator, MetricsClient, apply_command_decorators
from gorder.messages import OrderMessage, OrderService, Processor

STATUS_WAITING_FOR_PAYMENT = "waiting_for_payment"

_log = logging.getLogger(__name__)


@dataclass
class CreatePayment:
    order: OrderMessage


class CreatePaymentHandler:
    """Creates a payment link for an order and records it on the order."""

    def __init__(self, processor: Processor, order_service: OrderService) -> None:
        self._processor = processor
        self._order_service = order_service

    def handle(self, cmd: CreatePayment) -> str:
        """Return the new payment link after the order has been updated with it."""
        with tracing.start("createPaymentHandler"):
            link = self._processor.create_payment_link(cmd.order)
            _log.info("create payment link for order: %s, payment link: %s", cmd.order.id, link)
            updated = OrderMessage(
                id=cmd.order.id,
                customer_id=cmd.order.customer_id,
                status=STATUS_WAITING_FOR_PAYMENT,
                payment_link=link,
                items=list(cmd.order.items),
            )
            self._order_service.update_order(updated)
            return link


@dataclass
class PaymentApplication:
    create_payment: Any


def new_create_payment_handler(
    processor: Processor,
    order_service: OrderService,
    metrics_client: MetricsClient,
    logger: logging.Logger | logging.LoggerAdapter,
) -> LoggingDecorator:
    """Build the create-payment handler wrapped with logging and metrics."""
    return apply_command_decorators(
        CreatePaymentHandler(processor, order_service), logger, metrics_client
    )