import logging

import pytest

from gorder.decorator import TodoMetrics
from gorder.messages import ItemMessage, OrderMessage
from gorder.payment_commands import (
    CreatePayment,
    CreatePaymentHandler,
    PaymentApplication,
    new_create_payment_handler,
)


class FakeProcessor:
    def __init__(self, link="https://pay.example.com/session", error=None):
        self.link = link
        self.error = error
        self.orders = []

    def create_payment_link(self, order):
        self.orders.append(order)
        if self.error is not None:
            raise self.error
        return self.link


class FakeOrderService:
    def __init__(self, error=None):
        self.error = error
        self.updated = []

    def update_order(self, order):
        self.updated.append(order)
        if self.error is not None:
            raise self.error


def _order():
    return OrderMessage(
        id="o1",
        customer_id="c1",
        status="pending",
        items=[ItemMessage(id="i1", name="n", quantity=2, price_id="p1")],
    )


def test_handle_returns_link_and_updates_order():
    processor = FakeProcessor()
    service = FakeOrderService()
    handler = CreatePaymentHandler(processor, service)
    link = handler.handle(CreatePayment(order=_order()))
    assert link == processor.link
    assert len(service.updated) == 1
    sent = service.updated[0]
    assert sent.status == "waiting_for_payment"
    assert sent.payment_link == processor.link
    assert sent.id == "o1"
    assert sent.customer_id == "c1"
    assert sent.items == _order().items


def test_processor_failure_skips_update():
    processor = FakeProcessor(error=RuntimeError("stripe down"))
    service = FakeOrderService()
    handler = CreatePaymentHandler(processor, service)
    with pytest.raises(RuntimeError, match="stripe down"):
        handler.handle(CreatePayment(order=_order()))
    assert service.updated == []


def test_order_service_failure_propagates():
    handler = CreatePaymentHandler(FakeProcessor(), FakeOrderService(error=RuntimeError("no order")))
    with pytest.raises(RuntimeError, match="no order"):
        handler.handle(CreatePayment(order=_order()))


def test_decorated_handler_behaves_like_base():
    processor = FakeProcessor()
    service = FakeOrderService()
    handler = new_create_payment_handler(processor, service, TodoMetrics(), logging.getLogger("test"))
    app = PaymentApplication(create_payment=handler)
    assert app.create_payment.handle(CreatePayment(order=_order())) == processor.link
    assert processor.orders[0].id == "o1"


def test_decorated_handler_reraises():
    handler = new_create_payment_handler(
        FakeProcessor(error=ValueError("bad")), FakeOrderService(), TodoMetrics(), logging.getLogger("test")
    )
    with pytest.raises(ValueError, match="bad"):
        handler.handle(CreatePayment(order=_order()))