import logging
from types import SimpleNamespace

import pytest

from gorder.decorator import TodoMetrics
from gorder.messages import (
    CreateOrderRequest,
    GetOrderRequest,
    ItemMessage,
    ItemWithQuantityMessage,
    OrderMessage,
)
from gorder.order_commands import new_create_order_handler, new_update_order_handler
from gorder.order_memory_repository import MemoryOrderRepository
from gorder.order_ports import OrderHttpHandlers, OrderRpcService, create_http_app
from gorder.order_queries import Application, Commands, Queries, new_get_customer_order_handler

LOGGER = logging.getLogger("tests.order_ports")


class FakeChannel:
    def __init__(self):
        self.published = []

    def queue_declare(self, queue, **kwargs):
        return SimpleNamespace(method=SimpleNamespace(queue=queue))

    def basic_publish(self, exchange, routing_key, body, properties=None):
        self.published.append((exchange, routing_key, body))


class FakeStock:
    def check_if_item_in_stock(self, items):
        return [ItemMessage(id=i.id, quantity=i.quantity, price_id="price_" + i.id) for i in items]


def make_app():
    repo = MemoryOrderRepository()
    metrics = TodoMetrics()
    channel = FakeChannel()
    app = Application(
        commands=Commands(
            create_order=new_create_order_handler(repo, LOGGER, metrics, FakeStock(), channel),
            update_order=new_update_order_handler(repo, LOGGER, metrics),
        ),
        queries=Queries(get_customer_order=new_get_customer_order_handler(repo, LOGGER, metrics)),
    )
    return app, repo, channel


@pytest.fixture
def http_client():
    app, repo, channel = make_app()
    return create_http_app(app).test_client(), repo, channel


def test_create_order_invalid_params(http_client):
    client, _, channel = http_client
    response = client.post("/api/customer/123/orders", json={"customerId": "123", "items": None})
    assert response.status_code == 200
    assert response.get_json()["errno"] == 2
    assert channel.published == []


def test_create_order_valid_params(http_client):
    client, repo, channel = http_client
    response = client.post(
        "/api/customer/123/orders",
        json={"customerId": "123", "items": [{"id": "prod_RCftmpMkL9wnSM", "quantity": 10}]},
    )
    assert response.status_code == 200
    body = response.get_json()
    assert body["errno"] == 0
    assert body["message"] == "success"
    data = body["data"]
    assert data["customer_id"] == "123"
    assert data["redirect_url"] == f"http://centos2:8282/success?customerID=123&orderID={data['order_id']}"
    stored = repo.get(data["order_id"], "123")
    assert [(i.id, i.quantity) for i in stored.items] == [("prod_RCftmpMkL9wnSM", 10)]
    assert len(channel.published) == 1
    assert body["trace_id_url"].endswith(body["trace_id"])


def test_create_order_rejects_non_positive_quantity():
    app, _, channel = make_app()
    status, body = OrderHttpHandlers(app).post_customer_orders(
        "123", {"customerId": "123", "items": [{"id": "x", "quantity": 0}]}
    )
    assert status == 200
    assert body["errno"] == 2
    assert body["message"] == "quantity must be positive"
    assert body["data"] is None
    assert channel.published == []


def test_create_order_rejects_non_object_body():
    app, _, _ = make_app()
    status, body = OrderHttpHandlers(app).post_customer_orders("123", ["not", "an", "object"])
    assert body["errno"] == 2


def test_get_customer_order_over_http(http_client):
    client, _, _ = http_client
    response = client.get("/api/customer/fake_customerID/orders/fake_id")
    body = response.get_json()
    assert body["errno"] == 0
    assert body["data"]["Order"]["id"] == "fake_id"
    assert body["data"]["Order"]["paymentLink"] == "fake_link"


def test_get_customer_order_missing():
    app, _, _ = make_app()
    status, body = OrderHttpHandlers(app).get_customer_order("c", "missing")
    assert body["errno"] == 2
    assert body["message"] == "order with id missing not found"


def test_rpc_get_order():
    app, _, _ = make_app()
    msg = OrderRpcService(app).get_order(GetOrderRequest(customer_id="fake_customerID", order_id="fake_id"))
    assert msg.id == "fake_id"
    assert msg.payment_link == "fake_link"


def test_rpc_get_order_missing_raises():
    app, _, _ = make_app()
    with pytest.raises(LookupError):
        OrderRpcService(app).get_order(GetOrderRequest(customer_id="c", order_id="missing"))


def test_rpc_create_order_stores_order():
    app, _, channel = make_app()
    OrderRpcService(app).create_order(
        CreateOrderRequest(customer_id="c9", items=[ItemWithQuantityMessage(id="item1", quantity=2)])
    )
    assert len(channel.published) == 1


def test_rpc_create_order_without_items_raises():
    app, _, _ = make_app()
    with pytest.raises(RuntimeError, match="must have one item"):
        OrderRpcService(app).create_order(CreateOrderRequest(customer_id="c9", items=[]))


def test_rpc_update_order():
    app, repo, _ = make_app()
    OrderRpcService(app).update_order(
        OrderMessage(
            id="fake_id",
            customer_id="fake_customerID",
            status="ready",
            payment_link="link",
            items=[ItemMessage(id="x", quantity=1)],
        )
    )
    assert repo.get("fake_id", "fake_customerID").status == "ready"


def test_rpc_update_order_invalid_raises():
    app, _, _ = make_app()
    with pytest.raises(RuntimeError, match="empty ID"):
        OrderRpcService(app).update_order(OrderMessage(customer_id="c", status="ready"))