import pytest

from gorder.messages import (
    CreateOrderRequest,
    ItemMessage,
    ItemWithQuantityMessage,
    OrderMessage,
)


def _order():
    return OrderMessage(
        id="o1",
        customer_id="c1",
        status="paid",
        payment_link="link",
        items=[ItemMessage(id="item1", name="stub item 1", quantity=2, price_id="p1")],
    )


def test_order_round_trip():
    order = _order()
    assert OrderMessage.from_dict(order.to_dict()) == order


def test_order_dict_keys_follow_field_names():
    assert set(_order().to_dict()) == {"ID", "CustomerID", "Status", "PaymentLink", "Items"}


def test_item_dict_keys():
    assert set(ItemMessage(id="a").to_dict()) == {"ID", "Name", "Quantity", "PriceID"}


def test_from_dict_ignores_case():
    order = OrderMessage.from_dict(
        {"id": "o1", "customerid": "c1", "STATUS": "paid", "items": [{"id": "x", "priceId": "p"}]}
    )
    assert order.id == "o1"
    assert order.customer_id == "c1"
    assert order.status == "paid"
    assert order.items[0].price_id == "p"


def test_from_dict_defaults_missing_fields():
    order = OrderMessage.from_dict({})
    assert order == OrderMessage()
    assert order.items == []


def test_from_dict_null_items():
    assert OrderMessage.from_dict({"ID": "o", "Items": None}).items == []


def test_from_dict_rejects_non_object():
    with pytest.raises(ValueError):
        OrderMessage.from_dict(["not", "an", "object"])


def test_quantity_must_be_number():
    with pytest.raises(ValueError):
        ItemMessage.from_dict({"Quantity": "many"})


def test_item_with_quantity_round_trip():
    item = ItemWithQuantityMessage(id="item2", quantity=5)
    assert ItemWithQuantityMessage.from_dict(item.to_dict()) == item


def test_create_order_request_defaults_are_independent():
    first = CreateOrderRequest()
    second = CreateOrderRequest()
    first.items.append(ItemWithQuantityMessage(id="a", quantity=1))
    assert second.items == []