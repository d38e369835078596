import pytest

from gorder import order_convertor as conv
from gorder.messages import ItemWithQuantityMessage
from gorder.order_domain import Item, ItemWithQuantity, Order


def _order():
    return Order(
        id="o1",
        customer_id="c1",
        status="pending",
        payment_link="link",
        items=[
            Item(id="item1", name="stub item 1", quantity=3, price_id="stub_item1_price_id"),
            Item(id="item2", name="stub item 2", quantity=1, price_id="stub_item2_price_id"),
        ],
    )


def test_order_message_round_trip():
    order = _order()
    assert conv.order_from_message(conv.order_to_message(order)) == order


def test_order_client_round_trip():
    order = _order()
    assert conv.order_from_client(conv.order_to_client(order)) == order


def test_order_message_fields():
    msg = conv.order_to_message(_order())
    assert msg.customer_id == "c1"
    assert [item.price_id for item in msg.items] == ["stub_item1_price_id", "stub_item2_price_id"]


def test_client_item_keys():
    body = conv.item_to_client(Item(id="a", name="n", quantity=1, price_id="p"))
    assert body == {"id": "a", "name": "n", "quantity": 1, "priceId": "p"}


@pytest.mark.parametrize(
    "func", [conv.order_to_message, conv.order_from_message, conv.order_to_client, conv.order_from_client]
)
def test_none_order_rejected(func):
    with pytest.raises(ValueError):
        func(None)


def test_quantities_round_trip():
    items = [ItemWithQuantity(id="a", quantity=2), ItemWithQuantity(id="b", quantity=7)]
    assert conv.quantities_from_messages(conv.quantities_to_messages(items)) == items


def test_quantity_message_type():
    msg = conv.quantity_to_message(ItemWithQuantity(id="a", quantity=2))
    assert msg == ItemWithQuantityMessage(id="a", quantity=2)


def test_quantities_from_clients():
    result = conv.quantities_from_clients([{"id": "prod", "quantity": 10}])
    assert result == [ItemWithQuantity(id="prod", quantity=10)]


def test_none_lists_become_empty():
    assert conv.items_to_messages(None) == []
    assert conv.items_from_messages(None) == []
    assert conv.quantities_from_clients(None) == []


def test_items_order_preserved():
    items = _order().items
    assert [i.id for i in conv.items_from_messages(conv.items_to_messages(items))] == ["item1", "item2"]