from dataclasses import replace

import pytest

from gorder.order_domain import Item, NotFoundError, Order
from gorder.order_memory_repository import MemoryOrderRepository


def test_seeded_order_is_found():
    repo = MemoryOrderRepository()
    order = repo.get("fake_id", "fake_customerID")
    assert order.status == "fake_status"
    assert order.payment_link == "fake_link"


def test_create_uses_clock_for_id():
    repo = MemoryOrderRepository(clock=lambda: 1700000000.9)
    created = repo.create(Order(customer_id="c1", status="pending", items=[Item(id="a")]))
    assert created.id == "1700000000"
    assert repo.get("1700000000", "c1") == created


def test_create_copies_fields():
    repo = MemoryOrderRepository(clock=lambda: 5)
    source = Order(id="ignored", customer_id="c", status="pending", payment_link="l", items=[Item(id="a")])
    created = repo.create(source)
    assert created is not source
    assert (created.customer_id, created.status, created.payment_link) == ("c", "pending", "l")
    assert created.items == source.items


def test_get_wrong_customer_raises():
    repo = MemoryOrderRepository()
    with pytest.raises(NotFoundError) as info:
        repo.get("fake_id", "someone_else")
    assert info.value.order_id == "fake_id"


def test_update_replaces_stored_order():
    repo = MemoryOrderRepository()
    target = Order(id="fake_id", customer_id="fake_customerID", status="paid")
    repo.update(target, lambda o: replace(o, status="ready"))
    assert repo.get("fake_id", "fake_customerID").status == "ready"


def test_update_passes_given_order_to_fn():
    repo = MemoryOrderRepository()
    seen = []
    target = Order(id="fake_id", customer_id="fake_customerID", status="paid")
    repo.update(target, lambda o: seen.append(o) or o)
    assert seen == [target]


def test_update_missing_raises():
    repo = MemoryOrderRepository()
    with pytest.raises(NotFoundError):
        repo.update(Order(id="nope", customer_id="c"), lambda o: o)


def test_update_fn_error_propagates_and_keeps_store():
    repo = MemoryOrderRepository()

    def fail(order):
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        repo.update(Order(id="fake_id", customer_id="fake_customerID"), fail)
    assert repo.get("fake_id", "fake_customerID").status == "fake_status"