import uuid

import pytest

from apps.orders.domain import (
    Address,
    CustomerInfo,
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
)
from apps.orders.errors import ConcurrentModification, OrderNotFound, OrderNumberTaken
from apps.orders.models import OrderItemModel, OrderModel
from apps.orders.repository import OrderRepository


def new_order(number="LP-1718000000000-ABCDE"):
    addr = Address(country="Belarus", city="Minsk", address="Nezavisimosti 4")
    items = [
        OrderItem(product_id=1, quantity=2, unit_price_cents=8000, name="Dress", image="/d.jpg"),
        OrderItem(product_id=2, quantity=1, unit_price_cents=2550, name="Scarf"),
    ]
    return Order(
        id=None,
        order_number=number,
        customer=CustomerInfo("a@b.by", "Anna", "Ivanova", "+375"),
        shipping_address=addr,
        billing_address=addr,
        items=items,
        subtotal_cents=18550,
        shipping_cents=0,
        tax_cents=0,
        total_cents=18550,
    )


@pytest.mark.django_db
def test_add_round_trips_aggregate():
    repo = OrderRepository()
    saved = repo.add(new_order())
    assert saved.id is not None
    assert saved.created_at is not None
    assert saved.version == 1
    assert [i.name for i in saved.items] == ["Dress", "Scarf"]
    assert saved.shipping_address == saved.billing_address
    assert repo.get_by_number(saved.order_number) == saved


@pytest.mark.django_db
def test_duplicate_order_number_raises_and_writes_nothing():
    repo = OrderRepository()
    repo.add(new_order())
    with pytest.raises(OrderNumberTaken):
        repo.add(new_order())
    assert OrderModel.objects.count() == 1
    assert OrderItemModel.objects.count() == 2


@pytest.mark.django_db
def test_update_status_bumps_version_and_keeps_payment_status():
    repo = OrderRepository()
    saved = repo.add(new_order())
    out = repo.update_status(saved.id, OrderStatus.CONFIRMED, None, expected_version=1)
    assert out.status == OrderStatus.CONFIRMED
    assert out.payment_status == PaymentStatus.PENDING
    assert out.version == 2
    assert out.updated_at >= saved.updated_at


@pytest.mark.django_db
def test_update_status_with_stale_version_changes_nothing():
    repo = OrderRepository()
    saved = repo.add(new_order())
    repo.update_status(saved.id, OrderStatus.CONFIRMED, None, expected_version=1)
    with pytest.raises(ConcurrentModification):
        repo.update_status(saved.id, OrderStatus.CANCELLED, PaymentStatus.FAILED, expected_version=1)
    row = OrderModel.objects.get(id=saved.id)
    assert (row.status, row.payment_status, row.version) == ("confirmed", "pending", 2)


@pytest.mark.django_db
def test_missing_orders_raise_not_found():
    repo = OrderRepository()
    with pytest.raises(OrderNotFound):
        repo.get(uuid.uuid4())
    with pytest.raises(OrderNotFound):
        repo.get_by_number("LP-0-XXXXX")
    with pytest.raises(OrderNotFound):
        repo.update_status(uuid.uuid4(), OrderStatus.SHIPPED, None, expected_version=1)
