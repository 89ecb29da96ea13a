import pytest

from apps.orders.domain import OrderItem, ProductSnapshot
from apps.orders.pricing import (
    FLAT_SHIPPING_FEE_CENTS,
    SHIPPING_THRESHOLD_CENTS,
    compute_totals,
    shipping_for,
)


def item(price_cents, qty):
    return OrderItem(product_id=1, quantity=qty, unit_price_cents=price_cents, name="x")


@pytest.mark.parametrize(
    "subtotal, expected",
    [
        (0, FLAT_SHIPPING_FEE_CENTS),
        (9999, FLAT_SHIPPING_FEE_CENTS),
        (SHIPPING_THRESHOLD_CENTS, FLAT_SHIPPING_FEE_CENTS),
        (SHIPPING_THRESHOLD_CENTS + 1, 0),
        (250_00, 0),
    ],
)
def test_shipping_is_free_only_strictly_above_threshold(subtotal, expected):
    assert shipping_for(subtotal) == expected


def test_totals_sum_lines_exactly():
    # 0.10 * 3 would drift in binary floating point; cents do not
    totals = compute_totals([item(10, 3), item(1999, 2), item(33_33, 1)])
    assert totals.subtotal_cents == 30 + 3998 + 3333
    assert totals.tax_cents == 0
    assert totals.shipping_cents == 1000
    assert totals.total_cents == totals.subtotal_cents + totals.shipping_cents + totals.tax_cents


def test_large_order_ships_free():
    totals = compute_totals([item(60_00, 2)])
    assert totals.subtotal_cents == 120_00
    assert totals.shipping_cents == 0
    assert totals.total_cents == 120_00


@pytest.mark.parametrize(
    "price, sale, expected",
    [(10000, 8000, 8000), (10000, None, 10000), (10000, 0, 0)],
)
def test_effective_price_prefers_sale_price_when_set(price, sale, expected):
    snap = ProductSnapshot(1, "Dress", None, price_cents=price, sale_price_cents=sale)
    assert snap.effective_price_cents == expected
