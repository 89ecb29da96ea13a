import pytest

from apps.orders.domain import OrderStatus as S, PaymentStatus as P
from apps.orders.errors import InvalidTransition
from apps.orders.lifecycle import (
    can_change_payment_status,
    can_change_status,
    check_payment_status,
    check_status,
)


@pytest.mark.parametrize(
    "current, new",
    [
        (S.PENDING, S.CONFIRMED),
        (S.PENDING, S.SHIPPED),
        (S.CONFIRMED, S.SHIPPED),
        (S.SHIPPED, S.DELIVERED),
        (S.PENDING, S.CANCELLED),
        (S.SHIPPED, S.CANCELLED),
        (S.CONFIRMED, S.CONFIRMED),
        (S.DELIVERED, S.DELIVERED),
    ],
)
def test_allowed_status_moves(current, new):
    assert can_change_status(current, new)
    check_status(current, new)


@pytest.mark.parametrize(
    "current, new",
    [
        (S.CONFIRMED, S.PENDING),
        (S.SHIPPED, S.CONFIRMED),
        (S.DELIVERED, S.CANCELLED),
        (S.DELIVERED, S.SHIPPED),
        (S.CANCELLED, S.PENDING),
        (S.CANCELLED, S.CONFIRMED),
    ],
)
def test_rejected_status_moves(current, new):
    assert not can_change_status(current, new)
    with pytest.raises(InvalidTransition) as e:
        check_status(current, new)
    assert e.value.detail == {"field": "status", "from": current.value, "to": new.value}


@pytest.mark.parametrize(
    "current, new, allowed",
    [
        (P.PENDING, P.PAID, True),
        (P.PENDING, P.FAILED, True),
        (P.PAID, P.REFUNDED, True),
        (P.PAID, P.PAID, True),
        (P.PENDING, P.REFUNDED, False),
        (P.PAID, P.PENDING, False),
        (P.FAILED, P.PAID, False),
        (P.REFUNDED, P.PAID, False),
    ],
)
def test_payment_moves(current, new, allowed):
    assert can_change_payment_status(current, new) is allowed
    if not allowed:
        with pytest.raises(InvalidTransition):
            check_payment_status(current, new)
