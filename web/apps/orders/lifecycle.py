"""Allowed moves for an order's status and payment status.

``status`` only moves forward (pending -> confirmed -> shipped ->
delivered, skipping stages is allowed) and may be cancelled from any
non-terminal state. ``payment_status`` goes pending -> paid -> refunded or
pending -> failed. Re-setting the current value is always accepted. Admin
overrides bypass these rules with ``force=True`` at the service level.
"""

from .domain import OrderStatus, PaymentStatus
from .errors import InvalidTransition

_STATUS_RANK = {
    OrderStatus.PENDING: 0,
    OrderStatus.CONFIRMED: 1,
    OrderStatus.SHIPPED: 2,
    OrderStatus.DELIVERED: 3,
}

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.PAID, PaymentStatus.FAILED}),
    PaymentStatus.PAID: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.FAILED: frozenset(),
    PaymentStatus.REFUNDED: frozenset(),
}


def can_change_status(current: OrderStatus, new: OrderStatus) -> bool:
    if current == new:
        return True
    if current in TERMINAL_STATUSES:
        return False
    if new == OrderStatus.CANCELLED:
        return True
    return _STATUS_RANK[new] > _STATUS_RANK[current]


def can_change_payment_status(current: PaymentStatus, new: PaymentStatus) -> bool:
    return current == new or new in PAYMENT_TRANSITIONS[current]


def check_status(current: OrderStatus, new: OrderStatus) -> None:
    if not can_change_status(current, new):
        raise InvalidTransition("status", current.value, new.value)


def check_payment_status(current: PaymentStatus, new: PaymentStatus) -> None:
    if not can_change_payment_status(current, new):
        raise InvalidTransition("payment_status", current.value, new.value)
