"""Domain service for placing and administering orders.

``OrderService`` turns a checkout request into a persisted, price-frozen
order and drives the status lifecycle afterwards. It talks to the outside
world only through the ``CatalogPort`` and ``OrderRepositoryPort`` it is
constructed with; wiring happens in ``providers.get_order_service``.
"""

import logging
import re
from typing import Callable, List, Optional, Sequence
from uuid import UUID

from .addresses import validate_address
from .domain import (
    Address,
    CatalogPort,
    Currency,
    CustomerInfo,
    LineItemRequest,
    Order,
    OrderItem,
    OrderRepositoryPort,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from .errors import OrderNumberConflict, OrderNumberTaken, ValidationError
from .lifecycle import check_payment_status, check_status
from .numbering import generate_order_number
from .pricing import compute_totals

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MAX_LIST_LIMIT = 100


def _coerce(enum_cls, value, label: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"Unsupported {label}: {value!r}") from None


class OrderService:
    """Creates orders and applies administrative status changes.

    Args:
        catalog: Port resolving product snapshots at checkout.
        orders: Port persisting and loading orders.
        number_factory: Callable returning a fresh order number.
        max_number_attempts: How many order numbers to try before giving up
            when the store reports a collision.
        enforce_shipping_address: Reject orders whose shipping address
            fails ``validate_address``.
    """

    def __init__(
        self,
        catalog: CatalogPort,
        orders: OrderRepositoryPort,
        number_factory: Callable[[], str] = generate_order_number,
        max_number_attempts: int = 3,
        enforce_shipping_address: bool = True,
    ):
        self.catalog = catalog
        self.orders = orders
        self.number_factory = number_factory
        self.max_number_attempts = max(1, max_number_attempts)
        self.enforce_shipping_address = enforce_shipping_address

    # ---- Creation ----
    def create_order(
        self,
        customer: CustomerInfo,
        shipping_address: Address,
        billing_address: Optional[Address],
        currency,
        payment_method,
        items: Sequence[LineItemRequest],
        notes: Optional[str] = None,
    ) -> Order:
        """Validate, price and persist a new order.

        Nothing is written unless every line item resolves; the order and
        its items are stored together by the repository.

        Returns:
            The persisted Order, including its generated order number.

        Raises:
            ValidationError: On malformed customer data, an empty item list,
                a non-positive quantity, an unknown currency or payment
                method, or an undeliverable shipping address.
            ProductNotFound: If any line item references an unknown product.
            OrderNumberConflict: If no unique order number could be stored.
        """
        currency = _coerce(Currency, currency, "currency")
        payment_method = _coerce(PaymentMethod, payment_method, "payment method")
        self._validate_request(customer, shipping_address, items)

        priced = [self._price_line(line) for line in items]
        totals = compute_totals(priced)

        order = Order(
            id=None,
            order_number="",
            customer=customer,
            shipping_address=shipping_address,
            billing_address=billing_address or shipping_address,
            items=priced,
            subtotal_cents=totals.subtotal_cents,
            shipping_cents=totals.shipping_cents,
            tax_cents=totals.tax_cents,
            total_cents=totals.total_cents,
            currency=currency,
            payment_method=payment_method,
            notes=notes or None,
        )
        saved = self._store_with_fresh_number(order)
        logger.info(
            "order created",
            extra={
                "order_number": saved.order_number,
                "items": len(saved.items),
                "total_cents": saved.total_cents,
                "currency": saved.currency.value,
            },
        )
        return saved

    def _validate_request(self, customer, shipping_address, items) -> None:
        errors = []
        if not EMAIL_RE.match(customer.email or ""):
            errors.append("Invalid email address")
        if not (customer.first_name or "").strip():
            errors.append("First name is required")
        if not (customer.last_name or "").strip():
            errors.append("Last name is required")
        if not (customer.phone or "").strip():
            errors.append("Phone is required")
        if not items:
            errors.append("Order must contain at least one item")
        for line in items:
            if not isinstance(line.quantity, int) or line.quantity < 1:
                errors.append(f"Quantity for product {line.product_id} must be at least 1")
        if self.enforce_shipping_address:
            errors.extend(validate_address(shipping_address).errors)
        if errors:
            raise ValidationError(*errors)

    def _price_line(self, line: LineItemRequest) -> OrderItem:
        product = self.catalog.resolve(line.product_id)
        return OrderItem(
            product_id=line.product_id,
            quantity=line.quantity,
            unit_price_cents=product.effective_price_cents,
            name=product.name,
            image=product.image,
            selected_color=line.selected_color,
            selected_size=line.selected_size,
        )

    def _store_with_fresh_number(self, order: Order) -> Order:
        for attempt in range(1, self.max_number_attempts + 1):
            order.order_number = self.number_factory()
            try:
                return self.orders.add(order)
            except OrderNumberTaken:
                logger.warning(
                    "order number collision",
                    extra={"order_number": order.order_number, "attempt": attempt},
                )
        raise OrderNumberConflict({"attempts": self.max_number_attempts})

    # ---- Queries ----
    def get_order_by_number(self, order_number: str) -> Order:
        return self.orders.get_by_number(order_number)

    def list_orders(self, status=None, limit: int = 20, offset: int = 0) -> List[Order]:
        status = _coerce(OrderStatus, status, "status") if status is not None else None
        if not 1 <= limit <= MAX_LIST_LIMIT:
            raise ValidationError(f"limit must be between 1 and {MAX_LIST_LIMIT}")
        if offset < 0:
            raise ValidationError("offset must not be negative")
        return self.orders.list(status, limit, offset)

    def count_orders(self, status=None) -> int:
        status = _coerce(OrderStatus, status, "status") if status is not None else None
        return self.orders.count(status)

    # ---- Lifecycle ----
    def update_order_status(
        self,
        order_id: UUID,
        new_status,
        new_payment_status=None,
        *,
        force: bool = False,
        expected_version: Optional[int] = None,
    ) -> Order:
        """Move an order to ``new_status`` and optionally ``new_payment_status``.

        The payment status is left untouched when ``new_payment_status`` is
        None. Without ``force`` both moves must be allowed by the lifecycle.
        The write only succeeds if the order's version is still the one that
        was read (or ``expected_version`` when given).

        Raises:
            OrderNotFound: If ``order_id`` does not resolve.
            InvalidTransition: If a requested move is not allowed.
            ConcurrentModification: If the order changed meanwhile.
            ValidationError: On an unknown status value.
        """
        new_status = _coerce(OrderStatus, new_status, "status")
        if new_payment_status is not None:
            new_payment_status = _coerce(PaymentStatus, new_payment_status, "payment status")

        current = self.orders.get(order_id)
        version = current.version if expected_version is None else expected_version

        if force:
            logger.warning(
                "forced order status change",
                extra={
                    "order_number": current.order_number,
                    "from_status": current.status.value,
                    "to_status": new_status.value,
                    "to_payment_status": new_payment_status.value if new_payment_status else None,
                },
            )
        else:
            check_status(current.status, new_status)
            if new_payment_status is not None:
                check_payment_status(current.payment_status, new_payment_status)

        updated = self.orders.update_status(order_id, new_status, new_payment_status, version)
        logger.info(
            "order status updated",
            extra={
                "order_number": updated.order_number,
                "status": updated.status.value,
                "payment_status": updated.payment_status.value,
                "version": updated.version,
            },
        )
        return updated
