"""Domain models and ports for orders.

This module contains the enumerations persisted on an order, the
dataclasses that travel between the service, the repository and the
views, and protocol definitions (ports) for the catalog lookup and the
order store. Money is always integer minor units (cents).
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Protocol
from uuid import UUID


# ---- Enums ----
class OrderStatus(str, Enum):
    """Fulfilment lifecycle of an order."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Payment lifecycle of an order, independent of ``OrderStatus``."""

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class Currency(str, Enum):
    BYN = "BYN"
    EUR = "EUR"
    USD = "USD"
    RUB = "RUB"


class PaymentMethod(str, Enum):
    BEPAID = "bepaid"
    CASH = "cash"
    TRANSFER = "transfer"


# ---- Value objects ----
@dataclass(frozen=True)
class Address:
    country: str
    city: str
    address: str
    postal_code: Optional[str] = None
    region: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "country": self.country,
            "city": self.city,
            "address": self.address,
            "postal_code": self.postal_code,
            "region": self.region,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Address":
        return cls(
            country=data["country"],
            city=data["city"],
            address=data["address"],
            postal_code=data.get("postal_code"),
            region=data.get("region"),
        )


@dataclass(frozen=True)
class CustomerInfo:
    email: str
    first_name: str
    last_name: str
    phone: str


@dataclass(frozen=True)
class LineItemRequest:
    """A line item as submitted by the client at checkout.

    Color and size are free-form and are not checked against the
    product's options.
    """

    product_id: int
    quantity: int
    selected_color: Optional[str] = None
    selected_size: Optional[str] = None


@dataclass(frozen=True)
class ProductSnapshot:
    """What the catalog says about a product at order-placement time."""

    product_id: int
    name: str
    image: Optional[str]
    price_cents: int
    sale_price_cents: Optional[int] = None

    @property
    def effective_price_cents(self) -> int:
        if self.sale_price_cents is not None:
            return self.sale_price_cents
        return self.price_cents


# ---- Entities ----
@dataclass(frozen=True)
class OrderItem:
    """A line of a placed order.

    ``unit_price_cents``, ``name`` and ``image`` are copies taken from the
    catalog when the order was created and are never refreshed. The
    product id is a soft reference: the product may change or disappear.
    """

    product_id: int
    quantity: int
    unit_price_cents: int
    name: str
    image: Optional[str] = None
    selected_color: Optional[str] = None
    selected_size: Optional[str] = None

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity


@dataclass
class Order:
    """Aggregate root owning its ``OrderItem`` children.

    Attributes:
        id: Persistent identifier, or None before the order is saved.
        order_number: Human-readable unique number assigned at creation.
        version: Incremented on every status update; used to detect
            concurrent writers.
    """

    id: Optional[UUID]
    order_number: str
    customer: CustomerInfo
    shipping_address: Address
    billing_address: Address
    items: List[OrderItem]
    subtotal_cents: int
    shipping_cents: int
    tax_cents: int
    total_cents: int
    currency: Currency = Currency.BYN
    payment_method: PaymentMethod = PaymentMethod.BEPAID
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    notes: Optional[str] = None
    version: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = field(default=None)


# ---- Ports (DIP) ----
class CatalogPort(Protocol):
    """Port used to read a product's current name, image and prices."""

    def resolve(self, product_id: int) -> ProductSnapshot:
        """Return the current snapshot of ``product_id``.

        Raises:
            ProductNotFound: If the id does not resolve to a product.
        """
        raise NotImplementedError()


class OrderRepositoryPort(Protocol):
    """Port describing the order store used by the service."""

    def add(self, order: Order) -> Order:
        """Persist an order and all of its items, or nothing at all.

        Returns:
            The stored order with ``id`` and timestamps populated.

        Raises:
            OrderNumberTaken: If ``order.order_number`` is already used.
        """
        raise NotImplementedError()

    def get(self, order_id: UUID) -> Order:
        raise NotImplementedError()

    def get_by_number(self, order_number: str) -> Order:
        raise NotImplementedError()

    def list(self, status: Optional[OrderStatus], limit: int, offset: int) -> List[Order]:
        raise NotImplementedError()

    def count(self, status: Optional[OrderStatus]) -> int:
        raise NotImplementedError()

    def update_status(
        self,
        order_id: UUID,
        status: OrderStatus,
        payment_status: Optional[PaymentStatus],
        expected_version: int,
    ) -> Order:
        """Write new states if the stored version still equals ``expected_version``.

        Raises:
            OrderNotFound: If the order does not exist.
            ConcurrentModification: If the stored version differs.
        """
        raise NotImplementedError()
