"""Pydantic schemas for the orders API.

Request DTOs validate and normalize incoming JSON before anything reaches
the service; read DTOs shape what the API returns. Field names are
snake_case on the wire and money is integer cents.
"""

import re
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .domain import (
    Address,
    Currency,
    CustomerInfo,
    LineItemRequest,
    Order,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class AddressIn(BaseModel):
    """Shipping or billing address as entered at checkout.

    Lengths beyond "present" are left to the address validator so that it
    can report every problem at once. Values are passed on as submitted,
    without trimming.
    """

    country: str = Field(min_length=1, max_length=100)
    city: str = Field(min_length=1, max_length=100)
    address: str = Field(min_length=1, max_length=255)
    postal_code: Optional[str] = Field(default=None, max_length=20)
    region: Optional[str] = Field(default=None, max_length=100)

    def to_domain(self) -> Address:
        return Address(
            country=self.country,
            city=self.city,
            address=self.address,
            postal_code=self.postal_code,
            region=self.region,
        )


class LineItemIn(BaseModel):
    """A cart line submitted for checkout."""

    product_id: int = Field(gt=0)
    quantity: int = Field(ge=1)
    selected_color: Optional[str] = Field(default=None, max_length=64)
    selected_size: Optional[str] = Field(default=None, max_length=64)

    def to_domain(self) -> LineItemRequest:
        return LineItemRequest(
            product_id=self.product_id,
            quantity=self.quantity,
            selected_color=self.selected_color,
            selected_size=self.selected_size,
        )


class CreateOrderDTO(BaseModel):
    """Schema for placing an order.

    Attributes:
        email: Customer email, lower-cased.
        currency: One of BYN, EUR, USD, RUB (normalized to uppercase);
            defaults to BYN.
        payment_method: One of bepaid, cash, transfer; defaults to bepaid.
        billing_address: Optional; the shipping address is used when absent.
        items: At least one line item.
    """

    email: str = Field(max_length=254)
    first_name: str = Field(min_length=1, max_length=120)
    last_name: str = Field(min_length=1, max_length=120)
    phone: str = Field(min_length=1, max_length=40)
    shipping_address: AddressIn
    billing_address: Optional[AddressIn] = None
    currency: Currency = Currency.BYN
    payment_method: PaymentMethod = PaymentMethod.BEPAID
    items: list[LineItemIn] = Field(min_length=1)
    notes: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v2 = v.strip().lower()
        if not EMAIL_RE.match(v2):
            raise ValueError("Invalid email address")
        return v2

    @field_validator("currency", mode="before")
    @classmethod
    def normalize_currency(cls, v):
        return v.upper() if isinstance(v, str) else v

    def customer(self) -> CustomerInfo:
        return CustomerInfo(
            email=self.email,
            first_name=self.first_name.strip(),
            last_name=self.last_name.strip(),
            phone=self.phone.strip(),
        )


class UpdateStatusDTO(BaseModel):
    """Admin request to move an order through its lifecycle.

    ``force`` skips the lifecycle checks; ``expected_version`` makes the
    write fail if someone else changed the order first.
    """

    status: OrderStatus
    payment_status: Optional[PaymentStatus] = None
    force: bool = False
    expected_version: Optional[int] = Field(default=None, ge=1)


class ListOrdersQuery(BaseModel):
    status: Optional[OrderStatus] = None
    limit: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


class AddressCheckDTO(BaseModel):
    valid: bool
    errors: list[str]


class OrderItemReadDTO(BaseModel):
    product_id: int
    quantity: int
    unit_price_cents: int
    line_total_cents: int
    name: str
    image: Optional[str] = None
    selected_color: Optional[str] = None
    selected_size: Optional[str] = None


class OrderReadDTO(BaseModel):
    """Public representation of a stored order."""

    model_config = ConfigDict(use_enum_values=True)

    id: UUID
    order_number: str
    email: str
    first_name: str
    last_name: str
    phone: str
    shipping_address: dict
    billing_address: dict
    items: list[OrderItemReadDTO]
    subtotal_cents: int
    shipping_cents: int
    tax_cents: int
    total_cents: int
    currency: Currency
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    notes: Optional[str] = None
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, order: Order) -> "OrderReadDTO":
        return cls(
            id=order.id,
            order_number=order.order_number,
            email=order.customer.email,
            first_name=order.customer.first_name,
            last_name=order.customer.last_name,
            phone=order.customer.phone,
            shipping_address=order.shipping_address.as_dict(),
            billing_address=order.billing_address.as_dict(),
            items=[
                OrderItemReadDTO(
                    product_id=it.product_id,
                    quantity=it.quantity,
                    unit_price_cents=it.unit_price_cents,
                    line_total_cents=it.line_total_cents,
                    name=it.name,
                    image=it.image,
                    selected_color=it.selected_color,
                    selected_size=it.selected_size,
                )
                for it in order.items
            ],
            subtotal_cents=order.subtotal_cents,
            shipping_cents=order.shipping_cents,
            tax_cents=order.tax_cents,
            total_cents=order.total_cents,
            currency=order.currency,
            status=order.status,
            payment_status=order.payment_status,
            payment_method=order.payment_method,
            notes=order.notes,
            version=order.version,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )
