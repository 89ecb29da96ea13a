"""Repository layer for persisting orders.

``OrderRepository`` maps between the domain ``Order`` aggregate and the
``OrderModel``/``OrderItemModel`` rows so the service never touches the
Django ORM directly.
"""

from typing import List, Optional
from uuid import UUID

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from .domain import (
    Address,
    Currency,
    CustomerInfo,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from .errors import ConcurrentModification, OrderNotFound, OrderNumberTaken
from .models import OrderItemModel, OrderModel


def to_domain(obj: OrderModel) -> Order:
    """Rebuild an ``Order`` from a stored row and its items."""
    return Order(
        id=obj.id,
        order_number=obj.order_number,
        customer=CustomerInfo(
            email=obj.email,
            first_name=obj.first_name,
            last_name=obj.last_name,
            phone=obj.phone,
        ),
        shipping_address=Address.from_dict(obj.shipping_address),
        billing_address=Address.from_dict(obj.billing_address),
        items=[
            OrderItem(
                product_id=it.product_id,
                quantity=it.quantity,
                unit_price_cents=it.unit_price_cents,
                name=it.name,
                image=it.image,
                selected_color=it.selected_color,
                selected_size=it.selected_size,
            )
            for it in obj.items.all()
        ],
        subtotal_cents=obj.subtotal_cents,
        shipping_cents=obj.shipping_cents,
        tax_cents=obj.tax_cents,
        total_cents=obj.total_cents,
        currency=Currency(obj.currency),
        payment_method=PaymentMethod(obj.payment_method),
        status=OrderStatus(obj.status),
        payment_status=PaymentStatus(obj.payment_status),
        notes=obj.notes,
        version=obj.version,
        created_at=obj.created_at,
        updated_at=obj.updated_at,
    )


class OrderRepository:
    """Persists ``Order`` aggregates using the Django ORM."""

    def add(self, order: Order) -> Order:
        """Insert the order row and its item rows in one transaction.

        Raises:
            OrderNumberTaken: If the order number is already stored. No
                rows are left behind in that case.
        """
        try:
            with transaction.atomic():
                if OrderModel.objects.filter(order_number=order.order_number).exists():
                    raise OrderNumberTaken({"order_number": order.order_number})
                obj = OrderModel.objects.create(
                    order_number=order.order_number,
                    email=order.customer.email,
                    first_name=order.customer.first_name,
                    last_name=order.customer.last_name,
                    phone=order.customer.phone,
                    shipping_address=order.shipping_address.as_dict(),
                    billing_address=order.billing_address.as_dict(),
                    subtotal_cents=order.subtotal_cents,
                    shipping_cents=order.shipping_cents,
                    tax_cents=order.tax_cents,
                    total_cents=order.total_cents,
                    currency=order.currency.value,
                    payment_method=order.payment_method.value,
                    status=order.status.value,
                    payment_status=order.payment_status.value,
                    notes=order.notes,
                )
                OrderItemModel.objects.bulk_create(
                    [
                        OrderItemModel(
                            order=obj,
                            product_id=it.product_id,
                            quantity=it.quantity,
                            unit_price_cents=it.unit_price_cents,
                            name=it.name,
                            image=it.image,
                            selected_color=it.selected_color,
                            selected_size=it.selected_size,
                        )
                        for it in order.items
                    ]
                )
        except IntegrityError:
            # Lost a race on the unique order_number between check and insert
            if OrderModel.objects.filter(order_number=order.order_number).exists():
                raise OrderNumberTaken({"order_number": order.order_number})
            raise
        return self.get(obj.id)

    def get(self, order_id: UUID) -> Order:
        try:
            obj = OrderModel.objects.prefetch_related("items").get(id=order_id)
        except OrderModel.DoesNotExist:
            raise OrderNotFound(order_id) from None
        return to_domain(obj)

    def get_by_number(self, order_number: str) -> Order:
        try:
            obj = OrderModel.objects.prefetch_related("items").get(order_number=order_number)
        except OrderModel.DoesNotExist:
            raise OrderNotFound(order_number) from None
        return to_domain(obj)

    def _filtered(self, status: Optional[OrderStatus]):
        qs = OrderModel.objects.all()
        if status is not None:
            qs = qs.filter(status=status.value)
        return qs

    def list(self, status: Optional[OrderStatus], limit: int, offset: int) -> List[Order]:
        qs = self._filtered(status).prefetch_related("items")[offset:offset + limit]
        return [to_domain(o) for o in qs]

    def count(self, status: Optional[OrderStatus]) -> int:
        return self._filtered(status).count()

    def update_status(
        self,
        order_id: UUID,
        status: OrderStatus,
        payment_status: Optional[PaymentStatus],
        expected_version: int,
    ) -> Order:
        """Conditionally write the new states and bump the version.

        ``QuerySet.update`` skips ``auto_now`` so ``updated_at`` is set here.
        """
        changes = {
            "status": status.value,
            "version": F("version") + 1,
            "updated_at": timezone.now(),
        }
        if payment_status is not None:
            changes["payment_status"] = payment_status.value

        rows = OrderModel.objects.filter(id=order_id, version=expected_version).update(**changes)
        if rows == 0:
            if not OrderModel.objects.filter(id=order_id).exists():
                raise OrderNotFound(order_id)
            raise ConcurrentModification(order_id, expected_version)
        return self.get(order_id)
