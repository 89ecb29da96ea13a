import uuid
from django.db import models


class OrderModel(models.Model):
    # UUID PK exposed by the API; order_number is what customers see
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(max_length=40, unique=True, editable=False)

    class Status(models.TextChoices):
        PENDING = "pending"
        CONFIRMED = "confirmed"
        SHIPPED = "shipped"
        DELIVERED = "delivered"
        CANCELLED = "cancelled"

    class PaymentStatus(models.TextChoices):
        PENDING = "pending"
        PAID = "paid"
        FAILED = "failed"
        REFUNDED = "refunded"

    class Currency(models.TextChoices):
        BYN = "BYN"
        EUR = "EUR"
        USD = "USD"
        RUB = "RUB"

    class PaymentMethod(models.TextChoices):
        BEPAID = "bepaid"
        CASH = "cash"
        TRANSFER = "transfer"

    email = models.EmailField()
    first_name = models.CharField(max_length=120)
    last_name = models.CharField(max_length=120)
    phone = models.CharField(max_length=40)
    shipping_address = models.JSONField()
    billing_address = models.JSONField()

    # Money in minor units of `currency`
    subtotal_cents = models.PositiveIntegerField()
    shipping_cents = models.PositiveIntegerField(default=0)
    tax_cents = models.PositiveIntegerField(default=0)
    total_cents = models.PositiveIntegerField()
    currency = models.CharField(max_length=3, choices=Currency.choices, default=Currency.BYN)

    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    payment_status = models.CharField(
        max_length=16, choices=PaymentStatus.choices, default=PaymentStatus.PENDING
    )
    payment_method = models.CharField(
        max_length=16, choices=PaymentMethod.choices, default=PaymentMethod.BEPAID
    )
    notes = models.TextField(null=True, blank=True)

    # Bumped on every status update (optimistic locking)
    version = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at", "-order_number"]
        indexes = [models.Index(fields=["status", "-created_at"])]


class OrderItemModel(models.Model):
    order = models.ForeignKey(OrderModel, related_name="items", on_delete=models.CASCADE)
    # Soft reference: the product may later change or be deleted
    product_id = models.BigIntegerField()
    quantity = models.PositiveIntegerField()
    unit_price_cents = models.PositiveIntegerField()
    name = models.CharField(max_length=255)
    image = models.CharField(max_length=500, null=True, blank=True)
    selected_color = models.CharField(max_length=64, null=True, blank=True)
    selected_size = models.CharField(max_length=64, null=True, blank=True)

    class Meta:
        db_table = "order_items"
        ordering = ["id"]


class IdempotencyKey(models.Model):
    key = models.CharField(max_length=128, primary_key=True)
    request_hash = models.CharField(max_length=64)
    response_status = models.PositiveSmallIntegerField(default=0)
    response_body = models.JSONField(default=dict)
    order = models.ForeignKey(OrderModel, null=True, blank=True, on_delete=models.SET_NULL)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "idempotency_keys"
