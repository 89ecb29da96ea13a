from django.db import models
from django.db.models import F, Q


class ProductModel(models.Model):
    """Catalog entry read by the order engine at checkout.

    Prices are integer minor units of the storefront currency. ``images`` is
    an ordered list of image URLs; the first one is the primary image.
    """

    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    description = models.TextField(blank=True, default="")
    price_cents = models.PositiveIntegerField()
    sale_price_cents = models.PositiveIntegerField(null=True, blank=True)
    images = models.JSONField(default=list, blank=True)
    in_stock = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "products"
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(sale_price_cents__isnull=True) | Q(sale_price_cents__lte=F("price_cents")),
                name="products_sale_price_lte_price",
            ),
        ]

    @property
    def primary_image(self):
        return self.images[0] if self.images else None

    def __str__(self):
        return self.name
