"""In-process catalog adapter for the orders domain.

``DjangoCatalogReader`` implements ``CatalogPort`` on top of the
storefront's own ``catalog.ProductModel`` table without any network call.
It is the default wiring and the one used by the test-suite.
"""

from apps.catalog.models import ProductModel

from .domain import CatalogPort, ProductSnapshot
from .errors import ProductNotFound


class DjangoCatalogReader(CatalogPort):
    """Reads product snapshots straight from the catalog table."""

    def resolve(self, product_id: int) -> ProductSnapshot:
        """Return name, primary image and prices of ``product_id``.

        Raises:
            ProductNotFound: If no product row has this id.
        """
        try:
            product = ProductModel.objects.get(pk=product_id)
        except ProductModel.DoesNotExist:
            raise ProductNotFound(product_id) from None
        return ProductSnapshot(
            product_id=product.pk,
            name=product.name,
            image=product.primary_image,
            price_cents=product.price_cents,
            sale_price_cents=product.sale_price_cents,
        )
