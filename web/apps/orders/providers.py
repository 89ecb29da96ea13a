"""Service provider helpers for wiring OrderService with its ports.

``get_order_service`` returns an ``OrderService`` bound to the Django
order repository and to a catalog port: the HTTP catalog client when
``settings.USE_HTTP_ADAPTERS`` is truthy, the in-process
``DjangoCatalogReader`` otherwise (tests and single-process deployments).
"""

from django.conf import settings

from .adapters import DjangoCatalogReader
from .domain import CatalogPort
from .http_adapters import HttpCatalogClient
from .repository import OrderRepository
from .service import OrderService


def get_catalog() -> CatalogPort:
    if getattr(settings, "USE_HTTP_ADAPTERS", False):
        return HttpCatalogClient()
    return DjangoCatalogReader()


def get_order_service() -> OrderService:
    """Return an ``OrderService`` configured from settings."""
    return OrderService(
        catalog=get_catalog(),
        orders=OrderRepository(),
        max_number_attempts=getattr(settings, "ORDER_NUMBER_MAX_ATTEMPTS", 3),
        enforce_shipping_address=getattr(settings, "ORDERS_ENFORCE_SHIPPING_ADDRESS", True),
    )
