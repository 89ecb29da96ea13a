import pytest
from django.core.cache import cache


@pytest.fixture(autouse=True)
def use_local_catalog_for_tests(settings):
    settings.USE_HTTP_ADAPTERS = False


@pytest.fixture(autouse=True)
def reset_throttle_counters():
    # ScopedRateThrottle keeps its history in the default cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def make_product(db):
    from apps.catalog.models import ProductModel

    counter = {"n": 0}

    def _make(price_cents=5000, sale_price_cents=None, name=None, images=None, **kw):
        counter["n"] += 1
        n = counter["n"]
        return ProductModel.objects.create(
            name=name or f"Product {n}",
            slug=kw.pop("slug", f"product-{n}"),
            price_cents=price_cents,
            sale_price_cents=sale_price_cents,
            images=images if images is not None else [f"/img/product-{n}.jpg"],
            **kw,
        )

    return _make


@pytest.fixture
def checkout_payload():
    """Build a valid create-order payload for the given (product_id, qty) lines."""

    def _payload(*lines, **overrides):
        body = {
            "email": "anna@example.by",
            "first_name": "Anna",
            "last_name": "Ivanova",
            "phone": "+375291234567",
            "shipping_address": {
                "country": "Беларусь",
                "city": "Минск",
                "address": "ул. Ленина 10",
                "postal_code": "220030",
            },
            "items": [{"product_id": pid, "quantity": qty} for pid, qty in lines],
        }
        body.update(overrides)
        return body

    return _payload
