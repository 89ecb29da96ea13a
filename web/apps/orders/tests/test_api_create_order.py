"""API tests for the create-order endpoint.

These tests exercise ``POST /api/orders/`` against the real Django
repository and the in-process catalog reader: successful creation with
price snapshots, atomic failure on an unknown product, and payload
validation errors.
"""

import pytest
from django.db import connection

from apps.orders.models import OrderItemModel, OrderModel
from apps.orders.numbering import ORDER_NUMBER_RE

CREATE_URL = "/api/orders/"


@pytest.mark.django_db
def test_create_order_returns_201_with_snapshot_and_totals(client, make_product, checkout_payload):
    """Sale price is charged, shipping is free above 100.00, tax is zero."""
    dress = make_product(price_cents=10000, sale_price_cents=8000, name="Silk dress",
                         images=["/img/dress-front.jpg", "/img/dress-back.jpg"])
    payload = checkout_payload((dress.id, 2))
    payload["items"][0]["selected_color"] = "black"

    r = client.post(CREATE_URL, data=payload, content_type="application/json")
    assert r.status_code == 201
    body = r.json()
    assert ORDER_NUMBER_RE.match(body["order_number"])
    assert body["status"] == "pending"
    assert body["payment_status"] == "pending"
    assert body["currency"] == "BYN"
    assert body["payment_method"] == "bepaid"
    assert body["subtotal_cents"] == 16000
    assert body["shipping_cents"] == 0
    assert body["tax_cents"] == 0
    assert body["total_cents"] == 16000
    (item,) = body["items"]
    assert item == {
        "product_id": dress.id,
        "quantity": 2,
        "unit_price_cents": 8000,
        "line_total_cents": 16000,
        "name": "Silk dress",
        "image": "/img/dress-front.jpg",
        "selected_color": "black",
        "selected_size": None,
    }


@pytest.mark.django_db
def test_create_persists_order_and_item_rows(client, make_product, checkout_payload):
    """The order row and its item rows are stored with the frozen values."""
    scarf = make_product(price_cents=2550)
    r = client.post(CREATE_URL, data=checkout_payload((scarf.id, 3)), content_type="application/json")
    assert r.status_code == 201
    number = r.json()["order_number"]

    with connection.cursor() as cur:
        cur.execute(
            "select status, subtotal_cents, shipping_cents, total_cents, currency "
            "from orders where order_number = %s",
            [number],
        )
        row = cur.fetchone()
    assert row == ("pending", 7650, 1000, 8650, "BYN")

    order = OrderModel.objects.get(order_number=number)
    assert order.items.count() == 1
    assert order.items.get().unit_price_cents == 2550


@pytest.mark.django_db
def test_catalog_price_change_does_not_touch_placed_order(client, make_product, checkout_payload):
    product = make_product(price_cents=10000, sale_price_cents=8000)
    r = client.post(CREATE_URL, data=checkout_payload((product.id, 2)), content_type="application/json")
    number = r.json()["order_number"]

    product.price_cents = 50000
    product.sale_price_cents = None
    product.name = "Renamed"
    product.save()

    body = client.get(f"/api/orders/by-number/{number}/").json()
    assert body["items"][0]["unit_price_cents"] == 8000
    assert body["items"][0]["name"] != "Renamed"
    assert body["total_cents"] == 16000


@pytest.mark.django_db
def test_billing_address_defaults_to_shipping(client, make_product, checkout_payload):
    product = make_product()
    r = client.post(CREATE_URL, data=checkout_payload((product.id, 1)), content_type="application/json")
    body = r.json()
    assert body["billing_address"] == body["shipping_address"]
    assert body["shipping_address"]["city"] == "Минск"


@pytest.mark.django_db
def test_currency_and_payment_method_are_accepted(client, make_product, checkout_payload):
    product = make_product()
    payload = checkout_payload((product.id, 1), currency="eur", payment_method="cash", notes="Call first")
    r = client.post(CREATE_URL, data=payload, content_type="application/json")
    assert r.status_code == 201
    body = r.json()
    assert body["currency"] == "EUR"
    assert body["payment_method"] == "cash"
    assert body["notes"] == "Call first"


@pytest.mark.django_db
def test_unknown_product_returns_422_and_persists_nothing(client, make_product, checkout_payload):
    product = make_product()
    r = client.post(CREATE_URL, data=checkout_payload((product.id, 1), (987654, 1)),
                    content_type="application/json")
    assert r.status_code == 422
    assert r.json() == {"detail": "PRODUCT_NOT_FOUND", "product_id": 987654}
    assert OrderModel.objects.count() == 0
    assert OrderItemModel.objects.count() == 0


@pytest.mark.django_db
def test_undeliverable_country_returns_400(client, make_product, checkout_payload):
    product = make_product()
    payload = checkout_payload((product.id, 1))
    payload["shipping_address"] = {"country": "Germany", "city": "Berlin", "address": "Hauptstr 1"}
    r = client.post(CREATE_URL, data=payload, content_type="application/json")
    assert r.status_code == 400
    assert r.json()["detail"] == "VALIDATION_ERROR"
    assert OrderModel.objects.count() == 0


@pytest.mark.django_db
@pytest.mark.parametrize(
    "overrides",
    [
        {"email": "not-an-email"},
        {"first_name": ""},
        {"items": []},
        {"items": [{"product_id": 1, "quantity": 0}]},
        {"currency": "GBP"},
        {"payment_method": "bitcoin"},
    ],
)
def test_create_order_validation_error(client, checkout_payload, overrides):
    """Returns 400 when the payload fails DTO validation."""
    payload = checkout_payload((1, 1), **overrides)
    r = client.post(CREATE_URL, data=payload, content_type="application/json")
    assert r.status_code == 400
    assert r.json()["detail"] == "VALIDATION_ERROR"
    assert OrderModel.objects.count() == 0


@pytest.fixture
def http_catalog(settings):
    from apps.orders.http_adapters import _catalog_cb

    settings.USE_HTTP_ADAPTERS = True
    settings.HTTP_RETRY_MAX = 0
    _catalog_cb.on_success()
    yield
    _catalog_cb.on_success()


@pytest.mark.django_db
def test_create_order_resolves_products_over_http(client, http_catalog, monkeypatch, checkout_payload):
    import httpx

    class Resp:
        status_code = 200

        def json(self):
            return {"id": 5, "name": "Coat", "image": None, "price_cents": 120_00, "sale_price_cents": None}

    monkeypatch.setattr(httpx.Client, "get", lambda self, url, headers=None, **kw: Resp())
    r = client.post(CREATE_URL, data=checkout_payload((5, 1)), content_type="application/json")
    assert r.status_code == 201
    assert r.json()["items"][0]["name"] == "Coat"
    assert r.json()["shipping_cents"] == 0


@pytest.mark.django_db
def test_catalog_outage_returns_503_and_persists_nothing(client, http_catalog, monkeypatch, checkout_payload):
    import httpx

    def fake_get(self, url, headers=None, **kw):
        raise httpx.ConnectError("catalog down")

    monkeypatch.setattr(httpx.Client, "get", fake_get)
    r = client.post(CREATE_URL, data=checkout_payload((5, 1)), content_type="application/json")
    assert r.status_code == 503
    assert r.json()["detail"] == "UPSTREAM_UNAVAILABLE"
    assert OrderModel.objects.count() == 0
