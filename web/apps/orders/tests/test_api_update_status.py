import uuid

import pytest

from apps.orders.models import OrderModel

CREATE_URL = "/api/orders/"
STATUS_URL = "/api/orders/{oid}/status/"


@pytest.fixture
def order(client, make_product, checkout_payload):
    product = make_product()
    r = client.post(CREATE_URL, data=checkout_payload((product.id, 1)), content_type="application/json")
    assert r.status_code == 201
    return r.json()


def patch(client, oid, body):
    return client.patch(STATUS_URL.format(oid=oid), data=body, content_type="application/json")


@pytest.mark.django_db
def test_status_update_keeps_payment_status_when_omitted(client, order):
    r = patch(client, order["id"], {"status": "shipped"})
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "shipped"
    assert body["payment_status"] == "pending"
    assert body["version"] == order["version"] + 1

    row = OrderModel.objects.get(id=order["id"])
    assert row.status == "shipped"
    assert row.payment_status == "pending"
    assert row.updated_at >= row.created_at


@pytest.mark.django_db
def test_status_and_payment_status_update_together(client, order):
    r = patch(client, order["id"], {"status": "confirmed", "payment_status": "paid"})
    assert r.status_code == 200
    assert (r.json()["status"], r.json()["payment_status"]) == ("confirmed", "paid")


@pytest.mark.django_db
def test_backward_move_returns_409_and_leaves_order_unchanged(client, order):
    patch(client, order["id"], {"status": "delivered"})
    r = patch(client, order["id"], {"status": "pending"})
    assert r.status_code == 409
    assert r.json() == {"detail": "INVALID_TRANSITION", "field": "status", "from": "delivered", "to": "pending"}
    assert OrderModel.objects.get(id=order["id"]).status == "delivered"


@pytest.mark.django_db
def test_force_allows_admin_override(client, order):
    patch(client, order["id"], {"status": "cancelled"})
    r = patch(client, order["id"], {"status": "confirmed", "force": True})
    assert r.status_code == 200
    assert r.json()["status"] == "confirmed"


@pytest.mark.django_db
def test_stale_version_returns_409(client, order):
    patch(client, order["id"], {"status": "confirmed"})
    r = patch(client, order["id"], {"status": "shipped", "expected_version": order["version"]})
    assert r.status_code == 409
    assert r.json()["detail"] == "CONCURRENT_MODIFICATION"
    assert OrderModel.objects.get(id=order["id"]).status == "confirmed"


@pytest.mark.django_db
def test_unknown_order_returns_404(client):
    r = patch(client, uuid.uuid4(), {"status": "confirmed"})
    assert r.status_code == 404
    assert r.json()["detail"] == "NOT_FOUND"


@pytest.mark.django_db
def test_unknown_status_value_returns_400(client, order):
    r = patch(client, order["id"], {"status": "teleported"})
    assert r.status_code == 400
