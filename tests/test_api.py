from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from conftest import ADDRESS, SECRET, clock, sign
from shopcore.api import create_app
from shopcore.api.routers import orders as orders_router
from shopcore.api.routers import payments as payments_router
from shopcore.data.database import get_db
from shopcore.services.order_service import OrderService
from shopcore.services.payment_service import PaymentService


@pytest.fixture
def client(db, gateway, lock, notifications, monkeypatch):
    app = create_app()

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    monkeypatch.setattr(
        orders_router,
        "get_service",
        lambda session: OrderService(session, gateway=gateway, notifications=notifications, clock=clock),
    )
    monkeypatch.setattr(
        payments_router,
        "get_service",
        lambda session: PaymentService(
            session, secret=SECRET, gateway=gateway, lock_service=lock, notifications=notifications
        ),
    )

    return TestClient(app)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_checkout_flow(client, db, make_product):
    product = make_product(price=Decimal("50.00"), inventory=10)

    resp = client.post("/cart/items", params={"owner_id": "u1"}, json={"product_id": product.id, "quantity": 1})
    assert resp.status_code == 200
    resp = client.post("/cart/items", params={"owner_id": "u1"}, json={"product_id": product.id, "quantity": 1})
    cart = resp.json()
    assert len(cart["items"]) == 1
    assert Decimal(cart["subtotal"]) == Decimal("100.00")

    resp = client.post(
        "/orders",
        params={"owner_id": "u1"},
        json={"shipping_address": ADDRESS, "tax_amount": "5", "shipping_amount": "10"},
    )
    assert resp.status_code == 201
    body = resp.json()
    order_id = body["order"]["id"]
    gw_order = body["payment_data"]["order_id"]
    assert Decimal(body["order"]["grand_total"]) == Decimal("115.00")

    payload = {
        "order_id": order_id,
        "gateway_order_id": gw_order,
        "gateway_payment_id": "pay_1",
        "signature": sign(gw_order, "pay_1"),
    }
    resp = client.post("/payments/verify", json=payload)
    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert resp.json()["status"] == "processing"

    #powtorka callbacku - sukces bez zmian
    resp = client.post("/payments/verify", json=payload)
    assert resp.status_code == 200
    assert resp.json()["already_verified"] is True

    db.refresh(product)
    assert product.inventory == 8

    assert client.get("/cart", params={"owner_id": "u1"}).json()["items"] == []
    assert client.get(f"/orders/{order_id}", params={"owner_id": "u1"}).json()["payment_status"] == "completed"


def test_tampered_signature_returns_400(client, make_product, add_line):
    add_line("u1", make_product())
    body = client.post("/orders", params={"owner_id": "u1"}, json={"shipping_address": ADDRESS}).json()

    resp = client.post(
        "/payments/verify",
        json={
            "order_id": body["order"]["id"],
            "gateway_order_id": body["payment_data"]["order_id"],
            "gateway_payment_id": "pay_1",
            "signature": "forged",
        },
    )
    assert resp.status_code == 400


def test_error_mapping(client, make_product):
    assert client.post("/cart/items", params={"owner_id": "u1"}, json={"product_id": 999}).status_code == 404
    assert client.post("/orders", params={"owner_id": "u1"}, json={"shipping_address": ADDRESS}).status_code == 400
    assert client.get("/orders/999", params={"owner_id": "u1"}).status_code == 404

    sold_out = make_product(inventory=0)
    resp = client.post("/cart/items", params={"owner_id": "u1"}, json={"product_id": sold_out.id})
    assert resp.status_code == 400

    #walidacja schematu
    assert client.post("/cart/items", params={"owner_id": "u1"}, json={"product_id": 1, "quantity": 0}).status_code == 422


def test_invalid_transition_returns_409(client, make_product, add_line):
    add_line("u1", make_product())
    order_id = client.post("/orders", params={"owner_id": "u1"}, json={"shipping_address": ADDRESS}).json()["order"]["id"]

    assert client.patch(f"/orders/{order_id}/status", json={"status": "cancelled"}).status_code == 200
    assert client.patch(f"/orders/{order_id}/status", json={"status": "processing"}).status_code == 409


def test_cart_line_update_and_delete(client, make_product):
    product = make_product()
    cart = client.post("/cart/items", params={"owner_id": "u1"}, json={"product_id": product.id}).json()
    line_id = cart["items"][0]["line_id"]

    resp = client.patch(f"/cart/items/{line_id}", params={"owner_id": "u1"}, json={"quantity": 3})
    assert resp.json()["total_items"] == 3

    resp = client.delete(f"/cart/items/{line_id}", params={"owner_id": "u1"})
    assert resp.json()["items"] == []


def test_addresses(client):
    home = client.post("/addresses", params={"owner_id": "u1"}, json={**ADDRESS, "name": "Home"}).json()
    work = client.post("/addresses", params={"owner_id": "u1"}, json={**ADDRESS, "name": "Work"}).json()
    assert home["is_default"] and not work["is_default"]

    listed = client.post(f"/addresses/{work['id']}/default", params={"owner_id": "u1"}).json()
    assert [a["id"] for a in listed if a["is_default"]] == [work["id"]]

    remaining = client.delete(f"/addresses/{work['id']}", params={"owner_id": "u1"}).json()
    assert remaining[0]["id"] == home["id"] and remaining[0]["is_default"]

    assert client.delete("/addresses/missing", params={"owner_id": "u1"}).status_code == 404


def test_payment_methods(client):
    card = client.post("/payment-methods", params={"owner_id": "u1"}, json={"provider_token": "tok_1"}).json()
    assert card["is_default"]
    assert len(client.get("/payment-methods", params={"owner_id": "u1"}).json()) == 1


def test_variants(client, make_product):
    product = make_product()

    first = client.post(f"/products/{product.id}/variants", json={"name": "S", "sku": "V-S"}).json()
    second = client.post(f"/products/{product.id}/variants", json={"name": "M", "sku": "V-M"}).json()
    assert first["is_default"] and not second["is_default"]

    listed = client.post(f"/variants/{second['id']}/default").json()
    assert [v["id"] for v in listed if v["is_default"]] == [second["id"]]

    dup = client.post(f"/products/{product.id}/variants", json={"name": "X", "sku": "V-S"})
    assert dup.status_code == 409
