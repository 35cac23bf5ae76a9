"""Tests for the HTTP API"""

import os

import pytest
from fastapi.testclient import TestClient

from storefront.core.config import Settings
from storefront.core.container import build_services
from storefront.main import create_app

from conftest import API_URL, COFFEE


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        api_base_url=API_URL,
        payment_processing_delay=0,
        invoice_output_dir=str(tmp_path / "invoices"),
    )


@pytest.fixture
def client(settings, backend):
    services = build_services(settings, transport=backend.transport)
    with TestClient(create_app(settings, services)) as test_client:
        yield test_client


def _add_coffee(client, quantity=2):
    return client.post("/api/cart/items", json={"product_id": "p-1", "quantity": quantity, "product": COFFEE})


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["backend"] == API_URL


def test_cart_lifecycle(client):
    response = _add_coffee(client)
    assert response.status_code == 200
    body = response.json()
    assert body["item_count"] == 2
    assert body["total"] == 60000
    assert body["items"][0]["storeId"] == "store-1"

    response = client.put("/api/cart/items/p-1", json={"quantity": 5})
    assert response.json()["item_count"] == 5

    response = client.delete("/api/cart/items/p-1")
    assert response.json()["items"] == []

    _add_coffee(client)
    response = client.delete("/api/cart")
    assert response.json()["item_count"] == 0


def test_add_without_store_is_rejected(client):
    product = {key: value for key, value in COFFEE.items() if key != "storeId"}

    response = client.post("/api/cart/items", json={"product_id": "p-1", "product": product})

    assert response.status_code == 400
    assert client.get("/api/cart").json()["items"] == []


def test_add_with_malformed_images_is_rejected(client):
    response = client.post(
        "/api/cart/items",
        json={"product_id": "p-1", "product": {**COFFEE, "images": {"url": "cafe.jpg"}}},
    )

    assert response.status_code == 400


def test_update_unknown_item(client):
    response = client.put("/api/cart/items/missing", json={"quantity": 1})

    assert response.status_code == 404


def test_back_from_shipping_is_a_conflict(client):
    response = client.post("/api/checkout/back")

    assert response.status_code == 409


def test_me_requires_session(client, backend):
    response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert backend.requests == []


def test_invoice_before_confirmation_is_a_conflict(client):
    assert client.get("/api/checkout/invoice").status_code == 409


def test_checkout_flow(client, backend, settings):
    response = client.post("/api/auth/login", json={"email": "ana@example.com", "password": "secret"})
    assert response.json()["user"]["fullName"] == "Ana Mora"

    _add_coffee(client)

    state = client.post("/api/checkout/open").json()
    assert state["shipping"]["full_name"] == "Ana Mora"
    assert state["totals"]["total"] == 67800

    client.patch(
        "/api/checkout/shipping",
        json={"address": "Barrio Escalante", "city": "San Pedro", "postal_code": "11501"},
    )
    state = client.post("/api/checkout/shipping").json()
    assert state["step"] == "payment"

    state = client.patch(
        "/api/checkout/payment",
        json={"card_number": "4242424242424242", "expiry_date": "1228", "cvv": "123"},
    ).json()
    assert state["payment"]["card_number"] == "**** **** **** 4242"
    assert state["payment"]["expiry_date"] == "12/28"

    state = client.post("/api/checkout/payment").json()
    assert state["step"] == "confirmation"
    assert state["errors"] == {}
    assert state["confirmation"]["order"]["orderNumber"] == "ORD-1001"
    assert client.get("/api/cart").json()["items"] == []

    response = client.get("/api/checkout/invoice")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert 'filename="Factura_ORD-1001.pdf"' in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")
    assert os.path.exists(os.path.join(settings.invoice_output_dir, "Factura_ORD-1001.pdf"))

    state = client.post("/api/checkout/close").json()
    assert state["step"] == "shipping"
    assert state["is_open"] is False
    assert state["confirmation"] is None

    order_request = backend.requests_to("POST", "/orders")[0]
    assert order_request.headers["Authorization"] == "Bearer tok-123"


def test_declined_payment_is_reported_in_state(client):
    client.post("/api/auth/login", json={"email": "ana@example.com", "password": "secret"})
    _add_coffee(client)
    client.post("/api/checkout/open")
    client.patch(
        "/api/checkout/shipping",
        json={"address": "Barrio Escalante", "city": "San Pedro", "postal_code": "11501"},
    )
    client.post("/api/checkout/shipping")
    client.patch(
        "/api/checkout/payment",
        json={"card_number": "4000000000000002", "expiry_date": "1228", "cvv": "123"},
    )

    response = client.post("/api/checkout/payment")

    assert response.status_code == 200
    assert response.json()["step"] == "payment"
    assert "insufficient funds" in response.json()["errors"]["submit"]
    assert client.get("/api/cart").json()["item_count"] == 2
