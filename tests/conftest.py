"""Shared fixtures: in-memory storage and a fake marketplace backend"""

import json
from typing import Optional

import httpx
import pytest

from storefront.database import CartStore, LocalStorage
from storefront.services.api_client import TOKEN_KEY, USER_KEY, MarketplaceClient
from storefront.services.checkout import CheckoutMachine
from storefront.services.invoices import InvoiceGenerator
from storefront.services.orders import OrderSubmissionClient
from storefront.services.payments import SimulatedPaymentGateway

API_URL = "http://backend.test/api"

USER = {"fullName": "Ana Mora", "phone": "8888-1234", "email": "ana@example.com"}

COFFEE = {
    "name": "Café Tarrazú 1kg",
    "price": 30000,
    "storeId": "store-1",
    "category": "food",
    "images": ["cafe.jpg"],
}


class FakeBackend:
    """
    Stand-in for the marketplace API.

    Records every request; order creation echoes the submitted payload
    back as the created order unless a canned response is set.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.order_response: Optional[httpx.Response] = None
        self.order_number = "ORD-1001"

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/api")

        if request.method == "POST" and path == "/orders":
            if self.order_response is not None:
                return self.order_response
            payload = json.loads(request.content)
            order = {
                "orderNumber": self.order_number,
                "items": payload["items"],
                "subtotal": payload["subtotal"],
                "shippingCost": payload["shippingCost"],
                "tax": payload["tax"],
                "total": payload["total"],
                "status": "confirmed",
                "createdAt": "2026-10-19T15:30:00Z",
            }
            return httpx.Response(201, json={"success": True, "data": order})

        if request.method == "GET" and path.startswith("/orders/"):
            order_id = path.rsplit("/", 1)[-1]
            if order_id == "my-orders":
                return httpx.Response(200, json={"success": True, "data": [{"orderNumber": self.order_number}]})
            return httpx.Response(
                200,
                json={"success": True, "data": {"orderNumber": order_id, "status": "shipped", "total": 67800}},
            )

        if request.method == "POST" and path in ("/auth/login", "/auth/register"):
            return httpx.Response(200, json={"success": True, "data": {"token": "tok-123", "user": USER}})

        if request.method == "POST" and path == "/auth/logout":
            return httpx.Response(200, json={"success": True})

        if request.method == "GET" and path == "/auth/me":
            return httpx.Response(200, json={"success": True, "data": {"user": {**USER, "phone": "7777-0000"}}})

        return httpx.Response(404, json={"success": False, "message": "Not found"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def requests_to(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and r.url.path.removeprefix("/api") == path
        ]


@pytest.fixture
def storage() -> LocalStorage:
    return LocalStorage()


@pytest.fixture
def cart(storage) -> CartStore:
    return CartStore(storage)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def api(storage, backend) -> MarketplaceClient:
    return MarketplaceClient(API_URL, storage, transport=backend.transport)


@pytest.fixture
def signed_in(storage):
    storage.set_item(TOKEN_KEY, "tok-123")
    storage.set_item(USER_KEY, json.dumps(USER))


@pytest.fixture
def gateway() -> SimulatedPaymentGateway:
    return SimulatedPaymentGateway(processing_delay=0)


@pytest.fixture
def orders(api, cart) -> OrderSubmissionClient:
    return OrderSubmissionClient(api=api, cart=cart)


@pytest.fixture
def checkout(cart, gateway, orders, api) -> CheckoutMachine:
    return CheckoutMachine(
        cart=cart,
        gateway=gateway,
        orders=orders,
        invoices=InvoiceGenerator(),
        user_provider=api.get_user,
    )
