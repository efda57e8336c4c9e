"""
Pytest fixtures and configuration for Storefront tests

This file provides shared fixtures that can be used across all test modules.
"""
import json
import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import httpx
import pytest
from jose import jwt

from storefront.core.config import Settings
from storefront.core.storage import MemoryStorage
from storefront.domain.cart import ProductInfo, ProductKind
from storefront.domain.identity import AuthUser, IdentityKind
from storefront.services.credentials_service import CredentialsService

TEST_SECRET = "test-secret"
BACKEND_URL = "http://backend.test/api"


def make_token(expires_in: timedelta = timedelta(hours=1), **claims) -> str:
    """Mint an HS256 token whose exp is now + expires_in"""
    payload = {"sub": "1", **claims}
    if expires_in is not None:
        payload["exp"] = int((datetime.now(timezone.utc) + expires_in).timestamp())
    return jwt.encode(payload, TEST_SECRET, algorithm="HS256")


def cart_payload(items=None, total=0, cart_id=1, user_id=2) -> dict:
    """Cart API envelope around a cart with the given server items"""
    return {
        "success": True,
        "data": {
            "id": cart_id,
            "userId": user_id,
            "items": items or [],
            "totalAmount": total,
            "createdAt": "2025-01-01T00:00:00Z",
            "updatedAt": "2025-01-01T00:00:00Z",
        },
    }


def server_item(item_id, variation_id, quantity, price, kind="GIFTCARD") -> dict:
    return {
        "id": item_id,
        "variationId": variation_id,
        "quantity": quantity,
        "price": price,
        "product": {"id": 100 + variation_id, "name": f"Product {variation_id}", "kind": kind},
        "variation": {"id": variation_id, "name": f"Variation {variation_id}", "price": price,
                      "duration": 30, "maxUsers": 1},
    }


@pytest.fixture
def admin_user():
    return AuthUser(id="1", name="Admin", email="admin@example.com",
                    phone_number="+100000001", user_type=IdentityKind.ADMIN)


@pytest.fixture
def customer_user():
    return AuthUser(id="2", name="Customer", email="customer@example.com",
                    phone_number="+100000002", user_type=IdentityKind.CUSTOMER)


@pytest.fixture
def session_storage():
    """Session-lifetime scope (admin credentials)"""
    return MemoryStorage()


@pytest.fixture
def persistent_storage():
    """Persistent scope (customer credentials + guest cart)"""
    return MemoryStorage()


@pytest.fixture
def credentials(session_storage, persistent_storage):
    return CredentialsService(session_storage, persistent_storage)


@pytest.fixture
def gift_card_info():
    return ProductInfo(
        product_id=107,
        product_name="Gift Card",
        product_kind=ProductKind.GIFTCARD,
        variation_name="$10",
        price=Decimal("10"),
    )


@pytest.fixture
def service_info():
    return ProductInfo(
        product_id=109,
        product_name="Streaming",
        product_kind=ProductKind.SERVICE,
        variation_name="1 month",
        price=Decimal("25"),
        account_type="new",
        email="me@example.com",
        password="secret",
    )


@pytest.fixture
def test_settings(tmp_path):
    return Settings(API_BASE_URL=BACKEND_URL, STOREFRONT_DATA_DIR=str(tmp_path))


class FakeCommerceBackend:
    """
    In-memory commerce backend served through httpx.MockTransport

    Cart endpoints require a bearer token; variations listed in
    ``rejected`` answer 400 with a bilingual message.
    """

    CATALOG = {
        7: (Decimal("10"), "GIFTCARD"),
        8: (Decimal("15"), "GIFTCARD"),
        9: (Decimal("25"), "SERVICE"),
    }

    def __init__(self, users=None):
        self.users = users or {}
        self.lines = {}
        self.next_id = 1
        self.rejected = set()
        self.requests = []

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def _cart(self):
        items = []
        total = Decimal("0")
        for item_id, (variation_id, quantity) in self.lines.items():
            price, kind = self.CATALOG[variation_id]
            items.append(server_item(item_id, variation_id, quantity, float(price), kind))
            total += price * quantity
        return httpx.Response(200, json=cart_payload(items, float(total)))

    def _reject(self, status, en):
        return httpx.Response(status, json={"success": False, "message": {"en": en, "ar": "خطأ"}})

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.replace("/api", "", 1)
        body = json.loads(request.content) if request.content else {}

        if path == "/users-auth/login":
            entry = self.users.get(body.get("email"))
            if not entry or entry["password"] != body.get("password"):
                return self._reject(401, "Invalid credentials")
            return httpx.Response(200, json={"success": True, "data": {
                "user": entry["user"], "token": entry["token"]}})

        if not request.headers.get("Authorization", "").startswith("Bearer "):
            return self._reject(401, "Unauthorized")

        if path == "/cart" and request.method == "GET":
            return self._cart()
        if path == "/cart" and request.method == "DELETE":
            self.lines = {}
            return self._cart()
        if path == "/cart/items" and request.method == "POST":
            variation_id = body["variationId"]
            if variation_id in self.rejected or variation_id not in self.CATALOG:
                return self._reject(400, f"Variation {variation_id} unavailable")
            for item_id, (existing, quantity) in self.lines.items():
                if existing == variation_id:
                    self.lines[item_id] = (existing, quantity + body["quantity"])
                    return self._cart()
            self.lines[self.next_id] = (variation_id, body["quantity"])
            self.next_id += 1
            return self._cart()

        match = re.fullmatch(r"/cart/items/(\d+)", path)
        if match:
            item_id = int(match.group(1))
            if item_id not in self.lines:
                return self._reject(404, "Cart item not found")
            if request.method == "PUT":
                self.lines[item_id] = (self.lines[item_id][0], body["quantity"])
            elif request.method == "DELETE":
                del self.lines[item_id]
            return self._cart()

        return httpx.Response(404, json={"success": False})


@pytest.fixture
def backend(customer_user, admin_user):
    customer_wire = customer_user.model_dump(mode="json", by_alias=True)
    admin_wire = {**admin_user.model_dump(mode="json", by_alias=True), "twofaEnabled": True}
    return FakeCommerceBackend(users={
        "customer@example.com": {"password": "pw", "user": customer_wire, "token": make_token()},
        "admin@example.com": {"password": "pw", "user": admin_wire, "token": make_token()},
    })


@pytest.fixture
def token_factory():
    return make_token


@pytest.fixture
def cart_factory():
    return cart_payload


@pytest.fixture
def item_factory():
    return server_item
