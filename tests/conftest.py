import json
import re
import time
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx
import pytest
from fastapi.testclient import TestClient
from jose import jwt

from qr_order_scanner.core.config import Settings
from qr_order_scanner.db.base import Base
from qr_order_scanner.main import create_app
from qr_order_scanner.services.shopify.sessions import store_session

SHOP = "test-shop.myshopify.com"
API_KEY = "test-api-key"
API_SECRET = "test-api-secret"
ACCESS_TOKEN = "shpat_test_token"

_OPERATION_RE = re.compile(r"^\s*(query|mutation)\s*(\w+)?")
_ROOT_FIELD_RE = re.compile(r"\{\s*(\w+)")

Canned = Union[Tuple[int, Dict[str, Any]], Callable[[Dict[str, Any]], Tuple[int, Dict[str, Any]]]]


def operation_name(query: str) -> str:
    """named operations by name, anonymous ones by their first root field (shop, orders, ...)."""
    m = _OPERATION_RE.match(query)
    if m and m.group(2):
        return m.group(2)
    root = _ROOT_FIELD_RE.search(query)
    return root.group(1) if root else ""


class FakeAdminAPI:
    """stands in for the Admin GraphQL endpoint; answers by operation name."""

    def __init__(self):
        self.responses: Dict[str, Canned] = {}
        self.calls: List[Dict[str, Any]] = []

    def on(self, name: str, data: Optional[Dict[str, Any]] = None, status: int = 200, errors=None, handler=None):
        if handler is not None:
            self.responses[name] = handler
            return self
        body: Dict[str, Any] = {"data": data}
        if errors is not None:
            body["errors"] = errors
        self.responses[name] = (status, body)
        return self

    def handle(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        name = operation_name(payload["query"])
        self.calls.append({
            "name": name,
            "variables": payload.get("variables") or {},
            "url": str(request.url),
            "token": request.headers.get("X-Shopify-Access-Token"),
        })
        canned = self.responses.get(name)
        if canned is None:
            return httpx.Response(200, json={"data": {}})
        status, body = canned(payload.get("variables") or {}) if callable(canned) else canned
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def names(self) -> List[str]:
        return [c["name"] for c in self.calls]

    def last(self, name: str) -> Dict[str, Any]:
        return [c for c in self.calls if c["name"] == name][-1]


def money(amount: str, currency: str = "JPY") -> Dict[str, Any]:
    return {"shopMoney": {"amount": amount, "currencyCode": currency}}


def order_node(legacy_id: str = "1001", **overrides) -> Dict[str, Any]:
    node = {
        "id": f"gid://shopify/Order/{legacy_id}",
        "legacyResourceId": legacy_id,
        "name": f"#{legacy_id}",
        "email": "taro@example.com",
        "phone": "+819012345678",
        "customer": {
            "displayName": "Taro Tanaka",
            "firstName": "Taro",
            "lastName": "Tanaka",
            "email": "taro@example.com",
        },
        "totalPriceSet": money("5400.0"),
        "subtotalPriceSet": money("5000.0"),
        "totalTaxSet": money("400.0"),
        "totalShippingPriceSet": money("0.0"),
        "displayFinancialStatus": "PAID",
        "displayFulfillmentStatus": "UNFULFILLED",
        "processedAt": "2025-01-15T10:30:00Z",
        "createdAt": "2025-01-15T10:30:00Z",
        "updatedAt": "2025-01-15T11:00:00Z",
        "tags": ["pos"],
        "note": None,
        "shippingAddress": {
            "address1": "1-2-3 Jingumae",
            "city": "Shibuya",
            "province": "Tokyo",
            "zip": "150-0001",
            "country": "Japan",
        },
        "billingAddress": None,
        "lineItems": {
            "edges": [
                {"node": {"title": "T-shirt", "quantity": 2, "variant": {"title": "M"}}},
                {"node": {"title": "Mug", "quantity": 1, "variant": None}},
            ]
        },
        "fulfillments": [],
        "transactions": [],
        "cancelledAt": None,
        "cancelReason": None,
    }
    node.update(overrides)
    return node


def session_token(shop: str = SHOP, secret: str = API_SECRET, audience: str = API_KEY, **claims) -> str:
    now = int(time.time())
    payload = {
        "iss": f"https://{shop}/admin",
        "dest": f"https://{shop}",
        "aud": audience,
        "sub": "42",
        "exp": now + 60,
        "nbf": now - 5,
        "iat": now,
        "jti": "test-jti",
    }
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


def make_settings(**overrides) -> Settings:
    env = {
        "APP_ENV": "test",
        "LOG_LEVEL": "WARNING",
        "DATABASE_URL": "sqlite://",
        "SHOPIFY_API_KEY": API_KEY,
        "SHOPIFY_API_SECRET": API_SECRET,
        "SHOPIFY_APP_URL": "https://scanner.example.com",
        "SCOPES": "read_orders,write_orders",
    }
    env.update(overrides)
    return Settings(env=env)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def admin_api() -> FakeAdminAPI:
    return FakeAdminAPI()


@pytest.fixture
def app(settings, admin_api):
    app = create_app(settings, upstream_transport=admin_api.transport)
    Base.metadata.create_all(app.state.engine)
    db = app.state.session_factory()
    try:
        store_session(db, SHOP, ACCESS_TOKEN, scope=settings.SCOPES)
    finally:
        db.close()
    yield app
    app.state.engine.dispose()


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {session_token()}"}


@pytest.fixture
def client(app, auth_headers):
    c = TestClient(app)
    c.headers.update(auth_headers)
    return c


@pytest.fixture
def anon_client(app):
    return TestClient(app)
