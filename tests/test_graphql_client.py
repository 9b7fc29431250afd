import json

import httpx
import pytest

from qr_order_scanner.services.shopify.client import (
    AdminGraphQLClient,
    GraphQLQueryError,
    UpstreamError,
    error_messages,
    to_order_gid,
)

SHOP = "client-test.myshopify.com"


def make_client(handler, **kwargs) -> AdminGraphQLClient:
    return AdminGraphQLClient(SHOP, "shpat_x", transport=httpx.MockTransport(handler), **kwargs)


@pytest.fixture
def no_sleep(mocker):
    return mocker.patch("qr_order_scanner.services.shopify.client.asyncio.sleep", new_callable=mocker.AsyncMock)


def test_to_order_gid():
    assert to_order_gid("1001") == "gid://shopify/Order/1001"
    assert to_order_gid(" 1001 ") == "gid://shopify/Order/1001"
    assert to_order_gid("gid://shopify/Order/7") == "gid://shopify/Order/7"


def test_error_messages_joins():
    assert error_messages([{"message": "a"}, {"message": "b"}, "c"]) == "a, b, c"


def test_endpoint_uses_version():
    client = AdminGraphQLClient(SHOP, "t", api_version="2025-01")
    assert client.endpoint == f"https://{SHOP}/admin/api/2025-01/graphql.json"


async def test_execute_sends_token_and_variables():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["token"] = request.headers["X-Shopify-Access-Token"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"data": {"shop": {"name": "Test"}}, "extensions": {"cost": {}}})

    res = await make_client(handler).execute("query { shop { name } }", {"a": 1})
    assert res.ok
    assert res.data == {"shop": {"name": "Test"}}
    assert res.errors is None
    assert res.extensions == {"cost": {}}
    assert seen["url"].endswith("/admin/api/2024-10/graphql.json")
    assert seen["token"] == "shpat_x"
    assert seen["body"]["variables"] == {"a": 1}


async def test_execute_returns_graphql_errors():
    def handler(request):
        return httpx.Response(200, json={"errors": "Field 'nope' doesn't exist"})

    res = await make_client(handler).execute("query { nope }")
    assert res.errors == [{"message": "Field 'nope' doesn't exist"}]


async def test_query_raises_on_errors():
    def handler(request):
        return httpx.Response(200, json={"data": None, "errors": [{"message": "Access denied"}]})

    with pytest.raises(GraphQLQueryError) as exc:
        await make_client(handler).query("query { orders(first: 1) { edges { node { id } } } }")
    assert str(exc.value) == "Access denied"
    assert exc.value.errors == [{"message": "Access denied"}]


async def test_query_raises_on_http_error():
    def handler(request):
        return httpx.Response(401, text="Unauthorized")

    with pytest.raises(UpstreamError) as exc:
        await make_client(handler).query("query { shop { name } }")
    assert exc.value.status_code == 401


async def test_transport_failure_is_upstream_error():
    def handler(request):
        raise httpx.ConnectError("boom", request=request)

    with pytest.raises(UpstreamError):
        await make_client(handler).execute("query { shop { name } }")


async def test_retries_http_throttle_with_retry_after(no_sleep):
    responses = iter([
        httpx.Response(429, headers={"Retry-After": "2"}, json={}),
        httpx.Response(200, json={"data": {"ok": True}}),
    ])

    def handler(request):
        return next(responses)

    res = await make_client(handler).execute("query { shop { name } }")
    assert res.data == {"ok": True}
    no_sleep.assert_awaited_once_with(2.0)


async def test_retries_graphql_throttled(no_sleep):
    calls = []

    def handler(request):
        calls.append(1)
        if len(calls) < 3:
            return httpx.Response(200, json={"errors": [{"message": "Throttled", "extensions": {"code": "THROTTLED"}}]})
        return httpx.Response(200, json={"data": {"ok": True}})

    res = await make_client(handler).execute("query { shop { name } }")
    assert res.data == {"ok": True}
    assert len(calls) == 3
    assert no_sleep.await_count == 2


async def test_gives_up_after_max_retries(no_sleep):
    def handler(request):
        return httpx.Response(503, json={})

    res = await make_client(handler, max_retries=2).execute("query { shop { name } }")
    assert res.status == 503
    assert not res.ok
    assert no_sleep.await_count == 1
