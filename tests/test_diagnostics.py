from conftest import SHOP, money

SHOP_DATA = {
    "shop": {
        "id": "gid://shopify/Shop/1",
        "name": "Test Shop",
        "email": "owner@example.com",
        "domain": "shop.example.com",
        "myshopifyDomain": SHOP,
        "plan": {"displayName": "Development"},
    }
}

RECENT_ORDERS = {
    "edges": [
        {
            "node": {
                "id": "gid://shopify/Order/1001",
                "name": "#1001",
                "createdAt": "2025-01-15T10:30:00Z",
                "displayFinancialStatus": "PAID",
                "displayFulfillmentStatus": "UNFULFILLED",
                "totalPriceSet": money("5400.0"),
                "customer": None,
            }
        }
    ]
}


def test_health(anon_client):
    assert anon_client.get("/health").json() == {"status": "ok", "env": "test"}


def test_basic_redacts_credentials(client):
    r = client.get("/api/basic", headers={"Cookie": "a=b", "X-Trace": "1"})
    body = r.json()
    assert r.status_code == 200
    assert r.headers["access-control-allow-origin"] == "*"
    assert body["success"] is True
    assert body["method"] == "GET"
    assert body["headers"]["authorization"] == "[redacted]"
    assert body["headers"]["cookie"] == "[redacted]"
    assert body["headers"]["x-trace"] == "1"


def test_test_endpoint_reports_config(client):
    body = client.get("/api/test").json()
    assert body["environment"]["shopifyApiKey"] == "configured"
    assert body["environment"]["scopes"] == "read_orders,write_orders"
    assert body["request"]["hasAuthHeaders"] is True
    assert body["integrations"] == {"email": "misconfigured", "sms": "misconfigured"}


def test_simple_test(anon_client):
    body = anon_client.get("/api/simple-test").json()
    assert body["success"] is True
    assert body["url"].endswith("/api/simple-test")


def test_test_auth_success(client, admin_api):
    admin_api.on("shop", SHOP_DATA)
    body = client.get("/api/test-auth").json()
    assert body["success"] is True
    assert body["session"] == {
        "shop": SHOP,
        "hasAccessToken": True,
        "scope": "read_orders,write_orders",
        "isOnline": False,
    }
    assert body["shopData"]["name"] == "Test Shop"


def test_test_auth_unauthenticated(anon_client):
    r = anon_client.get("/api/test-auth")
    body = r.json()
    assert r.status_code == 401
    assert body["step"] == "authentication"
    assert body["details"]["message"] == "Missing session token"
    assert set(body["troubleshooting"]) == {"authentication", "graphql", "network"}


def test_test_auth_graphql_errors(client, admin_api):
    admin_api.on("shop", None, errors=[{"message": "denied"}])
    r = client.get("/api/test-auth")
    assert r.status_code == 400
    assert r.json()["step"] == "graphql"


def test_access_test_full_access(client, admin_api):
    admin_api.on("shop", SHOP_DATA)
    admin_api.on("app", {"app": {"id": "gid://shopify/App/1", "handle": "scanner"}})
    admin_api.on("customers", {"customers": {"edges": [{"node": {"id": "c1"}}]}})
    admin_api.on("orders", {"orders": {"edges": []}})

    body = client.get("/api/access-test").json()
    assert body["tests"]["customers"] == {"success": True, "status": 200, "errors": None, "hasData": True, "count": 1}
    assert body["tests"]["orders"]["hasData"] is False
    assert body["analysis"]["overallStatus"] == "full_access"
    assert body["recommendations"] == []


def test_access_test_without_orders(client, admin_api):
    admin_api.on("shop", SHOP_DATA)
    admin_api.on("app", {"app": {"id": "gid://shopify/App/1", "handle": "scanner"}})
    admin_api.on("customers", {"customers": {"edges": []}})
    admin_api.on("orders", None, errors=[{"message": "Access denied for orders field"}])

    body = client.get("/api/access-test").json()
    assert body["analysis"]["canAccessOrders"] is False
    assert body["analysis"]["overallStatus"] == "partial_access"
    assert [rec["priority"] for rec in body["recommendations"]] == ["high", "high"]


def test_access_test_unauthenticated(anon_client):
    r = anon_client.get("/api/access-test")
    assert r.status_code == 401
    assert r.json()["recommendations"][0]["priority"] == "critical"


def test_debug_endpoint(client, admin_api):
    admin_api.on("shop", {**SHOP_DATA, "orders": RECENT_ORDERS})

    body = client.get("/api/debug").json()
    assert body["success"] is True
    assert body["shopInfo"]["plan"] == "Development"
    assert body["ordersData"]["totalFound"] == 1
    assert body["ordersData"]["orders"][0] == {
        "id": "gid://shopify/Order/1001",
        "name": "#1001",
        "createdAt": "2025-01-15T10:30:00Z",
        "financialStatus": "PAID",
        "fulfillmentStatus": "UNFULFILLED",
        "total": "5400.0",
        "currency": "JPY",
        "customer": "Guest",
    }


def test_debug_endpoint_graphql_error(client, admin_api):
    admin_api.on("shop", None, errors=[{"message": "denied"}])
    r = client.get("/api/debug")
    assert r.status_code == 400
    assert r.json()["error"] == "GraphQL error: denied"


def test_graphql_test_usage(anon_client):
    body = anon_client.get("/api/graphql-test").json()
    assert body["usage"]["method"] == "POST"
    assert len(body["examples"]) == 2


def test_graphql_test_runs_query(client, admin_api):
    admin_api.on("shop", SHOP_DATA)
    r = client.post("/api/graphql-test", data={"query": "query { shop { name } }"})
    body = r.json()
    assert body["success"] is True
    assert body["response"]["data"]["shop"]["name"] == "Test Shop"
    assert body["session"]["shop"] == SHOP


def test_graphql_test_needs_query(client):
    r = client.post("/api/graphql-test", data={})
    assert r.status_code == 400
    assert r.json()["error"] == "No GraphQL query provided"


# monitoring pages


def test_debug_page_wraps_report(client, admin_api):
    admin_api.on("shop", {**SHOP_DATA, "orders": RECENT_ORDERS})
    body = client.get("/app/debug").json()
    assert body["debugData"]["success"] is True
    assert body["debugData"]["shopInfo"]["name"] == "Test Shop"


def test_debug_page_unauthenticated(anon_client):
    body = anon_client.get("/app/debug").json()
    assert body["debugData"]["success"] is False
    assert "Missing session token" in body["debugData"]["error"]


def test_debug_dashboard(client, admin_api):
    admin_api.on("shop", SHOP_DATA)
    admin_api.on("orders", {"orders": RECENT_ORDERS})

    body = client.get("/app/debug-dashboard").json()
    assert body["environment"]["hasApiKey"] is True
    assert body["session"]["shop"] == SHOP
    assert body["shopInfo"]["name"] == "Test Shop"
    assert set(body["apiTests"]) == {"authentication", "shopInfo", "ordersQuery"}
    assert all(test["success"] for test in body["apiTests"].values())
    assert body["errors"] == []


def test_debug_dashboard_never_raises(anon_client):
    r = anon_client.get("/app/debug-dashboard")
    body = r.json()
    assert r.status_code == 200
    assert body["apiTests"]["authentication"]["status"] == 401
    assert body["errors"] == ["Authentication error: Missing session token"]


def test_pos_debug(client):
    body = client.get("/app/pos-debug").json()
    assert body["extensionInfo"]["handle"] == "qr-order-scanner"
    assert len(body["mockOrderData"]) == 3
    first = body["mockOrderData"][0]
    assert first["id"] == "gid://shopify/Order/1001"
    assert first["qrData"] == "http://testserver/api/orders/1001"
    assert body["qrTestData"]["qrUrls"][2] == "http://testserver/api/orders/1003/qrcode"


def test_performance_monitor_page(client):
    metrics = client.get("/app/performance-monitor").json()["metrics"]
    assert len(metrics) == 5
    assert metrics["Basic API"] == {
        "totalRequests": 0,
        "successRequests": 0,
        "errorRequests": 0,
        "averageResponseTime": 0,
        "responseTimeHistory": [],
    }
