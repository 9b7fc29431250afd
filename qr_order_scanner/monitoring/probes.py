"""
Connectivity probes behind the debug endpoints and pages.

Every probe catches its own failures and reports them in the result, so a
broken scope or a dead upstream shows up as data rather than as a 500.
"""
import logging
import time
from typing import Any, Dict, List, Optional, Tuple

from qr_order_scanner.core.config import Settings
from qr_order_scanner.core.security import AdminContext
from qr_order_scanner.services.orders.formatting import iso_timestamp
from qr_order_scanner.services.shopify.client import error_messages
from qr_order_scanner.services.shopify.queries import (
    APP_INFO_QUERY,
    BASIC_SHOP_QUERY,
    DASHBOARD_ORDERS_QUERY,
    DASHBOARD_SHOP_QUERY,
    DEBUG_SHOP_QUERY,
    MINIMAL_ORDERS_QUERY,
    SIMPLE_CUSTOMERS_QUERY,
)

logger = logging.getLogger(__name__)

NOT_SET = "not set"


def session_summary(ctx: AdminContext, include_online: bool = False) -> Dict[str, Any]:
    summary = {
        "shop": ctx.session.shop,
        "hasAccessToken": bool(ctx.session.access_token),
        "scope": ctx.session.scope,
    }
    if include_online:
        summary["isOnline"] = bool(ctx.session.is_online)
    return summary


def environment_flags(settings: Settings) -> Dict[str, Any]:
    return {
        "appEnv": settings.APP_ENV,
        "shopifyAppUrl": settings.SHOPIFY_APP_URL or NOT_SET,
        "hasApiKey": bool(settings.SHOPIFY_API_KEY),
        "hasApiSecret": bool(settings.SHOPIFY_API_SECRET),
        "scopes": settings.SCOPES or NOT_SET,
    }


def _edges(data: Optional[Dict[str, Any]], key: str) -> List[Dict[str, Any]]:
    return ((data or {}).get(key) or {}).get("edges") or []


async def _probe(ctx: AdminContext, query: str) -> Dict[str, Any]:
    try:
        res = await ctx.admin.execute(query)
    except Exception as e:
        logger.warning(f"Probe failed: {e}")
        return {"success": False, "error": str(e)}
    return {
        "success": not res.errors and res.ok,
        "status": res.status,
        "errors": res.errors,
        "data": res.data,
    }


async def access_test(ctx: AdminContext) -> Dict[str, Any]:
    """four read probes (shop, app, customers, orders) plus an access analysis."""
    tests: Dict[str, Any] = {}

    shop = await _probe(ctx, BASIC_SHOP_QUERY)
    shop["success"] = shop["success"] and bool((shop.get("data") or {}).get("shop"))
    tests["basicShop"] = shop

    app = await _probe(ctx, APP_INFO_QUERY)
    app["success"] = app["success"] and bool((app.get("data") or {}).get("app"))
    tests["appInfo"] = app

    for name, query, key in (("customers", SIMPLE_CUSTOMERS_QUERY, "customers"), ("orders", MINIMAL_ORDERS_QUERY, "orders")):
        result = await _probe(ctx, query)
        if "error" not in result:
            count = len(_edges(result.pop("data"), key))
            result.update({"hasData": count > 0, "count": count})
        tests[name] = result

    analysis = {
        "canAccessShop": tests["basicShop"]["success"],
        "canAccessApp": tests["appInfo"]["success"],
        "canAccessCustomers": tests["customers"]["success"],
        "canAccessOrders": tests["orders"]["success"],
    }
    if analysis["canAccessOrders"]:
        analysis["overallStatus"] = "full_access"
    elif analysis["canAccessCustomers"]:
        analysis["overallStatus"] = "partial_access"
    elif analysis["canAccessShop"]:
        analysis["overallStatus"] = "basic_access"
    else:
        analysis["overallStatus"] = "no_access"

    recommendations = []
    if not analysis["canAccessOrders"]:
        recommendations.append({
            "priority": "high",
            "issue": "Order data is not accessible",
            "action": 'Make sure the app scopes include "read_orders"',
            "details": "Check the scopes setting in shopify.app.toml",
        })
        recommendations.append({
            "priority": "high",
            "issue": "Protected customer data policy",
            "action": "Make sure you are developing against a development store",
            "details": "Production stores need additional approval",
        })
    if not analysis["canAccessCustomers"]:
        recommendations.append({
            "priority": "medium",
            "issue": "Customer data is not accessible",
            "action": 'Make sure the app scopes include "read_customers"',
        })

    return {
        "success": True,
        "session": session_summary(ctx, include_online=True),
        "tests": tests,
        "timestamp": iso_timestamp(),
        "analysis": analysis,
        "recommendations": recommendations,
    }


async def debug_report(ctx: AdminContext) -> Tuple[int, Dict[str, Any]]:
    """shop info and the five most recent orders; (status code, body)."""
    res = await ctx.admin.execute(DEBUG_SHOP_QUERY)
    if res.errors:
        return 400, {
            "success": False,
            "error": f"GraphQL error: {error_messages(res.errors)}",
            "details": res.errors,
            "session": session_summary(ctx),
        }
    if not res.ok or not res.data:
        return 500, {
            "success": False,
            "error": f"API connection error: HTTP {res.status}",
            "timestamp": iso_timestamp(),
        }

    shop = res.data.get("shop") or {}
    orders = _edges(res.data, "orders")
    return 200, {
        "success": True,
        "message": "API connection and scopes are working",
        "timestamp": iso_timestamp(),
        "session": session_summary(ctx),
        "shopInfo": {
            "id": shop.get("id"),
            "name": shop.get("name"),
            "email": shop.get("email"),
            "domain": shop.get("domain"),
            "myshopifyDomain": shop.get("myshopifyDomain"),
            "plan": (shop.get("plan") or {}).get("displayName"),
        },
        "ordersData": {
            "totalFound": len(orders),
            "hasOrders": len(orders) > 0,
            "orders": [_debug_order(edge.get("node") or {}) for edge in orders],
        },
        "apiCapabilities": {
            "canReadOrders": True,
            "canReadShop": True,
            "timestamp": iso_timestamp(),
        },
    }


def _debug_order(node: Dict[str, Any]) -> Dict[str, Any]:
    money = (node.get("totalPriceSet") or {}).get("shopMoney") or {}
    return {
        "id": node.get("id"),
        "name": node.get("name"),
        "createdAt": node.get("createdAt"),
        "financialStatus": node.get("displayFinancialStatus"),
        "fulfillmentStatus": node.get("displayFulfillmentStatus"),
        "total": money.get("amount") or "0",
        "currency": money.get("currencyCode") or "JPY",
        "customer": (node.get("customer") or {}).get("displayName") or "Guest",
    }


async def _timed_test(ctx: AdminContext, query: str, label: str, started: float) -> Tuple[Dict[str, Any], Optional[Dict[str, Any]]]:
    try:
        res = await ctx.admin.execute(query)
    except Exception as e:
        return {
            "success": False,
            "status": 500,
            "message": f"{label} failed: {e}",
            "responseTime": int((time.perf_counter() - started) * 1000),
        }, None
    ok = not res.errors
    return {
        "success": ok,
        "status": res.status,
        "message": f"{label} {'succeeded' if ok else 'failed'}",
        "responseTime": int((time.perf_counter() - started) * 1000),
        "data": res.data or res.errors,
    }, (res.data if ok else None)


async def dashboard_report(settings: Settings, ctx: Optional[AdminContext], auth_error: Optional[str] = None) -> Dict[str, Any]:
    """everything the debug dashboard shows; never raises."""
    started = time.perf_counter()
    report: Dict[str, Any] = {
        "timestamp": iso_timestamp(),
        "environment": environment_flags(settings),
        "apiTests": {},
        "errors": [],
    }

    if ctx is None:
        message = auth_error or "unknown error"
        report["errors"].append(f"Authentication error: {message}")
        report["apiTests"]["authentication"] = {
            "success": False,
            "status": 401,
            "message": f"Authentication failed: {message}",
            "responseTime": int((time.perf_counter() - started) * 1000),
        }
        return report

    report["session"] = {
        "shop": ctx.session.shop,
        "hasAccessToken": bool(ctx.session.access_token),
        "isOnline": bool(ctx.session.is_online),
        "scope": ctx.session.scope or "unknown",
    }
    report["apiTests"]["authentication"] = {
        "success": True,
        "status": 200,
        "message": "Authentication succeeded",
        "responseTime": int((time.perf_counter() - started) * 1000),
    }

    shop_test, shop_data = await _timed_test(ctx, DASHBOARD_SHOP_QUERY, "Shop info", started)
    report["apiTests"]["shopInfo"] = shop_test
    if shop_data:
        report["shopInfo"] = shop_data.get("shop")

    orders_test, _ = await _timed_test(ctx, DASHBOARD_ORDERS_QUERY, "Order list", started)
    report["apiTests"]["ordersQuery"] = orders_test
    return report
