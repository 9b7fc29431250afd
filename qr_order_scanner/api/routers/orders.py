import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from qr_order_scanner.core.config import Settings, get_settings
from qr_order_scanner.core.security import AdminContext, authenticate_admin
from qr_order_scanner.services.orders.filters import available_filters, build_filter_query
from qr_order_scanner.services.orders.formatting import (
    format_order_list_item,
    format_order_summary,
    format_simple_order,
    iso_timestamp,
)
from qr_order_scanner.services.orders.search import build_search_query, clamp_limit, is_id_lookup
from qr_order_scanner.services.qr.encoder import render_qr_svg
from qr_order_scanner.services.qr.payload import build_qr_payload, store_handle_for
from qr_order_scanner.services.qr.placeholder import render_placeholder_svg
from qr_order_scanner.services.shopify.client import GraphQLResponse, UpstreamError, error_messages, to_order_gid
from qr_order_scanner.services.shopify.queries import (
    BASIC_ORDERS_QUERY,
    GET_ORDER_BY_ID_QUERY,
    GET_ORDER_QUERY,
    LIST_ORDERS_QUERY,
    SEARCH_ORDERS_QUERY,
    SIMPLE_ORDERS_QUERY,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])

LIST_TROUBLESHOOTING = [
    "1. Check the app's API access scopes",
    "2. Make sure the shop has orders",
    "3. Check connectivity with /api/debug",
]

SIMPLE_LIST_TROUBLESHOOTING = {
    "steps": [
        "1. Make sure the app can access the shop",
        "2. Make sure the 'read_orders' scope is granted",
        "3. Make sure the shop has orders",
        "4. Check basic connectivity with /api/basic",
    ],
    "testUrls": [
        "/api/orders/simple-list?mode=simple&limit=1",
        "/api/orders/simple-list?mode=basic&limit=3",
        "/api/basic",
        "/api/debug",
    ],
}


def _raise_for_http(res: GraphQLResponse) -> None:
    if not res.ok:
        raise UpstreamError(f"Admin API responded with HTTP {res.status}", status_code=res.status)


@router.get("/search")
async def search_orders(
    q: Optional[str] = Query(None),
    query: Optional[str] = Query(None, include_in_schema=False),
    search_type: str = Query("auto", alias="type"),
    limit: Optional[int] = Query(None),
    ctx: AdminContext = Depends(authenticate_admin),
):
    term = (q or query or "").strip()
    if not term:
        return JSONResponse(status_code=400, content={"error": "No search query given"})

    limit = max(1, clamp_limit(limit))
    logger.info(f"Order search on {ctx.shop}: term={term!r} type={search_type} limit={limit}")

    try:
        if is_id_lookup(term, search_type):
            res = await ctx.admin.execute(GET_ORDER_BY_ID_QUERY, {"id": to_order_gid(term)})
            order = (res.data or {}).get("order")
            results = [order] if order else []
        else:
            search_query = build_search_query(term, search_type)
            logger.debug(f"Search query: {search_query}")
            res = await ctx.admin.execute(SEARCH_ORDERS_QUERY, {"query": search_query, "first": limit})
            edges = ((res.data or {}).get("orders") or {}).get("edges") or []
            results = [edge.get("node") for edge in edges if edge.get("node")]

        if res.errors:
            logger.warning(f"GraphQL errors during search: {res.errors}")
            return JSONResponse(
                status_code=400,
                content={"error": f"GraphQL error: {error_messages(res.errors)}", "details": res.errors},
            )
        _raise_for_http(res)

        if not results:
            return {
                "message": f"No orders match '{term}'",
                "searchTerm": term,
                "searchType": search_type,
                "totalFound": 0,
                "orders": [],
            }

        return {
            "success": True,
            "message": f"Found {len(results)} order(s)",
            "searchTerm": term,
            "searchType": search_type,
            "totalFound": len(results),
            "orders": [format_order_summary(order) for order in results],
            "timestamp": iso_timestamp(),
        }
    except Exception as e:
        logger.exception(f"Order search failed: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": f"Order search failed: {e}", "details": type(e).__name__, "timestamp": iso_timestamp()},
        )


@router.get("/list")
async def list_orders(
    limit: Optional[int] = Query(None),
    after: Optional[str] = Query(None),
    filter_key: str = Query("", alias="filter"),
    ctx: AdminContext = Depends(authenticate_admin),
):
    limit = max(1, min(limit or 20, 100))
    search_query = build_filter_query(filter_key)
    logger.info(f"Listing orders on {ctx.shop}: limit={limit} after={after} filter={filter_key or 'all'}")

    try:
        res = await ctx.admin.execute(
            LIST_ORDERS_QUERY,
            {"first": limit, "after": after or None, "query": search_query},
        )
        if res.errors:
            return JSONResponse(
                status_code=400,
                content={
                    "success": False,
                    "error": f"GraphQL error: {error_messages(res.errors)}",
                    "details": res.errors,
                },
            )
        _raise_for_http(res)

        orders = (res.data or {}).get("orders")
        if not orders:
            return JSONResponse(
                status_code=500,
                content={"success": False, "error": "Could not retrieve order data", "timestamp": iso_timestamp()},
            )

        formatted = [format_order_list_item(edge.get("node") or {}) for edge in orders.get("edges") or []]
        page_info = orders.get("pageInfo") or {}
        return {
            "success": True,
            "message": f"Retrieved {len(formatted)} order(s)",
            "orders": formatted,
            "pagination": {
                "hasNextPage": page_info.get("hasNextPage", False),
                "hasPreviousPage": page_info.get("hasPreviousPage", False),
                "startCursor": page_info.get("startCursor"),
                "endCursor": page_info.get("endCursor"),
                "currentLimit": limit,
                "currentFilter": filter_key or "all",
            },
            "filters": {"available": available_filters(filter_key)},
            "metadata": {
                "retrievedAt": iso_timestamp(),
                "source": "Shopify Admin GraphQL API",
                "shop": ctx.shop,
            },
        }
    except Exception as e:
        logger.exception(f"Order list failed: {e}")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": f"Order list failed: {e}",
                "details": type(e).__name__,
                "timestamp": iso_timestamp(),
                "troubleshooting": {"steps": LIST_TROUBLESHOOTING},
            },
        )


@router.get("/simple-list")
async def simple_list_orders(
    mode: str = Query("simple"),
    limit: Optional[int] = Query(None),
    ctx: AdminContext = Depends(authenticate_admin),
    settings: Settings = Depends(get_settings),
):
    limit = max(1, min(limit or 5, 10))
    if mode == "basic":
        document, label = BASIC_ORDERS_QUERY, "basic query"
    else:
        document, label = SIMPLE_ORDERS_QUERY, "simple query"

    try:
        res = await ctx.admin.execute(document, {"first": limit})
        logger.info(f"simple-list {label}: HTTP {res.status} in {res.elapsed_ms}ms")

        if not res.ok:
            return JSONResponse(
                status_code=res.status,
                content={
                    "success": False,
                    "error": f"GraphQL HTTP error: {res.status}",
                    "details": {"status": res.status},
                    "mode": mode,
                    "responseTime": res.elapsed_ms,
                    "timestamp": iso_timestamp(),
                },
            )

        if res.errors:
            return JSONResponse(
                status_code=400,
                content={
                    "success": False,
                    "error": "GraphQL query error",
                    "details": {"errors": res.errors, "extensions": res.extensions},
                    "query": label,
                    "mode": mode,
                    "responseTime": res.elapsed_ms,
                    "timestamp": iso_timestamp(),
                },
            )

        orders = (res.data or {}).get("orders") or {}
        edges = orders.get("edges")
        if edges is None:
            return JSONResponse(
                status_code=404,
                content={
                    "success": False,
                    "error": "No order data returned",
                    "details": {"data": res.data, "hasShop": bool(ctx.shop)},
                    "query": label,
                    "mode": mode,
                    "responseTime": res.elapsed_ms,
                    "timestamp": iso_timestamp(),
                },
            )

        formatted = [format_simple_order(edge.get("node") or {}, mode, settings.DEFAULT_CURRENCY) for edge in edges]
        page_info = orders.get("pageInfo") or {}
        return {
            "success": True,
            "orders": formatted,
            "pagination": {
                "hasNextPage": page_info.get("hasNextPage") or False,
                "hasPreviousPage": page_info.get("hasPreviousPage") or False,
                "endCursor": page_info.get("endCursor"),
            },
            "metadata": {
                "query": label,
                "mode": mode,
                "count": len(formatted),
                "responseTime": res.elapsed_ms,
                "retrievedAt": iso_timestamp(),
                "shop": ctx.shop,
            },
        }
    except Exception as e:
        logger.exception(f"simple-list failed: {e}")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": f"API call failed: {e}",
                "details": {"name": type(e).__name__, "message": str(e)},
                "timestamp": iso_timestamp(),
                "troubleshooting": SIMPLE_LIST_TROUBLESHOOTING,
            },
        )


@router.get("/{order_id}")
async def get_order(order_id: str, ctx: AdminContext = Depends(authenticate_admin)):
    logger.info(f"Fetching order {order_id} on {ctx.shop}")
    try:
        res = await ctx.admin.execute(GET_ORDER_QUERY, {"id": to_order_gid(order_id)})
        if res.errors:
            return JSONResponse(status_code=400, content={"error": f"GraphQL error: {error_messages(res.errors)}"})
        _raise_for_http(res)

        order = (res.data or {}).get("order")
        if not order:
            return JSONResponse(status_code=404, content={"error": f"No order found for id {order_id}"})

        return {"order": order, "message": "Order retrieved from the Admin API"}
    except Exception as e:
        logger.exception(f"Fetching order {order_id} failed: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": f"Failed to fetch order: {e}", "details": type(e).__name__},
        )


@router.get("/{order_id}/qrcode")
async def order_qrcode(
    order_id: str,
    fmt: str = Query("simple", alias="format"),
    size: int = Query(200, ge=50, le=2000),
    render: str = Query("qrcode"),
    ctx: AdminContext = Depends(authenticate_admin),
    settings: Settings = Depends(get_settings),
):
    try:
        payload = build_qr_payload(order_id, fmt, store_handle_for(ctx.shop, settings.SHOPIFY_STORE_HANDLE))
        logger.info(f"QR for order {order_id}: format={fmt} size={size} render={render}")

        if render == "placeholder":
            svg = render_placeholder_svg(payload, size)
        else:
            svg = render_qr_svg(payload, size)

        return Response(
            content=svg,
            media_type="image/svg+xml",
            headers={
                "Cache-Control": "public, max-age=3600",
                "Content-Disposition": f'inline; filename="order-{order_id}-qr.svg"',
            },
        )
    except Exception as e:
        logger.exception(f"QR generation failed for {order_id}: {e}")
        return PlainTextResponse(f"QR code generation failed: {e}", status_code=500)
