import logging
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from qr_order_scanner.core.config import Settings, get_settings
from qr_order_scanner.core.security import AdminContext, authenticate_admin, bearer_scheme, resolve_admin_context
from qr_order_scanner.db.session import get_db
from qr_order_scanner.monitoring.probes import access_test, debug_report, session_summary
from qr_order_scanner.services.email import email_sender
from qr_order_scanner.services.orders.formatting import iso_timestamp
from qr_order_scanner.services.shopify.queries import SHOP_INFO_QUERY
from qr_order_scanner.services.sms import twilio_sender

logger = logging.getLogger(__name__)

router = APIRouter(tags=["diagnostics"])

CONFIGURED = "configured"
NOT_SET = "not set"
REDACTED_HEADERS = ("authorization", "cookie", "x-shopify-access-token")

GRAPHQL_TEST_EXAMPLES = [
    {
        "name": "Shop info",
        "query": "query {\n  shop {\n    id\n    name\n    email\n    domain\n  }\n}",
    },
    {
        "name": "Recent orders",
        "query": (
            "query {\n  orders(first: 5) {\n    edges {\n      node {\n        id\n        name\n"
            "        createdAt\n        totalPriceSet {\n          shopMoney {\n            amount\n"
            "            currencyCode\n          }\n        }\n      }\n    }\n  }\n}"
        ),
    },
]

TEST_AUTH_TROUBLESHOOTING = {
    "authentication": [
        "1. Check the app is installed on the shop",
        "2. Check SHOPIFY_API_KEY and SHOPIFY_API_SECRET are set",
        "3. Check the shop domain",
    ],
    "graphql": [
        "1. Check the app's access scopes",
        "2. Check the shop is reachable",
        "3. Check Shopify's service status",
    ],
    "network": [
        "1. Check the internet connection",
        "2. Check firewall settings",
        "3. Check proxy settings",
    ],
}


def _safe_headers(request: Request) -> dict:
    return {k: ("[redacted]" if k.lower() in REDACTED_HEADERS else v) for k, v in request.headers.items()}


async def try_admin_context(request: Request, db: Session, settings: Settings) -> Tuple[Optional[AdminContext], Optional[str]]:
    """like authenticate_admin, but hands back the failure instead of raising."""
    credentials = await bearer_scheme(request)
    try:
        return await resolve_admin_context(request, credentials, db, settings), None
    except HTTPException as e:
        return None, str(e.detail)


@router.get("/basic")
def basic(request: Request):
    data = {
        "success": True,
        "message": "Basic test succeeded",
        "timestamp": iso_timestamp(),
        "url": str(request.url),
        "method": request.method,
        "headers": _safe_headers(request),
    }
    logger.info("Basic test OK")
    return JSONResponse(content=data, headers={"Access-Control-Allow-Origin": "*"})


@router.get("/test")
def test(request: Request, settings: Settings = Depends(get_settings)):
    logger.info(f"Test endpoint hit: {request.url}")
    return {
        "success": True,
        "message": "Basic API connection is working",
        "timestamp": iso_timestamp(),
        "environment": {
            "appEnv": settings.APP_ENV,
            "shopifyApiKey": CONFIGURED if settings.SHOPIFY_API_KEY else NOT_SET,
            "shopifyApiSecret": CONFIGURED if settings.SHOPIFY_API_SECRET else NOT_SET,
            "shopifyAppUrl": settings.SHOPIFY_APP_URL or NOT_SET,
            "scopes": settings.SCOPES or NOT_SET,
        },
        "integrations": {
            "email": email_sender.health_check(settings)["status"],
            "sms": twilio_sender.health_check(settings)["status"],
        },
        "request": {
            "url": str(request.url),
            "method": request.method,
            "hasAuthHeaders": "authorization" in request.headers,
        },
    }


@router.get("/simple-test")
def simple_test(request: Request):
    return {
        "success": True,
        "message": "Simple API test succeeded",
        "timestamp": iso_timestamp(),
        "url": str(request.url),
        "method": request.method,
    }


@router.get("/test-auth")
async def test_auth(request: Request, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    ctx, auth_error = await try_admin_context(request, db, settings)
    if ctx is None:
        return JSONResponse(
            status_code=401,
            content={
                "success": False,
                "step": "authentication",
                "error": "Shopify authentication failed",
                "details": {"message": auth_error},
                "timestamp": iso_timestamp(),
                "troubleshooting": TEST_AUTH_TROUBLESHOOTING,
            },
        )

    try:
        res = await ctx.admin.execute(SHOP_INFO_QUERY)
    except Exception as e:
        logger.exception(f"test-auth failed: {e}")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "step": "network",
                "error": "Network connection failed",
                "details": {"name": type(e).__name__, "message": str(e)},
                "timestamp": iso_timestamp(),
                "troubleshooting": TEST_AUTH_TROUBLESHOOTING,
            },
        )

    if res.errors:
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "step": "graphql",
                "error": "The GraphQL query returned errors",
                "details": res.errors,
                "session": session_summary(ctx),
            },
        )

    return {
        "success": True,
        "message": "Shopify authentication and GraphQL are working",
        "timestamp": iso_timestamp(),
        "session": session_summary(ctx, include_online=True),
        "shopData": (res.data or {}).get("shop"),
        "test": {
            "authentication": "ok",
            "graphqlConnection": "ok",
            "dataRetrieval": "ok",
        },
    }


@router.get("/access-test")
async def access_test_route(request: Request, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    ctx, auth_error = await try_admin_context(request, db, settings)
    if ctx is None:
        return JSONResponse(
            status_code=401,
            content={
                "success": False,
                "error": auth_error,
                "timestamp": iso_timestamp(),
                "recommendations": [
                    {
                        "priority": "critical",
                        "issue": "App authentication failed",
                        "action": "Reinstall the app or restart `shopify app dev`",
                        "details": "The session token or stored access token may be invalid",
                    }
                ],
            },
        )
    return await access_test(ctx)


@router.get("/debug")
async def debug(ctx: AdminContext = Depends(authenticate_admin)):
    logger.info(f"Debug probe for {ctx.shop}")
    try:
        status_code, body = await debug_report(ctx)
    except Exception as e:
        logger.exception(f"Debug probe failed: {e}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": f"API connection error: {e}", "timestamp": iso_timestamp()},
        )
    return JSONResponse(status_code=status_code, content=body)


@router.get("/graphql-test")
def graphql_test_usage():
    return {
        "message": "POST a GraphQL query to this endpoint to run it against the Admin API",
        "usage": {
            "method": "POST",
            "contentType": "application/x-www-form-urlencoded",
            "fields": {"query": "GraphQL query string"},
        },
        "examples": GRAPHQL_TEST_EXAMPLES,
        "timestamp": iso_timestamp(),
    }


@router.post("/graphql-test")
async def graphql_test(query: Optional[str] = Form(None), ctx: AdminContext = Depends(authenticate_admin)):
    if not query:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "No GraphQL query provided", "timestamp": iso_timestamp()},
        )

    logger.info(f"Running ad-hoc GraphQL query for {ctx.shop}")
    try:
        res = await ctx.admin.execute(query)
    except Exception as e:
        logger.exception(f"graphql-test failed: {e}")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": str(e),
                "details": {"name": type(e).__name__, "message": str(e)},
                "timestamp": iso_timestamp(),
            },
        )

    return {
        "success": not res.errors,
        "query": query,
        "response": {
            "status": res.status,
            "data": res.data,
            "errors": res.errors,
            "extensions": res.extensions,
        },
        "session": {"shop": ctx.session.shop, "scope": ctx.session.scope},
        "responseTime": res.elapsed_ms,
        "timestamp": iso_timestamp(),
    }
