import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from qr_order_scanner.api.routers.diagnostics import try_admin_context
from qr_order_scanner.core.config import Settings, get_settings
from qr_order_scanner.db.session import get_db
from qr_order_scanner.monitoring.performance import initial_metrics
from qr_order_scanner.monitoring.probes import dashboard_report, debug_report
from qr_order_scanner.services.orders.formatting import iso_timestamp

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pages"])

EXTENSION_INFO = {
    "name": "qr-order-scanner",
    "handle": "qr-order-scanner",
    "type": "ui_extension",
    "directory": "extensions/qr-order-scanner",
}

MOCK_ORDERS = [
    {
        "legacyId": "1001",
        "customer": "Taro Tanaka",
        "total": "¥5,000",
        "status": "Fulfilled",
        "items": ["Item A x2", "Item B x1"],
        "createdAt": "2025-01-15T10:30:00Z",
    },
    {
        "legacyId": "1002",
        "customer": "Hanako Sato",
        "total": "¥8,500",
        "status": "In progress",
        "items": ["Item C x1", "Item D x3"],
        "createdAt": "2025-01-16T14:20:00Z",
    },
    {
        "legacyId": "1003",
        "customer": "Jiro Yamada",
        "total": "¥12,000",
        "status": "Preparing shipment",
        "items": ["Item E x2", "Item F x1", "Item G x1"],
        "createdAt": "2025-01-17T09:15:00Z",
    },
]


@router.get("/debug")
async def debug_page(request: Request, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    ctx, auth_error = await try_admin_context(request, db, settings)
    if ctx is None:
        return {
            "debugData": {
                "success": False,
                "error": f"Failed to load debug data: {auth_error}",
                "timestamp": iso_timestamp(),
            }
        }
    try:
        _, body = await debug_report(ctx)
    except Exception as e:
        logger.exception(f"Debug page failed: {e}")
        return {"debugData": {"success": False, "error": "Failed to load debug data", "timestamp": iso_timestamp()}}
    return {"debugData": body}


@router.get("/debug-dashboard")
async def debug_dashboard(request: Request, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    ctx, auth_error = await try_admin_context(request, db, settings)
    return await dashboard_report(settings, ctx, auth_error)


@router.get("/pos-debug")
async def pos_debug(request: Request, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    ctx, auth_error = await try_admin_context(request, db, settings)
    if ctx is None:
        return {
            "timestamp": iso_timestamp(),
            "error": auth_error,
            "extensionInfo": EXTENSION_INFO,
            "mockOrderData": [],
            "qrTestData": {"sampleOrderIds": [], "qrUrls": []},
        }

    base = str(request.base_url).rstrip("/")
    orders = []
    for mock in MOCK_ORDERS:
        legacy_id = mock["legacyId"]
        orders.append({
            "id": f"gid://shopify/Order/{legacy_id}",
            "orderNumber": f"#{legacy_id}",
            "customer": mock["customer"],
            "total": mock["total"],
            "status": mock["status"],
            "items": mock["items"],
            "createdAt": mock["createdAt"],
            "qrData": f"{base}/api/orders/{legacy_id}",
        })

    return {
        "timestamp": iso_timestamp(),
        "extensionInfo": EXTENSION_INFO,
        "mockOrderData": orders,
        "qrTestData": {
            "sampleOrderIds": [o["id"] for o in orders],
            "qrUrls": [f"{base}/api/orders/{m['legacyId']}/qrcode" for m in MOCK_ORDERS],
        },
    }


@router.get("/performance-monitor")
async def performance_monitor(request: Request, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    ctx, auth_error = await try_admin_context(request, db, settings)
    if ctx is None:
        return {"timestamp": iso_timestamp(), "error": auth_error, "metrics": {}}
    return {"timestamp": iso_timestamp(), "metrics": initial_metrics()}
