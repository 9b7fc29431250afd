import json
from datetime import datetime
from typing import Optional

from qr_order_scanner.services.orders.formatting import iso_timestamp

QR_FORMATS = ("simple", "json", "url")
ADMIN_ORDER_URL = "https://admin.shopify.com/store/{handle}/orders/{order_id}"


def store_handle_for(shop: Optional[str], configured: Optional[str] = None) -> str:
    """admin URL handle: configured value, else the myshopify subdomain."""
    if configured:
        return configured
    if shop:
        return shop.split(".")[0]
    return "your-store"


def build_qr_payload(order_id: str, fmt: str = "simple", store_handle: str = "your-store", now: Optional[datetime] = None) -> str:
    """text encoded into an order QR code; unknown formats fall back to `simple`."""
    if fmt == "json":
        return json.dumps(
            {"orderId": order_id, "type": "shopify_order", "timestamp": iso_timestamp(now)},
            separators=(",", ":"),
        )
    if fmt == "url":
        return ADMIN_ORDER_URL.format(handle=store_handle, order_id=order_id)
    return f"#{order_id}"
