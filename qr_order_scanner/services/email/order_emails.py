from html import escape
from typing import Any, Dict

from qr_order_scanner.core.config import Settings
from qr_order_scanner.services.email.email_sender import send_html


def render_order_notification(order_info: Dict[str, Any]) -> str:
    items = "".join(f"<li>{escape(str(item))}</li>" for item in order_info.get("items") or [])
    tracking = order_info.get("trackingNumbers") or []
    tracking_html = ""
    if tracking:
        tracking_html = f"<p><strong>Tracking:</strong> {escape(', '.join(tracking))}</p>"

    return f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2>Order {escape(str(order_info.get('orderNumber', '')))} update</h2>
            <p>Hello {escape(str(order_info.get('customer', '')))},</p>
            <p><strong>Status:</strong> {escape(str(order_info.get('status', '')))}</p>
            <p><strong>Total:</strong> {escape(str(order_info.get('total', '')))}</p>
            <ul>{items}</ul>
            {tracking_html}
        </div>
        """


def send_order_notification_email(settings: Settings, to: str, order_info: Dict[str, Any]) -> Dict[str, Any]:
    """email the customer the current state of their order."""
    subject = f"Order {order_info.get('orderNumber', '')} update"
    return send_html(
        settings,
        to=to,
        subject=subject,
        html=render_order_notification(order_info),
        tags={"category": "order_notification"},
    )
