import logging
from typing import Any, Dict, Optional

from qr_order_scanner.core.config import Settings
from qr_order_scanner.services.email.order_emails import send_order_notification_email
from qr_order_scanner.services.orders.actions import OrderActionError
from qr_order_scanner.services.sms.twilio_sender import send_sms

logger = logging.getLogger(__name__)

CHANNELS = ("email", "sms")


class NotificationUnavailable(OrderActionError):
    status_code = 503


def sms_body(order_info: Dict[str, Any], order_number: Optional[str] = None) -> str:
    number = order_number or order_info.get("orderNumber")
    return f"Order {number}: {order_info.get('status')} / total {order_info.get('total')}"


def send_order_notification(
    settings: Settings,
    order_info: Dict[str, Any],
    channel: str,
    order_number: Optional[str] = None,
) -> Dict[str, Any]:
    """send the customer an order update by email or SMS; raises when it cannot be delivered."""
    if channel not in CHANNELS:
        raise OrderActionError(f"Unsupported notification type: {channel}")

    if channel == "email":
        recipient = order_info.get("email")
        if not recipient:
            raise OrderActionError("Order has no customer email address")
        if order_number:
            order_info = {**order_info, "orderNumber": order_number}
        result = send_order_notification_email(settings, recipient, order_info)
    else:
        recipient = order_info.get("phone")
        if not recipient:
            raise OrderActionError("Order has no customer phone number")
        result = send_sms(settings, recipient, sms_body(order_info, order_number))

    status = result.get("status")
    if status == "skipped":
        raise NotificationUnavailable(f"{channel} notifications are not configured", errors=[result])
    if status != "sent":
        raise OrderActionError(f"Failed to send {channel} notification", errors=[result])

    logger.info(f"Sent {channel} notification for {order_info.get('orderNumber')}")
    return result
