import logging
from typing import Any, Callable, Dict, Optional

import httpx

from qr_order_scanner.extension.api_client import ScannerApiClient
from qr_order_scanner.extension.components import Button, Screen, Section, Text, TextField, row
from qr_order_scanner.extension.toast import Toast

logger = logging.getLogger(__name__)

NOTIFICATION_LABELS = {"email": "email", "sms": "SMS"}


class OrderActionsView:
    """refund / cancel / fulfillment / notify screen for one order."""

    def __init__(
        self,
        order_info: Dict[str, Any],
        api: ScannerApiClient,
        toast: Toast,
        on_back: Optional[Callable[[], None]] = None,
        on_order_updated: Optional[Callable[[Dict[str, Any]], None]] = None,
    ):
        self.order_info = order_info
        self.api = api
        self.toast = toast
        self.on_back = on_back
        self.on_order_updated = on_order_updated

        self.is_processing = False
        self.refund_amount = ""
        self.refund_reason = ""
        self.cancel_reason = ""
        self.fulfillment_status = order_info.get("fulfillmentStatus") or ""

    async def _perform(
        self,
        action: str,
        payload: Optional[Dict[str, Any]],
        success_message: str,
        label: str,
        method: str = "POST",
        forward_update: bool = True,
    ) -> bool:
        self.is_processing = True
        try:
            response = await self.api.order_action(self.order_info["id"], action, payload, method=method)
        except httpx.HTTPError as e:
            logger.error(f"{label} request failed for {self.order_info['id']}: {e}")
            self.toast.show(f"❌ {label} failed")
            return False
        finally:
            self.is_processing = False

        if not response.ok:
            self.toast.show(f"❌ {label} error: {response.message}")
            return False

        self.toast.show(success_message)
        if forward_update and self.on_order_updated:
            self.on_order_updated(response.body)
        return True

    async def refund(self) -> bool:
        if not self.refund_amount or not self.refund_reason:
            self.toast.show("❌ Enter a refund amount and reason")
            return False
        try:
            amount = float(self.refund_amount)
        except ValueError:
            self.toast.show("❌ Refund amount must be a number")
            return False

        ok = await self._perform(
            "refund",
            {"amount": amount, "reason": self.refund_reason, "notify": True},
            f"✅ Refund of ¥{self.refund_amount} started",
            "Refund",
        )
        if ok:
            self.refund_amount = ""
            self.refund_reason = ""
        return ok

    async def cancel(self) -> bool:
        if not self.cancel_reason:
            self.toast.show("❌ Enter a cancellation reason")
            return False

        ok = await self._perform(
            "cancel",
            {"reason": self.cancel_reason, "notify": True, "refund": False, "restock": True},
            "✅ Order cancelled",
            "Cancel",
        )
        if ok:
            self.cancel_reason = ""
        return ok

    async def update_fulfillment(self) -> bool:
        if not self.fulfillment_status:
            self.toast.show("❌ Choose a fulfillment status")
            return False
        return await self._perform(
            "fulfillment",
            {"status": self.fulfillment_status, "notify": True},
            f"✅ Fulfillment status updated to \"{self.fulfillment_status}\"",
            "Fulfillment update",
            method="PUT",
        )

    async def mark_as_fulfilled(self) -> bool:
        return await self._perform("fulfill", {"notify": True}, "✅ Order marked as fulfilled", "Fulfill")

    async def send_notification(self, type: str) -> bool:
        label = NOTIFICATION_LABELS.get(type, type)
        return await self._perform(
            "notify",
            {"type": type, "orderNumber": self.order_info.get("orderNumber")},
            f"✅ Sent {label} notification to the customer",
            "Notification",
            forward_update=False,
        )

    def back(self) -> None:
        if self.on_back:
            self.on_back()

    def render(self) -> Screen:
        busy = self.is_processing
        info = self.order_info
        return Screen(
            name="order-actions",
            title=f"Order actions - {info.get('orderNumber')}",
            sections=[
                Section(
                    title="Order",
                    children=[
                        row("Order", info.get("orderNumber")),
                        row("Total", info.get("total")),
                        row("Financial status", info.get("financialStatus") or "Unknown"),
                        row("Fulfillment status", info.get("fulfillmentStatus") or "Unknown"),
                    ],
                ),
                Section(
                    title="Refund",
                    children=[
                        TextField(label="Refund amount (¥)", value=self.refund_amount, placeholder="0"),
                        TextField(label="Refund reason", value=self.refund_reason),
                        Button(title="Refund", action="refund", disabled=busy),
                    ],
                ),
                Section(
                    title="Cancel",
                    children=[
                        TextField(label="Cancellation reason", value=self.cancel_reason),
                        Button(title="Cancel order", action="cancel", disabled=busy),
                    ],
                ),
                Section(
                    title="Fulfillment",
                    children=[
                        TextField(label="Fulfillment status", value=self.fulfillment_status),
                        Button(title="Update fulfillment", action="update_fulfillment", disabled=busy),
                        Button(title="Mark as fulfilled", action="mark_as_fulfilled", disabled=busy),
                    ],
                ),
                Section(
                    title="Notify customer",
                    children=[
                        Button(title="Send email", action="send_notification:email", disabled=busy),
                        Button(title="Send SMS", action="send_notification:sms", disabled=busy),
                    ],
                ),
                Section(children=[Text(text="Processing...")] if busy else []),
                Section(children=[Button(title="Back", action="back")]),
            ],
        )
