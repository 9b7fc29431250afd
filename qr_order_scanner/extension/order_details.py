import logging
from typing import Any, Callable, Dict, Optional

from qr_order_scanner.extension.api_client import ScannerApiClient
from qr_order_scanner.extension.components import Button, Screen, Section, Text, row
from qr_order_scanner.extension.order_actions import OrderActionsView
from qr_order_scanner.extension.qr_generator import QRGeneratorView
from qr_order_scanner.extension.toast import Toast

logger = logging.getLogger(__name__)


class OrderDetailsView:
    def __init__(
        self,
        order_info: Dict[str, Any],
        api: ScannerApiClient,
        toast: Toast,
        on_back: Optional[Callable[[], None]] = None,
    ):
        self.current_order_info = order_info
        self.api = api
        self.toast = toast
        self.on_back = on_back

        self.show_actions = False
        self.show_qr_generator = False
        self.actions_view: Optional[OrderActionsView] = None
        self.qr_view: Optional[QRGeneratorView] = None

    def open_actions(self) -> OrderActionsView:
        self.toast.show("📋 Opening order actions")
        self.actions_view = OrderActionsView(
            self.current_order_info,
            self.api,
            self.toast,
            on_back=self.close_actions,
            on_order_updated=self.apply_update,
        )
        self.show_actions = True
        return self.actions_view

    def close_actions(self) -> None:
        self.show_actions = False
        self.actions_view = None

    def open_qr_generator(self) -> QRGeneratorView:
        self.toast.show("📱 Opening QR code generator")
        self.qr_view = QRGeneratorView(self.current_order_info, self.api, self.toast, on_back=self.close_qr_generator)
        self.show_qr_generator = True
        return self.qr_view

    def close_qr_generator(self) -> None:
        self.show_qr_generator = False
        self.qr_view = None

    def apply_update(self, response: Dict[str, Any]) -> None:
        """action routes answer {success, message, order}; keep the refreshed order."""
        updated = response.get("order") if isinstance(response, dict) else None
        if updated:
            self.current_order_info = updated
            if self.actions_view:
                self.actions_view.order_info = updated
        self.toast.show("✅ Order information updated")

    def copy_tracking_number(self, number: str) -> None:
        self.toast.show(f"Copied tracking number: {number}")

    def back(self) -> None:
        if self.on_back:
            self.on_back()

    def render(self) -> Screen:
        if self.show_actions and self.actions_view:
            return self.actions_view.render()
        if self.show_qr_generator and self.qr_view:
            return self.qr_view.render()

        info = self.current_order_info
        sections = [
            Section(
                title="Order",
                children=[
                    row("Order", info.get("orderNumber")),
                    row("Date", info.get("createdAt") or "Unknown"),
                    row("Status", info.get("status")),
                    row("Financial status", info.get("financialStatus") or "Unknown"),
                    row("Fulfillment status", info.get("fulfillmentStatus") or "Unknown"),
                ],
            ),
            Section(
                title="Customer",
                children=[
                    row("Name", info.get("customer")),
                    row("Email", info.get("email") or "Not set"),
                    row("Phone", info.get("phone") or "Not set"),
                ]
                + ([row("Shipping address", info["shippingAddress"])] if info.get("shippingAddress") else []),
            ),
            Section(title="Items", children=[Text(text=item) for item in info.get("items") or []]),
            Section(
                title="Amounts",
                children=[
                    row("Subtotal", info.get("subtotal") or "-"),
                    row("Tax", info.get("tax") or "-"),
                    row("Shipping", info.get("shipping") or "-"),
                    row("Total", info.get("total")),
                ],
            ),
        ]

        tracking = info.get("trackingNumbers") or []
        if tracking:
            sections.append(
                Section(
                    title="Tracking",
                    children=[Button(title=n, action=f"copy_tracking_number:{n}") for n in tracking],
                )
            )
        if info.get("tags"):
            sections.append(Section(title="Tags", children=[Text(text=", ".join(info["tags"]))]))
        if info.get("note"):
            sections.append(Section(title="Note", children=[Text(text=info["note"])]))
        if info.get("cancelReason"):
            sections.append(Section(title="Cancellation", children=[row("Reason", info["cancelReason"])]))

        sections.append(
            Section(
                title="Actions",
                children=[
                    Button(title="Order actions", action="open_actions"),
                    Button(title="Generate QR code", action="open_qr_generator"),
                    Button(title="Back", action="back"),
                ],
            )
        )
        return Screen(name="order-details", title=f"Order {info.get('orderNumber')}", sections=sections)
