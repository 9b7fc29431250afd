"""
Entry screen of the POS extension: scan (or type) an order, show a summary,
drill into details or the offline manager.
"""
import logging
from typing import Any, Dict, Optional

from qr_order_scanner.extension.api_client import ScannerApiClient, ScannerApiError
from qr_order_scanner.extension.components import Button, Screen, Section, Text, TextField, row
from qr_order_scanner.extension.offline_manager import OfflineManager
from qr_order_scanner.extension.order_details import OrderDetailsView
from qr_order_scanner.extension.toast import Toast
from qr_order_scanner.services.orders.formatting import to_order_info
from qr_order_scanner.services.orders.identifier import parse_order_identifier

logger = logging.getLogger(__name__)


class ScannerModal:
    def __init__(self, api: ScannerApiClient, toast: Toast, offline_manager: Optional[OfflineManager] = None):
        self.api = api
        self.toast = toast

        self.show_scanner = False
        self.manual_input = ""
        self.order_info: Optional[Dict[str, Any]] = None
        self.is_loading = False
        self.error: Optional[str] = None
        self.scan_count = 0
        self.last_scanned_data: Optional[str] = None
        self.show_order_details = False
        self.show_offline_manager = False

        self.details_view: Optional[OrderDetailsView] = None
        self.offline_manager = offline_manager

    async def fetch_order_data(self, order_id: str) -> Optional[Dict[str, Any]]:
        """fetch and reshape; failures land in `error` and return None."""
        self.is_loading = True
        self.error = None
        logger.info(f"Fetching order {order_id}")
        try:
            order = await self.api.fetch_order(order_id)
        except ScannerApiError as e:
            logger.warning(f"Order fetch failed for {order_id}: {e}")
            self.error = str(e)
            return None
        finally:
            self.is_loading = False
        return to_order_info(order, order_id)

    def start_camera_scanning(self) -> None:
        self.show_scanner = True
        self.error = None
        self.last_scanned_data = None

    def stop_camera_scanning(self) -> None:
        self.show_scanner = False
        self.last_scanned_data = None

    async def handle_scan(self, data: Optional[str]) -> bool:
        """one scanner callback; returns False when the read is ignored."""
        if not data or not self.show_scanner or data == self.last_scanned_data:
            return False

        self.last_scanned_data = data
        self.scan_count += 1
        self.show_scanner = False
        self.toast.show("📱 QR code scanned")

        order_id = parse_order_identifier(data)
        if not order_id:
            self.error = "QR code format not recognised"
            self.toast.show("❌ Could not recognise the QR code")
            return True

        order = await self.fetch_order_data(order_id)
        if order:
            self.order_info = order
            self.toast.show(f"✅ Loaded order {order['orderNumber']}")
        return True

    async def manual_search(self) -> bool:
        text = self.manual_input.strip()
        if not text:
            self.error = "Enter an order ID"
            return False

        order = await self.fetch_order_data(parse_order_identifier(text) or text)
        if not order:
            return False
        self.order_info = order
        self.manual_input = ""
        self.scan_count += 1
        return True

    def reset(self) -> None:
        self.order_info = None
        self.error = None
        self.last_scanned_data = None

    def view_order_details(self) -> Optional[OrderDetailsView]:
        if not self.order_info:
            return None
        self.details_view = OrderDetailsView(self.order_info, self.api, self.toast, on_back=self.back_from_details)
        self.show_order_details = True
        self.toast.show(f"📋 Showing order details: {self.order_info['orderNumber']}")
        return self.details_view

    def back_from_details(self) -> None:
        # keep whatever the details screen refreshed
        if self.details_view:
            self.order_info = self.details_view.current_order_info
        self.show_order_details = False
        self.details_view = None
        self.toast.show("📱 Back to the scanner")

    def open_offline_manager(self) -> OfflineManager:
        if self.offline_manager is None:
            self.offline_manager = OfflineManager(self.toast)
        self.offline_manager.on_back = self.close_offline_manager
        self.show_offline_manager = True
        self.toast.show("🌐 Opening offline manager")
        return self.offline_manager

    def close_offline_manager(self) -> None:
        self.show_offline_manager = False
        self.toast.show("📱 Back to the main screen")

    def system_check(self) -> None:
        self.toast.show("🎉 System is working")

    def render(self) -> Screen:
        if self.show_order_details and self.details_view:
            return self.details_view.render()
        if self.show_offline_manager and self.offline_manager:
            return self.offline_manager.render()

        sections = [
            Section(
                title="Scan",
                children=[
                    Text(text=f"Scans: {self.scan_count}"),
                    Button(title="Stop camera", action="stop_camera_scanning")
                    if self.show_scanner
                    else Button(title="Start camera", action="start_camera_scanning"),
                ],
            ),
            Section(
                title="Manual search",
                children=[
                    TextField(label="Order ID", value=self.manual_input, placeholder="#1001"),
                    Button(title="Search", action="manual_search", disabled=self.is_loading),
                ],
            ),
        ]

        if self.is_loading:
            sections.append(Section(children=[Text(text="Loading order...")]))
        if self.error:
            sections.append(Section(title="Error", children=[Text(text=f"❌ {self.error}")]))

        if self.order_info:
            info = self.order_info
            sections.append(
                Section(
                    title="Order",
                    children=[
                        row("Order", info.get("orderNumber")),
                        row("Customer", info.get("customer")),
                        row("Total", info.get("total")),
                        row("Status", info.get("status")),
                    ]
                    + [Text(text=item) for item in info.get("items") or []]
                    + [
                        Button(title="Order details", action="view_order_details"),
                        Button(title="Clear", action="reset"),
                    ],
                )
            )

        sections.append(
            Section(
                title="Tools",
                children=[
                    Button(title="System check", action="system_check"),
                    Button(title="Offline manager", action="open_offline_manager"),
                ],
            )
        )
        return Screen(name="qr-order-scanner", title="QR Order Scanner", sections=sections)
