import asyncio
import logging
from typing import Any, Callable, Dict, Optional

import httpx

from qr_order_scanner.extension.api_client import ScannerApiClient
from qr_order_scanner.extension.components import Button, Screen, Section, Text, TextField, row
from qr_order_scanner.extension.toast import Toast
from qr_order_scanner.services.orders.identifier import legacy_order_id
from qr_order_scanner.services.qr.payload import QR_FORMATS

logger = logging.getLogger(__name__)


class QRGeneratorView:
    def __init__(
        self,
        order_info: Dict[str, Any],
        api: ScannerApiClient,
        toast: Toast,
        on_back: Optional[Callable[[], None]] = None,
    ):
        self.order_info = order_info
        self.api = api
        self.toast = toast
        self.on_back = on_back

        self.selected_format = "simple"
        self.qr_size = "200"
        self.is_generating = False
        # "<format>_<size>" -> svg
        self.generated_qrs: Dict[str, str] = {}

    @property
    def order_id(self) -> str:
        return legacy_order_id(self.order_info["id"])

    @staticmethod
    def cache_key(fmt: str, size: str) -> str:
        return f"{fmt}_{size}"

    def select_format(self, fmt: str) -> bool:
        if fmt not in QR_FORMATS:
            self.toast.show(f"❌ Unknown QR format: {fmt}")
            return False
        self.selected_format = fmt
        return True

    async def generate_qr(self, fmt: Optional[str] = None, size: Optional[str] = None) -> bool:
        fmt = fmt or self.selected_format
        size = size or self.qr_size
        self.is_generating = True
        logger.debug(f"Generating {fmt} QR for {self.order_id} at {size}px")
        try:
            response = await self.api.order_qrcode(self.order_info["id"], fmt, size)
        except httpx.HTTPError as e:
            logger.error(f"QR generation failed for {self.order_id}: {e}")
            self.toast.show("❌ QR code generation failed")
            return False
        finally:
            self.is_generating = False

        if not response.ok:
            self.toast.show(f"❌ QR code generation error: {response.body}")
            return False

        self.generated_qrs[self.cache_key(fmt, size)] = response.body
        self.toast.show(f"✅ Generated {fmt} QR code")
        return True

    async def generate_all_formats(self) -> bool:
        self.toast.show("🔄 Generating QR codes in every format...")
        results = await asyncio.gather(*(self.generate_qr(fmt, self.qr_size) for fmt in QR_FORMATS))
        self.is_generating = False
        if all(results):
            self.toast.show("✅ All QR code formats generated")
            return True
        self.toast.show("❌ Some QR codes could not be generated")
        return False

    def format_description(self, fmt: str) -> str:
        if fmt == "simple":
            return f"#{self.order_id} - plain order number"
        if fmt == "json":
            return f'{{"orderId": "{self.order_id}", ...}} - JSON with details'
        if fmt == "url":
            return f"https://admin.shopify.com/store/.../orders/{self.order_id} - direct admin link"
        return ""

    def share_qr(self, fmt: str) -> bool:
        if self.cache_key(fmt, self.qr_size) in self.generated_qrs:
            self.toast.show(f"📋 Copied the {fmt} QR code to the clipboard")
            return True
        self.toast.show("❌ No QR code to share")
        return False

    def print_qr(self, fmt: str) -> bool:
        if self.cache_key(fmt, self.qr_size) in self.generated_qrs:
            self.toast.show(f"🖨️ Printing the {fmt} QR code")
            return True
        self.toast.show("❌ No QR code to print")
        return False

    def back(self) -> None:
        if self.on_back:
            self.on_back()

    def render(self) -> Screen:
        sections = [
            Section(
                title="Order",
                children=[
                    row("Order", self.order_info.get("orderNumber")),
                    row("Customer", self.order_info.get("customer")),
                    row("Total", self.order_info.get("total")),
                ],
            ),
            Section(
                title="Settings",
                children=[TextField(label="Size (px)", value=self.qr_size)]
                + [
                    Button(title=fmt, action=f"select_format:{fmt}", disabled=fmt == self.selected_format)
                    for fmt in QR_FORMATS
                ]
                + [Text(text=self.format_description(self.selected_format))],
            ),
            Section(
                title="Generate",
                children=[
                    Button(title=f"Generate {self.selected_format}", action="generate_qr", disabled=self.is_generating),
                    Button(title="Generate all formats", action="generate_all_formats", disabled=self.is_generating),
                ],
            ),
        ]

        generated = []
        for fmt in QR_FORMATS:
            if self.cache_key(fmt, self.qr_size) not in self.generated_qrs:
                continue
            generated += [
                Text(text=f"{fmt} ({self.qr_size}px)"),
                Button(title="Share", action=f"share_qr:{fmt}"),
                Button(title="Print", action=f"print_qr:{fmt}"),
            ]
        if generated:
            sections.append(Section(title="Generated QR codes", children=generated))

        sections.append(Section(children=[Button(title="Back", action="back")]))
        return Screen(name="qr-generator", title=f"QR codes - {self.order_info.get('orderNumber')}", sections=sections)
