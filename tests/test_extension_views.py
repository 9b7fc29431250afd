import json
from datetime import datetime

import httpx
import pytest
from conftest import order_node

from qr_order_scanner.extension.api_client import ScannerApiClient, ScannerApiError
from qr_order_scanner.extension.modal import ScannerModal
from qr_order_scanner.extension.offline_manager import OfflineManager
from qr_order_scanner.extension.order_actions import OrderActionsView
from qr_order_scanner.extension.order_details import OrderDetailsView
from qr_order_scanner.extension.qr_generator import QRGeneratorView
from qr_order_scanner.extension.toast import RecordingToast
from qr_order_scanner.services.orders.formatting import to_order_info


class FakeBackend:
    """canned answers for the service's /api routes, keyed by (method, path)."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def on(self, method, path, status=200, json_body=None, text=None):
        self.routes[(method, path)] = (status, json_body, text)
        return self

    def fail(self, method, path):
        self.routes[(method, path)] = None
        return self

    def handle(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.requests.append({"method": request.method, "path": request.url.path, "params": dict(request.url.params), "json": body})
        key = (request.method, request.url.path)
        if key not in self.routes:
            return httpx.Response(404, json={"error": "not found"})
        canned = self.routes[key]
        if canned is None:
            raise httpx.ConnectError("connection refused", request=request)
        status, json_body, text = canned
        if text is not None:
            return httpx.Response(status, text=text)
        return httpx.Response(status, json=json_body)

    def last(self, path):
        return [r for r in self.requests if r["path"] == path][-1]


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def api(backend):
    client = httpx.AsyncClient(transport=httpx.MockTransport(backend.handle), base_url="http://scanner.test")
    return ScannerApiClient(client)


@pytest.fixture
def toast():
    return RecordingToast()


@pytest.fixture
def order_info():
    return to_order_info(order_node(), "1001")


# api client


async def test_fetch_order_errors(api, backend):
    backend.on("GET", "/api/orders/404", status=404, json_body={"error": "Order 404 was not found"})
    backend.on("GET", "/api/orders/500", status=500, json_body={})
    backend.on("GET", "/api/orders/7", json_body={"order": None})
    backend.fail("GET", "/api/orders/8")

    with pytest.raises(ScannerApiError, match="Order 404 was not found"):
        await api.fetch_order("404")
    with pytest.raises(ScannerApiError, match="API call failed: 500"):
        await api.fetch_order("500")
    with pytest.raises(ScannerApiError, match="Order data not found"):
        await api.fetch_order("gid://shopify/Order/7")
    with pytest.raises(ScannerApiError, match="Could not reach the order API"):
        await api.fetch_order("8")


# scanner modal


async def test_scan_loads_order(api, backend, toast):
    backend.on("GET", "/api/orders/1001", json_body={"success": True, "order": order_node()})
    modal = ScannerModal(api, toast)
    modal.start_camera_scanning()

    assert await modal.handle_scan("https://admin.shopify.com/store/test-shop/orders/1001") is True
    assert modal.show_scanner is False
    assert modal.scan_count == 1
    assert modal.order_info["orderNumber"] == "#1001"
    assert modal.order_info["total"] == "¥5,400"
    assert toast.messages == ["📱 QR code scanned", "✅ Loaded order #1001"]


async def test_scan_ignored_when_hidden_or_duplicate(api, backend, toast):
    backend.on("GET", "/api/orders/1001", json_body={"order": order_node()})
    modal = ScannerModal(api, toast)

    assert await modal.handle_scan("#1001") is False
    modal.start_camera_scanning()
    assert await modal.handle_scan("") is False
    assert await modal.handle_scan("#1001") is True

    modal.show_scanner = True
    assert await modal.handle_scan("#1001") is False
    assert modal.scan_count == 1


async def test_scan_unrecognised_code(api, backend, toast):
    modal = ScannerModal(api, toast)
    modal.start_camera_scanning()

    assert await modal.handle_scan("hello world") is True
    assert modal.error == "QR code format not recognised"
    assert toast.last == "❌ Could not recognise the QR code"
    assert backend.requests == []


async def test_scan_fetch_failure_sets_error(api, backend, toast):
    backend.on("GET", "/api/orders/999", status=404, json_body={"error": "Order 999 was not found"})
    modal = ScannerModal(api, toast)
    modal.start_camera_scanning()

    await modal.handle_scan("#999")
    assert modal.order_info is None
    assert modal.error == "Order 999 was not found"
    assert modal.is_loading is False
    assert "❌ Order 999 was not found" in modal.render().texts()


async def test_manual_search(api, backend, toast):
    backend.on("GET", "/api/orders/1001", json_body={"order": order_node()})
    modal = ScannerModal(api, toast)

    assert await modal.manual_search() is False
    assert modal.error == "Enter an order ID"

    modal.manual_input = "  #1001 "
    assert await modal.manual_search() is True
    assert modal.manual_input == ""
    assert modal.scan_count == 1
    assert modal.error is None


async def test_manual_search_passes_unparsed_text(api, backend, toast):
    modal = ScannerModal(api, toast)
    modal.manual_input = "abc"
    assert await modal.manual_search() is False
    assert backend.last("/api/orders/abc")["method"] == "GET"
    assert modal.manual_input == "abc"


def test_reset_and_render(api, toast, order_info):
    modal = ScannerModal(api, toast)
    modal.order_info = order_info
    screen = modal.render()
    assert screen.name == "qr-order-scanner"
    assert "Customer: Taro Tanaka" in screen.texts()
    assert screen.button("view_order_details") is not None

    modal.reset()
    assert modal.order_info is None
    assert modal.render().section("Order") is None


def test_details_round_trip_keeps_refreshed_order(api, toast, order_info):
    modal = ScannerModal(api, toast)
    assert modal.view_order_details() is None

    modal.order_info = order_info
    details = modal.view_order_details()
    assert modal.render().name == "order-details"
    assert toast.last == "📋 Showing order details: #1001"

    details.apply_update({"success": True, "order": {**order_info, "status": "FULFILLED"}})
    details.back()
    assert modal.show_order_details is False
    assert modal.order_info["status"] == "FULFILLED"
    assert toast.last == "📱 Back to the scanner"


def test_offline_manager_navigation(api, toast):
    modal = ScannerModal(api, toast, offline_manager=OfflineManager(toast, clock=lambda: datetime(2025, 1, 1)))
    manager = modal.open_offline_manager()
    assert modal.render().name == "offline-manager"
    assert toast.last == "🌐 Opening offline manager"

    manager.back()
    assert modal.show_offline_manager is False
    assert toast.last == "📱 Back to the main screen"
    assert modal.render().name == "qr-order-scanner"


def test_system_check(api, toast):
    ScannerModal(api, toast).system_check()
    assert toast.last == "🎉 System is working"


# order details


def test_details_render(api, toast):
    info = to_order_info(
        order_node(fulfillments=[{"trackingInfo": [{"number": "TRK123"}]}], note="Leave at door"),
        "1001",
    )
    screen = OrderDetailsView(info, api, toast).render()
    assert screen.title == "Order #1001"
    assert "Shipping address: 1-2-3 Jingumae Shibuya Tokyo 150-0001" in screen.texts()
    assert "Leave at door" in screen.texts()
    assert screen.section("Items").children[0].text == "T-shirt (M) × 2"


def test_details_subviews(api, toast, order_info):
    details = OrderDetailsView(order_info, api, toast)

    details.open_actions()
    assert details.render().name == "order-actions"
    details.actions_view.back()
    assert details.show_actions is False

    details.open_qr_generator()
    assert details.render().name == "qr-generator"
    assert toast.last == "📱 Opening QR code generator"
    details.qr_view.back()
    assert details.render().name == "order-details"


def test_apply_update_without_order(api, toast, order_info):
    details = OrderDetailsView(order_info, api, toast)
    details.apply_update({"success": True, "message": "ok"})
    assert details.current_order_info is order_info
    assert toast.last == "✅ Order information updated"


# order actions


async def test_refund_validation(api, backend, toast, order_info):
    view = OrderActionsView(order_info, api, toast)
    assert await view.refund() is False
    assert toast.last == "❌ Enter a refund amount and reason"

    view.refund_amount = "abc"
    view.refund_reason = "Damaged"
    assert await view.refund() is False
    assert toast.last == "❌ Refund amount must be a number"
    assert backend.requests == []


async def test_refund_success_forwards_update(api, backend, toast, order_info):
    backend.on("POST", "/api/orders/1001/refund", json_body={"success": True, "message": "Refund created", "order": {"id": "x"}})
    updates = []
    view = OrderActionsView(order_info, api, toast, on_order_updated=updates.append)
    view.refund_amount = "500"
    view.refund_reason = "Damaged"

    assert await view.refund() is True
    assert backend.last("/api/orders/1001/refund")["json"] == {"amount": 500.0, "reason": "Damaged", "notify": True}
    assert toast.last == "✅ Refund of ¥500 started"
    assert updates == [{"success": True, "message": "Refund created", "order": {"id": "x"}}]
    assert view.refund_amount == ""
    assert view.is_processing is False


async def test_refund_api_error(api, backend, toast, order_info):
    backend.on("POST", "/api/orders/1001/refund", status=400, json_body={"success": False, "error": "Refund amount exceeds the order total"})
    view = OrderActionsView(order_info, api, toast)
    view.refund_amount = "99999"
    view.refund_reason = "Oops"

    assert await view.refund() is False
    assert toast.last == "❌ Refund error: Refund amount exceeds the order total"
    assert view.refund_amount == "99999"


async def test_cancel(api, backend, toast, order_info):
    backend.on("POST", "/api/orders/1001/cancel", json_body={"success": True, "message": "Order cancelled"})
    view = OrderActionsView(order_info, api, toast)

    assert await view.cancel() is False
    assert toast.last == "❌ Enter a cancellation reason"

    view.cancel_reason = "CUSTOMER"
    assert await view.cancel() is True
    assert backend.last("/api/orders/1001/cancel")["json"] == {"reason": "CUSTOMER", "notify": True, "refund": False, "restock": True}
    assert toast.last == "✅ Order cancelled"
    assert view.cancel_reason == ""


async def test_update_fulfillment_uses_put(api, backend, toast, order_info):
    backend.on("PUT", "/api/orders/1001/fulfillment", json_body={"success": True})
    view = OrderActionsView(order_info, api, toast)
    assert view.fulfillment_status == "UNFULFILLED"

    view.fulfillment_status = "in_transit"
    assert await view.update_fulfillment() is True
    assert backend.last("/api/orders/1001/fulfillment")["method"] == "PUT"
    assert toast.last == '✅ Fulfillment status updated to "in_transit"'

    view.fulfillment_status = ""
    assert await view.update_fulfillment() is False
    assert toast.last == "❌ Choose a fulfillment status"


async def test_mark_as_fulfilled_network_failure(api, backend, toast, order_info):
    backend.fail("POST", "/api/orders/1001/fulfill")
    view = OrderActionsView(order_info, api, toast)
    assert await view.mark_as_fulfilled() is False
    assert toast.last == "❌ Fulfill failed"
    assert view.is_processing is False


async def test_send_notification_does_not_forward(api, backend, toast, order_info):
    backend.on("POST", "/api/orders/1001/notify", json_body={"success": True, "message": "sent"})
    updates = []
    view = OrderActionsView(order_info, api, toast, on_order_updated=updates.append)

    assert await view.send_notification("sms") is True
    assert backend.last("/api/orders/1001/notify")["json"] == {"type": "sms", "orderNumber": "#1001"}
    assert toast.last == "✅ Sent SMS notification to the customer"
    assert updates == []


# qr generator


async def test_generate_qr_caches_svg(api, backend, toast, order_info):
    backend.on("GET", "/api/orders/1001/qrcode", text="<svg/>")
    view = QRGeneratorView(order_info, api, toast)

    assert await view.generate_qr("json", "300") is True
    assert view.generated_qrs == {"json_300": "<svg/>"}
    assert backend.last("/api/orders/1001/qrcode")["params"] == {"format": "json", "size": "300"}
    assert toast.last == "✅ Generated json QR code"
    assert view.is_generating is False


async def test_generate_qr_error(api, backend, toast, order_info):
    backend.on("GET", "/api/orders/1001/qrcode", status=422, text="bad size")
    view = QRGeneratorView(order_info, api, toast)
    assert await view.generate_qr("simple", "5") is False
    assert toast.last == "❌ QR code generation error: bad size"
    assert view.generated_qrs == {}


async def test_generate_all_formats(api, backend, toast, order_info):
    backend.on("GET", "/api/orders/1001/qrcode", text="<svg/>")
    view = QRGeneratorView(order_info, api, toast)

    assert await view.generate_all_formats() is True
    assert set(view.generated_qrs) == {"simple_200", "json_200", "url_200"}
    assert toast.messages[0] == "🔄 Generating QR codes in every format..."
    assert toast.last == "✅ All QR code formats generated"
    assert len(view.render().section("Generated QR codes").children) == 9


async def test_generate_all_formats_partial_failure(api, backend, toast, order_info):
    backend.fail("GET", "/api/orders/1001/qrcode")
    view = QRGeneratorView(order_info, api, toast)
    assert await view.generate_all_formats() is False
    assert toast.last == "❌ Some QR codes could not be generated"


async def test_share_and_print(api, backend, toast, order_info):
    backend.on("GET", "/api/orders/1001/qrcode", text="<svg/>")
    view = QRGeneratorView(order_info, api, toast)

    assert view.share_qr("simple") is False
    assert toast.last == "❌ No QR code to share"
    assert view.print_qr("simple") is False
    assert toast.last == "❌ No QR code to print"

    await view.generate_qr("simple", view.qr_size)
    assert view.share_qr("simple") is True
    assert toast.last == "📋 Copied the simple QR code to the clipboard"
    assert view.print_qr("simple") is True
    assert toast.last == "🖨️ Printing the simple QR code"


def test_format_description(api, toast, order_info):
    view = QRGeneratorView(order_info, api, toast)
    assert view.order_id == "1001"
    assert view.format_description("simple") == "#1001 - plain order number"
    assert view.format_description("json").startswith('{"orderId": "1001"')
    assert view.format_description("url").endswith("/orders/1001 - direct admin link")
    assert view.format_description("other") == ""


def test_select_format(api, toast, order_info):
    view = QRGeneratorView(order_info, api, toast)
    assert view.render().button("select_format:simple").disabled is True

    assert view.select_format("url") is True
    screen = view.render()
    assert screen.button("select_format:url").disabled is True
    assert screen.button("select_format:simple").disabled is False
    assert screen.button("generate_qr").title == "Generate url"

    assert view.select_format("barcode") is False
    assert view.selected_format == "url"
    assert toast.last == "❌ Unknown QR format: barcode"


async def test_generate_qr_defaults_to_selection(api, backend, toast, order_info):
    backend.on("GET", "/api/orders/1001/qrcode", text="<svg/>")
    view = QRGeneratorView(order_info, api, toast)
    view.select_format("json")
    assert await view.generate_qr() is True
    assert backend.last("/api/orders/1001/qrcode")["params"] == {"format": "json", "size": "200"}
    assert "json_200" in view.generated_qrs


async def test_every_button_has_a_handler(api, backend, toast, order_info):
    backend.on("GET", "/api/orders/1001/qrcode", text="<svg/>")
    qr = QRGeneratorView(order_info, api, toast)
    await qr.generate_all_formats()
    modal = ScannerModal(api, toast)
    modal.order_info = order_info
    views = [
        modal,
        OrderDetailsView(to_order_info(order_node(fulfillments=[{"trackingInfo": [{"number": "TRK1"}]}]), "1001"), api, toast),
        OrderActionsView(order_info, api, toast),
        OfflineManager(toast),
        qr,
    ]
    for view in views:
        for button in view.render().buttons():
            method = button.action.split(":")[0]
            assert callable(getattr(view, method, None)), f"{type(view).__name__} has no {method}"


# against the real app


async def test_scan_against_app(app, admin_api, auth_headers, toast):
    admin_api.on("getOrder", {"order": order_node()})
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver", headers=auth_headers) as client:
        api = ScannerApiClient(client)
        modal = ScannerModal(api, toast)
        modal.start_camera_scanning()
        await modal.handle_scan('{"orderId": "1001", "orderNumber": "#1001"}')

        assert modal.order_info["customer"] == "Taro Tanaka"
        assert admin_api.last("getOrder")["variables"] == {"id": "gid://shopify/Order/1001"}

        qr = modal.view_order_details().open_qr_generator()
        assert await qr.generate_qr("simple") is True
        assert "<svg" in qr.generated_qrs["simple_200"]
