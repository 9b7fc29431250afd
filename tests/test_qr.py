import json
import xml.etree.ElementTree as ET
from datetime import datetime, timezone

from qr_order_scanner.services.qr.encoder import render_qr_svg
from qr_order_scanner.services.qr.payload import build_qr_payload, store_handle_for
from qr_order_scanner.services.qr.placeholder import GRID_SIZE, render_placeholder_svg, simple_hash


def test_payload_formats():
    now = datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc)
    assert build_qr_payload("1001") == "#1001"
    assert build_qr_payload("1001", "bogus") == "#1001"
    assert build_qr_payload("1001", "url", "acme") == "https://admin.shopify.com/store/acme/orders/1001"

    payload = json.loads(build_qr_payload("1001", "json", now=now))
    assert payload == {"orderId": "1001", "type": "shopify_order", "timestamp": "2025-01-15T10:30:00.000Z"}


def test_store_handle():
    assert store_handle_for("acme.myshopify.com") == "acme"
    assert store_handle_for("acme.myshopify.com", "acme-jp") == "acme-jp"
    assert store_handle_for(None) == "your-store"


def test_simple_hash():
    assert simple_hash("") == 0
    assert simple_hash("a") == 97
    assert simple_hash("ab") == 97 * 31 + 98
    # wraps like a signed 32-bit int
    long_text = "x" * 50
    assert 0 <= simple_hash(long_text) <= 2 ** 31


def test_placeholder_svg():
    svg = render_placeholder_svg("#1001", 250)
    root = ET.fromstring(svg)
    assert root.get("width") == "250"
    assert svg.count('fill="white"') >= 4
    assert "Order #1001" in svg
    assert svg == render_placeholder_svg("#1001", 250)
    assert svg != render_placeholder_svg("#1002", 250)

    cell = 250 / GRID_SIZE
    assert f'width="{int(cell * 7)}"' in svg


def test_placeholder_caption_is_escaped():
    svg = render_placeholder_svg('<"x">', 100)
    assert "&lt;" in svg
    ET.fromstring(svg)


def test_real_qr_svg_is_sized():
    svg = render_qr_svg("#1001", 300)
    root = ET.fromstring(svg)
    assert root.tag.endswith("svg")
    assert root.get("width") == "300"
    assert root.get("height") == "300"
    assert root.get("viewBox")
    assert any(el.tag.endswith("path") for el in root.iter())


def test_real_qr_svg_uses_plain_svg_tags():
    render_qr_svg("warm-up")
    svg = render_qr_svg("#1002", 120)
    assert svg.startswith("<svg")
    assert 'xmlns="http://www.w3.org/2000/svg"' in svg
    assert "<path" in svg
    assert "svg:" not in svg
    assert "ns0:" not in svg
