"""
Turn whatever a scanner or a cashier hands us into an order id.

Supported shapes, in priority order:
    #1179
    1179
    https://admin.shopify.com/store/acme/orders/1179
    gid://shopify/Order/1179
    {"orderId": "1179", ...}   (also order_id / id)
"""
import json
import logging
import re
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

_HASH_RE = re.compile(r"^#(\d+)$")
_DIGITS_RE = re.compile(r"^\d+$")
_URL_RE = re.compile(r"/orders/(\d+)")
_GID_RE = re.compile(r"gid://shopify/Order/(\d+)")

JSON_ID_KEYS = ("orderId", "order_id", "id")


def _match_hash(data: str) -> Optional[str]:
    m = _HASH_RE.match(data)
    return m.group(1) if m else None


def _match_digits(data: str) -> Optional[str]:
    return data if _DIGITS_RE.match(data) else None


def _match_url(data: str) -> Optional[str]:
    m = _URL_RE.search(data)
    return m.group(1) if m else None


def _match_gid(data: str) -> Optional[str]:
    m = _GID_RE.search(data)
    return m.group(1) if m else None


def _match_json(data: str) -> Optional[str]:
    try:
        payload = json.loads(data)
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    for key in JSON_ID_KEYS:
        value = payload.get(key)
        if value:
            return str(value)
    return None


MATCHERS: List[Callable[[str], Optional[str]]] = [
    _match_hash,
    _match_digits,
    _match_url,
    _match_gid,
    _match_json,
]


def parse_order_identifier(data: Optional[str]) -> Optional[str]:
    """return the order id encoded in `data`, or None when nothing matches."""
    if not data:
        return None
    text = str(data).strip()
    if not text:
        return None

    for matcher in MATCHERS:
        found = matcher(text)
        if found:
            return found

    logger.debug(f"Unrecognised order identifier: {text[:80]!r}")
    return None


def legacy_order_id(order_id: str) -> str:
    """numeric id for URL paths; accepts gids and plain ids."""
    order_id = str(order_id)
    if order_id.startswith("gid://"):
        return order_id.rstrip("/").rsplit("/", 1)[-1]
    return order_id
