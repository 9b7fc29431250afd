"""
Reshape Admin API order nodes into the JSON the POS extension consumes.
"""
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any, Dict, List, Optional

GUEST_CUSTOMER = "Guest customer"
DEFAULT_STATUS = "Unfulfilled"

CURRENCY_SYMBOLS = {
    "JPY": "¥",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}


def iso_timestamp(now: Optional[datetime] = None) -> str:
    """UTC timestamp in the `2025-01-15T10:30:00.000Z` form."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def locale_number(value: Any) -> str:
    """`5400.00` -> `5,400`, `1234.5` -> `1,234.5`; at most 3 fraction digits."""
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return str(value)
    if not number.is_finite():
        return str(value)

    with localcontext() as ctx:
        # room for every integer digit plus three decimals
        ctx.prec = max(ctx.prec, number.adjusted() + 4)
        number = number.quantize(Decimal("0.001"), rounding=ROUND_HALF_UP)
    text = format(number, ",.3f")
    text = text.rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def format_money(amount: Any, currency: str) -> str:
    return f"{currency} {locale_number(amount)}"


def format_symbol_money(amount: Any, currency: Optional[str]) -> str:
    code = currency or "JPY"
    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol:
        return f"{symbol}{locale_number(amount)}"
    return format_money(amount, code)


def _shop_money(order: Dict[str, Any], key: str) -> Optional[Dict[str, Any]]:
    money_set = order.get(key) or {}
    return money_set.get("shopMoney") or None


def customer_display_name(order: Dict[str, Any]) -> str:
    customer = order.get("customer") or {}
    if customer.get("displayName"):
        return customer["displayName"]
    full = f"{customer.get('firstName') or ''} {customer.get('lastName') or ''}".strip()
    return full or order.get("email") or GUEST_CUSTOMER


def _line_item_nodes(order: Dict[str, Any]) -> List[Dict[str, Any]]:
    edges = (order.get("lineItems") or {}).get("edges") or []
    return [edge.get("node") or {} for edge in edges]


def line_item_label(item: Dict[str, Any]) -> str:
    variant_title = (item.get("variant") or {}).get("title")
    variant = f" ({variant_title})" if variant_title else ""
    return f"{item.get('title')}{variant} × {item.get('quantity')}"


def _total_price(order: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    money = _shop_money(order, "totalPriceSet")
    if not money:
        return None
    return {
        "amount": money.get("amount"),
        "currency": money.get("currencyCode"),
        "formatted": format_money(money.get("amount"), money.get("currencyCode")),
    }


def format_order_summary(order: Dict[str, Any]) -> Dict[str, Any]:
    """search result shape: the order with detail blocks flattened."""
    customer = order.get("customer") or {}
    line_items = _line_item_nodes(order)
    return {
        "id": order.get("id"),
        "legacyResourceId": order.get("legacyResourceId"),
        "name": order.get("name"),
        "customer": customer_display_name(order),
        "email": order.get("email") or customer.get("email"),
        "phone": order.get("phone"),
        "totalPrice": _total_price(order),
        "financialStatus": order.get("displayFinancialStatus"),
        "fulfillmentStatus": order.get("displayFulfillmentStatus"),
        "createdAt": order.get("createdAt"),
        "processedAt": order.get("processedAt"),
        "updatedAt": order.get("updatedAt"),
        "tags": order.get("tags"),
        "note": order.get("note"),
        "itemsCount": len(line_items),
        "shippingAddress": order.get("shippingAddress"),
        "billingAddress": order.get("billingAddress"),
        "lineItems": line_items,
        "fulfillments": order.get("fulfillments") or [],
        "transactions": order.get("transactions") or [],
    }


def _shipping_location(address: Optional[Dict[str, Any]]) -> Optional[str]:
    if not address:
        return None
    parts = (address.get("city") or "", address.get("province") or "", address.get("country") or "")
    return " ".join(parts).strip()


def format_order_list_item(order: Dict[str, Any]) -> Dict[str, Any]:
    customer = order.get("customer") or {}
    line_items = _line_item_nodes(order)
    return {
        "id": order.get("id"),
        "legacyResourceId": order.get("legacyResourceId"),
        "name": order.get("name"),
        "customer": customer_display_name(order),
        "email": order.get("email") or customer.get("email"),
        "phone": order.get("phone"),
        "totalPrice": _total_price(order),
        "financialStatus": order.get("displayFinancialStatus"),
        "fulfillmentStatus": order.get("displayFulfillmentStatus"),
        "processedAt": order.get("processedAt"),
        "createdAt": order.get("createdAt"),
        "updatedAt": order.get("updatedAt"),
        "tags": order.get("tags"),
        "note": order.get("note"),
        "itemsPreview": [line_item_label(item) for item in line_items[:3]],
        "totalItems": len(line_items),
        "shippingLocation": _shipping_location(order.get("shippingAddress")),
        "isCancelled": bool(order.get("cancelledAt")),
        "cancelReason": order.get("cancelReason"),
    }


def format_simple_order(order: Dict[str, Any], mode: str = "simple", default_currency: str = "JPY") -> Dict[str, Any]:
    formatted: Dict[str, Any] = {
        "id": order.get("id"),
        "name": order.get("name"),
        "createdAt": order.get("createdAt"),
    }
    if mode != "basic":
        return formatted

    money = _shop_money(order, "totalPriceSet") or {}
    amount = money.get("amount") or "0"
    currency = money.get("currencyCode") or default_currency
    formatted.update(
        {
            "legacyResourceId": order.get("legacyResourceId"),
            "email": order.get("email"),
            "customer": (order.get("customer") or {}).get("displayName") or GUEST_CUSTOMER,
            "totalPrice": {
                "amount": amount,
                "currencyCode": currency,
                "formatted": f"{currency} {amount}",
            },
            "financialStatus": order.get("displayFinancialStatus"),
            "fulfillmentStatus": order.get("displayFulfillmentStatus"),
        }
    )
    return formatted


def _date_only(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return value[:10]


def _tracking_numbers(fulfillments: Optional[List[Dict[str, Any]]]) -> List[str]:
    numbers: List[str] = []
    for fulfillment in fulfillments or []:
        info = fulfillment.get("trackingInfo")
        # the API returns a list; older payloads carry a single object
        entries = info if isinstance(info, list) else [info or {}]
        numbers.extend(entry.get("number") for entry in entries if entry and entry.get("number"))
    return numbers


def _symbol_money_or_none(order: Dict[str, Any], key: str) -> Optional[str]:
    money = _shop_money(order, key)
    if not money or not money.get("amount"):
        return None
    return format_symbol_money(money["amount"], money.get("currencyCode"))


def to_order_info(order: Dict[str, Any], fallback_id: str) -> Dict[str, Any]:
    """POS display shape for an order node."""
    customer = order.get("customer") or {}
    address = order.get("shippingAddress")
    shipping_address = None
    if address:
        parts = (address.get("address1") or "", address.get("city") or "", address.get("province") or "", address.get("zip") or "")
        shipping_address = " ".join(parts).strip()

    return {
        "id": order.get("id") or fallback_id,
        "orderNumber": order.get("name") or f"#{fallback_id}",
        "customer": customer_display_name(order),
        "total": _symbol_money_or_none(order, "totalPriceSet") or "¥0",
        "status": order.get("displayFulfillmentStatus") or DEFAULT_STATUS,
        "items": [line_item_label(item) for item in _line_item_nodes(order)],
        "createdAt": _date_only(order.get("createdAt")),
        "phone": order.get("phone"),
        "email": order.get("email") or customer.get("email"),
        "subtotal": _symbol_money_or_none(order, "subtotalPriceSet"),
        "tax": _symbol_money_or_none(order, "totalTaxSet"),
        "shipping": _symbol_money_or_none(order, "totalShippingPriceSet"),
        "financialStatus": order.get("displayFinancialStatus"),
        "fulfillmentStatus": order.get("displayFulfillmentStatus"),
        "tags": order.get("tags"),
        "note": order.get("note"),
        "trackingNumbers": _tracking_numbers(order.get("fulfillments")),
        "cancelReason": order.get("cancelReason"),
        "shippingAddress": shipping_address,
    }
