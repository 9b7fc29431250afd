"""
Order mutations the POS extension can trigger: refund, cancel, fulfillment
status events and fulfilling whatever is still open.

Each operation loads a small context query first so we can fail with a
readable message (404 / 400) before the mutation is sent.
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from qr_order_scanner.services.shopify.client import AdminGraphQLClient, error_messages, to_order_gid
from qr_order_scanner.services.shopify.queries import (
    FULFILLMENT_CREATE_MUTATION,
    FULFILLMENT_EVENT_CREATE_MUTATION,
    ORDER_CANCEL_MUTATION,
    ORDER_FULFILLMENT_CONTEXT_QUERY,
    REFUND_CREATE_MUTATION,
)

logger = logging.getLogger(__name__)


class OrderActionError(Exception):
    status_code = 400

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class OrderNotFound(OrderActionError):
    status_code = 404


CANCEL_REASONS = ("CUSTOMER", "DECLINED", "FRAUD", "INVENTORY", "STAFF", "OTHER")

# keyword -> enum, checked in order against free-text reasons
_CANCEL_KEYWORDS = (
    ("fraud", "FRAUD"),
    ("declin", "DECLINED"),
    ("stock", "INVENTORY"),
    ("inventory", "INVENTORY"),
    ("customer", "CUSTOMER"),
    ("staff", "STAFF"),
    ("mistake", "STAFF"),
)

FULFILLMENT_EVENT_STATUSES = (
    "ATTEMPTED_DELIVERY",
    "CARRIER_PICKED_UP",
    "CONFIRMED",
    "DELAYED",
    "DELIVERED",
    "FAILURE",
    "IN_TRANSIT",
    "LABEL_PRINTED",
    "LABEL_PURCHASED",
    "OUT_FOR_DELIVERY",
    "PICKED_UP",
    "READY_FOR_PICKUP",
)

REFUNDABLE_KINDS = ("SALE", "CAPTURE")


def map_cancel_reason(reason: Optional[str]) -> Tuple[str, Optional[str]]:
    """(enum value, staff note). Free text is kept as the note."""
    text = (reason or "").strip()
    candidate = text.upper().replace(" ", "_")
    if candidate in CANCEL_REASONS:
        return candidate, None

    lowered = text.lower()
    for keyword, enum_value in _CANCEL_KEYWORDS:
        if keyword in lowered:
            return enum_value, text
    return "OTHER", text or None


def normalize_event_status(status: Optional[str]) -> Optional[str]:
    candidate = (status or "").strip().upper().replace(" ", "_").replace("-", "_")
    return candidate if candidate in FULFILLMENT_EVENT_STATUSES else None


def _raise_user_errors(errors: Optional[List[Dict[str, Any]]]) -> None:
    if errors:
        raise OrderActionError(error_messages(errors), errors=errors)


def _money(value: Any) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")


async def load_action_context(client: AdminGraphQLClient, order_id: str) -> Dict[str, Any]:
    data = await client.query(ORDER_FULFILLMENT_CONTEXT_QUERY, {"id": to_order_gid(order_id)})
    order = data.get("order")
    if not order:
        raise OrderNotFound(f"Order {order_id} not found")
    return order


def refundable_transactions(order: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [
        t for t in order.get("transactions") or []
        if t.get("status") == "SUCCESS" and t.get("kind") in REFUNDABLE_KINDS
    ]


def _transaction_amount(txn: Dict[str, Any]) -> Decimal:
    return _money(((txn.get("amountSet") or {}).get("shopMoney") or {}).get("amount"))


async def refund_order(
    client: AdminGraphQLClient,
    order_id: str,
    amount: Any,
    reason: Optional[str] = None,
    notify: bool = True,
) -> Dict[str, Any]:
    order = await load_action_context(client, order_id)
    txns = refundable_transactions(order)
    if not txns:
        raise OrderActionError("Order has no captured payment to refund")

    requested = _money(amount)
    captured = sum((_transaction_amount(t) for t in txns), Decimal("0"))
    if not requested.is_finite() or requested <= 0 or requested > captured:
        raise OrderActionError(
            f"Refund amount must be greater than 0 and at most {captured}",
            errors=[{"field": ["amount"], "message": "out of range"}],
        )

    parent = txns[0]
    gid = order["id"]
    refund_input = {
        "orderId": gid,
        "note": reason,
        "notify": notify,
        "transactions": [
            {
                "orderId": gid,
                "parentId": parent.get("id"),
                "amount": str(requested),
                "gateway": parent.get("gateway"),
                "kind": "REFUND",
            }
        ],
    }
    data = await client.query(REFUND_CREATE_MUTATION, {"input": refund_input})
    payload = data.get("refundCreate") or {}
    _raise_user_errors(payload.get("userErrors"))
    logger.info(f"Refunded {requested} on {gid}")
    return payload.get("refund") or {}


async def cancel_order(
    client: AdminGraphQLClient,
    order_id: str,
    reason: Optional[str] = None,
    notify: bool = True,
    refund: bool = False,
    restock: bool = True,
) -> Dict[str, Any]:
    order = await load_action_context(client, order_id)
    if order.get("cancelledAt"):
        raise OrderActionError(f"Order {order.get('name') or order_id} is already cancelled")

    enum_reason, staff_note = map_cancel_reason(reason)
    variables = {
        "orderId": order["id"],
        "reason": enum_reason,
        "refund": refund,
        "restock": restock,
        "notifyCustomer": notify,
        "staffNote": staff_note,
    }
    data = await client.query(ORDER_CANCEL_MUTATION, variables)
    payload = data.get("orderCancel") or {}
    _raise_user_errors(payload.get("orderCancelUserErrors"))
    logger.info(f"Cancelled {order['id']} reason={enum_reason}")
    return payload.get("job") or {}


async def update_fulfillment_status(
    client: AdminGraphQLClient,
    order_id: str,
    status: str,
    notify: bool = True,
) -> Dict[str, Any]:
    event_status = normalize_event_status(status)
    if not event_status:
        raise OrderActionError(
            f"Unknown fulfillment status: {status}",
            errors=[{"field": ["status"], "message": f"must be one of {', '.join(FULFILLMENT_EVENT_STATUSES)}"}],
        )

    order = await load_action_context(client, order_id)
    fulfillments = [f for f in order.get("fulfillments") or [] if f.get("id")]
    if not fulfillments:
        raise OrderActionError("Order has no fulfillments to update")
    latest = max(fulfillments, key=lambda f: f.get("createdAt") or "")

    # fulfillment events carry no notify flag; the platform decides from shop settings
    logger.debug(f"Fulfillment event {event_status} on {latest['id']} (notify={notify})")
    data = await client.query(
        FULFILLMENT_EVENT_CREATE_MUTATION,
        {"fulfillmentEvent": {"fulfillmentId": latest["id"], "status": event_status}},
    )
    payload = data.get("fulfillmentEventCreate") or {}
    _raise_user_errors(payload.get("userErrors"))
    return payload.get("fulfillmentEvent") or {}


def remaining_fulfillment_groups(order: Dict[str, Any]) -> List[Dict[str, Any]]:
    groups = []
    for edge in (order.get("fulfillmentOrders") or {}).get("edges") or []:
        fo = edge.get("node") or {}
        items = []
        for li_edge in (fo.get("lineItems") or {}).get("edges") or []:
            li = li_edge.get("node") or {}
            remaining = int(li.get("remainingQuantity") or 0)
            if remaining > 0:
                items.append({"id": li.get("id"), "quantity": remaining})
        if items:
            groups.append({"fulfillmentOrderId": fo.get("id"), "fulfillmentOrderLineItems": items})
    return groups


async def fulfill_order(client: AdminGraphQLClient, order_id: str, notify: bool = True) -> Dict[str, Any]:
    order = await load_action_context(client, order_id)
    groups = remaining_fulfillment_groups(order)
    if not groups:
        raise OrderActionError("Nothing left to fulfill on this order")

    data = await client.query(
        FULFILLMENT_CREATE_MUTATION,
        {"fulfillment": {"lineItemsByFulfillmentOrder": groups, "notifyCustomer": notify}},
    )
    payload = data.get("fulfillmentCreate") or {}
    _raise_user_errors(payload.get("userErrors"))
    logger.info(f"Fulfilled {sum(len(g['fulfillmentOrderLineItems']) for g in groups)} line items on {order['id']}")
    return payload.get("fulfillment") or {}
