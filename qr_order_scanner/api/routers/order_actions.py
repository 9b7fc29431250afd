import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from qr_order_scanner.core.config import Settings, get_settings
from qr_order_scanner.core.security import AdminContext, authenticate_admin
from qr_order_scanner.services.orders import actions
from qr_order_scanner.services.orders.formatting import to_order_info
from qr_order_scanner.services.orders.lookup import fetch_order
from qr_order_scanner.services.orders.notify import send_order_notification
from qr_order_scanner.schemas.actions import (
    ActionErrorResponse,
    ActionResponse,
    CancelRequest,
    FulfillmentUpdateRequest,
    FulfillRequest,
    NotifyRequest,
    RefundRequest,
)
from qr_order_scanner.services.shopify.client import GraphQLQueryError, UpstreamError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["order-actions"])

ERROR_RESPONSES = {
    400: {"model": ActionErrorResponse},
    404: {"model": ActionErrorResponse},
    502: {"model": ActionErrorResponse},
    503: {"model": ActionErrorResponse},
}


def _error(status_code: int, message: str, errors: Optional[list] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message, "errors": errors or []})


async def _success(ctx: AdminContext, order_id: str, message: str, result: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    # the mutation already went through; a failed re-read must not report it as failed
    try:
        order = await fetch_order(ctx.admin, order_id)
    except (GraphQLQueryError, UpstreamError) as e:
        logger.warning(f"Could not reload order {order_id} after action: {e}")
        order = None
    return {
        "success": True,
        "message": message,
        "order": to_order_info(order, order_id) if order else None,
        "result": result,
    }


async def _run(ctx: AdminContext, order_id: str, message: str, action):
    try:
        result = await action()
    except actions.OrderActionError as e:
        logger.info(f"Order action rejected for {order_id}: {e.message}")
        return _error(e.status_code, e.message, e.errors)
    except GraphQLQueryError as e:
        return _error(400, f"GraphQL error: {e}", e.errors)
    except UpstreamError as e:
        logger.error(f"Upstream failure on {order_id}: {e}")
        return _error(502, str(e))
    return await _success(ctx, order_id, message, result)


@router.post("/{order_id}/refund", response_model=ActionResponse, responses=ERROR_RESPONSES)
async def refund(order_id: str, payload: RefundRequest, ctx: AdminContext = Depends(authenticate_admin)):
    return await _run(
        ctx,
        order_id,
        f"Refund of {payload.amount:g} started",
        lambda: actions.refund_order(ctx.admin, order_id, payload.amount, payload.reason, payload.notify),
    )


@router.post("/{order_id}/cancel", response_model=ActionResponse, responses=ERROR_RESPONSES)
async def cancel(order_id: str, payload: CancelRequest, ctx: AdminContext = Depends(authenticate_admin)):
    return await _run(
        ctx,
        order_id,
        "Order cancelled",
        lambda: actions.cancel_order(
            ctx.admin, order_id, payload.reason, payload.notify, payload.refund, payload.restock
        ),
    )


@router.put("/{order_id}/fulfillment", response_model=ActionResponse, responses=ERROR_RESPONSES)
async def update_fulfillment(
    order_id: str, payload: FulfillmentUpdateRequest, ctx: AdminContext = Depends(authenticate_admin)
):
    return await _run(
        ctx,
        order_id,
        f"Fulfillment status updated to {payload.status}",
        lambda: actions.update_fulfillment_status(ctx.admin, order_id, payload.status, payload.notify),
    )


@router.post("/{order_id}/fulfill", response_model=ActionResponse, responses=ERROR_RESPONSES)
async def fulfill(order_id: str, payload: Optional[FulfillRequest] = None, ctx: AdminContext = Depends(authenticate_admin)):
    notify = payload.notify if payload else True
    return await _run(
        ctx,
        order_id,
        "Order marked as fulfilled",
        lambda: actions.fulfill_order(ctx.admin, order_id, notify),
    )


@router.post("/{order_id}/notify", response_model=ActionResponse, responses=ERROR_RESPONSES)
async def notify(
    order_id: str,
    payload: NotifyRequest,
    ctx: AdminContext = Depends(authenticate_admin),
    settings: Settings = Depends(get_settings),
):
    try:
        order = await fetch_order(ctx.admin, order_id)
        if not order:
            return _error(404, f"Order {order_id} not found")
        order_info = to_order_info(order, order_id)
        result = await run_in_threadpool(send_order_notification, settings, order_info, payload.type, payload.orderNumber)
    except actions.OrderActionError as e:
        return _error(e.status_code, e.message, e.errors)
    except GraphQLQueryError as e:
        return _error(400, f"GraphQL error: {e}", e.errors)
    except UpstreamError as e:
        return _error(502, str(e))

    channel = "email" if payload.type == "email" else "SMS"
    return {"success": True, "message": f"{channel} notification sent to customer", "order": order_info, "result": result}
