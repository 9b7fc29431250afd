from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from qr_order_scanner.schemas.orders import OrderInfo


class RefundRequest(BaseModel):
    amount: float = Field(gt=0, allow_inf_nan=False)
    reason: Optional[str] = None
    notify: bool = True


class CancelRequest(BaseModel):
    reason: Optional[str] = None
    notify: bool = True
    refund: bool = False
    restock: bool = True


class FulfillmentUpdateRequest(BaseModel):
    status: str
    notify: bool = True

    @field_validator("status")
    @classmethod
    def status_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("status is required")
        return v


class FulfillRequest(BaseModel):
    notify: bool = True


class NotifyRequest(BaseModel):
    type: Literal["email", "sms"]
    orderNumber: Optional[str] = None


class ActionResponse(BaseModel):
    success: bool = True
    message: str
    order: Optional[OrderInfo] = None
    result: Optional[Dict[str, Any]] = None


class ActionErrorResponse(BaseModel):
    success: bool = False
    message: str
    errors: List[Any] = []
