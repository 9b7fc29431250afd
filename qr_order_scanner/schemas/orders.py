from typing import List, Optional

from pydantic import BaseModel


class OrderInfo(BaseModel):
    """order as the POS screens display it"""

    id: str
    orderNumber: str
    customer: str
    total: str
    status: str
    items: List[str] = []
    createdAt: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    subtotal: Optional[str] = None
    tax: Optional[str] = None
    shipping: Optional[str] = None
    financialStatus: Optional[str] = None
    fulfillmentStatus: Optional[str] = None
    tags: Optional[List[str]] = None
    note: Optional[str] = None
    trackingNumbers: List[str] = []
    cancelReason: Optional[str] = None
    shippingAddress: Optional[str] = None


class CachedOrder(BaseModel):
    id: str
    orderNumber: str
    customer: str
    total: str
    status: str
    cachedAt: str
    lastSynced: Optional[str] = None


class SyncStatus(BaseModel):
    isOnline: bool = True
    lastSync: Optional[str] = None
    pendingSync: int = 0
    totalCached: int = 0
