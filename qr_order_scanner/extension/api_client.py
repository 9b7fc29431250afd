import logging
from typing import Any, Dict, Optional

import httpx

from qr_order_scanner.services.orders.identifier import legacy_order_id

logger = logging.getLogger(__name__)


class ScannerApiError(Exception):
    pass


class ApiResponse:
    def __init__(self, status: int, body: Any):
        self.status = status
        self.body = body

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def message(self) -> str:
        if isinstance(self.body, dict):
            return str(self.body.get("message") or self.body.get("error") or f"HTTP {self.status}")
        return str(self.body)


class ScannerApiClient:
    """what the POS extension calls: the /api routes of this service over HTTP."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return {"error": response.text}

    async def fetch_order(self, order_id: str) -> Dict[str, Any]:
        """raw order node from GET /api/orders/{id}; raises ScannerApiError on failure."""
        try:
            response = await self.client.get(f"/api/orders/{legacy_order_id(order_id)}")
        except httpx.HTTPError as e:
            raise ScannerApiError(f"Could not reach the order API: {e}") from e

        body = self._json(response)
        if not response.is_success:
            raise ScannerApiError(body.get("error") or f"API call failed: {response.status_code}")
        order = body.get("order")
        if not order:
            raise ScannerApiError("Order data not found")
        return order

    async def order_action(
        self, order_id: str, action: str, payload: Optional[Dict[str, Any]] = None, method: str = "POST"
    ) -> ApiResponse:
        url = f"/api/orders/{legacy_order_id(order_id)}/{action}"
        response = await self.client.request(method, url, json=payload or {})
        return ApiResponse(response.status_code, self._json(response))

    async def order_qrcode(self, order_id: str, fmt: str, size: str) -> ApiResponse:
        response = await self.client.get(
            f"/api/orders/{legacy_order_id(order_id)}/qrcode",
            params={"format": fmt, "size": size},
        )
        return ApiResponse(response.status_code, response.text)
