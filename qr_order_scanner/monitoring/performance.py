"""
Response-time monitor for the order endpoints.

Drive it with an httpx.AsyncClient pointed at a running app (or at the ASGI
app itself through httpx.ASGITransport):

    async with httpx.AsyncClient(base_url="http://localhost:8000", headers=auth) as client:
        monitor = PerformanceMonitor(client)
        await monitor.run_round()
        print(monitor.snapshot())
"""
import asyncio
import logging
import math
import time
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import httpx
from pydantic import BaseModel

from qr_order_scanner.services.orders.formatting import iso_timestamp

logger = logging.getLogger(__name__)

MONITORED_ENDPOINTS: Sequence[Tuple[str, str]] = (
    ("/api/basic", "Basic API"),
    ("/api/orders/simple-list?mode=simple&limit=1", "Simple orders API"),
    ("/api/orders/simple-list?mode=basic&limit=3", "Basic orders API"),
    ("/api/orders/list?limit=5", "Order list API"),
    ("/api/orders/search?query=test", "Order search API"),
)

HISTORY_SIZE = 20
LOG_SIZE = 50


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class EndpointMetrics(BaseModel):
    totalRequests: int = 0
    successRequests: int = 0
    errorRequests: int = 0
    averageResponseTime: int = 0
    responseTimeHistory: List[int] = []
    lastError: Optional[str] = None

    def record_response(self, response_ms: int, ok: bool, error: Optional[str] = None, history_size: int = HISTORY_SIZE) -> None:
        self.responseTimeHistory = (self.responseTimeHistory + [response_ms])[-history_size:]
        self.totalRequests += 1
        if ok:
            self.successRequests += 1
        else:
            self.errorRequests += 1
            self.lastError = error
        self.averageResponseTime = _round_half_up(sum(self.responseTimeHistory) / len(self.responseTimeHistory))

    def record_failure(self, error: str) -> None:
        # transport failures count as errors but carry no response time
        self.totalRequests += 1
        self.errorRequests += 1
        self.lastError = error


class PerformanceMonitor:
    def __init__(
        self,
        client: httpx.AsyncClient,
        endpoints: Sequence[Tuple[str, str]] = MONITORED_ENDPOINTS,
        clock: Callable[[], float] = time.perf_counter,
        history_size: int = HISTORY_SIZE,
        log_size: int = LOG_SIZE,
    ):
        self.client = client
        self.endpoints = list(endpoints)
        self.clock = clock
        self.history_size = history_size
        self.log_size = log_size
        self.metrics: Dict[str, EndpointMetrics] = {}
        self.logs: List[str] = []
        self.reset()

    def reset(self) -> None:
        self.metrics = {label: EndpointMetrics() for _, label in self.endpoints}
        self.logs = []

    def _log(self, message: str, level: str = "info") -> None:
        marker = {"success": "OK", "error": "ERR"}.get(level, "..")
        self.logs = [f"{datetime.now().strftime('%H:%M:%S')}: {marker} {message}"] + self.logs[: self.log_size - 1]

    async def test_endpoint(self, endpoint: str, label: str) -> EndpointMetrics:
        metrics = self.metrics.setdefault(label, EndpointMetrics())
        self._log(f"{label} check started")
        started = self.clock()
        try:
            response = await self.client.get(endpoint)
        except httpx.HTTPError as e:
            metrics.record_failure(str(e))
            self._log(f"{label}: error - {e}", "error")
            return metrics

        response_ms = _round_half_up((self.clock() - started) * 1000)
        ok = response.is_success
        metrics.record_response(
            response_ms,
            ok,
            None if ok else f"{response.status_code}: {response.reason_phrase}",
            self.history_size,
        )
        if ok:
            self._log(f"{label}: {response_ms}ms ({response.status_code})", "success")
        else:
            self._log(f"{label}: {response_ms}ms - error {response.status_code}", "error")
        logger.debug(f"{label} -> {response.status_code} in {response_ms}ms")
        return metrics

    async def run_round(self) -> Dict[str, EndpointMetrics]:
        """hit every monitored endpoint once, concurrently."""
        await asyncio.gather(*(self.test_endpoint(endpoint, label) for endpoint, label in self.endpoints))
        return self.metrics

    def snapshot(self) -> Dict[str, object]:
        return {
            "timestamp": iso_timestamp(),
            "metrics": {label: m.model_dump() for label, m in self.metrics.items()},
        }


def initial_metrics(endpoints: Sequence[Tuple[str, str]] = MONITORED_ENDPOINTS) -> Dict[str, Dict[str, object]]:
    return {label: EndpointMetrics().model_dump(exclude={"lastError"}) for _, label in endpoints}
