import asyncio
import logging
import random
import time
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

ORDER_GID_PREFIX = "gid://shopify/Order/"
THROTTLE_STATUSES = (429, 430, 503)


class UpstreamError(Exception):
    """the Admin API could not be reached or answered with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GraphQLQueryError(Exception):
    """the Admin API answered with top-level GraphQL errors."""

    def __init__(self, errors: List[Dict[str, Any]]):
        self.errors = errors
        super().__init__(error_messages(errors))


def error_messages(errors: List[Dict[str, Any]]) -> str:
    return ", ".join(str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors)


def to_order_gid(order_id: str) -> str:
    order_id = str(order_id).strip()
    if order_id.startswith("gid://"):
        return order_id
    return f"{ORDER_GID_PREFIX}{order_id}"


class GraphQLResponse:
    def __init__(
        self,
        status: int,
        data: Optional[Dict[str, Any]],
        errors: Optional[List[Dict[str, Any]]],
        extensions: Optional[Dict[str, Any]],
        elapsed_ms: int,
    ):
        self.status = status
        self.data = data
        self.errors = errors
        self.extensions = extensions
        self.elapsed_ms = elapsed_ms

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def __repr__(self) -> str:
        return f"<GraphQLResponse status={self.status} errors={bool(self.errors)} {self.elapsed_ms}ms>"


def _normalize_errors(raw: Any) -> Optional[List[Dict[str, Any]]]:
    # the API sometimes returns a bare string instead of a list
    if not raw:
        return None
    if isinstance(raw, str):
        return [{"message": raw}]
    if isinstance(raw, dict):
        return [raw]
    return [e if isinstance(e, dict) else {"message": str(e)} for e in raw]


def _is_throttled(errors: Optional[List[Dict[str, Any]]]) -> bool:
    return any(((e.get("extensions") or {}).get("code") or "").upper() == "THROTTLED" for e in errors or [])


def _json_body(r: httpx.Response) -> Dict[str, Any]:
    try:
        body = r.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class AdminGraphQLClient:
    """Admin GraphQL API client bound to one shop's access token."""

    def __init__(
        self,
        shop: str,
        access_token: str,
        api_version: str = "2024-10",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_retries: int = 3,
        base_delay: float = 0.35,
    ):
        self.shop = shop
        self._access_token = access_token
        self.api_version = api_version
        self.timeout = timeout
        self._transport = transport
        self.max_retries = max(1, max_retries)
        self.base_delay = base_delay

    @property
    def endpoint(self) -> str:
        return f"https://{self.shop}/admin/api/{self.api_version}/graphql.json"

    def _backoff(self, attempt: int, retry_after: Optional[str] = None) -> float:
        if retry_after:
            try:
                return float(retry_after)
            except ValueError:
                pass
        return self.base_delay * (2 ** attempt) + random.uniform(0, 0.15)

    async def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> GraphQLResponse:
        """
        Run a query and return the raw response envelope.

        GraphQL errors are returned, not raised; throttled requests are retried
        with backoff. Transport failures raise UpstreamError.
        """
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "X-Shopify-Access-Token": self._access_token,
        }
        payload = {"query": query, "variables": variables or {}}

        started = time.perf_counter()
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            for attempt in range(self.max_retries):
                try:
                    r = await client.post(self.endpoint, headers=headers, json=payload)
                except httpx.HTTPError as e:
                    raise UpstreamError(f"Request to {self.shop} failed: {e}") from e

                last_attempt = attempt == self.max_retries - 1
                if r.status_code in THROTTLE_STATUSES and not last_attempt:
                    wait = self._backoff(attempt, r.headers.get("Retry-After"))
                    logger.warning(f"Admin API throttled ({r.status_code}), retrying in {wait:.2f}s")
                    await asyncio.sleep(wait)
                    continue

                body = _json_body(r)
                errors = _normalize_errors(body.get("errors"))
                if _is_throttled(errors) and not last_attempt:
                    wait = self._backoff(attempt)
                    logger.warning(f"GraphQL cost limit hit, retrying in {wait:.2f}s")
                    await asyncio.sleep(wait)
                    continue
                break

        result = GraphQLResponse(
            status=r.status_code,
            data=body.get("data"),
            errors=errors,
            extensions=body.get("extensions"),
            elapsed_ms=int((time.perf_counter() - started) * 1000),
        )
        logger.debug(f"GraphQL {self.shop}: {result!r}")
        return result

    async def query(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """run a query and return `data`, raising on GraphQL or HTTP errors."""
        res = await self.execute(query, variables)
        if res.errors:
            raise GraphQLQueryError(res.errors)
        if not res.ok:
            raise UpstreamError(f"Admin API responded with HTTP {res.status}", status_code=res.status)
        return res.data or {}
