"""Clover POS adapter - REST client for Clover's merchant platform."""

import asyncio
import logging
import time
from datetime import datetime
from types import TracebackType
from typing import Any

from django.conf import settings

import httpx
from tabletop_schemas import (
    CloverDevice,
    CloverLineItem,
    CloverLineItemRecord,
    CloverOrderBlock,
    CloverOrderRecord,
    CloverTender,
)

from apps.web.pos.exceptions import (
    POSAPIError,
    POSAuthError,
    POSRateLimitError,
)

logger = logging.getLogger(__name__)


def to_epoch_millis(value: datetime) -> int:
    """Clover filters compare timestamps in epoch milliseconds."""
    return int(value.timestamp() * 1000)


class CloverAdapter:
    """
    Async client for the Clover REST API.

    Covers what order reconciliation needs:
    - Device lookup (location discovery)
    - Order search by modified time or external reference
    - Order creation with line items, modifiers and tenders
    - Reading back line items and tenders so a push can resume

    Credentials come from settings unless passed explicitly. The client
    never retries on its own; callers (the push queue, the next poll)
    decide when to try again.

    API Reference: https://docs.clover.com/reference
    """

    SANDBOX_BASE_URL = "https://sandbox.dev.clover.com"
    PROD_BASE_URL = "https://api.clover.com"

    # Clover allows 16 requests/second per token
    REQUESTS_PER_SECOND = 16.0

    # Clover caps `limit` at 1000; smaller pages keep responses quick
    PAGE_SIZE = 100

    V3_PREFIX = "/v3/merchants/"
    V2_PREFIX = "/v2/merchants/"

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        *,
        sandbox: bool | None = None,
        merchant_id: str | None = None,
        api_token: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Initialize the Clover adapter.

        Args:
            http_client: Optional HTTP client for dependency injection (testing).
            sandbox: Use the sandbox environment (default: CLOVER_SANDBOX).
            merchant_id: Clover merchant ID (default: CLOVER_MERCHANT_ID).
            api_token: Bearer token (default: CLOVER_API_TOKEN).
            timeout: Per-request timeout in seconds
                (default: CLOVER_REQUEST_TIMEOUT).
        """
        if sandbox is None:
            sandbox = settings.CLOVER_SANDBOX
        self._sandbox = sandbox
        self._base_url = self.SANDBOX_BASE_URL if sandbox else self.PROD_BASE_URL
        self.merchant_id = merchant_id or settings.CLOVER_MERCHANT_ID
        self._api_token = api_token or settings.CLOVER_API_TOKEN
        self._timeout = timeout or settings.CLOVER_REQUEST_TIMEOUT
        self._client = http_client or httpx.AsyncClient(timeout=self._timeout)
        self._owns_client = http_client is None
        self._rate_limiter = _RateLimiter(self.REQUESTS_PER_SECOND)

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "CloverAdapter":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def base_url(self) -> str:
        return self._base_url

    # =========================================================================
    # HTTP Helpers
    # =========================================================================

    def _merchant_path(self, suffix: str) -> str:
        if not self.merchant_id:
            raise POSAuthError("CLOVER_MERCHANT_ID is not configured")
        return f"{self.V3_PREFIX}{self.merchant_id}{suffix}"

    def _headers(self) -> dict[str, str]:
        if not self._api_token:
            raise POSAuthError("CLOVER_API_TOKEN is not configured")
        return {
            "Authorization": f"Bearer {self._api_token}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send one request, translating transport failures to POSAPIError."""
        await self._rate_limiter.acquire()
        url = f"{self._base_url}{path}"
        logger.debug("Clover request %s %s", method, url)

        try:
            return await self._client.request(
                method,
                url,
                headers=self._headers(),
                timeout=self._timeout,
                **kwargs,
            )
        except httpx.TimeoutException as e:
            raise POSAPIError(f"Clover request timed out: {method} {path}") from e
        except httpx.RequestError as e:
            raise POSAPIError(f"Clover request failed: {method} {path}: {e}") from e

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """
        Make a Clover API request and return the decoded JSON body.

        A 404 on a /v3/merchants/ path is retried once against the matching
        /v2/merchants/ path; some older merchant endpoints only live there.

        Raises:
            POSRateLimitError: On 429.
            POSAuthError: On 401/403 or missing credentials.
            POSAPIError: On any other failure.
        """
        response = await self._send(method, path, **kwargs)

        if response.status_code == 404 and path.startswith(self.V3_PREFIX):
            v2_path = self.V2_PREFIX + path[len(self.V3_PREFIX) :]
            logger.info("Clover 404 on %s, retrying %s", path, v2_path)
            response = await self._send(method, v2_path, **kwargs)

        self._raise_for_status(response, method, path)

        if not response.content:
            return {}
        return response.json()

    def _raise_for_status(
        self, response: httpx.Response, method: str, path: str
    ) -> None:
        status = response.status_code

        if status == 429:
            raise POSRateLimitError(
                "Clover rate limit exceeded",
                retry_after=_parse_retry_after(response.headers.get("Retry-After")),
            )

        if status in (401, 403):
            raise POSAuthError(f"Clover rejected credentials ({status})")

        if status >= 400:
            raise POSAPIError(
                f"Clover API error {status} on {method} {path}",
                status_code=status,
                response_body=response.text[:1000],
            )

    @staticmethod
    def _elements(data: Any) -> list[dict[str, Any]]:
        """Clover wraps collections as {"elements": [...]}; accept bare lists."""
        if isinstance(data, list):
            return data
        elements: list[dict[str, Any]] = data.get("elements", []) if data else []
        return elements

    # =========================================================================
    # Devices
    # =========================================================================

    async def list_devices(self) -> list[CloverDevice]:
        """List devices registered to the merchant (each carries a location)."""
        data = await self._request("GET", self._merchant_path("/devices"))
        return [CloverDevice.model_validate(raw) for raw in self._elements(data)]

    # =========================================================================
    # Order Queries
    # =========================================================================

    async def list_orders_modified_between(
        self,
        since: datetime,
        until: datetime | None = None,
    ) -> list[dict[str, Any]]:
        """
        Fetch all orders modified after `since` (and at or before `until`).

        Follows Clover's limit/offset pagination until a short page. Records
        come back as raw dicts; validate them one at a time with
        CloverOrderRecord so a malformed order only skips itself.
        """
        filters = [("filter", f"modifiedTime>{to_epoch_millis(since)}")]
        if until is not None:
            filters.append(("filter", f"modifiedTime<={to_epoch_millis(until)}"))

        records: list[dict[str, Any]] = []
        offset = 0
        while True:
            params = [
                *filters,
                ("limit", str(self.PAGE_SIZE)),
                ("offset", str(offset)),
            ]
            data = await self._request(
                "GET", self._merchant_path("/orders"), params=params
            )
            page = self._elements(data)
            records.extend(page)

            if len(page) < self.PAGE_SIZE:
                break
            offset += self.PAGE_SIZE

        return records

    async def find_order_by_external_reference(
        self, external_reference_id: str
    ) -> CloverOrderRecord | None:
        """Return the Clover order carrying our order code, if one exists."""
        data = await self._request(
            "GET",
            self._merchant_path("/orders"),
            params=[
                ("filter", f"externalReferenceId={external_reference_id}"),
                ("limit", "1"),
            ],
        )
        elements = self._elements(data)
        if not elements:
            return None
        return CloverOrderRecord.model_validate(elements[0])

    async def list_line_items(self, order_id: str) -> list[CloverLineItemRecord]:
        """Line items already on a Clover order, with their modifiers."""
        data = await self._request(
            "GET",
            self._merchant_path(f"/orders/{order_id}/line_items"),
            params=[("expand", "modifications")],
        )
        return [
            CloverLineItemRecord.model_validate(raw) for raw in self._elements(data)
        ]

    async def list_tenders(self, order_id: str) -> list[dict[str, Any]]:
        """Tenders already recorded on a Clover order."""
        data = await self._request(
            "GET", self._merchant_path(f"/orders/{order_id}/tenders")
        )
        return self._elements(data)

    # =========================================================================
    # Order Creation
    # =========================================================================

    async def create_order(self, order: CloverOrderBlock) -> str:
        """Create an empty open order and return its Clover ID."""
        data = await self._request(
            "POST",
            self._merchant_path("/orders"),
            json=order.model_dump(by_alias=True, exclude_none=True),
        )
        order_id = data.get("id") if isinstance(data, dict) else None
        if not order_id:
            raise POSAPIError("Clover order response has no id", status_code=200)
        return str(order_id)

    async def add_bulk_line_items(
        self, order_id: str, items: list[CloverLineItem]
    ) -> list[str]:
        """
        Add line items in one call.

        Returns:
            Clover line item IDs, index-aligned with `items`.
        """
        data = await self._request(
            "POST",
            self._merchant_path(f"/orders/{order_id}/bulk_line_items"),
            json={
                "items": [
                    item.model_dump(by_alias=True, exclude_none=True)
                    for item in items
                ]
            },
        )
        return [str(row.get("id", "")) for row in self._elements(data)]

    async def add_modification(
        self, order_id: str, line_item_id: str, modifier_id: str
    ) -> None:
        """Attach a catalogue modifier to a line item."""
        await self._request(
            "POST",
            self._merchant_path(
                f"/orders/{order_id}/line_items/{line_item_id}/modifications"
            ),
            json={"modifier": {"id": modifier_id}},
        )

    async def add_tender(self, order_id: str, tender: CloverTender) -> None:
        """Record how the order is paid."""
        await self._request(
            "POST",
            self._merchant_path(f"/orders/{order_id}/tenders"),
            json={"tender": tender.model_dump()},
        )


def _parse_retry_after(value: str | None) -> int:
    try:
        return int(value) if value else 60
    except ValueError:
        return 60


class _RateLimiter:
    """Simple rate limiter for API requests."""

    def __init__(self, requests_per_second: float = 16.0) -> None:
        self.min_interval = 1.0 / requests_per_second
        self.last_request: float | None = None
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait until a request can be made within rate limits."""
        async with self._lock:
            if self.last_request is not None:
                elapsed = time.monotonic() - self.last_request
                if elapsed < self.min_interval:
                    await asyncio.sleep(self.min_interval - elapsed)
            self.last_request = time.monotonic()
