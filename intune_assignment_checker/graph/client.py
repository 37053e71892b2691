"""
Async Graph API client with pagination and read-only enforcement.

Listing calls never raise: a failed page is captured in a FetchResult so the
caller keeps whatever earlier pages produced and the run carries on.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from ..config import (
    CheckerConfig,
    CONNECT_TIMEOUT_SECONDS,
    GRAPH_API_VERSION,
    GRAPH_BASE_URL,
    GRAPH_BETA_VERSION,
    REQUEST_TIMEOUT_SECONDS,
)
from ..safety.guardian import ReadOnlyGuardian

logger = logging.getLogger("intune_assignment_checker.graph")


class GraphAPIError(Exception):
    """Raised when a single Graph request fails."""
    def __init__(self, status_code: int, message: str, url: str):
        self.status_code = status_code
        self.url = url
        self.message = message
        super().__init__(f"Graph API Error {status_code} for {url}: {message}")

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    @property
    def is_throttled(self) -> bool:
        return self.status_code in (429, 503)


@dataclass
class FetchResult:
    """Items gathered from a paginated listing, plus the error that cut it short."""
    items: list[dict] = field(default_factory=list)
    error: Optional[GraphAPIError] = None
    pages: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


class GraphClient:
    """
    Async Microsoft Graph API client.
    Features:
      - Read-only validation of every request
      - Pagination that follows @odata.nextLink until it is absent
      - Concurrent request semaphore
      - v1.0 and beta endpoint support
    Requests are fired once; there is no retry or backoff.
    """

    def __init__(
        self,
        access_token: str,
        guardian: ReadOnlyGuardian,
        config: Optional[CheckerConfig] = None,
    ):
        self.access_token = access_token
        self.guardian = guardian
        self.config = config or CheckerConfig()
        self._semaphore = asyncio.Semaphore(max(1, self.config.max_concurrent_requests))
        self._request_count = 0
        self._failed_count = 0
        self._throttle_count = 0
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(REQUEST_TIMEOUT_SECONDS, connect=CONNECT_TIMEOUT_SECONDS),
            limits=httpx.Limits(
                max_connections=self.config.max_concurrent_requests * 2,
                max_keepalive_connections=self.config.max_concurrent_requests,
            ),
            headers={
                "Authorization": f"Bearer {self.access_token}",
                "Accept": "application/json",
            },
        )
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()
            self._client = None

    def build_url(self, endpoint: str, beta: bool = False) -> str:
        """Build full Graph URL from relative endpoint."""
        if endpoint.startswith("http"):
            return endpoint
        version = GRAPH_BETA_VERSION if beta else GRAPH_API_VERSION
        endpoint = endpoint.lstrip("/")
        return f"{GRAPH_BASE_URL}/{version}/{endpoint}"

    async def get(
        self,
        endpoint: str,
        params: Optional[dict] = None,
        beta: bool = False,
    ) -> dict:
        """
        Execute a single GET request. Raises GraphAPIError on failure.
        """
        url = self.build_url(endpoint, beta=beta)
        self.guardian.validate_request("GET", url)

        async with self._semaphore:
            return await self._execute(url, params=params)

    async def get_all_pages(
        self,
        endpoint: str,
        params: Optional[dict] = None,
        beta: bool = False,
    ) -> FetchResult:
        """
        Fetch every page of a listing endpoint, concatenated in page order.

        A failing page stops the walk; the items from earlier pages are kept
        and the failure is returned in FetchResult.error.
        """
        result = FetchResult()
        url: Optional[str] = self.build_url(endpoint, beta=beta)

        while url and result.pages < self.config.max_pages:
            self.guardian.validate_request("GET", url)
            try:
                async with self._semaphore:
                    data = await self._execute(url, params=params)
            except GraphAPIError as e:
                logger.debug(f"Listing {endpoint} stopped after {result.pages} page(s): {e}")
                result.error = e
                return result

            result.items.extend(data.get("value", []))
            result.pages += 1

            # nextLink already carries the query string
            url = data.get("@odata.nextLink")
            params = None

        if url:
            logger.warning(
                f"Pagination safety cap reached ({self.config.max_pages} pages) "
                f"for endpoint: {endpoint}"
            )
        return result

    async def _execute(self, url: str, params: Optional[dict] = None) -> dict:
        """Execute one GET and translate any failure into GraphAPIError."""
        if not self._client:
            raise RuntimeError("GraphClient not initialized. Use 'async with' context.")

        self._request_count += 1
        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as e:
            self._failed_count += 1
            raise GraphAPIError(0, f"{type(e).__name__}: {e}", url) from e

        if response.status_code == 200:
            if not response.content or not response.content.strip():
                return {"value": []}
            try:
                return response.json()
            except ValueError:
                self._failed_count += 1
                raise GraphAPIError(200, "Response body is not JSON", url)

        if response.status_code == 204:
            return {}

        self._failed_count += 1
        if response.status_code in (429, 503):
            self._throttle_count += 1
        raise GraphAPIError(response.status_code, _error_message(response), url)

    def get_stats(self) -> dict[str, Any]:
        """Return client statistics."""
        return {
            "total_requests": self._request_count,
            "failed_requests": self._failed_count,
            "throttle_events": self._throttle_count,
        }


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json() if response.content else {}
    except ValueError:
        return response.text[:200]
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    return response.reason_phrase
