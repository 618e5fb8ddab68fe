"""
Async Power Platform admin API client with pagination, throttling, and safety enforcement.
Requests are issued one at a time; callers await each call before the next.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncGenerator, Optional
from urllib.parse import urlsplit

import httpx

from ..config import (
    API_VERSION,
    MAX_RETRIES,
    INITIAL_BACKOFF_SECONDS,
    MAX_BACKOFF_SECONDS,
    BACKOFF_MULTIPLIER,
    MAX_PAGES_PER_ENDPOINT,
)
from ..safety.guardian import SafetyGuardian

logger = logging.getLogger("power_platform_inventory.api")


class AdminAPIError(Exception):
    """Raised when the admin API returns a non-recoverable error."""
    def __init__(self, status_code: int, message: str, url: str):
        self.status_code = status_code
        self.url = url
        super().__init__(f"Admin API Error {status_code} for {url}: {message}")


class AdminClient:
    """
    Async client for one authenticated admin session.
    Features:
      - Safety-validated requests (read-only, known hosts)
      - Bearer token chosen per host (one token per API audience)
      - Automatic pagination with nextLink / @odata.nextLink
      - Exponential backoff on 429/503/504
      - Streaming generators for large result sets
    """

    def __init__(
        self,
        access_token: str,
        guardian: SafetyGuardian,
        max_pages: int = MAX_PAGES_PER_ENDPOINT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        host_tokens: Optional[dict[str, str]] = None,
    ):
        self.access_token = access_token
        self.host_tokens = dict(host_tokens or {})
        self.guardian = guardian
        self.max_pages = max_pages
        self._transport = transport
        self._request_count = 0
        self._throttle_count = 0
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(60.0, connect=30.0),
            transport=self._transport,
            headers={"Accept": "application/json"},
        )
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get_all_pages(self, url: str, params: Optional[dict] = None) -> list[dict]:
        """
        Fetch all pages of a paginated endpoint into a list.
        Use get_all_pages_stream() for very large datasets.
        """
        items = []
        async for item in self.get_all_pages_stream(url, params):
            items.append(item)
        return items

    async def get_all_pages_stream(
        self,
        url: str,
        params: Optional[dict] = None,
    ) -> AsyncGenerator[dict, None]:
        """
        Stream all pages of a paginated endpoint as an async generator.
        Yields one item at a time.
        """
        params = self._with_api_version(params)
        next_url: Optional[str] = url
        pages = 0

        while next_url and pages < self.max_pages:
            self.guardian.validate_request("GET", next_url)
            data = await self._execute_with_retry(next_url, params=params)

            # Surface 403 Forbidden instead of silently returning empty
            if data.get("_forbidden"):
                raise AdminAPIError(
                    403,
                    data.get("_error_message", "Forbidden — missing admin permission"),
                    next_url,
                )

            for item in data.get("value", []):
                yield item

            next_url = data.get("nextLink") or data.get("@odata.nextLink")
            params = None  # nextLink carries all query params
            pages += 1

        if next_url and pages >= self.max_pages:
            logger.warning(
                f"Pagination safety cap reached ({self.max_pages} pages) "
                f"for endpoint: {url}"
            )

    @staticmethod
    def _with_api_version(params: Optional[dict]) -> dict:
        merged = dict(params or {})
        merged.setdefault("api-version", API_VERSION)
        return merged

    async def _execute_with_retry(self, url: str, params: Optional[dict] = None) -> dict:
        """Execute request with exponential backoff on throttling."""
        backoff = INITIAL_BACKOFF_SECONDS

        for attempt in range(MAX_RETRIES + 1):
            response = await self._execute_raw(url, params=params)
            self._request_count += 1

            if response.status_code == 200:
                if not response.content or not response.content.strip():
                    return {"value": []}
                return response.json()

            if response.status_code == 204:
                return {}

            if response.status_code in (429, 503, 504) and attempt < MAX_RETRIES:
                self._throttle_count += 1
                retry_after = float(response.headers.get("Retry-After", backoff))
                wait_time = max(retry_after, backoff)
                logger.warning(
                    f"Throttled ({response.status_code}) on {url}. "
                    f"Retry {attempt + 1}/{MAX_RETRIES} in {wait_time:.1f}s"
                )
                await asyncio.sleep(wait_time)
                backoff = min(backoff * BACKOFF_MULTIPLIER, MAX_BACKOFF_SECONDS)
                continue

            error_msg = self._error_message(response)
            if response.status_code == 403:
                logger.warning(f"403 Forbidden: {url} — {error_msg}")
                return {"value": [], "_forbidden": True, "_error_message": error_msg}

            raise AdminAPIError(response.status_code, error_msg, url)

        raise AdminAPIError(429, "Max retries exceeded", url)

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json() if response.content else {}
        except ValueError:
            return response.text[:200]
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            return error.get("message") or error.get("code") or response.text[:200]
        return response.text[:200]

    async def _execute_raw(self, url: str, params: Optional[dict] = None) -> httpx.Response:
        """Execute raw HTTP GET."""
        if not self._client:
            raise RuntimeError("AdminClient not initialized. Use 'async with' context.")
        headers = {"Authorization": f"Bearer {self._token_for(url)}"}
        return await self._client.get(url, params=params, headers=headers)

    def _token_for(self, url: str) -> str:
        """Token for the request host; falls back to the session token."""
        return self.host_tokens.get(urlsplit(url).hostname or "", self.access_token)

    def get_stats(self) -> dict:
        """Return client statistics."""
        return {
            "total_requests": self._request_count,
            "throttle_events": self._throttle_count,
        }
