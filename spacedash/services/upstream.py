"""Outbound HTTP client with bounded timeout and retry.

Every data source in the dashboard reads a remote JSON API through
``UpstreamClient.fetch``. The call never raises: callers receive either an
``UpstreamPayload`` or a ``FetchError`` and decide on their own fallback.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, ClassVar
from urllib.parse import urlsplit

import httpx

from spacedash.observability.metrics import UPSTREAM_REQUESTS
from spacedash.services.errors import MalformedUpstreamResponse, UpstreamUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpstreamPayload:
    """Decoded JSON body of a successful upstream call."""

    data: Any
    status: int = 200

    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class FetchError:
    """Failed upstream call. ``status`` is 0 when no response arrived."""

    status: int
    message: str
    malformed: bool = False

    ok: ClassVar[bool] = False

    @property
    def retryable(self) -> bool:
        return not self.malformed and (self.status == 0 or self.status >= 500)

    def to_exception(self) -> UpstreamUnavailable:
        if self.malformed:
            return MalformedUpstreamResponse(self.message, self.status)
        return UpstreamUnavailable(self.message, self.status)


FetchResult = UpstreamPayload | FetchError


def basic_auth_header(app_id: str, secret: str) -> dict[str, str]:
    """Build an ``Authorization: Basic base64(id:secret)`` header."""
    token = base64.b64encode(f"{app_id}:{secret}".encode()).decode("ascii")
    return {"Authorization": f"Basic {token}"}


def _safe_host(url: str) -> str:
    # hostname drops userinfo, path and query string
    return urlsplit(url).hostname or "unknown"


class UpstreamClient:
    """Issue GET requests against remote JSON APIs."""

    def __init__(
        self,
        max_retries: int = 2,
        backoff_ms: int = 100,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.max_retries = max_retries
        self.backoff_ms = backoff_ms
        self._sleep = sleep

    async def fetch(
        self,
        url: str,
        params: Mapping[str, Any] | None = None,
        *,
        timeout: float,
        max_retries: int | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> FetchResult:
        """GET ``url`` and decode JSON, retrying network errors and 5xx."""
        retries = self.max_retries if max_retries is None else max(0, max_retries)
        host = _safe_host(url)

        result: FetchResult = FetchError(0, "no attempt made")
        for attempt in range(1, retries + 2):
            result = await self._attempt(url, params, headers, timeout, host, attempt)
            if result.ok or not result.retryable:
                return result
            if attempt <= retries:
                await self._sleep(self.backoff_ms / 1000)
        return result

    async def _attempt(
        self,
        url: str,
        params: Mapping[str, Any] | None,
        headers: Mapping[str, str] | None,
        timeout: float,
        host: str,
        attempt: int,
    ) -> FetchResult:
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                resp = await client.get(
                    url,
                    params=dict(params) if params else None,
                    headers=dict(headers) if headers else None,
                )
        except httpx.TimeoutException:
            logger.warning(
                "Upstream %s timed out after %ss (attempt %d)", host, timeout, attempt
            )
            UPSTREAM_REQUESTS.labels(host, "timeout").inc()
            return FetchError(0, f"timeout after {timeout}s")
        except httpx.HTTPError as exc:
            logger.warning(
                "Upstream %s request failed: %s (attempt %d)",
                host,
                type(exc).__name__,
                attempt,
            )
            UPSTREAM_REQUESTS.labels(host, "error").inc()
            return FetchError(0, f"request failed: {type(exc).__name__}")

        status = resp.status_code
        length = len(resp.content or b"")
        if status >= 400:
            logger.warning(
                "Upstream %s returned status=%d length=%d (attempt %d)",
                host,
                status,
                length,
                attempt,
            )
            UPSTREAM_REQUESTS.labels(host, "http_error").inc()
            return FetchError(status, f"HTTP {status}")

        try:
            data = resp.json()
        except ValueError:
            logger.warning(
                "Upstream %s returned non-JSON body status=%d length=%d",
                host,
                status,
                length,
            )
            UPSTREAM_REQUESTS.labels(host, "malformed").inc()
            return FetchError(status, "response body is not valid JSON", malformed=True)

        logger.info(
            "Upstream %s status=%d length=%d (attempt %d)", host, status, length, attempt
        )
        UPSTREAM_REQUESTS.labels(host, "ok").inc()
        return UpstreamPayload(data=data, status=status)
