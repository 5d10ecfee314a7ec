"""ISS telemetry service backed by the upstream collector."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from spacedash.config import Settings
from spacedash.schemas.iss import IssInfo, PositionReading, TrendSummary
from spacedash.services.cache import TTLCache
from spacedash.services.errors import MalformedUpstreamResponse, UpstreamUnavailable
from spacedash.services.mappers import map_reading, map_trend, unwrap_data
from spacedash.services.upstream import UpstreamClient

logger = logging.getLogger(__name__)

CACHE_KEY_LAST = "iss.last"
CACHE_KEY_TREND = "iss.trend"


class IssService:
    """Latest ISS position and movement trend, cached for a few minutes."""

    def __init__(
        self, client: UpstreamClient, cache: TTLCache, settings: Settings
    ) -> None:
        self._client = client
        self._cache = cache
        self._settings = settings

    async def _fetch_object(self, path: str) -> dict[str, Any]:
        result = await self._client.fetch(
            f"{self._settings.upstream_base_url}{path}",
            timeout=self._settings.iss_timeout,
        )
        if not result.ok:
            raise result.to_exception()
        if not isinstance(unwrap_data(result.data), Mapping):
            raise MalformedUpstreamResponse(f"{path} did not return an object")
        return result.data

    async def _load_last(self) -> PositionReading:
        return map_reading(await self._fetch_object("/last"))

    async def _load_trend(self) -> TrendSummary:
        return map_trend(await self._fetch_object("/iss/trend"))

    async def get_last(self) -> PositionReading | None:
        """Latest reading, or ``None`` when the upstream cannot be reached."""
        try:
            return await self._cache.get_or_compute(
                CACHE_KEY_LAST, self._settings.iss_cache_ttl, self._load_last
            )
        except UpstreamUnavailable as exc:
            logger.warning("ISS last reading unavailable: %s", exc.message)
            return None

    async def get_trend(self) -> TrendSummary | None:
        try:
            return await self._cache.get_or_compute(
                CACHE_KEY_TREND, self._settings.iss_cache_ttl, self._load_trend
            )
        except UpstreamUnavailable as exc:
            logger.warning("ISS trend unavailable: %s", exc.message)
            return None

    async def refresh(self) -> PositionReading | None:
        """Drop cached telemetry and ask the collector for a fresh sample."""
        self._cache.invalidate(CACHE_KEY_LAST)
        self._cache.invalidate(CACHE_KEY_TREND)
        try:
            return map_reading(await self._fetch_object("/fetch"))
        except UpstreamUnavailable as exc:
            logger.warning("ISS refresh failed: %s", exc.message)
            return None

    @staticmethod
    def info() -> IssInfo:
        return IssInfo()
