"""Space-data cache service: APOD, NEO, DONKI and SpaceX snapshots."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

from spacedash.config import Settings
from spacedash.schemas.space import SourceStatus, SpaceSnapshot
from spacedash.services.cache import TTLCache
from spacedash.services.errors import MalformedUpstreamResponse, UpstreamUnavailable
from spacedash.services.mappers import map_space_snapshot, unwrap_data
from spacedash.services.upstream import UpstreamClient

logger = logging.getLogger(__name__)

CACHE_KEY_SUMMARY = "space.summary"
RECENT_WINDOW = timedelta(hours=1)

SOURCES: dict[str, str] = {
    "apod": "NASA - Astronomy Picture of the Day",
    "neo": "NASA - Near Earth Objects",
    "flr": "NASA DONKI - Solar Flares",
    "cme": "NASA DONKI - Coronal Mass Ejections",
    "spacex": "SpaceX - Next Launch",
}


def _latest_key(source: str) -> str:
    return f"space.{source}.latest"


class SpaceService:
    """Single access point for the snapshots the upstream keeps per source."""

    def __init__(
        self, client: UpstreamClient, cache: TTLCache, settings: Settings
    ) -> None:
        self._client = client
        self._cache = cache
        self._settings = settings

    @staticmethod
    def available_sources() -> dict[str, str]:
        return dict(SOURCES)

    @staticmethod
    def _check_source(source: str) -> None:
        if source not in SOURCES:
            raise ValueError(f"Unknown space data source: {source}")

    async def _get(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        result = await self._client.fetch(
            f"{self._settings.upstream_base_url}{path}",
            params,
            timeout=self._settings.space_timeout,
        )
        if not result.ok:
            raise result.to_exception()
        return result.data

    async def _load_summary(self) -> dict[str, Any]:
        data = unwrap_data(await self._get("/space/summary"))
        if not isinstance(data, Mapping):
            raise MalformedUpstreamResponse("/space/summary did not return an object")
        return dict(data)

    async def _load_latest(self, source: str) -> SpaceSnapshot | None:
        data = unwrap_data(await self._get(f"/space/{source}/latest"))
        if not isinstance(data, Mapping) or "payload" not in data:
            # upstream answers {"message": "no data"} before the first refresh
            return None
        return map_space_snapshot(data)

    async def get_summary(self) -> dict[str, Any]:
        try:
            return await self._cache.get_or_compute(
                CACHE_KEY_SUMMARY, self._settings.space_cache_ttl, self._load_summary
            )
        except UpstreamUnavailable as exc:
            logger.warning("Space summary unavailable: %s", exc.message)
            return {}

    async def get_latest(self, source: str) -> SpaceSnapshot | None:
        self._check_source(source)
        try:
            return await self._cache.get_or_compute(
                _latest_key(source),
                self._settings.space_cache_ttl,
                lambda: self._load_latest(source),
            )
        except UpstreamUnavailable as exc:
            logger.warning("Space %s snapshot unavailable: %s", source, exc.message)
            return None

    async def refresh(self, source: str) -> bool:
        """Ask the upstream to re-pull ``source`` and drop the cached copies."""
        self._check_source(source)
        result = await self._client.fetch(
            f"{self._settings.upstream_base_url}/space/refresh",
            {"src": source},
            timeout=self._settings.space_timeout,
        )
        self._cache.invalidate(_latest_key(source))
        self._cache.invalidate(CACHE_KEY_SUMMARY)
        if not result.ok:
            logger.warning("Space %s refresh failed: %s", source, result.message)
        return result.ok

    async def source_status(
        self, source: str, now: datetime | None = None
    ) -> SourceStatus:
        snapshot = await self.get_latest(source)
        if snapshot is None:
            return SourceStatus(source=source)
        now = now or datetime.now(UTC)
        fetched_at = snapshot.fetched_at
        return SourceStatus(
            source=source,
            last_updated=fetched_at,
            data_count=snapshot.data_count,
            is_recent=fetched_at is not None and now - fetched_at < RECENT_WINDOW,
        )
