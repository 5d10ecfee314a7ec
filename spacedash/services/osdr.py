"""NASA OSDR catalog service: cached listing plus in-memory search and sort."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from spacedash.config import Settings
from spacedash.schemas.osdr import CatalogItem, CatalogPage
from spacedash.services import query
from spacedash.services.cache import TTLCache
from spacedash.services.errors import UpstreamUnavailable
from spacedash.services.mappers import as_int, map_catalog_items, unwrap_data
from spacedash.services.upstream import UpstreamClient

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "osdr.list."
SEARCH_FIELDS = ("title", "dataset_id")
SEARCH_POOL_SIZE = 100
MIN_QUERY_LENGTH = 2
MAX_LIMIT = 100


def clamp_limit(limit: int) -> int:
    return max(1, min(MAX_LIMIT, limit))


class OsdrService:
    """Dataset records listed by the upstream OSDR mirror."""

    def __init__(
        self, client: UpstreamClient, cache: TTLCache, settings: Settings
    ) -> None:
        self._client = client
        self._cache = cache
        self._settings = settings

    async def _load_list(self, limit: int) -> list[CatalogItem]:
        result = await self._client.fetch(
            f"{self._settings.upstream_base_url}/osdr/list",
            {"limit": limit},
            timeout=self._settings.osdr_timeout,
        )
        if not result.ok:
            raise result.to_exception()
        return map_catalog_items(result.data)

    async def get_list(self, limit: int = 20) -> list[CatalogItem]:
        """Up to ``limit`` catalog items; empty when the upstream is down."""
        limit = clamp_limit(limit)
        try:
            return await self._cache.get_or_compute(
                f"{CACHE_KEY_PREFIX}{limit}",
                self._settings.osdr_cache_ttl,
                lambda: self._load_list(limit),
            )
        except UpstreamUnavailable as exc:
            logger.warning("OSDR list unavailable: %s", exc.message)
            return []

    async def search(
        self, text: str, limit: int = SEARCH_POOL_SIZE
    ) -> list[CatalogItem]:
        items = await self.get_list(limit)
        return query.search(items, text, SEARCH_FIELDS)

    async def filter_by_variable(
        self, name: str, limit: int = SEARCH_POOL_SIZE
    ) -> list[CatalogItem]:
        """Items whose raw record has a key containing ``name``."""
        items = await self.get_list(limit)
        return query.filter_by(items, "raw", name, mode="contains")

    async def filter_by_status(
        self, status: str, limit: int = SEARCH_POOL_SIZE
    ) -> list[CatalogItem]:
        items = await self.get_list(limit)
        return query.filter_by(items, "status", status)

    async def browse(
        self, limit: int = 20, q: str | None = None, sort: str | None = None
    ) -> CatalogPage:
        """Listing contract used by the catalog page and ``/api/osdr/list``."""
        limit = clamp_limit(limit)
        sort_name, field, direction = query.resolve_sort(sort)
        text = (q or "").strip()

        if len(text) >= MIN_QUERY_LENGTH:
            items = await self.search(text)
        else:
            text = ""
            items = await self.get_list(limit)

        items = query.sort_by(items, field, direction)
        return CatalogPage(
            items=query.take(items, limit), sort=sort_name, query=text, limit=limit
        )

    async def sync(self) -> int:
        """Trigger an upstream re-sync and return how many records it wrote."""
        result = await self._client.fetch(
            f"{self._settings.upstream_base_url}/osdr/sync",
            timeout=self._settings.osdr_timeout,
        )
        self.clear_cache()
        if not result.ok:
            logger.warning("OSDR sync failed: %s", result.message)
            return 0
        data = unwrap_data(result.data)
        return as_int(data.get("written")) if isinstance(data, Mapping) else 0

    def clear_cache(self) -> None:
        self._cache.invalidate_prefix(CACHE_KEY_PREFIX)
