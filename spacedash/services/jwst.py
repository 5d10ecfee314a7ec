"""JWST gallery proxy: picks displayable images and normalizes metadata."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

from spacedash.config import Settings
from spacedash.schemas.jwst import JwstFeed, JwstImage
from spacedash.services.cache import TTLCache
from spacedash.services.errors import UpstreamUnavailable
from spacedash.services.upstream import UpstreamClient

logger = logging.getLogger(__name__)

IMAGE_EXT_RE = re.compile(r"\.(jpg|jpeg|png)(\?.*)?$", re.IGNORECASE)
DEFAULT_PATH = "all/type/jpg"
MAX_PER_PAGE = 60
_MAX_DEPTH = 4


def select_path(source: str, suffix: str = "", program: str = "") -> str:
    """Upstream listing path for the requested feed source."""
    suffix = suffix.strip()
    program = program.strip()
    if source == "suffix" and suffix:
        return f"all/suffix/{suffix.lstrip('/')}"
    if source == "program" and program:
        return f"program/id/{quote(program, safe='')}"
    return DEFAULT_PATH


def extract_list(data: Any) -> list[Any]:
    """Item list from ``body``, then ``data``, then the response itself."""
    if isinstance(data, Mapping):
        for key in ("body", "data"):
            value = data.get(key)
            if isinstance(value, list):
                return value
        return []
    return data if isinstance(data, list) else []


def is_image_url(value: Any) -> bool:
    return isinstance(value, str) and bool(IMAGE_EXT_RE.search(value))


def pick_image_url(item: Any, _depth: int = 0) -> str | None:
    """Search nested values for the first http(s) URL pointing at an image."""
    if _depth > _MAX_DEPTH:
        return None
    if isinstance(item, str):
        if item.startswith(("http://", "https://")) and is_image_url(item):
            return item
        return None
    if isinstance(item, Mapping):
        values = list(item.values())
    elif isinstance(item, list):
        values = item
    else:
        return None
    for value in values:
        found = pick_image_url(value, _depth + 1)
        if found:
            return found
    return None


def _instruments(item: Mapping[str, Any]) -> list[str]:
    details = item.get("details")
    entries = details.get("instruments") if isinstance(details, Mapping) else None
    if not isinstance(entries, list):
        return []
    return [
        str(entry["instrument"]).upper()
        for entry in entries
        if isinstance(entry, Mapping) and entry.get("instrument")
    ]


def normalize_item(item: Any, instrument: str = "") -> JwstImage | None:
    """Build a feed entry, or ``None`` if the item has no image or fails the filter."""
    if not isinstance(item, Mapping):
        return None

    location = item.get("location") or item.get("url")
    url = next(
        (u for u in (location, item.get("thumbnail")) if is_image_url(u)), None
    )
    if url is None:
        url = pick_image_url(item)
    if url is None:
        return None

    instruments = _instruments(item)
    if instrument and instruments and instrument not in instruments:
        return None

    details = item.get("details") if isinstance(item.get("details"), Mapping) else {}
    obs = item.get("observation_id") or item.get("observationId") or ""
    program = item.get("program")
    suffix = details.get("suffix") or item.get("suffix") or ""

    caption = f"{obs or item.get('id') or ''} · P{'-' if program is None else program}"
    if details.get("suffix"):
        caption += f" · {details['suffix']}"
    if instruments:
        caption += " · " + "/".join(instruments)

    return JwstImage(
        url=url,
        obs=str(obs),
        program="" if program is None else str(program),
        suffix=str(suffix),
        inst=instruments,
        caption=caption.strip(),
        link=location if isinstance(location, str) and location else url,
    )


class JwstService:
    """Fetch and normalize image listings from the JWST API."""

    def __init__(
        self, client: UpstreamClient, cache: TTLCache, settings: Settings
    ) -> None:
        self._client = client
        self._cache = cache
        self._settings = settings

    async def _load_page(self, path: str, page: int, per_page: int) -> list[Any]:
        result = await self._client.fetch(
            f"{self._settings.jwst_api_url}/{path}",
            {"page": page, "perPage": per_page},
            timeout=self._settings.jwst_timeout,
            headers={"X-API-KEY": self._settings.jwst_api_key or ""},
        )
        if not result.ok:
            raise result.to_exception()
        return extract_list(result.data)

    async def get_feed(
        self,
        source: str = "jpg",
        suffix: str = "",
        program: str = "",
        instrument: str = "",
        page: int = 1,
        per_page: int = 24,
    ) -> JwstFeed:
        path = select_path(source, suffix, program)
        page = max(1, page)
        per_page = max(1, min(MAX_PER_PAGE, per_page))
        instrument = instrument.strip().upper()

        if not self._settings.jwst_api_key:
            logger.info("JWST API key not configured; returning empty feed")
            return JwstFeed(source=path)

        try:
            raw_items = await self._cache.get_or_compute(
                f"jwst.{path}.{page}.{per_page}",
                self._settings.jwst_cache_ttl,
                lambda: self._load_page(path, page, per_page),
            )
        except UpstreamUnavailable as exc:
            logger.warning("JWST feed unavailable: %s", exc.message)
            return JwstFeed(source=path)

        items: list[JwstImage] = []
        for raw in raw_items:
            image = normalize_item(raw, instrument)
            if image is None:
                continue
            items.append(image)
            if len(items) >= per_page:
                break
        return JwstFeed(source=path, count=len(items), items=items)
