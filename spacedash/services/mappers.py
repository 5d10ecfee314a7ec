"""Typed decoders from upstream JSON to dashboard entities.

Each ``map_*`` function is total: it never raises on missing or malformed
fields. The default policy is the same everywhere:

* required integers fall back to ``0``
* required timestamps fall back to the current UTC time
* optional scalars and timestamps fall back to ``None``
* required mappings fall back to ``{}``
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from spacedash.schemas.iss import PositionReading, TrendSummary
from spacedash.schemas.osdr import CatalogItem
from spacedash.schemas.space import SpaceSnapshot

_READING_META_KEYS = {"id", "fetched_at", "source_url"}
_TRUTHY = {"1", "true", "yes", "on"}


def _now() -> datetime:
    return datetime.now(UTC)


def unwrap_data(raw: Any) -> Any:
    """Return ``raw["data"]`` for enveloped responses, else ``raw`` itself."""
    if isinstance(raw, Mapping) and "data" in raw:
        return raw["data"]
    return raw


def as_mapping(value: Any) -> dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def as_int(value: Any, default: int = 0) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        try:
            return int(float(value))
        except (TypeError, ValueError, OverflowError):
            return default


def as_float(value: Any, default: float = 0.0) -> float:
    result = optional_float(value)
    return default if result is None else result


def optional_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def optional_str(value: Any) -> str | None:
    if value is None or isinstance(value, Mapping | list):
        return None
    return str(value)


def as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 string or epoch seconds; ``None`` when impossible."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, int | float) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def required_timestamp(value: Any) -> datetime:
    return parse_timestamp(value) or _now()


def map_reading(raw: Any) -> PositionReading:
    """Decode ``GET /last`` (enveloped or flat) into a ``PositionReading``."""
    data = as_mapping(unwrap_data(raw))
    payload = data.get("payload")
    if isinstance(payload, Mapping):
        payload = dict(payload)
    else:
        payload = {k: v for k, v in data.items() if k not in _READING_META_KEYS}
    return PositionReading(
        id=as_int(data.get("id")),
        fetched_at=required_timestamp(data.get("fetched_at")),
        source_url=optional_str(data.get("source_url")) or "",
        payload=payload,
    )


def map_trend(raw: Any) -> TrendSummary:
    """Decode ``GET /iss/trend`` into a ``TrendSummary``."""
    data = as_mapping(unwrap_data(raw))
    return TrendSummary(
        movement=as_bool(data.get("movement", False)),
        delta_km=as_float(data.get("delta_km")),
        dt_sec=as_float(data.get("dt_sec")),
        velocity_kmh=optional_float(data.get("velocity_kmh")),
        from_time=parse_timestamp(data.get("from_time")),
        to_time=parse_timestamp(data.get("to_time")),
        from_lat=optional_float(data.get("from_lat")),
        from_lon=optional_float(data.get("from_lon")),
        to_lat=optional_float(data.get("to_lat")),
        to_lon=optional_float(data.get("to_lon")),
    )


def map_catalog_item(raw: Any) -> CatalogItem:
    """Decode one OSDR list entry into a ``CatalogItem``."""
    data = as_mapping(raw)
    return CatalogItem(
        id=as_int(data.get("id")),
        dataset_id=optional_str(data.get("dataset_id")),
        title=optional_str(data.get("title")),
        status=optional_str(data.get("status")),
        updated_at=parse_timestamp(data.get("updated_at")),
        inserted_at=required_timestamp(data.get("inserted_at")),
        raw=as_mapping(data.get("raw")),
    )


def map_catalog_items(raw: Any) -> list[CatalogItem]:
    """Decode ``GET /osdr/list``; accepts ``data.items``, ``items`` or a bare list."""
    data = unwrap_data(raw)
    if isinstance(data, Mapping):
        data = data.get("items", [])
    if not isinstance(data, list):
        return []
    return [map_catalog_item(item) for item in data if isinstance(item, Mapping)]


def map_space_snapshot(raw: Any) -> SpaceSnapshot:
    """Decode ``GET /space/{source}/latest`` into a ``SpaceSnapshot``."""
    data = as_mapping(unwrap_data(raw))
    return SpaceSnapshot(
        id=as_int(data.get("id")),
        source=optional_str(data.get("source")) or "",
        fetched_at=parse_timestamp(data.get("fetched_at")),
        payload=data.get("payload"),
    )
