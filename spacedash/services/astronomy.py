"""AstronomyAPI integration: event normalization, positions and demo fallback.

AstronomyAPI answers ``/bodies/events/{body}`` and ``/bodies/positions`` in
one of two layouts depending on the account and endpoint version:

* ``data.rows[].events[]`` / ``data.rows[].positions[]``
* ``data.table.rows[].cells[]``

Each layout has its own parse function returning ``None`` when the response
does not have that shape; the first one that matches wins.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Mapping
from datetime import MAXYEAR, UTC, date, datetime, timedelta
from typing import Any
from urllib.parse import quote

from spacedash.config import Settings
from spacedash.schemas.astronomy import (
    AstronomyEvent,
    AstronomyReport,
    BodyEvents,
    MoonPhase,
    PositionQuery,
    SunEvent,
)
from spacedash.services import query
from spacedash.services.astronomy_mock import generate_mock_data
from spacedash.services.cache import TTLCache
from spacedash.services.errors import CredentialsMissing
from spacedash.services.mappers import parse_timestamp
from spacedash.services.upstream import UpstreamClient, basic_auth_header

logger = logging.getLogger(__name__)

MAX_POSITION_RANGE = timedelta(days=10)
EVENT_SEARCH_FIELDS = ("type", "description")


def clamp_coordinates(lat: float, lon: float) -> tuple[float, float]:
    return max(-90.0, min(90.0, lat)), max(-180.0, min(180.0, lon))


def clamp_positions_range(from_date: date, to_date: date) -> date:
    """Upper bound of a positions lookup, at most ten days after ``from_date``."""
    if to_date - from_date > MAX_POSITION_RANGE:
        return from_date + MAX_POSITION_RANGE
    return to_date


def one_year_after(day: date) -> date:
    """Same calendar day next year; Feb 29 maps to Feb 28, year 9999 to ``date.max``."""
    if day.year >= MAXYEAR:
        return date.max
    try:
        return day.replace(year=day.year + 1)
    except ValueError:
        return day.replace(year=day.year + 1, day=28)


def resolve_range(
    from_date: date | None, to_date: date | None, today: date | None = None
) -> tuple[date, date]:
    """Fill in missing bounds and put them in order."""
    start = from_date or today or datetime.now(UTC).date()
    end = to_date or one_year_after(start)
    if end < start:
        start, end = end, start
    return start, end


def split_datetime(value: Any) -> tuple[str, str] | None:
    """``(YYYY-MM-DD, HH:MM:SS)`` in UTC for an ISO timestamp."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return None
    parsed = parsed.astimezone(UTC)
    return parsed.strftime("%Y-%m-%d"), parsed.strftime("%H:%M:%S")


def _humanize(event_type: str) -> str:
    text = event_type.replace("_", " ")
    return text[:1].upper() + text[1:]


def _rows(json: Any) -> list[Any] | None:
    data = json.get("data") if isinstance(json, Mapping) else None
    rows = data.get("rows") if isinstance(data, Mapping) else None
    return rows if isinstance(rows, list) else None


def _table_rows(json: Any) -> list[Any] | None:
    data = json.get("data") if isinstance(json, Mapping) else None
    table = data.get("table") if isinstance(data, Mapping) else None
    rows = table.get("rows") if isinstance(table, Mapping) else None
    return rows if isinstance(rows, list) else None


def _collect(rows: list[Any], key: str) -> list[Mapping[str, Any]]:
    found: list[Mapping[str, Any]] = []
    for row in rows:
        entries = row.get(key) if isinstance(row, Mapping) else None
        if isinstance(entries, list):
            found.extend(entry for entry in entries if isinstance(entry, Mapping))
    return found


def parse_row_events(json: Any) -> list[Mapping[str, Any]] | None:
    rows = _rows(json)
    return None if rows is None else _collect(rows, "events")


def parse_table_events(json: Any) -> list[Mapping[str, Any]] | None:
    rows = _table_rows(json)
    return None if rows is None else _collect(rows, "cells")


def _peak_date(entry: Mapping[str, Any]) -> Any:
    highlights = entry.get("eventHighlights")
    peak = highlights.get("peak") if isinstance(highlights, Mapping) else None
    return peak.get("date") if isinstance(peak, Mapping) else None


def _eclipse(entry: Mapping[str, Any], from_date: date) -> AstronomyEvent:
    day, clock = split_datetime(_peak_date(entry)) or (
        from_date.isoformat(),
        "00:00:00",
    )
    extra = entry.get("extraInfo")
    obscuration = extra.get("obscuration") if isinstance(extra, Mapping) else None
    return AstronomyEvent(
        date=day,
        time=clock,
        type=_humanize(str(entry.get("type", ""))),
        description=f"Obscuration: {'N/A' if obscuration is None else obscuration}",
    )


def normalize_body_events(json: Any, body: str, from_date: date) -> BodyEvents:
    """Eclipses and sunrise/sunset times from one ``/bodies/events`` response."""
    entries = parse_row_events(json)
    if entries is None:
        entries = parse_table_events(json) or []

    result = BodyEvents()
    for entry in entries:
        event_type = entry.get("type")
        if isinstance(event_type, str) and "eclipse" in event_type:
            result.events.append(_eclipse(entry, from_date))
            continue
        if body != "sun":
            continue
        for field, label in (("rise", "Sunrise"), ("set", "Sunset")):
            moment = split_datetime(entry.get(field))
            if moment is not None:
                result.sun.append(SunEvent(type=label, date=moment[0], time=moment[1]))
    return result


def _phase_label(entry: Mapping[str, Any]) -> str | None:
    extra = entry.get("extraInfo")
    phase = extra.get("phase") if isinstance(extra, Mapping) else None
    label = phase.get("string") if isinstance(phase, Mapping) else None
    return label if isinstance(label, str) and label else None


def _moon_phase(label: str, value: Any) -> MoonPhase | None:
    moment = split_datetime(value)
    if moment is None:
        return None
    return MoonPhase(phase=label, date=moment[0], time=moment[1])


def normalize_moon_positions(json: Any) -> list[MoonPhase]:
    """Moon phase labels from a ``/bodies/positions/moon`` response."""
    phases: list[MoonPhase] = []
    rows = _rows(json)
    if rows is not None:
        for row in rows:
            if not isinstance(row, Mapping):
                continue
            positions = row.get("positions")
            for position in positions if isinstance(positions, list) else []:
                if not isinstance(position, Mapping):
                    continue
                label = _phase_label(position)
                if label is None:
                    continue
                moon = _moon_phase(label, position.get("date") or row.get("date"))
                if moon is not None:
                    phases.append(moon)
        return phases

    for cell in _collect(_table_rows(json) or [], "cells"):
        label = _phase_label(cell)
        if label is None:
            continue
        moon = _moon_phase(label, cell.get("date") or _peak_date(cell))
        if moon is not None:
            phases.append(moon)
    return phases


class AstronomyService:
    """Events, moon phases and body positions from AstronomyAPI."""

    def __init__(
        self,
        client: UpstreamClient,
        cache: TTLCache,
        settings: Settings,
        rng: random.Random | None = None,
    ) -> None:
        self._client = client
        self._cache = cache
        self._settings = settings
        self._rng = rng or random.Random()

    def _auth_headers(self) -> dict[str, str]:
        return basic_auth_header(
            self._settings.astro_app_id, self._settings.astro_app_secret
        )

    async def _body_events(
        self, body: str, lat: float, lon: float, from_date: date, to_date: date
    ) -> BodyEvents | None:
        result = await self._client.fetch(
            f"{self._settings.astronomy_api_url}/bodies/events/{quote(body)}",
            {
                "latitude": lat,
                "longitude": lon,
                "elevation": 0,
                "from_date": from_date.isoformat(),
                "to_date": to_date.isoformat(),
                "time": "00:00:00",
                "output": "rows",
            },
            timeout=self._settings.astro_events_timeout,
            headers=self._auth_headers(),
        )
        if not result.ok:
            logger.warning("Astronomy %s events unavailable: %s", body, result.message)
            return None
        return normalize_body_events(result.data, body, from_date)

    async def _moon_phases(
        self, lat: float, lon: float, from_date: date, to_date: date
    ) -> list[MoonPhase] | None:
        result = await self._client.fetch(
            f"{self._settings.astronomy_api_url}/bodies/positions/moon",
            {
                "latitude": lat,
                "longitude": lon,
                "elevation": 0,
                "from_date": from_date.isoformat(),
                "to_date": clamp_positions_range(from_date, to_date).isoformat(),
                "time": "12:00:00",
                "output": "rows",
            },
            timeout=self._settings.astro_positions_timeout,
            headers=self._auth_headers(),
        )
        if not result.ok:
            logger.warning("Moon positions unavailable: %s", result.message)
            return None
        return normalize_moon_positions(result.data)

    async def _build_report(
        self, lat: float, lon: float, from_date: date, to_date: date
    ) -> AstronomyReport:
        if not self._settings.has_astronomy_credentials:
            logger.info("AstronomyAPI credentials not configured; serving demo data")
            return generate_mock_data(from_date, to_date, self._rng)

        sun, moon, phases = await asyncio.gather(
            self._body_events("sun", lat, lon, from_date, to_date),
            self._body_events("moon", lat, lon, from_date, to_date),
            self._moon_phases(lat, lon, from_date, to_date),
        )
        if sun is None and moon is None and phases is None:
            logger.warning("All AstronomyAPI calls failed; serving demo data")
            return generate_mock_data(from_date, to_date, self._rng)

        events: list[AstronomyEvent] = []
        sun_events: list[SunEvent] = []
        for body in (sun, moon):
            if body is not None:
                events.extend(body.events)
                sun_events.extend(body.sun)
        return AstronomyReport(data=events, moon=phases or [], sun=sun_events)

    async def get_events(
        self,
        lat: float | None = None,
        lon: float | None = None,
        from_date: date | None = None,
        to_date: date | None = None,
        search: str | None = None,
    ) -> AstronomyReport:
        """Events, moon phases and sun times for a location and date range.

        Never fails: missing credentials or a complete upstream outage yield
        demo data flagged with ``mock=True``.
        """
        lat, lon = clamp_coordinates(
            self._settings.default_lat if lat is None else lat,
            self._settings.default_lon if lon is None else lon,
        )
        from_date, to_date = resolve_range(from_date, to_date)
        key = f"astro_events_{lat}_{lon}_{from_date}_{to_date}"

        report = await self._cache.get_or_compute(
            key,
            self._settings.astro_events_cache_ttl,
            lambda: self._build_report(lat, lon, from_date, to_date),
        )
        text = (search or "").strip()
        if text:
            report = report.model_copy(
                update={"data": query.search(report.data, text, EVENT_SEARCH_FIELDS)}
            )
        return report

    async def _load_positions(self, path: str, params: dict[str, Any]) -> Any:
        result = await self._client.fetch(
            f"{self._settings.astronomy_api_url}{path}",
            params,
            timeout=self._settings.astro_body_positions_timeout,
            headers=self._auth_headers(),
        )
        if not result.ok:
            raise result.to_exception()
        data = result.data.get("data") if isinstance(result.data, Mapping) else None
        return data or {}

    async def get_positions(self, params: PositionQuery) -> Any:
        """Positions of all bodies; raises when unconfigured or unavailable."""
        if not self._settings.has_astronomy_credentials:
            raise CredentialsMissing()
        return await self._cache.get_or_compute(
            f"astro_positions_all_{params.cache_suffix()}",
            self._settings.astro_positions_cache_ttl,
            lambda: self._load_positions("/bodies/positions", params.to_params()),
        )

    async def get_body_positions(self, body: str, params: PositionQuery) -> Any:
        if not self._settings.has_astronomy_credentials:
            raise CredentialsMissing()
        return await self._cache.get_or_compute(
            f"astro_positions_{body}_{params.cache_suffix()}",
            self._settings.astro_positions_cache_ttl,
            lambda: self._load_positions(
                f"/bodies/positions/{quote(body, safe='')}",
                {**params.to_params(), "output": "rows"},
            ),
        )
