"""AstronomyAPI proxy: events with demo fallback, and body positions."""

import logging
from datetime import UTC, date, datetime

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from spacedash.config import Settings
from spacedash.dependencies import get_astronomy_service, get_settings
from spacedash.schemas.astronomy import PositionQuery
from spacedash.security import API_RATE, limiter
from spacedash.services.astronomy import AstronomyService, clamp_coordinates
from spacedash.services.errors import CredentialsMissing, UpstreamUnavailable

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/astro", tags=["astronomy"])


def _position_query(
    settings: Settings,
    latitude: float | None,
    longitude: float | None,
    elevation: float,
    from_date: date | None,
    to_date: date | None,
    time: str,
) -> PositionQuery:
    lat, lon = clamp_coordinates(
        settings.default_lat if latitude is None else latitude,
        settings.default_lon if longitude is None else longitude,
    )
    today = datetime.now(UTC).date()
    start = from_date or today
    end = to_date or today
    if end < start:
        start, end = end, start
    return PositionQuery(
        latitude=lat,
        longitude=lon,
        elevation=elevation,
        from_date=start,
        to_date=end,
        time=time,
    )


def _positions_error(exc: CredentialsMissing | UpstreamUnavailable) -> JSONResponse:
    if isinstance(exc, CredentialsMissing):
        body = {"ok": False, "error": exc.message}
    else:
        logger.warning("Astronomy positions request failed: %s", exc.message)
        body = {"ok": False, "error": "API request failed", "code": exc.status}
    return JSONResponse(body, status_code=500)


@router.get("/events")
@limiter.limit(API_RATE)
async def astro_events(
    request: Request,
    lat: float | None = None,
    lon: float | None = None,
    from_date: date | None = None,
    to_date: date | None = None,
    search: str | None = None,
    service: AstronomyService = Depends(get_astronomy_service),
) -> dict:
    """Eclipses, moon phases and sun times; demo data when the API is down."""
    report = await service.get_events(lat, lon, from_date, to_date, search)
    return report.to_response()


@router.get("/positions")
@limiter.limit(API_RATE)
async def astro_positions(
    request: Request,
    latitude: float | None = None,
    longitude: float | None = None,
    elevation: float = 0,
    from_date: date | None = None,
    to_date: date | None = None,
    time: str = Query("12:00:00", pattern=r"^\d{2}:\d{2}:\d{2}$"),
    service: AstronomyService = Depends(get_astronomy_service),
    settings: Settings = Depends(get_settings),
):
    params = _position_query(
        settings, latitude, longitude, elevation, from_date, to_date, time
    )
    try:
        data = await service.get_positions(params)
    except (CredentialsMissing, UpstreamUnavailable) as exc:
        return _positions_error(exc)
    return {"ok": True, "data": data}


@router.get("/positions/{body}")
@limiter.limit(API_RATE)
async def astro_body_positions(
    request: Request,
    body: str,
    latitude: float | None = None,
    longitude: float | None = None,
    elevation: float = 0,
    from_date: date | None = None,
    to_date: date | None = None,
    time: str = Query("12:00:00", pattern=r"^\d{2}:\d{2}:\d{2}$"),
    service: AstronomyService = Depends(get_astronomy_service),
    settings: Settings = Depends(get_settings),
):
    params = _position_query(
        settings, latitude, longitude, elevation, from_date, to_date, time
    )
    try:
        data = await service.get_body_positions(body.lower(), params)
    except (CredentialsMissing, UpstreamUnavailable) as exc:
        return _positions_error(exc)
    return {"ok": True, "data": data}
