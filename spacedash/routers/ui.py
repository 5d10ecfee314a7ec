"""Server-rendered dashboard pages.

Every page renders even when upstreams are down; templates show a "no data"
placeholder for any section whose service returned nothing.
"""

import asyncio
from datetime import date

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from spacedash.dependencies import Services, get_services
from spacedash.security import PAGE_RATE, limiter
from spacedash.services.query import OSDR_SORTS
from spacedash.staticfiles import templates

router = APIRouter(tags=["ui"], include_in_schema=False)

DASHBOARD_OSDR_LIMIT = 5


@router.get("/")
async def index() -> RedirectResponse:
    return RedirectResponse(url="/dashboard", status_code=302)


@router.get("/dashboard", response_class=HTMLResponse)
@limiter.limit(PAGE_RATE)
async def dashboard(request: Request, services: Services = Depends(get_services)):
    """ISS position, recent OSDR datasets and the latest APOD/NEO snapshots."""
    iss, osdr, apod, neo = await asyncio.gather(
        services.iss.get_last(),
        services.osdr.get_list(DASHBOARD_OSDR_LIMIT),
        services.space.get_latest("apod"),
        services.space.get_latest("neo"),
    )
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "page": "dashboard",
            "iss": iss,
            "osdr_items": osdr,
            "apod": apod.payload if apod else None,
            "neo": neo.payload if neo else None,
        },
    )


@router.get("/iss", response_class=HTMLResponse)
@limiter.limit(PAGE_RATE)
async def iss_page(request: Request, services: Services = Depends(get_services)):
    last, trend = await asyncio.gather(
        services.iss.get_last(), services.iss.get_trend()
    )
    return templates.TemplateResponse(
        request,
        "iss.html",
        {
            "page": "iss",
            "last": last,
            "trend": trend,
            "info": services.iss.info(),
        },
    )


@router.get("/osdr", response_class=HTMLResponse)
@limiter.limit(PAGE_RATE)
async def osdr_page(
    request: Request,
    limit: int = 20,
    q: str | None = None,
    sort: str | None = None,
    services: Services = Depends(get_services),
):
    catalog = await services.osdr.browse(limit=limit, q=q, sort=sort)
    return templates.TemplateResponse(
        request,
        "osdr.html",
        {"page": "osdr", "catalog": catalog, "sorts": list(OSDR_SORTS)},
    )


@router.get("/jwst", response_class=HTMLResponse)
@limiter.limit(PAGE_RATE)
async def jwst_page(
    request: Request,
    source: str = "jpg",
    suffix: str = "",
    program: str = "",
    instrument: str = "",
    services: Services = Depends(get_services),
):
    feed = await services.jwst.get_feed(
        source=source, suffix=suffix, program=program, instrument=instrument
    )
    return templates.TemplateResponse(
        request,
        "jwst.html",
        {
            "page": "jwst",
            "feed": feed,
            "filters": {
                "source": source,
                "suffix": suffix,
                "program": program,
                "instrument": instrument,
            },
        },
    )


@router.get("/astronomy", response_class=HTMLResponse)
@limiter.limit(PAGE_RATE)
async def astronomy_page(
    request: Request,
    lat: float | None = None,
    lon: float | None = None,
    from_date: date | None = None,
    to_date: date | None = None,
    search: str | None = None,
    services: Services = Depends(get_services),
):
    report = await services.astronomy.get_events(lat, lon, from_date, to_date, search)
    return templates.TemplateResponse(
        request,
        "astronomy.html",
        {
            "page": "astronomy",
            "report": report,
            "lat": services.settings.default_lat if lat is None else lat,
            "lon": services.settings.default_lon if lon is None else lon,
            "search": search or "",
        },
    )
