"""OSDR catalog listing and sync."""

from fastapi import APIRouter, Depends, Request

from spacedash.dependencies import get_osdr_service
from spacedash.security import API_RATE, MUTATION_RATE, limiter
from spacedash.services.osdr import OsdrService

router = APIRouter(prefix="/api/osdr", tags=["osdr"])


@router.get("/list")
@limiter.limit(API_RATE)
async def osdr_list(
    request: Request,
    limit: int = 20,
    q: str | None = None,
    sort: str | None = None,
    service: OsdrService = Depends(get_osdr_service),
) -> dict:
    page = await service.browse(limit=limit, q=q, sort=sort)
    return {
        "ok": True,
        "count": page.count,
        "sort": page.sort,
        "items": [item.to_dict() for item in page.items],
    }


@router.post("/sync")
@limiter.limit(MUTATION_RATE)
async def osdr_sync(
    request: Request, service: OsdrService = Depends(get_osdr_service)
) -> dict:
    written = await service.sync()
    return {"ok": True, "written": written}
