"""JWST gallery feed."""

from fastapi import APIRouter, Depends, Query, Request

from spacedash.dependencies import get_jwst_service
from spacedash.security import API_RATE, limiter
from spacedash.services.jwst import JwstService

router = APIRouter(prefix="/api/jwst", tags=["jwst"])


@router.get("/feed")
@limiter.limit(API_RATE)
async def jwst_feed(
    request: Request,
    source: str = "jpg",
    suffix: str = "",
    program: str = "",
    instrument: str = "",
    page: int = 1,
    per_page: int = Query(24, alias="perPage"),
    service: JwstService = Depends(get_jwst_service),
) -> dict:
    feed = await service.get_feed(
        source=source,
        suffix=suffix,
        program=program,
        instrument=instrument,
        page=page,
        per_page=per_page,
    )
    return feed.model_dump()
