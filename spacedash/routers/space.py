"""Space-data snapshots kept by the upstream cache (APOD, NEO, DONKI, SpaceX)."""

from fastapi import APIRouter, Depends, HTTPException, Request, status

from spacedash.dependencies import get_space_service
from spacedash.security import API_RATE, MUTATION_RATE, limiter
from spacedash.services.space import SOURCES, SpaceService

router = APIRouter(prefix="/api/space", tags=["space"])


def _known_source(source: str) -> str:
    if source not in SOURCES:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown source '{source}'",
        )
    return source


@router.get("/sources")
@limiter.limit(API_RATE)
async def space_sources(
    request: Request, service: SpaceService = Depends(get_space_service)
) -> dict:
    return {"ok": True, "sources": service.available_sources()}


@router.get("/summary")
@limiter.limit(API_RATE)
async def space_summary(
    request: Request, service: SpaceService = Depends(get_space_service)
) -> dict:
    summary = await service.get_summary()
    return {"ok": bool(summary), "data": summary}


@router.get("/{source}/latest")
@limiter.limit(API_RATE)
async def space_latest(
    request: Request,
    source: str = Depends(_known_source),
    service: SpaceService = Depends(get_space_service),
) -> dict:
    snapshot = await service.get_latest(source)
    return {
        "ok": snapshot is not None,
        "data": snapshot.model_dump(mode="json") if snapshot else None,
    }


@router.get("/{source}/status")
@limiter.limit(API_RATE)
async def space_status(
    request: Request,
    source: str = Depends(_known_source),
    service: SpaceService = Depends(get_space_service),
) -> dict:
    report = await service.source_status(source)
    return {"ok": True, "data": report.model_dump(mode="json")}


@router.post("/{source}/refresh")
@limiter.limit(MUTATION_RATE)
async def space_refresh(
    request: Request,
    source: str = Depends(_known_source),
    service: SpaceService = Depends(get_space_service),
) -> dict:
    refreshed = await service.refresh(source)
    return {"ok": refreshed, "source": source}
