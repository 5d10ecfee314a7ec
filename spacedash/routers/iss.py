"""ISS telemetry proxy."""

from fastapi import APIRouter, Depends, Request

from spacedash.dependencies import get_iss_service
from spacedash.security import API_RATE, MUTATION_RATE, limiter
from spacedash.services.iss import IssService

router = APIRouter(prefix="/api/iss", tags=["iss"])


@router.get("/last")
@limiter.limit(API_RATE)
async def iss_last(
    request: Request, service: IssService = Depends(get_iss_service)
) -> dict:
    reading = await service.get_last()
    return {"ok": reading is not None, "data": reading.to_dict() if reading else None}


@router.get("/trend")
@limiter.limit(API_RATE)
async def iss_trend(
    request: Request, service: IssService = Depends(get_iss_service)
) -> dict:
    trend = await service.get_trend()
    return {"ok": trend is not None, "data": trend.to_dict() if trend else None}


@router.post("/refresh")
@limiter.limit(MUTATION_RATE)
async def iss_refresh(
    request: Request, service: IssService = Depends(get_iss_service)
) -> dict:
    """Drop cached telemetry and pull a fresh sample from the collector."""
    reading = await service.refresh()
    return {"ok": reading is not None, "data": reading.to_dict() if reading else None}
