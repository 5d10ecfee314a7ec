"""Pydantic schemas for normalized astronomy data."""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AstronomyEvent(BaseModel):
    """Notable phenomenon (eclipse, conjunction, ...) on a given day."""

    model_config = ConfigDict(frozen=True)

    date: str  # YYYY-MM-DD
    time: str  # HH:MM:SS
    type: str
    description: str


class MoonPhase(BaseModel):
    model_config = ConfigDict(frozen=True)

    phase: str
    date: str
    time: str


class SunEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str  # Sunrise / Sunset
    date: str
    time: str


class BodyEvents(BaseModel):
    """Events extracted from one ``/bodies/events/{body}`` response."""

    events: list[AstronomyEvent] = Field(default_factory=list)
    sun: list[SunEvent] = Field(default_factory=list)


class AstronomyReport(BaseModel):
    """Payload of ``GET /api/astro/events``."""

    ok: bool = True
    data: list[AstronomyEvent] = Field(default_factory=list)
    moon: list[MoonPhase] = Field(default_factory=list)
    sun: list[SunEvent] = Field(default_factory=list)
    mock: bool = False
    message: str | None = None

    def to_response(self) -> dict[str, Any]:
        body = self.model_dump(exclude={"mock", "message"})
        if self.mock:
            body["mock"] = True
            body["message"] = self.message
        return body


class PositionQuery(BaseModel):
    """Query forwarded to the AstronomyAPI positions endpoints."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    elevation: float = 0
    from_date: date
    to_date: date
    time: str = "12:00:00"

    def to_params(self) -> dict[str, Any]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "elevation": self.elevation,
            "from_date": self.from_date.isoformat(),
            "to_date": self.to_date.isoformat(),
            "time": self.time,
        }

    def cache_suffix(self) -> str:
        return "_".join(str(value) for value in self.to_params().values())
