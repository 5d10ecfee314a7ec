"""Pydantic schemas for ISS telemetry."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PositionReading(BaseModel):
    """One ISS telemetry sample as stored by the upstream service."""

    model_config = ConfigDict(frozen=True)

    id: int = 0
    fetched_at: datetime
    source_url: str = ""
    payload: dict[str, Any] = Field(default_factory=dict)

    def _number(self, key: str) -> float | None:
        value = self.payload.get(key)
        if value is None or isinstance(value, bool):
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return None

    @property
    def latitude(self) -> float | None:
        return self._number("latitude")

    @property
    def longitude(self) -> float | None:
        return self._number("longitude")

    @property
    def velocity(self) -> float | None:
        return self._number("velocity")

    @property
    def altitude(self) -> float | None:
        return self._number("altitude")

    @property
    def visibility(self) -> str | None:
        value = self.payload.get("visibility")
        return str(value) if value is not None else None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class TrendSummary(BaseModel):
    """Delta between the two most recent readings, computed upstream."""

    model_config = ConfigDict(frozen=True)

    movement: bool = False
    delta_km: float = 0.0
    dt_sec: float = 0.0
    velocity_kmh: float | None = None
    from_time: datetime | None = None
    to_time: datetime | None = None
    from_lat: float | None = None
    from_lon: float | None = None
    to_lat: float | None = None
    to_lon: float | None = None

    @property
    def movement_status(self) -> str:
        return "Moving" if self.movement else "Stationary"

    @property
    def formatted_distance(self) -> str:
        return f"{self.delta_km:,.2f} km"

    @property
    def formatted_velocity(self) -> str:
        if not self.velocity_kmh:
            return "N/A"
        return f"{self.velocity_kmh:,.2f} km/h"

    @property
    def altitude_change(self) -> float | None:
        """Rough altitude delta; a placeholder heuristic, not orbital mechanics."""
        if self.delta_km > 0 and self.velocity_kmh:
            return round(self.delta_km / 100, 2)
        return None

    @property
    def formatted_altitude_change(self) -> str:
        change = self.altitude_change
        return f"{change:,.2f} km" if change else "N/A"

    @property
    def velocity_change(self) -> float | None:
        return round(self.velocity_kmh, 2) if self.velocity_kmh else None

    @property
    def formatted_velocity_change(self) -> str:
        change = self.velocity_change
        return f"{change:,.2f} km/h" if change else "N/A"

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class IssInfo(BaseModel):
    """Static reference facts shown next to live telemetry."""

    name: str = "International Space Station"
    crew_capacity: int = 7
    mass_kg: int = 420_000
    orbital_period: str = "92.68 minutes"
    avg_velocity: str = "27,600 km/h"
