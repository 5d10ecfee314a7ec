"""Pydantic schemas for dashboard entities and API payloads."""

from __future__ import annotations

from spacedash.schemas.astronomy import (
    AstronomyEvent,
    AstronomyReport,
    BodyEvents,
    MoonPhase,
    PositionQuery,
    SunEvent,
)
from spacedash.schemas.iss import IssInfo, PositionReading, TrendSummary
from spacedash.schemas.jwst import JwstFeed, JwstImage
from spacedash.schemas.osdr import CatalogItem, CatalogPage
from spacedash.schemas.space import SourceStatus, SpaceSnapshot

__all__ = [
    "AstronomyEvent",
    "AstronomyReport",
    "BodyEvents",
    "CatalogItem",
    "CatalogPage",
    "IssInfo",
    "JwstFeed",
    "JwstImage",
    "MoonPhase",
    "PositionQuery",
    "PositionReading",
    "SourceStatus",
    "SpaceSnapshot",
    "SunEvent",
    "TrendSummary",
]
