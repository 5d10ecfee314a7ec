"""Pydantic schemas for the upstream space-data cache."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class SpaceSnapshot(BaseModel):
    """Latest payload the upstream stored for one source (apod, neo, ...)."""

    model_config = ConfigDict(frozen=True)

    id: int = 0
    source: str = ""
    fetched_at: datetime | None = None
    payload: Any = None

    @property
    def data_count(self) -> int:
        if isinstance(self.payload, dict | list):
            return len(self.payload)
        return 0


class SourceStatus(BaseModel):
    """Freshness report for one space-data source."""

    source: str
    last_updated: datetime | None = None
    data_count: int = 0
    is_recent: bool = False
