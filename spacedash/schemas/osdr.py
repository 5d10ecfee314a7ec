"""Pydantic schemas for NASA OSDR catalog records."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

REST_URL_KEYS = ("REST_URL", "rest_url", "rest")


class CatalogItem(BaseModel):
    """A dataset record from the Open Science Data Repository."""

    model_config = ConfigDict(frozen=True)

    id: int = 0
    dataset_id: str | None = None
    title: str | None = None
    status: str | None = None
    updated_at: datetime | None = None
    inserted_at: datetime
    raw: dict[str, Any] = Field(default_factory=dict)

    def get_rest_url(self) -> str | None:
        """First non-null REST link in ``raw``, in ``REST_URL_KEYS`` order."""
        for key in REST_URL_KEYS:
            value = self.raw.get(key)
            if value is not None:
                return str(value)
        return None

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        data["rest_url"] = self.get_rest_url()
        return data


class CatalogPage(BaseModel):
    """One rendered page of the OSDR catalog listing."""

    items: list[CatalogItem] = Field(default_factory=list)
    sort: str = "inserted_desc"
    query: str = ""
    limit: int = 20

    @property
    def count(self) -> int:
        return len(self.items)
