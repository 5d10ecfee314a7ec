"""Pydantic schemas for the JWST image feed."""

from __future__ import annotations

from pydantic import BaseModel, Field


class JwstImage(BaseModel):
    url: str
    obs: str = ""
    program: str = ""
    suffix: str = ""
    inst: list[str] = Field(default_factory=list)
    caption: str = ""
    link: str = ""


class JwstFeed(BaseModel):
    source: str
    count: int = 0
    items: list[JwstImage] = Field(default_factory=list)
