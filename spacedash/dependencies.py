"""Per-application service container and FastAPI dependency getters."""

from __future__ import annotations

import random
from dataclasses import dataclass

from fastapi import Request

from spacedash.config import Settings
from spacedash.services.astronomy import AstronomyService
from spacedash.services.cache import TTLCache
from spacedash.services.iss import IssService
from spacedash.services.jwst import JwstService
from spacedash.services.osdr import OsdrService
from spacedash.services.space import SpaceService
from spacedash.services.upstream import UpstreamClient


@dataclass
class Services:
    """Every data service wired to one shared cache and HTTP client."""

    settings: Settings
    cache: TTLCache
    client: UpstreamClient
    iss: IssService
    osdr: OsdrService
    space: SpaceService
    jwst: JwstService
    astronomy: AstronomyService

    @classmethod
    def build(
        cls,
        settings: Settings,
        *,
        cache: TTLCache | None = None,
        client: UpstreamClient | None = None,
        rng: random.Random | None = None,
    ) -> Services:
        if cache is None:
            cache = TTLCache(maxsize=settings.cache_max_entries)
        if client is None:
            client = UpstreamClient(
                max_retries=settings.http_max_retries,
                backoff_ms=settings.http_retry_backoff_ms,
            )
        return cls(
            settings=settings,
            cache=cache,
            client=client,
            iss=IssService(client, cache, settings),
            osdr=OsdrService(client, cache, settings),
            space=SpaceService(client, cache, settings),
            jwst=JwstService(client, cache, settings),
            astronomy=AstronomyService(client, cache, settings, rng=rng),
        )


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_settings(request: Request) -> Settings:
    return request.app.state.services.settings


def get_iss_service(request: Request) -> IssService:
    return get_services(request).iss


def get_osdr_service(request: Request) -> OsdrService:
    return get_services(request).osdr


def get_space_service(request: Request) -> SpaceService:
    return get_services(request).space


def get_jwst_service(request: Request) -> JwstService:
    return get_services(request).jwst


def get_astronomy_service(request: Request) -> AstronomyService:
    return get_services(request).astronomy
