"""Shared fixtures: isolated settings, fake clock, stub upstream and app client."""

from __future__ import annotations

import random
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from urllib.parse import urlsplit

import pytest
from fastapi.testclient import TestClient

from spacedash.config import Settings
from spacedash.dependencies import Services
from spacedash.main import create_app
from spacedash.security.rate_limit import limiter
from spacedash.services.cache import TTLCache
from spacedash.services.upstream import FetchError, UpstreamClient, UpstreamPayload

# Disable rate limiting in tests to prevent cross-test 429 flakes
limiter.enabled = False


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubUpstream:
    """Stands in for ``UpstreamClient``: answers by URL path suffix, records calls."""

    def __init__(self) -> None:
        self.routes: dict[str, Any] = {}
        self.fetch = AsyncMock(side_effect=self._dispatch)

    def route(self, path: str, result: Any) -> None:
        """``result`` is an UpstreamPayload, a FetchError, or a callable of params."""
        self.routes[path] = result

    def ok(self, path: str, data: Any) -> None:
        self.route(path, UpstreamPayload(data=data))

    def fail(self, path: str, status: int = 503) -> None:
        self.route(path, FetchError(status, f"HTTP {status}"))

    async def _dispatch(
        self,
        url: str,
        params: dict | None = None,
        *,
        timeout: float,
        max_retries: int | None = None,
        headers: dict | None = None,
    ):
        path = urlsplit(url).path
        for suffix, result in self.routes.items():
            if path.endswith(suffix):
                return result(params or {}) if callable(result) else result
        return FetchError(0, f"no stub for {path}")

    def calls_to(self, suffix: str) -> list[Any]:
        return [
            call
            for call in self.fetch.await_args_list
            if urlsplit(call.args[0]).path.endswith(suffix)
        ]


def mock_httpx_client(
    *, json_data: Any = None, status_code: int = 200, side_effect: Any = None
) -> AsyncMock:
    """AsyncMock usable as ``httpx.AsyncClient(...)`` inside ``async with``."""
    mock_resp = MagicMock()
    mock_resp.status_code = status_code
    mock_resp.content = b"{}"
    mock_resp.json.return_value = json_data

    mock_client = AsyncMock()
    if side_effect is not None:
        mock_client.get = AsyncMock(side_effect=side_effect)
    else:
        mock_client.get = AsyncMock(return_value=mock_resp)
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    return mock_client


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        environment="development",
        rate_limit_enabled=False,
        upstream_base_url="http://upstream.test",
        astro_app_id="",
        astro_app_secret="",
        jwst_api_key=None,
        metrics_password=None,
    )


@pytest.fixture
def credentialed_settings(settings: Settings) -> Settings:
    return settings.model_copy(
        update={
            "astro_app_id": "app-id",
            "astro_app_secret": "app-secret",
            "jwst_api_key": "jwst-key",
        }
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(fake_clock: FakeClock) -> TTLCache:
    return TTLCache(clock=fake_clock)


@pytest.fixture
def upstream() -> StubUpstream:
    return StubUpstream()


@pytest.fixture
def build_services(
    cache: TTLCache, upstream: StubUpstream
) -> Callable[[Settings], Services]:
    def _build(app_settings: Settings) -> Services:
        return Services.build(
            app_settings, cache=cache, client=upstream, rng=random.Random(7)
        )

    return _build


@pytest.fixture
def services(settings: Settings, build_services) -> Services:
    return build_services(settings)


@pytest.fixture
def client(settings: Settings, services: Services):
    app = create_app(settings, services)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def credentialed_client(credentialed_settings: Settings, build_services):
    app = create_app(credentialed_settings, build_services(credentialed_settings))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def real_client() -> UpstreamClient:
    async def no_sleep(_: float) -> None:
        return None

    return UpstreamClient(max_retries=2, backoff_ms=100, sleep=no_sleep)


@pytest.fixture
def mock_http() -> Callable[..., AsyncMock]:
    return mock_httpx_client
