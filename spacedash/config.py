"""Application settings for the space data dashboard."""

from __future__ import annotations

import json
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration entrypoint for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False

    # Server
    allowed_origins: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # Observability
    log_level: str = "INFO"
    log_json: bool = True
    enable_tracing: bool = False
    otlp_endpoint: str | None = None
    otlp_headers: str | None = None

    # Metrics endpoint authentication
    metrics_username: str = "prometheus"
    metrics_password: str | None = None

    # Rate limiting
    rate_limit_enabled: bool = True

    # Upstream ISS/OSDR/space-cache service
    upstream_base_url: str = Field(
        default="http://rust_iss:3000",
        validation_alias=AliasChoices(
            "UPSTREAM_BASE_URL", "RUST_BASE", "RUST_ISS_BASE"
        ),
    )

    # AstronomyAPI (Basic auth: base64(app_id:secret))
    astronomy_api_url: str = "https://api.astronomyapi.com/api/v2"
    astro_app_id: str = Field(
        default="", validation_alias=AliasChoices("ASTRO_APP_ID")
    )
    astro_app_secret: str = Field(
        default="", validation_alias=AliasChoices("ASTRO_APP_SECRET")
    )

    # JWST gallery API
    jwst_api_url: str = Field(
        default="https://api.jwstapi.com",
        validation_alias=AliasChoices("JWST_API_URL", "JWST_HOST"),
    )
    jwst_api_key: str | None = Field(
        default=None, validation_alias=AliasChoices("JWST_API_KEY")
    )

    # Default observer location (Moscow)
    default_lat: float = 55.7558
    default_lon: float = 37.6176

    # HTTP retry policy
    http_max_retries: int = Field(default=2, ge=0)
    http_retry_backoff_ms: int = Field(default=100, ge=0)

    # Per-resource timeouts (seconds)
    iss_timeout: float = 5.0
    osdr_timeout: float = 10.0
    space_timeout: float = 10.0
    astro_events_timeout: float = 25.0
    astro_positions_timeout: float = 15.0
    astro_body_positions_timeout: float = 10.0
    jwst_timeout: float = 20.0

    # Cache TTLs (seconds)
    iss_cache_ttl: int = 300
    osdr_cache_ttl: int = 600
    space_cache_ttl: int = 600
    astro_events_cache_ttl: int = 3600
    astro_positions_cache_ttl: int = 600
    jwst_cache_ttl: int = 600
    cache_max_entries: int = 1024

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_allowed_origins(cls, value: str | list[str] | None) -> list[str]:
        """Normalize ALLOWED_ORIGINS env input into a list."""
        if isinstance(value, list):
            return value
        if isinstance(value, str):
            raw = value.strip()
            if not raw:
                return []
            if raw.startswith("["):
                try:
                    parsed = json.loads(raw)
                    if isinstance(parsed, list):
                        return parsed
                except json.JSONDecodeError:
                    pass
            return [item.strip() for item in raw.split(",") if item.strip()]
        return []

    @field_validator("upstream_base_url", "astronomy_api_url", "jwst_api_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def is_production(self) -> bool:
        """Return True when running in production."""
        return self.environment == "production"

    @property
    def cors_origins(self) -> list[str]:
        """Expose allowed CORS origins for middleware wiring."""
        return self.allowed_origins

    @property
    def has_astronomy_credentials(self) -> bool:
        """Both halves of the AstronomyAPI key pair are configured."""
        return bool(self.astro_app_id) and bool(self.astro_app_secret)


settings = Settings()
