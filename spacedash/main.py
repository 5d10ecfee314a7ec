"""
FastAPI Application - Space Data Dashboard
"""

import logging
import secrets
from contextlib import asynccontextmanager

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from spacedash.config import Settings
from spacedash.config import settings as default_settings
from spacedash.dependencies import Services, get_services
from spacedash.middleware.security import DEFAULT_CSP, SecurityHeadersMiddleware
from spacedash.observability.logging import configure_logging
from spacedash.observability.metrics import MetricsMiddleware, metrics_response
from spacedash.observability.tracing import configure_tracing
from spacedash.routers.astro import router as astro_router
from spacedash.routers.iss import router as iss_router
from spacedash.routers.jwst import router as jwst_router
from spacedash.routers.osdr import router as osdr_router
from spacedash.routers.space import router as space_router
from spacedash.routers.ui import router as ui_router
from spacedash.security import limiter
from spacedash.staticfiles import (
    STATIC_ROOT,
    TEMPLATES_ROOT,
    CachedStaticFiles,
    templates,
)

logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"


# ==========================================
# Application Lifespan
# ==========================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.services.settings
    logger.info("Starting space dashboard (environment=%s)", settings.environment)
    if not settings.has_astronomy_credentials:
        logger.warning("AstronomyAPI credentials missing; events will use demo data")
    if not settings.jwst_api_key:
        logger.warning("JWST API key missing; gallery feed will be empty")
    yield
    app.state.services.cache.clear()
    logger.info("Shutting down space dashboard")


# ==========================================
# Exception handlers
# ==========================================
def _accepts_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "").lower()


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    if _accepts_html(request):
        return HTMLResponse(
            "<h2>Too Many Requests</h2><p>Please retry shortly.</p>",
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        )
    return JSONResponse(
        {"detail": "Rate limit exceeded. Please retry shortly."},
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render HTML error pages for browsers and JSON for API clients."""
    if _accepts_html(request) and not request.url.path.startswith("/api/"):
        return templates.TemplateResponse(
            request,
            "error.html",
            {"status_code": exc.status_code, "detail": exc.detail},
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )
    return JSONResponse(
        {"detail": exc.detail},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


# ==========================================
# Metrics (optionally protected with HTTP Basic Auth)
# ==========================================
security = HTTPBasic(auto_error=False)


def verify_metrics_auth(
    request: Request,
    credentials: HTTPBasicCredentials | None = Depends(security),
) -> None:
    """Require Basic auth on /metrics when METRICS_PASSWORD is configured."""
    settings: Settings = get_services(request).settings
    if not settings.metrics_password:
        return

    valid = credentials is not None and (
        secrets.compare_digest(credentials.username, settings.metrics_username)
        & secrets.compare_digest(credentials.password, settings.metrics_password)
    )
    if not valid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )


def _csp_directives(settings: Settings) -> list[str]:
    directives = [*DEFAULT_CSP, "form-action 'self'"]
    if settings.is_production:
        directives.append("upgrade-insecure-requests")
    return directives


# ==========================================
# FastAPI Application
# ==========================================
def create_app(
    settings: Settings | None = None, services: Services | None = None
) -> FastAPI:
    if settings is None:
        settings = default_settings
    configure_logging(
        settings.log_level.upper(),
        json_logs=settings.log_json,
        environment=settings.environment,
    )
    limiter.enabled = settings.rate_limit_enabled

    app = FastAPI(
        title="Space Data Dashboard",
        description="ISS, OSDR, JWST and astronomy data in one place",
        version=APP_VERSION,
        debug=settings.debug and not settings.is_production,
        lifespan=lifespan,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        openapi_url=None if settings.is_production else "/openapi.json",
    )
    app.state.services = services or Services.build(settings)
    app.state.limiter = limiter

    # Last added wraps outermost, so CORS and the request id see every response
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(
        SecurityHeadersMiddleware,
        csp_directives=_csp_directives(settings),
        referrer_policy="strict-origin-when-cross-origin",
        permissions_policy="geolocation=(), microphone=(), camera=()",
        frame_options="SAMEORIGIN",
    )
    app.add_middleware(CorrelationIdMiddleware, header_name="X-Request-ID")
    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=False,
            allow_methods=["GET", "POST"],
            allow_headers=["Accept", "Content-Type"],
        )

    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.mount("/static", CachedStaticFiles(directory=str(STATIC_ROOT)), name="static")

    if configure_tracing(app, settings, APP_VERSION):
        logger.info("OTLP tracing enabled (endpoint=%s)", settings.otlp_endpoint)

    # ==========================================
    # Health & readiness (minimal in prod)
    # ==========================================
    @app.get("/healthz", tags=["system"], summary="Health check")
    async def health_check() -> dict:
        if settings.is_production:
            return {"status": "healthy"}
        return {"status": "healthy", "version": app.version}

    @app.get("/readyz", tags=["system"], summary="Readiness check")
    async def readiness_check(request: Request) -> dict:
        if not TEMPLATES_ROOT.is_dir():
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="templates missing",
            )
        if settings.is_production:
            return {"status": "ready"}
        services = get_services(request)
        return {
            "status": "ready",
            "cache_entries": len(services.cache),
            "astronomy_credentials": settings.has_astronomy_credentials,
            "jwst_key": bool(settings.jwst_api_key),
        }

    @app.get("/metrics", include_in_schema=False)
    def metrics(_: None = Depends(verify_metrics_auth)):
        """Prometheus metrics endpoint."""
        return metrics_response()

    # ==========================================
    # Routers
    # ==========================================
    app.include_router(ui_router)
    app.include_router(iss_router)
    app.include_router(osdr_router)
    app.include_router(space_router)
    app.include_router(jwst_router)
    app.include_router(astro_router)
    return app


app = create_app()
