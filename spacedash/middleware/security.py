from __future__ import annotations

from collections.abc import Callable, Iterable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

# Dashboard pages embed APOD and JWST images served from third-party hosts.
DEFAULT_CSP = (
    "default-src 'self'",
    "base-uri 'none'",
    "frame-ancestors 'self'",
    "img-src 'self' data: https:",
    "font-src 'self'",
    "connect-src 'self'",
    "script-src 'self'",
    "style-src 'self'",
    "object-src 'none'",
)


def _is_secure_request(request: Request) -> bool:
    # Honor reverse proxy headers if present
    forwarded = request.headers.get("x-forwarded-proto")
    if forwarded:
        return "https" in forwarded
    return request.url.scheme == "https"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Adds hardened response headers to every dashboard response.
    - CSP that only admits remote images
    - HSTS on HTTPS only, skipped for local hosts
    - Cross-origin isolation and a locked-down Permissions-Policy
    """

    def __init__(
        self,
        app,
        *,
        csp_directives: Iterable[str] | None = None,
        hsts: str = "max-age=63072000; includeSubDomains",
        referrer_policy: str = "strict-origin-when-cross-origin",
        permissions_policy: str = "geolocation=(), microphone=(), camera=()",
        frame_options: str = "SAMEORIGIN",
        skip_hsts_hosts: set[str] | None = None,
    ) -> None:
        super().__init__(app)
        self.csp = "; ".join(csp_directives or DEFAULT_CSP)
        self.hsts = hsts
        self.referrer_policy = referrer_policy
        self.permissions_policy = permissions_policy
        self.frame_options = frame_options
        self.skip_hsts_hosts = skip_hsts_hosts or {"localhost", "127.0.0.1"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        headers = response.headers

        headers.setdefault("Content-Security-Policy", self.csp)

        if _is_secure_request(request) and (
            request.url.hostname not in self.skip_hsts_hosts
        ):
            headers.setdefault("Strict-Transport-Security", self.hsts)

        headers.setdefault("Referrer-Policy", self.referrer_policy)
        headers.setdefault("X-Content-Type-Options", "nosniff")
        headers.setdefault("X-Frame-Options", self.frame_options)
        headers.setdefault("Cross-Origin-Opener-Policy", "same-origin")
        headers.setdefault("Cross-Origin-Resource-Policy", "same-origin")
        if self.permissions_policy:
            headers.setdefault("Permissions-Policy", self.permissions_policy)
        return response
