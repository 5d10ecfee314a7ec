"""Security façade for rate limiting and headers middleware."""

from spacedash.middleware.security import SecurityHeadersMiddleware  # noqa: F401

from .rate_limit import API_RATE, MUTATION_RATE, PAGE_RATE, limiter  # noqa: F401

__all__ = [
    "API_RATE",
    "MUTATION_RATE",
    "PAGE_RATE",
    "limiter",
    "SecurityHeadersMiddleware",
]
