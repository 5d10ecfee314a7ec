from __future__ import annotations

from urllib.parse import unquote

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from spacedash.config import Settings

SERVICE_NAME = "spacedash"
# Probes and scrapes would drown out the interesting spans
EXCLUDED_URLS = "healthz,readyz,metrics,static"

_configured = False


def parse_headers(raw: str | None) -> dict[str, str]:
    """Parse ``OTEL_EXPORTER_OTLP_HEADERS`` style ``k1=v1,k2=v2`` (values URL-encoded)."""
    headers: dict[str, str] = {}
    for pair in (raw or "").split(","):
        key, sep, value = pair.partition("=")
        if sep and key.strip():
            headers[key.strip()] = unquote(value.strip())
    return headers


def configure_tracing(app: FastAPI, settings: Settings, version: str) -> bool:
    """Export spans for inbound requests and outbound upstream calls.

    Returns ``False`` when tracing is disabled or already set up for this process.
    """
    global _configured
    if _configured or not (settings.enable_tracing and settings.otlp_endpoint):
        return False

    resource = Resource.create(
        {
            "service.name": SERVICE_NAME,
            "service.version": version,
            "deployment.environment": settings.environment,
        }
    )
    provider = TracerProvider(resource=resource)
    exporter = OTLPSpanExporter(
        endpoint=settings.otlp_endpoint,
        headers=parse_headers(settings.otlp_headers) or None,
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(app, excluded_urls=EXCLUDED_URLS)
    HTTPXClientInstrumentor().instrument()
    _configured = True
    return True
