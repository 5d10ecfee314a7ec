from __future__ import annotations

import logging
import re
from logging.config import dictConfig

from asgi_correlation_id.context import correlation_id
from pythonjsonlogger import jsonlogger

# Authorization values and API keys that may end up in upstream error messages
_SECRET_PATTERNS = (
    (re.compile(r"\b(Basic|Bearer)\s+[A-Za-z0-9+/=._-]+"), r"\1 [redacted]"),
    (
        re.compile(r"(X-API-KEY['\"]?\s*[:=]\s*['\"]?)[^'\",\s}]+", re.IGNORECASE),
        r"\1[redacted]",
    ),
)


def redact(text: str) -> str:
    for pattern, replacement in _SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class CorrelationIdFilter(logging.Filter):
    """Attach the current request correlation ID to each log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id.get() or "unknown"
        return True


class RedactSecretsFilter(logging.Filter):
    """Scrub upstream credentials from the rendered message."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = None
        return True


def configure_logging(
    level: str = "INFO", *, json_logs: bool = True, environment: str = "development"
) -> None:
    """JSON logs for the app and uvicorn; plain text when ``json_logs`` is off."""
    fmt = "%(asctime)s %(levelname)s %(name)s %(correlation_id)s %(message)s"
    formatter: dict = {"format": fmt}
    if json_logs:
        formatter = {
            "()": jsonlogger.JsonFormatter,
            "fmt": fmt,
            "rename_fields": {"levelname": "level", "asctime": "timestamp"},
            "static_fields": {"service": "spacedash", "environment": environment},
        }

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "correlation": {"()": CorrelationIdFilter},
                "redact": {"()": RedactSecretsFilter},
            },
            "formatters": {"default": formatter},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "filters": ["correlation", "redact"],
                }
            },
            "root": {"handlers": ["console"], "level": level},
            "loggers": {
                "spacedash": {"level": level},
                # httpx logs every request URL at INFO
                "httpx": {"level": "WARNING"},
                "uvicorn.error": {
                    "handlers": ["console"],
                    "level": level,
                    "propagate": False,
                },
                "uvicorn.access": {
                    "handlers": ["console"],
                    "level": level,
                    "propagate": False,
                },
            },
        }
    )
