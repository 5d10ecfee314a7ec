"""Error taxonomy shared by services and routers."""

from __future__ import annotations


class SpaceDataError(Exception):
    """Base class for recoverable data-source failures."""


class UpstreamUnavailable(SpaceDataError):
    """Network failure, timeout, or non-2xx status from an upstream call."""

    def __init__(self, message: str, status: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class MalformedUpstreamResponse(UpstreamUnavailable):
    """Upstream answered, but the body was not JSON or lacked the expected shape."""


class CredentialsMissing(SpaceDataError):
    """Third-party API credentials are not configured."""

    def __init__(self, message: str = "API credentials not configured") -> None:
        super().__init__(message)
        self.message = message
