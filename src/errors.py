"""Error taxonomy shared by both handlers.

Every failure is raised as a ``GatewayError`` subclass and rendered by the
app into a JSON body with a stable ``error`` key.
"""

from __future__ import annotations

from typing import Any

DIAGNOSTIC_EXCERPT_CHARS = 2000


def excerpt(text: str, limit: int = DIAGNOSTIC_EXCERPT_CHARS) -> str:
    """First ``limit`` characters of an upstream payload."""
    return text[:limit]


class GatewayError(Exception):
    """Base error carrying the HTTP status and response body fields."""

    status_code = 500

    def __init__(self, error: str, **extra: Any) -> None:
        self.error = error
        self.extra = extra
        super().__init__(error)

    def to_body(self) -> dict[str, Any]:
        return {"error": self.error, **self.extra}


class ClientInputError(GatewayError):
    """Malformed or incomplete request from the caller."""

    status_code = 400


class UnauthorizedError(ClientInputError):
    status_code = 401


class MethodNotAllowedError(ClientInputError):
    status_code = 405


class PayloadTooLargeError(ClientInputError):
    status_code = 413


class ConfigurationError(GatewayError):
    """A required server-side value is missing: a deployment defect."""

    status_code = 500


class UpstreamError(GatewayError):
    """The third-party API was unreachable or answered with garbage."""

    status_code = 502


class UpstreamTimeoutError(UpstreamError):
    status_code = 504
