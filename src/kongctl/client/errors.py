"""
Error taxonomy raised by the gateway client.

Every failure surfaces as a subclass of :class:`GatewayError` so commands can
branch on the kind of failure rather than matching message text.
"""

from __future__ import annotations

from typing import Optional


class GatewayError(RuntimeError):
    """Base class for every error raised while talking to the gateway."""


class ConfigError(GatewayError):
    """Raised when the base URL or credentials are malformed or missing."""


class ValidationError(GatewayError):
    """Raised when command arguments cannot form a valid request."""


class RequestCanceledError(GatewayError):
    """Raised when the caller canceled the request before it completed."""

    def __init__(self, message: str, *, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url


class RequestTimeoutError(GatewayError):
    """Raised when the request deadline elapsed before the response arrived."""

    def __init__(self, message: str, *, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url


class GatewayConnectionError(GatewayError):
    """Raised on transport failures such as DNS errors or refused connections."""

    def __init__(self, message: str, *, url: Optional[str] = None, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url
        self.hint = hint


class HTTPStatusError(GatewayError):
    """Raised when the gateway answers with a status outside ``[200, 400)``."""

    def __init__(self, message: str, *, status_code: int, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class RemoteError(HTTPStatusError):
    """Error status carrying the gateway's ``{"message": ...}`` envelope verbatim."""


class DecodeError(GatewayError):
    """Raised when an error response claims JSON but does not hold the expected envelope."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url


__all__ = [
    "ConfigError",
    "DecodeError",
    "GatewayConnectionError",
    "GatewayError",
    "HTTPStatusError",
    "RemoteError",
    "RequestCanceledError",
    "RequestTimeoutError",
    "ValidationError",
]
