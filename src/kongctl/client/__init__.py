"""
Gateway HTTP adapter shared by every resource command.

Import :class:`GatewayClient` to talk to the Admin API and catch
:class:`GatewayError` (or one of its subclasses) to handle failures.
"""

from .context import DEFAULT_TIMEOUT, RequestContext
from .errors import (
    ConfigError,
    DecodeError,
    GatewayConnectionError,
    GatewayError,
    HTTPStatusError,
    RemoteError,
    RequestCanceledError,
    RequestTimeoutError,
    ValidationError,
)
from .http import GatewayClient, GatewayResponse, TLSOptions, check_status, parse_base_url

__all__ = [
    "DEFAULT_TIMEOUT",
    "ConfigError",
    "DecodeError",
    "GatewayClient",
    "GatewayConnectionError",
    "GatewayError",
    "GatewayResponse",
    "HTTPStatusError",
    "RemoteError",
    "RequestCanceledError",
    "RequestContext",
    "RequestTimeoutError",
    "TLSOptions",
    "ValidationError",
    "check_status",
    "parse_base_url",
]
