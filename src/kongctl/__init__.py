"""
kongctl: command-line client for the Kong API gateway Admin API.

:class:`~kongctl.client.GatewayClient` is the shared HTTP adapter; the
:mod:`kongctl.admin` package maps gateway resources onto it and
:mod:`kongctl.cli` exposes them as Typer commands.
"""

__version__ = "0.2.0"

from .client import GatewayClient, GatewayError, GatewayResponse, RequestContext
from .config import GatewaySettings, load_settings

__all__ = [
    "GatewayClient",
    "GatewayError",
    "GatewayResponse",
    "GatewaySettings",
    "RequestContext",
    "__version__",
    "load_settings",
]
