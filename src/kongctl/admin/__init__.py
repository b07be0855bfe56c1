"""
Typed wrappers for the gateway's Admin API resources.

Each ``*API`` class takes the shared :class:`~kongctl.client.GatewayClient`
and exposes create/get/list/delete style operations that return decoded JSON.
"""

from .base import BaseResourceAPI, compact
from .consumers import ConsumerAPI, ConsumerConfig
from .plugins import BasicAuthCredential, PluginAPI, PluginConfig, PluginScope
from .routes import RouteAPI, RouteConfig
from .services import ServiceAPI, ServiceConfig
from .targets import TargetAPI, TargetConfig
from .upstreams import (
    ActiveHealthCheck,
    HealthChecks,
    HealthyThresholds,
    PassiveHealthCheck,
    UnhealthyThresholds,
    UpstreamAPI,
    UpstreamConfig,
)

__all__ = [
    "ActiveHealthCheck",
    "BaseResourceAPI",
    "BasicAuthCredential",
    "ConsumerAPI",
    "ConsumerConfig",
    "HealthChecks",
    "HealthyThresholds",
    "PassiveHealthCheck",
    "PluginAPI",
    "PluginConfig",
    "PluginScope",
    "RouteAPI",
    "RouteConfig",
    "ServiceAPI",
    "ServiceConfig",
    "TargetAPI",
    "TargetConfig",
    "UnhealthyThresholds",
    "UpstreamAPI",
    "UpstreamConfig",
    "compact",
]
