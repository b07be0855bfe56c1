"""
Plugin objects and the typed plugins kongctl knows how to configure.

A plugin is attached globally, to a service, or to a route. The scope is
expressed through the request path (``services/{id}/plugins``,
``routes/{id}/plugins`` or ``plugins``); a consumer binding travels in the
payload as ``consumer_id``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence

from ..client import ValidationError
from .base import BaseResourceAPI, compact, first_identifier

BASIC_AUTH = "basic-auth"
STATSD = "statsd"
DEFAULT_STATSD_HOST = "127.0.0.1"
DEFAULT_STATSD_PORT = 8125
DEFAULT_STATSD_PREFIX = "kong"


@dataclass(slots=True)
class PluginScope:
    """Entities a plugin is attached to. An empty scope means global."""

    service_id: Optional[str] = None
    route_id: Optional[str] = None
    consumer_id: Optional[str] = None


@dataclass(slots=True)
class PluginConfig:
    name: str
    scope: PluginScope = field(default_factory=PluginScope)
    enabled: Optional[bool] = None
    config: Mapping[str, Any] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        return compact(
            {
                "name": self.name,
                "consumer_id": self.scope.consumer_id,
                "enabled": self.enabled,
                "config": dict(self.config),
            }
        )


@dataclass(slots=True)
class BasicAuthCredential:
    username: str
    password: str

    def to_payload(self) -> Dict[str, Any]:
        return {"username": self.username, "password": self.password}


class PluginAPI(BaseResourceAPI):
    collection = "plugins"

    def scoped_path(self, scope: PluginScope) -> str:
        """Collection path for ``scope``: service wins over route, else global."""

        if scope.service_id:
            return self.nested_path("services", scope.service_id, "plugins")
        if scope.route_id:
            return self.nested_path("routes", scope.route_id, "plugins")
        return self.resource_path()

    def create(self, config: PluginConfig) -> Mapping[str, Any]:
        if not config.name or not config.name.strip():
            raise ValidationError("plugin name is required")
        return self._post_json(self.scoped_path(config.scope), config)

    def get(self, plugin_id: str) -> Mapping[str, Any]:
        return self._get_json(self.resource_path(self._identify(plugin_id)))

    def delete(self, plugin_id: str) -> None:
        self._delete(self.resource_path(self._identify(plugin_id)))

    def list(
        self,
        *,
        name: Optional[str] = None,
        service_id: Optional[str] = None,
        route_id: Optional[str] = None,
        consumer_id: Optional[str] = None,
        size: Optional[int] = None,
        offset: Optional[str] = None,
    ) -> Mapping[str, Any]:
        query = {
            "name": name or None,
            "service_id": service_id or None,
            "route_id": route_id or None,
            "consumer_id": consumer_id or None,
            **self.page_query(size, offset),
        }
        return self._get_json(self.resource_path(), query=query)

    def enabled(self) -> Mapping[str, Any]:
        """Plugins installed on the gateway node."""

        return self._get_json(self.resource_path("enabled"))

    def enable_basic_auth(
        self,
        scope: PluginScope,
        *,
        hide_credentials: bool = False,
        anonymous: Optional[str] = None,
        enabled: Optional[bool] = None,
    ) -> Mapping[str, Any]:
        config = PluginConfig(
            name=BASIC_AUTH,
            scope=scope,
            enabled=enabled,
            config={"hide_credentials": hide_credentials, "anonymous": anonymous or None},
        )
        return self.create(config)

    def add_basic_auth_credential(self, consumer: str, credential: BasicAuthCredential) -> Mapping[str, Any]:
        consumer_ref = first_identifier(consumer, message="consumer id is required to provision credentials")
        if not credential.username or not credential.password:
            raise ValidationError("username and password are required to provision basic-auth credentials")
        return self._post_json(self.nested_path("consumers", consumer_ref, BASIC_AUTH), credential)

    def enable_statsd(
        self,
        scope: PluginScope,
        *,
        host: str = DEFAULT_STATSD_HOST,
        port: int = DEFAULT_STATSD_PORT,
        prefix: Optional[str] = DEFAULT_STATSD_PREFIX,
        metrics: Sequence[Mapping[str, Any]] = (),
        enabled: Optional[bool] = None,
    ) -> Mapping[str, Any]:
        if not host:
            raise ValidationError("statsd host is required")
        config = PluginConfig(
            name=STATSD,
            scope=scope,
            enabled=enabled,
            config={
                "host": host,
                "port": port,
                "prefix": prefix or None,
                "metrics": [dict(metric) for metric in metrics] or None,
            },
        )
        return self.create(config)

    @staticmethod
    def _identify(plugin_id: Optional[str]) -> str:
        return first_identifier(plugin_id, message="plugin id is required")
