"""
Route objects.

A route defines rules to match client requests and is bound to exactly one
service; every request matching the route is proxied to that service.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..client import ValidationError
from .base import BaseResourceAPI, compact, first_identifier


def parse_endpoint(value: str) -> Dict[str, Any]:
    """Turn ``ip[:port]`` into the ``{"ip": ..., "port": ...}`` shape used for stream routing."""

    text = value.strip()
    if not text:
        raise ValidationError("stream routing endpoint must not be empty")
    host, sep, port = text.rpartition(":")
    if sep and port.isdigit() and host and not host.endswith(":"):
        return {"ip": host, "port": int(port)}
    return {"ip": text}


@dataclass(slots=True)
class RouteConfig:
    service_id: Optional[str] = None
    name: Optional[str] = None
    protocols: Sequence[str] = field(default_factory=tuple)
    methods: Sequence[str] = field(default_factory=tuple)
    hosts: Sequence[str] = field(default_factory=tuple)
    paths: Sequence[str] = field(default_factory=tuple)
    snis: Sequence[str] = field(default_factory=tuple)
    sources: Sequence[str] = field(default_factory=tuple)
    destinations: Sequence[str] = field(default_factory=tuple)
    regex_priority: Optional[int] = None
    strip_path: Optional[bool] = None
    preserve_host: Optional[bool] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "regex_priority": self.regex_priority,
            "strip_path": self.strip_path,
            "preserve_host": self.preserve_host,
            "service": {"id": self.service_id},
        }
        for key in ("protocols", "methods", "hosts", "paths", "snis"):
            values: List[str] = list(getattr(self, key))
            if values:
                payload[key] = values
        if self.methods:
            payload["methods"] = [method.upper() for method in self.methods]
        if self.sources:
            payload["sources"] = [parse_endpoint(item) for item in self.sources]
        if self.destinations:
            payload["destinations"] = [parse_endpoint(item) for item in self.destinations]
        return compact(payload)


class RouteAPI(BaseResourceAPI):
    collection = "routes"

    def create(self, config: RouteConfig) -> Mapping[str, Any]:
        if not config.service_id:
            raise ValidationError("service_id is required to create a route")
        return self._post_json(self.resource_path(), config)

    def get(self, route_id: str) -> Mapping[str, Any]:
        return self._get_json(self.resource_path(self._identify(route_id)))

    def delete(self, route_id: str) -> None:
        self._delete(self.resource_path(self._identify(route_id)))

    def list(self, *, size: Optional[int] = None, offset: Optional[str] = None) -> Mapping[str, Any]:
        return self._get_json(self.resource_path(), query=self.page_query(size, offset))

    def list_for_service(self, service: str, *, size: Optional[int] = None, offset: Optional[str] = None) -> Mapping[str, Any]:
        service_ref = first_identifier(service, message="a service name or id is required")
        return self._get_json(self.nested_path("services", service_ref, "routes"), query=self.page_query(size, offset))

    @staticmethod
    def _identify(route_id: Optional[str]) -> str:
        return first_identifier(route_id, message="route id is required")
