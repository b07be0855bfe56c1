"""
Upstream objects.

An upstream is a virtual hostname used to load balance requests over a set
of targets, with optional active and passive health checking.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence

from ..client import ValidationError
from .base import BaseResourceAPI, compact, first_identifier

HASH_INPUTS = ("none", "consumer", "ip", "header", "cookie")


@dataclass(slots=True)
class HealthyThresholds:
    interval: Optional[int] = None
    http_statuses: Sequence[int] = field(default_factory=tuple)
    successes: Optional[int] = None


@dataclass(slots=True)
class UnhealthyThresholds:
    interval: Optional[int] = None
    http_statuses: Sequence[int] = field(default_factory=tuple)
    tcp_failures: Optional[int] = None
    timeouts: Optional[int] = None
    http_failures: Optional[int] = None


@dataclass(slots=True)
class ActiveHealthCheck:
    timeout: Optional[int] = None
    concurrency: Optional[int] = None
    http_path: Optional[str] = None
    healthy: HealthyThresholds = field(default_factory=HealthyThresholds)
    unhealthy: UnhealthyThresholds = field(default_factory=UnhealthyThresholds)


@dataclass(slots=True)
class PassiveHealthCheck:
    healthy: HealthyThresholds = field(default_factory=HealthyThresholds)
    unhealthy: UnhealthyThresholds = field(default_factory=UnhealthyThresholds)


@dataclass(slots=True)
class HealthChecks:
    active: ActiveHealthCheck = field(default_factory=ActiveHealthCheck)
    passive: PassiveHealthCheck = field(default_factory=PassiveHealthCheck)


@dataclass(slots=True)
class UpstreamConfig:
    name: Optional[str] = None
    slots: Optional[int] = None
    hash_on: Optional[str] = None
    hash_fallback: Optional[str] = None
    hash_on_header: Optional[str] = None
    hash_fallback_header: Optional[str] = None
    hash_on_cookie: Optional[str] = None
    hash_on_cookie_path: Optional[str] = None
    healthchecks: HealthChecks = field(default_factory=HealthChecks)

    def validate(self) -> None:
        for label, value in (("hash_on", self.hash_on), ("hash_fallback", self.hash_fallback)):
            if value is not None and value not in HASH_INPUTS:
                raise ValidationError(f"{label} must be one of {', '.join(HASH_INPUTS)}; got {value!r}")
        if self.hash_on == "header" and not self.hash_on_header:
            raise ValidationError("hash_on_header is required when hash_on is 'header'")
        if self.hash_fallback == "header" and not self.hash_fallback_header:
            raise ValidationError("hash_fallback_header is required when hash_fallback is 'header'")

    def to_payload(self) -> Dict[str, Any]:
        payload = asdict(self)
        return compact(_drop_empty_lists(payload))


def _drop_empty_lists(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _drop_empty_lists(item) for key, item in value.items() if not (isinstance(item, (list, tuple)) and not item)}
    return value


class UpstreamAPI(BaseResourceAPI):
    collection = "upstreams"

    def create(self, config: UpstreamConfig) -> Mapping[str, Any]:
        if not config.name:
            raise ValidationError("the upstream name is required")
        config.validate()
        return self._post_json(self.resource_path(), config)

    def get(self, name_or_id: str) -> Mapping[str, Any]:
        return self._get_json(self.resource_path(self._identify(name_or_id)))

    def delete(self, name_or_id: str) -> None:
        self._delete(self.resource_path(self._identify(name_or_id)))

    def list(
        self,
        *,
        upstream_id: Optional[str] = None,
        name: Optional[str] = None,
        size: Optional[int] = None,
        offset: Optional[str] = None,
    ) -> Mapping[str, Any]:
        query = {"id": upstream_id or None, "name": name or None, **self.page_query(size, offset)}
        return self._get_json(self.resource_path(), query=query)

    @staticmethod
    def _identify(name_or_id: Optional[str]) -> str:
        return first_identifier(name_or_id, message="an upstream name or id is required")
