"""Service objects: the upstream APIs and microservices the gateway proxies to."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping, Optional

from ..client import ValidationError
from .base import BaseResourceAPI, compact, first_identifier


@dataclass(slots=True)
class ServiceConfig:
    """Writable attributes of a service. Unset fields are left out of the payload."""

    name: Optional[str] = None
    url: Optional[str] = None
    protocol: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None
    path: Optional[str] = None
    retries: Optional[int] = None
    connect_timeout: Optional[int] = None
    write_timeout: Optional[int] = None
    read_timeout: Optional[int] = None

    def to_payload(self) -> dict[str, Any]:
        return compact(asdict(self))


class ServiceAPI(BaseResourceAPI):
    collection = "services"

    def create(self, config: ServiceConfig) -> Mapping[str, Any]:
        if not config.name or not config.url:
            raise ValidationError(f"name: {config.name or ''!r} url: {config.url or ''!r} is invalid; both are required")
        return self._post_json(self.resource_path(), config)

    def get(self, name_or_id: str) -> Mapping[str, Any]:
        return self._get_json(self.resource_path(self._identify(name_or_id)))

    def update(self, name_or_id: str, config: ServiceConfig) -> Mapping[str, Any]:
        return self._patch_json(self.resource_path(self._identify(name_or_id)), config)

    def delete(self, name_or_id: str) -> None:
        self._delete(self.resource_path(self._identify(name_or_id)))

    def list(self, *, size: Optional[int] = None, offset: Optional[str] = None) -> Mapping[str, Any]:
        return self._get_json(self.resource_path(), query=self.page_query(size, offset))

    @staticmethod
    def _identify(name_or_id: Optional[str]) -> str:
        return first_identifier(name_or_id, message="a service name or id is required")
