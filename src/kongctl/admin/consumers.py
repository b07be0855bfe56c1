"""Consumer objects: the users or applications consuming proxied APIs."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping, Optional

from ..client import ValidationError
from .base import BaseResourceAPI, compact, first_identifier


@dataclass(slots=True)
class ConsumerConfig:
    username: Optional[str] = None
    custom_id: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        return compact(asdict(self))


class ConsumerAPI(BaseResourceAPI):
    collection = "consumers"

    def create(self, config: ConsumerConfig) -> Mapping[str, Any]:
        if not config.username and not config.custom_id:
            raise ValidationError("at least one of username or custom_id is required")
        return self._post_json(self.resource_path(), config)

    def get(self, username_or_id: str) -> Mapping[str, Any]:
        return self._get_json(self.resource_path(self._identify(username_or_id)))

    def delete(self, username_or_id: str) -> None:
        self._delete(self.resource_path(self._identify(username_or_id)))

    def list(self, *, size: Optional[int] = None, offset: Optional[str] = None) -> Mapping[str, Any]:
        return self._get_json(self.resource_path(), query=self.page_query(size, offset))

    @staticmethod
    def _identify(username_or_id: Optional[str]) -> str:
        return first_identifier(username_or_id, message="a consumer id or username is required")
