"""
Target objects.

A target is an ``address:port`` identifying one backend instance of an
upstream. Targets only exist below their upstream, so every path is built as
``upstreams/{upstream}/targets[/{target}]``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from ..client import ValidationError
from .base import BaseResourceAPI, compact, first_identifier

MIN_WEIGHT = 0
MAX_WEIGHT = 1000


@dataclass(slots=True)
class TargetConfig:
    target: str
    weight: Optional[int] = None

    def to_payload(self) -> Dict[str, Any]:
        return compact({"target": self.target, "weight": self.weight})


class TargetAPI(BaseResourceAPI):
    collection = "upstreams"

    def targets_path(self, upstream: Optional[str], *segments: object) -> str:
        upstream_ref = first_identifier(upstream, message="an upstream id or name is required")
        return self.resource_path(upstream_ref, "targets", *segments)

    def create(self, upstream: str, config: TargetConfig) -> Mapping[str, Any]:
        if not config.target or not config.target.strip():
            raise ValidationError("the target address is required")
        if config.weight is not None and not MIN_WEIGHT <= config.weight <= MAX_WEIGHT:
            raise ValidationError(f"weight must be between {MIN_WEIGHT} and {MAX_WEIGHT}; got {config.weight}")
        return self._post_json(self.targets_path(upstream), config)

    def list(
        self,
        upstream: str,
        *,
        target_id: Optional[str] = None,
        target: Optional[str] = None,
        weight: Optional[int] = None,
        size: Optional[int] = None,
        offset: Optional[str] = None,
    ) -> Mapping[str, Any]:
        query = {
            "id": target_id or None,
            "target": target or None,
            "weight": weight,
            **self.page_query(size, offset),
        }
        return self._get_json(self.targets_path(upstream), query=query)

    def delete(self, upstream: str, target: str) -> None:
        """Disable ``target`` (an id or ``address:port``) in the upstream's balancer."""

        target_ref = first_identifier(target, message="a target id or address is required")
        self._delete(self.targets_path(upstream, target_ref))
