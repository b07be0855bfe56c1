"""
Shared plumbing for the per-resource Admin API wrappers.

Each wrapper builds resource-relative paths, hands typed payload records to
:class:`~kongctl.client.GatewayClient`, and always drains and closes the
response it receives.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Mapping, Optional
from urllib.parse import quote

from ..client import DEFAULT_TIMEOUT, GatewayClient, RequestContext, ValidationError
from ..client.http import QueryParams

_SEGMENT_SAFE = ":@"


def compact(value: Any) -> Any:
    """Drop ``None`` values and empty mappings recursively."""

    if isinstance(value, Mapping):
        result = {}
        for key, item in value.items():
            cleaned = compact(item)
            if cleaned is None or (isinstance(cleaned, dict) and not cleaned):
                continue
            result[key] = cleaned
        return result
    if isinstance(value, (list, tuple)):
        return [compact(item) for item in value]
    return value


def first_identifier(*candidates: Optional[str], message: str) -> str:
    """Return the first non-empty identifier or raise :class:`ValidationError`."""

    for candidate in candidates:
        if candidate and candidate.strip():
            return candidate.strip()
    raise ValidationError(message)


@dataclass(slots=True)
class BaseResourceAPI:
    """
    Base class for resource wrappers.

    Parameters
    ----------
    client:
        The process-wide gateway client.
    timeout:
        Deadline in seconds applied to each call.
    """

    client: GatewayClient
    timeout: float = DEFAULT_TIMEOUT

    collection: ClassVar[str] = ""

    def _context(self) -> RequestContext:
        """Fresh deadline for one Admin API call."""

        return RequestContext.with_timeout(self.timeout)

    def resource_path(self, *segments: object) -> str:
        """Join ``collection`` and URL-quoted ``segments`` with ``/``."""

        parts = [self.collection] if self.collection else []
        parts.extend(quote(str(segment), safe=_SEGMENT_SAFE) for segment in segments)
        return "/".join(parts)

    @staticmethod
    def nested_path(*segments: object) -> str:
        """Quote every segment; for paths outside the wrapper's collection."""

        return "/".join(quote(str(segment), safe=_SEGMENT_SAFE) for segment in segments)

    def _get_json(self, path: str, *, query: Optional[QueryParams] = None) -> Any:
        response = self.client.get(path, query=query, context=self._context())
        return response.json()

    def _post_json(self, path: str, body: Any) -> Any:
        response = self.client.post(path, body, context=self._context())
        return response.json()

    def _patch_json(self, path: str, body: Any) -> Any:
        response = self.client.patch(path, body, context=self._context())
        return response.json()

    def _delete(self, path: str) -> int:
        response = self.client.delete(path, context=self._context())
        response.read()
        return response.status_code

    @staticmethod
    def page_query(size: Optional[int] = None, offset: Optional[str] = None) -> dict[str, Any]:
        return {"size": size, "offset": offset}
