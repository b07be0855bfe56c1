"""
HTTP adapter for the Kong Admin API.

:class:`GatewayClient` owns a pooled :class:`httpx.AsyncClient` and turns
resource-relative paths into requests against the configured base URL.
Synchronous callers reach it through an :mod:`anyio` blocking portal, which
lets the per-call deadline and cancel flag abort a send that is still
connecting or waiting for headers. The adapter never retries: every
failure is raised as a typed :class:`~kongctl.client.errors.GatewayError`.
Successful calls return an unread :class:`GatewayResponse` whose body
stream belongs to the caller.
"""

from __future__ import annotations

import json
import logging
import ssl
import threading
import time
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Iterator, Mapping, Optional, Sequence, Tuple, Union

import anyio
import httpx
from anyio.from_thread import BlockingPortal, start_blocking_portal

from ..core.logging import get_logger, log_event
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

MAX_CONNECTIONS = 100
MAX_KEEPALIVE_CONNECTIONS = 100
KEEPALIVE_EXPIRY = 90.0
CONNECT_TIMEOUT = 30.0
CANCEL_POLL_INTERVAL = 0.05

JSON_MEDIA_TYPE = "application/json"
_PAYLOAD_METHODS = frozenset({"POST", "PUT", "PATCH"})
_SUPPORTED_SCHEMES = frozenset({"http", "https"})
_MALFORMED_RESPONSE_MARKERS = ("malformed", "illegal status line", "invalid http")
_BAD_CERTIFICATE_MARKERS = ("bad certificate", "certificate required")

TLS_REQUIRED_HINT = "Are you trying to connect to a TLS-enabled gateway without TLS?"
CLIENT_CERT_HINT = (
    "The gateway probably has client certificate authentication enabled. "
    "Please check your TLS client certificate settings (--client-cert / --client-key)."
)

QueryValue = Union[str, int, float, bool, None, Sequence[Union[str, int, float, bool]]]
QueryParams = Mapping[str, QueryValue]


@dataclass(slots=True)
class TLSOptions:
    """Transport security settings for ``https`` gateways."""

    verify: bool = True
    ca_cert: Optional[str] = None
    client_cert: Optional[str] = None
    client_key: Optional[str] = None

    def build(self) -> Union[bool, ssl.SSLContext]:
        if not (self.ca_cert or self.client_cert):
            return self.verify
        try:
            context = ssl.create_default_context(cafile=self.ca_cert)
            if not self.verify:
                context.check_hostname = False
                context.verify_mode = ssl.CERT_NONE
            if self.client_cert:
                context.load_cert_chain(self.client_cert, self.client_key)
        except (OSError, ssl.SSLError) as exc:
            raise ConfigError(f"unable to load TLS material: {exc}") from exc
        return context


def parse_base_url(base_url: str) -> Tuple[str, str, str]:
    """
    Split ``base_url`` into ``(scheme, host, path_prefix)``.

    The host keeps its port. A trailing slash is dropped from the prefix so
    paths can always be joined with a single ``/``.
    """

    parts = base_url.strip().split("://", 1)
    if len(parts) == 1:
        raise ConfigError(f"unable to parse host `{base_url}`: expected scheme://host")
    scheme, remainder = parts[0].lower(), parts[1]
    host, _, prefix = remainder.partition("/")
    if not scheme or not host:
        raise ConfigError(f"unable to parse host `{base_url}`: expected scheme://host")
    if scheme not in _SUPPORTED_SCHEMES:
        raise ConfigError(f"unsupported scheme `{scheme}` in `{base_url}`; use http or https")
    prefix = prefix.strip("/")
    return scheme, host, f"/{prefix}" if prefix else ""


def encode_json(body: Any) -> bytes:
    """Serialise ``body`` to UTF-8 JSON, honouring ``to_payload()`` on records."""

    if hasattr(body, "to_payload"):
        body = body.to_payload()
    try:
        return json.dumps(body, ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"request body is not JSON serialisable: {exc}") from exc


def _normalise_query(query: QueryParams) -> dict[str, list[str]]:
    normalised: dict[str, list[str]] = {}
    for key, value in query.items():
        if value is None:
            continue
        values = value if isinstance(value, (list, tuple)) else [value]
        rendered = [_render_query_value(item) for item in values if item is not None]
        if rendered:
            normalised[key] = rendered
    return normalised


def _render_query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(slots=True)
class GatewayResponse:
    """
    Live response handle returned by :class:`GatewayClient`.

    The body has not been read. Callers must release the connection on every
    path, either with :meth:`close`, a ``with`` block, or one of the reading
    helpers (:meth:`read`, :meth:`text`, :meth:`json`) which close after
    draining the stream.
    """

    status_code: int
    headers: httpx.Headers
    url: str
    method: str
    _response: httpx.Response = field(repr=False)
    _portal: BlockingPortal = field(repr=False)

    @property
    def media_type(self) -> str:
        content_type = self.headers.get("Content-Type", "")
        return content_type.split(";", 1)[0].strip().lower()

    @property
    def reason_phrase(self) -> str:
        return httpx.codes.get_reason_phrase(self.status_code)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 400

    def iter_bytes(self) -> Iterator[bytes]:
        chunks = self._response.aiter_bytes()
        while True:
            chunk = self._portal.call(_next_chunk, chunks)
            if chunk is None:
                return
            yield chunk

    def read(self) -> bytes:
        try:
            return self._portal.call(self._response.aread)
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(f"timed out reading response body from {self.url}", url=self.url) from exc
        except httpx.TransportError as exc:
            raise GatewayConnectionError(f"error reading response body from {self.url}: {exc}", url=self.url) from exc
        finally:
            self.close()

    def text(self) -> str:
        return self.read().decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Decode the body as JSON; an empty body (e.g. ``204``) yields ``None``."""

        raw = self.read()
        if not raw.strip():
            return None
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise DecodeError(f"failed to decode JSON from {self.url}: {exc}", status_code=self.status_code, url=self.url) from exc

    def close(self) -> None:
        if not self._response.is_closed:
            self._portal.call(self._response.aclose)

    def __enter__(self) -> "GatewayResponse":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


async def _next_chunk(chunks: AsyncIterator[bytes]) -> Optional[bytes]:
    try:
        return await chunks.__anext__()
    except StopAsyncIteration:
        return None


async def _cancel_when_requested(context: RequestContext, scope: anyio.CancelScope) -> None:
    while not context.canceled:
        await anyio.sleep(CANCEL_POLL_INTERVAL)
    scope.cancel()


def check_status(response: GatewayResponse) -> None:
    """
    Raise when ``response`` carries a status outside ``[200, 400)``.

    Error bodies are read in full (which closes the stream). An empty body
    yields the status text, a JSON body must hold a ``message`` string, and
    any other body is used as the message after trimming whitespace.
    """

    if response.is_success:
        return

    status_text = f"{response.status_code} {response.reason_phrase}".strip()
    body = response.read()
    if not body:
        raise HTTPStatusError(status_text, status_code=response.status_code, url=response.url)

    if response.media_type == JSON_MEDIA_TYPE:
        try:
            payload = json.loads(body)
        except ValueError as exc:
            raise DecodeError(f"error reading JSON: {exc}", status_code=response.status_code, url=response.url) from exc
        message = payload.get("message") if isinstance(payload, Mapping) else None
        if not isinstance(message, str):
            raise DecodeError(
                f"error response from {response.url} has no message field",
                status_code=response.status_code,
                url=response.url,
            )
        raise RemoteError(message, status_code=response.status_code, url=response.url)

    message = body.decode("utf-8", errors="replace").strip()
    raise HTTPStatusError(message or status_text, status_code=response.status_code, url=response.url)


class GatewayClient:
    """
    Pooled HTTP adapter bound to a single gateway base URL.

    Parameters
    ----------
    base_url:
        ``scheme://host[:port][/prefix]`` of the Admin API.
    standing_headers:
        Headers sent with every request, typically ``Authorization``.
        Per-call headers override them.
    timeout:
        Deadline applied when a call does not supply a :class:`RequestContext`.
    tls:
        Optional :class:`TLSOptions` for ``https`` gateways.
    transport:
        Optional :class:`httpx.AsyncBaseTransport`, used by tests to stub the network.

    The event loop thread behind the portal is started on the first request
    and stopped by :meth:`close`.
    """

    def __init__(
        self,
        base_url: str,
        standing_headers: Optional[Mapping[str, str]] = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        tls: Optional[TLSOptions] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.scheme, self.host, self.base_path = parse_base_url(base_url)
        self.base_url = f"{self.scheme}://{self.host}{self.base_path}"
        self.timeout = timeout
        self._standing_headers = httpx.Headers(dict(standing_headers or {}))
        self.logger = get_logger(f"{__name__}.{self.__class__.__name__}", extra={"base_url": self.base_url})
        self._portal_lock = threading.Lock()
        self._portal_cm: Any = None
        self._portal: Optional[BlockingPortal] = None
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=min(CONNECT_TIMEOUT, timeout)),
            limits=httpx.Limits(
                max_connections=MAX_CONNECTIONS,
                max_keepalive_connections=MAX_KEEPALIVE_CONNECTIONS,
                keepalive_expiry=KEEPALIVE_EXPIRY,
            ),
            verify=(tls or TLSOptions()).build(),
            transport=transport,
            follow_redirects=False,
        )

    @property
    def standing_headers(self) -> httpx.Headers:
        return self._standing_headers.copy()

    def close(self) -> None:
        """Release pooled connections and stop the portal thread."""

        with self._portal_lock:
            portal, portal_cm = self._portal, self._portal_cm
            self._portal = None
            self._portal_cm = None
        if portal is None:
            return
        try:
            portal.call(self._client.aclose)
        finally:
            portal_cm.__exit__(None, None, None)

    def _ensure_portal(self) -> BlockingPortal:
        with self._portal_lock:
            if self._portal is None:
                self._portal_cm = start_blocking_portal()
                self._portal = self._portal_cm.__enter__()
            return self._portal

    def __enter__(self) -> "GatewayClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def resolve_url(self, path: str, query: Optional[QueryParams] = None) -> httpx.URL:
        url = f"{self.base_url}/{path.lstrip('/')}"
        params = _normalise_query(query) if query else None
        if params:
            return httpx.URL(url, params=params)
        return httpx.URL(url)

    def _merge_headers(self, headers: Optional[Mapping[str, str]]) -> httpx.Headers:
        merged = self._standing_headers.copy()
        if headers:
            for key, value in headers.items():
                merged[key] = value
        return merged

    def request(
        self,
        method: str,
        path: str,
        *,
        query: Optional[QueryParams] = None,
        body: Any = None,
        content: Optional[bytes] = None,
        headers: Optional[Mapping[str, str]] = None,
        context: Optional[RequestContext] = None,
    ) -> GatewayResponse:
        """
        Send a request and return the response without inspecting its status.

        ``body`` is JSON-encoded; ``content`` is sent verbatim. Only one of the
        two may be supplied.
        """

        if body is not None and content is not None:
            raise ValidationError("pass either a JSON body or raw content, not both")
        method = method.upper()
        context = context or RequestContext.with_timeout(self.timeout)
        url = self.resolve_url(path, query)
        target = str(url)

        merged = self._merge_headers(headers)
        payload = content
        if body is not None:
            payload = encode_json(body)
            merged["Content-Type"] = JSON_MEDIA_TYPE
        if method in _PAYLOAD_METHODS:
            if payload is None:
                payload = b""
            if "Content-Type" not in merged:
                merged["Content-Type"] = "text/plain"

        if context.canceled:
            raise RequestCanceledError(f"request canceled: {method} {target}", url=target)
        if context.expired:
            raise RequestTimeoutError(f"deadline exceeded before sending {method} {target}", url=target)

        remaining = context.remaining()
        request = self._client.build_request(
            method,
            url,
            content=payload,
            headers=merged,
            timeout=httpx.Timeout(remaining, connect=min(CONNECT_TIMEOUT, remaining)),
        )
        log_event(self.logger, logging.DEBUG, "HTTP request", method=method, url=target)
        started = time.monotonic()
        portal = self._ensure_portal()
        try:
            response = portal.call(self._send_within_deadline, request, context)
        except httpx.TimeoutException as exc:
            if context.canceled:
                raise RequestCanceledError(f"request canceled: {method} {target}", url=target) from exc
            log_event(self.logger, logging.WARNING, "HTTP request timed out", method=method, url=target)
            raise RequestTimeoutError(f"deadline exceeded while calling {method} {target}", url=target) from exc
        except httpx.TransportError as exc:
            if context.canceled:
                raise RequestCanceledError(f"request canceled: {method} {target}", url=target) from exc
            if context.expired:
                raise RequestTimeoutError(f"deadline exceeded while calling {method} {target}", url=target) from exc
            error = self._classify_transport_error(exc, method, target)
            log_event(self.logger, logging.ERROR, "HTTP transport error", method=method, url=target, error=str(exc))
            raise error from exc

        if response is None or context.canceled or context.expired:
            if response is not None:
                portal.call(response.aclose)
            if context.canceled:
                raise RequestCanceledError(f"request canceled: {method} {target}", url=target)
            log_event(self.logger, logging.WARNING, "HTTP request timed out", method=method, url=target)
            raise RequestTimeoutError(f"deadline exceeded while calling {method} {target}", url=target)

        log_event(
            self.logger,
            logging.DEBUG,
            "HTTP response",
            method=method,
            url=target,
            status_code=response.status_code,
            elapsed=time.monotonic() - started,
        )
        return GatewayResponse(
            status_code=response.status_code,
            headers=response.headers,
            url=target,
            method=method,
            _response=response,
            _portal=portal,
        )

    async def _send_within_deadline(self, request: httpx.Request, context: RequestContext) -> Optional[httpx.Response]:
        """
        Send ``request`` on the portal's event loop, bounded by ``context``.

        Returns ``None`` when the deadline elapsed or the context was canceled
        before the headers arrived; the in-flight connection is closed then.
        """

        outcome: dict[str, Any] = {}
        with anyio.move_on_after(context.remaining()):
            async with anyio.create_task_group() as group:
                group.start_soon(_cancel_when_requested, context, group.cancel_scope)
                try:
                    outcome["response"] = await self._client.send(request, stream=True)
                except Exception as exc:
                    outcome["error"] = exc
                group.cancel_scope.cancel()
        if "error" in outcome:
            raise outcome["error"]
        return outcome.get("response")

    def _classify_transport_error(self, exc: httpx.TransportError, method: str, url: str) -> GatewayConnectionError:
        text = str(exc) or exc.__class__.__name__
        lowered = text.lower()
        hint: Optional[str] = None
        if self.scheme != "https" and any(marker in lowered for marker in _MALFORMED_RESPONSE_MARKERS):
            hint = TLS_REQUIRED_HINT
        elif self.scheme == "https" and any(marker in lowered for marker in _BAD_CERTIFICATE_MARKERS):
            hint = CLIENT_CERT_HINT
        message = f"error during connect to {method} {url}: {text}"
        if hint:
            message = f"{message}\n* {hint}"
        return GatewayConnectionError(message, url=url, hint=hint)

    def send(self, method: str, path: str, **kwargs: Any) -> GatewayResponse:
        """:meth:`request` followed by :func:`check_status`."""

        response = self.request(method, path, **kwargs)
        try:
            check_status(response)
        except GatewayError as exc:
            response.close()
            log_event(
                self.logger,
                logging.WARNING,
                "Gateway returned an error",
                method=response.method,
                url=response.url,
                status_code=response.status_code,
                error=str(exc),
            )
            raise
        return response

    def head(self, path: str, *, query: Optional[QueryParams] = None, headers: Optional[Mapping[str, str]] = None, context: Optional[RequestContext] = None) -> GatewayResponse:
        return self.send("HEAD", path, query=query, headers=headers, context=context)

    def get(self, path: str, *, query: Optional[QueryParams] = None, headers: Optional[Mapping[str, str]] = None, context: Optional[RequestContext] = None) -> GatewayResponse:
        return self.send("GET", path, query=query, headers=headers, context=context)

    def post(
        self,
        path: str,
        body: Any = None,
        *,
        query: Optional[QueryParams] = None,
        headers: Optional[Mapping[str, str]] = None,
        context: Optional[RequestContext] = None,
    ) -> GatewayResponse:
        return self.send("POST", path, query=query, body=body, headers=headers, context=context)

    def post_raw(
        self,
        path: str,
        content: bytes,
        *,
        query: Optional[QueryParams] = None,
        headers: Optional[Mapping[str, str]] = None,
        context: Optional[RequestContext] = None,
    ) -> GatewayResponse:
        return self.send("POST", path, query=query, content=content, headers=headers, context=context)

    def put(
        self,
        path: str,
        body: Any = None,
        *,
        query: Optional[QueryParams] = None,
        headers: Optional[Mapping[str, str]] = None,
        context: Optional[RequestContext] = None,
    ) -> GatewayResponse:
        return self.send("PUT", path, query=query, body=body, headers=headers, context=context)

    def put_raw(
        self,
        path: str,
        content: bytes,
        *,
        query: Optional[QueryParams] = None,
        headers: Optional[Mapping[str, str]] = None,
        context: Optional[RequestContext] = None,
    ) -> GatewayResponse:
        return self.send("PUT", path, query=query, content=content, headers=headers, context=context)

    def patch(
        self,
        path: str,
        body: Any = None,
        *,
        query: Optional[QueryParams] = None,
        headers: Optional[Mapping[str, str]] = None,
        context: Optional[RequestContext] = None,
    ) -> GatewayResponse:
        return self.send("PATCH", path, query=query, body=body, headers=headers, context=context)

    def delete(self, path: str, *, query: Optional[QueryParams] = None, headers: Optional[Mapping[str, str]] = None, context: Optional[RequestContext] = None) -> GatewayResponse:
        return self.send("DELETE", path, query=query, headers=headers, context=context)
