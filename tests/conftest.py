from __future__ import annotations

from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any, Callable, List, Optional

import httpx
import pytest
from typer.testing import CliRunner

from kongctl.client import GatewayClient

BASE_URL = "http://127.0.0.1:8001"
TOKEN = "a29uZzpzZWNyZXQ="


@dataclass
class StubGateway:
    """Records outgoing requests and replays queued responses."""

    responses: List[httpx.Response | Callable[[httpx.Request], httpx.Response]] = field(default_factory=list)
    requests: List[httpx.Request] = field(default_factory=list)

    def queue(
        self,
        status_code: int = 200,
        *,
        json: Any = None,
        content: Optional[bytes] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        if json is not None:
            self.responses.append(httpx.Response(status_code, json=json, headers=headers))
        else:
            self.responses.append(httpx.Response(status_code, content=content or b"", headers=headers))

    def raise_on_send(self, exc_factory: Callable[[httpx.Request], Exception]) -> None:
        def _raise(request: httpx.Request) -> httpx.Response:
            raise exc_factory(request)

        self.responses.append(_raise)

    def handler(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        if not self.responses:
            return httpx.Response(200, json={})
        response = self.responses.pop(0)
        if callable(response) and not isinstance(response, httpx.Response):
            return response(request)
        return response

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture()
def gateway() -> StubGateway:
    return StubGateway()


@pytest.fixture()
def client(gateway: StubGateway):
    instance = GatewayClient(BASE_URL, {"Authorization": f"Basic {TOKEN}"}, transport=gateway.transport)
    yield instance
    instance.close()


@pytest.fixture()
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep settings discovery away from the developer's real files."""

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for name in ("KONGCTL_CONFIG_PATH", "KONGCTL_HOST", "KONGCTL_AUTH", "KONGCTL_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


@pytest.fixture(scope="session")
def catalogue_file() -> Path:
    with resources.as_file(resources.files("kongctl.data") / "plugins.yaml") as ref:
        return Path(ref)


@pytest.fixture()
def cli_runner() -> CliRunner:
    return CliRunner()
