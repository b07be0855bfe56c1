"""
Gateway connection settings.

Values are resolved per field, first non-empty wins:

1. Explicit arguments (the CLI passes ``--host`` / ``--auth`` here, and Typer
   already folds in ``KONGCTL_HOST`` / ``KONGCTL_AUTH``).
2. The ``[gateway]`` table of a TOML settings file. The file is taken from
   ``KONGCTL_CONFIG_PATH`` or, failing that, ``.kongctl/config.toml`` in the
   working directory and then the home directory.
3. Built-in defaults (``http://127.0.0.1:8001``; the token has none).

Call :func:`load_settings` and then :meth:`GatewaySettings.build_client`.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional

import httpx

from .client import DEFAULT_TIMEOUT, ConfigError, GatewayClient, TLSOptions

DEFAULT_HOST = "http://127.0.0.1:8001"
ENV_CONFIG_PATH = "KONGCTL_CONFIG_PATH"
CONFIG_DIRNAME = ".kongctl"
CONFIG_FILENAME = "config.toml"


@dataclass(slots=True)
class GatewaySettings:
    """Resolved connection settings for one CLI invocation."""

    host: str = DEFAULT_HOST
    auth: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    tls: TLSOptions = field(default_factory=TLSOptions)
    source_path: Optional[Path] = None

    def validate(self) -> None:
        if not self.host or not self.host.strip():
            raise ConfigError("gateway host is empty; pass --host or set KONGCTL_HOST")
        if not self.auth or not self.auth.strip():
            raise ConfigError("gateway auth token is empty; pass --auth or set KONGCTL_AUTH")
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout}")

    def standing_headers(self) -> Dict[str, str]:
        """Headers attached to every request, built from the token."""

        self.validate()
        return {"Authorization": f"Basic {self.auth.strip()}"}  # type: ignore[union-attr]

    def build_client(self, *, transport: Optional[httpx.AsyncBaseTransport] = None) -> GatewayClient:
        return GatewayClient(
            self.host.strip(),
            self.standing_headers(),
            timeout=self.timeout,
            tls=self.tls,
            transport=transport,
        )


def _candidate_paths() -> Iterable[Path]:
    env_override = os.getenv(ENV_CONFIG_PATH)
    if env_override:
        yield Path(env_override).expanduser()
    yield Path.cwd() / CONFIG_DIRNAME / CONFIG_FILENAME
    yield Path.home() / CONFIG_DIRNAME / CONFIG_FILENAME


def _load_toml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"failed to parse settings file '{path}': {exc}") from exc


def _find_settings_file(config_path: Optional[Path]) -> Optional[Path]:
    if config_path is not None:
        if not config_path.is_file():
            raise ConfigError(f"settings file '{config_path}' does not exist")
        return config_path
    for candidate in _candidate_paths():
        if candidate.is_file():
            return candidate
    return None


def _gateway_section(raw: Mapping[str, Any]) -> Mapping[str, Any]:
    section = raw.get("gateway", {})
    return section if isinstance(section, Mapping) else {}


def _first(*values: Optional[str]) -> Optional[str]:
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _optional_str(section: Mapping[str, Any], key: str) -> Optional[str]:
    value = section.get(key)
    return str(value) if isinstance(value, str) and value else None


def load_settings(
    *,
    host: Optional[str] = None,
    auth: Optional[str] = None,
    timeout: Optional[float] = None,
    ca_cert: Optional[str] = None,
    client_cert: Optional[str] = None,
    client_key: Optional[str] = None,
    insecure: Optional[bool] = None,
    config_path: Optional[Path] = None,
) -> GatewaySettings:
    """
    Resolve settings and validate them.

    Raises
    ------
    ConfigError
        When the host or token is missing after every source was consulted,
        or when the settings file cannot be read.
    """

    if host is not None and not host.strip():
        raise ConfigError("gateway host is empty; pass --host or set KONGCTL_HOST")

    path = _find_settings_file(config_path)
    section = _gateway_section(_load_toml(path)) if path else {}

    file_timeout = section.get("timeout")
    resolved_timeout = timeout
    if resolved_timeout is None and isinstance(file_timeout, (int, float)) and not isinstance(file_timeout, bool):
        resolved_timeout = float(file_timeout)

    file_insecure = section.get("insecure")
    resolved_insecure = insecure if insecure is not None else bool(file_insecure) if isinstance(file_insecure, bool) else False

    settings = GatewaySettings(
        host=_first(host, _optional_str(section, "host")) or DEFAULT_HOST,
        auth=_first(auth, _optional_str(section, "auth")),
        timeout=resolved_timeout if resolved_timeout is not None else DEFAULT_TIMEOUT,
        tls=TLSOptions(
            verify=not resolved_insecure,
            ca_cert=_first(ca_cert, _optional_str(section, "ca_cert")),
            client_cert=_first(client_cert, _optional_str(section, "client_cert")),
            client_key=_first(client_key, _optional_str(section, "client_key")),
        ),
        source_path=path,
    )
    settings.validate()
    return settings
