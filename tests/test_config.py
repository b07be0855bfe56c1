from __future__ import annotations

from pathlib import Path

import pytest

from kongctl.client import ConfigError
from kongctl.config import DEFAULT_HOST, GatewaySettings, load_settings


def _write_settings(path: Path, body: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(body, encoding="utf-8")
    return path


def test_flags_resolve_without_file(isolated_settings):
    settings = load_settings(host="http://gateway.internal:8001", auth="token")

    assert settings.host == "http://gateway.internal:8001"
    assert settings.standing_headers() == {"Authorization": "Basic token"}
    assert settings.source_path is None


def test_host_defaults_to_local_admin_port(isolated_settings):
    settings = load_settings(auth="token")

    assert settings.host == DEFAULT_HOST == "http://127.0.0.1:8001"


def test_missing_token_is_config_error(isolated_settings):
    with pytest.raises(ConfigError) as excinfo:
        load_settings(host="http://gateway.internal:8001")

    assert "auth" in str(excinfo.value)


def test_empty_host_is_config_error(isolated_settings):
    with pytest.raises(ConfigError):
        load_settings(host="  ", auth="token")


def test_settings_file_from_env(isolated_settings, monkeypatch):
    path = _write_settings(
        isolated_settings / "custom.toml",
        '[gateway]\nhost = "https://gateway.internal:8444"\nauth = "from-file"\ntimeout = 5\ninsecure = true\n',
    )
    monkeypatch.setenv("KONGCTL_CONFIG_PATH", str(path))

    settings = load_settings()

    assert settings.host == "https://gateway.internal:8444"
    assert settings.auth == "from-file"
    assert settings.timeout == 5.0
    assert settings.tls.verify is False
    assert settings.source_path == path


def test_flags_override_settings_file(isolated_settings):
    _write_settings(isolated_settings / ".kongctl" / "config.toml", '[gateway]\nhost = "http://file:8001"\nauth = "from-file"\n')

    settings = load_settings(host="http://flag:8001", auth="from-flag", timeout=2.5)

    assert settings.host == "http://flag:8001"
    assert settings.auth == "from-flag"
    assert settings.timeout == 2.5


def test_working_directory_file_is_discovered(isolated_settings):
    path = _write_settings(isolated_settings / ".kongctl" / "config.toml", '[gateway]\nauth = "from-cwd"\n')

    settings = load_settings()

    assert settings.auth == "from-cwd"
    assert settings.source_path == path


def test_explicit_missing_settings_file_is_config_error(isolated_settings):
    with pytest.raises(ConfigError):
        load_settings(auth="token", config_path=isolated_settings / "absent.toml")


def test_malformed_settings_file_is_config_error(isolated_settings):
    path = _write_settings(isolated_settings / "broken.toml", "[gateway\nhost = ")

    with pytest.raises(ConfigError):
        load_settings(config_path=path)


def test_build_client_uses_settings(isolated_settings):
    settings = load_settings(host="http://gateway.internal:8001/admin", auth="token")

    client = settings.build_client()
    try:
        assert client.base_url == "http://gateway.internal:8001/admin"
        assert client.standing_headers["Authorization"] == "Basic token"
    finally:
        client.close()


def test_build_client_rejects_host_without_scheme():
    settings = GatewaySettings(host="127.0.0.1:8001", auth="token")

    with pytest.raises(ConfigError):
        settings.build_client()


def test_non_positive_timeout_is_config_error():
    with pytest.raises(ConfigError):
        GatewaySettings(auth="token", timeout=0).validate()
