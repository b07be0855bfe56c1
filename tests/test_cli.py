from __future__ import annotations

import json
import logging

import httpx
import pytest
from typer.testing import CliRunner

from kongctl import __version__
from kongctl.cli.main import app

TOKEN = "a29uZzpzZWNyZXQ="


@pytest.fixture(autouse=True)
def restore_root_handlers(isolated_settings):
    root = logging.getLogger()
    existing_handlers = list(root.handlers)
    existing_level = root.level
    yield
    root.handlers = existing_handlers
    root.setLevel(existing_level)


def invoke(cli_runner: CliRunner, gateway, args: list[str], **kwargs):
    return cli_runner.invoke(app, ["--auth", TOKEN, *args], obj={"transport": gateway.transport}, **kwargs)


def test_version(cli_runner):
    result = cli_runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_help_needs_no_credentials(cli_runner):
    result = cli_runner.invoke(app, ["service", "--help"])
    assert result.exit_code == 0
    assert "create" in result.stdout


def test_service_list_renders_table(cli_runner, gateway):
    gateway.queue(json={"data": [{"id": "svc-1", "name": "example", "host": "httpbin.org", "port": 80}], "offset": "next-page"})

    result = invoke(cli_runner, gateway, ["service", "list"])

    assert result.exit_code == 0
    lines = result.stdout.splitlines()
    assert lines[0].split() == ["ID", "NAME", "HOST", "PORT"]
    assert lines[2].split() == ["svc-1", "example", "httpbin.org", "80"]
    assert "More results available: --offset next-page" in result.stdout
    request = gateway.last
    assert str(request.url) == "http://127.0.0.1:8001/services?size=100"
    assert request.headers["Authorization"] == f"Basic {TOKEN}"


def test_service_list_json(cli_runner, gateway):
    payload = {"data": [{"id": "svc-1", "name": "example"}], "offset": None}
    gateway.queue(json=payload)

    result = invoke(cli_runner, gateway, ["--json", "service", "list"])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == payload


def test_service_list_empty(cli_runner, gateway):
    gateway.queue(json={"data": []})

    result = invoke(cli_runner, gateway, ["service", "list"])

    assert result.exit_code == 0
    assert "No services found." in result.stdout


def test_service_create_prints_object(cli_runner, gateway):
    gateway.queue(201, json={"id": "svc-1", "name": "example"})

    result = invoke(cli_runner, gateway, ["service", "create", "--name", "example", "--url", "http://httpbin.org"])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == {"id": "svc-1", "name": "example"}
    assert json.loads(gateway.last.content) == {"name": "example", "url": "http://httpbin.org"}


def test_service_create_without_url_fails_before_request(cli_runner, gateway):
    result = invoke(cli_runner, gateway, ["service", "create", "--name", "example"])

    assert result.exit_code == 1
    assert "Error:" in result.output
    assert gateway.requests == []


def test_missing_token_exits_with_config_error(cli_runner, gateway):
    result = cli_runner.invoke(app, ["service", "list"], obj={"transport": gateway.transport})

    assert result.exit_code == 2
    assert "Error: gateway auth token is empty" in result.output
    assert gateway.requests == []


def test_host_without_scheme_exits_with_config_error(cli_runner, gateway):
    result = invoke(cli_runner, gateway, ["--host", "127.0.0.1:8001", "service", "list"])

    assert result.exit_code == 2
    assert "unable to parse host" in result.output
    assert gateway.requests == []


def test_token_from_environment(cli_runner, gateway):
    gateway.queue(json={"data": []})

    result = cli_runner.invoke(app, ["consumer", "list"], obj={"transport": gateway.transport}, env={"KONGCTL_AUTH": "env-token"})

    assert result.exit_code == 0
    assert gateway.last.headers["Authorization"] == "Basic env-token"


def test_remote_error_message_is_reported(cli_runner, gateway):
    gateway.queue(404, json={"message": "Not found"})

    result = invoke(cli_runner, gateway, ["service", "get", "--name", "missing"])

    assert result.exit_code == 1
    assert "Error: Not found" in result.output


def test_connection_error_is_reported(cli_runner, gateway):
    gateway.raise_on_send(lambda request: httpx.ConnectError("[Errno 111] Connection refused", request=request))

    result = invoke(cli_runner, gateway, ["consumer", "list"])

    assert result.exit_code == 1
    assert "error during connect to GET http://127.0.0.1:8001/consumers" in result.output


def test_route_create_splits_values(cli_runner, gateway):
    gateway.queue(201, json={"id": "route-1"})

    result = invoke(
        cli_runner,
        gateway,
        ["route", "create", "--service-id", "svc-1", "--method", "get,post", "--path", "/example", "--no-strip-path"],
    )

    assert result.exit_code == 0
    assert json.loads(gateway.last.content) == {
        "service": {"id": "svc-1"},
        "methods": ["GET", "POST"],
        "paths": ["/example"],
        "strip_path": False,
    }


def test_route_list_for_service(cli_runner, gateway):
    gateway.queue(json={"data": [{"id": "route-1", "paths": ["/a", "/b"], "service": {"id": "svc-1"}}]})

    result = invoke(cli_runner, gateway, ["route", "list", "--service", "example"])

    assert result.exit_code == 0
    assert gateway.last.url.path == "/services/example/routes"
    assert "/a,/b" in result.stdout


def test_plugin_available_needs_no_gateway(cli_runner, gateway):
    result = cli_runner.invoke(app, ["plugin", "available"])

    assert result.exit_code == 0
    assert "basic-auth" in result.stdout
    assert "statsd" in result.stdout
    assert gateway.requests == []


def test_plugin_available_lists_scopes_and_docs(cli_runner):
    result = cli_runner.invoke(app, ["plugin", "available"])

    assert result.exit_code == 0
    header = result.stdout.splitlines()[0].split()
    assert header == ["NAME", "CATEGORY", "SCOPES", "DESCRIPTION", "DOCS"]
    statsd_row = next(line for line in result.stdout.splitlines() if line.startswith("statsd"))
    assert "global,service,route,consumer" in statsd_row
    assert statsd_row.endswith("https://docs.konghq.com/hub/kong-inc/statsd/")


def test_plugin_available_describes_one_plugin(cli_runner):
    result = cli_runner.invoke(app, ["plugin", "available", "basic-auth"])

    assert result.exit_code == 0
    assert "Scopes:      global, service, route" in result.stdout
    assert "Docs:        https://docs.konghq.com/hub/kong-inc/basic-auth/" in result.stdout
    assert "statsd" not in result.stdout


def test_plugin_available_unknown_name_lists_choices(cli_runner):
    result = cli_runner.invoke(app, ["plugin", "available", "acl"])

    assert result.exit_code == 1
    assert "unknown plugin 'acl'; choose from basic-auth, statsd" in result.output


def test_plugin_create_parses_config(cli_runner, gateway):
    result = invoke(
        cli_runner,
        gateway,
        ["plugin", "create", "--name", "rate-limiting", "--service-id", "svc-1", "-c", "minute=20", "-c", "policy=local"],
    )

    assert result.exit_code == 0
    assert gateway.last.url.path == "/services/svc-1/plugins"
    assert json.loads(gateway.last.content) == {"name": "rate-limiting", "config": {"minute": 20, "policy": "local"}}


def test_plugin_create_rejects_bad_config_entry(cli_runner, gateway):
    result = invoke(cli_runner, gateway, ["plugin", "create", "--name", "rate-limiting", "-c", "minute"])

    assert result.exit_code == 2
    assert gateway.requests == []


def test_basic_auth_enable(cli_runner, gateway):
    result = invoke(cli_runner, gateway, ["plugin", "basic-auth", "enable", "--route-id", "route-1", "--hide-credentials"])

    assert result.exit_code == 0
    assert gateway.last.url.path == "/routes/route-1/plugins"
    assert json.loads(gateway.last.content) == {"name": "basic-auth", "config": {"hide_credentials": True}}


def test_basic_auth_credential_prompts_for_password(cli_runner, gateway):
    gateway.queue(201, json={"id": "cred-1", "username": "alice"})

    result = invoke(
        cli_runner,
        gateway,
        ["plugin", "basic-auth", "credential", "--consumer-id", "c-1", "--username", "alice"],
        input="s3cret\n",
    )

    assert result.exit_code == 0
    assert gateway.last.url.path == "/consumers/c-1/basic-auth"
    assert json.loads(gateway.last.content) == {"username": "alice", "password": "s3cret"}


def test_statsd_metrics(cli_runner, gateway):
    result = invoke(cli_runner, gateway, ["plugin", "statsd", "--service-id", "svc-1", "--metric", "latency:timer", "--metric", "request_count:counter:1"])

    assert result.exit_code == 0
    body = json.loads(gateway.last.content)
    assert body["config"]["metrics"] == [
        {"name": "latency", "stat_type": "timer"},
        {"name": "request_count", "stat_type": "counter", "sample_rate": 1},
    ]
    assert body["config"]["port"] == 8125


def test_statsd_rejects_bad_metric(cli_runner, gateway):
    result = invoke(cli_runner, gateway, ["plugin", "statsd", "--metric", "latency"])

    assert result.exit_code == 2
    assert gateway.requests == []


def test_upstream_create_health_checks(cli_runner, gateway):
    result = invoke(
        cli_runner,
        gateway,
        ["upstream", "create", "--name", "backend.internal", "--active-http-path", "/health", "--active-healthy-status", "200", "--active-healthy-status", "302"],
    )

    assert result.exit_code == 0
    assert json.loads(gateway.last.content) == {
        "name": "backend.internal",
        "healthchecks": {"active": {"http_path": "/health", "healthy": {"http_statuses": [200, 302]}}},
    }


def test_target_delete_uses_canonical_path(cli_runner, gateway):
    gateway.queue(204)

    result = invoke(cli_runner, gateway, ["target", "delete", "-u", "backend.internal", "--target", "10.0.0.5:8000"])

    assert result.exit_code == 0
    assert gateway.last.method == "DELETE"
    assert gateway.last.url.raw_path == b"/upstreams/backend.internal/targets/10.0.0.5:8000"
    assert "Deleted target 10.0.0.5:8000 from upstream backend.internal." in result.stdout


def test_target_list_table(cli_runner, gateway):
    gateway.queue(json={"data": [{"id": "t-1", "upstream_id": "u-1", "target": "10.0.0.5:8000", "weight": 100}]})

    result = invoke(cli_runner, gateway, ["target", "list", "--upstream", "backend.internal"])

    assert result.exit_code == 0
    assert str(gateway.last.url) == "http://127.0.0.1:8001/upstreams/backend.internal/targets?size=100"
    assert "10.0.0.5:8000" in result.stdout
