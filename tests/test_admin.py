from __future__ import annotations

import dataclasses
import json
from unittest.mock import MagicMock

import pytest

from kongctl.admin import (
    ActiveHealthCheck,
    BasicAuthCredential,
    ConsumerAPI,
    ConsumerConfig,
    HealthChecks,
    HealthyThresholds,
    PluginAPI,
    PluginConfig,
    PluginScope,
    RouteAPI,
    RouteConfig,
    ServiceAPI,
    ServiceConfig,
    TargetAPI,
    TargetConfig,
    UpstreamAPI,
    UpstreamConfig,
    compact,
)
from kongctl.admin.routes import parse_endpoint
from kongctl.client import RemoteError, ValidationError


def _body(request) -> dict:
    return json.loads(request.content)


def test_compact_drops_unset_values():
    assert compact({"a": None, "b": {"c": None}, "d": [1, None], "e": False}) == {"d": [1, None], "e": False}


def test_service_create_posts_payload(client, gateway):
    gateway.queue(201, json={"id": "svc-1", "name": "example"})
    api = ServiceAPI(client=client)

    created = api.create(ServiceConfig(name="example", url="http://httpbin.org", retries=5))

    assert created == {"id": "svc-1", "name": "example"}
    assert gateway.last.method == "POST"
    assert gateway.last.url.path == "/services"
    assert _body(gateway.last) == {"name": "example", "url": "http://httpbin.org", "retries": 5}


def test_service_create_requires_name_and_url(client, gateway):
    with pytest.raises(ValidationError):
        ServiceAPI(client=client).create(ServiceConfig(name="example"))
    assert gateway.requests == []


def test_service_get_quotes_identifier(client, gateway):
    gateway.queue(json={"id": "svc-1"})

    ServiceAPI(client=client).get("my service")

    assert gateway.last.url.raw_path == b"/services/my%20service"


def test_service_update_patches(client, gateway):
    gateway.queue(json={"id": "svc-1", "port": 8080})

    ServiceAPI(client=client).update("svc-1", ServiceConfig(port=8080))

    assert gateway.last.method == "PATCH"
    assert gateway.last.url.path == "/services/svc-1"
    assert _body(gateway.last) == {"port": 8080}


def test_service_delete_drains_response(client, gateway):
    gateway.queue(204)

    ServiceAPI(client=client).delete("example")

    assert gateway.last.method == "DELETE"
    assert gateway.last.url.path == "/services/example"


def test_delete_reads_body_with_call_deadline():
    stub_client = MagicMock()
    stub_client.delete.return_value.status_code = 204
    api = ConsumerAPI(client=stub_client, timeout=3)

    api.delete("alice")

    args, kwargs = stub_client.delete.call_args
    assert args == ("consumers/alice",)
    assert 0 < kwargs["context"].remaining() <= 3
    stub_client.delete.return_value.read.assert_called_once()


def test_each_call_gets_its_own_deadline():
    stub_client = MagicMock()
    api = ServiceAPI(client=stub_client, timeout=3)

    api.get("example")
    api.get("example")

    first, second = (call.kwargs["context"] for call in stub_client.get.call_args_list)
    assert first is not second
    assert first.deadline <= second.deadline
    assert [item.name for item in dataclasses.fields(api)] == ["client", "timeout"]


def test_service_list_sends_paging(client, gateway):
    gateway.queue(json={"data": [], "offset": None})

    ServiceAPI(client=client).list(size=10, offset="cursor")

    assert dict(gateway.last.url.params) == {"size": "10", "offset": "cursor"}


def test_remote_error_propagates(client, gateway):
    gateway.queue(404, json={"message": "Not found"})

    with pytest.raises(RemoteError) as excinfo:
        ServiceAPI(client=client).get("missing")

    assert str(excinfo.value) == "Not found"


def test_route_payload_binds_service_and_normalises_values():
    config = RouteConfig(
        service_id="svc-1",
        methods=("get", "post"),
        paths=("/example",),
        sources=("10.0.0.1:8000", "10.0.0.2"),
        strip_path=False,
    )

    assert config.to_payload() == {
        "service": {"id": "svc-1"},
        "methods": ["GET", "POST"],
        "paths": ["/example"],
        "sources": [{"ip": "10.0.0.1", "port": 8000}, {"ip": "10.0.0.2"}],
        "strip_path": False,
    }


def test_parse_endpoint_keeps_ipv6_without_port():
    assert parse_endpoint("::1") == {"ip": "::1"}
    assert parse_endpoint("192.168.0.1:53") == {"ip": "192.168.0.1", "port": 53}


def test_route_create_requires_service(client, gateway):
    with pytest.raises(ValidationError):
        RouteAPI(client=client).create(RouteConfig(paths=("/example",)))
    assert gateway.requests == []


def test_routes_for_service_path(client, gateway):
    gateway.queue(json={"data": []})

    RouteAPI(client=client).list_for_service("example", size=5)

    assert gateway.last.url.path == "/services/example/routes"
    assert gateway.last.url.params["size"] == "5"


def test_consumer_requires_username_or_custom_id(client, gateway):
    api = ConsumerAPI(client=client)

    with pytest.raises(ValidationError):
        api.create(ConsumerConfig())

    api.create(ConsumerConfig(custom_id="crm-42"))
    assert _body(gateway.last) == {"custom_id": "crm-42"}


@pytest.mark.parametrize(
    ("scope", "path"),
    [
        (PluginScope(), "/plugins"),
        (PluginScope(service_id="svc-1"), "/services/svc-1/plugins"),
        (PluginScope(route_id="route-1"), "/routes/route-1/plugins"),
        (PluginScope(service_id="svc-1", route_id="route-1"), "/services/svc-1/plugins"),
    ],
)
def test_plugin_scope_selects_collection(client, gateway, scope, path):
    PluginAPI(client=client).create(PluginConfig(name="rate-limiting", scope=scope, config={"minute": 20}))

    assert gateway.last.url.path == path
    assert _body(gateway.last) == {"name": "rate-limiting", "config": {"minute": 20}}


def test_plugin_consumer_travels_in_payload(client, gateway):
    PluginAPI(client=client).create(PluginConfig(name="rate-limiting", scope=PluginScope(consumer_id="c-1"), enabled=False))

    assert gateway.last.url.path == "/plugins"
    assert _body(gateway.last) == {"name": "rate-limiting", "consumer_id": "c-1", "enabled": False}


def test_plugin_list_filters(client, gateway):
    gateway.queue(json={"data": []})

    PluginAPI(client=client).list(name="statsd", service_id="svc-1", size=100)

    assert dict(gateway.last.url.params) == {"name": "statsd", "service_id": "svc-1", "size": "100"}


def test_enable_basic_auth(client, gateway):
    PluginAPI(client=client).enable_basic_auth(PluginScope(service_id="svc-1"), hide_credentials=True)

    assert gateway.last.url.path == "/services/svc-1/plugins"
    assert _body(gateway.last) == {"name": "basic-auth", "config": {"hide_credentials": True}}


def test_basic_auth_credential_path(client, gateway):
    gateway.queue(201, json={"id": "cred-1"})

    PluginAPI(client=client).add_basic_auth_credential("c-1", BasicAuthCredential(username="alice", password="s3cret"))

    assert gateway.last.url.path == "/consumers/c-1/basic-auth"
    assert _body(gateway.last) == {"username": "alice", "password": "s3cret"}


def test_basic_auth_credential_requires_password(client, gateway):
    with pytest.raises(ValidationError):
        PluginAPI(client=client).add_basic_auth_credential("c-1", BasicAuthCredential(username="alice", password=""))
    assert gateway.requests == []


def test_enable_statsd_defaults(client, gateway):
    PluginAPI(client=client).enable_statsd(PluginScope(route_id="route-1"), metrics=[{"name": "latency", "stat_type": "timer"}])

    assert gateway.last.url.path == "/routes/route-1/plugins"
    assert _body(gateway.last) == {
        "name": "statsd",
        "config": {
            "host": "127.0.0.1",
            "port": 8125,
            "prefix": "kong",
            "metrics": [{"name": "latency", "stat_type": "timer"}],
        },
    }


def test_upstream_payload_omits_unset_health_checks():
    assert UpstreamConfig(name="backend.internal").to_payload() == {"name": "backend.internal"}


def test_upstream_payload_nests_health_checks(client, gateway):
    config = UpstreamConfig(
        name="backend.internal",
        hash_on="header",
        hash_on_header="X-Tenant",
        healthchecks=HealthChecks(
            active=ActiveHealthCheck(http_path="/health", healthy=HealthyThresholds(interval=5, http_statuses=(200, 302))),
        ),
    )

    UpstreamAPI(client=client).create(config)

    assert _body(gateway.last) == {
        "name": "backend.internal",
        "hash_on": "header",
        "hash_on_header": "X-Tenant",
        "healthchecks": {"active": {"http_path": "/health", "healthy": {"interval": 5, "http_statuses": [200, 302]}}},
    }


def test_upstream_header_hash_requires_header(client, gateway):
    with pytest.raises(ValidationError):
        UpstreamAPI(client=client).create(UpstreamConfig(name="backend.internal", hash_on="header"))
    assert gateway.requests == []


def test_upstream_list_filters(client, gateway):
    gateway.queue(json={"data": []})

    UpstreamAPI(client=client).list(name="backend.internal")

    assert dict(gateway.last.url.params) == {"name": "backend.internal"}


def test_target_create_path(client, gateway):
    gateway.queue(201, json={"id": "t-1"})

    TargetAPI(client=client).create("backend.internal", TargetConfig(target="10.0.0.5:8000", weight=100))

    assert gateway.last.url.path == "/upstreams/backend.internal/targets"
    assert _body(gateway.last) == {"target": "10.0.0.5:8000", "weight": 100}


def test_target_weight_range(client, gateway):
    with pytest.raises(ValidationError):
        TargetAPI(client=client).create("backend.internal", TargetConfig(target="10.0.0.5:8000", weight=1001))
    assert gateway.requests == []


def test_target_list_only_sends_given_filters(client, gateway):
    gateway.queue(json={"data": []})

    TargetAPI(client=client).list("backend.internal", size=100)

    assert gateway.last.url.path == "/upstreams/backend.internal/targets"
    assert dict(gateway.last.url.params) == {"size": "100"}


def test_target_delete_path(client, gateway):
    gateway.queue(204)

    TargetAPI(client=client).delete("backend.internal", "10.0.0.5:8000")

    assert gateway.last.method == "DELETE"
    assert gateway.last.url.raw_path == b"/upstreams/backend.internal/targets/10.0.0.5:8000"
