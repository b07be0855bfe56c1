"""Upstream and target command groups (load balancing)."""

from __future__ import annotations

from typing import List, Optional

import typer

from ..admin import (
    ActiveHealthCheck,
    HealthChecks,
    HealthyThresholds,
    PassiveHealthCheck,
    TargetAPI,
    TargetConfig,
    UnhealthyThresholds,
    UpstreamAPI,
    UpstreamConfig,
)
from ..admin.base import first_identifier
from .output import echo_collection, echo_json, field
from .resources import DEFAULT_PAGE_SIZE
from .state import output_json, report_errors, resource_api

upstream_app = typer.Typer(help="The gateway upstream object: a virtual hostname balancing over targets.", no_args_is_help=True)
target_app = typer.Typer(help="The gateway target object: one backend instance of an upstream.", no_args_is_help=True)

_STATUS_HELP = "HTTP status counted for this threshold. Repeatable."


@upstream_app.command("create")
def upstream_create(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name", help="Hostname; must equal the host of a service."),
    slots: Optional[int] = typer.Option(None, "--slots", min=10, max=65536, help="Slots in the load balancer algorithm."),
    hash_on: Optional[str] = typer.Option(None, "--hash-on", help="Hash input: none, consumer, ip, header or cookie."),
    hash_fallback: Optional[str] = typer.Option(None, "--hash-fallback", help="Hash input when --hash-on yields nothing."),
    hash_on_header: Optional[str] = typer.Option(None, "--hash-on-header", help="Header used when hashing on header."),
    hash_fallback_header: Optional[str] = typer.Option(None, "--hash-fallback-header", help="Header used when falling back to header."),
    hash_on_cookie: Optional[str] = typer.Option(None, "--hash-on-cookie", help="Cookie used when hashing on cookie."),
    hash_on_cookie_path: Optional[str] = typer.Option(None, "--hash-on-cookie-path", help="Path set on the generated cookie."),
    active_timeout: Optional[int] = typer.Option(None, "--active-timeout", min=0, help="Socket timeout for active checks (s)."),
    active_concurrency: Optional[int] = typer.Option(None, "--active-concurrency", min=1, help="Targets checked concurrently."),
    active_http_path: Optional[str] = typer.Option(None, "--active-http-path", help="Path requested by active checks."),
    active_healthy_interval: Optional[int] = typer.Option(None, "--active-healthy-interval", min=0, help="Probe interval for healthy targets (s)."),
    active_healthy_statuses: Optional[List[int]] = typer.Option(None, "--active-healthy-status", help=_STATUS_HELP),
    active_healthy_successes: Optional[int] = typer.Option(None, "--active-healthy-successes", min=0, help="Successes before healthy."),
    active_unhealthy_interval: Optional[int] = typer.Option(None, "--active-unhealthy-interval", min=0, help="Probe interval for unhealthy targets (s)."),
    active_unhealthy_statuses: Optional[List[int]] = typer.Option(None, "--active-unhealthy-status", help=_STATUS_HELP),
    active_unhealthy_tcp_failures: Optional[int] = typer.Option(None, "--active-unhealthy-tcp-failures", min=0, help="TCP failures before unhealthy."),
    active_unhealthy_timeouts: Optional[int] = typer.Option(None, "--active-unhealthy-timeouts", min=0, help="Timeouts before unhealthy."),
    active_unhealthy_http_failures: Optional[int] = typer.Option(None, "--active-unhealthy-http-failures", min=0, help="HTTP failures before unhealthy."),
    passive_healthy_statuses: Optional[List[int]] = typer.Option(None, "--passive-healthy-status", help=_STATUS_HELP),
    passive_healthy_successes: Optional[int] = typer.Option(None, "--passive-healthy-successes", min=0, help="Successes before healthy."),
    passive_unhealthy_statuses: Optional[List[int]] = typer.Option(None, "--passive-unhealthy-status", help=_STATUS_HELP),
    passive_unhealthy_tcp_failures: Optional[int] = typer.Option(None, "--passive-unhealthy-tcp-failures", min=0, help="TCP failures before unhealthy."),
    passive_unhealthy_timeouts: Optional[int] = typer.Option(None, "--passive-unhealthy-timeouts", min=0, help="Timeouts before unhealthy."),
    passive_unhealthy_http_failures: Optional[int] = typer.Option(None, "--passive-unhealthy-http-failures", min=0, help="HTTP failures before unhealthy."),
) -> None:
    """Create an upstream with optional hashing and health checks."""

    healthchecks = HealthChecks(
        active=ActiveHealthCheck(
            timeout=active_timeout,
            concurrency=active_concurrency,
            http_path=active_http_path or None,
            healthy=HealthyThresholds(
                interval=active_healthy_interval,
                http_statuses=tuple(active_healthy_statuses or ()),
                successes=active_healthy_successes,
            ),
            unhealthy=UnhealthyThresholds(
                interval=active_unhealthy_interval,
                http_statuses=tuple(active_unhealthy_statuses or ()),
                tcp_failures=active_unhealthy_tcp_failures,
                timeouts=active_unhealthy_timeouts,
                http_failures=active_unhealthy_http_failures,
            ),
        ),
        passive=PassiveHealthCheck(
            healthy=HealthyThresholds(
                http_statuses=tuple(passive_healthy_statuses or ()),
                successes=passive_healthy_successes,
            ),
            unhealthy=UnhealthyThresholds(
                http_statuses=tuple(passive_unhealthy_statuses or ()),
                tcp_failures=passive_unhealthy_tcp_failures,
                timeouts=passive_unhealthy_timeouts,
                http_failures=passive_unhealthy_http_failures,
            ),
        ),
    )
    config = UpstreamConfig(
        name=name,
        slots=slots,
        hash_on=hash_on or None,
        hash_fallback=hash_fallback or None,
        hash_on_header=hash_on_header or None,
        hash_fallback_header=hash_fallback_header or None,
        hash_on_cookie=hash_on_cookie or None,
        hash_on_cookie_path=hash_on_cookie_path or None,
        healthchecks=healthchecks,
    )
    api = resource_api(ctx, UpstreamAPI)
    with report_errors():
        echo_json(api.create(config))


@upstream_app.command("get")
def upstream_get(
    ctx: typer.Context,
    name: Optional[str] = typer.Option(None, "--name", help="The upstream name."),
    upstream_id: Optional[str] = typer.Option(None, "--id", help="The upstream id."),
) -> None:
    """Retrieve an upstream by name or id."""

    api = resource_api(ctx, UpstreamAPI)
    with report_errors():
        echo_json(api.get(first_identifier(name, upstream_id, message="an upstream name or id is required")))


@upstream_app.command("list")
def upstream_list(
    ctx: typer.Context,
    name: Optional[str] = typer.Option(None, "--name", help="Filter by upstream name."),
    upstream_id: Optional[str] = typer.Option(None, "--id", help="Filter by upstream id."),
    size: int = typer.Option(DEFAULT_PAGE_SIZE, "--size", min=1, max=1000, help="Objects returned per page."),
    offset: Optional[str] = typer.Option(None, "--offset", help="Pagination cursor from a previous listing."),
) -> None:
    """List upstreams."""

    api = resource_api(ctx, UpstreamAPI)
    with report_errors():
        payload = api.list(upstream_id=upstream_id, name=name, size=size, offset=offset)
    echo_collection(
        payload,
        [("ID", field("id")), ("NAME", field("name")), ("SLOTS", field("slots")), ("HASH_ON", field("hash_on"))],
        output_json=output_json(ctx),
        empty_message="No upstreams found.",
    )


@upstream_app.command("delete")
def upstream_delete(
    ctx: typer.Context,
    name: Optional[str] = typer.Option(None, "--name", help="The upstream name."),
    upstream_id: Optional[str] = typer.Option(None, "--id", help="The upstream id."),
) -> None:
    """Delete an upstream by name or id."""

    api = resource_api(ctx, UpstreamAPI)
    with report_errors():
        target = first_identifier(name, upstream_id, message="an upstream name or id is required")
        api.delete(target)
    typer.echo(f"Deleted upstream {target}.")


@target_app.command("create")
def target_create(
    ctx: typer.Context,
    upstream: str = typer.Option(..., "--upstream", "-u", help="Upstream name or id."),
    target: str = typer.Option(..., "--target", help="Target address and port; the port defaults to 8000."),
    weight: Optional[int] = typer.Option(None, "--weight", min=0, max=1000, help="Weight within the load balancer."),
) -> None:
    """Add a target to an upstream."""

    api = resource_api(ctx, TargetAPI)
    with report_errors():
        echo_json(api.create(upstream, TargetConfig(target=target, weight=weight)))


@target_app.command("list")
def target_list(
    ctx: typer.Context,
    upstream: str = typer.Option(..., "--upstream", "-u", help="Upstream name or id."),
    target_id: Optional[str] = typer.Option(None, "--id", help="Filter by target id."),
    target: Optional[str] = typer.Option(None, "--target", help="Filter by target address."),
    weight: Optional[int] = typer.Option(None, "--weight", help="Filter by weight."),
    size: int = typer.Option(DEFAULT_PAGE_SIZE, "--size", min=1, max=1000, help="Objects returned per page."),
    offset: Optional[str] = typer.Option(None, "--offset", help="Pagination cursor from a previous listing."),
) -> None:
    """List the targets active on an upstream's load balancer."""

    api = resource_api(ctx, TargetAPI)
    with report_errors():
        payload = api.list(upstream, target_id=target_id, target=target, weight=weight, size=size, offset=offset)
    echo_collection(
        payload,
        [("ID", field("id")), ("UPSTREAM_ID", field("upstream_id")), ("TARGET", field("target")), ("WEIGHT", field("weight"))],
        output_json=output_json(ctx),
        empty_message="No targets found.",
    )


@target_app.command("delete")
def target_delete(
    ctx: typer.Context,
    upstream: str = typer.Option(..., "--upstream", "-u", help="Upstream name or id."),
    target_id: Optional[str] = typer.Option(None, "--id", help="The target id."),
    target: Optional[str] = typer.Option(None, "--target", help="The target address."),
) -> None:
    """Disable a target in the load balancer."""

    api = resource_api(ctx, TargetAPI)
    with report_errors():
        reference = first_identifier(target_id, target, message="a target id or address is required")
        api.delete(upstream, reference)
    typer.echo(f"Deleted target {reference} from upstream {upstream}.")
