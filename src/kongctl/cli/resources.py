"""Service, route, and consumer command groups."""

from __future__ import annotations

from typing import List, Optional

import typer

from ..admin import ConsumerAPI, ConsumerConfig, RouteAPI, RouteConfig, ServiceAPI, ServiceConfig
from ..admin.base import first_identifier
from .output import echo_collection, echo_json, field
from .state import output_json, report_errors, resource_api

DEFAULT_PAGE_SIZE = 100

service_app = typer.Typer(help="The gateway service object: the upstream API a route proxies to.", no_args_is_help=True)
route_app = typer.Typer(help="The gateway route object: rules matching client requests to a service.", no_args_is_help=True)
consumer_app = typer.Typer(help="The gateway consumer object: a user or application of proxied APIs.", no_args_is_help=True)


def split_values(values: Optional[List[str]]) -> List[str]:
    """Flatten repeated and comma-separated option values."""

    items: List[str] = []
    for value in values or []:
        items.extend(part.strip() for part in value.split(",") if part.strip())
    return items


def _service_config(
    name: Optional[str],
    url: Optional[str],
    protocol: Optional[str],
    host: Optional[str],
    port: Optional[int],
    path: Optional[str],
    retries: Optional[int],
    connect_timeout: Optional[int],
    write_timeout: Optional[int],
    read_timeout: Optional[int],
) -> ServiceConfig:
    return ServiceConfig(
        name=name or None,
        url=url or None,
        protocol=protocol or None,
        host=host or None,
        port=port,
        path=path or None,
        retries=retries,
        connect_timeout=connect_timeout,
        write_timeout=write_timeout,
        read_timeout=read_timeout,
    )


@service_app.command("create")
def service_create(
    ctx: typer.Context,
    name: Optional[str] = typer.Option(None, "--name", help="The service name."),
    url: Optional[str] = typer.Option(None, "--url", help="Shorthand to set protocol, host, port and path at once."),
    protocol: Optional[str] = typer.Option(None, "--protocol", help="Protocol used to communicate with the upstream."),
    host: Optional[str] = typer.Option(None, "--host", help="Host of the upstream server."),
    port: Optional[int] = typer.Option(None, "--port", min=1, max=65535, help="Upstream server port."),
    path: Optional[str] = typer.Option(None, "--path", help="Path used in requests to the upstream server."),
    retries: Optional[int] = typer.Option(None, "--retries", min=0, help="Retries to execute upon failure to proxy."),
    connect_timeout: Optional[int] = typer.Option(None, "--connect-timeout", min=0, help="Connect timeout to the upstream (ms)."),
    write_timeout: Optional[int] = typer.Option(None, "--write-timeout", min=0, help="Write timeout to the upstream (ms)."),
    read_timeout: Optional[int] = typer.Option(None, "--read-timeout", min=0, help="Read timeout to the upstream (ms)."),
) -> None:
    """Create a service."""

    api = resource_api(ctx, ServiceAPI)
    config = _service_config(name, url, protocol, host, port, path, retries, connect_timeout, write_timeout, read_timeout)
    with report_errors():
        echo_json(api.create(config))


@service_app.command("get")
def service_get(
    ctx: typer.Context,
    name: Optional[str] = typer.Option(None, "--name", help="The service name."),
    service_id: Optional[str] = typer.Option(None, "--id", help="The service id."),
) -> None:
    """Retrieve a service by name or id."""

    api = resource_api(ctx, ServiceAPI)
    with report_errors():
        echo_json(api.get(first_identifier(name, service_id, message="a service name or id is required")))


@service_app.command("update")
def service_update(
    ctx: typer.Context,
    service_id: Optional[str] = typer.Option(None, "--id", help="The service id."),
    name: Optional[str] = typer.Option(None, "--name", help="The service name."),
    url: Optional[str] = typer.Option(None, "--url", help="Shorthand to set protocol, host, port and path at once."),
    protocol: Optional[str] = typer.Option(None, "--protocol", help="Protocol used to communicate with the upstream."),
    host: Optional[str] = typer.Option(None, "--host", help="Host of the upstream server."),
    port: Optional[int] = typer.Option(None, "--port", min=1, max=65535, help="Upstream server port."),
    path: Optional[str] = typer.Option(None, "--path", help="Path used in requests to the upstream server."),
    retries: Optional[int] = typer.Option(None, "--retries", min=0, help="Retries to execute upon failure to proxy."),
    connect_timeout: Optional[int] = typer.Option(None, "--connect-timeout", min=0, help="Connect timeout to the upstream (ms)."),
    write_timeout: Optional[int] = typer.Option(None, "--write-timeout", min=0, help="Write timeout to the upstream (ms)."),
    read_timeout: Optional[int] = typer.Option(None, "--read-timeout", min=0, help="Read timeout to the upstream (ms)."),
) -> None:
    """
    Update a service addressed by ``--name`` or ``--id``.

    When both are given the id addresses the service and the name is sent as
    the new value.
    """

    api = resource_api(ctx, ServiceAPI)
    with report_errors():
        target = first_identifier(service_id, name, message="a service name or id is required")
        new_name = name if service_id else None
        config = _service_config(new_name, url, protocol, host, port, path, retries, connect_timeout, write_timeout, read_timeout)
        echo_json(api.update(target, config))


@service_app.command("delete")
def service_delete(
    ctx: typer.Context,
    name: Optional[str] = typer.Option(None, "--name", help="The service name."),
    service_id: Optional[str] = typer.Option(None, "--id", help="The service id."),
) -> None:
    """Delete a service by name or id."""

    api = resource_api(ctx, ServiceAPI)
    with report_errors():
        target = first_identifier(name, service_id, message="a service name or id is required")
        api.delete(target)
    typer.echo(f"Deleted service {target}.")


@service_app.command("list")
def service_list(
    ctx: typer.Context,
    size: int = typer.Option(DEFAULT_PAGE_SIZE, "--size", min=1, max=1000, help="Objects returned per page."),
    offset: Optional[str] = typer.Option(None, "--offset", help="Pagination cursor from a previous listing."),
) -> None:
    """List services."""

    api = resource_api(ctx, ServiceAPI)
    with report_errors():
        payload = api.list(size=size, offset=offset)
    echo_collection(
        payload,
        [("ID", field("id")), ("NAME", field("name")), ("HOST", field("host")), ("PORT", field("port"))],
        output_json=output_json(ctx),
        empty_message="No services found.",
    )


@route_app.command("create")
def route_create(
    ctx: typer.Context,
    service_id: str = typer.Option(..., "--service-id", help="The service this route is associated to."),
    name: Optional[str] = typer.Option(None, "--name", help="The route name."),
    protocols: Optional[List[str]] = typer.Option(None, "--protocol", help="Protocol this route allows. Repeatable or comma-separated."),
    methods: Optional[List[str]] = typer.Option(None, "--method", help="HTTP method matching this route. Repeatable."),
    hosts: Optional[List[str]] = typer.Option(None, "--host", help="Domain name matching this route. Repeatable."),
    paths: Optional[List[str]] = typer.Option(None, "--path", help="Path matching this route. Repeatable."),
    snis: Optional[List[str]] = typer.Option(None, "--sni", help="SNI matching this route for stream routing. Repeatable."),
    sources: Optional[List[str]] = typer.Option(None, "--source", help="Source ip[:port] for stream routing. Repeatable."),
    destinations: Optional[List[str]] = typer.Option(None, "--destination", help="Destination ip[:port] for stream routing. Repeatable."),
    regex_priority: Optional[int] = typer.Option(None, "--regex-priority", help="Order against other regex routes."),
    strip_path: Optional[bool] = typer.Option(None, "--strip-path/--no-strip-path", help="Strip the matched path prefix upstream."),
    preserve_host: Optional[bool] = typer.Option(None, "--preserve-host/--no-preserve-host", help="Forward the request Host header upstream."),
) -> None:
    """Create a route bound to a service."""

    api = resource_api(ctx, RouteAPI)
    with report_errors():
        config = RouteConfig(
            service_id=service_id,
            name=name or None,
            protocols=split_values(protocols),
            methods=split_values(methods),
            hosts=split_values(hosts),
            paths=split_values(paths),
            snis=split_values(snis),
            sources=split_values(sources),
            destinations=split_values(destinations),
            regex_priority=regex_priority,
            strip_path=strip_path,
            preserve_host=preserve_host,
        )
        echo_json(api.create(config))


@route_app.command("get")
def route_get(
    ctx: typer.Context,
    route_id: str = typer.Option(..., "--id", help="The route id."),
) -> None:
    """Retrieve a route."""

    api = resource_api(ctx, RouteAPI)
    with report_errors():
        echo_json(api.get(route_id))


@route_app.command("delete")
def route_delete(
    ctx: typer.Context,
    route_id: str = typer.Option(..., "--id", help="The route id."),
) -> None:
    """Delete a route."""

    api = resource_api(ctx, RouteAPI)
    with report_errors():
        api.delete(route_id)
    typer.echo(f"Deleted route {route_id}.")


@route_app.command("list")
def route_list(
    ctx: typer.Context,
    service: Optional[str] = typer.Option(None, "--service", help="Only routes of this service (name or id)."),
    size: int = typer.Option(DEFAULT_PAGE_SIZE, "--size", min=1, max=1000, help="Objects returned per page."),
    offset: Optional[str] = typer.Option(None, "--offset", help="Pagination cursor from a previous listing."),
) -> None:
    """List routes."""

    api = resource_api(ctx, RouteAPI)
    with report_errors():
        if service:
            payload = api.list_for_service(service, size=size, offset=offset)
        else:
            payload = api.list(size=size, offset=offset)
    echo_collection(
        payload,
        [
            ("ID", field("id")),
            ("PROTOCOLS", field("protocols")),
            ("HOSTS", field("hosts")),
            ("PATHS", field("paths")),
            ("SERVICE", field("service", "id")),
        ],
        output_json=output_json(ctx),
        empty_message="No routes found.",
    )


@consumer_app.command("create")
def consumer_create(
    ctx: typer.Context,
    username: Optional[str] = typer.Option(None, "--username", help="Unique username of the consumer."),
    custom_id: Optional[str] = typer.Option(None, "--custom-id", help="Existing unique id to store with the consumer."),
) -> None:
    """Create a consumer."""

    api = resource_api(ctx, ConsumerAPI)
    with report_errors():
        echo_json(api.create(ConsumerConfig(username=username or None, custom_id=custom_id or None)))


@consumer_app.command("get")
def consumer_get(
    ctx: typer.Context,
    consumer_id: Optional[str] = typer.Option(None, "--id", help="The consumer id."),
    username: Optional[str] = typer.Option(None, "--username", help="The consumer username."),
) -> None:
    """Retrieve a consumer by id or username."""

    api = resource_api(ctx, ConsumerAPI)
    with report_errors():
        echo_json(api.get(first_identifier(consumer_id, username, message="a consumer id or username is required")))


@consumer_app.command("delete")
def consumer_delete(
    ctx: typer.Context,
    consumer_id: Optional[str] = typer.Option(None, "--id", help="The consumer id."),
    username: Optional[str] = typer.Option(None, "--username", help="The consumer username."),
) -> None:
    """Delete a consumer by id or username."""

    api = resource_api(ctx, ConsumerAPI)
    with report_errors():
        target = first_identifier(consumer_id, username, message="a consumer id or username is required")
        api.delete(target)
    typer.echo(f"Deleted consumer {target}.")


@consumer_app.command("list")
def consumer_list(
    ctx: typer.Context,
    size: int = typer.Option(DEFAULT_PAGE_SIZE, "--size", min=1, max=1000, help="Objects returned per page."),
    offset: Optional[str] = typer.Option(None, "--offset", help="Pagination cursor from a previous listing."),
) -> None:
    """List consumers."""

    api = resource_api(ctx, ConsumerAPI)
    with report_errors():
        payload = api.list(size=size, offset=offset)
    echo_collection(
        payload,
        [("ID", field("id")), ("USERNAME", field("username")), ("CUSTOM_ID", field("custom_id"))],
        output_json=output_json(ctx),
        empty_message="No consumers found.",
    )
