"""Plugin command group, including the typed ``basic-auth`` and ``statsd`` commands."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import typer

from ..admin import BasicAuthCredential, PluginAPI, PluginConfig, PluginScope
from ..admin.plugins import DEFAULT_STATSD_HOST, DEFAULT_STATSD_PORT, DEFAULT_STATSD_PREFIX
from ..core import CatalogueLoadError, PluginCatalogue
from .output import echo_collection, echo_json, field, render_table
from .resources import DEFAULT_PAGE_SIZE
from .state import output_json, report_errors, resource_api

plugin_app = typer.Typer(help="The gateway plugin object.", no_args_is_help=True)
basic_auth_app = typer.Typer(help="Basic authentication plugin and its consumer credentials.", no_args_is_help=True)
plugin_app.add_typer(basic_auth_app, name="basic-auth")

_SERVICE_SCOPE_HELP = "Attach to this service id."
_ROUTE_SCOPE_HELP = "Attach to this route id."
_CONSUMER_SCOPE_HELP = "Apply only to this consumer id."


def parse_config_entries(values: Optional[List[str]]) -> Dict[str, Any]:
    """
    Parse ``key=value`` entries into a plugin ``config`` mapping.

    Values are decoded as JSON when possible (``port=8125`` becomes an int,
    ``hide_credentials=true`` a bool) and kept as strings otherwise.
    """

    config: Dict[str, Any] = {}
    for entry in values or []:
        if "=" not in entry:
            raise typer.BadParameter(f"Config entry '{entry}' must use key=value format.")
        key, raw = entry.split("=", 1)
        key = key.strip()
        if not key:
            raise typer.BadParameter(f"Config entry '{entry}' is missing a key.")
        try:
            config[key] = json.loads(raw)
        except ValueError:
            config[key] = raw
    return config


def parse_metric(value: str) -> Dict[str, Any]:
    """Parse ``name:stat_type[:sample_rate]`` into a statsd metric definition."""

    parts = [part.strip() for part in value.split(":")]
    if len(parts) not in (2, 3) or not all(parts):
        raise typer.BadParameter(f"Metric '{value}' must use name:stat_type[:sample_rate] format.")
    metric: Dict[str, Any] = {"name": parts[0], "stat_type": parts[1]}
    if len(parts) == 3:
        try:
            metric["sample_rate"] = float(parts[2]) if "." in parts[2] else int(parts[2])
        except ValueError:
            raise typer.BadParameter(f"Metric '{value}' has a non-numeric sample rate.") from None
    return metric


@plugin_app.command("available")
def plugin_available(
    name: Optional[str] = typer.Argument(None, help="Show the scopes and reference page of this plugin only."),
) -> None:
    """List plugins with dedicated kongctl commands."""

    try:
        catalogue = PluginCatalogue.load_default()
    except CatalogueLoadError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if name is not None:
        descriptor = catalogue.get(name)
        if descriptor is None:
            typer.echo(f"Error: unknown plugin '{name}'; choose from {', '.join(catalogue.names())}", err=True)
            raise typer.Exit(code=1)
        typer.echo(f"Name:        {descriptor.name}")
        typer.echo(f"Category:    {descriptor.category}")
        typer.echo(f"Scopes:      {', '.join(descriptor.scopes)}")
        typer.echo(f"Docs:        {descriptor.docs or '-'}")
        typer.echo(f"Description: {descriptor.description}")
        return

    rows = [
        {"name": item.name, "category": item.category, "scopes": list(item.scopes), "description": item.description, "docs": item.docs}
        for item in catalogue
    ]
    columns = [
        ("NAME", field("name")),
        ("CATEGORY", field("category")),
        ("SCOPES", field("scopes")),
        ("DESCRIPTION", field("description")),
        ("DOCS", field("docs")),
    ]
    for line in render_table(rows, columns):
        typer.echo(line)


@plugin_app.command("enabled")
def plugin_enabled(ctx: typer.Context) -> None:
    """Show the plugins installed on the gateway node."""

    api = resource_api(ctx, PluginAPI)
    with report_errors():
        echo_json(api.enabled())


@plugin_app.command("create")
def plugin_create(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name", help="Plugin name, e.g. rate-limiting."),
    service_id: Optional[str] = typer.Option(None, "--service-id", help=_SERVICE_SCOPE_HELP),
    route_id: Optional[str] = typer.Option(None, "--route-id", help=_ROUTE_SCOPE_HELP),
    consumer_id: Optional[str] = typer.Option(None, "--consumer-id", help=_CONSUMER_SCOPE_HELP),
    enabled: Optional[bool] = typer.Option(None, "--enabled/--disabled", help="Whether the plugin is applied."),
    config_entries: Optional[List[str]] = typer.Option(None, "--config", "-c", help="Plugin config as key=value. Repeatable."),
) -> None:
    """Create a plugin globally or on a service or route."""

    config = parse_config_entries(config_entries)
    api = resource_api(ctx, PluginAPI)
    scope = PluginScope(service_id=service_id or None, route_id=route_id or None, consumer_id=consumer_id or None)
    with report_errors():
        echo_json(api.create(PluginConfig(name=name, scope=scope, enabled=enabled, config=config)))


@plugin_app.command("get")
def plugin_get(
    ctx: typer.Context,
    plugin_id: str = typer.Option(..., "--id", help="The plugin id."),
) -> None:
    """Retrieve a plugin."""

    api = resource_api(ctx, PluginAPI)
    with report_errors():
        echo_json(api.get(plugin_id))


@plugin_app.command("list")
def plugin_list(
    ctx: typer.Context,
    name: Optional[str] = typer.Option(None, "--name", help="Filter by plugin name."),
    service_id: Optional[str] = typer.Option(None, "--service-id", help="Filter by service id."),
    route_id: Optional[str] = typer.Option(None, "--route-id", help="Filter by route id."),
    consumer_id: Optional[str] = typer.Option(None, "--consumer-id", help="Filter by consumer id."),
    size: int = typer.Option(DEFAULT_PAGE_SIZE, "--size", min=1, max=1000, help="Objects returned per page."),
    offset: Optional[str] = typer.Option(None, "--offset", help="Pagination cursor from a previous listing."),
) -> None:
    """List plugins."""

    api = resource_api(ctx, PluginAPI)
    with report_errors():
        payload = api.list(name=name, service_id=service_id, route_id=route_id, consumer_id=consumer_id, size=size, offset=offset)
    echo_collection(
        payload,
        [("ID", field("id")), ("NAME", field("name")), ("ENABLED", field("enabled"))],
        output_json=output_json(ctx),
        empty_message="No plugins found.",
    )


@plugin_app.command("delete")
def plugin_delete(
    ctx: typer.Context,
    plugin_id: str = typer.Option(..., "--id", help="The plugin id."),
) -> None:
    """Delete a plugin."""

    api = resource_api(ctx, PluginAPI)
    with report_errors():
        api.delete(plugin_id)
    typer.echo(f"Deleted plugin {plugin_id}.")


@basic_auth_app.command("enable")
def basic_auth_enable(
    ctx: typer.Context,
    service_id: Optional[str] = typer.Option(None, "--service-id", help=_SERVICE_SCOPE_HELP),
    route_id: Optional[str] = typer.Option(None, "--route-id", help=_ROUTE_SCOPE_HELP),
    hide_credentials: bool = typer.Option(False, "--hide-credentials", help="Strip the credential before proxying upstream."),
    anonymous: Optional[str] = typer.Option(None, "--anonymous", help="Consumer id used when authentication fails."),
    enabled: Optional[bool] = typer.Option(None, "--enabled/--disabled", help="Whether the plugin is applied."),
) -> None:
    """Add basic authentication to a service, a route, or globally."""

    api = resource_api(ctx, PluginAPI)
    scope = PluginScope(service_id=service_id or None, route_id=route_id or None)
    with report_errors():
        echo_json(api.enable_basic_auth(scope, hide_credentials=hide_credentials, anonymous=anonymous, enabled=enabled))


@basic_auth_app.command("credential")
def basic_auth_credential(
    ctx: typer.Context,
    consumer_id: str = typer.Option(..., "--consumer-id", help="Consumer owning the credential."),
    username: str = typer.Option(..., "--username", help="Username for basic authentication."),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True, help="Password for basic authentication."),
) -> None:
    """Provision a username/password credential for a consumer."""

    api = resource_api(ctx, PluginAPI)
    with report_errors():
        echo_json(api.add_basic_auth_credential(consumer_id, BasicAuthCredential(username=username, password=password)))


@plugin_app.command("statsd")
def statsd_enable(
    ctx: typer.Context,
    service_id: Optional[str] = typer.Option(None, "--service-id", help=_SERVICE_SCOPE_HELP),
    route_id: Optional[str] = typer.Option(None, "--route-id", help=_ROUTE_SCOPE_HELP),
    consumer_id: Optional[str] = typer.Option(None, "--consumer-id", help=_CONSUMER_SCOPE_HELP),
    host: str = typer.Option(DEFAULT_STATSD_HOST, "--statsd-host", help="StatsD server address."),
    port: int = typer.Option(DEFAULT_STATSD_PORT, "--statsd-port", min=1, max=65535, help="StatsD server port."),
    prefix: str = typer.Option(DEFAULT_STATSD_PREFIX, "--prefix", help="Prefix added to each metric name."),
    metrics: Optional[List[str]] = typer.Option(None, "--metric", help="Metric as name:stat_type[:sample_rate]. Repeatable."),
    enabled: Optional[bool] = typer.Option(None, "--enabled/--disabled", help="Whether the plugin is applied."),
) -> None:
    """Log service or route metrics to a StatsD server."""

    parsed_metrics = [parse_metric(item) for item in metrics or []]
    api = resource_api(ctx, PluginAPI)
    scope = PluginScope(service_id=service_id or None, route_id=route_id or None, consumer_id=consumer_id or None)
    with report_errors():
        echo_json(api.enable_statsd(scope, host=host, port=port, prefix=prefix, metrics=parsed_metrics, enabled=enabled))
