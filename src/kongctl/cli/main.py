"""
Typer application wiring for kongctl.

The root callback gathers connection options and stores a settings loader in
Typer's state. Resource groups live in sibling modules and reach the shared
:class:`~kongctl.core.ExecutionContext` through :mod:`kongctl.cli.state`.
"""

from __future__ import annotations

from functools import partial
from pathlib import Path
from typing import Optional

import typer

from .. import __version__
from ..config import DEFAULT_HOST, load_settings
from ..core import ExecutionOptions, configure_logging
from ..core.logging import ENV_LEVEL
from .balancing import target_app, upstream_app
from .plugins import plugin_app
from .resources import consumer_app, route_app, service_app

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Command line client for the Kong API gateway Admin API.\n\n"
        "Command groups map to gateway resources: service, route, consumer, plugin, upstream, target."
    ),
)
app.add_typer(service_app, name="service")
app.add_typer(route_app, name="route")
app.add_typer(consumer_app, name="consumer")
app.add_typer(plugin_app, name="plugin")
app.add_typer(upstream_app, name="upstream")
app.add_typer(target_app, name="target")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"kongctl {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    host: Optional[str] = typer.Option(
        None,
        "--host",
        envvar="KONGCTL_HOST",
        help=f"Admin API address. Defaults to {DEFAULT_HOST}.",
    ),
    auth: Optional[str] = typer.Option(
        None,
        "--auth",
        envvar="KONGCTL_AUTH",
        help="Basic authorization token sent with every request.",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        dir_okay=False,
        help="Settings file with a [gateway] table. Overrides KONGCTL_CONFIG_PATH.",
    ),
    timeout: Optional[float] = typer.Option(None, "--timeout", min=0.001, help="Deadline per request in seconds (default 30)."),
    ca_cert: Optional[str] = typer.Option(None, "--ca-cert", help="CA bundle used to verify the gateway certificate."),
    client_cert: Optional[str] = typer.Option(None, "--client-cert", help="Client certificate for TLS client authentication."),
    client_key: Optional[str] = typer.Option(None, "--client-key", help="Private key for --client-cert."),
    insecure: bool = typer.Option(False, "--insecure", help="Skip TLS certificate verification."),
    output_json: bool = typer.Option(False, "--json", help="Print list results as JSON instead of tables."),
    log_level: Optional[str] = typer.Option(None, "--log-level", envvar=ENV_LEVEL, help="Log level for stderr diagnostics."),
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit."),
) -> None:
    """
    Configure the gateway connection for the invoked command.

    The client itself is only created when a command needs it, so an invalid
    host or a missing token is reported by that command with exit code 2.
    """

    configure_logging(log_level, force=True)
    state = ctx.ensure_object(dict)
    state["settings_loader"] = partial(
        load_settings,
        host=host,
        auth=auth,
        timeout=timeout,
        ca_cert=ca_cert,
        client_cert=client_cert,
        client_key=client_key,
        insecure=True if insecure else None,
        config_path=config_file,
    )
    state["options"] = ExecutionOptions(output_json=output_json)


def run() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    run()
