"""
Access to the per-invocation :class:`ExecutionContext` from Typer commands.

The root callback only records how to load settings; the gateway client is
built the first time a command asks for it, so ``--help`` works without
credentials while every real command still fails fast on bad configuration.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, Type, TypeVar

import typer

from ..admin import BaseResourceAPI
from ..client import ConfigError, GatewayError
from ..config import GatewaySettings
from ..core import ExecutionContext, ExecutionOptions, get_logger, log_event

EXIT_GATEWAY_ERROR = 1
EXIT_CONFIG_ERROR = 2

ApiT = TypeVar("ApiT", bound=BaseResourceAPI)


def _fail(message: str, code: int) -> typer.Exit:
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(code=code)


def require_context(ctx: typer.Context) -> ExecutionContext:
    state = ctx.ensure_object(dict)
    context = state.get("context")
    if isinstance(context, ExecutionContext):
        return context

    loader: Callable[[], GatewaySettings] | None = state.get("settings_loader")
    if loader is None:
        raise _fail("gateway settings were not initialised", EXIT_CONFIG_ERROR)
    try:
        settings = loader()
        client = settings.build_client(transport=state.get("transport"))
    except ConfigError as exc:
        raise _fail(str(exc), EXIT_CONFIG_ERROR) from exc

    options = state.get("options")
    if not isinstance(options, ExecutionOptions):
        options = ExecutionOptions()
    options.timeout = settings.timeout
    context = ExecutionContext(client=client, options=options)
    ctx.find_root().call_on_close(context.close)
    state["context"] = context
    log_event(
        get_logger(__name__),
        logging.DEBUG,
        "Gateway client ready",
        url=client.base_url,
        settings_file=str(settings.source_path) if settings.source_path else None,
    )
    return context


def resource_api(ctx: typer.Context, api_cls: Type[ApiT]) -> ApiT:
    context = require_context(ctx)
    return api_cls(client=context.client, timeout=context.options.timeout)


def output_json(ctx: typer.Context) -> bool:
    options = ctx.ensure_object(dict).get("options")
    return bool(getattr(options, "output_json", False))


@contextmanager
def report_errors() -> Iterator[None]:
    """Turn gateway failures into ``Error: ...`` on stderr and a non-zero exit."""

    try:
        yield
    except ConfigError as exc:
        raise _fail(str(exc), EXIT_CONFIG_ERROR) from exc
    except GatewayError as exc:
        raise _fail(str(exc), EXIT_GATEWAY_ERROR) from exc
