"""
Execution context shared across CLI commands.

The context is built once by the CLI callback and handed to every command
through Typer's ``ctx.obj``. It owns the single :class:`GatewayClient` of the
process, so commands never reach for module-level state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..client.context import DEFAULT_TIMEOUT

if TYPE_CHECKING:
    from ..client.http import GatewayClient


@dataclass(slots=True)
class ExecutionOptions:
    """
    Flags controlling how commands behave at runtime.

    Attributes
    ----------
    output_json:
        Emit raw JSON instead of tables for list commands.
    timeout:
        Deadline in seconds for each Admin API call.
    """

    output_json: bool = False
    timeout: float = DEFAULT_TIMEOUT


@dataclass(slots=True)
class ExecutionContext:
    """Gateway client plus runtime options for one CLI invocation."""

    client: "GatewayClient"
    options: ExecutionOptions = field(default_factory=ExecutionOptions)

    def close(self) -> None:
        self.client.close()
