"""
Rendering helpers for command output.

Single objects are printed as indented JSON; collections as aligned tables
unless ``--json`` was requested.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Tuple

import typer

Column = Tuple[str, Callable[[Mapping[str, Any]], Any]]


def echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True))


def field(key: str, *path: str) -> Callable[[Mapping[str, Any]], Any]:
    """Accessor for ``row[key][path...]``; missing keys render as empty."""

    def _get(row: Mapping[str, Any]) -> Any:
        value: Any = row.get(key)
        for part in path:
            value = value.get(part) if isinstance(value, Mapping) else None
        return value

    return _get


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_cell(item) for item in value)
    if isinstance(value, Mapping):
        return json.dumps(value, ensure_ascii=False, sort_keys=True)
    return str(value)


def render_table(rows: Iterable[Mapping[str, Any]], columns: Sequence[Column]) -> List[str]:
    cells = [[_cell(getter(row)) for _, getter in columns] for row in rows]
    widths = [len(header) for header, _ in columns]
    for line in cells:
        widths = [max(width, len(value)) for width, value in zip(widths, line)]
    header = "  ".join(title.ljust(width) for (title, _), width in zip(columns, widths)).rstrip()
    lines = [header, "-" * len(header)]
    lines.extend("  ".join(value.ljust(width) for value, width in zip(line, widths)).rstrip() for line in cells)
    return lines


def echo_collection(
    payload: Optional[Mapping[str, Any]],
    columns: Sequence[Column],
    *,
    output_json: bool,
    empty_message: str,
) -> None:
    """Print a ``{"data": [...], "offset": ...}`` listing."""

    payload = payload or {}
    if output_json:
        echo_json(payload)
        return
    rows = [row for row in payload.get("data") or [] if isinstance(row, Mapping)]
    if not rows:
        typer.echo(empty_message)
        return
    for line in render_table(rows, columns):
        typer.echo(line)
    offset = payload.get("offset")
    if offset:
        typer.echo(f"More results available: --offset {offset}")
