"""
Logging helpers for kongctl.

Loggers are plain :mod:`logging` loggers wrapped in :class:`logging.LoggerAdapter`
so call sites can attach request metadata (method, URL, status code) as
structured extras. Diagnostics always go to stderr, leaving stdout free for the
JSON and table output produced by commands.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from copy import copy
from logging import Logger, LoggerAdapter
from typing import Any, Iterable, Mapping, MutableMapping, Optional, Sequence

DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LEVEL = "WARNING"
ENV_LEVEL = "KONGCTL_LOG_LEVEL"
ENV_COLOR = "KONGCTL_LOG_COLOR"
_EXTRA_FOCUS_ORDER: Sequence[str] = (
    "method",
    "url",
    "status_code",
    "elapsed",
    "error",
)

_LEVEL_STYLES = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[95m",
}
_RESET = "\033[0m"

_RESERVED_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}

_configured = False


def _resolve_level(level: Optional[int | str]) -> int:
    if isinstance(level, int):
        return level
    candidate = (level or os.getenv(ENV_LEVEL) or DEFAULT_LEVEL).upper()
    resolved = logging.getLevelName(candidate)
    return resolved if isinstance(resolved, int) else logging.WARNING


def _coerce_bool(value: str) -> Optional[bool]:
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    return None


def _supports_color(stream: Any) -> bool:
    preference = os.getenv(ENV_COLOR)
    if preference:
        resolved = _coerce_bool(preference)
        if resolved is not None:
            return resolved
    return hasattr(stream, "isatty") and bool(stream.isatty())


def _iter_extras(record: logging.LogRecord) -> Iterable[tuple[str, Any]]:
    payload = {key: value for key, value in record.__dict__.items() if key not in _RESERVED_ATTRS and not key.startswith("_") and value is not None}

    for key in _EXTRA_FOCUS_ORDER:
        if key in payload:
            yield key, payload.pop(key)

    for key in sorted(payload):
        yield key, payload[key]


def _format_extra_value(value: Any) -> str:
    if isinstance(value, (list, tuple, set)):
        return "[" + ", ".join(_format_extra_value(item) for item in value) + "]"
    if isinstance(value, Mapping):
        try:
            return json.dumps(value, ensure_ascii=False, default=str)
        except TypeError:
            return repr(dict(value))
    if isinstance(value, float):
        return f"{value:.4g}"
    return str(value)


class StructuredLogFormatter(logging.Formatter):
    """Formatter that appends ``key=value`` extras and optionally colours the level."""

    def __init__(self, *, use_color: bool = False) -> None:
        super().__init__(DEFAULT_FORMAT, datefmt=DEFAULT_DATE_FORMAT)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        working = copy(record)
        if self.use_color:
            working.levelname = self._colourise_level(working.levelname)
        base = super().format(working)
        extras = " ".join(f"{key}={_format_extra_value(value)}" for key, value in _iter_extras(record))
        if extras:
            return f"{base} | {extras}"
        return base

    @staticmethod
    def _colourise_level(levelname: str) -> str:
        style = _LEVEL_STYLES.get(levelname.strip().upper())
        if not style:
            return levelname
        return f"{style}{levelname}{_RESET}"


def _build_handler(level: Optional[int | str]) -> logging.Handler:
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setLevel(_resolve_level(level))
    handler.setFormatter(StructuredLogFormatter(use_color=_supports_color(handler.stream)))
    return handler


def configure_logging(level: Optional[int | str] = None, *, force: bool = False) -> None:
    """
    Install the structured stderr handler on the root logger.

    Parameters
    ----------
    level:
        Optional level override. Falls back to ``KONGCTL_LOG_LEVEL`` or ``WARNING``.
    force:
        Reinstall the handler even when logging was configured earlier. The CLI
        uses this once ``--log-level`` has been parsed.
    """

    global _configured
    if _configured and not force:
        return
    logging.basicConfig(level=_resolve_level(level), handlers=[_build_handler(level)], force=force)
    _configured = True


def get_logger(
    name: str,
    *,
    extra: Optional[Mapping[str, object]] = None,
) -> LoggerAdapter:
    """
    Return a :class:`logging.LoggerAdapter` carrying structured extras.

    Parameters
    ----------
    name:
        Logger namespace, typically ``__name__``.
    extra:
        Additional metadata recorded with each entry (``None`` values dropped).
    """

    configure_logging()
    payload: MutableMapping[str, object] = {}
    if extra:
        payload.update({key: value for key, value in extra.items() if value is not None})
    return LoggerAdapter(logging.getLogger(name), payload)


def log_event(
    logger: LoggerAdapter | Logger,
    level: int,
    message: str,
    **fields: object,
) -> None:
    """Emit ``message`` merging the adapter's extras with ``fields``."""

    payload = {key: value for key, value in fields.items() if value is not None}
    if isinstance(logger, LoggerAdapter):
        merged: MutableMapping[str, object] = {}
        if isinstance(logger.extra, Mapping):
            merged.update({key: value for key, value in logger.extra.items() if value is not None})
        merged.update(payload)
        logger.logger.log(level, message, extra=merged or None)
        return
    logger.log(level, message, extra=payload or None)
