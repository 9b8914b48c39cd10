"""Structured JSON logger for notionrender.

Every log record is emitted as a single-line JSON object so that render
diagnostics can be shipped to a log pipeline next to the host page's logs.

Typical structured output::

    {"ts": "2026-07-01T12:00:00.123456+00:00", "level": "WARNING",
     "logger": "notionrender.renderer", "message": "block render failed",
     "block_type": "table", "path": "root/4"}

Usage::

    from notionrender.observability import get_logger

    log = get_logger("notionrender.renderer")
    log.warning("block render failed", extra={"extra_fields": {"path": "root/4"}})
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any


class StructuredFormatter(logging.Formatter):
    """Format log records as single-line JSON objects.

    Guaranteed keys are ``ts``, ``level``, ``logger`` and ``message``.
    Structured fields passed via ``extra={"extra_fields": {...}}`` are
    merged into the top-level object; ``exc_info`` and ``stack_info`` are
    serialised when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra_fields: dict[str, Any] | None = getattr(
            record, "extra_fields", None
        )
        if extra_fields is not None:
            log_entry.update(extra_fields)

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(log_entry, default=str)


# ---------------------------------------------------------------------------
# One handler per configured logger name so that ``get_logger`` is
# idempotent across modules.
# ---------------------------------------------------------------------------
_configured_loggers: set[str] = set()

_ROOT_LOGGER = "notionrender"


def get_logger(
    name: str = _ROOT_LOGGER,
    *,
    level: int | str = logging.WARNING,
    stream: Any | None = None,
) -> logging.Logger:
    """Get or create a structured JSON logger.

    Only the root ``"notionrender"`` logger receives a handler; child
    loggers such as ``"notionrender.renderer"`` propagate to it, so a host
    application can reconfigure every module in one place.

    Parameters
    ----------
    name:
        Logger name.  Defaults to ``"notionrender"``.
    level:
        Minimum level for the root logger, as an ``int`` or a
        case-insensitive string.  Ignored for child loggers.
    stream:
        Output stream for the handler.  Defaults to ``sys.stderr``.

    Returns
    -------
    logging.Logger
        The requested logger.  Repeated calls never add duplicate handlers.
    """
    root = logging.getLogger(_ROOT_LOGGER)

    if _ROOT_LOGGER not in _configured_loggers:
        resolved_level = (
            logging.getLevelName(level.upper())
            if isinstance(level, str)
            else level
        )
        root.setLevel(resolved_level)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())
        root.addHandler(handler)
        root.propagate = False

        _configured_loggers.add(_ROOT_LOGGER)

    if name == _ROOT_LOGGER:
        return root
    return logging.getLogger(name)
