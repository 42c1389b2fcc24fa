"""arbiter.core.logs

Root handler setup for the CLI and the API server.

Library code only ever calls ``logging.getLogger("arbiter.<component>")`` with
a snake_case event name and ``extra=`` fields. This module decides how those
records are rendered: plain text, or one JSON object per line.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from arbiter.core.config import LoggingConfig

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_RESERVED = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime", "taskName"}


def record_extras(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in vars(record).items() if k not in _RESERVED}


class JsonLinesFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        payload.update(record_extras(record))
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class PlainFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(asctime)s [%(levelname)s] %(name)s - %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = record_extras(record)
        if extras:
            line += " " + " ".join(f"{k}={v}" for k, v in extras.items())
        return line


def configure_logging(cfg: LoggingConfig | None = None, *, stream: Any = None) -> logging.Handler:
    """Install a single handler on the root logger. Idempotent."""

    cfg = cfg or LoggingConfig()
    root = logging.getLogger()
    for h in list(root.handlers):
        if getattr(h, "_arbiter", False):
            root.removeHandler(h)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JsonLinesFormatter() if cfg.json_output else PlainFormatter())
    handler._arbiter = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(cfg.level.upper())
    return handler
