"""JSON log output for the relay process.

Every record (relay, PyGithub and uvicorn alike) is written to stdout as one
JSON object per line. Structured context passed through ``extra=``, such as
``installation_id``, ``delivery_id`` or ``customer_id``, is collected under an
``extra`` key so log pipelines can filter on it. Tokens and secrets are never
passed as ``extra`` fields.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

_RESERVED_LOG_RECORD_ATTRS: set[str] = {
    "args",
    "asctime",
    "color_message",
    "created",
    "exc_info",
    "exc_text",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "msg",
    "name",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "taskName",
    "thread",
    "threadName",
}

# Forwarded to the root handler; the CLI runs uvicorn with log_config=None.
_SERVER_LOGGERS: tuple[str, ...] = ("uvicorn", "uvicorn.error", "uvicorn.access")


class JsonFormatter(logging.Formatter):
    """Format a record as one JSON line.

    Keys: ``timestamp`` (UTC, ISO-8601), ``level``, ``logger``, ``message``,
    plus ``extra`` for caller-supplied fields and ``exception`` for tracebacks.
    Values JSON cannot encode (datetimes, paths) are rendered with ``str``.
    """

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (record)
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_LOG_RECORD_ATTRS and not key.startswith("_")
        }
        if fields:
            entry["extra"] = fields

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


def configure_logging(level: str) -> None:
    """Send all relay, PyGithub and uvicorn logging to stdout as JSON lines.

    `level` is a validated ``LOG_LEVEL`` name. Calling this again replaces the
    previous handler.
    """

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)
    root.setLevel(level.upper())

    # PyGithub's DEBUG output can include the installation token header.
    logging.getLogger("github").setLevel(max(root.level, logging.INFO))

    for name in _SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.propagate = True
