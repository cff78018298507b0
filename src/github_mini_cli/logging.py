"""Structured logging configuration.

Records are JSON objects written to stderr, so result lines on stdout stay
clean. Context goes through ``extra=``; build it with :func:`log_fields` when a
key might collide with a :class:`logging.LogRecord` attribute.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, TextIO

# Attributes every LogRecord carries, plus the two the formatter adds.
RESERVED_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime"}

LEVEL_NAMES: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def parse_level(name: str) -> str:
    """Normalise a level name; raise ``ValueError`` for unknown names."""

    level = name.strip().upper()
    if level not in logging.getLevelNamesMapping():
        raise ValueError(f"unknown log level {name!r} (expected one of {', '.join(LEVEL_NAMES)})")
    return level


def log_fields(**fields: Any) -> dict[str, Any]:
    """``extra`` mapping with reserved keys suffixed by ``_``.

    ``Logger.makeRecord`` raises ``KeyError`` for an ``extra`` key that shadows
    a record attribute (``args``, ``name``, ``message``...).
    """

    return {f"{key}_" if key in RESERVED_ATTRS else key: value for key, value in fields.items()}


class JsonFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger, message, extra, exception."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (record)
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in RESERVED_ATTRS and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: str, *, stream: TextIO | None = None) -> None:
    """Send root logging to ``stream`` (stderr by default) as JSON lines."""

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream=stream or sys.stderr)
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)
    root.setLevel(parse_level(level))

    # requests' connection pool logs every request at DEBUG.
    logging.getLogger("urllib3").setLevel(max(root.level, logging.INFO))
