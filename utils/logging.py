"""
Logging Utility - Structured Logging

Provides centralized logging configuration for all backup components.
Supports JSON format for log shippers and human-readable text for consoles.

Usage:
    from utils.logging import setup_logging

    setup_logging(level="INFO", format_type="text")
    logger = logging.getLogger(__name__)
    logger.info("Backup written", extra={"resource": "lists", "count": 12})
"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any

import orjson

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Attributes every LogRecord carries; anything else arrived through extra={}
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}


class JsonFormatter(logging.Formatter):
    """Render log records as single-line JSON documents."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return orjson.dumps(payload, default=str).decode("utf-8")


def setup_logging(
    level: str = "INFO",
    format_type: str = "text",
    output: str = "stdout",
) -> None:
    """Configure application-wide logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Log format ('json' or 'text')
        output: Log output ('stdout' or 'stderr')
    """
    stream = sys.stderr if output == "stderr" else sys.stdout
    handler = logging.StreamHandler(stream)
    if format_type == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=[handler],
        force=True,
    )
