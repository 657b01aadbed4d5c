"""
Structured Logging — JSON Output for Production

Configures Python logging for the keyrisk namespace. JSON lines carry
the assessment context (keyway, score, certainty, postal code, bitting
source, timing) as top-level keys; the text format appends the same
context as key=value pairs.

Usage:
    from keyrisk.logging import get_logger
    logger = get_logger("engine")
    logger.info("Risk assessed", extra={"score": 87, "keyway": "SC1"})
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import IO, Optional


LOG_LEVEL = os.getenv("KEYRISK_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("KEYRISK_LOG_FORMAT", "json")  # "json" or "text"

# Context fields lifted from ``extra=`` onto the emitted line
EXTRA_FIELDS = (
    "keyway", "score", "risk_level", "certainty", "postal_code",
    "pattern_type", "bitting_source", "duration_ms", "error", "error_type",
)


def _context(record: logging.LogRecord) -> dict:
    return {
        key: getattr(record, key)
        for key in EXTRA_FIELDS
        if getattr(record, key, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """Formats log records as JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(_context(record))

        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable format for development."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _context(record)
        if context:
            line += " " + " ".join(f"{k}={v}" for k, v in context.items())
        return line


def setup_logging(
    level: Optional[str] = None,
    fmt: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """Configure the keyrisk logger. Safe to call more than once."""
    root = logging.getLogger("keyrisk")
    level_name = (level or LOG_LEVEL).upper()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    root.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    if (fmt or LOG_FORMAT) == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(TextFormatter())

    root.addHandler(handler)
    return root


def get_logger(name: str) -> logging.Logger:
    """Get a named logger under the keyrisk namespace."""
    return logging.getLogger(f"keyrisk.{name}")
