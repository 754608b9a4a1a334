"""
Centralized Logging

Architectural Intent:
- One place that wires handlers onto the `shipyard` logger; modules only
  call logging.getLogger(__name__)
- Log calls attach context through `extra=` (deployment id, request line,
  event payload). The JSON formatter emits those keys as top-level fields
  and the text format appends them as key=value pairs
- Level can be given as a constant or a name, so config files and CLI
  flags share one code path
"""

import json
import logging
import sys
from datetime import datetime, UTC
from typing import Any, Optional, TextIO, Union

# Record attributes that log calls may set through `extra=`.
CONTEXT_FIELDS = ("deployment_id", "method", "path", "status_code", "event")

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _context(record: logging.LogRecord) -> dict[str, Any]:
    return {
        name: getattr(record, name)
        for name in CONTEXT_FIELDS
        if getattr(record, name, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line, context fields at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "thread": record.threadName,
        }
        log_entry.update(_context(record))
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


class ContextFormatter(logging.Formatter):
    """Human-readable lines with scalar context appended as key=value."""

    def __init__(self) -> None:
        super().__init__(TEXT_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        pairs = [
            f"{key}={value}"
            for key, value in _context(record).items()
            if not isinstance(value, (dict, list))
        ]
        if not pairs:
            return line
        head, sep, tail = line.partition("\n")
        return f"{head} [{' '.join(pairs)}]{sep}{tail}"


def resolve_level(level: Union[int, str]) -> int:
    """Map a level name such as "info" to its logging constant."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def configure_logging(
    level: Union[int, str] = logging.INFO,
    json_format: bool = False,
    stream: Optional[TextIO] = None,
) -> logging.Handler:
    """Attach a single handler to the `shipyard` logger and return it.

    Args:
        level: Logging level, by constant or name
        json_format: Emit JSON lines instead of the text format
        stream: Destination, stderr by default
    """
    level = resolve_level(level)
    root = logging.getLogger("shipyard")
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if json_format else ContextFormatter())
    root.addHandler(handler)
    return handler
