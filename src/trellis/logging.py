"""Structured JSON logging for trellis.

Writes JSONL to .trellis/trellis.log with rotation (5MB, 3 backups). Each
MCP tool call produces one line::

    {"ts": ..., "level": "INFO", "msg": "tool_call", "tool": "getJiraIssue",
     "issue": "PHX-1", "args": {...}, "duration_ms": 1.2}

Failed calls log ``tool_error`` with the wire error ``code`` instead of a
duration. ``issue`` is lifted from the arguments so a single issue's history
can be grepped out of the log.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

_LOG_FILENAME = "trellis.log"
_setup_lock = threading.Lock()
_MAX_BYTES = 5 * 1024 * 1024  # 5MB
_BACKUP_COUNT = 3

# LogRecord attribute (set via ``extra=``) -> JSON key
_EXTRA_FIELDS = {
    "tool": "tool",
    "args_data": "args",
    "duration_ms": "duration_ms",
    "code": "code",
}

# Tool arguments naming the issue a call acts on, in order of preference.
_ISSUE_ARGUMENTS = ("issueIdOrKey", "sourceKey")


def _issue_of(arguments: object) -> str | None:
    if not isinstance(arguments, dict):
        return None
    for name in _ISSUE_ARGUMENTS:
        value = arguments.get(name)
        if value:
            return str(value)
    return None


class _JsonFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "msg": record.getMessage(),
        }
        for attr, key in _EXTRA_FIELDS.items():
            if hasattr(record, attr):
                entry[key] = getattr(record, attr)
        issue = _issue_of(getattr(record, "args_data", None))
        if issue is not None:
            entry["issue"] = issue
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = str(record.exc_info[1])
        return json.dumps(entry, default=str)


def setup_logging(trellis_dir: Path) -> logging.Logger:
    """Set up structured JSON logging to .trellis/trellis.log.

    Returns the package logger; calling again for the same file is a no-op.
    """
    logger = logging.getLogger("trellis")
    log_path = trellis_dir / _LOG_FILENAME
    target_filename = os.path.abspath(str(log_path))

    with _setup_lock:
        for h in logger.handlers[:]:
            if not isinstance(h, RotatingFileHandler):
                continue
            if h.baseFilename == target_filename:
                return logger
            # Different path: drop the stale handler.
            logger.removeHandler(h)
            h.close()

        handler = RotatingFileHandler(
            str(log_path),
            maxBytes=_MAX_BYTES,
            backupCount=_BACKUP_COUNT,
        )
        handler.setFormatter(_JsonFormatter())
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger
