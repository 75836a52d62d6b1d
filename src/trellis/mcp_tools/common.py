"""Pure helpers and constants shared across MCP tool modules.

This module has NO dependency on ``mcp_server`` module globals, so it can
be imported freely without triggering circular-import issues.
"""

from __future__ import annotations

import json
from typing import Any

from mcp.types import TextContent

from trellis.errors import ValidationError

# Default page size for searchJiraIssuesUsingJql, same as Jira Cloud.
_MAX_RESULTS = 50


def _text(content: object) -> list[TextContent]:
    if isinstance(content, str):
        return [TextContent(type="text", text=content)]
    return [TextContent(type="text", text=json.dumps(content, indent=2, default=str))]


def _require(arguments: dict[str, Any], *names: str) -> None:
    """Raise ValidationError naming the first missing or empty argument."""
    for name in names:
        value = arguments.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            msg = f"Missing required argument: {name}"
            raise ValidationError(msg)


def _as_int(arguments: dict[str, Any], name: str, default: int) -> int:
    """Read an optional integer argument; falsy values mean *default*."""
    value = arguments.get(name)
    if not value:
        return default
    if isinstance(value, bool):
        msg = f"{name} must be an integer"
        raise ValidationError(msg)
    try:
        return int(value)
    except (TypeError, ValueError):
        msg = f"{name} must be an integer"
        raise ValidationError(msg) from None


def _resolve_window(arguments: dict[str, Any]) -> tuple[int, int]:
    """Return ``(start_at, max_results)`` for a paginated search."""
    start_at = _as_int(arguments, "startAt", 0)
    max_results = _as_int(arguments, "maxResults", _MAX_RESULTS)
    if start_at < 0 or max_results < 0:
        msg = "startAt and maxResults must not be negative"
        raise ValidationError(msg)
    return start_at, max_results
