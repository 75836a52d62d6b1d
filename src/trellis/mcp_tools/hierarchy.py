"""MCP tools for the parent/child tree and issue links."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from mcp.types import TextContent, Tool

from trellis.errors import ValidationError
from trellis.formatters import format_issue_for_api, success
from trellis.mcp_tools.common import _require, _text
from trellis.types.api import HierarchyResponse


def register() -> tuple[list[Tool], dict[str, Callable[..., Any]]]:
    """Return (tool_definitions, handler_map) for hierarchy tools."""
    tools = [
        Tool(
            name="getJiraIssueHierarchy",
            description="Get an issue with its parent and its descendants, breadth-first",
            inputSchema={
                "type": "object",
                "properties": {
                    "issueIdOrKey": {"type": "string", "description": "Issue id or key"},
                    "depth": {"type": "number", "description": "Levels of children to include (all if omitted)"},
                },
                "required": ["issueIdOrKey"],
            },
        ),
        Tool(
            name="moveJiraIssueInHierarchy",
            description="Reparent an issue. Omit newParentKey to move it to the root. Moves that would create a cycle are rejected.",
            inputSchema={
                "type": "object",
                "properties": {
                    "issueIdOrKey": {"type": "string", "description": "Issue id or key"},
                    "newParentKey": {"type": "string", "description": "New parent id or key"},
                },
                "required": ["issueIdOrKey"],
            },
        ),
        Tool(
            name="linkJiraIssues",
            description="Create or remove a blocks / blocked_by / relates_to link. Both sides are updated together.",
            inputSchema={
                "type": "object",
                "properties": {
                    "sourceKey": {"type": "string", "description": "Source issue id or key"},
                    "targetKey": {"type": "string", "description": "Target issue id or key"},
                    "linkType": {"type": "string", "description": "Link type: blocks, blocked_by or relates_to"},
                    "action": {"type": "string", "description": "create or remove"},
                },
                "required": ["sourceKey", "targetKey", "linkType", "action"],
            },
        ),
    ]

    handlers: dict[str, Callable[..., Any]] = {
        "getJiraIssueHierarchy": _handle_get_hierarchy,
        "moveJiraIssueInHierarchy": _handle_move,
        "linkJiraIssues": _handle_link,
    }

    return tools, handlers


def _depth(arguments: dict[str, Any]) -> int | None:
    depth = arguments.get("depth")
    if depth is None:
        return None
    if isinstance(depth, float) and depth.is_integer():
        return int(depth)
    if isinstance(depth, bool) or not isinstance(depth, int):
        msg = "depth must be an integer"
        raise ValidationError(msg)
    return depth


async def _handle_get_hierarchy(arguments: dict[str, Any]) -> list[TextContent]:
    from trellis.mcp_server import _get_db

    _require(arguments, "issueIdOrKey")
    view = _get_db().get_hierarchy(arguments["issueIdOrKey"], _depth(arguments))
    return _text(
        HierarchyResponse(
            issue=format_issue_for_api(view.issue),
            parent=format_issue_for_api(view.parent) if view.parent else None,
            children=[format_issue_for_api(c) for c in view.children],
        )
    )


async def _handle_move(arguments: dict[str, Any]) -> list[TextContent]:
    from trellis.mcp_server import _get_db

    _require(arguments, "issueIdOrKey")
    _get_db().move_issue(arguments["issueIdOrKey"], arguments.get("newParentKey") or None)
    return _text(success())


async def _handle_link(arguments: dict[str, Any]) -> list[TextContent]:
    from trellis.mcp_server import _get_db

    _require(arguments, "sourceKey", "targetKey", "linkType", "action")
    _get_db().link_issues(
        arguments["sourceKey"],
        arguments["targetKey"],
        arguments["linkType"],
        arguments["action"],
    )
    return _text(success())
