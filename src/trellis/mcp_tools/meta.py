"""MCP tools for projects, issue-type metadata, transitions and users."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from mcp.types import TextContent, Tool

from trellis.db_meta import FIELD_METADATA, issue_type_catalog
from trellis.errors import ValidationError
from trellis.formatters import format_project_for_api, format_user_for_api
from trellis.mcp_tools.common import _require, _text


def register() -> tuple[list[Tool], dict[str, Callable[..., Any]]]:
    """Return (tool_definitions, handler_map) for metadata tools."""
    tools = [
        Tool(
            name="getVisibleJiraProjects",
            description="List all projects",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="getJiraProjectIssueTypesMetadata",
            description="List the issue types available in a project",
            inputSchema={
                "type": "object",
                "properties": {
                    "projectKey": {"type": "string", "description": "Project key"},
                },
                "required": ["projectKey"],
            },
        ),
        Tool(
            name="getJiraIssueTypeMetaWithFields",
            description="List the fields that can be set on an issue type (the same table for every project and type)",
            inputSchema={
                "type": "object",
                "properties": {
                    "projectKey": {"type": "string", "description": "Project key"},
                    "issueTypeId": {"type": "string", "description": "Issue type id or name"},
                },
                "required": ["projectKey", "issueTypeId"],
            },
        ),
        Tool(
            name="getTransitionsForJiraIssue",
            description="List the transitions available from an issue's current status",
            inputSchema={
                "type": "object",
                "properties": {
                    "issueIdOrKey": {"type": "string", "description": "Issue id or key"},
                },
                "required": ["issueIdOrKey"],
            },
        ),
        Tool(
            name="lookupJiraAccountId",
            description="Find users whose display name or email contains the query (case-insensitive)",
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "Name or email fragment"},
                },
                "required": ["query"],
            },
        ),
    ]

    handlers: dict[str, Callable[..., Any]] = {
        "getVisibleJiraProjects": _handle_list_projects,
        "getJiraProjectIssueTypesMetadata": _handle_issue_types,
        "getJiraIssueTypeMetaWithFields": _handle_fields,
        "getTransitionsForJiraIssue": _handle_transitions,
        "lookupJiraAccountId": _handle_lookup_users,
    }

    return tools, handlers


async def _handle_list_projects(arguments: dict[str, Any]) -> list[TextContent]:
    from trellis.mcp_server import _get_db

    return _text({"projects": [format_project_for_api(p) for p in _get_db().list_projects()]})


async def _handle_issue_types(arguments: dict[str, Any]) -> list[TextContent]:
    _require(arguments, "projectKey")
    return _text({"issueTypes": issue_type_catalog()})


async def _handle_fields(arguments: dict[str, Any]) -> list[TextContent]:
    _require(arguments, "projectKey", "issueTypeId")
    return _text({"fields": [dict(f) for f in FIELD_METADATA]})


async def _handle_transitions(arguments: dict[str, Any]) -> list[TextContent]:
    from trellis.mcp_server import _get_db

    _require(arguments, "issueIdOrKey")
    return _text({"transitions": _get_db().list_transitions(arguments["issueIdOrKey"])})


async def _handle_lookup_users(arguments: dict[str, Any]) -> list[TextContent]:
    from trellis.mcp_server import _get_db

    if arguments.get("query") is None:
        msg = "Missing required argument: query"
        raise ValidationError(msg)
    users = _get_db().find_users(str(arguments["query"]))
    return _text({"users": [format_user_for_api(u) for u in users]})
