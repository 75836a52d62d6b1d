"""MCP tools for searching, reading, creating, editing and commenting on issues."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from mcp.types import TextContent, Tool

from trellis.formatters import format_comment_for_api, format_issue_for_api, issue_self_link, success
from trellis.mcp_tools.common import _require, _resolve_window, _text
from trellis.types.api import CreatedIssue, SearchResponse


def register() -> tuple[list[Tool], dict[str, Callable[..., Any]]]:
    """Return (tool_definitions, handler_map) for issue-domain tools."""
    tools = [
        Tool(
            name="searchJiraIssuesUsingJql",
            description="Search issues with a JQL subset: field = value, !=, >, <, >=, <=, ~ (contains) and IN (...), joined by AND.",
            inputSchema={
                "type": "object",
                "properties": {
                    "jql": {"type": "string", "description": "Query, e.g. 'project = PHX AND status = \"In Progress\"'"},
                    "startAt": {"type": "number", "description": "Index of the first result"},
                    "maxResults": {"type": "number", "description": "Page size (default 50)"},
                },
                "required": ["jql"],
            },
        ),
        Tool(
            name="getJiraIssue",
            description="Get one issue by id or key",
            inputSchema={
                "type": "object",
                "properties": {
                    "issueIdOrKey": {"type": "string", "description": "Issue id or key (e.g. PHX-1)"},
                },
                "required": ["issueIdOrKey"],
            },
        ),
        Tool(
            name="createJiraIssue",
            description="Create an issue in a project. The key is assigned sequentially (PHX-8 after PHX-7).",
            inputSchema={
                "type": "object",
                "properties": {
                    "projectKey": {"type": "string", "description": "Project key"},
                    "issueType": {"type": "string", "description": "Issue type"},
                    "summary": {"type": "string", "description": "Issue title"},
                    "description": {"type": "string", "description": "Issue description"},
                    "priority": {"type": "string", "description": "Priority (default Medium)"},
                    "assignee": {"type": "string", "description": "Assignee account id"},
                    "labels": {"type": "array", "items": {"type": "string"}, "description": "Labels"},
                    "parentKey": {"type": "string", "description": "Parent issue key"},
                },
                "required": ["projectKey", "issueType", "summary"],
            },
        ),
        Tool(
            name="editJiraIssue",
            description="Update issue fields. Unknown field names are ignored; hierarchy and links are edited with the hierarchy tools.",
            inputSchema={
                "type": "object",
                "properties": {
                    "issueIdOrKey": {"type": "string", "description": "Issue id or key"},
                    "fields": {"type": "object", "description": "Field name -> new value (summary, description, priority, ...)"},
                },
                "required": ["issueIdOrKey", "fields"],
            },
        ),
        Tool(
            name="transitionJiraIssue",
            description="Move an issue to another status. Accepts a transition id, a transition name or a status name.",
            inputSchema={
                "type": "object",
                "properties": {
                    "issueIdOrKey": {"type": "string", "description": "Issue id or key"},
                    "transitionId": {"type": "string", "description": "Transition id or name, e.g. 'Start Progress' or 'Done'"},
                },
                "required": ["issueIdOrKey", "transitionId"],
            },
        ),
        Tool(
            name="addCommentToJiraIssue",
            description="Add a comment to an issue. Comments are kept for the lifetime of the server process only.",
            inputSchema={
                "type": "object",
                "properties": {
                    "issueIdOrKey": {"type": "string", "description": "Issue id or key"},
                    "body": {"type": "string", "description": "Comment text"},
                },
                "required": ["issueIdOrKey", "body"],
            },
        ),
    ]

    handlers: dict[str, Callable[..., Any]] = {
        "searchJiraIssuesUsingJql": _handle_search,
        "getJiraIssue": _handle_get_issue,
        "createJiraIssue": _handle_create_issue,
        "editJiraIssue": _handle_edit_issue,
        "transitionJiraIssue": _handle_transition_issue,
        "addCommentToJiraIssue": _handle_add_comment,
    }

    return tools, handlers


async def _handle_search(arguments: dict[str, Any]) -> list[TextContent]:
    from trellis.mcp_server import _get_db

    start_at, max_results = _resolve_window(arguments)
    matched = _get_db().search_issues(arguments.get("jql") or "")
    page = matched[start_at : start_at + max_results]
    return _text(
        SearchResponse(
            issues=[format_issue_for_api(i) for i in page],
            total=len(matched),
            startAt=start_at,
            maxResults=max_results,
        )
    )


async def _handle_get_issue(arguments: dict[str, Any]) -> list[TextContent]:
    from trellis.mcp_server import _get_db

    _require(arguments, "issueIdOrKey")
    issue = _get_db().get_issue(arguments["issueIdOrKey"])
    return _text({"issue": format_issue_for_api(issue)})


async def _handle_create_issue(arguments: dict[str, Any]) -> list[TextContent]:
    from trellis.mcp_server import _get_db

    _require(arguments, "projectKey", "issueType", "summary")
    issue = _get_db().create_issue(
        arguments["projectKey"],
        arguments["issueType"],
        arguments["summary"],
        description=arguments.get("description") or "",
        priority=arguments.get("priority"),
        assignee=arguments.get("assignee"),
        labels=arguments.get("labels"),
        parent_key=arguments.get("parentKey"),
    )
    return _text(CreatedIssue(id=issue.id, key=issue.key, self=issue_self_link(issue.key)))


async def _handle_edit_issue(arguments: dict[str, Any]) -> list[TextContent]:
    from trellis.mcp_server import _get_db

    _require(arguments, "issueIdOrKey", "fields")
    _get_db().edit_issue(arguments["issueIdOrKey"], arguments["fields"])
    return _text(success())


async def _handle_transition_issue(arguments: dict[str, Any]) -> list[TextContent]:
    from trellis.mcp_server import _get_db

    _require(arguments, "issueIdOrKey", "transitionId")
    _get_db().transition_issue(arguments["issueIdOrKey"], str(arguments["transitionId"]))
    return _text(success())


async def _handle_add_comment(arguments: dict[str, Any]) -> list[TextContent]:
    from trellis.mcp_server import _get_db

    _require(arguments, "issueIdOrKey", "body")
    comment = _get_db().add_comment(arguments["issueIdOrKey"], arguments["body"])
    return _text(format_comment_for_api(comment))
