"""TypedDicts for MCP tool responses.

The ``Api*`` shapes mirror Jira Cloud payloads; the key names (camelCase,
``customfield_storypoints``, nested ``{"name": ...}`` objects) are part of
the external contract.
"""

from __future__ import annotations

from typing import NotRequired, TypedDict


class NamedValue(TypedDict):
    name: str


class AccountRef(TypedDict):
    accountId: str


class IdRef(TypedDict):
    id: str


class ApiIssueFields(TypedDict):
    summary: str
    description: str
    issuetype: NamedValue
    status: NamedValue
    priority: NamedValue
    assignee: AccountRef | None
    reporter: AccountRef
    labels: list[str]
    created: str
    updated: str
    customfield_storypoints: float | None
    sprint: str | None
    parent: IdRef | None


class ApiIssue(TypedDict):
    id: str
    key: str
    fields: ApiIssueFields


class ApiUser(TypedDict):
    accountId: str
    displayName: str
    emailAddress: str
    avatarUrl: NotRequired[str]


class ApiProject(TypedDict):
    id: str
    key: str
    name: str
    description: str
    lead: str


class ApiComment(TypedDict):
    id: str
    created: str


class SearchResponse(TypedDict):
    issues: list[ApiIssue]
    total: int
    startAt: int
    maxResults: int


class CreatedIssue(TypedDict):
    id: str
    key: str
    self: str


class HierarchyResponse(TypedDict):
    issue: ApiIssue
    parent: ApiIssue | None
    children: list[ApiIssue]


class ErrorResponse(TypedDict):
    """Standard error envelope returned by every failing tool call."""

    error: str
    code: str

