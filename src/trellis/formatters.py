"""Wire shapes for tool responses.

These match the Atlassian Jira REST/MCP payloads field for field; clients
written against Jira Cloud parse them unchanged. Keep every key exactly as
it is.
"""

from __future__ import annotations

from typing import Any

from trellis.models import Comment, Issue, Project, User
from trellis.types.api import ApiComment, ApiIssue, ApiIssueFields, ApiProject, ApiUser


def format_issue_for_api(issue: Issue) -> ApiIssue:
    fields = ApiIssueFields(
        summary=issue.title,
        description=issue.description,
        issuetype={"name": issue.type},
        status={"name": issue.status},
        priority={"name": issue.priority},
        assignee={"accountId": issue.assignee} if issue.assignee else None,
        reporter={"accountId": issue.reporter},
        labels=list(issue.labels),
        created=issue.created_at,
        updated=issue.updated_at,
        customfield_storypoints=issue.story_points,
        sprint=issue.sprint,
        parent={"id": issue.parent_id} if issue.parent_id else None,
    )
    return ApiIssue(id=issue.id, key=issue.key, fields=fields)


def format_user_for_api(user: User) -> ApiUser:
    result = ApiUser(accountId=user.id, displayName=user.display_name, emailAddress=user.email)
    # Jira omits the key entirely when there is no avatar
    if user.avatar_url is not None:
        result["avatarUrl"] = user.avatar_url
    return result


def format_project_for_api(project: Project) -> ApiProject:
    return ApiProject(
        id=project.id,
        key=project.key,
        name=project.name,
        description=project.description,
        lead=project.lead,
    )


def format_comment_for_api(comment: Comment) -> ApiComment:
    return ApiComment(id=comment.id, created=comment.created)


def issue_self_link(key: str) -> str:
    return f"/api/issues/{key}"


def success() -> dict[str, Any]:
    return {"success": True}
