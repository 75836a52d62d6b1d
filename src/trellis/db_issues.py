"""IssuesMixin — issue lookup, search, create, edit and status transitions.

All methods reach the store through ``self.transaction()`` /
``self.snapshot()`` when composed into ``TrellisDB``.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from trellis.db_base import DBMixinProtocol
from trellis.errors import (
    InvalidTransitionError,
    InvalidTypeError,
    NotFoundError,
    ValidationError,
)
from trellis.hierarchy import HierarchyEngine
from trellis.models import (
    ISSUE_ATTRS,
    ISSUE_STATUSES,
    ISSUE_TYPES,
    PRIORITIES,
    RELATION_FIELDS,
    Issue,
    IssueIndex,
    IssueStatus,
    Priority,
    Project,
    new_issue_id,
    now_iso,
)
from trellis.query import normalize_status, search

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Workflow tables
# ---------------------------------------------------------------------------

TRANSITION_ALIASES: dict[str, str] = {
    "to do": IssueStatus.TODO,
    "todo": IssueStatus.TODO,
    "in progress": IssueStatus.IN_PROGRESS,
    "inprogress": IssueStatus.IN_PROGRESS,
    "start progress": IssueStatus.IN_PROGRESS,
    "in review": IssueStatus.IN_REVIEW,
    "inreview": IssueStatus.IN_REVIEW,
    "review": IssueStatus.IN_REVIEW,
    "done": IssueStatus.DONE,
    "complete": IssueStatus.DONE,
    "resolve": IssueStatus.DONE,
}

TRANSITIONS: tuple[dict[str, Any], ...] = (
    {"id": "1", "name": "To Do", "to": {"name": IssueStatus.TODO.value}},
    {"id": "2", "name": "Start Progress", "to": {"name": IssueStatus.IN_PROGRESS.value}},
    {"id": "3", "name": "Review", "to": {"name": IssueStatus.IN_REVIEW.value}},
    {"id": "4", "name": "Done", "to": {"name": IssueStatus.DONE.value}},
)

# External (Jira) field name -> record field
EDIT_FIELD_ALIASES: dict[str, str] = {
    "summary": "title",
    "issuetype": "type",
    "customfield_storypoints": "storyPoints",
}

_READ_ONLY_FIELDS = frozenset({"id", "key", "createdAt", "updatedAt"}) | RELATION_FIELDS


def resolve_transition(name: str) -> str:
    """Map a free-form transition name or catalog id to a status value."""
    target = TRANSITION_ALIASES.get(name.strip().lower())
    if target is not None:
        return str(target)
    if name in ISSUE_STATUSES:
        return name
    for transition in TRANSITIONS:
        if transition["id"] == name:
            return str(transition["to"]["name"])
    msg = f"Invalid transition: {name}"
    raise InvalidTransitionError(msg)


def next_issue_key(index: IssueIndex, project_key: str) -> str:
    """Highest existing number for the project prefix, plus one."""
    pattern = re.compile(rf"^{re.escape(project_key)}-(\d+)$")
    highest = 0
    for issue in index:
        m = pattern.match(issue.key)
        if m:
            highest = max(highest, int(m.group(1)))
    return f"{project_key}-{highest + 1}"


def _unwrap(value: Any) -> Any:
    """Accept Jira-style ``{"name": ...}`` / ``{"accountId": ...}`` wrappers."""
    if isinstance(value, dict):
        for key in ("name", "accountId", "id", "value"):
            if key in value:
                return value[key]
    return value


def _validate_labels(value: Any, name: str = "labels") -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        msg = f"{name} must be a list of strings"
        raise ValidationError(msg)
    return list(dict.fromkeys(value))


def _validate_priority(value: Any) -> str:
    if value not in PRIORITIES:
        msg = f"Invalid priority: {value}. Valid priorities: {', '.join(PRIORITIES)}"
        raise InvalidTypeError(msg)
    return str(value)


def _validate_issue_type(value: Any) -> str:
    if value not in ISSUE_TYPES:
        msg = f"Invalid issue type: {value}"
        raise InvalidTypeError(msg)
    return str(value)


class IssuesMixin(DBMixinProtocol):
    """Issue CRUD and workflow transitions."""

    def list_projects(self) -> list[Project]:
        return [Project.from_dict(r) for r in self.store.load("projects")]

    def get_project(self, project_key: str) -> Project:
        for project in self.list_projects():
            if project.key == project_key:
                return project
        msg = f"Project not found: {project_key}"
        raise NotFoundError(msg)

    # -- reads ---------------------------------------------------------------

    def get_issue(self, id_or_key: str) -> Issue:
        return self.snapshot().resolve(id_or_key)

    def list_issues(self) -> list[Issue]:
        return list(self.snapshot())

    def search_issues(self, jql: str) -> list[Issue]:
        """All issues matching *jql*, in stored order."""
        return search(jql, self.snapshot())

    # -- create --------------------------------------------------------------

    def create_issue(
        self,
        project_key: str,
        issue_type: str,
        summary: str,
        *,
        description: str = "",
        priority: str | None = None,
        assignee: str | None = None,
        labels: list[str] | None = None,
        parent_key: str | None = None,
        reporter: str | None = None,
    ) -> Issue:
        # --- Validate all inputs before touching the collection ---
        if not isinstance(summary, str) or not summary.strip():
            msg = "summary must be a non-empty string"
            raise ValidationError(msg)
        self.get_project(project_key)
        issue_type = _validate_issue_type(issue_type)
        priority = _validate_priority(priority) if priority else Priority.MEDIUM.value
        clean_labels = _validate_labels(labels) if labels is not None else []

        with self.transaction() as index:
            issue_id = new_issue_id()
            while issue_id in index:
                issue_id = new_issue_id()
            now = now_iso()
            issue = Issue(
                id=issue_id,
                key=next_issue_key(index, project_key),
                title=summary,
                description=description or "",
                type=issue_type,
                status=IssueStatus.TODO.value,
                priority=priority,
                assignee=assignee or None,
                reporter=reporter or self.default_reporter,
                labels=clean_labels,
                created_at=now,
                updated_at=now,
            )
            index.add(issue)

            if parent_key:
                parent = index.find(parent_key)
                if parent is None:
                    logger.warning("Parent %s not found; creating %s at root level", parent_key, issue.key)
                else:
                    HierarchyEngine(index).attach(issue, parent)
                    parent.touch(now)

        logger.info("Created %s (%s) in %s", issue.key, issue_type, project_key)
        return issue

    # -- edit ----------------------------------------------------------------

    def _coerce_edit(self, record_field: str, value: Any) -> Any:
        value = _unwrap(value)
        if record_field == "type":
            return _validate_issue_type(value)
        if record_field == "priority":
            return _validate_priority(value)
        if record_field == "status":
            status = normalize_status(str(value))
            if status not in ISSUE_STATUSES:
                msg = f"Invalid transition: {value}"
                raise InvalidTransitionError(msg)
            return status
        if record_field in ("labels", "components"):
            return _validate_labels(value, record_field)
        if record_field == "assignee":
            return value or None
        if record_field == "title" and (not isinstance(value, str) or not value.strip()):
            msg = "summary must be a non-empty string"
            raise ValidationError(msg)
        return value

    def edit_issue(self, id_or_key: str, fields: dict[str, Any]) -> Issue:
        """Overwrite the given fields. Unknown or read-only names are ignored.

        Values outside the type, priority or status enumerations are rejected
        with InvalidTypeError or InvalidTransitionError, and nothing is saved.
        """
        if not isinstance(fields, dict):
            msg = "fields must be an object"
            raise ValidationError(msg)

        with self.transaction() as index:
            issue = index.resolve(id_or_key)

            updates: dict[str, Any] = {}
            for api_field, value in fields.items():
                record_field = EDIT_FIELD_ALIASES.get(api_field, api_field)
                if record_field in _READ_ONLY_FIELDS:
                    logger.debug("Ignoring read-only field %s on %s", api_field, issue.key)
                    continue
                if record_field not in ISSUE_ATTRS and record_field not in issue.extra:
                    logger.debug("Ignoring unknown field %s on %s", api_field, issue.key)
                    continue
                updates[record_field] = self._coerce_edit(record_field, value)

            for record_field, value in updates.items():
                if record_field in ISSUE_ATTRS:
                    setattr(issue, ISSUE_ATTRS[record_field], value)
                else:
                    issue.extra[record_field] = value
            issue.touch()
        return issue

    # -- workflow ------------------------------------------------------------

    def transition_issue(self, id_or_key: str, transition: str) -> Issue:
        status = resolve_transition(transition)
        with self.transaction() as index:
            issue = index.resolve(id_or_key)
            old = issue.status
            issue.status = status
            issue.touch()
        logger.info("Transitioned %s: %s -> %s", issue.key, old, status)
        return issue

    def list_transitions(self, id_or_key: str) -> list[dict[str, Any]]:
        """Transition catalog minus the one leading to the current status."""
        issue = self.get_issue(id_or_key)
        return [dict(t) for t in TRANSITIONS if t["to"]["name"] != issue.status]
