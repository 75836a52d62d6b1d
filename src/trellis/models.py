"""Record types for issues, projects, users, sprints and comments.

On disk every record is a camelCase JSON object (the shape the browser UI
reads and writes). The dataclasses here use snake_case attributes and
convert at the ``from_dict`` / ``to_dict`` boundary. Keys this module does
not know about are kept in ``extra`` and written back untouched.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from trellis.errors import NotFoundError

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class IssueType(StrEnum):
    INITIATIVE = "Initiative"
    EPIC = "Epic"
    FEATURE = "Feature"
    STORY = "Story"
    TASK = "Task"
    BUG = "Bug"
    SUBTASK = "Subtask"


class IssueStatus(StrEnum):
    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    IN_REVIEW = "In Review"
    DONE = "Done"


class Priority(StrEnum):
    HIGHEST = "Highest"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    LOWEST = "Lowest"


class SprintStatus(StrEnum):
    PLANNED = "planned"
    ACTIVE = "active"
    COMPLETED = "completed"


ISSUE_TYPES: tuple[str, ...] = tuple(t.value for t in IssueType)
ISSUE_STATUSES: tuple[str, ...] = tuple(s.value for s in IssueStatus)
PRIORITIES: tuple[str, ...] = tuple(p.value for p in Priority)

# Relation fields are owned by the hierarchy engine.
RELATION_FIELDS = frozenset({"parentId", "childIds", "blocks", "blockedBy", "relatedTo"})


def now_iso() -> str:
    """UTC timestamp in the JavaScript ``toISOString()`` format."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_issue_id() -> str:
    millis = int(datetime.now(UTC).timestamp() * 1000)
    return f"issue-{millis}-{uuid.uuid4().hex[:9]}"


def _pop_extra(data: dict[str, Any], known: Iterable[str]) -> dict[str, Any]:
    known_set = set(known)
    return {k: v for k, v in data.items() if k not in known_set}


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

_ISSUE_KEYS = (
    "id",
    "key",
    "title",
    "description",
    "type",
    "status",
    "priority",
    "assignee",
    "reporter",
    "labels",
    "createdAt",
    "updatedAt",
    "storyPoints",
    "sprint",
    "version",
    "components",
    "dueDate",
    "startDate",
    "originalEstimate",
    "timeSpent",
    "remainingEstimate",
    "parentId",
    "childIds",
    "blockedBy",
    "blocks",
    "relatedTo",
)


@dataclass
class Issue:
    id: str
    key: str
    title: str
    type: str = IssueType.TASK.value
    status: str = IssueStatus.TODO.value
    priority: str = Priority.MEDIUM.value
    description: str = ""
    assignee: str | None = None
    reporter: str = ""
    labels: list[str] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""
    # Planning fields are carried through opaquely
    story_points: float | None = None
    sprint: str | None = None
    version: str | None = None
    components: list[str] = field(default_factory=list)
    due_date: str | None = None
    start_date: str | None = None
    original_estimate: float | None = None
    time_spent: float | None = None
    remaining_estimate: float | None = None
    # Relations
    parent_id: str | None = None
    child_ids: list[str] = field(default_factory=list)
    blocked_by: list[str] = field(default_factory=list)
    blocks: list[str] = field(default_factory=list)
    related_to: list[str] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def project_key(self) -> str:
        return self.key.rpartition("-")[0]

    def touch(self, timestamp: str | None = None) -> None:
        self.updated_at = timestamp or now_iso()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Issue:
        return cls(
            id=data["id"],
            key=data.get("key", ""),
            title=data.get("title", ""),
            type=data.get("type", IssueType.TASK.value),
            status=data.get("status", IssueStatus.TODO.value),
            priority=data.get("priority", Priority.MEDIUM.value),
            description=data.get("description") or "",
            assignee=data.get("assignee") or None,
            reporter=data.get("reporter", ""),
            labels=list(data.get("labels") or []),
            created_at=data.get("createdAt", ""),
            updated_at=data.get("updatedAt", ""),
            story_points=data.get("storyPoints"),
            sprint=data.get("sprint"),
            version=data.get("version"),
            components=list(data.get("components") or []),
            due_date=data.get("dueDate"),
            start_date=data.get("startDate"),
            original_estimate=data.get("originalEstimate"),
            time_spent=data.get("timeSpent"),
            remaining_estimate=data.get("remainingEstimate"),
            parent_id=data.get("parentId") or None,
            child_ids=list(data.get("childIds") or []),
            blocked_by=list(data.get("blockedBy") or []),
            blocks=list(data.get("blocks") or []),
            related_to=list(data.get("relatedTo") or []),
            extra=_pop_extra(data, _ISSUE_KEYS),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "key": self.key,
            "title": self.title,
            "description": self.description,
            "type": self.type,
            "status": self.status,
            "priority": self.priority,
            "assignee": self.assignee,
            "reporter": self.reporter,
            "labels": list(self.labels),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "storyPoints": self.story_points,
            "sprint": self.sprint,
            "version": self.version,
            "components": list(self.components),
            "dueDate": self.due_date,
            "startDate": self.start_date,
            "originalEstimate": self.original_estimate,
            "timeSpent": self.time_spent,
            "remainingEstimate": self.remaining_estimate,
            "parentId": self.parent_id,
            "childIds": list(self.child_ids),
            "blockedBy": list(self.blocked_by),
            "blocks": list(self.blocks),
            "relatedTo": list(self.related_to),
            **self.extra,
        }


# Maps the camelCase record field to the dataclass attribute.
ISSUE_ATTRS: dict[str, str] = {
    "id": "id",
    "key": "key",
    "title": "title",
    "description": "description",
    "type": "type",
    "status": "status",
    "priority": "priority",
    "assignee": "assignee",
    "reporter": "reporter",
    "labels": "labels",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "storyPoints": "story_points",
    "sprint": "sprint",
    "version": "version",
    "components": "components",
    "dueDate": "due_date",
    "startDate": "start_date",
    "originalEstimate": "original_estimate",
    "timeSpent": "time_spent",
    "remainingEstimate": "remaining_estimate",
    "parentId": "parent_id",
    "childIds": "child_ids",
    "blockedBy": "blocked_by",
    "blocks": "blocks",
    "relatedTo": "related_to",
}


@dataclass
class Project:
    id: str
    key: str
    name: str
    description: str = ""
    lead: str = ""
    created_at: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Project:
        return cls(
            id=data["id"],
            key=data["key"],
            name=data.get("name", ""),
            description=data.get("description") or "",
            lead=data.get("lead", ""),
            created_at=data.get("createdAt", ""),
            extra=_pop_extra(data, ("id", "key", "name", "description", "lead", "createdAt")),
        )


@dataclass
class User:
    id: str
    display_name: str
    email: str = ""
    avatar_url: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> User:
        return cls(
            id=data["id"],
            display_name=data.get("displayName", ""),
            email=data.get("email", ""),
            avatar_url=data.get("avatarUrl"),
        )


@dataclass
class Sprint:
    id: str
    name: str
    project_id: str
    status: str = SprintStatus.PLANNED.value
    start_date: str = ""
    end_date: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Sprint:
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            project_id=data.get("projectId", ""),
            status=data.get("status", SprintStatus.PLANNED.value),
            start_date=data.get("startDate", ""),
            end_date=data.get("endDate", ""),
        )


@dataclass
class Comment:
    id: str
    issue_id: str
    author: str
    body: str
    created: str
    updated: str


# ---------------------------------------------------------------------------
# IssueIndex: lookup over one loaded collection
# ---------------------------------------------------------------------------


class IssueIndex:
    """Ordered issue collection with id and key lookup.

    Built once per transaction from the stored records. Lookups are exact:
    ``resolve`` accepts either an id or a key, matching the id first.
    """

    def __init__(self, issues: Iterable[Issue]) -> None:
        self._issues: list[Issue] = list(issues)
        self._by_id: dict[str, Issue] = {i.id: i for i in self._issues}
        self._by_key: dict[str, Issue] = {i.key: i for i in self._issues if i.key}

    @classmethod
    def from_records(cls, records: Iterable[dict[str, Any]]) -> IssueIndex:
        return cls(Issue.from_dict(r) for r in records)

    def __iter__(self) -> Iterator[Issue]:
        return iter(self._issues)

    def __len__(self) -> int:
        return len(self._issues)

    def __contains__(self, issue_id: object) -> bool:
        return issue_id in self._by_id

    def get(self, issue_id: str | None) -> Issue | None:
        if issue_id is None:
            return None
        return self._by_id.get(issue_id)

    def find(self, id_or_key: str) -> Issue | None:
        return self._by_id.get(id_or_key) or self._by_key.get(id_or_key)

    def resolve(self, id_or_key: str, *, label: str = "Issue") -> Issue:
        issue = self.find(id_or_key)
        if issue is None:
            msg = f"{label} not found: {id_or_key}"
            raise NotFoundError(msg)
        return issue

    def add(self, issue: Issue) -> None:
        self._issues.append(issue)
        self._by_id[issue.id] = issue
        if issue.key:
            self._by_key[issue.key] = issue

    def to_records(self) -> list[dict[str, Any]]:
        return [i.to_dict() for i in self._issues]
