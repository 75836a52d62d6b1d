"""MetaMixin — users, sprints, comments, field metadata and raw collections."""

from __future__ import annotations

import logging
from typing import Any

from trellis.db_base import DBMixinProtocol
from trellis.models import ISSUE_TYPES, PRIORITIES, Comment, IssueType, Sprint, User
from trellis.validation import IntegrityReport, check_integrity

logger = logging.getLogger(__name__)

# Same table for every project and issue type.
FIELD_METADATA: tuple[dict[str, Any], ...] = (
    {"key": "summary", "name": "Summary", "required": True, "type": "string"},
    {"key": "description", "name": "Description", "required": False, "type": "string"},
    {"key": "priority", "name": "Priority", "required": False, "type": "priority", "allowedValues": list(PRIORITIES)},
    {"key": "assignee", "name": "Assignee", "required": False, "type": "user"},
    {"key": "labels", "name": "Labels", "required": False, "type": "array"},
    {"key": "storyPoints", "name": "Story Points", "required": False, "type": "number"},
    {"key": "sprint", "name": "Sprint", "required": False, "type": "sprint"},
    {"key": "dueDate", "name": "Due Date", "required": False, "type": "date"},
    {"key": "startDate", "name": "Start Date", "required": False, "type": "date"},
    {"key": "components", "name": "Components", "required": False, "type": "array"},
)


def issue_type_catalog() -> list[dict[str, Any]]:
    return [
        {
            "id": str(position),
            "name": name,
            "description": f"{name} issue type",
            "subtask": name == IssueType.SUBTASK,
        }
        for position, name in enumerate(ISSUE_TYPES, start=1)
    ]


class MetaMixin(DBMixinProtocol):
    # -- users and sprints ---------------------------------------------------

    def list_users(self) -> list[User]:
        return [User.from_dict(r) for r in self.store.load("users")]

    def find_users(self, query: str) -> list[User]:
        """Case-insensitive substring match on display name or email."""
        needle = query.lower()
        return [u for u in self.list_users() if needle in u.display_name.lower() or needle in u.email.lower()]

    def list_sprints(self) -> list[Sprint]:
        return [Sprint.from_dict(r) for r in self.store.load("sprints")]

    # -- comments ------------------------------------------------------------

    def add_comment(self, id_or_key: str, body: str, *, author: str | None = None) -> Comment:
        issue = self.get_issue(id_or_key)
        comment = self.comments.add(issue.id, body, author=author or self.default_author)
        logger.info("Comment %s added to %s", comment.id, issue.key)
        return comment

    def get_comments(self, id_or_key: str) -> list[Comment]:
        issue = self.get_issue(id_or_key)
        return self.comments.list_for(issue.id)

    # -- raw collections -----------------------------------------------------

    def read_collection(self, name: str) -> list[dict[str, Any]]:
        with self._lock:
            return self.store.load(name)

    def write_collection(self, name: str, records: list[dict[str, Any]]) -> None:
        with self._lock:
            self.store.save(name, records)
        logger.info("Replaced collection %s (%d records)", name, len(records))

    def check_integrity(self) -> IntegrityReport:
        with self._lock:
            return check_integrity(
                issues=self.store.load("issues"),
                projects=self.store.load("projects"),
                users=self.store.load("users"),
                sprints=self.store.load("sprints"),
                structures=self.store.load("structures"),
            )
