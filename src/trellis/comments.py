"""Comment storage for ``addCommentToJiraIssue``.

Comments are held in process memory only: they vanish when the server
exits and are not shared between processes. The store is injected into
``TrellisDB`` so tests can inspect or reset it.
"""

from __future__ import annotations

import uuid
from typing import Protocol

from trellis.models import Comment, now_iso


class CommentStore(Protocol):
    def add(self, issue_id: str, body: str, *, author: str) -> Comment: ...

    def list_for(self, issue_id: str) -> list[Comment]: ...

    def clear(self) -> None: ...


class InMemoryCommentStore:
    """Process-lifetime comment log keyed by issue id."""

    def __init__(self) -> None:
        self._comments: dict[str, list[Comment]] = {}

    def add(self, issue_id: str, body: str, *, author: str) -> Comment:
        created = now_iso()
        comment = Comment(
            id=f"comment-{uuid.uuid4().hex[:12]}",
            issue_id=issue_id,
            author=author,
            body=body,
            created=created,
            updated=created,
        )
        self._comments.setdefault(issue_id, []).append(comment)
        return comment

    def list_for(self, issue_id: str) -> list[Comment]:
        return list(self._comments.get(issue_id, []))

    def clear(self) -> None:
        self._comments.clear()

    def __len__(self) -> int:
        return sum(len(v) for v in self._comments.values())
