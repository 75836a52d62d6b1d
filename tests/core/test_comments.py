"""Tests for the in-memory comment log."""

from __future__ import annotations

from pathlib import Path

import pytest

from trellis.comments import InMemoryCommentStore
from trellis.core import TrellisDB
from trellis.errors import NotFoundError


class TestInMemoryCommentStore:
    def test_add_and_list(self) -> None:
        store = InMemoryCommentStore()
        first = store.add("issue-1", "first", author="user-1")
        store.add("issue-1", "second", author="user-2")
        store.add("issue-2", "other", author="user-1")
        assert [c.body for c in store.list_for("issue-1")] == ["first", "second"]
        assert first.id.startswith("comment-")
        assert first.created == first.updated
        assert len(store) == 3

    def test_clear(self) -> None:
        store = InMemoryCommentStore()
        store.add("issue-1", "x", author="user-1")
        store.clear()
        assert store.list_for("issue-1") == []


class TestDBComments:
    def test_comments_are_keyed_by_issue_id(self, db: TrellisDB) -> None:
        db.add_comment("PHX-3", "via key")
        db.add_comment("issue-3", "via id", author="user-2")
        comments = db.get_comments("PHX-3")
        assert [c.body for c in comments] == ["via key", "via id"]
        assert all(c.issue_id == "issue-3" for c in comments)
        assert comments[0].author == "user-1"
        assert comments[1].author == "user-2"

    def test_comments_are_not_persisted(self, db: TrellisDB, data_dir: Path) -> None:
        db.add_comment("PHX-3", "ephemeral")
        assert "ephemeral" not in (data_dir / "issues.json").read_text()
        assert TrellisDB(data_dir).get_comments("PHX-3") == []

    def test_missing_issue(self, db: TrellisDB) -> None:
        with pytest.raises(NotFoundError):
            db.add_comment("PHX-404", "hello")
