"""HierarchyMixin — tree reads and relation mutations for TrellisDB.

Thin transactional wrappers around :class:`trellis.hierarchy.HierarchyEngine`:
load the collection, let the engine mutate it in memory, save once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from trellis.db_base import DBMixinProtocol
from trellis.hierarchy import HierarchyEngine
from trellis.models import Issue

logger = logging.getLogger(__name__)


@dataclass
class HierarchyView:
    issue: Issue
    parent: Issue | None
    children: list[Issue]


class HierarchyMixin(DBMixinProtocol):
    def get_hierarchy(self, id_or_key: str, depth: int | None = None) -> HierarchyView:
        """The issue, its direct parent and its descendants (breadth-first)."""
        index = self.snapshot()
        issue = index.resolve(id_or_key)
        engine = HierarchyEngine(index)
        return HierarchyView(
            issue=issue,
            parent=index.get(issue.parent_id),
            children=engine.descendants(issue, depth),
        )

    def move_issue(self, id_or_key: str, new_parent: str | None = None) -> Issue:
        """Move an issue under *new_parent* (id or key), or to the root when None."""
        with self.transaction() as index:
            issue = index.resolve(id_or_key)
            parent = index.resolve(new_parent, label="Parent issue") if new_parent else None
            HierarchyEngine(index).move(issue, parent)
        return issue

    def link_issues(self, source_key: str, target_key: str, link_type: str, action: str = "create") -> tuple[Issue, Issue]:
        with self.transaction() as index:
            source = index.resolve(source_key, label="Source issue")
            target = index.resolve(target_key, label="Target issue")
            HierarchyEngine(index).link(source, target, link_type, action)
        return source, target
