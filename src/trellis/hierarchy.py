"""Hierarchy and link engine.

The only code path that mutates ``parent_id``/``child_ids`` and the
``blocks``/``blocked_by``/``related_to`` lists. Every method validates
first and mutates second, so a raised error leaves the index untouched.
Persistence is the caller's job (see ``TrellisDB.transaction``).
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass

from trellis.errors import CircularReferenceError, InvalidLinkTypeError, ValidationError
from trellis.models import Issue, IssueIndex, now_iso

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkFields:
    """Attribute on the source issue and its mirror on the target."""

    forward: str
    mirror: str


LINK_TYPES: dict[str, LinkFields] = {
    "blocks": LinkFields(forward="blocks", mirror="blocked_by"),
    "blocked_by": LinkFields(forward="blocked_by", mirror="blocks"),
    "relates_to": LinkFields(forward="related_to", mirror="related_to"),
}
LINK_ACTIONS = frozenset({"create", "remove"})


def _append_unique(values: list[str], item: str) -> None:
    if item not in values:
        values.append(item)


def _discard(values: list[str], item: str) -> None:
    while item in values:
        values.remove(item)


class HierarchyEngine:
    """Invariant-preserving mutations over one :class:`IssueIndex`."""

    def __init__(self, index: IssueIndex) -> None:
        self.index = index

    # -- queries -------------------------------------------------------------

    def ancestors(self, issue: Issue) -> list[Issue]:
        """Parent chain from the direct parent upward.

        Stops at a missing parent or at a repeated id, so corrupt data with an
        existing cycle cannot loop forever.
        """
        chain: list[Issue] = []
        seen = {issue.id}
        current = self.index.get(issue.parent_id)
        while current is not None and current.id not in seen:
            chain.append(current)
            seen.add(current.id)
            current = self.index.get(current.parent_id)
        return chain

    def is_ancestor(self, candidate: Issue, issue: Issue) -> bool:
        """True if *candidate* appears on *issue*'s parent chain."""
        return any(a.id == candidate.id for a in self.ancestors(issue))

    def children(self, issue: Issue) -> list[Issue]:
        return [c for c in (self.index.get(cid) for cid in issue.child_ids) if c is not None]

    def descendants(self, issue: Issue, depth: int | None = None) -> list[Issue]:
        """Breadth-first descendants, at most *depth* levels down (all if None)."""
        if depth is not None and depth <= 0:
            return []
        result: list[Issue] = []
        seen = {issue.id}
        queue: deque[tuple[Issue, int]] = deque([(issue, 0)])
        while queue:
            node, level = queue.popleft()
            if depth is not None and level >= depth:
                continue
            for child in self.children(node):
                if child.id in seen:
                    continue
                seen.add(child.id)
                result.append(child)
                queue.append((child, level + 1))
        return result

    # -- mutations -----------------------------------------------------------

    def move(self, issue: Issue, new_parent: Issue | None) -> list[Issue]:
        """Re-parent *issue* under *new_parent* (root level when None).

        Returns every issue whose relation fields changed.
        """
        if new_parent is not None:
            if new_parent.id == issue.id:
                msg = f"Cannot move {issue.key} under itself"
                raise CircularReferenceError(msg)
            if self.is_ancestor(issue, new_parent):
                msg = f"Cannot move {issue.key} to its own descendant {new_parent.key}"
                raise CircularReferenceError(msg)

        timestamp = now_iso()
        touched: list[Issue] = [issue]
        old_parent = self.index.get(issue.parent_id)
        if old_parent is not None:
            _discard(old_parent.child_ids, issue.id)
            touched.append(old_parent)

        if new_parent is not None:
            issue.parent_id = new_parent.id
            _append_unique(new_parent.child_ids, issue.id)
            if all(t.id != new_parent.id for t in touched):
                touched.append(new_parent)
        else:
            issue.parent_id = None

        issue.touch(timestamp)
        logger.info(
            "Moved %s from %s to %s",
            issue.key,
            old_parent.key if old_parent else "root",
            new_parent.key if new_parent else "root",
        )
        return touched

    def attach(self, issue: Issue, parent: Issue) -> None:
        """Set the parent of a freshly created issue that has no relations yet."""
        issue.parent_id = parent.id
        _append_unique(parent.child_ids, issue.id)

    def link(self, source: Issue, target: Issue, link_type: str, action: str) -> None:
        """Create or remove a link, updating both sides.

        Creating an existing link and removing a missing one are no-ops.
        """
        fields = LINK_TYPES.get(link_type.lower())
        if fields is None:
            msg = f"Invalid link type: {link_type}. Valid types: {', '.join(LINK_TYPES)}"
            raise InvalidLinkTypeError(msg)
        if action not in LINK_ACTIONS:
            msg = f"Invalid link action: {action}. Valid actions: create, remove"
            raise ValidationError(msg)
        if source.id == target.id:
            msg = f"Cannot link {source.key} to itself"
            raise ValidationError(msg)

        forward: list[str] = getattr(source, fields.forward)
        mirror: list[str] = getattr(target, fields.mirror)
        if action == "create":
            _append_unique(forward, target.id)
            _append_unique(mirror, source.id)
        else:
            _discard(mirror, source.id)
            _discard(forward, target.id)

        timestamp = now_iso()
        source.touch(timestamp)
        target.touch(timestamp)
        logger.info("Link %s %s %s -> %s", action, link_type, source.key, target.key)
