"""Consistency checks over raw collections.

Pure functions — no MCP, FastAPI, or Click dependencies. Works on plain
record dicts so it can report on data written by any client, including
records too damaged to load into :class:`trellis.models.Issue`.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

_KEY_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]*-\d+$")


@dataclass
class IntegrityReport:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    type_counts: dict[str, int] = field(default_factory=dict)
    totals: dict[str, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "errors": self.errors,
            "warnings": self.warnings,
            "type_counts": self.type_counts,
            "totals": self.totals,
        }


def _label(issue: dict[str, Any]) -> str:
    return str(issue.get("key") or issue.get("id"))


def _check_hierarchy(issues: list[dict[str, Any]], by_id: dict[str, dict[str, Any]], report: IntegrityReport) -> None:
    for issue in issues:
        parent_id = issue.get("parentId")
        if parent_id:
            parent = by_id.get(parent_id)
            if parent is None:
                report.errors.append(f'{_label(issue)}: parentId "{parent_id}" does not exist')
            elif issue["id"] not in (parent.get("childIds") or []):
                report.errors.append(f"{_label(issue)}: parent {_label(parent)} doesn't have this issue in childIds")

        for child_id in issue.get("childIds") or []:
            child = by_id.get(child_id)
            if child is None:
                report.errors.append(f'{_label(issue)}: childId "{child_id}" does not exist')
            elif child.get("parentId") != issue["id"]:
                report.errors.append(f"{_label(issue)}: child {_label(child)} doesn't have this issue as parentId")

    for issue in issues:
        seen = {issue["id"]}
        current = by_id.get(issue.get("parentId") or "")
        while current is not None:
            if current["id"] in seen:
                report.errors.append(f"{_label(issue)}: parent chain contains a cycle")
                break
            seen.add(current["id"])
            current = by_id.get(current.get("parentId") or "")


def _check_links(issues: list[dict[str, Any]], by_id: dict[str, dict[str, Any]], report: IntegrityReport) -> None:
    for issue in issues:
        for blocked_id in issue.get("blocks") or []:
            blocked = by_id.get(blocked_id)
            if blocked is None:
                report.errors.append(f'{_label(issue)}: blocks "{blocked_id}" does not exist')
            elif issue["id"] not in (blocked.get("blockedBy") or []):
                report.errors.append(
                    f"{_label(issue)}: blocks {_label(blocked)} but {_label(blocked)} doesn't have this in blockedBy"
                )

        for blocker_id in issue.get("blockedBy") or []:
            blocker = by_id.get(blocker_id)
            if blocker is None:
                report.errors.append(f'{_label(issue)}: blockedBy "{blocker_id}" does not exist')
            elif issue["id"] not in (blocker.get("blocks") or []):
                report.errors.append(
                    f"{_label(issue)}: blockedBy {_label(blocker)} but {_label(blocker)} doesn't have this in blocks"
                )

        for related_id in issue.get("relatedTo") or []:
            related = by_id.get(related_id)
            if related is None:
                report.errors.append(f'{_label(issue)}: relatedTo "{related_id}" does not exist')
            elif issue["id"] not in (related.get("relatedTo") or []):
                report.warnings.append(f"{_label(issue)}: relatedTo {_label(related)} but relationship is not bidirectional")


def _check_keys(issues: list[dict[str, Any]], report: IntegrityReport) -> None:
    counts = Counter(i.get("key") for i in issues)
    for key, count in counts.items():
        if not key or not _KEY_PATTERN.match(key):
            report.errors.append(f'Malformed issue key: "{key}"')
        elif count > 1:
            report.errors.append(f"Duplicate issue key: {key} ({count} issues)")


def check_integrity(
    *,
    issues: list[dict[str, Any]],
    projects: list[dict[str, Any]],
    users: list[dict[str, Any]],
    sprints: list[dict[str, Any]],
    structures: list[dict[str, Any]],
) -> IntegrityReport:
    """Check relation symmetry and foreign keys across all collections."""
    report = IntegrityReport()
    by_id = {i["id"]: i for i in issues if "id" in i}
    project_ids = {p.get("id") for p in projects}
    user_ids = {u.get("id") for u in users}

    report.type_counts = dict(Counter(str(i.get("type")) for i in issues))
    report.totals = {
        "projects": len(projects),
        "users": len(users),
        "sprints": len(sprints),
        "issues": len(issues),
        "structures": len(structures),
    }

    for issue in issues:
        if "id" not in issue:
            report.errors.append(f"Issue without id: {issue.get('key', '?')}")

    _check_hierarchy(list(by_id.values()), by_id, report)
    _check_links(list(by_id.values()), by_id, report)
    _check_keys(issues, report)

    for structure in structures:
        name = structure.get("name", structure.get("id"))
        if structure.get("projectId") not in project_ids:
            report.errors.append(f'Structure "{name}": projectId "{structure.get("projectId")}" does not exist')
        for issue_id in structure.get("rootIssueIds") or []:
            if issue_id not in by_id:
                report.errors.append(f'Structure "{name}": rootIssueId "{issue_id}" does not exist')

    for sprint in sprints:
        if sprint.get("projectId") not in project_ids:
            report.errors.append(f'Sprint "{sprint.get("name")}": projectId "{sprint.get("projectId")}" does not exist')

    for project in projects:
        if project.get("lead") not in user_ids:
            report.errors.append(f'Project "{project.get("name")}": lead "{project.get("lead")}" does not exist')

    return report
