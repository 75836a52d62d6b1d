"""JQL subset: parse a query string into conditions and evaluate them.

Grammar handled here is deliberately small. Conditions are joined by AND
only; ``AND`` itself is never parsed, the scanner simply picks out every
``field op value`` it can find. Anything it cannot read produces no
condition, so a malformed query widens the result set instead of failing.

Two passes, in this order:

1. ``field IN (v1, v2, ...)`` expressions are extracted and removed from
   the text. The comparison scanner would otherwise read ``IN`` lists as
   garbage.
2. ``field op value`` with op in ``= != >= <= > < ~`` and value a double
   quoted string, single quoted string or bare token.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from trellis.models import ISSUE_ATTRS, Issue

_IN_PATTERN = re.compile(r"(\w+)\s+IN\s*\(([^)]+)\)", re.IGNORECASE)
_COMPARISON_PATTERN = re.compile(r"""(\w+)\s*(=|!=|>=|<=|>|<|~)\s*(?:"([^"]+)"|'([^']+)'|(\S+))""")

# Query field name (lowercased) -> record field. "project" is derived from the key prefix.
FIELD_ALIASES: dict[str, str] = {
    "type": "type",
    "issuetype": "type",
    "status": "status",
    "priority": "priority",
    "assignee": "assignee",
    "reporter": "reporter",
    "sprint": "sprint",
    "labels": "labels",
    "label": "labels",
    "storypoints": "storyPoints",
    "key": "key",
    "summary": "title",
    "title": "title",
    "parent": "parentId",
    "project": "project",
}

STATUS_ALIASES: dict[str, str] = {
    "todo": "To Do",
    "to do": "To Do",
    "inprogress": "In Progress",
    "in progress": "In Progress",
    "inreview": "In Review",
    "in review": "In Review",
    "done": "Done",
}

_NULL_LITERALS = frozenset({"", "null"})


@dataclass(frozen=True)
class Condition:
    field: str
    operator: str
    value: str | tuple[str, ...]


def _strip_quotes(token: str) -> str:
    return token.strip().replace('"', "").replace("'", "")


def parse_query(query: str) -> list[Condition]:
    """Parse *query* into conditions. Unreadable fragments are dropped."""
    if not query or not query.strip():
        return []

    conditions: list[Condition] = []
    remaining = query
    for match in _IN_PATTERN.finditer(query):
        values = tuple(_strip_quotes(v) for v in match.group(2).split(","))
        conditions.append(Condition(match.group(1).lower(), "IN", values))
        remaining = remaining.replace(match.group(0), "", 1)

    for match in _COMPARISON_PATTERN.finditer(remaining):
        value = match.group(3) or match.group(4) or match.group(5)
        conditions.append(Condition(match.group(1).lower(), match.group(2), value))
    return conditions


def normalize_status(value: str) -> str:
    return STATUS_ALIASES.get(value.lower(), value)


def _actual_value(issue: Issue, field: str) -> Any:
    if field == "project":
        return issue.project_key
    return getattr(issue, ISSUE_ATTRS[field])


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _ordered(actual: Any, expected: str, operator: str) -> bool:
    """Ordering comparison: numeric when both sides are numbers, else case-folded text."""
    left: Any = _as_number(actual)
    right: Any = _as_number(expected)
    if left is None or right is None:
        left, right = _stringify(actual).lower(), expected.lower()
    if operator == ">":
        return bool(left > right)
    if operator == "<":
        return bool(left < right)
    if operator == ">=":
        return bool(left >= right)
    return bool(left <= right)


def evaluate(issue: Issue, condition: Condition) -> bool:
    """Return whether *issue* satisfies a single condition.

    Unknown fields always match. A null actual value only satisfies ``!=``
    or an explicit empty/``null`` expectation.
    """
    field = FIELD_ALIASES.get(condition.field)
    if field is None:
        return True
    actual = _actual_value(issue, field)

    expected = condition.value
    if field == "status":
        expected = tuple(normalize_status(v) for v in expected) if isinstance(expected, tuple) else normalize_status(expected)

    if condition.operator == "IN":
        candidates = expected if isinstance(expected, tuple) else (expected,)
        wanted = {v.lower() for v in candidates}
        if actual is None or actual == []:
            return bool(wanted & _NULL_LITERALS)
        if isinstance(actual, list):
            return any(_stringify(a).lower() in wanted for a in actual)
        return _stringify(actual).lower() in wanted

    expected_str = expected if isinstance(expected, str) else ",".join(expected)
    if actual is None:
        return condition.operator == "!=" or expected_str.lower() in _NULL_LITERALS

    expected_lower = expected_str.lower()
    if isinstance(actual, list):
        members = [_stringify(a).lower() for a in actual]
        if condition.operator == "=":
            return expected_lower in members
        if condition.operator == "!=":
            return expected_lower not in members
        if condition.operator == "~":
            return any(expected_lower in m for m in members)
        return True

    actual_lower = _stringify(actual).lower()
    if condition.operator == "=":
        return actual_lower == expected_lower
    if condition.operator == "!=":
        return actual_lower != expected_lower
    if condition.operator == "~":
        return expected_lower in actual_lower
    return _ordered(actual, expected_str, condition.operator)


def matches(issue: Issue, conditions: Sequence[Condition]) -> bool:
    return all(evaluate(issue, c) for c in conditions)


def search(query: str, issues: Iterable[Issue]) -> list[Issue]:
    """Filter *issues* by *query*, preserving their order."""
    conditions = parse_query(query)
    return [issue for issue in issues if matches(issue, conditions)]
