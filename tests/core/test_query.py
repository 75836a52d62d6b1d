"""Tests for the JQL subset parser and evaluator."""

from __future__ import annotations

import pytest

from trellis.core import TrellisDB
from trellis.models import Issue
from trellis.query import Condition, evaluate, normalize_status, parse_query, search


def _keys(issues: list[Issue]) -> list[str]:
    return [i.key for i in issues]


class TestParseQuery:
    def test_empty_query_has_no_conditions(self) -> None:
        assert parse_query("") == []
        assert parse_query("   ") == []

    def test_simple_comparison(self) -> None:
        assert parse_query("type = Bug") == [Condition("type", "=", "Bug")]

    def test_quoted_values(self) -> None:
        conditions = parse_query("""status = "In Progress" AND summary ~ 'guest checkout'""")
        assert Condition("status", "=", "In Progress") in conditions
        assert Condition("summary", "~", "guest checkout") in conditions

    @pytest.mark.parametrize("op", ["=", "!=", ">=", "<=", ">", "<", "~"])
    def test_every_operator(self, op: str) -> None:
        assert parse_query(f"storyPoints {op} 3") == [Condition("storypoints", op, "3")]

    def test_in_list_is_extracted_first(self) -> None:
        conditions = parse_query('status IN ("To Do", "In Progress") AND type = Story')
        assert conditions[0] == Condition("status", "IN", ("To Do", "In Progress"))
        assert conditions[1] == Condition("type", "=", "Story")
        assert len(conditions) == 2

    def test_in_keyword_is_case_insensitive(self) -> None:
        assert parse_query("priority in (High, Low)") == [Condition("priority", "IN", ("High", "Low"))]

    def test_field_names_are_lowercased(self) -> None:
        assert parse_query("Project = PHX")[0].field == "project"

    def test_unparseable_fragments_are_dropped(self) -> None:
        assert parse_query("ORDER BY created") == []
        assert parse_query("type = ") == []


class TestNormalizeStatus:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("todo", "To Do"), ("TO DO", "To Do"), ("inprogress", "In Progress"), ("in review", "In Review"), ("DONE", "Done")],
    )
    def test_aliases(self, raw: str, expected: str) -> None:
        assert normalize_status(raw) == expected

    def test_unknown_value_passes_through(self) -> None:
        assert normalize_status("Blocked") == "Blocked"


class TestEvaluate:
    def test_unknown_field_always_matches(self) -> None:
        issue = Issue(id="i", key="PHX-1", title="x")
        assert evaluate(issue, Condition("resolution", "=", "Fixed"))

    def test_null_actual_only_matches_not_equal(self) -> None:
        issue = Issue(id="i", key="PHX-1", title="x", assignee=None)
        assert not evaluate(issue, Condition("assignee", "=", "user-1"))
        assert not evaluate(issue, Condition("assignee", "~", "user"))
        assert not evaluate(issue, Condition("assignee", ">", "a"))
        assert evaluate(issue, Condition("assignee", "!=", "user-1"))
        assert evaluate(issue, Condition("assignee", "=", "null"))

    def test_null_actual_in_list(self) -> None:
        issue = Issue(id="i", key="PHX-1", title="x", assignee=None)
        assert not evaluate(issue, Condition("assignee", "IN", ("user-1", "user-2")))
        assert evaluate(issue, Condition("assignee", "IN", ("user-1", "null")))

    def test_status_alias_applies_to_expected_value(self) -> None:
        issue = Issue(id="i", key="PHX-1", title="x", status="In Progress")
        assert evaluate(issue, Condition("status", "=", "inprogress"))
        assert evaluate(issue, Condition("status", "IN", ("todo", "inprogress")))
        assert not evaluate(issue, Condition("status", "!=", "in progress"))

    def test_project_is_key_prefix(self) -> None:
        issue = Issue(id="i", key="PHX-12", title="x")
        assert evaluate(issue, Condition("project", "=", "phx"))
        assert not evaluate(issue, Condition("project", "=", "ORN"))

    def test_labels_use_membership(self) -> None:
        issue = Issue(id="i", key="PHX-1", title="x", labels=["checkout", "frontend"])
        assert evaluate(issue, Condition("labels", "=", "Frontend"))
        assert not evaluate(issue, Condition("labels", "=", "front"))
        assert evaluate(issue, Condition("labels", "~", "front"))
        assert evaluate(issue, Condition("labels", "!=", "backend"))
        assert evaluate(issue, Condition("labels", "IN", ("backend", "checkout")))

    def test_empty_labels_match_empty_in(self) -> None:
        issue = Issue(id="i", key="PHX-1", title="x", labels=[])
        assert not evaluate(issue, Condition("labels", "IN", ("checkout",)))
        assert evaluate(issue, Condition("labels", "IN", ("",)))

    def test_numeric_ordering(self) -> None:
        issue = Issue(id="i", key="PHX-1", title="x", story_points=5)
        assert evaluate(issue, Condition("storypoints", ">", "3"))
        assert evaluate(issue, Condition("storypoints", ">=", "5"))
        assert not evaluate(issue, Condition("storypoints", "<", "5"))
        # "10" sorts before "5" as text; the comparison must be numeric
        assert evaluate(issue, Condition("storypoints", "<=", "10"))
        assert evaluate(issue, Condition("storypoints", "=", "5"))

    def test_text_ordering_is_case_insensitive(self) -> None:
        issue = Issue(id="i", key="PHX-1", title="x")
        assert evaluate(issue, Condition("key", ">", "phx-0"))
        assert not evaluate(issue, Condition("key", "<", "PHX-0"))


class TestSearch:
    def test_empty_query_returns_everything_in_order(self, db: TrellisDB) -> None:
        assert _keys(db.search_issues("")) == ["PHX-1", "PHX-2", "PHX-3", "PHX-4", "PHX-5", "PHX-6", "PHX-7", "ORN-1"]

    def test_type_equals(self, db: TrellisDB) -> None:
        assert _keys(db.search_issues("type = Bug")) == ["PHX-6", "PHX-7"]
        assert _keys(db.search_issues("issuetype = bug")) == ["PHX-6", "PHX-7"]

    def test_status_in(self, db: TrellisDB) -> None:
        result = db.search_issues('status IN ("To Do", "In Progress")')
        assert _keys(result) == ["PHX-1", "PHX-2", "PHX-3", "PHX-6", "ORN-1"]
        assert all(i.status in ("To Do", "In Progress") for i in result)

    def test_type_contains(self, db: TrellisDB) -> None:
        assert _keys(db.search_issues("type ~ Story")) == ["PHX-3", "PHX-4"]

    def test_conditions_are_anded(self, db: TrellisDB) -> None:
        assert _keys(db.search_issues("project = PHX AND status = Done")) == ["PHX-5", "PHX-7"]
        assert _keys(db.search_issues("project = PHX AND status = Done AND type = Bug")) == ["PHX-7"]

    def test_or_is_not_supported(self, db: TrellisDB) -> None:
        # Both comparisons are still picked up and ANDed.
        assert db.search_issues("type = Bug OR type = Epic") == []

    def test_malformed_query_widens_the_result(self, db: TrellisDB) -> None:
        everything = db.search_issues("")
        assert db.search_issues("this is not jql") == everything
        assert db.search_issues("type = Bug AND (((") == db.search_issues("type = Bug")
        assert db.search_issues("colour = red") == everything

    def test_assignee_and_summary(self, db: TrellisDB) -> None:
        assert _keys(db.search_issues("assignee = user-2")) == ["PHX-3", "PHX-5"]
        assert _keys(db.search_issues('summary ~ "guest"')) == ["PHX-3", "PHX-5"]

    def test_parent(self, db: TrellisDB) -> None:
        assert _keys(db.search_issues("parent = issue-2")) == ["PHX-3", "PHX-4"]

    def test_search_function_preserves_order(self) -> None:
        issues = [Issue(id=str(n), key=f"PHX-{n}", title="x", type="Bug") for n in (3, 1, 2)]
        assert _keys(search("type = bug", issues)) == ["PHX-3", "PHX-1", "PHX-2"]
