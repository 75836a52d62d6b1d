"""Shared pytest fixtures for trellis tests."""

from __future__ import annotations

import json
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from trellis.core import DATA_DIR_ENV, TRELLIS_DIR_NAME, TrellisDB, write_config

# ---------------------------------------------------------------------------
# Seed data
#
# PHX-1 Initiative
#   PHX-2 Epic
#     PHX-3 Story   (blocks PHX-4)
#       PHX-5 Subtask
#     PHX-4 Story
# PHX-6 Bug  <-> PHX-7 Bug  (relates_to)
# ORN-1 Task
# ---------------------------------------------------------------------------

TS = "2024-01-15T10:00:00.000Z"


def _issue(issue_id: str, key: str, title: str, issue_type: str, **overrides: Any) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": issue_id,
        "key": key,
        "title": title,
        "description": f"{title} description",
        "type": issue_type,
        "status": "To Do",
        "priority": "Medium",
        "assignee": None,
        "reporter": "user-1",
        "labels": [],
        "createdAt": TS,
        "updatedAt": TS,
        "storyPoints": None,
        "sprint": None,
        "version": None,
        "components": [],
        "dueDate": None,
        "startDate": None,
        "originalEstimate": None,
        "timeSpent": None,
        "remainingEstimate": None,
        "parentId": None,
        "childIds": [],
        "blockedBy": [],
        "blocks": [],
        "relatedTo": [],
    }
    record.update(overrides)
    return record


SEED: dict[str, list[dict[str, Any]]] = {
    "projects": [
        {"id": "proj-1", "key": "PHX", "name": "Phoenix", "description": "Storefront relaunch", "lead": "user-1", "createdAt": TS},
        {"id": "proj-2", "key": "ORN", "name": "Orion", "description": "Build tooling", "lead": "user-2", "createdAt": TS},
    ],
    "users": [
        {"id": "user-1", "displayName": "Alice Chen", "email": "alice@example.com", "avatarUrl": "https://example.com/alice.png"},
        {"id": "user-2", "displayName": "Bob Martinez", "email": "bob@example.com"},
        {"id": "user-3", "displayName": "Carol Singh", "email": "carol@acme.test"},
    ],
    "sprints": [
        {"id": "sprint-1", "name": "PHX Sprint 1", "projectId": "proj-1", "status": "active", "startDate": TS, "endDate": TS},
    ],
    "structures": [
        {"id": "structure-1", "name": "Phoenix roadmap", "projectId": "proj-1", "rootIssueIds": ["issue-1"]},
    ],
    "issues": [
        _issue(
            "issue-1", "PHX-1", "Platform relaunch", "Initiative",
            status="In Progress", priority="High", labels=["platform"], childIds=["issue-2"],
        ),
        _issue(
            "issue-2", "PHX-2", "Checkout revamp", "Epic",
            status="In Progress", priority="High", labels=["checkout"],
            parentId="issue-1", childIds=["issue-3", "issue-4"],
        ),
        _issue(
            "issue-3", "PHX-3", "Guest checkout", "Story",
            assignee="user-2", labels=["checkout", "frontend"], storyPoints=5, sprint="sprint-1",
            parentId="issue-2", childIds=["issue-5"], blocks=["issue-4"],
        ),
        _issue(
            "issue-4", "PHX-4", "Saved cards", "Story",
            status="In Review", priority="Low", assignee="user-1", storyPoints=3,
            parentId="issue-2", blockedBy=["issue-3"],
        ),
        _issue(
            "issue-5", "PHX-5", "Guest email field", "Subtask",
            status="Done", assignee="user-2", storyPoints=1, parentId="issue-3",
        ),
        _issue(
            "issue-6", "PHX-6", "Cart total rounding", "Bug",
            priority="Highest", assignee="user-3", labels=["frontend"], relatedTo=["issue-7"],
        ),
        _issue(
            "issue-7", "PHX-7", "Payment timeout", "Bug",
            status="Done", priority="High", storyPoints=2, relatedTo=["issue-6"],
        ),
        _issue("issue-8", "ORN-1", "Set up CI", "Task", priority="Lowest", assignee="user-1"),
    ],
}


def seed_data_dir(data_dir: Path) -> Path:
    """Write the seed collections into data_dir."""
    data_dir.mkdir(parents=True, exist_ok=True)
    for name, records in SEED.items():
        (data_dir / f"{name}.json").write_text(json.dumps(records, indent=2))
    return data_dir


def read_issues(data_dir: Path) -> dict[str, dict[str, Any]]:
    """Issues as stored on disk, keyed by issue key."""
    records = json.loads((data_dir / "issues.json").read_text())
    return {r["key"]: r for r in records}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _no_data_dir_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's TRELLIS_DATA_DIR from leaking into tests."""
    monkeypatch.delenv(DATA_DIR_ENV, raising=False)


@pytest.fixture
def trellis_project(tmp_path: Path) -> Path:
    """A tmp directory set up as a trellis project with seeded collections.

    Returns the project root (parent of .trellis/).
    """
    trellis_dir = tmp_path / TRELLIS_DIR_NAME
    seed_data_dir(trellis_dir)
    write_config(trellis_dir, {"version": 1, "default_reporter": "user-1", "default_author": "user-1"})
    return tmp_path


@pytest.fixture
def data_dir(trellis_project: Path) -> Path:
    return trellis_project / TRELLIS_DIR_NAME


@pytest.fixture
def db(data_dir: Path) -> TrellisDB:
    """TrellisDB over the seeded data directory."""
    return TrellisDB(data_dir)


@pytest.fixture
def empty_db(tmp_path: Path) -> TrellisDB:
    d = TrellisDB(tmp_path / "empty")
    d.initialize()
    return d


@pytest.fixture
def cli_runner() -> CliRunner:
    """Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def mcp_db(db: TrellisDB) -> Generator[TrellisDB, None, None]:
    """Patch the MCP module global with the seeded TrellisDB."""
    import trellis.mcp_server as mcp_mod

    original_db = mcp_mod.db
    mcp_mod.db = db
    yield db
    mcp_mod.db = original_db
