"""CLI for the trellis issue tracker.

Convention-based: discovers .trellis/ by walking up from cwd, unless
TRELLIS_DATA_DIR points at a data directory.

Usage:
    trellis init                                  # Initialize .trellis/ in cwd
    trellis show PHX-1                            # Show issue details
    trellis search 'type = Bug AND status = Done' # Search with the JQL subset
    trellis create PHX Task "Write docs"          # Create issue
    trellis transition PHX-1 "start progress"     # Change status
    trellis move PHX-3 --parent PHX-1             # Reparent (omit --parent for root)
    trellis link PHX-2 PHX-3 blocks               # Link issues (--remove to unlink)
    trellis validate                              # Check data integrity
    trellis serve --port 3000                     # REST data API
"""

from __future__ import annotations

import json as json_mod
import sys
from pathlib import Path
from typing import NoReturn

import click

from trellis import __version__
from trellis.core import (
    DEFAULT_REPORTER,
    TRELLIS_DIR_NAME,
    TrellisDB,
    write_config,
)
from trellis.errors import TrellisError
from trellis.formatters import format_issue_for_api
from trellis.hierarchy import LINK_TYPES
from trellis.mcp_tools.common import _MAX_RESULTS
from trellis.models import ISSUE_TYPES, PRIORITIES, Issue
from trellis.store import RecordStore


def _get_db() -> TrellisDB:
    """Discover the data directory and return a TrellisDB."""
    try:
        return TrellisDB.from_project()
    except FileNotFoundError:
        click.echo(f"No {TRELLIS_DIR_NAME}/ found. Run 'trellis init' first.", err=True)
        sys.exit(1)


def _fail(exc: Exception) -> NoReturn:
    click.echo(f"Error: {exc}", err=True)
    sys.exit(1)


def _summary_line(issue: Issue) -> str:
    return f"{issue.key:<10} {issue.type:<10} {issue.status:<12} {issue.title}"


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="trellis")
def cli() -> None:
    """Trellis — hierarchical issue tracker with a Jira-compatible MCP server."""


@cli.command()
@click.option("--reporter", default=DEFAULT_REPORTER, help="Default reporter for new issues")
def init(reporter: str) -> None:
    """Initialize .trellis/ in the current directory."""
    cwd = Path.cwd()
    trellis_dir = cwd / TRELLIS_DIR_NAME

    if trellis_dir.exists():
        click.echo(f"{TRELLIS_DIR_NAME}/ already exists in {cwd}")
        # Still ensure every collection file exists
        RecordStore(trellis_dir).initialize()
        return

    trellis_dir.mkdir()
    write_config(trellis_dir, {"version": 1, "default_reporter": reporter, "default_author": reporter})
    created = RecordStore(trellis_dir).initialize()

    click.echo(f"Initialized {TRELLIS_DIR_NAME}/ in {cwd}")
    click.echo(f"  Collections: {', '.join(created)}")
    click.echo(f"  Reporter: {reporter}")


@cli.command()
@click.argument("key")
@click.option("--json", "as_json", is_flag=True, help="Output the Jira-shaped issue as JSON")
def show(key: str, as_json: bool) -> None:
    """Show issue details."""
    db = _get_db()
    try:
        issue = db.get_issue(key)
    except TrellisError as e:
        _fail(e)

    if as_json:
        click.echo(json_mod.dumps(format_issue_for_api(issue), indent=2, default=str))
        return

    click.echo(f"Key:      {issue.key}")
    click.echo(f"Summary:  {issue.title}")
    click.echo(f"Type:     {issue.type}")
    click.echo(f"Status:   {issue.status}")
    click.echo(f"Priority: {issue.priority}")
    if issue.assignee:
        click.echo(f"Assignee: {issue.assignee}")
    click.echo(f"Reporter: {issue.reporter}")
    if issue.labels:
        click.echo(f"Labels:   {', '.join(issue.labels)}")
    if issue.sprint:
        sprint_names = {s.id: s.name for s in db.list_sprints()}
        click.echo(f"Sprint:   {sprint_names.get(issue.sprint, issue.sprint)}")
    snapshot = db.snapshot()
    parent = snapshot.get(issue.parent_id)
    if parent is not None:
        click.echo(f"Parent:   {parent.key}")
    children = [c.key for c in (snapshot.get(cid) for cid in issue.child_ids) if c is not None]
    if children:
        click.echo(f"Children: {', '.join(children)}")
    for label, ids in (("Blocks", issue.blocks), ("Blocked by", issue.blocked_by), ("Related", issue.related_to)):
        keys = [i.key for i in (snapshot.get(x) for x in ids) if i is not None]
        if keys:
            click.echo(f"{label + ':':<10}{', '.join(keys)}")
    click.echo(f"Created:  {issue.created_at}")
    click.echo(f"Updated:  {issue.updated_at}")
    if issue.description:
        click.echo(f"\n{issue.description}")


@cli.command()
@click.argument("jql", default="")
@click.option("--start-at", default=0, type=click.IntRange(min=0), help="Index of the first result")
@click.option("--max-results", default=_MAX_RESULTS, type=click.IntRange(min=0), help="Page size")
@click.option("--json", "as_json", is_flag=True, help="Output the search response as JSON")
def search(jql: str, start_at: int, max_results: int, as_json: bool) -> None:
    """Search issues with the JQL subset (AND-joined conditions)."""
    matched = _get_db().search_issues(jql)
    page = matched[start_at : start_at + max_results]

    if as_json:
        payload = {
            "issues": [format_issue_for_api(i) for i in page],
            "total": len(matched),
            "startAt": start_at,
            "maxResults": max_results,
        }
        click.echo(json_mod.dumps(payload, indent=2, default=str))
        return

    for issue in page:
        click.echo(_summary_line(issue))
    click.echo(f"\n{len(page)} of {len(matched)} issues")


@cli.command()
@click.argument("project")
@click.argument("issue_type", metavar="TYPE", type=click.Choice(ISSUE_TYPES, case_sensitive=False))
@click.argument("summary")
@click.option("--priority", "-p", default=None, type=click.Choice(PRIORITIES, case_sensitive=False), help="Priority (default Medium)")
@click.option("--description", "-d", default="", help="Description")
@click.option("--assignee", default=None, help="Assignee account id")
@click.option("--parent", default=None, help="Parent issue key")
@click.option("--label", "-l", multiple=True, help="Labels (repeatable)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def create(
    project: str,
    issue_type: str,
    summary: str,
    priority: str | None,
    description: str,
    assignee: str | None,
    parent: str | None,
    label: tuple[str, ...],
    as_json: bool,
) -> None:
    """Create a new issue in PROJECT."""
    try:
        issue = _get_db().create_issue(
            project,
            issue_type,
            summary,
            description=description,
            priority=priority,
            assignee=assignee,
            labels=list(label),
            parent_key=parent,
        )
    except TrellisError as e:
        _fail(e)
    if as_json:
        click.echo(json_mod.dumps({"id": issue.id, "key": issue.key}, indent=2))
    else:
        click.echo(f"Created {issue.key}: {issue.title}")


@cli.command()
@click.argument("key")
@click.argument("name")
def transition(key: str, name: str) -> None:
    """Move KEY to another status (e.g. 'start progress', 'Done')."""
    try:
        issue = _get_db().transition_issue(key, name)
    except TrellisError as e:
        _fail(e)
    click.echo(f"{issue.key}: {issue.status}")


@cli.command()
@click.argument("key")
@click.option("--parent", default=None, help="New parent key (omit to move to the root)")
def move(key: str, parent: str | None) -> None:
    """Reparent an issue."""
    try:
        issue = _get_db().move_issue(key, parent)
    except TrellisError as e:
        _fail(e)
    if parent:
        click.echo(f"Moved {issue.key} under {parent}")
    else:
        click.echo(f"Moved {issue.key} to the root")


@cli.command()
@click.argument("source")
@click.argument("target")
@click.argument("link_type", metavar="TYPE", type=click.Choice(sorted(LINK_TYPES)))
@click.option("--remove", is_flag=True, help="Remove the link instead of creating it")
def link(source: str, target: str, link_type: str, remove: bool) -> None:
    """Link SOURCE to TARGET (blocks, blocked_by, relates_to)."""
    action = "remove" if remove else "create"
    try:
        _get_db().link_issues(source, target, link_type, action)
    except TrellisError as e:
        _fail(e)
    verb = "Unlinked" if remove else "Linked"
    click.echo(f"{verb} {source} {link_type} {target}")


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output the report as JSON")
def validate(as_json: bool) -> None:
    """Check relation symmetry and references across all collections."""
    try:
        report = _get_db().check_integrity()
    except ValueError as e:
        _fail(e)

    if as_json:
        click.echo(json_mod.dumps(report.to_dict(), indent=2))
    else:
        totals = ", ".join(f"{n} {name}" for name, n in report.totals.items())
        click.echo(f"Checked {totals}")
        for issue_type, count in sorted(report.type_counts.items()):
            click.echo(f"  {issue_type}: {count}")
        for warning in report.warnings:
            click.echo(f"WARNING: {warning}")
        for error in report.errors:
            click.echo(f"ERROR: {error}")
        if report.ok:
            click.echo("All integrity checks passed")
        else:
            click.echo(f"{len(report.errors)} error(s), {len(report.warnings)} warning(s)")

    if not report.ok:
        sys.exit(1)


@cli.command()
@click.option("--port", default=3000, type=int, help="Port to listen on")
def serve(port: int) -> None:
    """Serve the REST data API."""
    from trellis.api import main as api_main

    api_main(port=port, db=_get_db())


if __name__ == "__main__":
    cli()
