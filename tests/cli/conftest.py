"""Fixtures for CLI tests."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner


@pytest.fixture
def cli_in_project(trellis_project: Path, cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> Generator[tuple[CliRunner, Path], None, None]:
    """Run CLI commands from inside the seeded project; returns (runner, project_root)."""
    monkeypatch.chdir(trellis_project)
    yield cli_runner, trellis_project
