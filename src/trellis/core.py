"""Core service for the trellis issue tracker.

``TrellisDB`` is the single entry point used by the MCP server, the REST
data API and the CLI. Persistence is "read the whole collection, mutate in
memory, write the whole collection", so every operation runs under one
re-entrant lock and saves at most once, at the end.

Convention-based discovery: each project has a ``.trellis/`` directory
holding ``config.json`` and one JSON file per collection. The
``TRELLIS_DATA_DIR`` environment variable points at a data directory
directly and wins over discovery.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from trellis.comments import CommentStore, InMemoryCommentStore
from trellis.db_hierarchy import HierarchyMixin
from trellis.db_issues import IssuesMixin
from trellis.db_meta import MetaMixin
from trellis.models import Issue, IssueIndex
from trellis.store import RecordStore, write_atomic
from trellis.types.core import ProjectConfig

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Convention-based discovery
# ---------------------------------------------------------------------------

TRELLIS_DIR_NAME = ".trellis"
CONFIG_FILENAME = "config.json"
DATA_DIR_ENV = "TRELLIS_DATA_DIR"
DEFAULT_REPORTER = "user-1"


def find_trellis_root(start: Path | None = None) -> Path:
    """Walk up from start (default cwd) looking for .trellis/ directory.

    Returns the .trellis/ directory path (not the project root).
    """
    current = (start or Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        candidate = parent / TRELLIS_DIR_NAME
        if candidate.is_dir():
            return candidate
    msg = f"No {TRELLIS_DIR_NAME}/ directory found in {current} or any parent"
    raise FileNotFoundError(msg)


def resolve_data_dir(project_path: Path | None = None) -> Path:
    """Pick the data directory: env override, explicit project, then discovery."""
    env_dir = os.environ.get(DATA_DIR_ENV)
    if env_dir:
        return Path(env_dir)
    if project_path is not None:
        trellis_dir = project_path / TRELLIS_DIR_NAME
        if not trellis_dir.is_dir():
            msg = f"{trellis_dir} not found. Run 'trellis init' first."
            raise FileNotFoundError(msg)
        return trellis_dir
    return find_trellis_root()


def read_config(trellis_dir: Path) -> ProjectConfig:
    """Read .trellis/config.json. Returns defaults if missing or corrupt."""
    defaults = ProjectConfig(version=1, default_reporter=DEFAULT_REPORTER, default_author=DEFAULT_REPORTER)
    config_path = trellis_dir / CONFIG_FILENAME
    if not config_path.exists():
        return defaults
    try:
        loaded = json.loads(config_path.read_text())
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to read %s, using defaults: %s", config_path, exc)
        return defaults
    if not isinstance(loaded, dict):
        logger.warning("%s is not a JSON object, using defaults", config_path)
        return defaults
    result: ProjectConfig = {**defaults, **loaded}  # type: ignore[typeddict-item]
    return result


def write_config(trellis_dir: Path, config: dict[str, Any] | ProjectConfig) -> None:
    """Write .trellis/config.json."""
    write_atomic(trellis_dir / CONFIG_FILENAME, json.dumps(config, indent=2) + "\n")


# ---------------------------------------------------------------------------
# TrellisDB
# ---------------------------------------------------------------------------


class TrellisDB(IssuesMixin, HierarchyMixin, MetaMixin):
    """Flat-file issue store with invariant-preserving operations."""

    def __init__(
        self,
        data_dir: str | Path,
        *,
        default_reporter: str = DEFAULT_REPORTER,
        default_author: str | None = None,
        comments: CommentStore | None = None,
    ) -> None:
        self.data_dir = Path(data_dir)
        self.store = RecordStore(self.data_dir)
        self.default_reporter = default_reporter
        self.default_author = default_author or default_reporter
        self.comments = comments if comments is not None else InMemoryCommentStore()
        self._lock = threading.RLock()

    @classmethod
    def from_project(cls, project_path: Path | None = None, *, comments: CommentStore | None = None) -> TrellisDB:
        """Create a TrellisDB by discovering the data directory from project_path (or cwd)."""
        data_dir = resolve_data_dir(project_path)
        config = read_config(data_dir)
        db = cls(
            data_dir,
            default_reporter=config.get("default_reporter", DEFAULT_REPORTER),
            default_author=config.get("default_author"),
            comments=comments,
        )
        db.initialize()
        return db

    def initialize(self) -> None:
        """Create the data directory and any missing collection files."""
        with self._lock:
            self.store.initialize()

    @contextmanager
    def transaction(self) -> Iterator[IssueIndex]:
        """Load issues, yield them for in-memory mutation, then save once.

        Nothing is written if the body raises.
        """
        with self._lock:
            index = IssueIndex.from_records(self.store.load("issues"))
            yield index
            self.store.save("issues", index.to_records())

    def snapshot(self) -> IssueIndex:
        """Read-only view of the issue collection."""
        with self._lock:
            return IssueIndex.from_records(self.store.load("issues"))

    def __repr__(self) -> str:
        return f"TrellisDB({str(self.data_dir)!r})"


__all__ = [
    "CONFIG_FILENAME",
    "DATA_DIR_ENV",
    "TRELLIS_DIR_NAME",
    "Issue",
    "TrellisDB",
    "find_trellis_root",
    "read_config",
    "resolve_data_dir",
    "write_config",
]
