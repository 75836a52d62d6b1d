"""Flat-file record store: one JSON array per collection.

Pure read/write. Business rules live in ``TrellisDB`` and the hierarchy
engine; this layer only knows how to turn ``<data_dir>/<name>.json`` into a
list of dicts and back.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

COLLECTIONS: tuple[str, ...] = ("projects", "issues", "sprints", "users", "structures")


def write_atomic(path: Path, content: str) -> None:
    """Write content to path atomically via temp file + os.replace()."""
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp.write_text(content, encoding="utf-8")
        os.replace(tmp, path)
    except BaseException:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise


class RecordStore:
    """Loads and saves whole collections under ``data_dir``."""

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)

    def path_for(self, name: str) -> Path:
        if name not in COLLECTIONS:
            msg = f"Unknown collection: {name}. Valid collections: {', '.join(COLLECTIONS)}"
            raise ValueError(msg)
        return self.data_dir / f"{name}.json"

    def initialize(self) -> list[str]:
        """Create the data directory and any missing collection files.

        Returns the names of collections that were created.
        """
        self.data_dir.mkdir(parents=True, exist_ok=True)
        created: list[str] = []
        for name in COLLECTIONS:
            path = self.path_for(name)
            if not path.exists():
                write_atomic(path, "[]\n")
                created.append(name)
                logger.info("Created empty data file: %s", path)
        return created

    def load(self, name: str) -> list[dict[str, Any]]:
        """Return the records of a collection; a missing file is an empty collection."""
        path = self.path_for(name)
        if not path.exists():
            return []
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, list):
            msg = f"{path} must contain a JSON array, got {type(data).__name__}"
            raise ValueError(msg)
        return data

    def save(self, name: str, records: list[dict[str, Any]]) -> None:
        path = self.path_for(name)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        write_atomic(path, json.dumps(records, indent=2, ensure_ascii=False) + "\n")
        logger.debug("Saved %d records to %s", len(records), path)
