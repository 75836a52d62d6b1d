"""Foundational TypedDicts shared by config and record code."""

from __future__ import annotations

from typing import TypedDict


class ProjectConfig(TypedDict, total=False):
    """Shape of .trellis/config.json."""

    version: int
    default_reporter: str
    default_author: str
