# IMPORT CONSTRAINT: types/ modules must only import from typing, stdlib, and each other.
# NEVER import from core.py, db_base.py, or any mixin: it creates circular imports.
"""Typed return-value contracts for trellis tool responses and config."""

from __future__ import annotations

from trellis.types.api import (
    ApiComment,
    ApiIssue,
    ApiIssueFields,
    ApiProject,
    ApiUser,
    ErrorResponse,
    SearchResponse,
)
from trellis.types.core import ProjectConfig

__all__ = [
    "ApiComment",
    "ApiIssue",
    "ApiIssueFields",
    "ApiProject",
    "ApiUser",
    "ErrorResponse",
    "ProjectConfig",
    "SearchResponse",
]
