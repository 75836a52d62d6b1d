"""Trellis — hierarchical issue tracker with a Jira-compatible MCP tool server."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("trellis-tracker")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from trellis.core import TrellisDB
from trellis.models import Issue

__all__ = ["Issue", "TrellisDB", "__version__"]
