"""Error taxonomy shared by the store, the tool server, the API and the CLI.

Every error carries a short machine-readable ``code`` that ends up in the
``{"error": ..., "code": ...}`` envelope returned to callers.
"""

from __future__ import annotations


class TrellisError(Exception):
    """Base class for all expected, caller-visible failures."""

    code = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class NotFoundError(TrellisError, KeyError):
    """A referenced issue, project or parent does not exist."""

    code = "not_found"


class ValidationError(TrellisError, ValueError):
    """An argument is missing or has the wrong shape."""

    code = "validation_error"


class InvalidTypeError(TrellisError, ValueError):
    """Value outside a fixed enumeration (issue type, priority)."""

    code = "invalid_type"


class InvalidTransitionError(TrellisError, ValueError):
    code = "invalid_transition"


class InvalidLinkTypeError(TrellisError, ValueError):
    code = "invalid_link_type"


class CircularReferenceError(TrellisError, ValueError):
    """A hierarchy move would make an issue its own ancestor."""

    code = "circular_reference"


class UnknownToolError(TrellisError):
    code = "unknown_tool"
