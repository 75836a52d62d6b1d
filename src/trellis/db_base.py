"""Shared Protocol for the TrellisDB mixins."""

from __future__ import annotations

import threading
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from trellis.comments import CommentStore
    from trellis.models import Issue, IssueIndex
    from trellis.store import RecordStore


class DBMixinProtocol(Protocol):
    """Attributes and methods that the mixins access via self.

    Actual implementations are provided by TrellisDB at composition time.
    """

    store: RecordStore
    comments: CommentStore
    default_reporter: str
    default_author: str
    _lock: threading.RLock

    def transaction(self) -> AbstractContextManager[IssueIndex]: ...

    def snapshot(self) -> IssueIndex: ...

    def get_issue(self, id_or_key: str) -> Issue: ...
