"""Collaborator protocols - persistence, history and notification boundaries.

The board core never talks to a datastore directly. The local SQL store, the
remote backend client and test doubles all implement these.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from tracklane.transitions.models import TransitionRecord


@runtime_checkable
class IssueStatusWriter(Protocol):
    """Persists an issue's new status."""

    async def update_issue_status(self, issue_id: str, status_id: str) -> bool | None:
        """Write the status. Raising or returning False means the write failed."""
        ...


@runtime_checkable
class IssueFieldWriter(Protocol):
    async def update_issue_fields(self, issue_id: str, changes: Mapping[str, Any]) -> None:
        """Apply a partial update to an issue's fields."""
        ...


@runtime_checkable
class CommentSink(Protocol):
    async def add_comment(self, issue_id: str, author_id: str, body: str) -> None:
        """Post a comment on an issue."""
        ...


@runtime_checkable
class HistoryRecorder(Protocol):
    async def record_transition(self, record: TransitionRecord) -> None:
        """Append a transition to the issue's activity history."""
        ...


@runtime_checkable
class Notifier(Protocol):
    def emit_notification(
        self, issue_id: str, message: str, project_id: str | None = None
    ) -> None:
        """Send a user-facing notification about an issue."""
        ...
