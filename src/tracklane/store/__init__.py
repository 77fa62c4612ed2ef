"""Board Store - SQLite persistence for statuses, workflows, boards and issues."""

from tracklane.store.database import Database
from tracklane.store.exceptions import (
    BoardNotFoundError,
    DraftExistsError,
    IssueExistsError,
    IssueNotFoundError,
    NotADraftError,
    StatusInUseError,
    StatusNotFoundError,
    StoreError,
    WorkflowNotFoundError,
)
from tracklane.store.gateway import StoreIssueGateway
from tracklane.store.store import Board, BoardStore, Comment, WorkflowSummary

__all__ = [
    "Board",
    "BoardNotFoundError",
    "BoardStore",
    "Comment",
    "Database",
    "DraftExistsError",
    "IssueExistsError",
    "IssueNotFoundError",
    "NotADraftError",
    "StatusInUseError",
    "StatusNotFoundError",
    "StoreError",
    "StoreIssueGateway",
    "WorkflowNotFoundError",
    "WorkflowSummary",
]
