"""Custom exceptions for the Board Store."""


class StoreError(Exception):
    """Base exception for Board Store errors."""


class StatusNotFoundError(StoreError):
    """Status with given ID does not exist."""


class StatusInUseError(StoreError):
    """Cannot delete a status referenced by an issue or workflow step."""


class WorkflowNotFoundError(StoreError):
    """Workflow with given ID does not exist."""


class DraftExistsError(StoreError):
    """A draft already exists for this workflow."""


class NotADraftError(StoreError):
    """Operation requires a draft workflow."""


class BoardNotFoundError(StoreError):
    """Board with given ID does not exist."""


class IssueNotFoundError(StoreError):
    """Issue with given ID does not exist."""


class IssueExistsError(StoreError):
    """Issue with given key already exists."""
