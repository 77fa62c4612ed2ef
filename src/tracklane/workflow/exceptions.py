"""Exceptions for the Workflow module."""


class WorkflowError(Exception):
    """Base exception for workflow errors."""


class InvalidWorkflowError(WorkflowError):
    """Workflow configuration violates a structural rule."""


class StepNotFoundError(WorkflowError):
    """Step with given ID is not part of the workflow."""
