"""Exceptions for the Transitions module."""


class TransitionError(Exception):
    """Base exception for transition errors."""


class ConfigurationError(TransitionError):
    """No transition exists for the requested status pair.

    Signals a mismatch between the board and its workflow (e.g. a stale
    column cache), not a business rule.
    """


class ConditionDenied(TransitionError):
    """A transition condition rejected the acting user."""


class ValidatorDenied(TransitionError):
    """A transition validator rejected the issue's current field state."""


class ExternalFailure(TransitionError):
    """The status update could not be persisted."""


class MoveInProgressError(TransitionError):
    """Another move of the same issue has not finished yet."""
