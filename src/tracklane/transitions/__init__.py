"""Transitions - rule evaluation and post-functions for workflow moves."""

from tracklane.transitions.exceptions import (
    ConditionDenied,
    ConfigurationError,
    ExternalFailure,
    MoveInProgressError,
    TransitionError,
    ValidatorDenied,
)
from tracklane.transitions.models import (
    Actor,
    Allowed,
    Decision,
    DenialKind,
    Denied,
    Issue,
    PostFunctionReport,
    Subtask,
    TransitionRecord,
)
from tracklane.transitions.post_functions import PostFunctionError, PostFunctionRunner
from tracklane.transitions.validator import NO_SUCH_TRANSITION, TransitionValidator

__all__ = [
    "NO_SUCH_TRANSITION",
    "Actor",
    "Allowed",
    "ConditionDenied",
    "ConfigurationError",
    "Decision",
    "DenialKind",
    "Denied",
    "ExternalFailure",
    "Issue",
    "MoveInProgressError",
    "PostFunctionError",
    "PostFunctionReport",
    "PostFunctionRunner",
    "Subtask",
    "TransitionError",
    "TransitionRecord",
    "TransitionValidator",
    "ValidatorDenied",
]
