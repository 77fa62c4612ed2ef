"""Data models for the Transitions module."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from tracklane.transitions.exceptions import (
    ConditionDenied,
    ConfigurationError,
    TransitionError,
    ValidatorDenied,
)
from tracklane.workflow import Transition

# Issue attributes that validators may reference by name.
ISSUE_FIELDS = frozenset(
    {
        "key",
        "summary",
        "assignee",
        "reporter",
        "story_points",
        "resolution",
        "issue_type",
        "priority",
    }
)

_MISSING = object()


@dataclass(frozen=True)
class Actor:
    """The user attempting a transition."""

    id: str
    display_name: str = ""
    roles: frozenset[str] = frozenset()
    groups: frozenset[str] = frozenset()
    permissions: frozenset[str] = frozenset()


@dataclass(frozen=True)
class Subtask:
    id: str
    status: str


@dataclass(frozen=True)
class Issue:
    """The issue fields that board placement and transition rules read.

    Attributes:
        id: The issue's unique ID.
        status: Current status ID.
        key: Human-readable key (e.g. "PROJ-12").
        summary: One-line title.
        assignee: Assigned user (ID or display name), if any.
        reporter: Reporting user, if any.
        story_points: Estimate, if any.
        resolution: Resolution name once resolved.
        fields: Custom field values keyed by field name.
        subtasks: Sub-task IDs with their current status.
        updated_at: Last modification time.
    """

    id: str
    status: str
    key: str = ""
    summary: str = ""
    assignee: str | None = None
    reporter: str | None = None
    story_points: float | None = None
    resolution: str | None = None
    issue_type: str = "Task"
    priority: str = "Medium"
    project_id: str | None = None
    fields: Mapping[str, Any] = field(default_factory=dict)
    subtasks: tuple[Subtask, ...] = ()
    updated_at: datetime | None = None

    def with_status(self, status: str) -> Issue:
        """Return a copy of the issue in another status."""
        return replace(self, status=status)

    def field_value(self, name: str) -> Any:
        """Look up a built-in attribute or custom field.

        Raises:
            KeyError: If the issue has no field with that name.
        """
        if name in ISSUE_FIELDS:
            return getattr(self, name)
        value = self.fields.get(name, _MISSING)
        if value is _MISSING:
            raise KeyError(name)
        return value

    def has_field(self, name: str) -> bool:
        return name in ISSUE_FIELDS or name in self.fields


class DenialKind(StrEnum):
    """Why a transition was denied."""

    CONFIGURATION = "configuration"
    CONDITION = "condition"
    VALIDATOR = "validator"


@dataclass(frozen=True)
class Allowed:
    """The transition may be taken now."""

    transition: Transition

    @property
    def allowed(self) -> bool:
        return True


@dataclass(frozen=True)
class Denied:
    """The transition may not be taken; ``reason`` is user-facing."""

    reason: str
    kind: DenialKind
    transition: Transition | None = None

    @property
    def allowed(self) -> bool:
        return False

    def to_error(self) -> TransitionError:
        """Build the exception matching this denial."""
        match self.kind:
            case DenialKind.CONFIGURATION:
                return ConfigurationError(self.reason)
            case DenialKind.CONDITION:
                return ConditionDenied(self.reason)
            case DenialKind.VALIDATOR:
                return ValidatorDenied(self.reason)


Decision = Allowed | Denied


@dataclass(frozen=True)
class TransitionRecord:
    """A transition taken by an issue, for activity feeds."""

    issue_id: str
    from_status: str
    to_status: str
    actor_id: str
    transition_id: str | None = None
    transition_name: str | None = None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass
class PostFunctionReport:
    """Outcome of running a transition's post-functions.

    Attributes:
        applied: Types of post-functions that completed.
        failures: One message per post-function that failed.
    """

    applied: list[str] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures
