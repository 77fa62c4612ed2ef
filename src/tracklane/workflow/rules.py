"""Transition rule variants: conditions, validators and post-functions.

Rules are stored as JSON records with a ``type`` key. Each kind is a closed
set of pydantic models discriminated on ``type``; a record with an unknown
type fails to parse instead of being silently ignored.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from tracklane.workflow.exceptions import InvalidWorkflowError


class _Rule(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# Conditions


class OnlyAssignee(_Rule):
    """Only the current assignee may take the transition."""

    type: Literal["only_assignee"] = "only_assignee"


class OnlyReporter(_Rule):
    """Only the reporter may take the transition."""

    type: Literal["only_reporter"] = "only_reporter"


class UserInGroup(_Rule):
    type: Literal["user_in_group"] = "user_in_group"
    group: str = Field(..., min_length=1)


class UserInRole(_Rule):
    type: Literal["user_in_role"] = "user_in_role"
    role: str = Field(..., min_length=1)


class PermissionCheck(_Rule):
    type: Literal["permission_check"] = "permission_check"
    permission: str = Field(..., min_length=1)


Condition = Annotated[
    OnlyAssignee | OnlyReporter | UserInGroup | UserInRole | PermissionCheck,
    Field(discriminator="type"),
]


# Validators


class FieldRequired(_Rule):
    """Field must be present on the issue and not None."""

    type: Literal["field_required"] = "field_required"
    field: str = Field(..., min_length=1)
    message: str | None = None


class FieldNotEmpty(_Rule):
    """Field must hold a non-blank value."""

    type: Literal["field_not_empty"] = "field_not_empty"
    field: str = Field(..., min_length=1)
    message: str | None = None


class SubtasksClosed(_Rule):
    """Every sub-task must sit in a ``done`` category status."""

    type: Literal["subtasks_closed"] = "subtasks_closed"
    message: str | None = None


class ResolutionSet(_Rule):
    type: Literal["resolution_set"] = "resolution_set"
    message: str | None = None


class CustomFieldValue(_Rule):
    """Custom field must equal ``value`` (compared as strings)."""

    type: Literal["custom_field_value"] = "custom_field_value"
    field: str = Field(..., min_length=1)
    value: str
    message: str | None = None


Validator = Annotated[
    FieldRequired | FieldNotEmpty | SubtasksClosed | ResolutionSet | CustomFieldValue,
    Field(discriminator="type"),
]


# Post-functions


class SetField(_Rule):
    type: Literal["set_field"] = "set_field"
    field: str = Field(..., min_length=1)
    value: Any = None


class ClearField(_Rule):
    type: Literal["clear_field"] = "clear_field"
    field: str = Field(..., min_length=1)


class AssignToLead(_Rule):
    type: Literal["assign_to_lead"] = "assign_to_lead"


class AssignToReporter(_Rule):
    type: Literal["assign_to_reporter"] = "assign_to_reporter"


class AddComment(_Rule):
    type: Literal["add_comment"] = "add_comment"
    comment: str = Field(..., min_length=1)


class SendNotification(_Rule):
    type: Literal["send_notification"] = "send_notification"
    comment: str | None = None


PostFunction = Annotated[
    SetField | ClearField | AssignToLead | AssignToReporter | AddComment | SendNotification,
    Field(discriminator="type"),
]


_conditions_adapter: TypeAdapter[list[Condition]] = TypeAdapter(list[Condition])
_validators_adapter: TypeAdapter[list[Validator]] = TypeAdapter(list[Validator])
_post_functions_adapter: TypeAdapter[list[PostFunction]] = TypeAdapter(list[PostFunction])


def _parse(adapter: TypeAdapter[Any], raw: Any, kind: str) -> tuple[Any, ...]:
    # Stored rule columns may be NULL or a non-list value; both mean "no rules".
    if not isinstance(raw, list):
        return ()
    try:
        return tuple(adapter.validate_python(raw))
    except ValidationError as e:
        raise InvalidWorkflowError(f"Invalid {kind}: {e}") from e


def parse_conditions(raw: Any) -> tuple[Condition, ...]:
    """Parse stored condition records into condition variants.

    Raises:
        InvalidWorkflowError: If any record has an unknown type or bad fields.
    """
    return _parse(_conditions_adapter, raw, "conditions")


def parse_validators(raw: Any) -> tuple[Validator, ...]:
    """Parse stored validator records into validator variants."""
    return _parse(_validators_adapter, raw, "validators")


def parse_post_functions(raw: Any) -> tuple[PostFunction, ...]:
    """Parse stored post-function records into post-function variants."""
    return _parse(_post_functions_adapter, raw, "post_functions")


def dump_rules(rules: tuple[Any, ...] | list[Any]) -> list[dict[str, Any]]:
    """Serialize rule variants back to JSON-compatible records."""
    return [rule.model_dump(exclude_none=True) for rule in rules]
