"""TransitionValidator - decides whether an issue may move between statuses."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING

from tracklane.transitions.models import Allowed, DenialKind, Denied
from tracklane.workflow import StatusCategory
from tracklane.workflow.rules import (
    CustomFieldValue,
    FieldNotEmpty,
    FieldRequired,
    OnlyAssignee,
    OnlyReporter,
    PermissionCheck,
    ResolutionSet,
    SubtasksClosed,
    UserInGroup,
    UserInRole,
)

if TYPE_CHECKING:
    from tracklane.transitions.models import Actor, Decision, Issue
    from tracklane.workflow import Condition, Status, Transition, Validator, Workflow

logger = logging.getLogger(__name__)

NO_SUCH_TRANSITION = "no such transition"


class TransitionValidator:
    """Evaluates a workflow's conditions and validators for a candidate move.

    Evaluation only reads the issue and the actor. A rule that cannot be
    evaluated (missing custom field, unknown sub-task status, unexpected
    error) denies the move instead of raising.
    """

    def __init__(
        self,
        workflow: Workflow,
        statuses: Mapping[str, Status] | None = None,
    ) -> None:
        """Initialize the validator.

        Args:
            workflow: The workflow graph governing the issues.
            statuses: Status catalog by ID, used to resolve sub-task categories.
        """
        self.workflow = workflow
        self.statuses: Mapping[str, Status] = statuses or {}

    def can_transition(
        self,
        issue: Issue,
        from_status: str,
        to_status: str,
        actor: Actor,
    ) -> Decision:
        """Decide whether ``issue`` may move from ``from_status`` to ``to_status``.

        Conditions are re-checked here even though they already filtered the
        offered moves, since the issue may have changed since it was rendered.

        Returns:
            Allowed with the transition taken, or Denied with a reason.
        """
        transition = self.workflow.find_transition_between(from_status, to_status)
        if transition is None:
            logger.warning(
                "No transition from %s to %s in workflow %s (issue %s)",
                from_status,
                to_status,
                self.workflow.id,
                issue.id,
            )
            return Denied(NO_SUCH_TRANSITION, DenialKind.CONFIGURATION)

        reason = self.evaluate_conditions(transition, issue, actor)
        if reason is not None:
            logger.info("Transition %r denied for issue %s: %s", transition.name, issue.id, reason)
            return Denied(reason, DenialKind.CONDITION, transition)

        reason = self.evaluate_validators(transition, issue)
        if reason is not None:
            logger.info("Transition %r denied for issue %s: %s", transition.name, issue.id, reason)
            return Denied(reason, DenialKind.VALIDATOR, transition)

        return Allowed(transition)

    def check_transition(
        self,
        issue: Issue,
        from_status: str,
        to_status: str,
        actor: Actor,
    ) -> Transition:
        """Like can_transition, but raises on denial.

        Raises:
            ConfigurationError: If the workflow has no such transition.
            ConditionDenied: If a condition rejects the actor.
            ValidatorDenied: If a validator rejects the issue.
        """
        decision = self.can_transition(issue, from_status, to_status, actor)
        if isinstance(decision, Denied):
            raise decision.to_error()
        return decision.transition

    def offered_transitions(self, issue: Issue, actor: Actor) -> tuple[Transition, ...]:
        """Transitions from the issue's current status whose conditions pass."""
        step = self.workflow.step_for_status(issue.status)
        if step is None:
            return ()
        return tuple(
            transition
            for transition in self.workflow.transitions_from(step.id)
            if self.evaluate_conditions(transition, issue, actor) is None
        )

    def evaluate_conditions(
        self, transition: Transition, issue: Issue, actor: Actor
    ) -> str | None:
        """Return the first failing condition's reason, or None if all pass."""
        for condition in transition.conditions:
            try:
                reason = _check_condition(condition, issue, actor)
            except Exception:
                logger.exception("Condition %s failed to evaluate", condition.type)
                reason = f"Condition '{condition.type}' could not be evaluated"
            if reason is not None:
                return reason
        return None

    def evaluate_validators(self, transition: Transition, issue: Issue) -> str | None:
        """Return the first failing validator's message, or None if all pass."""
        for validator in transition.validators:
            try:
                reason = self._check_validator(validator, issue)
            except Exception:
                logger.exception("Validator %s failed to evaluate", validator.type)
                reason = f"Validator '{validator.type}' could not be evaluated"
            if reason is not None:
                return validator.message or reason
        return None

    def _check_validator(self, validator: Validator, issue: Issue) -> str | None:
        match validator:
            case FieldRequired(field=name):
                if not issue.has_field(name) or issue.field_value(name) is None:
                    return f"Field '{name}' is required"
            case FieldNotEmpty(field=name):
                if not issue.has_field(name) or _is_empty(issue.field_value(name)):
                    return f"Field '{name}' must not be empty"
            case SubtasksClosed():
                for subtask in issue.subtasks:
                    status = self.statuses.get(subtask.status)
                    if status is None:
                        return f"Status of sub-task {subtask.id} is unknown"
                    if status.category != StatusCategory.DONE:
                        return "All sub-tasks must be closed"
            case ResolutionSet():
                if _is_empty(issue.resolution):
                    return "Resolution must be set"
            case CustomFieldValue(field=name, value=expected):
                if name not in issue.fields:
                    return f"Field '{name}' is not available on this issue"
                if str(issue.fields[name]) != expected:
                    return f"Field '{name}' must be '{expected}'"
        return None


def _check_condition(condition: Condition, issue: Issue, actor: Actor) -> str | None:
    match condition:
        case OnlyAssignee():
            if issue.assignee is None or issue.assignee != actor.id:
                return "Only the assignee can perform this transition"
        case OnlyReporter():
            if issue.reporter is None or issue.reporter != actor.id:
                return "Only the reporter can perform this transition"
        case UserInGroup(group=group):
            if group not in actor.groups:
                return f"You must be a member of group '{group}'"
        case UserInRole(role=role):
            if role not in actor.roles:
                return f"You need the '{role}' role"
        case PermissionCheck(permission=permission):
            if permission not in actor.permissions:
                return f"You lack the '{permission}' permission"
    return None


def _is_empty(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, list | tuple | set | dict):
        return len(value) == 0
    return False
