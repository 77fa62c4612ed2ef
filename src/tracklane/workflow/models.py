"""Data models for the Workflow module."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import StrEnum

from tracklane.workflow.rules import Condition, PostFunction, Validator


class StatusCategory(StrEnum):
    """Fixed status categories. They drive default column grouping."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


def generate_id() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Status:
    """A named state an issue can be in."""

    id: str
    name: str
    category: StatusCategory = StatusCategory.TODO
    color: str = "#6b7280"


@dataclass(frozen=True)
class WorkflowStep:
    """Places a status on a workflow graph.

    Attributes:
        id: The step's unique ID.
        workflow_id: Workflow the step belongs to.
        status_id: Status this step represents.
        is_initial: Whether new issues start at this step.
        position_x: Editor canvas X coordinate.
        position_y: Editor canvas Y coordinate.
    """

    id: str
    workflow_id: str
    status_id: str
    is_initial: bool = False
    position_x: float = 0.0
    position_y: float = 0.0


@dataclass(frozen=True)
class Transition:
    """A named, directed edge between two steps of one workflow."""

    id: str
    workflow_id: str
    from_step_id: str
    to_step_id: str
    name: str
    description: str | None = None
    conditions: tuple[Condition, ...] = field(default_factory=tuple)
    validators: tuple[Validator, ...] = field(default_factory=tuple)
    post_functions: tuple[PostFunction, ...] = field(default_factory=tuple)
