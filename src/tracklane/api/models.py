"""Pydantic models for REST API."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from tracklane.board import BoardType, WipStatus
from tracklane.transitions import Actor
from tracklane.workflow import Condition, PostFunction, StatusCategory, Validator

if TYPE_CHECKING:
    from tracklane.board import BoardView, MoveOutcome
    from tracklane.store import Board, WorkflowSummary
    from tracklane.workflow import Workflow

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    data: T | None = None
    error: str | None = None


# Status models


class StatusCreate(BaseModel):
    """Request model for creating a status."""

    id: str | None = Field(default=None, min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=255)
    category: StatusCategory = StatusCategory.TODO
    color: str = Field(default="#6b7280", max_length=20)


class StatusUpdate(BaseModel):
    """Request model for updating a status (partial update)."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    category: StatusCategory | None = None
    color: str | None = Field(default=None, max_length=20)


class StatusResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    category: StatusCategory
    color: str


# Workflow models


class WorkflowCreate(BaseModel):
    """Request model for creating an empty workflow."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    project_id: str | None = None
    is_default: bool = False


class WorkflowClone(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    project_id: str | None = None


class WorkflowSummaryResponse(BaseModel):
    """Response model for a workflow header."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None
    project_id: str | None
    is_default: bool
    is_active: bool
    is_draft: bool
    draft_of: str | None
    step_count: int
    transition_count: int


class StepCreate(BaseModel):
    status_id: str = Field(..., min_length=1)
    is_initial: bool = False
    position_x: float = 0.0
    position_y: float = 0.0


class StepResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    workflow_id: str
    status_id: str
    is_initial: bool
    position_x: float
    position_y: float


class TransitionCreate(BaseModel):
    """Request model for adding a transition. Rules use their ``type`` tag."""

    from_step_id: str = Field(..., min_length=1)
    to_step_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    conditions: list[Condition] = Field(default_factory=list)
    validators: list[Validator] = Field(default_factory=list)
    post_functions: list[PostFunction] = Field(default_factory=list)


class TransitionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    workflow_id: str
    from_step_id: str
    to_step_id: str
    name: str
    description: str | None
    conditions: list[Condition]
    validators: list[Validator]
    post_functions: list[PostFunction]


class WorkflowDetailResponse(BaseModel):
    """Response model for a full workflow graph."""

    id: str
    name: str
    description: str | None
    project_id: str | None
    is_draft: bool
    draft_of: str | None
    initial_step_id: str
    steps: list[StepResponse]
    transitions: list[TransitionResponse]


def workflow_to_response(workflow: Workflow) -> WorkflowDetailResponse:
    """Convert a Workflow graph to WorkflowDetailResponse."""
    return WorkflowDetailResponse(
        id=workflow.id,
        name=workflow.name,
        description=workflow.description,
        project_id=workflow.project_id,
        is_draft=workflow.is_draft,
        draft_of=workflow.draft_of,
        initial_step_id=workflow.initial_step.id,
        steps=[StepResponse.model_validate(s) for s in workflow.steps_of()],
        transitions=[TransitionResponse.model_validate(t) for t in workflow.transitions],
    )


def summary_to_response(summary: WorkflowSummary) -> WorkflowSummaryResponse:
    return WorkflowSummaryResponse.model_validate(summary)


# Issue models


class ActorModel(BaseModel):
    """The user performing a move. Identity is supplied by the caller."""

    id: str = Field(..., min_length=1)
    display_name: str = ""
    roles: list[str] = Field(default_factory=list)
    groups: list[str] = Field(default_factory=list)
    permissions: list[str] = Field(default_factory=list)

    def to_actor(self) -> Actor:
        return Actor(
            id=self.id,
            display_name=self.display_name,
            roles=frozenset(self.roles),
            groups=frozenset(self.groups),
            permissions=frozenset(self.permissions),
        )


class IssueCreate(BaseModel):
    """Request model for creating an issue at its workflow's initial status."""

    key: str = Field(..., min_length=1, max_length=50)
    summary: str = Field(..., min_length=1, max_length=500)
    workflow_id: str
    project_id: str | None = None
    issue_type: str = "Task"
    priority: str = "Medium"
    assignee: str | None = None
    reporter: str | None = None
    story_points: float | None = Field(default=None, ge=0)
    fields: dict[str, Any] = Field(default_factory=dict)
    parent_id: str | None = None


class SubtaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    status: str


class IssueResponse(BaseModel):
    """Response model for an issue."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    key: str
    summary: str
    status: str
    issue_type: str
    priority: str
    assignee: str | None
    reporter: str | None
    story_points: float | None
    resolution: str | None
    project_id: str | None
    fields: dict[str, Any]
    subtasks: list[SubtaskResponse]
    updated_at: datetime | None


class OfferedTransitionResponse(BaseModel):
    id: str
    name: str
    to_status: str


class TransitionRequest(BaseModel):
    """Request model for taking a transition from the issue's menu."""

    to_status: str = Field(..., min_length=1)
    actor: ActorModel


class HistoryEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    issue_id: str
    from_status: str
    to_status: str
    actor_id: str
    transition_id: str | None
    transition_name: str | None
    occurred_at: datetime


# Board models


class ColumnCreate(BaseModel):
    id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=255)
    status_category: StatusCategory = StatusCategory.TODO
    status_ids: list[str] = Field(default_factory=list)
    min_issues: int | None = Field(default=None, ge=0)
    max_issues: int | None = Field(default=None, ge=1)


class BoardCreate(BaseModel):
    """Request model for creating a board. Omit ``columns`` to use the template."""

    name: str = Field(..., min_length=1, max_length=255)
    workflow_id: str
    project_id: str | None = None
    board_type: BoardType = BoardType.BASIC
    columns: list[ColumnCreate] | None = None
    project_lead: str | None = None


class BoardSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    board_type: BoardType
    workflow_id: str
    project_id: str | None
    project_lead: str | None


class ColumnResponse(BaseModel):
    id: str
    name: str
    status_category: StatusCategory
    status_ids: list[str]
    min_issues: int | None
    max_issues: int | None
    count: int
    wip: WipStatus
    below_minimum: bool
    issues: list[IssueResponse]


class BoardResponse(BaseModel):
    """Response model for a board projection."""

    id: str
    name: str
    board_type: BoardType
    workflow_id: str
    project_id: str | None
    columns: list[ColumnResponse]
    unplaced: list[IssueResponse]


def board_to_response(board: Board, view: BoardView) -> BoardResponse:
    """Convert a Board and its projection to BoardResponse."""
    return BoardResponse(
        id=board.id,
        name=board.name,
        board_type=board.board_type,
        workflow_id=board.workflow_id,
        project_id=board.project_id,
        columns=[
            ColumnResponse(
                id=cv.column.id,
                name=cv.column.name,
                status_category=cv.column.status_category,
                status_ids=list(cv.column.status_ids),
                min_issues=cv.column.min_issues,
                max_issues=cv.column.max_issues,
                count=cv.count,
                wip=cv.wip,
                below_minimum=cv.below_minimum,
                issues=[IssueResponse.model_validate(i) for i in cv.issues],
            )
            for cv in view.columns
        ],
        unplaced=[IssueResponse.model_validate(i) for i in view.unplaced],
    )


class MoveRequest(BaseModel):
    """Request model for dropping an issue on a column."""

    issue_id: str = Field(..., min_length=1)
    column_id: str = Field(..., min_length=1)
    actor: ActorModel


class MoveResponse(BaseModel):
    """Outcome of a move attempt."""

    issue_id: str
    state: str
    from_status: str
    to_status: str
    from_column_id: str | None
    to_column_id: str | None
    transition: str | None
    error_kind: str | None
    message: str | None
    post_function_failures: list[str]


def outcome_to_response(outcome: MoveOutcome) -> MoveResponse:
    """Convert a MoveOutcome to MoveResponse."""
    return MoveResponse(
        issue_id=outcome.issue_id,
        state=outcome.state.value,
        from_status=outcome.from_status,
        to_status=outcome.to_status,
        from_column_id=outcome.from_column_id,
        to_column_id=outcome.to_column_id,
        transition=outcome.transition.name if outcome.transition else None,
        error_kind=outcome.error_kind,
        message=outcome.user_message,
        post_function_failures=(
            list(outcome.post_functions.failures) if outcome.post_functions else []
        ),
    )
