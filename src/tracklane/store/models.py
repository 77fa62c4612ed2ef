"""SQLAlchemy models for the Board Store."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
)

from tracklane.workflow import StatusCategory, generate_id


def _now() -> datetime:
    # Microsecond resolution keeps steps, transitions and issues in insertion order.
    return datetime.now(UTC).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class StatusRecord(Base):
    """Status model - a named issue state shared across workflows."""

    __tablename__ = "statuses"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    color: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    def __init__(
        self,
        name: str,
        id: str | None = None,
        category: str = StatusCategory.TODO.value,
        color: str = "#6b7280",
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_id()
        self.name = name
        self.category = category
        self.color = color

    def __repr__(self) -> str:
        return f"<StatusRecord(id={self.id!r}, name={self.name!r}, category={self.category!r})>"


class WorkflowRecord(Base):
    """Workflow model - header row of a workflow graph."""

    __tablename__ = "workflows"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    project_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False)
    is_draft: Mapped[bool] = mapped_column(Boolean, nullable=False)
    draft_of: Mapped[str | None] = mapped_column(String(36), nullable=True)
    published_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    steps: Mapped[list[WorkflowStepRecord]] = relationship(
        "WorkflowStepRecord", back_populates="workflow", cascade="all, delete-orphan"
    )
    transitions: Mapped[list[WorkflowTransitionRecord]] = relationship(
        "WorkflowTransitionRecord", back_populates="workflow", cascade="all, delete-orphan"
    )

    def __init__(
        self,
        name: str,
        id: str | None = None,
        description: str | None = None,
        project_id: str | None = None,
        is_default: bool = False,
        is_active: bool = True,
        is_draft: bool = False,
        draft_of: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_id()
        self.name = name
        self.description = description
        self.project_id = project_id
        self.is_default = is_default
        self.is_active = is_active
        self.is_draft = is_draft
        self.draft_of = draft_of

    def __repr__(self) -> str:
        return f"<WorkflowRecord(id={self.id!r}, name={self.name!r}, is_draft={self.is_draft!r})>"


class WorkflowStepRecord(Base):
    """Workflow step model - places a status on a workflow."""

    __tablename__ = "workflow_steps"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    workflow_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("workflows.id", ondelete="CASCADE"), nullable=False
    )
    status_id: Mapped[str] = mapped_column(String(64), ForeignKey("statuses.id"), nullable=False)
    position_x: Mapped[float] = mapped_column(Float, nullable=False)
    position_y: Mapped[float] = mapped_column(Float, nullable=False)
    is_initial: Mapped[bool] = mapped_column(Boolean, nullable=False)
    # Declaration order within the workflow.
    ordinal: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_now
    )

    workflow: Mapped[WorkflowRecord] = relationship("WorkflowRecord", back_populates="steps")

    def __init__(
        self,
        workflow_id: str,
        status_id: str,
        id: str | None = None,
        position_x: float = 0.0,
        position_y: float = 0.0,
        is_initial: bool = False,
        ordinal: int = 0,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_id()
        self.workflow_id = workflow_id
        self.status_id = status_id
        self.position_x = position_x
        self.position_y = position_y
        self.is_initial = is_initial
        self.ordinal = ordinal

    def __repr__(self) -> str:
        return f"<WorkflowStepRecord(id={self.id!r}, status_id={self.status_id!r})>"


class WorkflowTransitionRecord(Base):
    """Workflow transition model - rule lists are stored as JSON."""

    __tablename__ = "workflow_transitions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    workflow_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("workflows.id", ondelete="CASCADE"), nullable=False
    )
    from_step_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("workflow_steps.id", ondelete="CASCADE"), nullable=False
    )
    to_step_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("workflow_steps.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    conditions: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)
    validators: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)
    post_functions: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)
    ordinal: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_now
    )

    workflow: Mapped[WorkflowRecord] = relationship("WorkflowRecord", back_populates="transitions")

    def __init__(
        self,
        workflow_id: str,
        from_step_id: str,
        to_step_id: str,
        name: str,
        id: str | None = None,
        description: str | None = None,
        conditions: list[dict[str, Any]] | None = None,
        validators: list[dict[str, Any]] | None = None,
        post_functions: list[dict[str, Any]] | None = None,
        ordinal: int = 0,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_id()
        self.workflow_id = workflow_id
        self.from_step_id = from_step_id
        self.to_step_id = to_step_id
        self.name = name
        self.description = description
        self.conditions = conditions or []
        self.validators = validators or []
        self.post_functions = post_functions or []
        self.ordinal = ordinal

    def __repr__(self) -> str:
        return f"<WorkflowTransitionRecord(id={self.id!r}, name={self.name!r})>"


class BoardRecord(Base):
    """Board model - a project's board bound to one workflow."""

    __tablename__ = "boards"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    project_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    board_type: Mapped[str] = mapped_column(String(20), nullable=False)
    workflow_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("workflows.id"), nullable=False
    )
    project_lead: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    columns: Mapped[list[BoardColumnRecord]] = relationship(
        "BoardColumnRecord",
        back_populates="board",
        cascade="all, delete-orphan",
        order_by="BoardColumnRecord.position",
    )

    def __init__(
        self,
        name: str,
        workflow_id: str,
        id: str | None = None,
        project_id: str | None = None,
        board_type: str = "basic",
        project_lead: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_id()
        self.name = name
        self.workflow_id = workflow_id
        self.project_id = project_id
        self.board_type = board_type
        self.project_lead = project_lead

    def __repr__(self) -> str:
        return f"<BoardRecord(id={self.id!r}, name={self.name!r}, type={self.board_type!r})>"


class BoardColumnRecord(Base):
    """Board column model. ``column_key`` is the column ID seen by the board."""

    __tablename__ = "board_columns"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    board_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("boards.id", ondelete="CASCADE"), nullable=False
    )
    column_key: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    status_category: Mapped[str] = mapped_column(String(20), nullable=False)
    status_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    min_issues: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_issues: Mapped[int | None] = mapped_column(Integer, nullable=True)

    board: Mapped[BoardRecord] = relationship("BoardRecord", back_populates="columns")

    def __init__(
        self,
        board_id: str,
        column_key: str,
        name: str,
        position: int,
        id: str | None = None,
        status_category: str = StatusCategory.TODO.value,
        status_ids: list[str] | None = None,
        min_issues: int | None = None,
        max_issues: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_id()
        self.board_id = board_id
        self.column_key = column_key
        self.name = name
        self.position = position
        self.status_category = status_category
        self.status_ids = status_ids or []
        self.min_issues = min_issues
        self.max_issues = max_issues

    def __repr__(self) -> str:
        return f"<BoardColumnRecord(key={self.column_key!r}, position={self.position!r})>"


class IssueRecord(Base):
    """Issue model - the fields the board and workflow rules need."""

    __tablename__ = "issues"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    issue_key: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    summary: Mapped[str] = mapped_column(String(500), nullable=False)
    project_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    workflow_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("workflows.id"), nullable=True
    )
    status_id: Mapped[str] = mapped_column(String(64), ForeignKey("statuses.id"), nullable=False)
    issue_type: Mapped[str] = mapped_column(String(20), nullable=False)
    priority: Mapped[str] = mapped_column(String(20), nullable=False)
    assignee: Mapped[str | None] = mapped_column(String(255), nullable=True)
    reporter: Mapped[str | None] = mapped_column(String(255), nullable=True)
    story_points: Mapped[float | None] = mapped_column(Float, nullable=True)
    resolution: Mapped[str | None] = mapped_column(String(100), nullable=True)
    fields: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    parent_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("issues.id", ondelete="CASCADE"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_now, onupdate=_now
    )

    def __init__(
        self,
        issue_key: str,
        summary: str,
        status_id: str,
        id: str | None = None,
        project_id: str | None = None,
        workflow_id: str | None = None,
        issue_type: str = "Task",
        priority: str = "Medium",
        assignee: str | None = None,
        reporter: str | None = None,
        story_points: float | None = None,
        resolution: str | None = None,
        fields: dict[str, Any] | None = None,
        parent_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_id()
        self.issue_key = issue_key
        self.summary = summary
        self.status_id = status_id
        self.project_id = project_id
        self.workflow_id = workflow_id
        self.issue_type = issue_type
        self.priority = priority
        self.assignee = assignee
        self.reporter = reporter
        self.story_points = story_points
        self.resolution = resolution
        self.fields = fields or {}
        self.parent_id = parent_id

    def __repr__(self) -> str:
        return f"<IssueRecord(id={self.id!r}, key={self.issue_key!r}, status={self.status_id!r})>"


class IssueCommentRecord(Base):
    """Issue comment model."""

    __tablename__ = "issue_comments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    issue_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("issues.id", ondelete="CASCADE"), nullable=False
    )
    author_id: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_now
    )

    def __init__(
        self, issue_id: str, author_id: str, body: str, id: str | None = None, **kwargs: Any
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_id()
        self.issue_id = issue_id
        self.author_id = author_id
        self.body = body


class IssueHistoryRecord(Base):
    """Issue history model - one row per committed transition."""

    __tablename__ = "issue_history"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    issue_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("issues.id", ondelete="CASCADE"), nullable=False
    )
    from_status: Mapped[str] = mapped_column(String(64), nullable=False)
    to_status: Mapped[str] = mapped_column(String(64), nullable=False)
    actor_id: Mapped[str] = mapped_column(String(255), nullable=False)
    transition_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    transition_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    def __init__(
        self,
        issue_id: str,
        from_status: str,
        to_status: str,
        actor_id: str,
        created_at: datetime,
        id: str | None = None,
        transition_id: str | None = None,
        transition_name: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_id()
        self.issue_id = issue_id
        self.from_status = from_status
        self.to_status = to_status
        self.actor_id = actor_id
        self.created_at = created_at
        self.transition_id = transition_id
        self.transition_name = transition_name

    def __repr__(self) -> str:
        return (
            f"<IssueHistoryRecord(issue_id={self.issue_id!r}, "
            f"{self.from_status!r} -> {self.to_status!r})>"
        )
