"""BoardStore - persistence for statuses, workflows, boards and issues."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tracklane.board import BoardColumn, BoardType, ColumnStatus, default_columns
from tracklane.store.database import Database
from tracklane.store.exceptions import (
    BoardNotFoundError,
    DraftExistsError,
    IssueExistsError,
    IssueNotFoundError,
    NotADraftError,
    StatusInUseError,
    StatusNotFoundError,
    WorkflowNotFoundError,
)
from tracklane.store.models import (
    BoardColumnRecord,
    BoardRecord,
    IssueCommentRecord,
    IssueHistoryRecord,
    IssueRecord,
    StatusRecord,
    WorkflowRecord,
    WorkflowStepRecord,
    WorkflowTransitionRecord,
)
from tracklane.transitions import Issue, Subtask, TransitionRecord
from tracklane.workflow import (
    Status,
    StatusCategory,
    StepNotFoundError,
    Transition,
    Workflow,
    WorkflowStep,
    dump_rules,
    parse_conditions,
    parse_post_functions,
    parse_validators,
    parse_workflow,
)

logger = logging.getLogger(__name__)

# Issue attributes stored in their own columns; everything else lives in ``fields``.
_ISSUE_COLUMNS = {
    "key": "issue_key",
    "summary": "summary",
    "assignee": "assignee",
    "reporter": "reporter",
    "story_points": "story_points",
    "resolution": "resolution",
    "issue_type": "issue_type",
    "priority": "priority",
}


@dataclass(frozen=True)
class WorkflowSummary:
    """Workflow header with graph sizes, as listed in the workflow editor."""

    id: str
    name: str
    description: str | None = None
    project_id: str | None = None
    is_default: bool = False
    is_active: bool = True
    is_draft: bool = False
    draft_of: str | None = None
    step_count: int = 0
    transition_count: int = 0


@dataclass(frozen=True)
class Board:
    """A stored board with its columns in display order."""

    id: str
    name: str
    workflow_id: str
    board_type: BoardType = BoardType.BASIC
    project_id: str | None = None
    project_lead: str | None = None
    columns: tuple[BoardColumn, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Comment:
    id: str
    issue_id: str
    author_id: str
    body: str
    created_at: datetime | None = None


def _utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class BoardStore:
    """Main API for Board Store operations.

    Every public method runs in its own session; returned objects are plain
    domain values detached from the database.
    """

    def __init__(self, db_path: str = "tracklane.db") -> None:
        """Initialize the store, creating the database and tables if needed.

        Args:
            db_path: Path to SQLite database file, or ":memory:".
        """
        self._db = Database(db_path)
        self._db.create_tables()

    def close(self) -> None:
        """Close the database connection."""
        self._db.close()

    # --- Status Operations ---

    def create_status(
        self,
        name: str,
        category: StatusCategory | str = StatusCategory.TODO,
        color: str = "#6b7280",
        status_id: str | None = None,
    ) -> Status:
        """Create a status. ``status_id`` defaults to a generated UUID."""
        with self._db.session() as session:
            record = StatusRecord(
                id=status_id, name=name, category=StatusCategory(category).value, color=color
            )
            session.add(record)
            session.flush()
            return _to_status(record)

    def get_status(self, status_id: str) -> Status:
        """Get status by ID.

        Raises:
            StatusNotFoundError: If status doesn't exist
        """
        with self._db.session() as session:
            return _to_status(self._get_status_record(session, status_id))

    def list_statuses(self) -> list[Status]:
        with self._db.session() as session:
            records = session.execute(select(StatusRecord).order_by(StatusRecord.name)).scalars()
            return [_to_status(r) for r in records]

    def status_categories(self) -> dict[str, StatusCategory]:
        """Map every status ID to its category."""
        return {status.id: status.category for status in self.list_statuses()}

    def update_status(
        self,
        status_id: str,
        name: str | None = None,
        category: StatusCategory | str | None = None,
        color: str | None = None,
    ) -> Status:
        with self._db.session() as session:
            record = self._get_status_record(session, status_id)
            if name is not None:
                record.name = name
            if category is not None:
                record.category = StatusCategory(category).value
            if color is not None:
                record.color = color
            return _to_status(record)

    def delete_status(self, status_id: str) -> None:
        """Delete a status.

        Raises:
            StatusNotFoundError: If status doesn't exist
            StatusInUseError: If an issue or workflow step still uses it
        """
        with self._db.session() as session:
            record = self._get_status_record(session, status_id)
            issues = session.scalar(
                select(func.count())
                .select_from(IssueRecord)
                .where(IssueRecord.status_id == status_id)
            )
            steps = session.scalar(
                select(func.count())
                .select_from(WorkflowStepRecord)
                .where(WorkflowStepRecord.status_id == status_id)
            )
            if issues or steps:
                raise StatusInUseError(
                    f"Status '{status_id}' is used by {issues} issue(s) "
                    f"and {steps} workflow step(s)"
                )
            session.delete(record)

    # --- Workflow Operations ---

    def create_workflow(
        self,
        name: str,
        description: str | None = None,
        project_id: str | None = None,
        is_default: bool = False,
    ) -> WorkflowSummary:
        """Create an empty workflow. Add steps and transitions afterwards."""
        with self._db.session() as session:
            record = WorkflowRecord(
                name=name, description=description, project_id=project_id, is_default=is_default
            )
            session.add(record)
            session.flush()
            return _to_summary(record)

    def get_workflow(self, workflow_id: str) -> WorkflowSummary:
        with self._db.session() as session:
            return _to_summary(self._get_workflow_record(session, workflow_id))

    def list_workflows(
        self, project_id: str | None = None, include_drafts: bool = False
    ) -> list[WorkflowSummary]:
        """List workflows, optionally for one project. Drafts are hidden by default."""
        with self._db.session() as session:
            stmt = select(WorkflowRecord).order_by(WorkflowRecord.created_at, WorkflowRecord.name)
            if project_id is not None:
                stmt = stmt.where(WorkflowRecord.project_id == project_id)
            if not include_drafts:
                stmt = stmt.where(WorkflowRecord.is_draft.is_(False))
            return [_to_summary(r) for r in session.execute(stmt).scalars()]

    def add_step(
        self,
        workflow_id: str,
        status_id: str,
        is_initial: bool = False,
        position_x: float = 0.0,
        position_y: float = 0.0,
    ) -> WorkflowStep:
        """Add a status to a workflow.

        Marking the new step initial clears the flag on any other step.

        Raises:
            WorkflowNotFoundError: If workflow doesn't exist
            StatusNotFoundError: If status doesn't exist
        """
        with self._db.session() as session:
            workflow = self._get_workflow_record(session, workflow_id)
            self._get_status_record(session, status_id)
            if is_initial:
                for step in workflow.steps:
                    step.is_initial = False
            record = WorkflowStepRecord(
                workflow_id=workflow_id,
                status_id=status_id,
                is_initial=is_initial,
                position_x=position_x,
                position_y=position_y,
                ordinal=len(workflow.steps),
            )
            session.add(record)
            session.flush()
            return _to_step(record)

    def add_transition(
        self,
        workflow_id: str,
        from_step_id: str,
        to_step_id: str,
        name: str,
        description: str | None = None,
        conditions: Iterable[Any] = (),
        validators: Iterable[Any] = (),
        post_functions: Iterable[Any] = (),
    ) -> Transition:
        """Add a transition between two steps of a workflow.

        Rules may be given as rule models or as plain dicts.

        Raises:
            WorkflowNotFoundError: If workflow doesn't exist
            StepNotFoundError: If either step is not on the workflow
            InvalidWorkflowError: If a rule is malformed
        """
        parsed_conditions = parse_conditions([_rule_dict(r) for r in conditions])
        parsed_validators = parse_validators([_rule_dict(r) for r in validators])
        parsed_post_functions = parse_post_functions([_rule_dict(r) for r in post_functions])

        with self._db.session() as session:
            workflow = self._get_workflow_record(session, workflow_id)
            step_ids = {step.id for step in workflow.steps}
            for step_id in (from_step_id, to_step_id):
                if step_id not in step_ids:
                    raise StepNotFoundError(
                        f"Step '{step_id}' is not part of workflow '{workflow_id}'"
                    )
            record = WorkflowTransitionRecord(
                workflow_id=workflow_id,
                from_step_id=from_step_id,
                to_step_id=to_step_id,
                name=name,
                description=description,
                conditions=dump_rules(parsed_conditions),
                validators=dump_rules(parsed_validators),
                post_functions=dump_rules(parsed_post_functions),
                ordinal=len(workflow.transitions),
            )
            session.add(record)
            session.flush()
            return _to_transition(record)

    def load_workflow(self, workflow_id: str) -> Workflow:
        """Load and validate a full workflow graph.

        Raises:
            WorkflowNotFoundError: If workflow doesn't exist
            InvalidWorkflowError: If the stored graph is not a valid workflow
        """
        with self._db.session() as session:
            record = self._get_workflow_record(session, workflow_id)
            data = _workflow_data(record)
        return parse_workflow(data)

    def save_workflow(self, workflow: Workflow) -> Workflow:
        """Persist a complete, already validated workflow under its own ID.

        Statuses the workflow references must already exist.
        """
        with self._db.session() as session:
            for status_id in workflow.status_ids:
                self._get_status_record(session, status_id)
            session.add(
                WorkflowRecord(
                    id=workflow.id,
                    name=workflow.name,
                    description=workflow.description,
                    project_id=workflow.project_id,
                    is_default=workflow.is_default,
                    is_active=workflow.is_active,
                    is_draft=workflow.is_draft,
                    draft_of=workflow.draft_of,
                )
            )
            session.flush()
            _add_graph(session, workflow)
        logger.info("Saved %r", workflow)
        return workflow

    def clone_workflow(
        self, workflow_id: str, name: str | None = None, project_id: str | None = None
    ) -> Workflow:
        """Copy a workflow under a new ID, with fresh step and transition IDs."""
        source = self.load_workflow(workflow_id)
        return self.save_workflow(
            source.clone(name=name or f"{source.name} (copy)", project_id=project_id)
        )

    def create_draft(self, workflow_id: str) -> Workflow:
        """Start editing a published workflow as a draft copy.

        Raises:
            DraftExistsError: If the workflow already has a draft, or is one
        """
        source = self.load_workflow(workflow_id)
        if source.is_draft:
            raise DraftExistsError(f"Workflow '{workflow_id}' is itself a draft")
        with self._db.session() as session:
            existing = session.execute(
                select(WorkflowRecord.id).where(WorkflowRecord.draft_of == workflow_id)
            ).first()
        if existing is not None:
            raise DraftExistsError(f"Workflow '{workflow_id}' already has draft '{existing[0]}'")
        return self.save_workflow(
            source.clone(name=f"{source.name} (Draft)", is_draft=True, draft_of=workflow_id)
        )

    def publish_draft(self, draft_id: str) -> Workflow:
        """Replace the published workflow's graph with the draft's and drop the draft.

        The published workflow keeps its ID, so boards and issues stay bound.

        Raises:
            NotADraftError: If ``draft_id`` is not a draft
            InvalidWorkflowError: If the draft is not a valid workflow
        """
        draft = self.load_workflow(draft_id)
        if not draft.is_draft or draft.draft_of is None:
            raise NotADraftError(f"Workflow '{draft_id}' is not a draft")
        target_id = draft.draft_of

        with self._db.session() as session:
            target = self._get_workflow_record(session, target_id)
            session.execute(
                delete(WorkflowTransitionRecord).where(
                    WorkflowTransitionRecord.workflow_id == target_id
                )
            )
            session.execute(
                delete(WorkflowStepRecord).where(WorkflowStepRecord.workflow_id == target_id)
            )
            published = draft.clone(workflow_id=target_id, name=target.name)
            _add_graph(session, published)
            target.description = draft.description
            target.published_at = datetime.now(UTC)
            session.execute(delete(WorkflowRecord).where(WorkflowRecord.id == draft_id))
            session.expire_all()

        logger.info("Published draft %s onto workflow %s", draft_id, target_id)
        return self.load_workflow(target_id)

    def discard_draft(self, draft_id: str) -> None:
        """Delete a draft without touching the published workflow.

        Raises:
            NotADraftError: If ``draft_id`` is not a draft
        """
        with self._db.session() as session:
            record = self._get_workflow_record(session, draft_id)
            if not record.is_draft:
                raise NotADraftError(f"Workflow '{draft_id}' is not a draft")
            # Steps and transitions go with it through ON DELETE CASCADE.
            session.execute(delete(WorkflowRecord).where(WorkflowRecord.id == draft_id))
        logger.info("Discarded draft %s", draft_id)

    # --- Board Operations ---

    def create_board(
        self,
        name: str,
        workflow_id: str,
        project_id: str | None = None,
        board_type: BoardType | str = BoardType.BASIC,
        columns: Sequence[BoardColumn] | None = None,
        project_lead: str | None = None,
    ) -> Board:
        """Create a board for a workflow.

        Without explicit ``columns`` the board type's template is used, with
        the workflow's statuses mapped onto template columns by category.
        """
        board_type = BoardType(board_type)
        if columns is None:
            columns = self._template_columns(workflow_id, board_type)

        with self._db.session() as session:
            self._get_workflow_record(session, workflow_id)
            record = BoardRecord(
                name=name,
                workflow_id=workflow_id,
                project_id=project_id,
                board_type=board_type.value,
                project_lead=project_lead,
            )
            session.add(record)
            session.flush()
            for position, column in enumerate(columns):
                session.add(
                    BoardColumnRecord(
                        board_id=record.id,
                        column_key=column.id,
                        name=column.name,
                        position=position,
                        status_category=StatusCategory(column.status_category).value,
                        status_ids=list(column.status_ids),
                        min_issues=column.min_issues,
                        max_issues=column.max_issues,
                    )
                )
            board_id = record.id
        return self.get_board(board_id)

    def get_board(self, board_id: str) -> Board:
        """Get board by ID, with its columns.

        Raises:
            BoardNotFoundError: If board doesn't exist
        """
        with self._db.session() as session:
            record = session.get(BoardRecord, board_id)
            if record is None:
                raise BoardNotFoundError(f"Board with id '{board_id}' not found")
            statuses = {s.id: s for s in session.execute(select(StatusRecord)).scalars()}
            return Board(
                id=record.id,
                name=record.name,
                workflow_id=record.workflow_id,
                board_type=BoardType(record.board_type),
                project_id=record.project_id,
                project_lead=record.project_lead,
                columns=tuple(_to_column(c, statuses) for c in record.columns),
            )

    def list_boards(self, project_id: str | None = None) -> list[Board]:
        with self._db.session() as session:
            stmt = select(BoardRecord.id).order_by(BoardRecord.created_at, BoardRecord.name)
            if project_id is not None:
                stmt = stmt.where(BoardRecord.project_id == project_id)
            board_ids = list(session.execute(stmt).scalars())
        return [self.get_board(board_id) for board_id in board_ids]

    def get_columns(self, board_id: str) -> tuple[BoardColumn, ...]:
        return self.get_board(board_id).columns

    def _template_columns(
        self, workflow_id: str, board_type: BoardType
    ) -> list[BoardColumn]:
        template = default_columns(board_type)
        workflow = self.load_workflow(workflow_id)
        categories = self.status_categories()
        assigned: dict[str, list[str]] = {column.id: [] for column in template}
        for status_id in workflow.status_ids:
            exact = [c for c in template if c.id == status_id]
            matching = exact or [
                c for c in template if c.status_category == categories.get(status_id)
            ]
            if matching:
                assigned[matching[0].id].append(status_id)
        return [
            BoardColumn(
                id=column.id,
                name=column.name,
                status_category=column.status_category,
                status_ids=tuple(assigned[column.id]),
                min_issues=column.min_issues,
                max_issues=column.max_issues,
            )
            for column in template
        ]

    # --- Issue Operations ---

    def create_issue(
        self,
        key: str,
        summary: str,
        workflow_id: str,
        project_id: str | None = None,
        issue_type: str = "Task",
        priority: str = "Medium",
        assignee: str | None = None,
        reporter: str | None = None,
        story_points: float | None = None,
        fields: Mapping[str, Any] | None = None,
        parent_id: str | None = None,
    ) -> Issue:
        """Create an issue at the workflow's initial status.

        Raises:
            WorkflowNotFoundError: If workflow doesn't exist
            IssueExistsError: If an issue with the same key already exists
        """
        initial_status = self.load_workflow(workflow_id).initial_step.status_id
        try:
            with self._db.session() as session:
                record = IssueRecord(
                    issue_key=key,
                    summary=summary,
                    status_id=initial_status,
                    project_id=project_id,
                    workflow_id=workflow_id,
                    issue_type=issue_type,
                    priority=priority,
                    assignee=assignee,
                    reporter=reporter,
                    story_points=story_points,
                    fields=dict(fields or {}),
                    parent_id=parent_id,
                )
                session.add(record)
                session.flush()
                issue_id = record.id
        except IntegrityError as e:
            if "issue_key" in str(e):
                raise IssueExistsError(f"Issue with key '{key}' already exists") from e
            raise
        return self.get_issue(issue_id)

    def get_issue(self, issue_id: str) -> Issue:
        """Get issue by ID, with its sub-tasks.

        Raises:
            IssueNotFoundError: If issue doesn't exist
        """
        with self._db.session() as session:
            record = self._get_issue_record(session, issue_id)
            return _to_issue(record, _subtasks(session, [record.id]).get(record.id, ()))

    def get_issue_workflow_id(self, issue_id: str) -> str | None:
        """Workflow governing an issue, if it has one."""
        with self._db.session() as session:
            return self._get_issue_record(session, issue_id).workflow_id

    def list_issues(
        self, project_id: str | None = None, workflow_id: str | None = None
    ) -> list[Issue]:
        """List issues in creation order."""
        with self._db.session() as session:
            stmt = select(IssueRecord).order_by(IssueRecord.created_at, IssueRecord.issue_key)
            if project_id is not None:
                stmt = stmt.where(IssueRecord.project_id == project_id)
            if workflow_id is not None:
                stmt = stmt.where(IssueRecord.workflow_id == workflow_id)
            records = list(session.execute(stmt).scalars())
            subtasks = _subtasks(session, [r.id for r in records])
            return [_to_issue(r, subtasks.get(r.id, ())) for r in records]

    def update_issue_status(self, issue_id: str, status_id: str) -> Issue:
        """Set an issue's status.

        Raises:
            IssueNotFoundError: If issue doesn't exist
            StatusNotFoundError: If status doesn't exist
        """
        with self._db.session() as session:
            record = self._get_issue_record(session, issue_id)
            self._get_status_record(session, status_id)
            record.status_id = status_id
            record.updated_at = datetime.now(UTC).replace(tzinfo=None)
        return self.get_issue(issue_id)

    def update_issue_fields(self, issue_id: str, changes: Mapping[str, Any]) -> Issue:
        """Apply field changes. Unknown names are custom fields; None clears them."""
        with self._db.session() as session:
            record = self._get_issue_record(session, issue_id)
            custom = dict(record.fields)
            for name, value in changes.items():
                column = _ISSUE_COLUMNS.get(name)
                if column is not None:
                    setattr(record, column, value)
                elif value is None:
                    custom.pop(name, None)
                else:
                    custom[name] = value
            record.fields = custom
            record.updated_at = datetime.now(UTC).replace(tzinfo=None)
        return self.get_issue(issue_id)

    def add_comment(self, issue_id: str, author_id: str, body: str) -> Comment:
        with self._db.session() as session:
            self._get_issue_record(session, issue_id)
            record = IssueCommentRecord(issue_id=issue_id, author_id=author_id, body=body)
            session.add(record)
            session.flush()
            session.refresh(record)
            return _to_comment(record)

    def list_comments(self, issue_id: str) -> list[Comment]:
        with self._db.session() as session:
            stmt = (
                select(IssueCommentRecord)
                .where(IssueCommentRecord.issue_id == issue_id)
                .order_by(IssueCommentRecord.created_at)
            )
            return [_to_comment(r) for r in session.execute(stmt).scalars()]

    def record_transition(self, record: TransitionRecord) -> None:
        """Append a committed transition to the issue's history."""
        with self._db.session() as session:
            self._get_issue_record(session, record.issue_id)
            session.add(
                IssueHistoryRecord(
                    issue_id=record.issue_id,
                    from_status=record.from_status,
                    to_status=record.to_status,
                    actor_id=record.actor_id,
                    transition_id=record.transition_id,
                    transition_name=record.transition_name,
                    created_at=record.occurred_at,
                )
            )

    def get_history(self, issue_id: str) -> list[TransitionRecord]:
        """Get an issue's transition history, oldest first."""
        with self._db.session() as session:
            stmt = (
                select(IssueHistoryRecord)
                .where(IssueHistoryRecord.issue_id == issue_id)
                .order_by(IssueHistoryRecord.created_at)
            )
            return [
                TransitionRecord(
                    issue_id=r.issue_id,
                    from_status=r.from_status,
                    to_status=r.to_status,
                    actor_id=r.actor_id,
                    transition_id=r.transition_id,
                    transition_name=r.transition_name,
                    occurred_at=_utc(r.created_at) or datetime.now(UTC),
                )
                for r in session.execute(stmt).scalars()
            ]

    # --- Lookups ---

    def _get_status_record(self, session: Session, status_id: str) -> StatusRecord:
        record = session.get(StatusRecord, status_id)
        if record is None:
            raise StatusNotFoundError(f"Status with id '{status_id}' not found")
        return record

    def _get_workflow_record(self, session: Session, workflow_id: str) -> WorkflowRecord:
        record = session.get(WorkflowRecord, workflow_id)
        if record is None:
            raise WorkflowNotFoundError(f"Workflow with id '{workflow_id}' not found")
        return record

    def _get_issue_record(self, session: Session, issue_id: str) -> IssueRecord:
        record = session.get(IssueRecord, issue_id)
        if record is None:
            raise IssueNotFoundError(f"Issue with id '{issue_id}' not found")
        return record


def _rule_dict(rule: Any) -> Any:
    return rule.model_dump(exclude_none=True) if hasattr(rule, "model_dump") else rule


def _add_graph(session: Session, workflow: Workflow) -> None:
    for ordinal, step in enumerate(workflow.steps_of()):
        session.add(
            WorkflowStepRecord(
                id=step.id,
                workflow_id=workflow.id,
                status_id=step.status_id,
                is_initial=step.is_initial,
                position_x=step.position_x,
                position_y=step.position_y,
                ordinal=ordinal,
            )
        )
    session.flush()
    for ordinal, transition in enumerate(workflow.transitions):
        session.add(
            WorkflowTransitionRecord(
                id=transition.id,
                workflow_id=workflow.id,
                from_step_id=transition.from_step_id,
                to_step_id=transition.to_step_id,
                name=transition.name,
                description=transition.description,
                conditions=dump_rules(transition.conditions),
                validators=dump_rules(transition.validators),
                post_functions=dump_rules(transition.post_functions),
                ordinal=ordinal,
            )
        )


def _workflow_data(record: WorkflowRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "name": record.name,
        "description": record.description,
        "project_id": record.project_id,
        "is_default": record.is_default,
        "is_active": record.is_active,
        "is_draft": record.is_draft,
        "draft_of": record.draft_of,
        "steps": [
            {
                "id": s.id,
                "workflow_id": s.workflow_id,
                "status_id": s.status_id,
                "is_initial": s.is_initial,
                "position_x": s.position_x,
                "position_y": s.position_y,
            }
            for s in sorted(record.steps, key=lambda s: (s.ordinal, s.id))
        ],
        "transitions": [
            {
                "id": t.id,
                "workflow_id": t.workflow_id,
                "from_step_id": t.from_step_id,
                "to_step_id": t.to_step_id,
                "name": t.name,
                "description": t.description,
                "conditions": t.conditions,
                "validators": t.validators,
                "post_functions": t.post_functions,
            }
            for t in sorted(record.transitions, key=lambda t: (t.ordinal, t.id))
        ],
    }


def _subtasks(session: Session, parent_ids: list[str]) -> dict[str, tuple[Subtask, ...]]:
    if not parent_ids:
        return {}
    stmt = (
        select(IssueRecord.parent_id, IssueRecord.id, IssueRecord.status_id)
        .where(IssueRecord.parent_id.in_(parent_ids))
        .order_by(IssueRecord.created_at, IssueRecord.issue_key)
    )
    result: dict[str, list[Subtask]] = {}
    for parent_id, child_id, status_id in session.execute(stmt):
        result.setdefault(parent_id, []).append(Subtask(id=child_id, status=status_id))
    return {parent_id: tuple(children) for parent_id, children in result.items()}


def _to_status(record: StatusRecord) -> Status:
    return Status(
        id=record.id,
        name=record.name,
        category=StatusCategory(record.category),
        color=record.color,
    )


def _to_summary(record: WorkflowRecord) -> WorkflowSummary:
    return WorkflowSummary(
        id=record.id,
        name=record.name,
        description=record.description,
        project_id=record.project_id,
        is_default=record.is_default,
        is_active=record.is_active,
        is_draft=record.is_draft,
        draft_of=record.draft_of,
        step_count=len(record.steps),
        transition_count=len(record.transitions),
    )


def _to_step(record: WorkflowStepRecord) -> WorkflowStep:
    return WorkflowStep(
        id=record.id,
        workflow_id=record.workflow_id,
        status_id=record.status_id,
        is_initial=record.is_initial,
        position_x=record.position_x,
        position_y=record.position_y,
    )


def _to_transition(record: WorkflowTransitionRecord) -> Transition:
    return Transition(
        id=record.id,
        workflow_id=record.workflow_id,
        from_step_id=record.from_step_id,
        to_step_id=record.to_step_id,
        name=record.name,
        description=record.description,
        conditions=parse_conditions(record.conditions),
        validators=parse_validators(record.validators),
        post_functions=parse_post_functions(record.post_functions),
    )


def _to_column(record: BoardColumnRecord, statuses: Mapping[str, StatusRecord]) -> BoardColumn:
    status_ids = tuple(record.status_ids)
    display: tuple[ColumnStatus, ...] = ()
    if len(status_ids) > 1:
        display = tuple(
            ColumnStatus(
                id=status_id,
                name=statuses[status_id].name if status_id in statuses else status_id,
                category=(
                    StatusCategory(statuses[status_id].category) if status_id in statuses else None
                ),
            )
            for status_id in status_ids
        )
    return BoardColumn(
        id=record.column_key,
        name=record.name,
        status_category=StatusCategory(record.status_category),
        status_ids=status_ids,
        min_issues=record.min_issues,
        max_issues=record.max_issues,
        statuses=display,
    )


def _to_issue(record: IssueRecord, subtasks: tuple[Subtask, ...]) -> Issue:
    return Issue(
        id=record.id,
        status=record.status_id,
        key=record.issue_key,
        summary=record.summary,
        assignee=record.assignee,
        reporter=record.reporter,
        story_points=record.story_points,
        resolution=record.resolution,
        issue_type=record.issue_type,
        priority=record.priority,
        project_id=record.project_id,
        fields=dict(record.fields or {}),
        subtasks=subtasks,
        updated_at=_utc(record.updated_at),
    )


def _to_comment(record: IssueCommentRecord) -> Comment:
    return Comment(
        id=record.id,
        issue_id=record.issue_id,
        author_id=record.author_id,
        body=record.body,
        created_at=_utc(record.created_at),
    )
