"""BoardMutationCoordinator - validated, optimistic issue moves on a board."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from tracklane.board.models import BoardFilters, BoardView
from tracklane.board.projection import (
    NO_FILTERS,
    column_of,
    issue_in_column,
    project_board,
    representative_status,
)
from tracklane.transitions import (
    ConfigurationError,
    Denied,
    ExternalFailure,
    MoveInProgressError,
    TransitionRecord,
)

if TYPE_CHECKING:
    from tracklane.board.models import BoardColumn
    from tracklane.events import EventManager
    from tracklane.protocols import HistoryRecorder, IssueStatusWriter
    from tracklane.transitions import (
        Actor,
        Issue,
        PostFunctionReport,
        PostFunctionRunner,
        TransitionError,
        TransitionValidator,
    )
    from tracklane.workflow import Transition

logger = logging.getLogger(__name__)

ROLLBACK_MESSAGE = "The move could not be saved. Please try again or contact support."


class MoveState(StrEnum):
    """Lifecycle of one move attempt."""

    IDLE = "idle"
    REQUESTED = "requested"
    VALIDATING = "validating"
    REJECTED = "rejected"
    APPLYING = "applying"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


TERMINAL_STATES = frozenset({MoveState.REJECTED, MoveState.COMMITTED, MoveState.ROLLED_BACK})


@dataclass
class MoveOutcome:
    """Result of a move attempt, ready to be shown to the user.

    Attributes:
        issue_id: The moved issue.
        state: Terminal state of the attempt (or IDLE when nothing moved).
        from_status: Status before the attempt.
        to_status: Requested target status.
        from_column_id: Column the issue started in.
        to_column_id: Column the issue was dropped on, if any.
        transition: Transition taken, once validated.
        error: The recovered error for rejected and rolled back moves.
        post_functions: Post-function report for committed moves.
    """

    issue_id: str
    state: MoveState
    from_status: str
    to_status: str
    from_column_id: str | None = None
    to_column_id: str | None = None
    transition: Transition | None = None
    error: TransitionError | None = None
    post_functions: PostFunctionReport | None = None

    @property
    def committed(self) -> bool:
        return self.state == MoveState.COMMITTED

    @property
    def error_kind(self) -> str | None:
        return type(self.error).__name__ if self.error is not None else None

    @property
    def user_message(self) -> str | None:
        """Text for the toast or banner, if anything needs saying."""
        if self.state == MoveState.ROLLED_BACK:
            return ROLLBACK_MESSAGE
        if self.error is not None:
            return str(self.error)
        return None


class BoardMutationCoordinator:
    """Applies user-initiated moves to the local board state.

    A move is validated first; denied moves never touch local state or the
    backend. Allowed moves update local state optimistically, then persist
    the new status through ``writer``; a failed write restores the previous
    status. Each issue has at most one move in flight; a second move on the
    same issue is rejected until the first finishes. Coordinators given the
    same ``in_flight`` set enforce this across boards.

    No error from validation or persistence escapes: each is returned on the
    MoveOutcome. Failed writes are not retried.
    """

    def __init__(
        self,
        columns: Sequence[BoardColumn],
        issues: Iterable[Issue],
        validator: TransitionValidator,
        writer: IssueStatusWriter,
        history: HistoryRecorder | None = None,
        post_functions: PostFunctionRunner | None = None,
        events: EventManager | None = None,
        project_id: str | None = None,
        in_flight: set[str] | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            columns: Board columns, in display order.
            issues: Initial issue set; its order is kept for display.
            validator: Transition validator for the board's workflow.
            writer: Persists status changes.
            history: Records committed transitions (optional).
            post_functions: Runs post-functions after a commit (optional).
            events: Event manager for realtime notifications (optional).
            project_id: Project the board belongs to, for event routing.
            in_flight: IDs of issues being saved, shared with other
                coordinators that can move the same issues (optional).
        """
        self.columns = tuple(columns)
        self.validator = validator
        self.writer = writer
        self.history = history
        self.post_functions = post_functions
        self.events = events
        self.project_id = project_id
        self._issues: dict[str, Issue] = {issue.id: issue for issue in issues}
        self._states: dict[str, MoveState] = {}
        self._in_flight: set[str] = in_flight if in_flight is not None else set()
        self._background: set[asyncio.Task[None]] = set()

    # --- Local view state ---

    @property
    def issues(self) -> list[Issue]:
        """Local issues in source order, with optimistic moves applied."""
        return list(self._issues.values())

    def get_issue(self, issue_id: str) -> Issue | None:
        return self._issues.get(issue_id)

    def move_state(self, issue_id: str) -> MoveState:
        """Current (or last terminal) move state of an issue."""
        return self._states.get(issue_id, MoveState.IDLE)

    def is_applying(self, issue_id: str) -> bool:
        return issue_id in self._in_flight

    def view(self, filters: BoardFilters = NO_FILTERS) -> BoardView:
        """Project local state onto the columns."""
        return project_board(self.columns, self._issues.values(), filters)

    def get_column(self, column_id: str) -> BoardColumn | None:
        for column in self.columns:
            if column.id == column_id:
                return column
        return None

    def sync_issues(self, issues: Iterable[Issue]) -> None:
        """Replace local state with a fresh snapshot from the backend.

        Snapshots may arrive in any order relative to local writes, so an
        issue this coordinator is still saving keeps its optimistic status.
        """
        fresh: dict[str, Issue] = {}
        for issue in issues:
            local = self._issues.get(issue.id)
            if self._states.get(issue.id) == MoveState.APPLYING and local is not None:
                issue = issue.with_status(local.status)
            fresh[issue.id] = issue
        self._issues = fresh

    # --- Moves ---

    async def drop_issue(self, issue_id: str, column_id: str, actor: Actor) -> MoveOutcome:
        """Handle an issue dropped on a column.

        The target status is the column's representative status. Dropping an
        issue on the column it already sits in changes nothing.
        """
        issue = self._issues.get(issue_id)
        column = self.get_column(column_id)
        if issue is None or column is None:
            missing = f"issue '{issue_id}'" if issue is None else f"column '{column_id}'"
            return self._reject_unknown(issue_id, issue, missing, column_id)

        if issue_in_column(issue, column):
            return MoveOutcome(
                issue_id=issue_id,
                state=MoveState.IDLE,
                from_status=issue.status,
                to_status=issue.status,
                from_column_id=column.id,
                to_column_id=column.id,
            )

        return await self._move(issue, representative_status(column), actor, column.id)

    async def select_transition(self, issue_id: str, to_status: str, actor: Actor) -> MoveOutcome:
        """Handle an explicit transition chosen from the issue's transition menu."""
        issue = self._issues.get(issue_id)
        if issue is None:
            return self._reject_unknown(issue_id, None, f"issue '{issue_id}'", None)
        target = column_of(issue.with_status(to_status), self.columns)
        return await self._move(issue, to_status, actor, target.id if target else None)

    async def drain(self) -> None:
        """Wait for pending fire-and-forget work (history records)."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def _move(
        self,
        issue: Issue,
        to_status: str,
        actor: Actor,
        to_column_id: str | None,
    ) -> MoveOutcome:
        from_status = issue.status
        origin = column_of(issue, self.columns)
        outcome = MoveOutcome(
            issue_id=issue.id,
            state=MoveState.REQUESTED,
            from_status=from_status,
            to_status=to_status,
            from_column_id=origin.id if origin else None,
            to_column_id=to_column_id,
        )

        if issue.id in self._in_flight:
            outcome.error = MoveInProgressError(
                "A previous move of this issue is still being saved"
            )
            logger.info("Move of issue %s rejected: previous move still applying", issue.id)
            # The in-flight move owns the issue's state; report without touching it.
            outcome.state = MoveState.REJECTED
            return outcome

        self._states[issue.id] = MoveState.VALIDATING
        decision = self.validator.can_transition(issue, from_status, to_status, actor)
        if isinstance(decision, Denied):
            outcome.transition = decision.transition
            return self._reject(outcome, decision.to_error())

        outcome.transition = decision.transition
        return await self._apply(outcome, issue, actor)

    async def _apply(self, outcome: MoveOutcome, issue: Issue, actor: Actor) -> MoveOutcome:
        issue_id = issue.id
        self._in_flight.add(issue_id)
        self._states[issue_id] = MoveState.APPLYING
        self._issues[issue_id] = issue.with_status(outcome.to_status)
        try:
            try:
                result = await self.writer.update_issue_status(issue_id, outcome.to_status)
            except Exception as e:
                raise ExternalFailure(f"Status update failed: {e}") from e
            if result is False:
                raise ExternalFailure("Status update was refused by the backend")
        except ExternalFailure as e:
            return self._roll_back(outcome, e)
        except asyncio.CancelledError:
            # The write may or may not have landed; show the last confirmed status.
            self._restore(outcome)
            logger.warning(
                "Move of issue %s to %s cancelled while saving", issue_id, outcome.to_status
            )
            raise
        finally:
            self._in_flight.discard(issue_id)

        self._states[issue_id] = MoveState.COMMITTED
        outcome.state = MoveState.COMMITTED
        logger.info(
            "Issue %s moved from %s to %s",
            issue_id,
            outcome.from_status,
            outcome.to_status,
        )
        if self.events is not None:
            self.events.emit_issue_moved(
                issue_id,
                outcome.from_status,
                outcome.to_status,
                project_id=self.project_id,
                transition=outcome.transition.name if outcome.transition else None,
            )

        self._record_history(outcome, actor)

        if self.post_functions is not None and outcome.transition is not None:
            outcome.post_functions = await self.post_functions.run(
                self._issues.get(issue_id, issue), outcome.transition, actor
            )
        return outcome

    def _reject(self, outcome: MoveOutcome, error: TransitionError) -> MoveOutcome:
        self._states[outcome.issue_id] = MoveState.REJECTED
        outcome.state = MoveState.REJECTED
        outcome.error = error
        if isinstance(error, ConfigurationError):
            logger.warning(
                "Move of issue %s to %s rejected by configuration: %s",
                outcome.issue_id,
                outcome.to_status,
                error,
            )
        else:
            logger.info("Move of issue %s rejected: %s", outcome.issue_id, error)
        if self.events is not None:
            self.events.emit_move_rejected(outcome.issue_id, str(error), project_id=self.project_id)
        return outcome

    def _reject_unknown(
        self,
        issue_id: str,
        issue: Issue | None,
        missing: str,
        column_id: str | None,
    ) -> MoveOutcome:
        status = issue.status if issue is not None else ""
        outcome = MoveOutcome(
            issue_id=issue_id,
            state=MoveState.REQUESTED,
            from_status=status,
            to_status=status,
            to_column_id=column_id,
        )
        return self._reject(outcome, ConfigurationError(f"Unknown {missing} on this board"))

    def _restore(self, outcome: MoveOutcome) -> None:
        current = self._issues.get(outcome.issue_id)
        if current is not None:
            self._issues[outcome.issue_id] = current.with_status(outcome.from_status)
        self._states[outcome.issue_id] = MoveState.ROLLED_BACK

    def _roll_back(self, outcome: MoveOutcome, error: ExternalFailure) -> MoveOutcome:
        issue_id = outcome.issue_id
        self._restore(outcome)
        outcome.state = MoveState.ROLLED_BACK
        outcome.error = error
        logger.error("Move of issue %s to %s rolled back: %s", issue_id, outcome.to_status, error)
        if self.events is not None:
            self.events.emit_move_rolled_back(
                issue_id, outcome.from_status, str(error), project_id=self.project_id
            )
        return outcome

    def _record_history(self, outcome: MoveOutcome, actor: Actor) -> None:
        if self.history is None:
            return
        record = TransitionRecord(
            issue_id=outcome.issue_id,
            from_status=outcome.from_status,
            to_status=outcome.to_status,
            actor_id=actor.id,
            transition_id=outcome.transition.id if outcome.transition else None,
            transition_name=outcome.transition.name if outcome.transition else None,
        )
        task = asyncio.create_task(self._write_history(self.history, record))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    @staticmethod
    async def _write_history(history: HistoryRecorder, record: TransitionRecord) -> None:
        try:
            await history.record_transition(record)
        except Exception as e:
            # History is informational; the committed move stands.
            logger.warning("Failed to record transition for issue %s: %s", record.issue_id, e)
