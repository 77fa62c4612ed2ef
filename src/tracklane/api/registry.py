"""CoordinatorRegistry - one move coordinator per board, backed by the store."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from tracklane.board import BoardColumn, BoardMutationCoordinator
from tracklane.store import StoreIssueGateway
from tracklane.transitions import PostFunctionRunner, TransitionValidator

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tracklane.events import EventManager
    from tracklane.remote import RemoteBackend
    from tracklane.store import BoardStore
    from tracklane.transitions import Issue

logger = logging.getLogger(__name__)


class CoordinatorRegistry:
    """Builds and caches move coordinators.

    Every coordinator shares one set of in-flight issue IDs, so an issue shown
    on several boards still has at most one move being saved. Issues of a
    workflow no board shows get a column-less coordinator keyed by the
    workflow. Each access re-syncs the coordinator with the store before use.

    When a hosted backend is given, moves, post-function writes and history
    go to it first and are mirrored into the store.
    """

    def __init__(
        self,
        store: BoardStore,
        events: EventManager | None = None,
        remote: RemoteBackend | None = None,
    ) -> None:
        self.store = store
        self.events = events
        self.remote = remote
        self.gateway = StoreIssueGateway(store, upstream=remote)
        self._coordinators: dict[str, BoardMutationCoordinator] = {}
        self._in_flight: set[str] = set()
        self._lock = asyncio.Lock()

    def _build(
        self,
        workflow_id: str,
        columns: Sequence[BoardColumn],
        issues: list[Issue],
        project_id: str | None,
        project_lead: str | None,
    ) -> BoardMutationCoordinator:
        workflow = self.store.load_workflow(workflow_id)
        statuses = {status.id: status for status in self.store.list_statuses()}
        logger.info("Building coordinator for %r", workflow)
        return BoardMutationCoordinator(
            columns=columns,
            issues=issues,
            validator=TransitionValidator(workflow, statuses),
            writer=self.gateway,
            history=self.gateway,
            post_functions=PostFunctionRunner(
                fields=self.gateway,
                comments=self.gateway,
                notifier=self.events,
                project_lead=project_lead,
            ),
            events=self.events,
            project_id=project_id,
            in_flight=self._in_flight,
        )

    async def _get(
        self,
        key: str,
        workflow_id: str,
        columns: Sequence[BoardColumn],
        project_id: str | None,
        project_lead: str | None = None,
    ) -> BoardMutationCoordinator:
        issues = await asyncio.to_thread(
            self.store.list_issues, project_id=project_id, workflow_id=workflow_id
        )
        async with self._lock:
            coordinator = self._coordinators.get(key)
            if coordinator is None:
                coordinator = await asyncio.to_thread(
                    self._build, workflow_id, columns, issues, project_id, project_lead
                )
                self._coordinators[key] = coordinator
                return coordinator
        coordinator.sync_issues(issues)
        return coordinator

    async def for_board(self, board_id: str) -> BoardMutationCoordinator:
        """Coordinator for a board, synced with the store's current issues.

        Raises:
            BoardNotFoundError: If board doesn't exist
        """
        board = await asyncio.to_thread(self.store.get_board, board_id)
        return await self._get(
            board_id, board.workflow_id, board.columns, board.project_id, board.project_lead
        )

    async def for_issue(self, issue_id: str) -> BoardMutationCoordinator | None:
        """Coordinator governing an issue's moves.

        Prefers the first board showing the issue; falls back to the issue's
        workflow. Returns None for issues without a workflow.

        Raises:
            IssueNotFoundError: If issue doesn't exist
        """
        workflow_id = await asyncio.to_thread(self.store.get_issue_workflow_id, issue_id)
        if workflow_id is None:
            return None
        boards = await asyncio.to_thread(self.store.list_boards)
        for board in boards:
            if board.workflow_id == workflow_id:
                coordinator = await self.for_board(board.id)
                if coordinator.get_issue(issue_id) is not None:
                    return coordinator
        issue = await asyncio.to_thread(self.store.get_issue, issue_id)
        return await self._get(f"workflow:{workflow_id}", workflow_id, (), issue.project_id)

    def invalidate(self, workflow_id: str | None = None) -> None:
        """Drop cached coordinators, e.g. after a draft was published."""
        if workflow_id is None:
            self._coordinators.clear()
            return
        for key, coordinator in list(self._coordinators.items()):
            if coordinator.validator.workflow.id == workflow_id:
                del self._coordinators[key]

    async def drain(self) -> None:
        """Wait for pending history writes on every coordinator."""
        for coordinator in list(self._coordinators.values()):
            await coordinator.drain()

    async def close(self) -> None:
        """Drain pending writes, then close the hosted backend client."""
        await self.drain()
        if self.remote is not None:
            await self.remote.close()
