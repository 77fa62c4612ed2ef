"""StoreIssueGateway - async collaborator protocols over a BoardStore."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tracklane.remote import RemoteBackend
    from tracklane.store.store import BoardStore
    from tracklane.transitions import TransitionRecord


class StoreIssueGateway:
    """Adapts the synchronous store to the coordinator's async collaborators.

    Store calls run in a worker thread so they never block the event loop.
    Store errors propagate; the coordinator turns them into rollbacks.

    With an ``upstream`` hosted backend, each write goes there first and is
    mirrored into the store only after the backend accepted it. The store
    then holds the local copy boards are projected from.
    """

    def __init__(self, store: BoardStore, upstream: RemoteBackend | None = None) -> None:
        self.store = store
        self.upstream = upstream

    async def update_issue_status(self, issue_id: str, status_id: str) -> bool:
        if self.upstream is not None:
            if not await self.upstream.update_issue_status(issue_id, status_id):
                return False
        await asyncio.to_thread(self.store.update_issue_status, issue_id, status_id)
        return True

    async def update_issue_fields(self, issue_id: str, changes: Mapping[str, Any]) -> None:
        if self.upstream is not None:
            await self.upstream.update_issue_fields(issue_id, changes)
        await asyncio.to_thread(self.store.update_issue_fields, issue_id, dict(changes))

    async def add_comment(self, issue_id: str, author_id: str, body: str) -> None:
        if self.upstream is not None:
            await self.upstream.add_comment(issue_id, author_id, body)
        await asyncio.to_thread(self.store.add_comment, issue_id, author_id, body)

    async def record_transition(self, record: TransitionRecord) -> None:
        if self.upstream is not None:
            await self.upstream.record_transition(record)
        await asyncio.to_thread(self.store.record_transition, record)
