"""Board activity stream over Server-Sent Events (SSE)."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from fastapi import APIRouter, Query
from fastapi.responses import StreamingResponse

from tracklane.api.dependencies import EventManagerDep
from tracklane.events import EventType

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from tracklane.events import EventManager, Subscriber

router = APIRouter(prefix="/events", tags=["events"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


async def _frames(
    event_manager: EventManager,
    subscriber: Subscriber,
    wanted: frozenset[EventType],
) -> AsyncGenerator[str, None]:
    try:
        while True:
            try:
                event = await asyncio.wait_for(
                    subscriber.queue.get(), timeout=event_manager._heartbeat_interval
                )
            except TimeoutError:
                yield event_manager.create_heartbeat_event().to_sse()
                continue
            if not wanted or event.event_type in wanted:
                yield event.to_sse()
    except asyncio.CancelledError:
        # Client went away
        pass
    finally:
        event_manager.unsubscribe(subscriber.id)


@router.get("/stream")
async def event_stream(
    event_manager: EventManagerDep,
    project_id: str | None = Query(default=None, description="Only this project's boards"),
    event_type: list[EventType] = Query(
        default=[], description="Only these event types (heartbeats are always sent)"
    ),
) -> StreamingResponse:
    """Stream issue moves, rejected and rolled back moves, and notifications.

    A heartbeat goes out whenever the stream has been quiet for the manager's
    heartbeat interval (30 seconds by default).
    """
    subscriber = event_manager.subscribe(project_id)
    return StreamingResponse(
        _frames(event_manager, subscriber, frozenset(event_type)),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
