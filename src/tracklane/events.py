"""Event manager for board activity streamed over Server-Sent Events (SSE)."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4


class EventType(str, Enum):
    """Types of events that can be emitted."""

    ISSUE_MOVED = "issue_moved"
    MOVE_REJECTED = "move_rejected"
    MOVE_ROLLED_BACK = "move_rolled_back"
    NOTIFICATION = "notification"
    HEARTBEAT = "heartbeat"


@dataclass
class Event:
    """An event to be sent via SSE."""

    event_type: EventType
    data: dict[str, Any]
    project_id: str | None = None

    def to_sse(self) -> str:
        """Convert to SSE format."""
        return f"event: {self.event_type.value}\ndata: {json.dumps(self.data)}\n\n"


@dataclass
class Subscriber:
    """A subscriber to the event stream."""

    id: str
    queue: asyncio.Queue[Event]
    project_id: str | None = None  # None means subscribe to all projects

    @classmethod
    def create(cls, project_id: str | None = None) -> Subscriber:
        """Create a new subscriber."""
        return cls(id=str(uuid4()), queue=asyncio.Queue(), project_id=project_id)


def _timestamp() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


@dataclass
class EventManager:
    """Manager for SSE events."""

    _subscribers: dict[str, Subscriber] = field(default_factory=dict)
    _heartbeat_interval: int = 30  # seconds

    def subscribe(self, project_id: str | None = None) -> Subscriber:
        """Subscribe a client to events.

        Args:
            project_id: Optional project ID to filter events. None means all projects.

        Returns:
            Subscriber instance for receiving events.
        """
        subscriber = Subscriber.create(project_id)
        self._subscribers[subscriber.id] = subscriber
        return subscriber

    def unsubscribe(self, subscriber_id: str) -> None:
        """Unsubscribe a client from events."""
        self._subscribers.pop(subscriber_id, None)

    async def emit(self, event: Event) -> None:
        """Emit an event to all matching subscribers."""
        for subscriber in self._subscribers.values():
            if subscriber.project_id is None or subscriber.project_id == event.project_id:
                await subscriber.queue.put(event)

    def emit_sync(self, event: Event) -> None:
        """Emit an event synchronously (for use in non-async contexts)."""
        for subscriber in self._subscribers.values():
            if subscriber.project_id is None or subscriber.project_id == event.project_id:
                subscriber.queue.put_nowait(event)

    @property
    def subscriber_count(self) -> int:
        """Get the number of active subscribers."""
        return len(self._subscribers)

    # Convenience methods for emitting specific event types

    def emit_issue_moved(
        self,
        issue_id: str,
        from_status: str,
        to_status: str,
        project_id: str | None = None,
        transition: str | None = None,
    ) -> None:
        """Emit an issue_moved event."""
        self.emit_sync(
            Event(
                event_type=EventType.ISSUE_MOVED,
                project_id=project_id,
                data={
                    "issue_id": issue_id,
                    "from_status": from_status,
                    "to_status": to_status,
                    "transition": transition,
                },
            )
        )

    def emit_move_rejected(
        self,
        issue_id: str,
        reason: str,
        project_id: str | None = None,
    ) -> None:
        """Emit a move_rejected event."""
        self.emit_sync(
            Event(
                event_type=EventType.MOVE_REJECTED,
                project_id=project_id,
                data={"issue_id": issue_id, "reason": reason},
            )
        )

    def emit_move_rolled_back(
        self,
        issue_id: str,
        status: str,
        error: str,
        project_id: str | None = None,
    ) -> None:
        """Emit a move_rolled_back event."""
        self.emit_sync(
            Event(
                event_type=EventType.MOVE_ROLLED_BACK,
                project_id=project_id,
                data={"issue_id": issue_id, "status": status, "error": error},
            )
        )

    def emit_notification(
        self,
        issue_id: str,
        message: str,
        project_id: str | None = None,
    ) -> None:
        """Emit a notification event."""
        self.emit_sync(
            Event(
                event_type=EventType.NOTIFICATION,
                project_id=project_id,
                data={"issue_id": issue_id, "message": message, "timestamp": _timestamp()},
            )
        )

    def create_heartbeat_event(self) -> Event:
        """Create a heartbeat event."""
        return Event(
            event_type=EventType.HEARTBEAT,
            data={"timestamp": _timestamp()},
        )
