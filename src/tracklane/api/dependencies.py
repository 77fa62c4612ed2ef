"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from collections.abc import Generator  # noqa: TC003
from typing import Annotated

from fastapi import Depends

from tracklane.api.registry import CoordinatorRegistry
from tracklane.events import EventManager
from tracklane.remote import RemoteBackend  # noqa: TC001
from tracklane.store import BoardStore

# Global BoardStore instance (initialized on app startup)
_board_store: BoardStore | None = None


def init_board_store(db_path: str = "tracklane.db") -> BoardStore:
    """Initialize the global BoardStore instance."""
    global _board_store  # noqa: PLW0603
    _board_store = BoardStore(db_path)
    return _board_store


def close_board_store() -> None:
    """Close the global BoardStore instance."""
    global _board_store  # noqa: PLW0603
    if _board_store is not None:
        _board_store.close()
        _board_store = None


def get_board_store() -> Generator[BoardStore, None, None]:
    """Dependency that provides the BoardStore instance."""
    if _board_store is None:
        raise RuntimeError("BoardStore not initialized. Call init_board_store() first.")
    yield _board_store


BoardStoreDep = Annotated[BoardStore, Depends(get_board_store)]

# Global EventManager instance
_event_manager: EventManager | None = None


def init_event_manager() -> EventManager:
    """Initialize the global EventManager instance."""
    global _event_manager  # noqa: PLW0603
    _event_manager = EventManager()
    return _event_manager


def get_event_manager() -> Generator[EventManager, None, None]:
    """Dependency that provides the EventManager instance."""
    if _event_manager is None:
        raise RuntimeError("EventManager not initialized. Call init_event_manager() first.")
    yield _event_manager


EventManagerDep = Annotated[EventManager, Depends(get_event_manager)]

# Global CoordinatorRegistry instance (initialized on app startup)
_registry: CoordinatorRegistry | None = None


def init_registry(
    store: BoardStore,
    events: EventManager | None = None,
    remote: RemoteBackend | None = None,
) -> CoordinatorRegistry:
    """Initialize the global CoordinatorRegistry instance."""
    global _registry  # noqa: PLW0603
    _registry = CoordinatorRegistry(store, events, remote)
    return _registry


def close_registry() -> None:
    global _registry  # noqa: PLW0603
    _registry = None


def get_registry() -> Generator[CoordinatorRegistry, None, None]:
    """Dependency that provides the CoordinatorRegistry instance."""
    if _registry is None:
        raise RuntimeError("CoordinatorRegistry not initialized. Call init_registry() first.")
    yield _registry


RegistryDep = Annotated[CoordinatorRegistry, Depends(get_registry)]
