"""Shared pytest fixtures and configuration."""

from collections.abc import Callable, Iterator

import pytest

from tracklane.store import BoardStore
from tracklane.transitions import Actor, Issue
from tracklane.workflow import (
    Status,
    StatusCategory,
    Transition,
    Workflow,
    WorkflowStep,
)
from tracklane.workflow.rules import OnlyAssignee, ResolutionSet


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: component interaction tests")


# Shared fixtures


@pytest.fixture
def statuses() -> dict[str, Status]:
    """Status catalog used by the software workflow."""
    return {
        "todo": Status(id="todo", name="To Do", category=StatusCategory.TODO),
        "in_progress": Status(
            id="in_progress", name="In Progress", category=StatusCategory.IN_PROGRESS
        ),
        "in_review": Status(id="in_review", name="In Review", category=StatusCategory.IN_PROGRESS),
        "done": Status(id="done", name="Done", category=StatusCategory.DONE),
    }


@pytest.fixture
def software_workflow() -> Workflow:
    """To Do -> In Progress -> In Review -> Done, with a reopen edge.

    Review is assignee-only; Approve requires a resolution.
    """
    steps = [
        WorkflowStep(id="s-todo", workflow_id="wf-1", status_id="todo", is_initial=True),
        WorkflowStep(id="s-progress", workflow_id="wf-1", status_id="in_progress"),
        WorkflowStep(id="s-review", workflow_id="wf-1", status_id="in_review"),
        WorkflowStep(id="s-done", workflow_id="wf-1", status_id="done"),
    ]
    transitions = [
        Transition(id="t-start", workflow_id="wf-1", from_step_id="s-todo",
                   to_step_id="s-progress", name="Start"),
        Transition(id="t-stop", workflow_id="wf-1", from_step_id="s-progress",
                   to_step_id="s-todo", name="Stop"),
        Transition(id="t-review", workflow_id="wf-1", from_step_id="s-progress",
                   to_step_id="s-review", name="Review", conditions=(OnlyAssignee(),)),
        Transition(id="t-approve", workflow_id="wf-1", from_step_id="s-review",
                   to_step_id="s-done", name="Approve", validators=(ResolutionSet(),)),
        Transition(id="t-reopen", workflow_id="wf-1", from_step_id="s-done",
                   to_step_id="s-todo", name="Reopen"),
    ]
    return Workflow(id="wf-1", name="Software", steps=steps, transitions=transitions)


@pytest.fixture
def make_issue() -> Callable[..., Issue]:
    """Factory for issues with sensible defaults."""

    def _make(issue_id: str = "i-1", status: str = "todo", **kwargs) -> Issue:
        kwargs.setdefault("key", f"PROJ-{issue_id.split('-')[-1]}")
        kwargs.setdefault("summary", f"Issue {issue_id}")
        return Issue(id=issue_id, status=status, **kwargs)

    return _make


@pytest.fixture
def actor() -> Actor:
    return Actor(id="alice", display_name="Alice")


@pytest.fixture
def store() -> Iterator[BoardStore]:
    """Create an in-memory BoardStore for testing."""
    board_store = BoardStore(":memory:")
    yield board_store
    board_store.close()


@pytest.fixture
def seeded_store(store: BoardStore, statuses, software_workflow) -> BoardStore:
    """Store holding the status catalog and the software workflow (wf-1)."""
    for status in statuses.values():
        store.create_status(status.name, category=status.category, status_id=status.id)
    store.save_workflow(software_workflow)
    return store
