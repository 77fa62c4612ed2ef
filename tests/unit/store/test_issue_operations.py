"""Unit tests for BoardStore issue operations."""

from datetime import UTC, datetime, timedelta

import pytest

from tracklane.store import (
    BoardStore,
    IssueExistsError,
    IssueNotFoundError,
    StatusNotFoundError,
    WorkflowNotFoundError,
)
from tracklane.transitions import Subtask, TransitionRecord


@pytest.mark.unit
class TestCreateIssue:
    """Tests for create_issue."""

    def test_starts_at_initial_status(self, seeded_store: BoardStore) -> None:
        issue = seeded_store.create_issue(
            "PROJ-1",
            "Login fails",
            "wf-1",
            project_id="proj",
            assignee="alice",
            story_points=3,
            fields={"env": "prod"},
        )

        assert issue.status == "todo"
        assert issue.key == "PROJ-1"
        assert issue.assignee == "alice"
        assert issue.story_points == 3
        assert issue.fields == {"env": "prod"}
        assert issue.updated_at.tzinfo is UTC

    def test_duplicate_key(self, seeded_store: BoardStore) -> None:
        seeded_store.create_issue("PROJ-1", "First", "wf-1")

        with pytest.raises(IssueExistsError):
            seeded_store.create_issue("PROJ-1", "Second", "wf-1")

    def test_unknown_workflow(self, store: BoardStore) -> None:
        with pytest.raises(WorkflowNotFoundError):
            store.create_issue("PROJ-1", "Lost", "missing")

    def test_subtasks(self, seeded_store: BoardStore) -> None:
        parent = seeded_store.create_issue("PROJ-1", "Parent", "wf-1")
        child = seeded_store.create_issue("PROJ-2", "Child", "wf-1", parent_id=parent.id)

        assert seeded_store.get_issue(parent.id).subtasks == (Subtask(child.id, "todo"),)


@pytest.mark.unit
class TestQueryIssues:
    def test_get_issue_not_found(self, store: BoardStore) -> None:
        with pytest.raises(IssueNotFoundError):
            store.get_issue("missing")

    def test_list_issues_in_creation_order(self, seeded_store: BoardStore) -> None:
        seeded_store.create_issue("PROJ-2", "Second", "wf-1", project_id="proj")
        seeded_store.create_issue("PROJ-1", "Third", "wf-1", project_id="proj")
        seeded_store.create_issue("OTHER-1", "Elsewhere", "wf-1", project_id="other")

        keys = [i.key for i in seeded_store.list_issues(project_id="proj")]

        assert keys == ["PROJ-2", "PROJ-1"]

    def test_list_issues_by_workflow(self, seeded_store: BoardStore) -> None:
        clone = seeded_store.clone_workflow("wf-1")
        seeded_store.create_issue("PROJ-1", "Here", "wf-1")
        seeded_store.create_issue("PROJ-2", "There", clone.id)

        assert [i.key for i in seeded_store.list_issues(workflow_id=clone.id)] == ["PROJ-2"]
        assert seeded_store.get_issue_workflow_id(
            seeded_store.list_issues(workflow_id="wf-1")[0].id
        ) == "wf-1"


@pytest.mark.unit
class TestUpdateIssue:
    """Tests for update_issue_status and update_issue_fields."""

    def test_update_status(self, seeded_store: BoardStore) -> None:
        issue = seeded_store.create_issue("PROJ-1", "Move me", "wf-1")

        moved = seeded_store.update_issue_status(issue.id, "in_progress")

        assert moved.status == "in_progress"

    def test_update_status_unknown_status(self, seeded_store: BoardStore) -> None:
        issue = seeded_store.create_issue("PROJ-1", "Move me", "wf-1")

        with pytest.raises(StatusNotFoundError):
            seeded_store.update_issue_status(issue.id, "archived")
        assert seeded_store.get_issue(issue.id).status == "todo"

    def test_update_fields(self, seeded_store: BoardStore) -> None:
        issue = seeded_store.create_issue("PROJ-1", "Edit me", "wf-1", fields={"env": "dev"})

        updated = seeded_store.update_issue_fields(
            issue.id, {"resolution": "Fixed", "assignee": "bob", "sprint": "S1", "env": None}
        )

        assert updated.resolution == "Fixed"
        assert updated.assignee == "bob"
        assert updated.fields == {"sprint": "S1"}

    def test_update_fields_not_found(self, store: BoardStore) -> None:
        with pytest.raises(IssueNotFoundError):
            store.update_issue_fields("missing", {"summary": "x"})


@pytest.mark.unit
class TestCommentsAndHistory:
    def test_comments(self, seeded_store: BoardStore) -> None:
        issue = seeded_store.create_issue("PROJ-1", "Discuss", "wf-1")

        comment = seeded_store.add_comment(issue.id, "alice", "Looks good")

        assert comment.author_id == "alice"
        assert [c.body for c in seeded_store.list_comments(issue.id)] == ["Looks good"]

    def test_comment_on_missing_issue(self, store: BoardStore) -> None:
        with pytest.raises(IssueNotFoundError):
            store.add_comment("missing", "alice", "Hello?")

    def test_history_oldest_first(self, seeded_store: BoardStore) -> None:
        issue = seeded_store.create_issue("PROJ-1", "Track me", "wf-1")
        start = datetime(2026, 1, 5, 12, 0, tzinfo=UTC)
        seeded_store.record_transition(
            TransitionRecord(
                issue.id, "in_progress", "todo", "bob", "t-stop", "Stop",
                occurred_at=start + timedelta(hours=1),
            )
        )
        seeded_store.record_transition(
            TransitionRecord(
                issue.id, "todo", "in_progress", "alice", "t-start", "Start", occurred_at=start
            )
        )

        history = seeded_store.get_history(issue.id)

        assert [h.transition_name for h in history] == ["Start", "Stop"]
        assert history[0].occurred_at == start
        assert history[1].actor_id == "bob"

    def test_history_for_missing_issue(self, store: BoardStore) -> None:
        record = TransitionRecord("missing", "todo", "done", "alice")

        with pytest.raises(IssueNotFoundError):
            store.record_transition(record)
