"""Unit tests for BoardStore status operations."""

import pytest

from tracklane.store import BoardStore, StatusInUseError, StatusNotFoundError
from tracklane.workflow import StatusCategory


@pytest.mark.unit
class TestCreateStatus:
    """Tests for create_status."""

    def test_create_status_minimal(self, store: BoardStore) -> None:
        status = store.create_status("Backlog")

        assert status.id
        assert status.name == "Backlog"
        assert status.category == StatusCategory.TODO
        assert status.color == "#6b7280"

    def test_create_status_with_id(self, store: BoardStore) -> None:
        status = store.create_status("Done", category="done", color="#22c55e", status_id="done")

        assert store.get_status("done") == status
        assert status.category == StatusCategory.DONE

    def test_create_status_bad_category(self, store: BoardStore) -> None:
        with pytest.raises(ValueError):
            store.create_status("Limbo", category="somewhere")


@pytest.mark.unit
class TestQueryStatuses:
    """Tests for get_status, list_statuses and status_categories."""

    def test_get_status_not_found(self, store: BoardStore) -> None:
        with pytest.raises(StatusNotFoundError):
            store.get_status("missing")

    def test_list_statuses_sorted_by_name(self, store: BoardStore) -> None:
        store.create_status("Review", status_id="r")
        store.create_status("Backlog", status_id="b")

        assert [s.name for s in store.list_statuses()] == ["Backlog", "Review"]

    def test_status_categories(self, seeded_store: BoardStore) -> None:
        categories = seeded_store.status_categories()

        assert categories["in_review"] == StatusCategory.IN_PROGRESS
        assert categories["done"] == StatusCategory.DONE


@pytest.mark.unit
class TestUpdateStatus:
    def test_update_status_partial(self, store: BoardStore) -> None:
        store.create_status("QA", status_id="qa")

        updated = store.update_status("qa", category=StatusCategory.IN_PROGRESS)

        assert updated.name == "QA"
        assert updated.category == StatusCategory.IN_PROGRESS
        assert store.get_status("qa").category == StatusCategory.IN_PROGRESS

    def test_update_status_not_found(self, store: BoardStore) -> None:
        with pytest.raises(StatusNotFoundError):
            store.update_status("missing", name="X")


@pytest.mark.unit
class TestDeleteStatus:
    def test_delete_unused_status(self, store: BoardStore) -> None:
        store.create_status("Temp", status_id="temp")

        store.delete_status("temp")

        with pytest.raises(StatusNotFoundError):
            store.get_status("temp")

    def test_delete_status_on_workflow_step(self, seeded_store: BoardStore) -> None:
        with pytest.raises(StatusInUseError, match="1 workflow step"):
            seeded_store.delete_status("in_review")

    def test_delete_status_of_issue(self, seeded_store: BoardStore) -> None:
        seeded_store.create_issue("PROJ-1", "First", "wf-1")

        with pytest.raises(StatusInUseError, match="1 issue"):
            seeded_store.delete_status("todo")

    def test_delete_missing_status(self, store: BoardStore) -> None:
        with pytest.raises(StatusNotFoundError):
            store.delete_status("missing")
