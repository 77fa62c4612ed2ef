"""Unit tests for issue routes."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tracklane.api.app import register_exception_handlers
from tracklane.api.dependencies import get_board_store, get_registry
from tracklane.api.registry import CoordinatorRegistry
from tracklane.api.routes import issues
from tracklane.store import BoardStore


@pytest.fixture
def registry(seeded_store: BoardStore) -> CoordinatorRegistry:
    return CoordinatorRegistry(seeded_store)


@pytest.fixture
def app(seeded_store: BoardStore, registry: CoordinatorRegistry) -> FastAPI:
    """Create a test FastAPI app over the seeded store."""
    app = FastAPI()

    def override_get_board_store():
        yield seeded_store

    def override_get_registry():
        yield registry

    app.dependency_overrides[get_board_store] = override_get_board_store
    app.dependency_overrides[get_registry] = override_get_registry
    register_exception_handlers(app)
    app.include_router(issues.router, prefix="/api/v1")
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def issue_id(client: TestClient) -> str:
    response = client.post(
        "/api/v1/issues",
        json={
            "key": "PROJ-1",
            "summary": "Fix login",
            "workflow_id": "wf-1",
            "project_id": "proj",
            "assignee": "alice",
        },
    )
    assert response.status_code == 201
    return response.json()["data"]["id"]


@pytest.mark.unit
class TestIssueRoutes:
    """Creating and reading issues."""

    def test_create_issue(self, client: TestClient, issue_id: str) -> None:
        data = client.get(f"/api/v1/issues/{issue_id}").json()["data"]

        assert data["status"] == "todo"
        assert data["assignee"] == "alice"
        assert data["subtasks"] == []

    def test_duplicate_key(self, client: TestClient, issue_id: str) -> None:
        response = client.post(
            "/api/v1/issues", json={"key": "PROJ-1", "summary": "Again", "workflow_id": "wf-1"}
        )

        assert response.status_code == 409

    def test_list_issues(self, client: TestClient, issue_id: str) -> None:
        response = client.get("/api/v1/issues", params={"project_id": "proj"})

        assert [i["id"] for i in response.json()["data"]] == [issue_id]

    def test_get_issue_not_found(self, client: TestClient) -> None:
        response = client.get("/api/v1/issues/missing")

        assert response.status_code == 404
        assert response.json()["error"] == "Issue not found"


@pytest.mark.unit
class TestTransitionRoutes:
    """Transition menu and explicit transitions."""

    def test_offered_transitions(
        self, client: TestClient, issue_id: str, seeded_store: BoardStore
    ) -> None:
        seeded_store.update_issue_status(issue_id, "in_progress")

        as_alice = client.get(
            f"/api/v1/issues/{issue_id}/transitions", params={"actor_id": "alice"}
        ).json()["data"]
        as_bob = client.get(
            f"/api/v1/issues/{issue_id}/transitions", params={"actor_id": "bob"}
        ).json()["data"]

        assert [(t["name"], t["to_status"]) for t in as_alice] == [
            ("Stop", "todo"),
            ("Review", "in_review"),
        ]
        assert [t["name"] for t in as_bob] == ["Stop"]

    def test_offered_transitions_requires_actor(self, client: TestClient, issue_id: str) -> None:
        assert client.get(f"/api/v1/issues/{issue_id}/transitions").status_code == 422

    def test_take_transition(
        self, client: TestClient, issue_id: str, seeded_store: BoardStore
    ) -> None:
        response = client.post(
            f"/api/v1/issues/{issue_id}/transitions",
            json={"to_status": "in_progress", "actor": {"id": "alice"}},
        )

        assert response.status_code == 200
        assert response.json()["data"]["state"] == "committed"
        assert response.json()["data"]["to_column_id"] is None
        assert seeded_store.get_issue(issue_id).status == "in_progress"

    def test_condition_denied(
        self, client: TestClient, issue_id: str, seeded_store: BoardStore
    ) -> None:
        seeded_store.update_issue_status(issue_id, "in_progress")

        response = client.post(
            f"/api/v1/issues/{issue_id}/transitions",
            json={"to_status": "in_review", "actor": {"id": "bob"}},
        )

        body = response.json()
        assert body["data"]["state"] == "rejected"
        assert body["data"]["error_kind"] == "ConditionDenied"
        assert body["error"] == "Only the assignee can perform this transition"

    def test_take_transition_unknown_issue(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/issues/missing/transitions",
            json={"to_status": "done", "actor": {"id": "alice"}},
        )

        assert response.status_code == 404

    def test_history(self, client: TestClient, issue_id: str) -> None:
        client.post(
            f"/api/v1/issues/{issue_id}/transitions",
            json={"to_status": "in_progress", "actor": {"id": "alice"}},
        )
        client.post(
            f"/api/v1/issues/{issue_id}/transitions",
            json={"to_status": "todo", "actor": {"id": "alice"}},
        )

        history = client.get(f"/api/v1/issues/{issue_id}/history").json()["data"]

        assert [(h["from_status"], h["to_status"]) for h in history] == [
            ("todo", "in_progress"),
            ("in_progress", "todo"),
        ]
        assert history[0]["transition_name"] == "Start"

    def test_history_unknown_issue(self, client: TestClient) -> None:
        assert client.get("/api/v1/issues/missing/history").status_code == 404
