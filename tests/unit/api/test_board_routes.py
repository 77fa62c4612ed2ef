"""Unit tests for board routes."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tracklane.api.app import register_exception_handlers
from tracklane.api.dependencies import get_board_store, get_registry
from tracklane.api.registry import CoordinatorRegistry
from tracklane.api.routes import boards
from tracklane.store import BoardStore

ALICE = {"id": "alice", "display_name": "Alice"}


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
    app.include_router(boards.router, prefix="/api/v1")
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def board_id(client: TestClient) -> str:
    """A kanban-like board with one column per workflow status."""
    response = client.post(
        "/api/v1/boards",
        json={
            "name": "Team",
            "workflow_id": "wf-1",
            "project_id": "proj",
            "columns": [
                {"id": "todo", "name": "To Do"},
                {"id": "in_progress", "name": "In Progress", "status_category": "in_progress",
                 "max_issues": 2},
                {"id": "in_review", "name": "In Review", "status_category": "in_progress"},
                {"id": "done", "name": "Done", "status_category": "done"},
            ],
        },
    )
    assert response.status_code == 201
    return response.json()["data"]["id"]


@pytest.mark.unit
class TestBoardRoutes:
    """Creating and reading boards."""

    def test_create_board_from_template(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/boards", json={"name": "Scrum", "workflow_id": "wf-1", "board_type": "scrum"}
        )

        assert response.status_code == 201
        assert response.json()["data"]["board_type"] == "scrum"

    def test_create_board_unknown_workflow(self, client: TestClient) -> None:
        response = client.post("/api/v1/boards", json={"name": "X", "workflow_id": "missing"})

        assert response.status_code == 404

    def test_list_boards(self, client: TestClient, board_id: str) -> None:
        response = client.get("/api/v1/boards", params={"project_id": "proj"})

        assert [b["id"] for b in response.json()["data"]] == [board_id]

    def test_get_board_projection(
        self, client: TestClient, board_id: str, seeded_store: BoardStore
    ) -> None:
        first = seeded_store.create_issue("PROJ-1", "Fix login", "wf-1", project_id="proj")
        seeded_store.create_issue("PROJ-2", "Write docs", "wf-1", project_id="proj")
        seeded_store.update_issue_status(first.id, "in_progress")

        response = client.get(f"/api/v1/boards/{board_id}")

        assert response.status_code == 200
        columns = {c["id"]: c for c in response.json()["data"]["columns"]}
        assert columns["todo"]["count"] == 1
        assert columns["in_progress"]["count"] == 1
        assert columns["in_progress"]["wip"] == "normal"
        assert columns["in_progress"]["issues"][0]["key"] == "PROJ-1"

    def test_get_board_search(
        self, client: TestClient, board_id: str, seeded_store: BoardStore
    ) -> None:
        seeded_store.create_issue("PROJ-1", "Fix login", "wf-1", project_id="proj")
        seeded_store.create_issue("PROJ-2", "Write docs", "wf-1", project_id="proj")

        response = client.get(f"/api/v1/boards/{board_id}", params={"search": "docs"})

        todo = response.json()["data"]["columns"][0]
        assert [i["key"] for i in todo["issues"]] == ["PROJ-2"]

    def test_get_board_not_found(self, client: TestClient) -> None:
        response = client.get("/api/v1/boards/missing")

        assert response.status_code == 404
        assert response.json()["error"] == "Board not found"


@pytest.mark.unit
class TestMoveRoute:
    """Drag-and-drop moves over the API."""

    def test_committed_move(
        self, client: TestClient, board_id: str, seeded_store: BoardStore
    ) -> None:
        issue = seeded_store.create_issue("PROJ-1", "Fix login", "wf-1", project_id="proj")

        response = client.post(
            f"/api/v1/boards/{board_id}/moves",
            json={"issue_id": issue.id, "column_id": "in_progress", "actor": ALICE},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["error"] is None
        assert body["data"]["state"] == "committed"
        assert body["data"]["transition"] == "Start"
        assert seeded_store.get_issue(issue.id).status == "in_progress"
        assert [h.to_status for h in seeded_store.get_history(issue.id)] == ["in_progress"]

    def test_rejected_move(
        self, client: TestClient, board_id: str, seeded_store: BoardStore
    ) -> None:
        issue = seeded_store.create_issue("PROJ-1", "Fix login", "wf-1", project_id="proj")

        response = client.post(
            f"/api/v1/boards/{board_id}/moves",
            json={"issue_id": issue.id, "column_id": "done", "actor": ALICE},
        )

        body = response.json()
        assert response.status_code == 200
        assert body["data"]["state"] == "rejected"
        assert body["data"]["error_kind"] == "ConfigurationError"
        assert body["error"] == "no such transition"
        assert seeded_store.get_issue(issue.id).status == "todo"

    def test_validator_rejection_then_success(
        self, client: TestClient, board_id: str, seeded_store: BoardStore
    ) -> None:
        issue = seeded_store.create_issue("PROJ-1", "Fix login", "wf-1", project_id="proj")
        seeded_store.update_issue_status(issue.id, "in_review")
        move = {"issue_id": issue.id, "column_id": "done", "actor": ALICE}

        denied = client.post(f"/api/v1/boards/{board_id}/moves", json=move).json()
        seeded_store.update_issue_fields(issue.id, {"resolution": "Fixed"})
        allowed = client.post(f"/api/v1/boards/{board_id}/moves", json=move).json()

        assert denied["error"] == "Resolution must be set"
        assert allowed["data"]["state"] == "committed"
        board = client.get(f"/api/v1/boards/{board_id}").json()["data"]
        assert [i["key"] for i in board["columns"][3]["issues"]] == ["PROJ-1"]

    def test_move_requires_actor(self, client: TestClient, board_id: str) -> None:
        response = client.post(
            f"/api/v1/boards/{board_id}/moves", json={"issue_id": "i-1", "column_id": "done"}
        )

        assert response.status_code == 422
