"""RemoteBackend - talks to a hosted PostgREST-style backend over HTTP."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any

import httpx

from tracklane.logging import get_logger, truncate_output
from tracklane.remote.exceptions import RemoteBackendError, RemoteNotFoundError
from tracklane.transitions import Issue, Subtask
from tracklane.workflow import parse_workflow

if TYPE_CHECKING:
    from tracklane.transitions import TransitionRecord
    from tracklane.workflow import Workflow

logger = get_logger("remote")

# Issue attributes that map onto differently named backend columns.
_ISSUE_COLUMNS = {
    "key": "issue_key",
    "assignee": "assignee_id",
    "reporter": "reporter_id",
}


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class RemoteBackend:
    """Client for the hosted issue backend.

    Rows are addressed with PostgREST filters (``?id=eq.<id>``). Every request
    carries the ``apikey`` header and a bearer token; any non-2xx response
    raises RemoteBackendError. Implements the same collaborator protocols as
    the local store gateway, so a coordinator can write to either.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Backend root URL; ``/rest/v1`` is appended.
            api_key: Project API key, sent as ``apikey``.
            access_token: User session token; defaults to ``api_key``.
            timeout: Request timeout in seconds.
            transport: Custom transport (for testing).
        """
        self.base_url = base_url.rstrip("/") + "/rest/v1"
        self.api_key = api_key
        self.access_token = access_token or api_key
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "apikey": self.api_key,
                    "Authorization": f"Bearer {self.access_token}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        table: str,
        params: Mapping[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> list[dict[str, Any]]:
        headers = {"Prefer": prefer} if prefer else None
        try:
            response = await self.client.request(
                method, f"/{table}", params=params, json=json, headers=headers
            )
        except httpx.HTTPError as e:
            raise RemoteBackendError(f"{method} {table} failed: {e}") from e

        if not response.is_success:
            body = truncate_output(response.text)
            raise RemoteBackendError(
                f"{method} {table} failed: {response.status_code} - {body}",
                status_code=response.status_code,
            )
        if not response.content:
            return []
        data = response.json()
        return data if isinstance(data, list) else [data]

    # --- Reads ---

    async def fetch_issues(self, project_id: str) -> list[Issue]:
        """Fetch a project's issues in creation order, with their sub-tasks."""
        rows = await self._request(
            "GET",
            "issues",
            params={"project_id": f"eq.{project_id}", "select": "*", "order": "created_at.asc"},
        )
        children: dict[str, list[Subtask]] = {}
        for row in rows:
            if row.get("parent_id"):
                children.setdefault(row["parent_id"], []).append(
                    Subtask(id=str(row["id"]), status=str(row["status_id"]))
                )
        return [self._to_issue(row, tuple(children.get(str(row["id"]), ()))) for row in rows]

    async def fetch_workflow(self, workflow_id: str) -> Workflow:
        """Fetch a workflow with its steps and transitions.

        Raises:
            RemoteNotFoundError: If the workflow doesn't exist
            InvalidWorkflowError: If the stored graph is not a valid workflow
        """
        headers = await self._request("GET", "workflows", params={"id": f"eq.{workflow_id}"})
        if not headers:
            raise RemoteNotFoundError(f"Workflow '{workflow_id}' not found", status_code=404)
        by_workflow = {"workflow_id": f"eq.{workflow_id}", "order": "created_at.asc"}
        steps = await self._request("GET", "workflow_steps", params=by_workflow)
        transitions = await self._request("GET", "workflow_transitions", params=by_workflow)
        return parse_workflow({**headers[0], "steps": steps, "transitions": transitions})

    # --- Writes (collaborator protocols) ---

    async def update_issue_status(self, issue_id: str, status_id: str) -> bool:
        """Set an issue's status. Returns False when no row was updated."""
        rows = await self._request(
            "PATCH",
            "issues",
            params={"id": f"eq.{issue_id}"},
            json={"status_id": status_id},
            prefer="return=representation",
        )
        if not rows:
            logger.warning("Status update of issue %s matched no rows", issue_id)
            return False
        return True

    async def update_issue_fields(self, issue_id: str, changes: Mapping[str, Any]) -> None:
        payload = {_ISSUE_COLUMNS.get(name, name): value for name, value in changes.items()}
        await self._request(
            "PATCH",
            "issues",
            params={"id": f"eq.{issue_id}"},
            json=payload,
            prefer="return=minimal",
        )

    async def add_comment(self, issue_id: str, author_id: str, body: str) -> None:
        await self._request(
            "POST",
            "issue_comments",
            json={"issue_id": issue_id, "author_id": author_id, "body": body},
            prefer="return=minimal",
        )

    async def record_transition(self, record: TransitionRecord) -> None:
        await self._request(
            "POST",
            "issue_history",
            json={
                "issue_id": record.issue_id,
                "from_status": record.from_status,
                "to_status": record.to_status,
                "actor_id": record.actor_id,
                "transition_id": record.transition_id,
                "transition_name": record.transition_name,
                "created_at": record.occurred_at.isoformat(),
            },
            prefer="return=minimal",
        )

    @staticmethod
    def _to_issue(row: Mapping[str, Any], subtasks: tuple[Subtask, ...]) -> Issue:
        points = row.get("story_points")
        return Issue(
            id=str(row["id"]),
            status=str(row["status_id"]),
            key=row.get("issue_key") or "",
            summary=row.get("summary") or "",
            assignee=row.get("assignee_id"),
            reporter=row.get("reporter_id"),
            story_points=float(points) if points is not None else None,
            resolution=row.get("resolution"),
            issue_type=row.get("issue_type") or "Task",
            priority=row.get("priority") or "Medium",
            project_id=row.get("project_id"),
            fields=dict(row.get("custom_fields") or {}),
            subtasks=subtasks,
            updated_at=_parse_timestamp(row.get("updated_at")),
        )
