"""Configuration - environment settings and YAML workflow/board definitions."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from tracklane.board import BoardColumn, BoardType, default_columns
from tracklane.transitions import Issue, Subtask
from tracklane.workflow import (
    InvalidWorkflowError,
    Status,
    StatusCategory,
    Workflow,
    parse_workflow,
)

DEFAULT_DB_PATH = "tracklane.db"


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""


@dataclass
class Settings:
    """Runtime settings, read from ``TRACKLANE_*`` environment variables."""

    db_path: str = DEFAULT_DB_PATH
    log_dir: str | None = None
    log_level: str | None = None
    backend_url: str | None = None
    backend_key: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        return cls(
            db_path=env.get("TRACKLANE_DB_PATH", DEFAULT_DB_PATH),
            log_dir=env.get("TRACKLANE_LOG_DIR"),
            log_level=env.get("TRACKLANE_LOG_LEVEL"),
            backend_url=env.get("TRACKLANE_BACKEND_URL") or None,
            backend_key=env.get("TRACKLANE_BACKEND_KEY") or None,
        )

    @property
    def remote_enabled(self) -> bool:
        """Whether a hosted backend is configured."""
        return bool(self.backend_url and self.backend_key)


@dataclass
class WorkflowDefinition:
    """A workflow file: the statuses it uses and the validated graph."""

    statuses: list[Status]
    workflow: Workflow


@dataclass
class BoardDefinition:
    """A board file: board settings plus its workflow definition."""

    name: str
    board_type: BoardType
    columns: tuple[BoardColumn, ...]
    workflow: WorkflowDefinition | None = None
    project_lead: str | None = None
    status_names: dict[str, str] = field(default_factory=dict)


def _read_yaml(path: Path | str) -> Any:
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")
    try:
        with open(path) as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e


def _read_mapping(path: Path | str) -> dict[str, Any]:
    data = _read_yaml(path)
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must be a YAML mapping, got {type(data).__name__}")
    return data


def parse_workflow_definition(data: Mapping[str, Any]) -> WorkflowDefinition:
    """Build a workflow definition from its YAML form.

    Steps name a status; step IDs default to the status ID. Transitions may
    reference steps by step ID or by status ID under ``from`` / ``to``.
    """
    try:
        statuses = [
            Status(
                id=str(s["id"]),
                name=str(s.get("name", s["id"])),
                category=StatusCategory(s.get("category", StatusCategory.TODO)),
                color=str(s.get("color", "#6b7280")),
            )
            for s in data.get("statuses") or []
        ]
        workflow_id = str(data.get("id") or data["name"])
        steps = []
        for raw in data.get("steps") or []:
            step = {"status_id": raw} if isinstance(raw, str) else dict(raw)
            if "status" in step:
                step["status_id"] = step.pop("status")
            step.setdefault("id", step["status_id"])
            step["is_initial"] = bool(step.pop("initial", step.get("is_initial", False)))
            steps.append(step)
        by_status = {s["status_id"]: s["id"] for s in steps}
        transitions = []
        for raw in data.get("transitions") or []:
            transition = dict(raw)
            source = transition.pop("from", transition.get("from_step_id"))
            target = transition.pop("to", transition.get("to_step_id"))
            transition["from_step_id"] = by_status.get(source, source)
            transition["to_step_id"] = by_status.get(target, target)
            transitions.append(transition)
        workflow = parse_workflow(
            {
                "id": workflow_id,
                "name": data["name"],
                "description": data.get("description"),
                "project_id": data.get("project_id"),
                "steps": steps,
                "transitions": transitions,
            }
        )
    except (KeyError, TypeError, ValueError, InvalidWorkflowError) as e:
        raise ConfigError(f"Invalid workflow definition: {e}") from e

    known = {status.id for status in statuses}
    if known:
        missing = sorted(set(workflow.status_ids) - known)
        if missing:
            raise ConfigError(f"Workflow uses undeclared statuses: {', '.join(missing)}")
    return WorkflowDefinition(statuses=statuses, workflow=workflow)


def load_workflow_file(path: Path | str) -> WorkflowDefinition:
    """Load a workflow definition from a YAML file.

    Raises:
        ConfigError: If the file is missing, not YAML, or not a valid workflow.
    """
    return parse_workflow_definition(_read_mapping(path))


def _parse_column(raw: Mapping[str, Any]) -> BoardColumn:
    statuses = raw.get("statuses") or raw.get("status_ids") or ()
    if isinstance(statuses, str):
        statuses = [statuses]
    return BoardColumn(
        id=str(raw["id"]),
        name=str(raw.get("name", raw["id"])),
        status_category=StatusCategory(raw.get("category", StatusCategory.TODO)),
        status_ids=tuple(str(s) for s in statuses),
        min_issues=raw.get("min"),
        max_issues=raw.get("max"),
    )


def load_board_file(path: Path | str) -> BoardDefinition:
    """Load a board definition from a YAML file.

    A board without ``columns`` gets its board type's template. An embedded
    ``workflow`` mapping is parsed like a workflow file.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    data = _read_mapping(path)
    try:
        board_type = BoardType(data.get("type", BoardType.BASIC))
        raw_columns = data.get("columns")
        columns = (
            tuple(_parse_column(c) for c in raw_columns)
            if raw_columns
            else default_columns(board_type)
        )
        name = str(data["name"])
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigError(f"Invalid board definition in {path}: {e}") from e

    workflow = None
    if isinstance(data.get("workflow"), Mapping):
        workflow = parse_workflow_definition(data["workflow"])
    return BoardDefinition(
        name=name,
        board_type=board_type,
        columns=columns,
        workflow=workflow,
        project_lead=data.get("project_lead"),
        status_names={s.id: s.name for s in workflow.statuses} if workflow else {},
    )


def load_issues_file(path: Path | str) -> list[Issue]:
    """Load an issue list from a YAML (or JSON) file.

    Raises:
        ConfigError: If the file is missing or an entry is malformed.
    """
    data = _read_yaml(path)
    if isinstance(data, Mapping):
        data = data.get("issues")
    if not isinstance(data, list):
        raise ConfigError(f"{path} must contain a list of issues")
    try:
        return [
            Issue(
                id=str(raw["id"]),
                status=str(raw["status"]),
                key=str(raw.get("key", raw["id"])),
                summary=str(raw.get("summary", "")),
                assignee=raw.get("assignee"),
                reporter=raw.get("reporter"),
                story_points=raw.get("story_points"),
                resolution=raw.get("resolution"),
                fields=dict(raw.get("fields") or {}),
                subtasks=tuple(
                    Subtask(id=str(s["id"]), status=str(s["status"]))
                    for s in raw.get("subtasks") or []
                ),
            )
            for raw in data
        ]
    except (KeyError, TypeError) as e:
        raise ConfigError(f"Invalid issue entry in {path}: {e}") from e
