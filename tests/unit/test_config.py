"""Unit tests for configuration loading."""

from pathlib import Path

import pytest

from tracklane.board import BoardType
from tracklane.config import (
    ConfigError,
    Settings,
    load_board_file,
    load_issues_file,
    load_workflow_file,
    parse_workflow_definition,
)
from tracklane.transitions import Subtask
from tracklane.workflow import StatusCategory
from tracklane.workflow.rules import OnlyAssignee, ResolutionSet

WORKFLOW_YAML = """\
name: Software
statuses:
  - {id: todo, name: To Do}
  - {id: in_progress, name: In Progress, category: in_progress}
  - {id: done, name: Done, category: done}
steps:
  - {status: todo, initial: true}
  - in_progress
  - done
transitions:
  - from: todo
    to: in_progress
    name: Start
    conditions:
      - type: only_assignee
  - from: in_progress
    to: done
    name: Finish
    validators:
      - type: resolution_set
"""


@pytest.fixture
def workflow_file(tmp_path: Path) -> Path:
    path = tmp_path / "workflow.yaml"
    path.write_text(WORKFLOW_YAML)
    return path


@pytest.mark.unit
class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings.from_env({})

        assert settings.db_path == "tracklane.db"
        assert settings.log_level is None
        assert not settings.remote_enabled

    def test_from_env(self) -> None:
        settings = Settings.from_env(
            {
                "TRACKLANE_DB_PATH": "/tmp/t.db",
                "TRACKLANE_BACKEND_URL": "https://db.example.com",
                "TRACKLANE_BACKEND_KEY": "key",
            }
        )

        assert settings.db_path == "/tmp/t.db"
        assert settings.remote_enabled

    def test_remote_needs_key(self) -> None:
        settings = Settings.from_env({"TRACKLANE_BACKEND_URL": "https://db.example.com"})

        assert not settings.remote_enabled


@pytest.mark.unit
class TestLoadWorkflowFile:
    """Tests for load_workflow_file and parse_workflow_definition."""

    def test_load(self, workflow_file: Path) -> None:
        definition = load_workflow_file(workflow_file)

        workflow = definition.workflow
        assert workflow.id == "Software"
        assert workflow.initial_step.id == "todo"
        assert workflow.find_transition_between("todo", "in_progress").conditions == (
            OnlyAssignee(),
        )
        assert workflow.find_transition_between("in_progress", "done").validators == (
            ResolutionSet(),
        )
        assert [s.category for s in definition.statuses] == [
            StatusCategory.TODO,
            StatusCategory.IN_PROGRESS,
            StatusCategory.DONE,
        ]

    def test_explicit_step_ids(self) -> None:
        definition = parse_workflow_definition(
            {
                "id": "wf",
                "name": "W",
                "steps": [
                    {"id": "s1", "status_id": "open", "initial": True},
                    {"id": "s2", "status": "closed"},
                ],
                "transitions": [{"from": "s1", "to": "closed", "name": "Close"}],
            }
        )

        transition = definition.workflow.transitions[0]
        assert (transition.from_step_id, transition.to_step_id) == ("s1", "s2")

    def test_undeclared_status(self) -> None:
        with pytest.raises(ConfigError, match="undeclared statuses: closed"):
            parse_workflow_definition(
                {
                    "name": "W",
                    "statuses": [{"id": "open"}],
                    "steps": [{"status": "open", "initial": True}, "closed"],
                }
            )

    def test_invalid_graph(self) -> None:
        with pytest.raises(ConfigError, match="Invalid workflow definition"):
            parse_workflow_definition({"name": "W", "steps": ["open", "closed"]})

    def test_unknown_rule(self) -> None:
        with pytest.raises(ConfigError):
            parse_workflow_definition(
                {
                    "name": "W",
                    "steps": [{"status": "open", "initial": True}, "closed"],
                    "transitions": [
                        {
                            "from": "open",
                            "to": "closed",
                            "name": "Go",
                            "conditions": [{"type": "x"}],
                        }
                    ],
                }
            )

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_workflow_file(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("name: [unclosed")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_workflow_file(path)

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="must be a YAML mapping"):
            load_workflow_file(path)


@pytest.mark.unit
class TestLoadBoardFile:
    """Tests for load_board_file."""

    def test_template_columns(self, tmp_path: Path) -> None:
        path = tmp_path / "board.yaml"
        path.write_text("name: Flow\ntype: kanban\n")

        definition = load_board_file(path)

        assert definition.board_type == BoardType.KANBAN
        assert len(definition.columns) == 5
        assert definition.workflow is None

    def test_explicit_columns_and_workflow(self, tmp_path: Path) -> None:
        path = tmp_path / "board.yaml"
        path.write_text(
            "name: Team\n"
            "project_lead: carol\n"
            "columns:\n"
            "  - {id: todo, name: To Do, min: 1}\n"
            "  - {id: doing, name: Doing, category: in_progress, statuses: [in_progress], max: 2}\n"
            "workflow:\n"
            + "".join(f"  {line}\n" for line in WORKFLOW_YAML.splitlines())
        )

        definition = load_board_file(path)

        assert definition.project_lead == "carol"
        assert definition.columns[0].min_issues == 1
        assert definition.columns[1].status_ids == ("in_progress",)
        assert definition.columns[1].max_issues == 2
        assert definition.status_names["in_progress"] == "In Progress"

    def test_bad_board_type(self, tmp_path: Path) -> None:
        path = tmp_path / "board.yaml"
        path.write_text("name: X\ntype: timeline\n")

        with pytest.raises(ConfigError, match="Invalid board definition"):
            load_board_file(path)


@pytest.mark.unit
class TestLoadIssuesFile:
    """Tests for load_issues_file."""

    def test_list_form(self, tmp_path: Path) -> None:
        path = tmp_path / "issues.yaml"
        path.write_text(
            "- id: i-1\n"
            "  status: todo\n"
            "  key: PROJ-1\n"
            "  summary: First\n"
            "  fields: {env: prod}\n"
            "  subtasks:\n"
            "    - {id: i-2, status: done}\n"
        )

        (issue,) = load_issues_file(path)

        assert issue.key == "PROJ-1"
        assert issue.fields == {"env": "prod"}
        assert issue.subtasks == (Subtask("i-2", "done"),)

    def test_mapping_form(self, tmp_path: Path) -> None:
        path = tmp_path / "issues.yaml"
        path.write_text("issues:\n  - {id: i-1, status: todo}\n")

        (issue,) = load_issues_file(path)

        assert issue.key == "i-1"

    def test_entry_without_status(self, tmp_path: Path) -> None:
        path = tmp_path / "issues.yaml"
        path.write_text("- {id: i-1}\n")

        with pytest.raises(ConfigError, match="Invalid issue entry"):
            load_issues_file(path)

    def test_not_a_list(self, tmp_path: Path) -> None:
        path = tmp_path / "issues.yaml"
        path.write_text("name: nope\n")

        with pytest.raises(ConfigError, match="list of issues"):
            load_issues_file(path)
