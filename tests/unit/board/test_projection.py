"""Unit tests for board projection."""

from datetime import UTC, datetime, timedelta

import pytest

from tracklane.board import (
    BoardColumn,
    BoardFilters,
    BoardType,
    ColumnStatus,
    WipStatus,
    category_counts,
    column_of,
    column_statuses,
    default_columns,
    issues_in_column,
    kanban_metrics,
    project_board,
    representative_status,
    sprint_stats,
    wip_status,
)
from tracklane.workflow import StatusCategory


@pytest.fixture
def columns() -> list[BoardColumn]:
    return [
        BoardColumn(id="todo", name="To Do"),
        BoardColumn(
            id="active",
            name="Active",
            status_category=StatusCategory.IN_PROGRESS,
            status_ids=("in_progress", "in_review"),
            max_issues=3,
        ),
        BoardColumn(id="done", name="Done", status_category=StatusCategory.DONE),
    ]


@pytest.mark.unit
class TestColumnMembership:
    """Tests for column_of, issues_in_column and representative_status."""

    def test_single_status_column_uses_own_id(self, columns, make_issue) -> None:
        assert column_of(make_issue(status="todo"), columns).id == "todo"

    def test_multi_status_column(self, columns, make_issue) -> None:
        assert column_of(make_issue(status="in_review"), columns).id == "active"

    def test_unmapped_status_is_unplaced(self, columns, make_issue) -> None:
        assert column_of(make_issue(status="archived"), columns) is None

    def test_first_matching_column_wins(self, make_issue) -> None:
        overlapping = [
            BoardColumn(id="a", name="A", status_ids=("todo",)),
            BoardColumn(id="b", name="B", status_ids=("todo", "done")),
        ]

        assert column_of(make_issue(status="todo"), overlapping).id == "a"

    def test_issues_in_column_keeps_source_order(self, columns, make_issue) -> None:
        issues = [
            make_issue("i-3", status="in_review"),
            make_issue("i-1", status="todo"),
            make_issue("i-2", status="in_progress"),
        ]

        assert [i.id for i in issues_in_column(columns[1], issues)] == ["i-3", "i-2"]

    def test_representative_status(self, columns) -> None:
        assert representative_status(columns[0]) == "todo"
        assert representative_status(columns[1]) == "in_progress"

    def test_column_statuses(self, columns) -> None:
        assert column_statuses(columns[0]) == []
        assert [s.id for s in column_statuses(columns[1])] == ["in_progress", "in_review"]

    def test_column_statuses_prefers_display_info(self) -> None:
        column = BoardColumn(
            id="c",
            name="C",
            status_ids=("a", "b"),
            statuses=(ColumnStatus("a", "Alpha"), ColumnStatus("b", "Beta")),
        )

        assert [s.name for s in column_statuses(column)] == ["Alpha", "Beta"]


@pytest.mark.unit
class TestWipStatus:
    """Tests for wip_status."""

    @pytest.mark.parametrize(
        ("count", "expected"),
        [(7, WipStatus.NORMAL), (8, WipStatus.WARNING), (10, WipStatus.EXCEEDED)],
    )
    def test_thresholds(self, count, expected, make_issue) -> None:
        column = BoardColumn(id="todo", name="To Do", max_issues=10)
        issues = [make_issue(f"i-{n}") for n in range(count)]

        assert wip_status(column, issues) == expected

    def test_over_limit_is_exceeded(self, columns, make_issue) -> None:
        issues = [make_issue(f"i-{n}", status="in_progress") for n in range(4)]

        assert wip_status(columns[1], issues) == WipStatus.EXCEEDED

    def test_no_limit_is_normal(self, columns, make_issue) -> None:
        issues = [make_issue(f"i-{n}") for n in range(50)]

        assert wip_status(columns[0], issues) == WipStatus.NORMAL

    def test_zero_limit_means_unlimited(self, make_issue) -> None:
        column = BoardColumn(id="todo", name="To Do", max_issues=0)

        assert wip_status(column, [make_issue()]) == WipStatus.NORMAL

    def test_filters_reduce_count(self, columns, make_issue) -> None:
        issues = [
            make_issue(f"i-{n}", status="in_progress", assignee="bob" if n else "alice")
            for n in range(4)
        ]

        filtered = wip_status(columns[1], issues, BoardFilters(assignees=frozenset({"alice"})))

        assert filtered == WipStatus.NORMAL


@pytest.mark.unit
class TestProjectBoard:
    """Tests for project_board."""

    def test_each_issue_in_one_column(self, columns, make_issue) -> None:
        issues = [
            make_issue("i-1", status="todo"),
            make_issue("i-2", status="in_progress"),
            make_issue("i-3", status="done"),
            make_issue("i-4", status="archived"),
        ]

        view = project_board(columns, issues)

        assert [v.count for v in view.columns] == [1, 1, 1]
        assert [i.id for i in view.unplaced] == ["i-4"]

    def test_search_filter(self, columns, make_issue) -> None:
        issues = [
            make_issue("i-1", summary="Fix login"),
            make_issue("i-2", summary="Write docs"),
        ]

        view = project_board(columns, issues, BoardFilters(search="LOGIN"))

        assert [i.id for i in view.column("todo").issues] == ["i-1"]

    def test_search_matches_key(self, columns, make_issue) -> None:
        view = project_board(columns, [make_issue("i-7")], BoardFilters(search="proj-7"))

        assert view.column("todo").count == 1

    def test_assignee_filter_excludes_unassigned(self, columns, make_issue) -> None:
        issues = [make_issue("i-1"), make_issue("i-2", assignee="bob")]

        view = project_board(columns, issues, BoardFilters(assignees=frozenset({"bob"})))

        assert [i.id for i in view.column("todo").issues] == ["i-2"]

    def test_below_minimum(self, make_issue) -> None:
        columns = [BoardColumn(id="todo", name="To Do", min_issues=2)]

        view = project_board(columns, [make_issue()])

        assert view.columns[0].below_minimum

    def test_unknown_column_lookup(self, columns) -> None:
        assert project_board(columns, []).column("nope") is None

    def test_does_not_mutate_inputs(self, columns, make_issue) -> None:
        issues = [make_issue("i-1"), make_issue("i-2", status="done")]
        snapshot = list(issues)

        project_board(columns, issues)

        assert issues == snapshot


@pytest.mark.unit
class TestTemplates:
    """Tests for default_columns."""

    def test_basic(self) -> None:
        assert [c.id for c in default_columns(BoardType.BASIC)] == ["todo", "in_progress", "done"]

    def test_scrum_limits_in_progress(self) -> None:
        in_progress = default_columns("scrum")[1]
        assert in_progress.max_issues == 5

    def test_kanban(self) -> None:
        columns = default_columns(BoardType.KANBAN)

        assert [c.id for c in columns] == ["backlog", "selected", "in_progress", "review", "done"]
        assert [c.max_issues for c in columns] == [None, 10, 5, 3, None]

    def test_unknown_type(self) -> None:
        with pytest.raises(ValueError):
            default_columns("timeline")


@pytest.mark.unit
class TestStatistics:
    """Tests for category_counts, kanban_metrics and sprint_stats."""

    def test_category_counts(self, columns, make_issue) -> None:
        issues = [
            make_issue("i-1"),
            make_issue("i-2", status="in_review"),
            make_issue("i-3", status="done"),
            make_issue("i-4", status="done"),
        ]

        counts = category_counts(columns, issues)

        assert (counts.total, counts.todo, counts.in_progress, counts.done) == (4, 1, 1, 2)
        assert counts.progress_percentage == 50

    def test_empty_progress(self, columns) -> None:
        assert category_counts(columns, []).progress_percentage == 0

    def test_kanban_metrics(self, columns, make_issue) -> None:
        now = datetime(2026, 3, 10, tzinfo=UTC)
        issues = [
            make_issue("i-1", status="in_progress"),
            make_issue("i-2", status="done", updated_at=now - timedelta(days=2)),
            make_issue("i-3", status="done", updated_at=now - timedelta(days=30)),
            make_issue("i-4", status="done", updated_at=datetime(2026, 3, 9)),
        ]

        metrics = kanban_metrics(columns, issues, now=now)

        assert metrics.total_issues == 4
        assert metrics.wip_issues == 1
        assert metrics.completed_this_week == 2

    def test_sprint_stats_with_categories(self, make_issue, statuses) -> None:
        categories = {status_id: s.category for status_id, s in statuses.items()}
        issues = [
            make_issue("i-1", status="done", story_points=3),
            make_issue("i-2", status="in_progress", story_points=5),
            make_issue("i-3", status="todo"),
        ]

        stats = sprint_stats(issues, categories)

        assert stats.total_issues == 3
        assert stats.completed_issues == 1
        assert stats.total_points == 8
        assert stats.completed_points == 3

    def test_sprint_stats_literal_done(self, make_issue) -> None:
        issues = [make_issue("i-1", status="done"), make_issue("i-2", status="closed")]

        assert sprint_stats(issues).completed_issues == 1
