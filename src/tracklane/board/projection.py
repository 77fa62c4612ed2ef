"""Board projection - column membership, WIP state and board statistics.

Every function here is a pure projection of its inputs; nothing mutates the
columns or the issues.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, datetime, timedelta

from tracklane.board.models import (
    BoardColumn,
    BoardFilters,
    BoardType,
    BoardView,
    CategoryCounts,
    ColumnStatus,
    ColumnView,
    KanbanMetrics,
    SprintStats,
    WipStatus,
)
from tracklane.transitions import Issue
from tracklane.workflow import StatusCategory

# Fraction of max_issues at which a column turns to WARNING.
WIP_WARNING_RATIO = 0.8

NO_FILTERS = BoardFilters()

BASIC_COLUMNS: tuple[BoardColumn, ...] = (
    BoardColumn(id="todo", name="To Do", status_category=StatusCategory.TODO),
    BoardColumn(id="in_progress", name="In Progress", status_category=StatusCategory.IN_PROGRESS),
    BoardColumn(id="done", name="Done", status_category=StatusCategory.DONE),
)

SCRUM_COLUMNS: tuple[BoardColumn, ...] = (
    BoardColumn(id="todo", name="To Do", status_category=StatusCategory.TODO),
    BoardColumn(
        id="in_progress",
        name="In Progress",
        status_category=StatusCategory.IN_PROGRESS,
        max_issues=5,
    ),
    BoardColumn(id="done", name="Done", status_category=StatusCategory.DONE),
)

KANBAN_COLUMNS: tuple[BoardColumn, ...] = (
    BoardColumn(id="backlog", name="Backlog", status_category=StatusCategory.TODO),
    BoardColumn(
        id="selected",
        name="Selected for Development",
        status_category=StatusCategory.TODO,
        max_issues=10,
    ),
    BoardColumn(
        id="in_progress",
        name="In Progress",
        status_category=StatusCategory.IN_PROGRESS,
        max_issues=5,
    ),
    BoardColumn(
        id="review",
        name="In Review",
        status_category=StatusCategory.IN_PROGRESS,
        max_issues=3,
    ),
    BoardColumn(id="done", name="Done", status_category=StatusCategory.DONE),
)

_TEMPLATES = {
    BoardType.BASIC: BASIC_COLUMNS,
    BoardType.SCRUM: SCRUM_COLUMNS,
    BoardType.KANBAN: KANBAN_COLUMNS,
}


def default_columns(board_type: BoardType | str) -> tuple[BoardColumn, ...]:
    """Return the default column template for a board type."""
    return _TEMPLATES[BoardType(board_type)]


def issue_in_column(issue: Issue, column: BoardColumn) -> bool:
    if column.status_ids:
        return issue.status in column.status_ids
    return issue.status == column.id


def column_of(issue: Issue, columns: Iterable[BoardColumn]) -> BoardColumn | None:
    """Return the first column holding the issue's status, or None if unplaced."""
    for column in columns:
        if issue_in_column(issue, column):
            return column
    return None


def representative_status(column: BoardColumn) -> str:
    """Status an issue takes when dropped on ``column``."""
    if column.status_ids:
        return column.status_ids[0]
    return column.id


def column_statuses(column: BoardColumn) -> list[ColumnStatus]:
    """Status display info for columns mapping several statuses.

    Single-status columns return an empty list.
    """
    if column.statuses:
        return list(column.statuses)
    if len(column.status_ids) > 1:
        return [ColumnStatus(id=status_id, name=status_id) for status_id in column.status_ids]
    return []


def filter_issues(issues: Iterable[Issue], filters: BoardFilters = NO_FILTERS) -> list[Issue]:
    """Apply board filters, preserving source order."""
    return [issue for issue in issues if filters.matches(issue)]


def issues_in_column(
    column: BoardColumn,
    issues: Iterable[Issue],
    filters: BoardFilters = NO_FILTERS,
) -> list[Issue]:
    """Issues shown in ``column`` after filtering, in source order."""
    return [issue for issue in issues if filters.matches(issue) and issue_in_column(issue, column)]


def wip_status_for_count(count: int, max_issues: int | None) -> WipStatus:
    if not max_issues:
        return WipStatus.NORMAL
    if count >= max_issues:
        return WipStatus.EXCEEDED
    if count >= max_issues * WIP_WARNING_RATIO:
        return WipStatus.WARNING
    return WipStatus.NORMAL


def wip_status(
    column: BoardColumn,
    issues: Iterable[Issue],
    filters: BoardFilters = NO_FILTERS,
) -> WipStatus:
    """WIP state of a column for the (filtered) issue set."""
    return wip_status_for_count(len(issues_in_column(column, issues, filters)), column.max_issues)


def project_board(
    columns: Sequence[BoardColumn],
    issues: Iterable[Issue],
    filters: BoardFilters = NO_FILTERS,
) -> BoardView:
    """Project the issue set onto the board's columns.

    Each issue is placed in the first matching column only. Unplaced issues
    are collected separately and never counted.
    """
    buckets: dict[str, list[Issue]] = {column.id: [] for column in columns}
    unplaced: list[Issue] = []
    for issue in filter_issues(issues, filters):
        column = column_of(issue, columns)
        if column is None:
            unplaced.append(issue)
        else:
            buckets[column.id].append(issue)

    views = []
    for column in columns:
        column_issues = buckets[column.id]
        count = len(column_issues)
        views.append(
            ColumnView(
                column=column,
                issues=column_issues,
                count=count,
                wip=wip_status_for_count(count, column.max_issues),
                below_minimum=column.min_issues is not None and count < column.min_issues,
            )
        )
    return BoardView(columns=views, unplaced=unplaced)


def _category_of(issue: Issue, columns: Sequence[BoardColumn]) -> StatusCategory | None:
    column = column_of(issue, columns)
    return column.status_category if column is not None else None


def category_counts(columns: Sequence[BoardColumn], issues: Sequence[Issue]) -> CategoryCounts:
    """Count issues by the category of the column they sit in."""
    categories = [_category_of(issue, columns) for issue in issues]
    return CategoryCounts(
        total=len(issues),
        todo=categories.count(StatusCategory.TODO),
        in_progress=categories.count(StatusCategory.IN_PROGRESS),
        done=categories.count(StatusCategory.DONE),
    )


def kanban_metrics(
    columns: Sequence[BoardColumn],
    issues: Sequence[Issue],
    now: datetime | None = None,
) -> KanbanMetrics:
    """WIP and weekly throughput for a kanban board."""
    now = now or datetime.now(UTC)
    week_ago = now - timedelta(days=7)
    completed = 0
    wip = 0
    for issue in issues:
        category = _category_of(issue, columns)
        if category == StatusCategory.IN_PROGRESS:
            wip += 1
        elif category == StatusCategory.DONE and issue.updated_at is not None:
            updated = issue.updated_at
            if updated.tzinfo is None:
                updated = updated.replace(tzinfo=UTC)
            if updated >= week_ago:
                completed += 1
    return KanbanMetrics(total_issues=len(issues), wip_issues=wip, completed_this_week=completed)


def sprint_stats(
    issues: Sequence[Issue],
    status_categories: Mapping[str, StatusCategory] | None = None,
) -> SprintStats:
    """Issue and story point totals for a sprint.

    An issue counts as done when its status belongs to the ``done`` category;
    without a category map, only the literal ``done`` status qualifies.
    """

    def is_done(issue: Issue) -> bool:
        if status_categories is not None:
            return status_categories.get(issue.status) == StatusCategory.DONE
        return issue.status == "done"

    done = [issue for issue in issues if is_done(issue)]
    return SprintStats(
        total_issues=len(issues),
        completed_issues=len(done),
        total_points=sum(issue.story_points or 0 for issue in issues),
        completed_points=sum(issue.story_points or 0 for issue in done),
    )
