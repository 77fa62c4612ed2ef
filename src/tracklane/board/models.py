"""Data models for the Board module."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from tracklane.transitions import Issue
from tracklane.workflow import StatusCategory


class WipStatus(StrEnum):
    """Work-in-progress state of a column relative to its limit."""

    NORMAL = "normal"
    WARNING = "warning"
    EXCEEDED = "exceeded"


class BoardType(StrEnum):
    BASIC = "basic"
    SCRUM = "scrum"
    KANBAN = "kanban"


@dataclass(frozen=True)
class ColumnStatus:
    id: str
    name: str
    category: StatusCategory | None = None


@dataclass(frozen=True)
class BoardColumn:
    """A named bucket of one or more statuses.

    When ``status_ids`` is empty the column holds the single status whose ID
    equals the column's own ID.

    Attributes:
        id: The column's unique ID.
        name: Display name.
        status_category: Category used by default templates and statistics.
        status_ids: Statuses mapped onto this column.
        min_issues: Lower WIP bound, if any.
        max_issues: Upper WIP bound, if any.
        statuses: Display info for multi-status columns.
    """

    id: str
    name: str
    status_category: StatusCategory = StatusCategory.TODO
    status_ids: tuple[str, ...] = ()
    min_issues: int | None = None
    max_issues: int | None = None
    statuses: tuple[ColumnStatus, ...] = ()


@dataclass(frozen=True)
class BoardFilters:
    """Active board filters. Empty filters match every issue."""

    search: str = ""
    assignees: frozenset[str] = frozenset()

    def matches(self, issue: Issue) -> bool:
        query = self.search.strip().lower()
        if query and query not in issue.summary.lower() and query not in issue.key.lower():
            return False
        if self.assignees and (issue.assignee is None or issue.assignee not in self.assignees):
            return False
        return True


@dataclass
class ColumnView:
    """Projection of one column."""

    column: BoardColumn
    issues: list[Issue]
    count: int
    wip: WipStatus
    below_minimum: bool


@dataclass
class BoardView:
    """Projection of a whole board.

    ``unplaced`` holds issues whose status maps to no column; they are not
    counted in any column.
    """

    columns: list[ColumnView]
    unplaced: list[Issue] = field(default_factory=list)

    def column(self, column_id: str) -> ColumnView | None:
        for view in self.columns:
            if view.column.id == column_id:
                return view
        return None


@dataclass
class CategoryCounts:
    """Issue counts per column category, as shown on a basic board."""

    total: int
    todo: int
    in_progress: int
    done: int

    @property
    def progress_percentage(self) -> int:
        if self.total == 0:
            return 0
        return round(self.done / self.total * 100)


@dataclass
class KanbanMetrics:
    total_issues: int
    wip_issues: int
    completed_this_week: int


@dataclass
class SprintStats:
    total_issues: int
    completed_issues: int
    total_points: float
    completed_points: float
