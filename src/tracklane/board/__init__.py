"""Board - column projection, WIP limits and move coordination."""

from tracklane.board.coordinator import (
    TERMINAL_STATES,
    BoardMutationCoordinator,
    MoveOutcome,
    MoveState,
)
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
from tracklane.board.projection import (
    BASIC_COLUMNS,
    KANBAN_COLUMNS,
    SCRUM_COLUMNS,
    WIP_WARNING_RATIO,
    category_counts,
    column_of,
    column_statuses,
    default_columns,
    filter_issues,
    issues_in_column,
    kanban_metrics,
    project_board,
    representative_status,
    sprint_stats,
    wip_status,
)

__all__ = [
    "BASIC_COLUMNS",
    "KANBAN_COLUMNS",
    "SCRUM_COLUMNS",
    "TERMINAL_STATES",
    "WIP_WARNING_RATIO",
    "BoardColumn",
    "BoardFilters",
    "BoardMutationCoordinator",
    "BoardType",
    "BoardView",
    "CategoryCounts",
    "ColumnStatus",
    "ColumnView",
    "KanbanMetrics",
    "MoveOutcome",
    "MoveState",
    "SprintStats",
    "WipStatus",
    "category_counts",
    "column_of",
    "column_statuses",
    "default_columns",
    "filter_issues",
    "issues_in_column",
    "kanban_metrics",
    "project_board",
    "representative_status",
    "sprint_stats",
    "wip_status",
]
