"""
Task collection projections: list filtering, board columns, calendar days.
"""

from .board import Board, DropKind, DropTarget, MoveOutcome, resolve_target
from .calendar import month_grid, tasks_by_date
from .filters import (
    DUE_FILTERS,
    GROUP_BYS,
    SORT_DIRS,
    SORT_FIELDS,
    FilterPreferences,
    FilterResult,
    FilterSpec,
    TaskFilterEngine,
    group_by_status,
    matches_due,
    sort_tasks,
)

__all__ = [
    # Filtering
    "FilterSpec",
    "FilterPreferences",
    "FilterResult",
    "TaskFilterEngine",
    "matches_due",
    "sort_tasks",
    "group_by_status",
    "DUE_FILTERS",
    "SORT_FIELDS",
    "SORT_DIRS",
    "GROUP_BYS",
    # Board
    "Board",
    "DropTarget",
    "DropKind",
    "MoveOutcome",
    "resolve_target",
    # Calendar
    "tasks_by_date",
    "month_grid",
]
