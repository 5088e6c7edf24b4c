"""
Task filtering, sorting and grouping.

Projects a task snapshot into the list, board and calendar views. The
pipeline runs in a fixed order, each stage narrowing the previous one:

1. hide_completed
2. topic
3. status
4. due bucket
5. title search
6. stable sort
7. optional grouping (status or topic, first-occurrence order)

The engine is pure: it never mutates its input and the same
(tasks, spec) pair always yields the same order, ties included.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, fields, replace
from datetime import date
from typing import Any, Literal, get_args

from ..core.dates import end_of_week, today
from ..core.errors import InvalidInputError
from ..core.models import StatusWorkflow, Task

DueFilter = Literal["all", "overdue", "today", "this-week", "no-deadline"]
SortField = Literal["created", "next-review", "deadline", "ease-factor"]
SortDir = Literal["asc", "desc"]
GroupBy = Literal["none", "status", "topic"]

DUE_FILTERS: tuple[str, ...] = get_args(DueFilter)
SORT_FIELDS: tuple[str, ...] = get_args(SortField)
SORT_DIRS: tuple[str, ...] = get_args(SortDir)
GROUP_BYS: tuple[str, ...] = get_args(GroupBy)

# Absent deadlines sort after every real date
NO_DEADLINE_SENTINEL = "9999"


@dataclass(frozen=True)
class FilterPreferences:
    """The two filter settings remembered between runs."""

    hide_completed: bool = True
    group_by: GroupBy = "none"

    def __post_init__(self) -> None:
        _check_choice("group_by", self.group_by, GROUP_BYS)

    def to_dict(self) -> dict[str, Any]:
        return {"hideCompleted": self.hide_completed, "groupBy": self.group_by}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FilterPreferences:
        group_by = data.get("groupBy", "none")
        if group_by not in GROUP_BYS:
            group_by = "none"
        return cls(hide_completed=bool(data.get("hideCompleted", True)), group_by=group_by)


@dataclass(frozen=True)
class FilterSpec:
    """What the user asked to see."""

    topic: str = "all"
    status: str = "all"
    due: DueFilter = "all"
    search: str = ""
    sort_field: SortField = "created"
    sort_dir: SortDir = "desc"
    hide_completed: bool = True
    group_by: GroupBy = "none"

    def __post_init__(self) -> None:
        _check_choice("due", self.due, DUE_FILTERS)
        _check_choice("sort_field", self.sort_field, SORT_FIELDS)
        _check_choice("sort_dir", self.sort_dir, SORT_DIRS)
        _check_choice("group_by", self.group_by, GROUP_BYS)

    @classmethod
    def from_preferences(cls, prefs: FilterPreferences, **overrides: Any) -> FilterSpec:
        values: dict[str, Any] = {"hide_completed": prefs.hide_completed, "group_by": prefs.group_by}
        values.update(overrides)
        return cls(**values)

    def with_(self, **changes: Any) -> FilterSpec:
        """Copy with some fields changed (validated like construction)."""
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise InvalidInputError(f"Unknown filter field(s): {', '.join(sorted(unknown))}")
        return replace(self, **changes)

    def preferences(self) -> FilterPreferences:
        return FilterPreferences(hide_completed=self.hide_completed, group_by=self.group_by)


@dataclass(frozen=True)
class FilterResult:
    filtered: tuple[Task, ...] = ()
    grouped: dict[str, tuple[Task, ...]] = field(default_factory=dict)


def _check_choice(name: str, value: str, choices: tuple[str, ...]) -> None:
    if value not in choices:
        raise InvalidInputError(f"Invalid {name} '{value}'. Expected one of: {', '.join(choices)}")


# =============================================================================
# Predicates and keys
# =============================================================================


def matches_due(task: Task, due: str, ref: date) -> bool:
    if due == "all":
        return True
    if due == "overdue":
        return task.next_review < ref and not task.completed
    if due == "today":
        return task.next_review == ref
    if due == "this-week":
        return ref <= task.next_review <= end_of_week(ref)
    if due == "no-deadline":
        return task.deadline is None
    raise InvalidInputError(f"Invalid due filter '{due}'")


def sort_key(task: Task, sort_field: str) -> str | float:
    # ISO date strings order chronologically
    if sort_field == "created":
        return task.created_at.isoformat()
    if sort_field == "next-review":
        return task.next_review.isoformat()
    if sort_field == "deadline":
        return task.deadline.isoformat() if task.deadline else NO_DEADLINE_SENTINEL
    if sort_field == "ease-factor":
        return float(task.ease_factor)
    raise InvalidInputError(f"Invalid sort field '{sort_field}'")


def sort_tasks(tasks: Iterable[Task], sort_field: str, sort_dir: str = "asc") -> list[Task]:
    """Stable sort; equal keys keep their input order in both directions."""
    return sorted(tasks, key=lambda t: sort_key(t, sort_field), reverse=(sort_dir == "desc"))


def group_tasks(tasks: Iterable[Task], group_by: str) -> dict[str, tuple[Task, ...]]:
    if group_by == "none":
        return {}
    attr = "status" if group_by == "status" else "topic"
    buckets: dict[str, list[Task]] = {}
    for task in tasks:
        buckets.setdefault(getattr(task, attr), []).append(task)
    return {key: tuple(items) for key, items in buckets.items()}


def group_by_status(tasks: Iterable[Task], workflow: StatusWorkflow) -> dict[str, tuple[Task, ...]]:
    """
    Board columns: every workflow status in workflow order, empty or not.

    Tasks whose status is not in the workflow are left out.
    """
    columns: dict[str, list[Task]] = {status: [] for status in workflow.statuses}
    for task in tasks:
        if task.status in columns:
            columns[task.status].append(task)
    return {status: tuple(items) for status, items in columns.items()}


# =============================================================================
# Engine
# =============================================================================


class TaskFilterEngine:
    """Applies a FilterSpec to a task snapshot."""

    def __init__(self, as_of: date | None = None):
        self._as_of = as_of

    @property
    def today(self) -> date:
        return self._as_of or today()

    def apply(self, tasks: Iterable[Task], spec: FilterSpec) -> FilterResult:
        ref = self.today
        result = list(tasks)

        if spec.hide_completed:
            result = [t for t in result if not t.completed]
        if spec.topic != "all":
            result = [t for t in result if t.topic == spec.topic]
        if spec.status != "all":
            result = [t for t in result if t.status == spec.status]
        if spec.due != "all":
            result = [t for t in result if matches_due(t, spec.due, ref)]
        if spec.search:
            needle = spec.search.lower()
            result = [t for t in result if needle in t.title.lower()]

        ordered = tuple(sort_tasks(result, spec.sort_field, spec.sort_dir))
        return FilterResult(filtered=ordered, grouped=group_tasks(ordered, spec.group_by))
