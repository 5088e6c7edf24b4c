"""Due-task selection: which tasks need review today, and which are late."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from ..core.dates import today
from ..core.models import Task


@dataclass(frozen=True)
class DueSelection:
    """Due and overdue tasks in input order. ``overdue`` is a subset of ``due``."""

    due: tuple[Task, ...] = field(default_factory=tuple)
    overdue: tuple[Task, ...] = field(default_factory=tuple)
    total: int = 0

    def counts(self) -> dict[str, int]:
        return {"total": self.total, "due": len(self.due), "overdue": len(self.overdue)}


def is_due(task: Task, as_of: date) -> bool:
    return not task.completed and task.next_review <= as_of


def is_overdue(task: Task, as_of: date) -> bool:
    return is_due(task, as_of) and task.next_review < as_of


def select_due(tasks: Iterable[Task], as_of: date | None = None) -> DueSelection:
    """
    Classify a task snapshot into due / overdue.

    The input is only read; the returned tuples hold the same Task objects
    in input order.
    """
    ref = as_of or today()
    snapshot = tuple(tasks)
    due = tuple(t for t in snapshot if is_due(t, ref))
    overdue = tuple(t for t in due if t.next_review < ref)
    return DueSelection(due=due, overdue=overdue, total=len(snapshot))
