"""Calendar projection: which open tasks land on which day."""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from datetime import date

from ..core.models import Task


def tasks_by_date(tasks: Iterable[Task]) -> dict[date, list[Task]]:
    """
    Map each date to the open tasks reviewed or due on it.

    A task shows on its next-review date and on its deadline; when both
    fall on the same day it is listed once.
    """
    by_date: dict[date, list[Task]] = {}
    for task in tasks:
        if task.completed:
            continue
        days = {task.next_review}
        if task.deadline is not None:
            days.add(task.deadline)
        for day in sorted(days):
            by_date.setdefault(day, []).append(task)
    return by_date


def month_grid(year: int, month: int) -> list[list[int | None]]:
    """Sunday-first weeks of day numbers, padded with None."""
    cal = calendar.Calendar(firstweekday=calendar.SUNDAY)
    return [[day or None for day in week] for week in cal.monthdayscalendar(year, month)]
