"""
Progress statistics for the dashboard: review streaks and per-topic totals.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta

from .core.dates import today as _today
from .core.models import TOPICS, Task
from .scheduling.due import is_due


@dataclass(frozen=True)
class Streaks:
    current: int = 0
    longest: int = 0
    last_review_date: date | None = None


@dataclass(frozen=True)
class TopicSummary:
    topic: str
    done: int
    total: int
    due: int


def review_dates(tasks: Iterable[Task]) -> list[date]:
    """Distinct days on which any task was last reviewed."""
    return sorted({t.last_reviewed for t in tasks if t.last_reviewed is not None})


def compute_streaks(dates: Iterable[date], today: date | None = None) -> Streaks:
    """
    Consecutive-day review streaks.

    The current streak only counts if the latest review was today or
    yesterday; the longest streak covers all history.
    """
    days = sorted(set(dates), reverse=True)
    if not days:
        return Streaks()

    ref = today or _today()
    day_set = set(days)

    current = 0
    if ref in day_set:
        check = ref
    elif ref - timedelta(days=1) in day_set:
        check = ref - timedelta(days=1)
    else:
        check = None
    while check is not None and check in day_set:
        current += 1
        check -= timedelta(days=1)

    longest = streak = 1
    for prev, curr in zip(days, days[1:]):
        if prev - curr == timedelta(days=1):
            streak += 1
            longest = max(longest, streak)
        else:
            streak = 1

    return Streaks(current=current, longest=max(longest, current), last_review_date=days[0])


def topic_summary(tasks: Iterable[Task], today: date | None = None) -> list[TopicSummary]:
    """Done/total/due counts per topic, known topics first, skipping empty ones."""
    ref = today or _today()
    snapshot = list(tasks)
    extra = sorted({t.topic for t in snapshot} - set(TOPICS))

    summaries = []
    for topic in (*TOPICS, *extra):
        in_topic = [t for t in snapshot if t.topic == topic]
        if not in_topic:
            continue
        summaries.append(
            TopicSummary(
                topic=topic,
                done=sum(1 for t in in_topic if t.completed),
                total=len(in_topic),
                due=sum(1 for t in in_topic if is_due(t, ref)),
            )
        )
    return summaries
