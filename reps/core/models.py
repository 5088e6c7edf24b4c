"""
Domain models for reps.

Task is owned by the external store; the scheduling core reads and writes
only the schedule subset (ScheduleState) plus status/completed on the board.

Serialized shape (JSON store and API) uses the camelCase keys of the
data file: ``easeFactor``, ``nextReview``, ``lastReviewed``...
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any

from .dates import format_date, parse_date, today
from .errors import InvalidInputError

# =============================================================================
# Constants
# =============================================================================

TOPICS: tuple[str, ...] = ("coding", "system-design", "behavioral", "papers", "custom")

TOPIC_LABELS: dict[str, str] = {
    "coding": "Coding",
    "system-design": "System Design",
    "behavioral": "Behavioral",
    "papers": "Papers",
    "custom": "Custom",
}

DEFAULT_STATUSES: tuple[str, ...] = ("todo", "in-progress", "review", "done")
DEFAULT_TERMINAL_STATUS = "done"

PRIORITIES: tuple[str, ...] = ("none", "low", "medium", "high")

INITIAL_EASE_FACTOR = 2.5
MINIMUM_EASE_FACTOR = 1.3


def topic_label(topic: str) -> str:
    """Display label; custom topics are shown as typed."""
    return TOPIC_LABELS.get(topic, topic)


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class ScheduleState:
    """SM-2 state for a single task."""

    repetitions: int = 0
    interval: int = 1
    ease_factor: float = INITIAL_EASE_FACTOR
    next_review: date | None = None

    def __post_init__(self) -> None:
        if self.repetitions < 0:
            raise InvalidInputError(f"repetitions must be >= 0, got {self.repetitions}")
        if self.ease_factor < MINIMUM_EASE_FACTOR:
            raise InvalidInputError(
                f"ease_factor must be >= {MINIMUM_EASE_FACTOR}, got {self.ease_factor}"
            )


@dataclass(frozen=True)
class StatusWorkflow:
    """
    Ordered set of status names for a collection.

    Statuses are opaque strings; nothing here assumes the four built-in
    names exist. The terminal status is the one a board move treats as
    implying completion.
    """

    statuses: tuple[str, ...] = DEFAULT_STATUSES
    terminal: str | None = None

    def __post_init__(self) -> None:
        if not self.statuses:
            raise InvalidInputError("A status workflow needs at least one status")
        if len(set(self.statuses)) != len(self.statuses):
            raise InvalidInputError(f"Duplicate status names in {list(self.statuses)}")
        if self.terminal is None:
            terminal = DEFAULT_TERMINAL_STATUS if DEFAULT_TERMINAL_STATUS in self.statuses else self.statuses[-1]
            object.__setattr__(self, "terminal", terminal)
        elif self.terminal not in self.statuses:
            raise InvalidInputError(f"Terminal status '{self.terminal}' is not in the workflow")

    @classmethod
    def from_names(cls, names: list[str], terminal: str | None = None) -> StatusWorkflow:
        cleaned = tuple(n.strip() for n in names if n and n.strip())
        return cls(statuses=cleaned, terminal=terminal)

    def __contains__(self, status: object) -> bool:
        return status in self.statuses

    def validate(self, status: str) -> str:
        if status not in self.statuses:
            raise InvalidInputError(f"Unknown status '{status}'. Expected one of: {', '.join(self.statuses)}")
        return status

    def is_terminal(self, status: str) -> bool:
        return status == self.terminal


@dataclass
class Note:
    id: str
    text: str
    created_at: date

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "text": self.text, "createdAt": format_date(self.created_at)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Note:
        return cls(
            id=str(data["id"]),
            text=str(data.get("text", "")),
            created_at=parse_date(data.get("createdAt"), field_name="note createdAt") or today(),
        )


@dataclass
class Task:
    """An interview-prep task with its review schedule."""

    id: str
    title: str
    topic: str = "custom"
    status: str = "todo"
    completed: bool = False

    # Scheduling
    repetitions: int = 0
    interval: int = 1
    ease_factor: float = INITIAL_EASE_FACTOR
    next_review: date = field(default_factory=today)
    last_reviewed: date | None = None

    deadline: date | None = None
    created_at: date = field(default_factory=today)

    # Opaque to the scheduling core
    tags: list[str] = field(default_factory=list)
    notes: list[Note] = field(default_factory=list)
    priority: str = "none"
    collection_id: str | None = None

    @property
    def schedule(self) -> ScheduleState:
        return ScheduleState(
            repetitions=self.repetitions,
            interval=self.interval,
            ease_factor=self.ease_factor,
            next_review=self.next_review,
        )

    def with_schedule(self, state: ScheduleState, reviewed_on: date | None = None) -> Task:
        """Copy of this task with a new schedule applied."""
        return replace(
            self,
            repetitions=state.repetitions,
            interval=state.interval,
            ease_factor=state.ease_factor,
            next_review=state.next_review or self.next_review,
            last_reviewed=reviewed_on or today(),
        )

    def with_status(self, status: str, *, completed: bool | None = None) -> Task:
        return replace(self, status=status, completed=self.completed if completed is None else completed)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "topic": self.topic,
            "title": self.title,
            "notes": [n.to_dict() for n in self.notes],
            "completed": self.completed,
            "status": self.status,
            "repetitions": self.repetitions,
            "interval": self.interval,
            "easeFactor": self.ease_factor,
            "nextReview": format_date(self.next_review),
            "createdAt": format_date(self.created_at),
            "priority": self.priority,
            "tags": list(self.tags),
        }
        if self.deadline is not None:
            data["deadline"] = format_date(self.deadline)
        if self.last_reviewed is not None:
            data["lastReviewed"] = format_date(self.last_reviewed)
        if self.collection_id is not None:
            data["collectionId"] = self.collection_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        """
        Build a Task from the stored camelCase shape.

        Older records carry no ``status``; they are derived from
        ``completed`` the same way the server keeps the two in sync.
        """
        try:
            task_id = str(data["id"])
            title = str(data["title"])
        except KeyError as e:
            raise InvalidInputError(f"Task record is missing required field {e}") from e

        completed = bool(data.get("completed", False))
        status = data.get("status") or ("done" if completed else "todo")
        tags = [t["name"] if isinstance(t, dict) else str(t) for t in data.get("tags") or []]

        return cls(
            id=task_id,
            title=title,
            topic=str(data.get("topic") or "custom"),
            status=str(status),
            completed=completed,
            repetitions=int(data.get("repetitions", 0)),
            interval=int(data.get("interval", 1)),
            ease_factor=float(data.get("easeFactor", INITIAL_EASE_FACTOR)),
            next_review=parse_date(data.get("nextReview"), field_name="nextReview") or today(),
            last_reviewed=parse_date(data.get("lastReviewed"), field_name="lastReviewed"),
            deadline=parse_date(data.get("deadline"), field_name="deadline"),
            created_at=parse_date(data.get("createdAt"), field_name="createdAt") or today(),
            tags=tags,
            notes=[Note.from_dict(n) for n in data.get("notes") or []],
            priority=str(data.get("priority") or "none"),
            collection_id=data.get("collectionId"),
        )


def new_task(
    title: str,
    topic: str = "custom",
    deadline: date | None = None,
    note: str | None = None,
    created_on: date | None = None,
) -> Task:
    """Create a fresh task, due for its first review on the day it is added."""
    if not title.strip():
        raise InvalidInputError("Task title is empty")
    created = created_on or today()
    notes = [Note(id=str(uuid.uuid4()), text=note, created_at=created)] if note else []
    return Task(
        id=str(uuid.uuid4()),
        title=title.strip(),
        topic=topic,
        deadline=deadline,
        next_review=created,
        created_at=created,
        notes=notes,
    )


def find_task(tasks: list[Task], id_prefix: str) -> Task | None:
    """
    Find a task by id or unique id prefix, the way ids are typed on the
    command line.

    Raises:
        InvalidInputError: if the prefix matches more than one task.
    """
    if not id_prefix:
        return None
    for task in tasks:
        if task.id == id_prefix:
            return task
    matches = [t for t in tasks if t.id.startswith(id_prefix)]
    if len(matches) > 1:
        raise InvalidInputError(f"Id prefix '{id_prefix}' matches {len(matches)} tasks")
    return matches[0] if matches else None
