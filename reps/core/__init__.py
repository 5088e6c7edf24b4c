"""
Core types shared by every reps component.

- models: Task, ScheduleState, StatusWorkflow, Note
- schemas: AI service result shapes (pydantic)
- ports: async collaborator protocols
- errors: error taxonomy
"""

from .errors import (
    ExternalServiceError,
    InvalidInputError,
    InvalidTransitionError,
    PersistenceError,
    RepsError,
    SessionBusyError,
)
from .models import (
    DEFAULT_STATUSES,
    TOPICS,
    Note,
    ScheduleState,
    StatusWorkflow,
    Task,
    find_task,
    new_task,
    topic_label,
)
from .schemas import EvaluationResult, MockReply, MockScore, PracticeStart

__all__ = [
    # Models
    "Task",
    "Note",
    "ScheduleState",
    "StatusWorkflow",
    "TOPICS",
    "DEFAULT_STATUSES",
    "topic_label",
    "new_task",
    "find_task",
    # Service results
    "EvaluationResult",
    "MockScore",
    "MockReply",
    "PracticeStart",
    # Errors
    "RepsError",
    "InvalidInputError",
    "ExternalServiceError",
    "PersistenceError",
    "InvalidTransitionError",
    "SessionBusyError",
]
