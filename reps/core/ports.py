"""
Collaborator ports.

The core never talks to a transport directly. Every suspension point is one
of these async calls; implementations live in ``reps.store`` (local JSON
file) and ``reps.client`` (HTTP API).
"""

from __future__ import annotations

from datetime import date
from typing import Protocol, runtime_checkable

from .models import ScheduleState, Task
from .schemas import EvaluationResult, MockReply, PracticeStart


@runtime_checkable
class TaskSource(Protocol):
    async def load_tasks(self) -> list[Task]: ...

    async def load_due_tasks(self, as_of: date | None = None) -> list[Task]: ...


@runtime_checkable
class QuestionGenerator(Protocol):
    async def generate_question(self, task_id: str) -> str: ...


@runtime_checkable
class AnswerEvaluator(Protocol):
    async def evaluate_answer(self, task_id: str, answer: str) -> EvaluationResult: ...


@runtime_checkable
class SchedulePersister(Protocol):
    async def persist_schedule(self, task_id: str, state: ScheduleState) -> None: ...


@runtime_checkable
class StatusPersister(Protocol):
    async def persist_status(self, task_id: str, status: str, completed: bool | None = None) -> None: ...


@runtime_checkable
class InterviewSimulator(Protocol):
    async def start(self, topic: str, difficulty: str) -> PracticeStart: ...

    async def respond(self, session_id: str, answer: str) -> MockReply: ...
