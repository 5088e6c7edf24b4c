"""
Review Session: walks a frozen queue of due tasks.

Per task:
    question -> answer -> evaluation -> rating -> (next question | done)

Skip paths: question -> rating, answer -> rating. Loading an AI question is
optional; a task can go straight to rating.

Only ``rate`` has a durable effect. It computes the SM-2 update once per
submission and persists it; if persisting fails the session stays at the
rating step holding the computed update so ``retry_rating`` can resend it.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from loguru import logger

from ..core.errors import InvalidInputError, InvalidTransitionError, PersistenceError, SessionBusyError
from ..core.models import ScheduleState, Task
from ..core.ports import AnswerEvaluator, QuestionGenerator, SchedulePersister
from ..core.schemas import EvaluationResult
from ..scheduling.sm2 import SM2Scheduler, validate_quality
from .guided import GuidedSession, Step


@dataclass
class ReviewScratch:
    """Per-task transient state, cleared when the session moves on."""

    question: str | None = None
    answer: str = ""
    evaluation: EvaluationResult | None = None


@dataclass(frozen=True)
class ReviewOutcome:
    task_id: str
    quality: int
    schedule: ScheduleState


@dataclass(frozen=True)
class _PendingRating:
    task_id: str
    quality: int
    schedule: ScheduleState


class ReviewSession(GuidedSession):
    """
    Review session over an immutable snapshot of due tasks.

    The queue is fixed at creation; tasks completed or newly due elsewhere
    do not join or leave it. ``position`` only increases.
    """

    DURABLE_STEPS = frozenset({Step.RATING})

    def __init__(
        self,
        queue: Iterable[Task],
        persister: SchedulePersister,
        questions: QuestionGenerator | None = None,
        evaluator: AnswerEvaluator | None = None,
        scheduler: SM2Scheduler | None = None,
        review_date: date | None = None,
    ):
        self._queue: tuple[Task, ...] = tuple(queue)
        super().__init__(Step.QUESTION if self._queue else Step.DONE)

        self.persister = persister
        self.questions = questions
        self.evaluator = evaluator
        self.scheduler = scheduler or SM2Scheduler()
        self.review_date = review_date

        self._position = 0
        self.scratch = ReviewScratch()
        self._pending: _PendingRating | None = None
        self._results: list[ReviewOutcome] = []

        logger.debug(f"Review session created with {len(self._queue)} task(s)")

    # --- progress ---

    @property
    def queue(self) -> tuple[Task, ...]:
        return self._queue

    @property
    def position(self) -> int:
        return self._position

    @property
    def total(self) -> int:
        return len(self._queue)

    @property
    def current_task(self) -> Task | None:
        if self.step == Step.DONE or not self._queue:
            return None
        return self._queue[self._position]

    @property
    def is_complete(self) -> bool:
        return self.step == Step.DONE

    @property
    def reviewed_count(self) -> int:
        return len(self._results)

    @property
    def results(self) -> list[ReviewOutcome]:
        return list(self._results)

    @property
    def pending_update(self) -> ScheduleState | None:
        """Computed schedule whose persistence failed and awaits retry."""
        return self._pending.schedule if self._pending else None

    @property
    def progress(self) -> str:
        if not self._queue:
            return "No tasks due"
        return f"Task {self._position + 1} of {self.total}"

    # --- question step ---

    async def load_question(self) -> str | None:
        """Ask the question service for an interview question on the current task."""
        self._require("load a question", Step.QUESTION)
        task = self._current()
        if self.questions is None:
            self.error = "Question generation is not available"
            return None

        ok, question = await self._call("load a question", lambda: self.questions.generate_question(task.id))
        if ok:
            self.scratch.question = question
        return question if ok else None

    def start_answer(self) -> None:
        self._require("write an answer", Step.QUESTION)
        if not self.scratch.question:
            raise InvalidTransitionError("write an answer before a question is loaded", self.step.value)
        self._goto(Step.ANSWER)

    def skip_to_rating(self) -> None:
        """Skip answer drafting and/or evaluation."""
        self._require("skip to rating", Step.QUESTION, Step.ANSWER)
        self._goto(Step.RATING)

    # --- answer step ---

    def set_answer(self, text: str) -> None:
        self._require("edit the answer", Step.ANSWER)
        self.scratch.answer = text

    async def submit_answer(self, text: str | None = None) -> EvaluationResult | None:
        """Send the drafted answer for evaluation; stays at ``answer`` on failure."""
        self._require("submit an answer", Step.ANSWER)
        if text is not None:
            self.scratch.answer = text
        answer = self.scratch.answer
        if not answer.strip():
            raise InvalidInputError("Answer is empty")

        task = self._current()
        if self.evaluator is None:
            self.error = "Answer evaluation is not available"
            return None

        ok, result = await self._call("evaluate the answer", lambda: self.evaluator.evaluate_answer(task.id, answer))
        if not ok:
            return None
        self.scratch.evaluation = result
        self._goto(Step.EVALUATION)
        return result

    # --- evaluation step ---

    def continue_to_rating(self) -> None:
        self._require("continue to rating", Step.EVALUATION)
        self._goto(Step.RATING)

    # --- rating step ---

    async def rate(self, quality: int) -> bool:
        """
        Submit a quality score for the current task.

        Computes the schedule update exactly once for this submission and
        persists it. Returns True when the session moved on.

        Raises:
            InvalidInputError: if quality is not an integer in 0..5
            SessionBusyError: while an earlier rating is still being saved
        """
        self._require("rate", Step.RATING)
        q = validate_quality(quality)
        # The held update must stay the one in flight
        if self.busy:
            raise SessionBusyError("Cannot rate: the previous rating is still being saved")
        task = self._current()

        schedule = self.scheduler.advance(task.schedule, q, self.review_date)
        self._pending = _PendingRating(task_id=task.id, quality=q, schedule=schedule)
        return await self._commit()

    async def retry_rating(self) -> bool:
        """Resend the last computed update after a persistence failure."""
        self._require("retry the rating", Step.RATING)
        if self._pending is None:
            raise InvalidTransitionError("retry without a failed rating", self.step.value)
        return await self._commit()

    async def _commit(self) -> bool:
        pending = self._pending
        assert pending is not None

        ok, _ = await self._call(
            "save the rating",
            lambda: self.persister.persist_schedule(pending.task_id, pending.schedule),
            failures=(PersistenceError,),
        )
        if not ok:
            logger.error(f"Rating for {pending.task_id} not saved; holding update for retry")
            return False

        self._results.append(ReviewOutcome(pending.task_id, pending.quality, pending.schedule))
        self._pending = None
        logger.info(
            f"Reviewed {pending.task_id}: q={pending.quality}, "
            f"next review {pending.schedule.next_review} ({pending.schedule.interval}d)"
        )
        self._advance()
        return True

    def _advance(self) -> None:
        if self._position + 1 < len(self._queue):
            self._position += 1
            self.scratch = ReviewScratch()
            self._goto(Step.QUESTION)
        else:
            self._goto(Step.DONE)
            logger.info(f"Review session complete: {self.reviewed_count} task(s) reviewed")

    def _current(self) -> Task:
        task = self.current_task
        if task is None:
            raise InvalidTransitionError("act on a task", self.step.value)
        return task


__all__ = ["ReviewSession", "ReviewOutcome", "ReviewScratch"]
