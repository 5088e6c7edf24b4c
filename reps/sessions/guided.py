"""
Guided Session: shared step machinery for review and practice sessions.

Both sessions walk the same vocabulary (question -> answer -> evaluation)
and differ in what surrounds it: the review session ends each task with a
durable rating, the practice session has no durable effects at all.

What lives here:
- Step: the shared step names
- GuidedSession: transition guards, per-step error state, and the single
  outstanding collaborator call per session
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TypeVar

from loguru import logger

from ..core.errors import ExternalServiceError, InvalidTransitionError, SessionBusyError

T = TypeVar("T")


class Step(str, Enum):
    """Step names shared by every guided session."""

    IDLE = "idle"
    QUESTION = "question"
    ANSWER = "answer"
    EVALUATION = "evaluation"
    RATING = "rating"
    DONE = "done"


class GuidedSession:
    """
    Base class for step-driven sessions.

    Collaborator failures never move the step: the error is recorded on the
    current step and the user may retry or take a skip path. Steps listed
    in ``DURABLE_STEPS`` perform a durable write; a session cannot be
    abandoned while such a write is outstanding.
    """

    DURABLE_STEPS: frozenset[Step] = frozenset()

    def __init__(self, initial_step: Step):
        self.step = initial_step
        self.error: str | None = None
        self.abandoned = False
        self._call_step: Step | None = None
        # Bumped on reset/abandon so late replies from a discarded
        # conversation do not touch the new state
        self._epoch = 0

    # --- state ---

    @property
    def busy(self) -> bool:
        """True while a collaborator call is outstanding."""
        return self._call_step is not None

    @property
    def committing(self) -> bool:
        return self._call_step in self.DURABLE_STEPS

    # --- transitions ---

    def _require(self, action: str, *allowed: Step) -> None:
        if self.abandoned:
            raise InvalidTransitionError(action, "abandoned")
        if self.step not in allowed:
            raise InvalidTransitionError(action, self.step.value)

    def _goto(self, step: Step) -> None:
        logger.debug(f"{type(self).__name__}: {self.step.value} -> {step.value}")
        self.step = step
        self.error = None

    async def _call(
        self,
        action: str,
        call: Callable[[], Awaitable[T]],
        failures: tuple[type[Exception], ...] = (ExternalServiceError,),
    ) -> tuple[bool, T | None]:
        """
        Await one collaborator call for the current step.

        Returns (True, value) on success. Expected failures are stored in
        ``self.error`` and reported as (False, None); anything else
        propagates. A reply that arrives after reset/abandon is discarded.
        """
        if self._call_step is not None:
            raise SessionBusyError(f"Cannot {action}: a request is already outstanding")

        epoch = self._epoch
        self.error = None
        self._call_step = self.step
        try:
            value = await call()
        except failures as e:
            if epoch == self._epoch:
                logger.warning(f"{type(self).__name__}: {action} failed at step '{self.step.value}': {e}")
                self.error = str(e) or type(e).__name__
            return False, None
        finally:
            if epoch == self._epoch:
                self._call_step = None

        if epoch != self._epoch:
            logger.debug(f"{type(self).__name__}: discarding late reply to {action}")
            return False, None
        return True, value

    def _discard(self) -> None:
        self._epoch += 1
        self._call_step = None
        self.error = None

    def abandon(self) -> None:
        """
        Leave the session (navigating away).

        Raises:
            SessionBusyError: while a durable commit is outstanding; that
                commit must be allowed to finish on its own.
        """
        if self.committing:
            raise SessionBusyError("A rating is still being saved; wait for it to finish")
        self._discard()
        self.abandoned = True
        logger.debug(f"{type(self).__name__} abandoned at step '{self.step.value}'")
