"""
Error taxonomy for the reps core.

- InvalidInputError: caller contract violation (bad quality, malformed date).
  Raised synchronously, never coerced.
- ExternalServiceError: question generation / answer evaluation / interview
  simulation failed. Recoverable, reported on the current step only.
- PersistenceError: a schedule or status write failed. Recoverable but
  sticky; the affected state stays retryable or is reverted.
"""

from __future__ import annotations


class RepsError(Exception):
    """Base class for all reps errors."""


class InvalidInputError(RepsError, ValueError):
    """Input violates a caller contract."""


class ExternalServiceError(RepsError):
    """An external collaborator (AI question/evaluation service) failed."""


class PersistenceError(RepsError):
    """A durable write to the task store failed."""


class InvalidTransitionError(RepsError):
    """A session transition was requested from a state that does not allow it."""

    def __init__(self, action: str, step: str):
        super().__init__(f"Cannot {action} while at step '{step}'")
        self.action = action
        self.step = step


class SessionBusyError(RepsError):
    """The session has an outstanding durable commit and cannot be abandoned."""
