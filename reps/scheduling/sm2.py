"""
SM-2 Spaced Repetition Scheduler.

Pure schedule advance: (schedule state, quality) -> new schedule state.
No I/O; the caller persists the result.

SM-2 Quality Scale:
0 - Total blackout
1 - Wrong, but recalled something
2 - Wrong, but easy to recall
3 - Correct, serious difficulty
4 - Correct, some hesitation
5 - Perfect response
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from loguru import logger

from ..core.dates import add_days, today
from ..core.errors import InvalidInputError
from ..core.models import INITIAL_EASE_FACTOR, MINIMUM_EASE_FACTOR, ScheduleState

QUALITY_LABELS: dict[int, str] = {
    0: "0 - Total blackout",
    1: "1 - Wrong, but recalled something",
    2: "2 - Wrong, but easy to recall",
    3: "3 - Correct, serious difficulty",
    4: "4 - Correct, some hesitation",
    5: "5 - Perfect response",
}


def validate_quality(quality: object) -> int:
    """Reject anything that is not an integer in 0..5 (no clamping)."""
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidInputError(f"Quality must be an integer 0-5, got {quality!r}")
    if not 0 <= quality <= 5:
        raise InvalidInputError(f"Quality must be between 0 and 5, got {quality}")
    return quality


def _round_half_up(value: float, places: int = 0) -> Decimal:
    exponent = Decimal(1).scaleb(-places)
    return Decimal(repr(value)).quantize(exponent, rounding=ROUND_HALF_UP)


# =============================================================================
# SM-2 Algorithm
# =============================================================================


@dataclass
class SM2Config:
    """Configuration for SM-2 algorithm."""

    initial_easiness: float = INITIAL_EASE_FACTOR
    minimum_easiness: float = MINIMUM_EASE_FACTOR
    first_interval: int = 1  # Days after the first successful recall
    second_interval: int = 6  # Days after the second successful recall
    passing_quality: int = 3


class SM2Scheduler:
    """
    Implements the SM-2 spaced repetition algorithm.

    Each task carries:
    - Ease Factor (EF): growth multiplier for intervals (2.5 default, min 1.3)
    - Interval: days until next review
    - Repetitions: consecutive successful recalls
    """

    def __init__(self, config: SM2Config | None = None):
        self.config = config or SM2Config()

    def advance(
        self,
        state: ScheduleState,
        quality: int,
        on: date | None = None,
    ) -> ScheduleState:
        """
        Calculate the next schedule for a quality score.

        Args:
            state: Current schedule state of the task
            quality: Self-rated recall quality (0-5)
            on: Review date (defaults to today)

        Returns:
            New ScheduleState with next_review = on + interval days

        Raises:
            InvalidInputError: if quality is outside 0..5
        """
        q = validate_quality(quality)
        reviewed_on = on or today()

        if q >= self.config.passing_quality:
            if state.repetitions == 0:
                interval = self.config.first_interval
            elif state.repetitions == 1:
                interval = self.config.second_interval
            else:
                # Grows from the ease factor held *before* this review
                interval = int(_round_half_up(state.interval * state.ease_factor))
            repetitions = state.repetitions + 1
        else:
            # Failed - reset to beginning
            repetitions = 0
            interval = self.config.first_interval

        # EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)), clamped then rounded
        ef_delta = 0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)
        ease = max(self.config.minimum_easiness, state.ease_factor + ef_delta)
        ease = float(_round_half_up(ease, 2))

        new_state = ScheduleState(
            repetitions=repetitions,
            interval=interval,
            ease_factor=ease,
            next_review=add_days(reviewed_on, interval),
        )

        logger.debug(
            f"SM-2 advance q={q}: reps {state.repetitions}->{repetitions}, "
            f"interval {state.interval}->{interval}d, ef {state.ease_factor}->{ease}"
        )
        return new_state


_default_scheduler = SM2Scheduler()


def advance(state: ScheduleState, quality: int, on: date | None = None) -> ScheduleState:
    """Advance a schedule with the default SM-2 configuration."""
    return _default_scheduler.advance(state, quality, on)
