"""
Guided sessions: the review loop over due tasks and free-form practice
interviews.
"""

from .guided import GuidedSession, Step
from .practice import DIFFICULTIES, PRACTICE_TOPICS, PracticeSession, TranscriptEntry
from .review import ReviewOutcome, ReviewScratch, ReviewSession

__all__ = [
    "Step",
    "GuidedSession",
    "ReviewSession",
    "ReviewOutcome",
    "ReviewScratch",
    "PracticeSession",
    "TranscriptEntry",
    "DIFFICULTIES",
    "PRACTICE_TOPICS",
]
