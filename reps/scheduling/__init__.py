"""Spaced-repetition scheduling: SM-2 advance and due-task selection."""

from .due import DueSelection, is_due, is_overdue, select_due
from .sm2 import QUALITY_LABELS, SM2Config, SM2Scheduler, advance, validate_quality

__all__ = [
    "SM2Config",
    "SM2Scheduler",
    "advance",
    "validate_quality",
    "QUALITY_LABELS",
    "DueSelection",
    "select_due",
    "is_due",
    "is_overdue",
]
