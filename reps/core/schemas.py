"""
Pydantic schemas for results returned by the external AI services.

The services are opaque to the core; these models only pin down the shape
the review and practice sessions consume.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class EvaluationResult(_CamelModel):
    """Structured score for a written review answer (1-5 per axis)."""

    clarity: float = Field(ge=0, le=5)
    specificity: float = Field(ge=0, le=5)
    mission_alignment: float = Field(ge=0, le=5, alias="missionAlignment")
    feedback: str = ""
    suggested_improvement: str = Field(default="", alias="suggestedImprovement")


class MockScore(_CamelModel):
    """Final score of a practice interview."""

    clarity: float = 3
    depth: float = 3
    correctness: float = 3
    communication: float = 3
    overall: float = 3
    feedback: str = "No feedback provided."
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)


class PracticeStart(_CamelModel):
    """Opening of a practice interview: opaque handle plus first question."""

    session_id: str = Field(alias="sessionId")
    question: str


class MockReply(_CamelModel):
    """
    Interviewer reply to a candidate answer.

    Either a follow-up question or a final score; ``done`` with neither
    means the interviewer ended without scoring.
    """

    follow_up: str | None = Field(default=None, alias="followUp")
    score: MockScore | None = None
    done: bool = False

    @model_validator(mode="after")
    def _score_implies_done(self) -> MockReply:
        if self.score is not None:
            self.done = True
        return self
