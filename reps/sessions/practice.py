"""
Practice Session: a free-form mock interview with no durable effects.

    idle -> questioning <-> answering -> questioning (follow-up)
                                      -> evaluation (final score)
                                      -> done (ended without a score)

Topic and difficulty are chosen while idle. ``reset`` returns to idle from
anywhere and discards the interview handle; replies still in flight for
the old interview are dropped.
"""

from __future__ import annotations

import random
from dataclasses import dataclass

from loguru import logger

from ..core.errors import InvalidInputError
from ..core.models import TOPICS
from ..core.ports import InterviewSimulator
from ..core.schemas import MockReply, MockScore
from .guided import GuidedSession, Step

DIFFICULTIES: tuple[str, ...] = ("easy", "medium", "hard")

# Topics offered for a practice interview ("custom" has no question bank)
PRACTICE_TOPICS: tuple[str, ...] = tuple(t for t in TOPICS if t != "custom")

_STATE_LABELS = {
    Step.IDLE: "idle",
    Step.QUESTION: "questioning",
    Step.ANSWER: "answering",
    Step.EVALUATION: "evaluation",
    Step.DONE: "done",
}


@dataclass(frozen=True)
class TranscriptEntry:
    role: str  # "interviewer" | "candidate"
    text: str


class PracticeSession(GuidedSession):
    """Mock interview driven by an ``InterviewSimulator``."""

    def __init__(
        self,
        simulator: InterviewSimulator,
        topic: str = PRACTICE_TOPICS[0],
        difficulty: str = "medium",
    ):
        super().__init__(Step.IDLE)
        self.simulator = simulator
        self.topic = topic
        self.difficulty = difficulty
        self.session_id: str | None = None
        self.question: str | None = None
        self.score: MockScore | None = None
        self._transcript: list[TranscriptEntry] = []
        self.choose(topic, difficulty)

    @property
    def state(self) -> str:
        return _STATE_LABELS[self.step]

    @property
    def transcript(self) -> list[TranscriptEntry]:
        return list(self._transcript)

    @property
    def answers_given(self) -> int:
        return sum(1 for entry in self._transcript if entry.role == "candidate")

    # --- idle ---

    def choose(self, topic: str | None = None, difficulty: str | None = None) -> None:
        """Pick topic and/or difficulty before starting."""
        self._require("choose a topic", Step.IDLE)
        if topic is not None:
            if not topic.strip():
                raise InvalidInputError("Topic is empty")
            self.topic = topic
        if difficulty is not None:
            if difficulty not in DIFFICULTIES:
                raise InvalidInputError(f"Unknown difficulty '{difficulty}'. Expected one of: {', '.join(DIFFICULTIES)}")
            self.difficulty = difficulty

    def surprise_me(self, rng: random.Random | None = None) -> tuple[str, str]:
        """Pick a random topic and difficulty."""
        rng = rng or random.Random()
        self.choose(rng.choice(PRACTICE_TOPICS), rng.choice(DIFFICULTIES))
        return self.topic, self.difficulty

    async def start(self) -> str | None:
        """Open the interview; on failure the session stays idle with an error."""
        self._require("start the interview", Step.IDLE)
        ok, opening = await self._call(
            "start the interview", lambda: self.simulator.start(self.topic, self.difficulty)
        )
        if not ok:
            return None

        self.session_id = opening.session_id
        self.question = opening.question
        self._transcript.append(TranscriptEntry("interviewer", opening.question))
        logger.info(f"Practice interview {opening.session_id} started ({self.topic}, {self.difficulty})")
        self._goto(Step.QUESTION)
        return opening.question

    # --- questioning / answering ---

    def begin_answer(self) -> None:
        self._require("answer", Step.QUESTION)
        self._goto(Step.ANSWER)

    def back_to_question(self) -> None:
        self._require("go back to the question", Step.ANSWER)
        self._goto(Step.QUESTION)

    async def submit_answer(self, text: str) -> MockReply | None:
        """
        Send the candidate's answer to the interviewer.

        Args:
            text: The candidate's answer

        Returns:
            The interviewer's reply, or None if the call failed (the session
            stays at answering with an error) or the interview was reset.
        """
        self._require("submit an answer", Step.ANSWER)
        if not text.strip():
            raise InvalidInputError("Answer is empty")
        session_id = self.session_id
        assert session_id is not None

        ok, reply = await self._call("submit the answer", lambda: self.simulator.respond(session_id, text))
        if not ok:
            return None

        self._transcript.append(TranscriptEntry("candidate", text))
        if reply.score is not None:
            self.score = reply.score
            logger.info(f"Practice interview {session_id} scored {reply.score.overall}/5")
            self._goto(Step.EVALUATION)
        elif reply.follow_up and not reply.done:
            self.question = reply.follow_up
            self._transcript.append(TranscriptEntry("interviewer", reply.follow_up))
            self._goto(Step.QUESTION)
        else:
            logger.info(f"Practice interview {session_id} ended without a score")
            self._goto(Step.DONE)
        return reply

    # --- any state ---

    def reset(self) -> None:
        """Return to idle, dropping the interview handle and transcript."""
        self._discard()
        self.abandoned = False
        self.session_id = None
        self.question = None
        self.score = None
        self._transcript = []
        self._goto(Step.IDLE)
