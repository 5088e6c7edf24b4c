"""
Unit tests for the practice interview session.
"""

import asyncio
import random
from unittest.mock import AsyncMock

import pytest

from reps.core.errors import ExternalServiceError, InvalidInputError, InvalidTransitionError
from reps.core.schemas import MockReply, MockScore, PracticeStart
from reps.sessions import DIFFICULTIES, PRACTICE_TOPICS, PracticeSession, Step


@pytest.fixture
def simulator():
    mock = AsyncMock()
    mock.start.return_value = PracticeStart(session_id="mock-1", question="Design a rate limiter.")
    mock.respond.return_value = MockReply(follow_up="How would you shard it?")
    return mock


class TestChoosing:

    def test_starts_idle(self, simulator):
        session = PracticeSession(simulator)

        assert session.state == "idle"
        assert session.session_id is None

    def test_choose_topic_and_difficulty(self, simulator):
        session = PracticeSession(simulator)

        session.choose("system-design", "hard")

        assert (session.topic, session.difficulty) == ("system-design", "hard")

    def test_unknown_difficulty_rejected(self, simulator):
        session = PracticeSession(simulator)

        with pytest.raises(InvalidInputError):
            session.choose(difficulty="impossible")

    def test_surprise_me_uses_given_rng(self, simulator):
        session = PracticeSession(simulator)

        topic, difficulty = session.surprise_me(random.Random(42))
        again = PracticeSession(simulator).surprise_me(random.Random(42))

        assert topic in PRACTICE_TOPICS
        assert difficulty in DIFFICULTIES
        assert (topic, difficulty) == again


class TestInterview:

    @pytest.mark.asyncio
    async def test_start_moves_to_questioning(self, simulator):
        session = PracticeSession(simulator, topic="coding", difficulty="easy")

        question = await session.start()

        assert question == "Design a rate limiter."
        assert session.state == "questioning"
        assert session.session_id == "mock-1"
        simulator.start.assert_awaited_once_with("coding", "easy")

    @pytest.mark.asyncio
    async def test_start_failure_stays_idle(self, simulator):
        simulator.start.side_effect = ExternalServiceError("unavailable")
        session = PracticeSession(simulator)

        assert await session.start() is None

        assert session.step == Step.IDLE
        assert session.error == "unavailable"

    @pytest.mark.asyncio
    async def test_follow_up_returns_to_questioning(self, simulator):
        session = PracticeSession(simulator)
        await session.start()
        session.begin_answer()

        await session.submit_answer("Token bucket per user.")

        assert session.state == "questioning"
        assert session.question == "How would you shard it?"
        simulator.respond.assert_awaited_once_with("mock-1", "Token bucket per user.")

    @pytest.mark.asyncio
    async def test_final_score_moves_to_evaluation(self, simulator):
        simulator.respond.return_value = MockReply.model_validate(
            {"score": {"clarity": 4, "overall": 4, "strengths": ["structure"]}}
        )
        session = PracticeSession(simulator)
        await session.start()
        session.begin_answer()

        reply = await session.submit_answer("Final answer")

        assert reply.done is True
        assert session.state == "evaluation"
        assert session.score.overall == 4
        assert session.score.depth == 3

    @pytest.mark.asyncio
    async def test_end_without_score_is_done(self, simulator):
        simulator.respond.return_value = MockReply(done=True)
        session = PracticeSession(simulator)
        await session.start()
        session.begin_answer()

        await session.submit_answer("answer")

        assert session.state == "done"
        assert session.score is None

    @pytest.mark.asyncio
    async def test_respond_failure_stays_answering(self, simulator):
        simulator.respond.side_effect = ExternalServiceError("502")
        session = PracticeSession(simulator)
        await session.start()
        session.begin_answer()

        assert await session.submit_answer("answer") is None

        assert session.state == "answering"
        assert session.error == "502"
        assert session.answers_given == 0

    @pytest.mark.asyncio
    async def test_back_to_question(self, simulator):
        session = PracticeSession(simulator)
        await session.start()
        session.begin_answer()

        session.back_to_question()

        assert session.state == "questioning"

    @pytest.mark.asyncio
    async def test_transcript_alternates_roles(self, simulator):
        session = PracticeSession(simulator)
        await session.start()
        session.begin_answer()
        await session.submit_answer("first")

        roles = [entry.role for entry in session.transcript]

        assert roles == ["interviewer", "candidate", "interviewer"]
        assert session.answers_given == 1

    @pytest.mark.asyncio
    async def test_cannot_answer_before_start(self, simulator):
        session = PracticeSession(simulator)

        with pytest.raises(InvalidTransitionError):
            session.begin_answer()


class TestReset:

    @pytest.mark.asyncio
    async def test_reset_discards_handle(self, simulator):
        session = PracticeSession(simulator)
        await session.start()

        session.reset()

        assert session.state == "idle"
        assert session.session_id is None
        assert session.transcript == []

    @pytest.mark.asyncio
    async def test_reply_after_reset_is_dropped(self, simulator):
        release = asyncio.Event()

        async def respond(session_id, answer):
            await release.wait()
            return MockReply(follow_up="stale follow-up")

        simulator.respond.side_effect = respond
        session = PracticeSession(simulator)
        await session.start()
        session.begin_answer()

        pending = asyncio.create_task(session.submit_answer("answer"))
        await asyncio.sleep(0)
        session.reset()
        release.set()

        assert await pending is None
        assert session.state == "idle"
        assert session.question is None
        assert session.transcript == []

    @pytest.mark.asyncio
    async def test_can_start_again_after_reset(self, simulator):
        session = PracticeSession(simulator)
        await session.start()
        session.reset()

        await session.start()

        assert session.state == "questioning"
        assert simulator.start.await_count == 2
