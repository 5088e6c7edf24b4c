"""
Unit tests for the reps web API client.
"""

import json
from datetime import date

import httpx
import pytest

from reps.client import RepsApiClient
from reps.core.errors import ExternalServiceError, PersistenceError
from reps.core.models import ScheduleState

BASE_URL = "http://reps.test/api"


class Recorder:
    """MockTransport handler that records requests and replays canned responses."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, text="not found")
        if isinstance(handler, httpx.Response):
            # Fresh copy so a canned response can be served more than once
            return httpx.Response(handler.status_code, content=handler.content, headers=handler.headers)
        return handler(request)


def make_client(routes):
    recorder = Recorder(routes)
    client = RepsApiClient(BASE_URL, "secret-key", transport=httpx.MockTransport(recorder))
    return client, recorder


@pytest.fixture
def task_records():
    return [
        {"id": "t1", "title": "Two Sum", "topic": "coding", "completed": False,
         "nextReview": "2024-01-09", "createdAt": "2024-01-01", "easeFactor": 2.5,
         "tags": [{"id": "g1", "name": "arrays"}]},
        {"id": "t2", "title": "URL shortener", "topic": "system-design", "completed": False,
         "nextReview": "2024-01-20", "createdAt": "2024-01-01"},
    ]


class TestTasks:

    @pytest.mark.asyncio
    async def test_load_tasks_sends_bearer_token(self, task_records):
        client, recorder = make_client({("GET", "/api/tasks"): httpx.Response(200, json=task_records)})

        async with client:
            tasks = await client.load_tasks()

        assert [t.id for t in tasks] == ["t1", "t2"]
        assert tasks[0].tags == ["arrays"]
        assert recorder.requests[0].headers["Authorization"] == "Bearer secret-key"

    @pytest.mark.asyncio
    async def test_load_due_tasks(self, task_records):
        client, _ = make_client({("GET", "/api/tasks"): httpx.Response(200, json=task_records)})

        async with client:
            due = await client.load_due_tasks(date(2024, 1, 10))

        assert [t.id for t in due] == ["t1"]

    @pytest.mark.asyncio
    async def test_persist_schedule_patches_task(self):
        client, recorder = make_client({("PATCH", "/api/tasks/t1"): httpx.Response(200, json={})})
        state = ScheduleState(repetitions=1, interval=1, ease_factor=2.5, next_review=date(2024, 1, 11))

        async with client:
            await client.persist_schedule("t1", state)

        body = json.loads(recorder.requests[0].content)
        assert body["repetitions"] == 1
        assert body["easeFactor"] == 2.5
        assert body["nextReview"] == "2024-01-11"
        assert "lastReviewed" in body

    @pytest.mark.asyncio
    async def test_persist_status_omits_unchanged_completed(self):
        client, recorder = make_client({("PATCH", "/api/tasks/t1"): httpx.Response(200, json={})})

        async with client:
            await client.persist_status("t1", "review", None)
            await client.persist_status("t1", "done", True)

        assert json.loads(recorder.requests[0].content) == {"status": "review"}
        assert json.loads(recorder.requests[1].content) == {"status": "done", "completed": True}

    @pytest.mark.asyncio
    async def test_write_failure_is_persistence_error(self):
        client, _ = make_client({("PATCH", "/api/tasks/t1"): httpx.Response(500, text="boom")})

        async with client:
            with pytest.raises(PersistenceError, match="500"):
                await client.persist_status("t1", "done", True)

    @pytest.mark.asyncio
    async def test_connection_error_is_persistence_error(self):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        client, _ = make_client({("GET", "/api/tasks"): refuse})

        async with client:
            with pytest.raises(PersistenceError):
                await client.load_tasks()

    @pytest.mark.asyncio
    async def test_sync_tasks_returns_count(self, make_task):
        client, recorder = make_client({("POST", "/api/sync"): httpx.Response(200, json={"count": 2})})

        async with client:
            count = await client.sync_tasks([make_task(), make_task()])

        assert count == 2
        assert len(json.loads(recorder.requests[0].content)["tasks"]) == 2


class TestAgent:

    @pytest.mark.asyncio
    async def test_generate_question(self):
        client, _ = make_client({
            ("GET", "/api/agent/question/t1"): httpx.Response(200, json={"question": "Why a hash map?"}),
        })

        async with client:
            assert await client.generate_question("t1") == "Why a hash map?"

    @pytest.mark.asyncio
    async def test_evaluate_answer_parses_camel_case(self):
        client, recorder = make_client({
            ("POST", "/api/agent/evaluate"): httpx.Response(200, json={
                "clarity": 4, "specificity": 3, "missionAlignment": 5,
                "feedback": "Good", "suggestedImprovement": "Add numbers",
            }),
        })

        async with client:
            result = await client.evaluate_answer("t1", "my answer")

        assert result.mission_alignment == 5
        assert result.suggested_improvement == "Add numbers"
        assert json.loads(recorder.requests[0].content) == {"taskId": "t1", "answer": "my answer"}

    @pytest.mark.asyncio
    async def test_agent_failure_is_external_service_error(self):
        client, _ = make_client({("GET", "/api/agent/question/t1"): httpx.Response(503, text="busy")})

        async with client:
            with pytest.raises(ExternalServiceError):
                await client.generate_question("t1")

    @pytest.mark.asyncio
    async def test_invalid_evaluation_payload(self):
        client, _ = make_client({("POST", "/api/agent/evaluate"): httpx.Response(200, json={"feedback": "?"})})

        async with client:
            with pytest.raises(ExternalServiceError):
                await client.evaluate_answer("t1", "answer")


class TestMockInterview:

    @pytest.mark.asyncio
    async def test_start_reads_first_interviewer_message(self):
        client, recorder = make_client({
            ("POST", "/api/mock/sessions"): httpx.Response(200, json={
                "id": "m1", "topic": "coding", "difficulty": "easy",
                "messages": [{"role": "interviewer", "content": "Reverse a linked list."}],
            }),
        })

        async with client:
            opening = await client.start("coding", "easy")

        assert opening.session_id == "m1"
        assert opening.question == "Reverse a linked list."
        assert json.loads(recorder.requests[0].content) == {"topic": "coding", "difficulty": "easy"}

    @pytest.mark.asyncio
    async def test_respond_with_score(self):
        client, _ = make_client({
            ("POST", "/api/mock/sessions/m1/respond"): httpx.Response(200, json={
                "score": {"clarity": 4, "depth": 3, "correctness": 5, "communication": 4,
                          "overall": 4, "feedback": "Nice", "strengths": [], "improvements": []},
                "done": True,
            }),
        })

        async with client:
            reply = await client.respond("m1", "answer")

        assert reply.done is True
        assert reply.score.correctness == 5

    @pytest.mark.asyncio
    async def test_respond_with_follow_up(self):
        client, _ = make_client({
            ("POST", "/api/mock/sessions/m1/respond"): httpx.Response(200, json={"followUp": "Why?", "done": False}),
        })

        async with client:
            reply = await client.respond("m1", "answer")

        assert reply.follow_up == "Why?"
        assert reply.done is False
