"""
Reps Web API Client

HTTP client for the reps web API. Implements the same collaborator ports as
the local JSON store plus the AI-backed ones (question generation, answer
evaluation, mock interviews) that only exist server-side.

Usage:
    async with RepsApiClient(settings.api_url, settings.api_key) as client:
        due = await client.load_due_tasks()
        question = await client.generate_question(due[0].id)
"""

from __future__ import annotations

from datetime import date
from typing import Any

import httpx
from loguru import logger
from pydantic import ValidationError

from ..core.dates import format_date, today
from ..core.errors import ExternalServiceError, InvalidInputError, PersistenceError, RepsError
from ..core.models import ScheduleState, Task
from ..core.schemas import EvaluationResult, MockReply, PracticeStart
from ..scheduling.due import select_due


class RepsApiClient:
    """
    Async client for the reps web API.

    Authentication is a bearer API key on every request. Reads and task
    writes raise PersistenceError on failure; agent and mock interview
    calls raise ExternalServiceError.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> RepsApiClient:
        await self._ensure_client()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.api_key}",
                },
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        error: type[RepsError],
        json: Any = None,
    ) -> Any:
        """
        Send one request and return the decoded JSON body.

        Args:
            method: HTTP method
            path: Path relative to the API base URL
            error: Exception type raised on transport or HTTP failure
            json: Optional request body

        Returns:
            Decoded JSON body, or None for an empty response
        """
        client = await self._ensure_client()
        try:
            response = await client.request(method, path, json=json)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(f"API error {e.response.status_code} on {method} {path}: {e.response.text}")
            raise error(f"API error {e.response.status_code}: {e.response.text}") from e
        except httpx.RequestError as e:
            logger.error(f"Connection error on {method} {path}: {e}")
            raise error(f"Could not reach {self.base_url}: {e}") from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise error(f"API returned invalid JSON for {method} {path}") from e

    # =========================================================================
    # Tasks
    # =========================================================================

    async def load_tasks(self) -> list[Task]:
        records = await self._request("GET", "/tasks", PersistenceError)
        try:
            return [Task.from_dict(r) for r in records or []]
        except InvalidInputError as e:
            raise PersistenceError(f"API returned a malformed task: {e}") from e

    async def load_due_tasks(self, as_of: date | None = None) -> list[Task]:
        return list(select_due(await self.load_tasks(), as_of).due)

    async def sync_tasks(self, tasks: list[Task]) -> int:
        """Upload local tasks; returns how many the server accepted."""
        result = await self._request(
            "POST", "/sync", PersistenceError, json={"tasks": [t.to_dict() for t in tasks]}
        )
        count = int((result or {}).get("count", 0))
        logger.info(f"Synced {count} task(s) to {self.base_url}")
        return count

    async def persist_schedule(self, task_id: str, state: ScheduleState) -> None:
        payload = {
            "repetitions": state.repetitions,
            "interval": state.interval,
            "easeFactor": state.ease_factor,
            "nextReview": format_date(state.next_review),
            "lastReviewed": format_date(today()),
        }
        await self._request("PATCH", f"/tasks/{task_id}", PersistenceError, json=payload)
        logger.debug(f"Persisted schedule for {task_id}: next review {state.next_review}")

    async def persist_status(self, task_id: str, status: str, completed: bool | None = None) -> None:
        payload: dict[str, Any] = {"status": status}
        if completed is not None:
            payload["completed"] = completed
        await self._request("PATCH", f"/tasks/{task_id}", PersistenceError, json=payload)

    # =========================================================================
    # Agent
    # =========================================================================

    async def generate_question(self, task_id: str) -> str:
        data = await self._request("GET", f"/agent/question/{task_id}", ExternalServiceError)
        question = (data or {}).get("question")
        if not question:
            raise ExternalServiceError("Question service returned no question")
        return str(question)

    async def evaluate_answer(self, task_id: str, answer: str) -> EvaluationResult:
        data = await self._request(
            "POST", "/agent/evaluate", ExternalServiceError, json={"taskId": task_id, "answer": answer}
        )
        try:
            return EvaluationResult.model_validate(data)
        except ValidationError as e:
            raise ExternalServiceError(f"Evaluation service returned an invalid result: {e}") from e

    # =========================================================================
    # Mock interviews
    # =========================================================================

    async def start(self, topic: str, difficulty: str) -> PracticeStart:
        """Open a mock interview; the first interviewer message is the question."""
        data = await self._request(
            "POST", "/mock/sessions", ExternalServiceError, json={"topic": topic, "difficulty": difficulty}
        )
        data = data or {}
        questions = [m.get("content", "") for m in data.get("messages", []) if m.get("role") == "interviewer"]
        session_id = data.get("id") or data.get("sessionId")
        question = data.get("question") or (questions[-1] if questions else None)
        if not session_id or not question:
            raise ExternalServiceError("Mock interview service returned no session or question")
        return PracticeStart(session_id=str(session_id), question=str(question))

    async def respond(self, session_id: str, answer: str) -> MockReply:
        data = await self._request(
            "POST", f"/mock/sessions/{session_id}/respond", ExternalServiceError, json={"answer": answer}
        )
        try:
            return MockReply.model_validate(data or {})
        except ValidationError as e:
            raise ExternalServiceError(f"Mock interview service returned an invalid reply: {e}") from e
