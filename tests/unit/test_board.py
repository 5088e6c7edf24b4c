"""
Unit tests for board drop resolution and optimistic moves.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from reps.core.errors import PersistenceError
from reps.core.models import StatusWorkflow
from reps.views.board import Board, DropKind, DropTarget, MoveOutcome, resolve_target
from reps.views.filters import FilterSpec

WORKFLOW = StatusWorkflow()


@pytest.fixture
def persister():
    mock = AsyncMock()
    mock.persist_status.return_value = None
    return mock


class TestResolveTarget:

    def test_column_resolves_to_itself(self):
        assert resolve_target(DropTarget.column("review"), WORKFLOW) == "review"

    def test_card_resolves_to_owning_column(self, make_task):
        card = make_task(id="card-b", status="review")

        assert resolve_target(DropTarget.card("card-b"), WORKFLOW, [card]) == "review"

    def test_untyped_id_tries_column_then_card(self, make_task):
        card = make_task(id="card-b", status="in-progress")

        assert resolve_target(DropTarget(None, "todo"), WORKFLOW, [card]) == "todo"
        assert resolve_target(DropTarget(None, "card-b"), WORKFLOW, [card]) == "in-progress"

    def test_outside_any_column(self, make_task):
        assert resolve_target(None, WORKFLOW) is None
        assert resolve_target(DropTarget.nowhere(), WORKFLOW) is None
        assert resolve_target(DropTarget.column("archived"), WORKFLOW) is None
        assert resolve_target(DropTarget.card("missing"), WORKFLOW, [make_task()]) is None

    def test_custom_workflow(self):
        workflow = StatusWorkflow(("backlog", "doing", "shipped"))

        assert workflow.terminal == "shipped"
        assert resolve_target(DropTarget(DropKind.COLUMN, "doing"), workflow) == "doing"
        assert resolve_target(DropTarget.column("done"), workflow) is None


class TestBoardMove:

    @pytest.mark.asyncio
    async def test_drop_on_card_moves_to_its_column(self, make_task, persister):
        a = make_task(id="a", status="todo")
        b = make_task(id="b", status="review")
        board = Board([a, b], persister)

        outcome = await board.move("a", DropTarget.card("b"))

        assert outcome == MoveOutcome.MOVED
        persister.persist_status.assert_awaited_once_with("a", "review", None)
        assert board.get("a").status == "review"
        assert board.get("a").completed is False

    @pytest.mark.asyncio
    async def test_terminal_column_marks_completed(self, make_task, persister):
        board = Board([make_task(id="a")], persister)

        await board.move("a", DropTarget.column("done"))

        persister.persist_status.assert_awaited_once_with("a", "done", True)
        assert board.get("a").completed is True

    @pytest.mark.asyncio
    async def test_leaving_terminal_keeps_completed(self, make_task, persister):
        board = Board([make_task(id="a", status="done", completed=True)], persister)

        await board.move("a", DropTarget.column("review"))

        persister.persist_status.assert_awaited_once_with("a", "review", None)
        assert board.get("a").status == "review"
        assert board.get("a").completed is True

    @pytest.mark.asyncio
    async def test_same_column_is_noop(self, make_task, persister):
        board = Board([make_task(id="a", status="todo")], persister)

        outcome = await board.move("a", DropTarget.column("todo"))

        assert outcome == MoveOutcome.NOOP
        persister.persist_status.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_drop(self, make_task, persister):
        board = Board([make_task(id="a")], persister)

        assert await board.move("a", DropTarget.nowhere()) == MoveOutcome.INVALID
        assert await board.move("missing", DropTarget.column("todo")) == MoveOutcome.INVALID
        persister.persist_status.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failure_reverts_and_refreshes(self, make_task, persister):
        a = make_task(id="a", status="todo")
        persister.persist_status.side_effect = PersistenceError("offline")
        loader = AsyncMock(return_value=[a])
        board = Board([a], persister, loader=loader)

        outcome = await board.move("a", DropTarget.column("review"))

        assert outcome == MoveOutcome.REVERTED
        assert board.get("a").status == "todo"
        assert board.optimistic == {}
        assert board.last_error == "offline"
        loader.assert_awaited_once()
        assert board.loading is False

    @pytest.mark.asyncio
    async def test_unexpected_error_releases_card(self, make_task, persister):
        board = Board([make_task(id="a", status="todo")], persister)
        persister.persist_status.side_effect = [RuntimeError("bad record"), None]

        with pytest.raises(RuntimeError):
            await board.move("a", DropTarget.column("review"))

        assert board.optimistic == {}
        assert board.get("a").status == "todo"
        assert await board.move("a", DropTarget.column("review")) == MoveOutcome.MOVED
        assert board.get("a").status == "review"

    @pytest.mark.asyncio
    async def test_success_refreshes_from_source(self, make_task, persister):
        a = make_task(id="a", status="todo")
        server_copy = make_task(id="a", status="review", title="Server title")
        loader = AsyncMock(return_value=[server_copy])
        board = Board([a], persister, loader=loader)

        await board.move("a", DropTarget.column("review"))

        assert board.get("a").title == "Server title"
        assert board.optimistic == {}

    @pytest.mark.asyncio
    async def test_failed_move_does_not_disturb_concurrent_move(self, make_task):
        a = make_task(id="a", status="todo")
        b = make_task(id="b", status="todo")
        release = asyncio.Event()

        async def persist_status(task_id, status, completed=None):
            if task_id == "a":
                await release.wait()
                return
            raise PersistenceError("b failed")

        persister = AsyncMock()
        persister.persist_status.side_effect = persist_status
        loader = AsyncMock(return_value=[a, b])
        board = Board([a, b], persister, loader=loader)

        move_a = asyncio.create_task(board.move("a", DropTarget.column("review")))
        await asyncio.sleep(0)
        assert board.get("a").status == "review"

        assert await board.move("b", DropTarget.column("review")) == MoveOutcome.REVERTED
        # a's optimistic state survives b's revert and reload
        assert board.get("a").status == "review"
        assert board.get("b").status == "todo"

        assert await board.move("a", DropTarget.column("done")) == MoveOutcome.BUSY

        release.set()
        assert await move_a == MoveOutcome.MOVED

    @pytest.mark.asyncio
    async def test_without_loader_settled_moves_become_committed(self, make_task, persister):
        board = Board([make_task(id="a")], persister)

        await board.move("a", DropTarget.column("in-progress"))

        assert board.committed["a"].status == "in-progress"
        assert board.optimistic == {}


class TestBoardColumns:

    def test_columns_ignore_status_filter(self, make_task, persister):
        todo = make_task(status="todo", topic="coding")
        review = make_task(status="review", topic="coding")
        other = make_task(status="review", topic="papers")
        board = Board([todo, review, other], persister)

        columns = board.columns(FilterSpec(status="todo", topic="coding"))

        assert columns["todo"] == (todo,)
        assert columns["review"] == (review,)
        assert columns["done"] == ()
