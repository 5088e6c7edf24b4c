"""
Kanban board: drop-target resolution and optimistic status moves.

Move protocol:
1. Resolve the drop to a workflow status (no-op if unchanged or invalid).
2. Apply an optimistic overlay for that task (terminal status also marks
   it completed).
3. Persist the status in the background.
4. Success -> quiet refresh to pick up server-derived fields.
   Failure -> drop that task's overlay and do a full refresh.

Overlays are tracked per task, so reverting one move never disturbs the
optimistic state of another task moved concurrently.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from enum import Enum

from loguru import logger

from ..core.errors import PersistenceError
from ..core.models import StatusWorkflow, Task
from ..core.ports import StatusPersister
from .filters import FilterSpec, TaskFilterEngine, group_by_status

TaskLoader = Callable[[], Awaitable[list[Task]]]


class DropKind(str, Enum):
    COLUMN = "column"
    CARD = "card"


class MoveOutcome(str, Enum):
    NOOP = "noop"  # Dropped on its own column
    INVALID = "invalid"  # Dropped outside any column / unknown task
    BUSY = "busy"  # A move for this task is still being persisted
    MOVED = "moved"
    REVERTED = "reverted"


@dataclass(frozen=True)
class DropTarget:
    """Where a card was dropped: a column (status) or another card."""

    kind: DropKind | None
    id: str | None

    @classmethod
    def column(cls, status: str) -> DropTarget:
        return cls(DropKind.COLUMN, status)

    @classmethod
    def card(cls, task_id: str) -> DropTarget:
        return cls(DropKind.CARD, task_id)

    @classmethod
    def nowhere(cls) -> DropTarget:
        return cls(None, None)


def resolve_target(
    target: DropTarget | None,
    workflow: StatusWorkflow,
    tasks: Iterable[Task] = (),
) -> str | None:
    """
    Resolve a drop to the status of the column it landed in.

    A card drop yields the owning column's status, never the card's id.
    Returns None for drops outside any column.
    """
    if target is None or target.id is None:
        return None

    if target.kind in (DropKind.COLUMN, None) and target.id in workflow:
        return target.id

    if target.kind in (DropKind.CARD, None):
        for task in tasks:
            if task.id == target.id:
                return task.status if task.status in workflow else None

    return None


class Board:
    """
    Board state for one collection.

    ``committed`` mirrors the store; ``optimistic`` holds per-task overlays
    for moves that have not been reconciled yet.
    """

    def __init__(
        self,
        tasks: Iterable[Task],
        persister: StatusPersister,
        workflow: StatusWorkflow | None = None,
        loader: TaskLoader | None = None,
        engine: TaskFilterEngine | None = None,
    ):
        self.workflow = workflow or StatusWorkflow()
        self.persister = persister
        self.loader = loader
        self.engine = engine or TaskFilterEngine()

        self._committed: dict[str, Task] = {t.id: t for t in tasks}
        self._optimistic: dict[str, Task] = {}
        self._in_flight: set[str] = set()

        self.loading = False
        self.last_error: str | None = None

    # --- views ---

    @property
    def committed(self) -> dict[str, Task]:
        return dict(self._committed)

    @property
    def optimistic(self) -> dict[str, Task]:
        return dict(self._optimistic)

    def get(self, task_id: str) -> Task | None:
        return self._optimistic.get(task_id) or self._committed.get(task_id)

    @property
    def tasks(self) -> list[Task]:
        """Visible tasks: committed order with optimistic overlays applied."""
        return [self._optimistic.get(task_id, task) for task_id, task in self._committed.items()]

    def columns(self, spec: FilterSpec | None = None) -> dict[str, tuple[Task, ...]]:
        """Workflow columns of the filtered tasks. The status filter does not apply here."""
        view = (spec or FilterSpec()).with_(status="all", group_by="none")
        result = self.engine.apply(self.tasks, view)
        return group_by_status(result.filtered, self.workflow)

    # --- moves ---

    async def move(self, task_id: str, target: DropTarget | None) -> MoveOutcome:
        task = self.get(task_id)
        if task is None:
            logger.warning(f"Board move for unknown task {task_id}")
            return MoveOutcome.INVALID

        status = resolve_target(target, self.workflow, self.tasks)
        if status is None:
            return MoveOutcome.INVALID
        if status == task.status:
            return MoveOutcome.NOOP
        if task_id in self._in_flight:
            return MoveOutcome.BUSY

        terminal = self.workflow.is_terminal(status)
        # Leaving the terminal status keeps `completed` as it was
        self._optimistic[task_id] = task.with_status(status, completed=True if terminal else None)
        self._in_flight.add(task_id)
        logger.debug(f"Optimistic move {task_id}: {task.status} -> {status}")

        try:
            await self.persister.persist_status(task_id, status, True if terminal else None)
        except PersistenceError as e:
            logger.error(f"Status update failed for {task_id} ({task.status} -> {status}): {e}")
            self.last_error = str(e)
            self._optimistic.pop(task_id, None)
            self._in_flight.discard(task_id)
            await self.refresh(quiet=False)
            return MoveOutcome.REVERTED
        except Exception:
            logger.exception(f"Unexpected error moving {task_id} to '{status}'; move reverted")
            self._optimistic.pop(task_id, None)
            raise
        finally:
            self._in_flight.discard(task_id)

        self.last_error = None
        logger.info(f"Moved {task_id} to '{status}'")
        await self.refresh(quiet=True)
        return MoveOutcome.MOVED

    async def refresh(self, quiet: bool = False) -> None:
        """
        Reload committed tasks from the source of truth.

        Overlays of tasks whose move is still in flight survive the reload;
        reconciled overlays are dropped since the store now holds them.
        """
        if self.loader is None:
            self._promote_settled()
            return

        if not quiet:
            self.loading = True
        try:
            fresh = await self.loader()
        except PersistenceError as e:
            logger.warning(f"Board refresh failed (quiet={quiet}): {e}")
            self._promote_settled()
            return
        finally:
            self.loading = False

        self._committed = {t.id: t for t in fresh}
        self._optimistic = {k: v for k, v in self._optimistic.items() if k in self._in_flight}

    def _promote_settled(self) -> None:
        # Without a reload, confirmed overlays become the committed state
        for task_id in list(self._optimistic):
            if task_id not in self._in_flight:
                self._committed[task_id] = self._optimistic.pop(task_id)
