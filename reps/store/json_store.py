"""
Local JSON persistence for reps.

Tasks live in ``~/.reps/data.json`` as ``{"tasks": [...]}`` and the list
view preferences in ``~/.reps/preferences.json``. Every write rewrites the
whole file; the store is meant for a single local user.

JsonTaskStore also implements the async collaborator ports (TaskSource,
SchedulePersister, StatusPersister) so sessions and the board can run
against the local file exactly as they do against the web API.
"""

from __future__ import annotations

import json
import os
from datetime import date
from pathlib import Path
from typing import Any

from loguru import logger

from ..core.dates import today
from ..core.errors import InvalidInputError, PersistenceError
from ..core.models import Note, ScheduleState, Task, find_task
from ..scheduling.due import select_due
from ..views.filters import FilterPreferences


def _read_json(path: Path) -> Any | None:
    if not path.exists():
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise PersistenceError(f"{path} is not valid JSON: {e}") from e
    except OSError as e:
        raise PersistenceError(f"Could not read {path}: {e}") from e


def _write_json(path: Path, data: Any) -> None:
    # A failed dump leaves the previous file intact
    tmp = path.with_name(f".{path.name}.tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp, path)
    except OSError as e:
        raise PersistenceError(f"Could not write {path}: {e}") from e
    finally:
        tmp.unlink(missing_ok=True)


class JsonTaskStore:
    """
    Manages task persistence in a single JSON file.

    Lookups by id accept any unique prefix, the way ids are typed on the
    command line.
    """

    def __init__(self, path: Path):
        self.path = path

    # ========================================
    # File access
    # ========================================

    def load(self) -> list[Task]:
        data = _read_json(self.path)
        if data is None:
            return []
        try:
            records = data["tasks"]
        except (KeyError, TypeError) as e:
            raise PersistenceError(f"{self.path} has no 'tasks' list") from e
        try:
            return [Task.from_dict(record) for record in records]
        except InvalidInputError as e:
            raise PersistenceError(f"{self.path} holds a malformed task: {e}") from e

    def save(self, tasks: list[Task]) -> None:
        _write_json(self.path, {"tasks": [t.to_dict() for t in tasks]})
        logger.debug(f"Saved {len(tasks)} task(s) to {self.path}")

    # ========================================
    # Task operations
    # ========================================

    def get(self, id_prefix: str) -> Task | None:
        """Find a task by id or id prefix."""
        return find_task(self.load(), id_prefix)

    def save_task(self, task: Task) -> None:
        """Insert or replace a task by id."""
        tasks = self.load()
        for i, existing in enumerate(tasks):
            if existing.id == task.id:
                tasks[i] = task
                break
        else:
            tasks.append(task)
        self.save(tasks)

    def delete_task(self, task_id: str) -> bool:
        tasks = self.load()
        kept = [t for t in tasks if t.id != task_id]
        if len(kept) == len(tasks):
            return False
        self.save(kept)
        return True

    def add_note(self, task_id: str, note: Note) -> bool:
        tasks = self.load()
        for task in tasks:
            if task.id == task_id:
                task.notes.append(note)
                self.save(tasks)
                return True
        return False

    def _update(self, task_id: str, change) -> Task:
        tasks = self.load()
        for i, task in enumerate(tasks):
            if task.id == task_id:
                tasks[i] = change(task)
                self.save(tasks)
                return tasks[i]
        raise PersistenceError(f"Task {task_id} not found in {self.path}")

    # ========================================
    # Collaborator ports
    # ========================================

    async def load_tasks(self) -> list[Task]:
        return self.load()

    async def load_due_tasks(self, as_of: date | None = None) -> list[Task]:
        return list(select_due(self.load(), as_of).due)

    async def persist_schedule(self, task_id: str, state: ScheduleState) -> None:
        reviewed_on = today()
        self._update(task_id, lambda t: t.with_schedule(state, reviewed_on=reviewed_on))

    async def persist_status(self, task_id: str, status: str, completed: bool | None = None) -> None:
        self._update(task_id, lambda t: t.with_status(status, completed=completed))


class PreferenceStore:
    """List view preferences (hide completed, grouping)."""

    def __init__(self, path: Path):
        self.path = path

    def load(self) -> FilterPreferences:
        data = _read_json(self.path)
        if not isinstance(data, dict):
            return FilterPreferences()
        return FilterPreferences.from_dict(data)

    def save(self, prefs: FilterPreferences) -> None:
        _write_json(self.path, prefs.to_dict())
