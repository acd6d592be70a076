# src/taskpad/tasks/task_store.py

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import fields, replace
from enum import Enum
from typing import Any

from ..core.errors import DuplicateIdError, NotFoundError, StoreNotReadyError, ValidationError
from .task_models import NO_HANDLE, Task

logger = logging.getLogger(__name__)

Snapshot = tuple[Task, ...]
Subscriber = Callable[[Snapshot], None]

_UPDATABLE_FIELDS = frozenset(f.name for f in fields(Task)) - {"id"}


class StoreState(str, Enum):
    NEW = "new"
    READY = "ready"
    FAILED = "failed"
    CLOSED = "closed"


class TaskStore:
    """
    In-memory authoritative task collection.

    - keyed by id, insertion order preserved (stable default ordering)
    - tasks are frozen dataclasses, so snapshots can share them safely
    - lifecycle: NEW -> READY (hydrate) | FAILED (mark_failed); close() -> CLOSED
    - only READY accepts mutations

    Single writer: the lifecycle orchestrator is the only caller of the mutating
    methods. No method awaits, so each mutation is atomic on the event loop.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}
        self._subscribers: list[Subscriber] = []
        self._state = StoreState.NEW
        self._failure: BaseException | None = None

    # ---- lifecycle ----

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is StoreState.READY

    @property
    def failure(self) -> BaseException | None:
        return self._failure

    def hydrate(self, tasks: Iterable[Task]) -> int:
        """Replace contents with durable rows. Durable storage wins on startup."""
        if self._state is StoreState.CLOSED:
            raise StoreNotReadyError("task store is closed")

        loaded: dict[str, Task] = {}
        for task in tasks:
            if task.id in loaded:
                logger.warning("Duplicate task id in durable store, keeping first id=%s", task.id)
                continue
            loaded[task.id] = task

        self._tasks = loaded
        self._state = StoreState.READY
        self._failure = None
        logger.info("TaskStore hydrated total=%d", len(loaded))
        self._notify()
        return len(loaded)

    def mark_failed(self, exc: BaseException) -> None:
        self._state = StoreState.FAILED
        self._failure = exc
        logger.error("TaskStore hydration failed: %s", exc)

    def close(self) -> None:
        self._state = StoreState.CLOSED
        self._subscribers.clear()

    def _require_ready(self) -> None:
        if self._state is not StoreState.READY:
            raise StoreNotReadyError(f"task store is not ready (state={self._state.value})")

    # ---- subscriptions ----

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a snapshot listener. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        if not self._subscribers:
            return
        snap = self.get_all()
        for cb in list(self._subscribers):
            try:
                cb(snap)
            except Exception:
                logger.exception("TaskStore subscriber failed")

    # ---- reads ----

    def get(self, task_id: str) -> Task | None:
        return self._tasks.get(task_id)

    def get_all(self) -> Snapshot:
        return tuple(self._tasks.values())

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    # ---- mutations ----

    def add(self, task: Task) -> None:
        self._require_ready()
        if task.id in self._tasks:
            raise DuplicateIdError(task.id)
        self._tasks[task.id] = task
        logger.debug("Task added id=%s priority=%s", task.id, task.priority.value)
        self._notify()

    def remove(self, task_id: str) -> bool:
        self._require_ready()
        removed = self._tasks.pop(task_id, None)
        if removed is None:
            return False
        logger.debug("Task removed id=%s", task_id)
        self._notify()
        return True

    def update(self, task_id: str, **changes: Any) -> Task:
        """Merge `changes` into the stored task; unspecified fields are preserved."""
        self._require_ready()
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"cannot update task fields: {', '.join(sorted(unknown))}")

        current = self._tasks.get(task_id)
        if current is None:
            raise NotFoundError(task_id)

        updated = replace(current, **changes)
        self._tasks[task_id] = updated
        logger.debug("Task updated id=%s fields=%s", task_id, sorted(changes))
        self._notify()
        return updated

    def mark_completed(self, task_id: str) -> Task:
        """Completed tasks never keep a reminder handle."""
        return self.update(task_id, is_completed=True, reminder=NO_HANDLE)

    def clear_all(self) -> list[Task]:
        self._require_ready()
        removed = list(self._tasks.values())
        self._tasks = {}
        if removed:
            self._notify()
        return removed

    def clear_completed(self) -> list[Task]:
        self._require_ready()
        removed = [t for t in self._tasks.values() if t.is_completed]
        if not removed:
            return []
        self._tasks = {tid: t for tid, t in self._tasks.items() if not t.is_completed}
        logger.debug("Cleared completed tasks n=%d", len(removed))
        self._notify()
        return removed
