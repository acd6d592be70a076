# src/taskpad/tasks/persistence.py

from __future__ import annotations

"""
Persistence gateway.

Async facade over a blocking TaskRepo (SQLite by default):
- each call runs in a worker thread so the event loop keeps serving the UI
- calls are serialized with a lock (one durable write at a time)
- failures are logged and re-raised as PersistenceFailure / HydrationError

The durable copy may lag the in-memory store; the orchestrator decides what a
failure means (only hydration is fatal).
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from ..core.errors import HydrationError, PersistenceFailure
from ..core.ports import TaskRepo
from .task_models import Task

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PersistenceGateway:
    def __init__(self, repo: TaskRepo) -> None:
        self._repo = repo
        self._lock = asyncio.Lock()

    async def _run(self, op: str, fn: Callable[..., T], *args: Any) -> T:
        async with self._lock:
            try:
                return await asyncio.to_thread(fn, *args)
            except Exception as exc:
                logger.exception("Persistence %s failed", op)
                raise PersistenceFailure(f"{op} failed: {exc}") from exc

    async def load_all(self) -> list[Task]:
        try:
            tasks = await self._run("load_all", self._repo.select_all)
        except PersistenceFailure as exc:
            raise HydrationError(str(exc)) from exc.__cause__
        logger.info("Loaded %d tasks from durable store", len(tasks))
        return tasks

    async def insert(self, task: Task) -> None:
        await self._run("insert", self._repo.insert, task)

    async def update(self, task: Task) -> None:
        await self._run("update", self._repo.update, task)

    async def delete(self, task_id: str) -> None:
        await self._run("delete", self._repo.delete, task_id)

    async def delete_completed(self) -> int:
        return await self._run("delete_completed", self._repo.delete_completed)

    async def delete_all(self) -> int:
        return await self._run("delete_all", self._repo.delete_all)
