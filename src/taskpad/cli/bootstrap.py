# src/taskpad/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (SQLite repo, notification backend,
  scheduler, store, lifecycle),
- hydrates the store before anything else may touch it.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from ..config import get_settings
from ..core.ports import TaskRepo
from ..core.state import AppState
from ..notifications.local_backend import LocalNotificationBackend, ScheduledAlert
from ..tasks.lifecycle import TaskLifecycle
from ..tasks.persistence import PersistenceGateway
from ..tasks.reminder_scheduler import ReminderScheduler
from ..tasks.task_db import SqliteTaskRepo
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(
    *,
    settings=None,
    repo: TaskRepo | None = None,
    notifications: LocalNotificationBackend | None = None,
    clock: Callable[[], float] = time.time,
) -> AppState:
    """
    Create AppState from the provided settings. The store is NOT hydrated yet;
    call `await start_state(state)` before accepting user intents.

    Keeping settings and collaborators injectable makes the app easier to test.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if repo is None:
        repo = SqliteTaskRepo(settings.tasks_db_path)
    if notifications is None:
        notifications = LocalNotificationBackend(clock=clock)

    store = TaskStore()
    scheduler = ReminderScheduler(
        notifications,
        default_offset_minutes=int(getattr(settings, "default_reminder_minutes", 15)),
        clock=clock,
    )
    lifecycle = TaskLifecycle(store, scheduler, PersistenceGateway(repo))

    return AppState(
        settings=settings,
        store=store,
        lifecycle=lifecycle,
        notifications=notifications,
        clock=clock,
    )


async def start_state(state: AppState) -> int:
    """Hydrate the store and resync reminders. HydrationError propagates (fatal)."""
    count = await state.lifecycle.start()
    logger.info("Store ready: %d tasks", count)
    return count


def make_delivery_hook(state: AppState):
    """
    Hook for run_notification_loop (on_delivered and on_dropped): once an alert is
    delivered or given up on it is no longer live, so the task's handle is cleared.
    """

    async def alert_finished(alert: ScheduledAlert) -> None:
        await state.lifecycle.reminder_fired(alert.payload.task_id, alert.handle)

    return alert_finished
