# tests/conftest.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from taskpad.tasks.lifecycle import TaskLifecycle
from taskpad.tasks.persistence import PersistenceGateway
from taskpad.tasks.reminder_scheduler import ReminderScheduler
from taskpad.tasks.task_db import SqliteTaskRepo
from taskpad.tasks.task_store import TaskStore

from .fakes import FakeClock, RecordingBackend

# Fixed local "now" for every test: Monday 2026-10-19 12:00.
NOW = datetime(2026, 10, 19, 12, 0, 0)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="taskpad-test",
        log_level="DEBUG",
        console_enabled=False,
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        default_reminder_minutes=15,
        notification_poll_seconds=0.01,
        notification_retry_seconds=1.0,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(NOW.timestamp())


@pytest.fixture()
def backend() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture()
def repo(settings: SimpleNamespace) -> SqliteTaskRepo:
    # Real SQLite: lossless persistence is part of what we test.
    return SqliteTaskRepo(settings.tasks_db_path)


@pytest.fixture()
def scheduler(backend: RecordingBackend, clock: FakeClock) -> ReminderScheduler:
    return ReminderScheduler(backend, default_offset_minutes=15, clock=clock)


@pytest.fixture()
def lifecycle(repo: SqliteTaskRepo, scheduler: ReminderScheduler) -> TaskLifecycle:
    """Not started yet: tests `await lifecycle.start()` themselves."""
    ids = iter(f"t{n}" for n in range(1, 1000))
    return TaskLifecycle(TaskStore(), scheduler, PersistenceGateway(repo), id_factory=lambda: next(ids))
