# tests/test_config.py

from __future__ import annotations

from pathlib import Path

from taskpad.config import Settings


def test_defaults(monkeypatch) -> None:
    for key in ("TASKPAD_DATA_DIR", "TASKPAD_TASKS_DB_PATH", "TASKPAD_DEFAULT_REMINDER_MINUTES"):
        monkeypatch.delenv(key, raising=False)
    s = Settings.from_env()
    assert s.data_dir == Path(".local/taskpad")
    assert s.tasks_db_path == Path(".local/taskpad/tasks.sqlite3")
    assert s.default_reminder_minutes == 15


def test_env_overrides_and_bad_values(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("TASKPAD_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("TASKPAD_DEFAULT_REMINDER_MINUTES", "not-a-number")
    monkeypatch.setenv("TASKPAD_NOTIFICATION_POLL_SECONDS", "2.5")
    monkeypatch.setenv("TASKPAD_CONSOLE_ENABLED", "no")
    s = Settings.from_env()
    assert s.tasks_db_path == tmp_path / "tasks.sqlite3"
    assert s.default_reminder_minutes == 15
    assert s.notification_poll_seconds == 2.5
    assert s.console_enabled is False
