# src/taskpad/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the task core.

The core depends on Protocols instead of concrete implementations.
This keeps the notification backend and the durable store swappable and makes
testing easier (see tests/fakes.py).
"""

from typing import TYPE_CHECKING, Awaitable, Protocol

if TYPE_CHECKING:
    from ..tasks.task_models import ReminderPayload, Task


class NotificationBackend(Protocol):
    """
    Schedules local alerts.

    - schedule_at returns an opaque handle string
    - cancel may raise HandleNotFound for unknown/expired handles
    - list_scheduled is diagnostic only
    """

    def schedule_at(self, fire_ts: float, payload: ReminderPayload) -> Awaitable[str]: ...
    def cancel(self, handle: str) -> Awaitable[None]: ...
    def list_scheduled(self) -> Awaitable[list[str]]: ...


class OutboundMessenger(Protocol):
    """
    Connector-side port: how fired reminders reach the user.

    The console connector prints them; tests record them.
    """

    def send_text(self, *, text: str) -> Awaitable[None]: ...


class TaskRepo(Protocol):
    """Durable store: one row per task, id as primary key. Blocking calls."""

    def select_all(self) -> list[Task]: ...
    def insert(self, task: Task) -> None: ...
    def update(self, task: Task) -> None: ...
    def delete(self, task_id: str) -> None: ...
    def delete_completed(self) -> int: ...
    def delete_all(self) -> int: ...
    def count_tasks(self) -> int: ...
