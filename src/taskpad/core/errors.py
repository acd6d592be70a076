# src/taskpad/core/errors.py

"""
Error taxonomy for the task core.

Only HydrationError is fatal for the app. Everything else is absorbed by the
lifecycle orchestrator (logged, reported in the outcome) so one failed step never
aborts the rest of a user intent.
"""

from __future__ import annotations


class TaskpadError(Exception):
    """Base class for all taskpad errors."""


class ValidationError(TaskpadError, ValueError):
    """User input rejected before any side effect."""


class NotFoundError(TaskpadError, LookupError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"task not found: {task_id}")
        self.task_id = task_id


class DuplicateIdError(TaskpadError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"task id already exists: {task_id}")
        self.task_id = task_id


class StoreNotReadyError(TaskpadError, RuntimeError):
    """The in-memory store is not hydrated yet (or was closed)."""


class SchedulingFailure(TaskpadError):
    """Notification backend refused or failed a schedule/cancel request."""


class CancelFailure(SchedulingFailure):
    """Cancel failed; the alert behind the handle may still be live."""


class HandleNotFound(TaskpadError, LookupError):
    """Backend does not know the handle (already fired, expired or cancelled)."""


class PersistenceFailure(TaskpadError):
    """Durable write/read failed. In-memory state stays authoritative."""


class HydrationError(PersistenceFailure):
    """Startup load failed; the store cannot accept mutations."""
