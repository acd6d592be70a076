# src/taskpad/tasks/task_models.py

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from ..core.errors import ValidationError

DEFAULT_REMINDER_MINUTES = 15


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def weight(self) -> int:
        return _PRIORITY_WEIGHTS[self]

    @classmethod
    def parse(cls, raw: Any) -> Priority:
        if isinstance(raw, Priority):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            raise ValidationError(f"priority must be one of low/medium/high, got {raw!r}") from None


_PRIORITY_WEIGHTS = {Priority.LOW: 1, Priority.MEDIUM: 2, Priority.HIGH: 3}


@dataclass(frozen=True, slots=True)
class HandlePresent:
    """A reminder is scheduled in the notification backend under `ref`."""

    ref: str


@dataclass(frozen=True, slots=True)
class HandleAbsent:
    """No live reminder."""


ReminderHandle = HandlePresent | HandleAbsent
NO_HANDLE = HandleAbsent()


def handle_from_db(raw: str | None) -> ReminderHandle:
    raw = (raw or "").strip()
    return HandlePresent(raw) if raw else NO_HANDLE


def handle_to_db(handle: ReminderHandle) -> str:
    return handle.ref if isinstance(handle, HandlePresent) else ""


@dataclass(frozen=True, slots=True)
class Task:
    id: str
    description: str
    due_at: datetime
    priority: Priority

    is_completed: bool = False
    # None means "not set by the user"; the scheduler applies the default.
    reminder_offset_minutes: int | None = None
    reminder: ReminderHandle = field(default=NO_HANDLE)

    @property
    def due_ts(self) -> float:
        return self.due_at.timestamp()

    @property
    def has_reminder(self) -> bool:
        return isinstance(self.reminder, HandlePresent)


@dataclass(frozen=True, slots=True)
class TaskDraft:
    """
    The user-editable part of a task (what the add/edit form submits).

    validate() returns a normalized copy or raises ValidationError.
    """

    description: str
    due_at: datetime | None
    priority: Priority | str = Priority.LOW
    reminder_offset_minutes: int | None = None

    def validate(self) -> TaskDraft:
        desc = (self.description or "").strip()
        if not desc:
            raise ValidationError("description is required")

        if not isinstance(self.due_at, datetime):
            raise ValidationError("due date/time is required")

        priority = Priority.parse(self.priority)

        offset = self.reminder_offset_minutes
        if offset is not None:
            if isinstance(offset, bool) or not isinstance(offset, (int, float)):
                raise ValidationError(f"reminder offset must be whole minutes, got {offset!r}")
            if isinstance(offset, float) and (not math.isfinite(offset) or not offset.is_integer()):
                raise ValidationError(f"reminder offset must be whole minutes, got {offset!r}")
            offset = int(offset)
            if offset < 0:
                raise ValidationError("reminder offset must not be negative")

        return TaskDraft(
            description=desc,
            due_at=self.due_at,
            priority=priority,
            reminder_offset_minutes=offset,
        )


@dataclass(frozen=True, slots=True)
class ReminderPayload:
    """What the notification backend carries with a scheduled alert."""

    task_id: str
    priority: Priority
    due_at: str  # ISO-8601
    offset_minutes: int
    description: str = ""

    @classmethod
    def for_task(cls, task: Task, offset_minutes: int) -> ReminderPayload:
        return cls(
            task_id=task.id,
            priority=task.priority,
            due_at=task.due_at.isoformat(),
            offset_minutes=int(offset_minutes),
            description=task.description,
        )
