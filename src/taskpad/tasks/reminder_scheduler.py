# src/taskpad/tasks/reminder_scheduler.py

from __future__ import annotations

"""
Reminder scheduler.

Maps a task's temporal fields to one alert in the notification backend:
- fire time = due_at - offset (epoch seconds, compared against the clock only)
- a fire time at or before now schedules nothing (not an error)
- reschedule cancels the old handle before creating the new one, so a failed
  create leaves zero alerts rather than two
"""

import logging
import time
from collections.abc import Callable

from ..core.errors import CancelFailure, HandleNotFound, SchedulingFailure
from ..core.ports import NotificationBackend
from .task_models import (
    DEFAULT_REMINDER_MINUTES,
    NO_HANDLE,
    HandlePresent,
    ReminderHandle,
    ReminderPayload,
    Task,
)

logger = logging.getLogger(__name__)


class ReminderScheduler:
    def __init__(
        self,
        backend: NotificationBackend,
        *,
        default_offset_minutes: int = DEFAULT_REMINDER_MINUTES,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._backend = backend
        self._default_offset = max(0, int(default_offset_minutes))
        self._clock = clock

    def offset_for(self, task: Task) -> int:
        if task.reminder_offset_minutes is None:
            return self._default_offset
        return max(0, int(task.reminder_offset_minutes))

    def fire_time(self, task: Task) -> float:
        return task.due_ts - self.offset_for(task) * 60

    async def schedule(self, task: Task) -> ReminderHandle:
        """
        Request one alert for `task`.

        Returns NO_HANDLE when the task is completed or the fire time already passed.
        Raises SchedulingFailure when the backend fails.
        """
        if task.is_completed:
            return NO_HANDLE

        fire_ts = self.fire_time(task)
        now_ts = self._clock()
        if fire_ts <= now_ts:
            logger.info(
                "Reminder time already passed, not scheduling task_id=%s fire_ts=%.0f now=%.0f",
                task.id,
                fire_ts,
                now_ts,
            )
            return NO_HANDLE

        payload = ReminderPayload.for_task(task, self.offset_for(task))
        try:
            ref = await self._backend.schedule_at(fire_ts, payload)
        except Exception as exc:
            logger.warning("Scheduling reminder failed task_id=%s: %s", task.id, exc)
            raise SchedulingFailure(f"could not schedule reminder for {task.id}") from exc

        if not ref:
            raise SchedulingFailure(f"backend returned an empty handle for {task.id}")

        logger.debug("Reminder scheduled task_id=%s handle=%s fire_ts=%.0f", task.id, ref, fire_ts)
        return HandlePresent(str(ref))

    async def cancel(self, handle: ReminderHandle) -> None:
        """Idempotent: absent, unknown, fired or already cancelled handles are fine."""
        if not isinstance(handle, HandlePresent):
            return
        try:
            await self._backend.cancel(handle.ref)
        except HandleNotFound:
            logger.warning("Reminder handle not found on cancel (already fired?) handle=%s", handle.ref)
            return
        except Exception as exc:
            logger.warning("Cancelling reminder failed handle=%s: %s", handle.ref, exc)
            raise CancelFailure(f"could not cancel reminder {handle.ref}") from exc
        logger.debug("Reminder cancelled handle=%s", handle.ref)

    async def reschedule(self, old: ReminderHandle, task: Task) -> ReminderHandle:
        """
        Cancel `old`, then schedule `task`.

        If the cancel fails for any reason other than an unknown handle, nothing new is
        created and CancelFailure propagates: `old` may still be live, and a task
        never holds more than one alert.
        """
        await self.cancel(old)
        return await self.schedule(task)

    async def list_live(self) -> list[str]:
        return list(await self._backend.list_scheduled())
