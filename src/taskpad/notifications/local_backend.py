# src/taskpad/notifications/local_backend.py

from __future__ import annotations

"""
In-process notification backend.

Holds scheduled alerts in memory and hands due ones to run_notification_loop,
a small polling loop that:
- pops alerts whose fire time has come,
- sends them via an injected messenger port,
- pushes an alert forward by a retry delay when sending fails (same handle),
- gives up after max_attempts and reports the alert as dropped.

Alerts do not survive a restart; TaskLifecycle.resync_reminders re-creates them
from the hydrated tasks.
"""

import asyncio
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace

from ..core.errors import HandleNotFound
from ..core.ports import OutboundMessenger
from ..tasks.task_models import ReminderPayload
from .reminder_text import render_reminder

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ScheduledAlert:
    handle: str
    fire_ts: float
    payload: ReminderPayload
    attempts: int = 0


class LocalNotificationBackend:
    def __init__(
        self,
        *,
        strict_cancel: bool = False,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        strict_cancel=True makes cancel() raise HandleNotFound for unknown handles
        (the way mobile notification APIs report fired/expired alerts).
        """
        self._alerts: dict[str, ScheduledAlert] = {}
        # Popped by pop_due and not yet settled; cancels landing here are remembered.
        self._in_flight: set[str] = set()
        self._cancelled_in_flight: set[str] = set()
        self._strict_cancel = strict_cancel
        self._clock = clock

    async def schedule_at(self, fire_ts: float, payload: ReminderPayload) -> str:
        handle = uuid.uuid4().hex
        self._alerts[handle] = ScheduledAlert(handle=handle, fire_ts=float(fire_ts), payload=payload)
        logger.debug("Alert scheduled handle=%s task_id=%s fire_ts=%.0f", handle, payload.task_id, fire_ts)
        return handle

    async def cancel(self, handle: str) -> None:
        if self._alerts.pop(handle, None) is None:
            if handle in self._in_flight:
                self._cancelled_in_flight.add(handle)
                logger.debug("Alert cancelled while being delivered handle=%s", handle)
                return
            if self._strict_cancel:
                raise HandleNotFound(handle)
            logger.debug("Cancel for unknown alert handle=%s", handle)
            return
        logger.debug("Alert cancelled handle=%s", handle)

    async def list_scheduled(self) -> list[str]:
        return list(self._alerts)

    async def cancel_all(self) -> int:
        n = len(self._alerts)
        self._alerts.clear()
        self._cancelled_in_flight.update(self._in_flight)
        logger.info("All alerts cancelled n=%d", n)
        return n

    def get(self, handle: str) -> ScheduledAlert | None:
        return self._alerts.get(handle)

    def pop_due(self, now_ts: float | None = None, *, limit: int = 32) -> list[ScheduledAlert]:
        """Remove and return alerts with fire_ts <= now, earliest first."""
        now_ts = self._clock() if now_ts is None else now_ts
        due = sorted(
            (a for a in self._alerts.values() if a.fire_ts <= now_ts),
            key=lambda a: a.fire_ts,
        )[: max(1, int(limit))]
        for alert in due:
            del self._alerts[alert.handle]
            self._in_flight.add(alert.handle)
        return due

    def requeue(self, alert: ScheduledAlert, delay_seconds: float) -> bool:
        """Put a popped alert back for a retry, unless it was cancelled meanwhile."""
        self._in_flight.discard(alert.handle)
        if alert.handle in self._cancelled_in_flight:
            self._cancelled_in_flight.discard(alert.handle)
            logger.info("Not retrying cancelled alert handle=%s", alert.handle)
            return False
        fire_ts = self._clock() + delay_seconds
        self._alerts[alert.handle] = replace(alert, fire_ts=fire_ts, attempts=alert.attempts + 1)
        return True

    def settle(self, handle: str) -> None:
        """A popped alert was delivered or dropped; forget it."""
        self._in_flight.discard(handle)
        self._cancelled_in_flight.discard(handle)


AlertHook = Callable[[ScheduledAlert], Awaitable[None]]


async def _run_hook(hook: AlertHook | None, alert: ScheduledAlert, name: str) -> None:
    if hook is None:
        return
    try:
        await hook(alert)
    except Exception:
        logger.exception("%s hook failed handle=%s", name, alert.handle)


async def run_notification_loop(
    backend: LocalNotificationBackend,
    messenger: OutboundMessenger,
    *,
    interval_seconds: float = 1.0,
    retry_delay_seconds: float = 30.0,
    max_attempts: int = 5,
    batch_limit: int = 32,
    on_delivered: AlertHook | None = None,
    on_dropped: AlertHook | None = None,
) -> None:
    """
    Every interval_seconds deliver due alerts through messenger.send_text(...).

    On failure the alert is requeued retry_delay_seconds later, up to max_attempts;
    after that it is dropped. Either way the alert is no longer live afterwards, so
    the app hooks both on_delivered and on_dropped to clear the task's reminder handle.

    To stop the loop, cancel the coroutine/task.
    """
    sleep_s = max(0.01, float(interval_seconds))
    retry_s = max(0.01, float(retry_delay_seconds))

    while True:
        for alert in backend.pop_due(limit=batch_limit):
            try:
                await messenger.send_text(text=render_reminder(alert.payload))
            except Exception:
                logger.exception("Reminder delivery failed task_id=%s handle=%s", alert.payload.task_id, alert.handle)
                if alert.attempts + 1 < max_attempts:
                    backend.requeue(alert, retry_s)
                    continue
                logger.error("Dropping reminder after %d attempts handle=%s", alert.attempts + 1, alert.handle)
                backend.settle(alert.handle)
                await _run_hook(on_dropped, alert, "on_dropped")
                continue

            logger.info("Reminder delivered task_id=%s handle=%s", alert.payload.task_id, alert.handle)
            backend.settle(alert.handle)
            await _run_hook(on_delivered, alert, "on_delivered")

        await asyncio.sleep(sleep_s)
