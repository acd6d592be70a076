# tests/test_reminder_scheduler.py

from __future__ import annotations

from datetime import timedelta

import pytest

from taskpad.core.errors import CancelFailure, SchedulingFailure
from taskpad.tasks.reminder_scheduler import ReminderScheduler
from taskpad.tasks.task_models import NO_HANDLE, HandlePresent, Priority, Task

from .conftest import NOW
from .fakes import FakeClock, RecordingBackend


def _task(due_in: timedelta, offset: int | None = 15, **kw) -> Task:
    return Task(
        id=kw.pop("id", "t1"),
        description="Buy milk",
        due_at=NOW + due_in,
        priority=Priority.HIGH,
        reminder_offset_minutes=offset,
        **kw,
    )


@pytest.mark.asyncio
async def test_schedules_at_due_minus_offset(scheduler: ReminderScheduler, backend: RecordingBackend) -> None:
    handle = await scheduler.schedule(_task(timedelta(hours=2), offset=15))

    assert handle == HandlePresent("h1")
    (call,) = backend.scheduled
    assert call.fire_ts == (NOW + timedelta(minutes=105)).timestamp()
    assert call.payload.task_id == "t1"
    assert call.payload.priority is Priority.HIGH
    assert call.payload.offset_minutes == 15
    assert call.payload.due_at == (NOW + timedelta(hours=2)).isoformat()


@pytest.mark.asyncio
async def test_unset_offset_uses_default(backend: RecordingBackend, clock: FakeClock) -> None:
    scheduler = ReminderScheduler(backend, default_offset_minutes=30, clock=clock)
    await scheduler.schedule(_task(timedelta(hours=1), offset=None))
    assert backend.scheduled[0].fire_ts == (NOW + timedelta(minutes=30)).timestamp()
    assert backend.scheduled[0].payload.offset_minutes == 30


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "due_in, offset",
    [
        (timedelta(minutes=15), 15),  # fires exactly now
        (timedelta(minutes=10), 15),  # fire time already passed
        (timedelta(hours=-1), 0),  # overdue task
    ],
)
async def test_past_fire_time_schedules_nothing(
    scheduler: ReminderScheduler, backend: RecordingBackend, due_in: timedelta, offset: int
) -> None:
    assert await scheduler.schedule(_task(due_in, offset=offset)) is NO_HANDLE
    assert backend.scheduled == []


@pytest.mark.asyncio
async def test_completed_task_gets_no_reminder(scheduler: ReminderScheduler, backend: RecordingBackend) -> None:
    assert await scheduler.schedule(_task(timedelta(days=1), is_completed=True)) is NO_HANDLE
    assert backend.scheduled == []


@pytest.mark.asyncio
async def test_backend_failure_raises_scheduling_failure(
    scheduler: ReminderScheduler, backend: RecordingBackend
) -> None:
    backend.fail_schedule = True
    with pytest.raises(SchedulingFailure):
        await scheduler.schedule(_task(timedelta(hours=2)))


@pytest.mark.asyncio
async def test_cancel_is_idempotent(scheduler: ReminderScheduler, backend: RecordingBackend) -> None:
    handle = await scheduler.schedule(_task(timedelta(hours=2)))
    await scheduler.cancel(handle)
    await scheduler.cancel(handle)  # backend says "not found": only a warning
    await scheduler.cancel(NO_HANDLE)
    assert backend.cancelled == ["h1", "h1"]
    assert backend.live == {}


@pytest.mark.asyncio
async def test_reschedule_cancels_before_creating(scheduler: ReminderScheduler, backend: RecordingBackend) -> None:
    task = _task(timedelta(hours=2))
    handle = await scheduler.schedule(task)

    for hours in (3, 4, 5):
        handle = await scheduler.reschedule(handle, _task(timedelta(hours=hours)))

    assert backend.live_for("t1") == [handle.ref]
    assert backend.cancelled == ["h1", "h2", "h3"]


@pytest.mark.asyncio
async def test_reschedule_leaves_zero_alerts_when_create_fails(
    scheduler: ReminderScheduler, backend: RecordingBackend
) -> None:
    handle = await scheduler.schedule(_task(timedelta(hours=2)))
    backend.fail_schedule = True
    with pytest.raises(SchedulingFailure):
        await scheduler.reschedule(handle, _task(timedelta(hours=3)))
    assert backend.live_for("t1") == []


@pytest.mark.asyncio
async def test_reschedule_does_not_create_when_cancel_fails(
    scheduler: ReminderScheduler, backend: RecordingBackend
) -> None:
    handle = await scheduler.schedule(_task(timedelta(hours=2)))
    backend.fail_cancel = True
    with pytest.raises(CancelFailure):
        await scheduler.reschedule(handle, _task(timedelta(hours=3)))
    assert backend.live_for("t1") == ["h1"]
    assert len(backend.scheduled) == 1


@pytest.mark.asyncio
async def test_reschedule_tolerates_expired_handle(scheduler: ReminderScheduler, backend: RecordingBackend) -> None:
    handle = await scheduler.reschedule(HandlePresent("gone"), _task(timedelta(hours=3)))
    assert handle == HandlePresent("h1")
    assert await scheduler.list_live() == ["h1"]
