# src/taskpad/tasks/lifecycle.py

from __future__ import annotations

"""
Task lifecycle orchestrator.

Wires user intents through the reminder scheduler, the in-memory store and the
persistence gateway, in that order:

    validate -> schedule/cancel -> store (commit) -> persist (best-effort)

Failure policy:
- ValidationError propagates before any side effect
- scheduling failures leave the task without a reminder
- persistence failures are logged and reported; the in-memory store stays authoritative
- unknown ids are logged and reported as an empty outcome
- only hydration (start) is fatal
"""

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field, replace

from ..core.errors import (
    CancelFailure,
    HydrationError,
    NotFoundError,
    PersistenceFailure,
    SchedulingFailure,
    StoreNotReadyError,
)
from .persistence import PersistenceGateway
from .reminder_scheduler import ReminderScheduler
from .task_models import NO_HANDLE, HandlePresent, ReminderHandle, Task, TaskDraft
from .task_store import TaskStore

logger = logging.getLogger(__name__)

NOTE_REMINDER_PASSED = "Reminder time has already passed; no reminder was scheduled."
NOTE_REMINDER_FAILED = "Could not schedule a reminder for this task."
NOTE_CANCEL_FAILED = "Could not cancel the previous reminder."
NOTE_NOT_SAVED = "Change is active but could not be saved to storage."
NOTE_NOT_FOUND = "Task not found."


def _new_task_id() -> str:
    return uuid.uuid4().hex


@dataclass(slots=True)
class TaskOutcome:
    """Result of one user intent, for the presentation layer."""

    task: Task | None
    persisted: bool = True
    notes: list[str] = field(default_factory=list)
    count: int = 0

    @property
    def ok(self) -> bool:
        return NOTE_NOT_FOUND not in self.notes


class TaskLifecycle:
    def __init__(
        self,
        store: TaskStore,
        scheduler: ReminderScheduler,
        gateway: PersistenceGateway,
        *,
        id_factory: Callable[[], str] = _new_task_id,
    ) -> None:
        self.store = store
        self.scheduler = scheduler
        self.gateway = gateway
        self._id_factory = id_factory

    # ---- startup ----

    async def start(self, *, resync: bool = True) -> int:
        """
        Hydrate the store from durable storage. Must finish before any mutation.

        Raises HydrationError (fatal) and leaves the store in FAILED state.
        """
        try:
            tasks = await self.gateway.load_all()
        except HydrationError as exc:
            self.store.mark_failed(exc)
            raise
        count = self.store.hydrate(tasks)
        if resync:
            await self.resync_reminders()
        return count

    async def resync_reminders(self) -> int:
        """
        Bring backend alerts in line with the hydrated tasks.

        - pending task whose handle the backend does not know -> schedule a new one
        - completed task still carrying a handle -> cancel and clear it
        Returns how many tasks got a different handle.
        """
        try:
            live = set(await self.scheduler.list_live())
        except Exception:
            logger.exception("Listing scheduled reminders failed; skipping resync")
            return 0

        changed = 0
        for task in self.store.get_all():
            held = isinstance(task.reminder, HandlePresent)
            if task.is_completed:
                if held:
                    await self._cancel_quietly(task.reminder, task.id)
                    await self._commit_and_persist(task.id, reminder=NO_HANDLE)
                    changed += 1
                continue

            if held and task.reminder.ref in live:
                continue

            try:
                handle = await self.scheduler.schedule(task)
            except SchedulingFailure:
                handle = NO_HANDLE
            if held or isinstance(handle, HandlePresent):
                await self._commit_and_persist(task.id, reminder=handle)
                changed += 1

        if changed:
            logger.info("Reminder resync updated %d tasks", changed)
        return changed

    # ---- intents ----

    async def create(self, draft: TaskDraft) -> TaskOutcome:
        clean = draft.validate()
        self._require_ready()
        task = Task(
            id=self._id_factory(),
            description=clean.description,
            due_at=clean.due_at,  # type: ignore[arg-type]
            priority=clean.priority,  # type: ignore[arg-type]
            reminder_offset_minutes=clean.reminder_offset_minutes,
        )
        outcome = TaskOutcome(task=None)

        handle = await self._schedule(task, outcome)
        task = replace(task, reminder=handle)

        self.store.add(task)
        outcome.task = task

        try:
            await self.gateway.insert(task)
        except PersistenceFailure:
            outcome.persisted = False
            outcome.notes.append(NOTE_NOT_SAVED)

        logger.info("Task created id=%s priority=%s reminder=%s", task.id, task.priority.value, task.has_reminder)
        return outcome

    async def edit(self, task_id: str, draft: TaskDraft) -> TaskOutcome:
        clean = draft.validate()
        self._require_ready()
        existing = self.store.get(task_id)
        if existing is None:
            return self._not_found("edit", task_id)

        outcome = TaskOutcome(task=None)
        candidate = Task(
            id=existing.id,
            description=clean.description,
            due_at=clean.due_at,  # type: ignore[arg-type]
            priority=clean.priority,  # type: ignore[arg-type]
            is_completed=existing.is_completed,
            reminder_offset_minutes=clean.reminder_offset_minutes,
        )

        try:
            handle = await self.scheduler.reschedule(existing.reminder, candidate)
            if not isinstance(handle, HandlePresent) and not candidate.is_completed:
                outcome.notes.append(NOTE_REMINDER_PASSED)
        except CancelFailure:
            # The old alert may still fire; keep its handle so complete/delete can cancel it.
            handle = existing.reminder
            outcome.notes.append(NOTE_CANCEL_FAILED)
        except SchedulingFailure:
            handle = NO_HANDLE
            outcome.notes.append(NOTE_REMINDER_FAILED)

        try:
            updated = self.store.update(
                task_id,
                description=candidate.description,
                due_at=candidate.due_at,
                priority=candidate.priority,
                reminder_offset_minutes=candidate.reminder_offset_minutes,
                reminder=handle,
            )
        except NotFoundError:
            # Deleted while we were talking to the backend.
            await self._cancel_quietly(handle, task_id)
            return self._not_found("edit", task_id)

        outcome.task = updated
        await self._persist_update(updated, outcome)
        logger.info("Task edited id=%s reminder=%s", task_id, updated.has_reminder)
        return outcome

    async def complete(self, task_id: str) -> TaskOutcome:
        self._require_ready()
        existing = self.store.get(task_id)
        if existing is None:
            return self._not_found("complete", task_id)

        outcome = TaskOutcome(task=None)
        if existing.is_completed and not existing.has_reminder:
            outcome.task = existing
            return outcome

        try:
            await self.scheduler.cancel(existing.reminder)
        except SchedulingFailure:
            outcome.notes.append(NOTE_CANCEL_FAILED)

        try:
            done = self.store.mark_completed(task_id)
        except NotFoundError:
            return self._not_found("complete", task_id)

        outcome.task = done
        await self._persist_update(done, outcome)
        logger.info("Task completed id=%s", task_id)
        return outcome

    async def delete(self, task_id: str) -> TaskOutcome:
        self._require_ready()
        existing = self.store.get(task_id)
        if existing is None:
            return self._not_found("delete", task_id)

        outcome = TaskOutcome(task=existing)
        try:
            await self.scheduler.cancel(existing.reminder)
        except SchedulingFailure:
            outcome.notes.append(NOTE_CANCEL_FAILED)

        self.store.remove(task_id)

        try:
            await self.gateway.delete(task_id)
        except PersistenceFailure:
            outcome.persisted = False
            outcome.notes.append(NOTE_NOT_SAVED)

        logger.info("Task deleted id=%s", task_id)
        return outcome

    async def clear_completed(self) -> TaskOutcome:
        self._require_ready()
        # Completing already cancelled these; only legacy rows may still hold a handle.
        for task in self.store.get_all():
            if task.is_completed and task.has_reminder:
                await self._cancel_quietly(task.reminder, task.id)

        removed = self.store.clear_completed()
        outcome = TaskOutcome(task=None, count=len(removed))

        try:
            await self.gateway.delete_completed()
        except PersistenceFailure:
            outcome.persisted = False
            outcome.notes.append(NOTE_NOT_SAVED)

        logger.info("Cleared completed tasks n=%d", len(removed))
        return outcome

    async def clear_all(self) -> TaskOutcome:
        self._require_ready()
        for task in self.store.get_all():
            await self._cancel_quietly(task.reminder, task.id)

        removed = self.store.clear_all()
        outcome = TaskOutcome(task=None, count=len(removed))

        try:
            await self.gateway.delete_all()
        except PersistenceFailure:
            outcome.persisted = False
            outcome.notes.append(NOTE_NOT_SAVED)

        logger.info("Cleared all tasks n=%d", len(removed))
        return outcome

    async def reminder_fired(self, task_id: str, handle_ref: str) -> bool:
        """A delivered alert is no longer live: drop the handle if the task still holds it."""
        task = self.store.get(task_id)
        if task is None or task.reminder != HandlePresent(handle_ref):
            return False
        await self._commit_and_persist(task_id, reminder=NO_HANDLE)
        return True

    # ---- helpers ----

    def _require_ready(self) -> None:
        # Checked up front so nothing reaches the backend before hydration.
        if not self.store.is_ready:
            raise StoreNotReadyError(f"task store is not ready (state={self.store.state.value})")

    async def _schedule(self, task: Task, outcome: TaskOutcome) -> ReminderHandle:
        try:
            handle = await self.scheduler.schedule(task)
        except SchedulingFailure:
            outcome.notes.append(NOTE_REMINDER_FAILED)
            return NO_HANDLE
        if not isinstance(handle, HandlePresent):
            outcome.notes.append(NOTE_REMINDER_PASSED)
        return handle

    async def _cancel_quietly(self, handle: ReminderHandle, task_id: str) -> None:
        try:
            await self.scheduler.cancel(handle)
        except SchedulingFailure:
            logger.warning("Ignoring failed reminder cancel task_id=%s", task_id)

    async def _persist_update(self, task: Task, outcome: TaskOutcome) -> None:
        try:
            await self.gateway.update(task)
        except PersistenceFailure:
            outcome.persisted = False
            outcome.notes.append(NOTE_NOT_SAVED)

    async def _commit_and_persist(self, task_id: str, **changes) -> None:
        try:
            updated = self.store.update(task_id, **changes)
        except NotFoundError:
            logger.warning("Task vanished during resync id=%s", task_id)
            return
        try:
            await self.gateway.update(updated)
        except PersistenceFailure:
            logger.warning("Resync change not saved id=%s", task_id)

    @staticmethod
    def _not_found(op: str, task_id: str) -> TaskOutcome:
        logger.warning("%s: task not found id=%s", op, task_id)
        return TaskOutcome(task=None, persisted=False, notes=[NOTE_NOT_FOUND])
