# src/taskpad/cli/commands.py

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta

from ..core.errors import StoreNotReadyError, ValidationError
from ..core.state import AppState
from ..notifications.reminder_text import reminder_preview
from ..tasks.lifecycle import TaskOutcome
from ..tasks.task_models import Priority, Task, TaskDraft
from ..tasks.task_query import SortOrder, TimeBucket, build_view, sort_by_due

CommandHandler = Callable[[AppState, list[str]], Awaitable[str]]

_RELATIVE_RE = re.compile(r"^\+(\d+)([mhd])$")
_OFFSET_RE = re.compile(r"^@(\d+)$")
_UNITS = {"m": "minutes", "h": "hours", "d": "days"}


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            return await handler(state, args)
        except ValidationError as e:
            return f"Invalid input: {e}"
        except StoreNotReadyError:
            return "Tasks are not loaded yet."

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- parsing helpers ----


def parse_due(token: str, now: datetime | None = None) -> datetime:
    """
    Accepts ISO-8601 ("2026-10-20T15:30", "2026-10-20") or relative "+30m", "+2h", "+1d".
    """
    m = _RELATIVE_RE.match(token)
    if m:
        base = (now or datetime.now()).replace(microsecond=0)
        return base + timedelta(**{_UNITS[m.group(2)]: int(m.group(1))})
    try:
        return datetime.fromisoformat(token)
    except ValueError:
        raise ValidationError(f"cannot read date/time {token!r} (use 2026-10-20T15:30 or +2h)") from None


def parse_draft(args: list[str], now: datetime | None = None) -> TaskDraft:
    """<when> <priority> <description...> [@minutes]"""
    if len(args) < 3:
        raise ValidationError("expected: <when> <priority> <description...> [@minutes]")

    offset: int | None = None
    words: list[str] = []
    for tok in args[2:]:
        m = _OFFSET_RE.match(tok)
        if m:
            offset = int(m.group(1))
        else:
            words.append(tok)

    return TaskDraft(
        description=" ".join(words),
        due_at=parse_due(args[0], now),
        priority=Priority.parse(args[1]),
        reminder_offset_minutes=offset,
    )


def resolve_task_id(state: AppState, token: str) -> str:
    """Full id or a unique prefix of one."""
    if token in state.store:
        return token
    matches = [t.id for t in state.store.get_all() if t.id.startswith(token)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        return token  # lifecycle reports "not found"
    raise ValidationError(f"id prefix {token!r} is ambiguous ({len(matches)} tasks)")


def format_task(task: Task) -> str:
    box = "[x]" if task.is_completed else "[ ]"
    due = task.due_at.astimezone().strftime("%Y-%m-%d %H:%M")
    bell = " (reminder)" if task.has_reminder else ""
    return f"{task.id[:8]} {box} {task.priority.value:<6} {due}  {task.description}{bell}"


def format_outcome(verb: str, outcome: TaskOutcome) -> str:
    if not outcome.ok:
        return "Task not found."
    lines = [f"{verb}: {format_task(outcome.task)}" if outcome.task else f"{verb}: {outcome.count} tasks"]
    lines.extend(f"  note: {n}" for n in outcome.notes)
    return "\n".join(lines)


# ---- commands ----


async def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_add(state: AppState, args: list[str]) -> str:
    outcome = await state.lifecycle.create(parse_draft(args, now=state.now()))
    reply = format_outcome("Added", outcome)
    task = outcome.task
    if task is not None and task.has_reminder:
        minutes = state.lifecycle.scheduler.offset_for(task)
        reply += "\n  " + reminder_preview(task.description, minutes)
    return reply


async def cmd_edit(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /edit <id> <when> <priority> <description...> [@minutes]"
    task_id = resolve_task_id(state, args[0])
    outcome = await state.lifecycle.edit(task_id, parse_draft(args[1:], now=state.now()))
    return format_outcome("Updated", outcome)


async def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <id>"
    outcome = await state.lifecycle.complete(resolve_task_id(state, args[0]))
    return format_outcome("Completed", outcome)


async def cmd_rm(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <id>"
    outcome = await state.lifecycle.delete(resolve_task_id(state, args[0]))
    return format_outcome("Deleted", outcome)


async def cmd_clear(state: AppState, args: list[str]) -> str:
    """
    /clear      -> remove completed tasks
    /clear all  -> remove every task (and its reminder)
    """
    if args and args[0].lower() == "all":
        return format_outcome("Cleared", await state.lifecycle.clear_all())
    return format_outcome("Cleared completed", await state.lifecycle.clear_completed())


async def cmd_list(state: AppState, args: list[str]) -> str:
    """
    /list [pending|completed|all] [low|medium|high] [today|week|month] [asc|desc]
    Defaults: pending, any priority, any time, ordered by due time.
    """
    completed: bool | None = False
    priority: str = "all"
    bucket: str = TimeBucket.ALL
    order: str | None = None

    for raw in args:
        a = raw.lower()
        if a in ("pending", "open"):
            completed = False
        elif a in ("completed", "done"):
            completed = True
        elif a == "all":
            completed = None
        elif a in {p.value for p in Priority}:
            priority = a
        elif a in (SortOrder.ASC, SortOrder.DESC):
            order = a
        else:
            bucket = TimeBucket.parse(raw)

    tasks = sort_by_due(state.store.get_all())
    view = build_view(tasks, completed=completed, priority=priority, bucket=bucket, order=order, now=state.now())
    if not view:
        return "No tasks."
    return "\n".join(format_task(t) for t in view)


async def cmd_alerts(state: AppState, args: list[str]) -> str:
    handles = await state.lifecycle.scheduler.list_live()
    with_handle = sum(1 for t in state.store.get_all() if t.has_reminder)
    return f"Scheduled alerts: {len(handles)} (tasks holding a reminder: {with_handle})"


async def cmd_status(state: AppState, args: list[str]) -> str:
    tasks = state.store.get_all()
    done = sum(1 for t in tasks if t.is_completed)
    return (
        "Status:\n"
        f"  Store: {state.store.state.value}\n"
        f"  Tasks: {len(tasks) - done} pending, {done} completed\n"
        f"  Database: {getattr(state.settings, 'tasks_db_path', '?')}"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register(
    "add", cmd_add, help_text="Add a task: /add <when> <priority> <description...> [@minutes]."
)
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <id> <when> <priority> <description...> [@minutes].")
registry.register("done", cmd_done, help_text="Complete a task: /done <id>.", aliases=["complete"])
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <id>.", aliases=["delete"])
registry.register("clear", cmd_clear, help_text="Remove completed tasks: /clear | /clear all.")
registry.register(
    "list", cmd_list, help_text="List tasks: /list [pending|completed|all] [priority] [today|week|month] [asc|desc]."
)
registry.register("alerts", cmd_alerts, help_text="Show scheduled reminder count.")
registry.register("status", cmd_status, help_text="Show store state and task counts.")
