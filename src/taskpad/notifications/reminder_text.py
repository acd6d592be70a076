# src/taskpad/notifications/reminder_text.py

from __future__ import annotations

from datetime import datetime

from ..tasks.task_models import ReminderPayload

REMINDER_TITLE = "Task Reminder"


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}{'s' if n > 1 else ''}"


def describe_lead_time(minutes_before: int) -> str:
    """'due now' / 'due in 15 minutes' / 'due in 2 hours' / 'due in 1 day'."""
    m = max(0, int(minutes_before))
    if m == 0:
        return "due now"
    if m < 60:
        return f"due in {m} minutes"
    if m < 1440:
        return f"due in {_plural(m // 60, 'hour')}"
    return f"due in {_plural(m // 1440, 'day')}"


def format_due(due_at: datetime) -> str:
    local = due_at.astimezone()
    hour = local.strftime("%I").lstrip("0") or "12"
    return f"{local.strftime('%b')} {local.day} at {hour}:{local.strftime('%M %p')}"


def reminder_body(payload: ReminderPayload) -> str:
    due = format_due(datetime.fromisoformat(payload.due_at))
    lead = describe_lead_time(payload.offset_minutes)
    if lead == "due now":
        return f"Your task is due now!\n{due}"
    return f"Your task is {lead}\n{due}"


def reminder_preview(description: str, minutes_before: int) -> str:
    """One-line preview shown when a task is saved."""
    lead = describe_lead_time(minutes_before)
    if lead == "due now":
        return f'Your task "{description}" is due now!'
    return f'Your task "{description}" is {lead}'


def render_reminder(payload: ReminderPayload) -> str:
    head = f"[{REMINDER_TITLE}] ({payload.priority.value}) {payload.description}".rstrip()
    return f"{head}\n{reminder_body(payload)}"
