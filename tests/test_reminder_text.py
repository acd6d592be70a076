# tests/test_reminder_text.py

from __future__ import annotations

from datetime import datetime

import pytest

from taskpad.notifications.reminder_text import describe_lead_time, reminder_body, reminder_preview
from taskpad.tasks.task_models import Priority, ReminderPayload


@pytest.mark.parametrize(
    "minutes, expected",
    [
        (0, "due now"),
        (15, "due in 15 minutes"),
        (60, "due in 1 hour"),
        (150, "due in 2 hours"),
        (1440, "due in 1 day"),
        (4000, "due in 2 days"),
    ],
)
def test_describe_lead_time(minutes: int, expected: str) -> None:
    assert describe_lead_time(minutes) == expected


def test_body_and_preview() -> None:
    payload = ReminderPayload(
        task_id="t1",
        priority=Priority.LOW,
        due_at=datetime(2026, 10, 20, 15, 5).isoformat(),
        offset_minutes=0,
        description="Buy milk",
    )
    assert reminder_body(payload) == "Your task is due now!\nOct 20 at 3:05 PM"
    assert reminder_preview("Buy milk", 90) == 'Your task "Buy milk" is due in 1 hour'
