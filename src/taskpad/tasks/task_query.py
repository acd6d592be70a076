# src/taskpad/tasks/task_query.py

"""Pure projections over a task snapshot: filters first, sort last."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, timedelta
from enum import StrEnum

from ..core.errors import ValidationError
from .task_models import Priority, Task

ALL = "all"


class TimeBucket(StrEnum):
    TODAY = "today"
    THIS_WEEK = "this_week"
    THIS_MONTH = "this_month"
    ALL = "all"

    @classmethod
    def parse(cls, raw: str | TimeBucket) -> TimeBucket:
        if isinstance(raw, TimeBucket):
            return raw
        key = str(raw).strip()
        if key in _BUCKET_ALIASES:
            return _BUCKET_ALIASES[key]
        try:
            return cls(key.lower())
        except ValueError:
            raise ValidationError(f"unknown time bucket: {raw!r}") from None


_BUCKET_ALIASES = {
    "thisWeek": TimeBucket.THIS_WEEK,
    "thisMonth": TimeBucket.THIS_MONTH,
    "week": TimeBucket.THIS_WEEK,
    "month": TimeBucket.THIS_MONTH,
}


class SortOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, raw: str | SortOrder) -> SortOrder:
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            raise ValidationError(f"sort order must be asc or desc, got {raw!r}") from None


def _local_date(moment: datetime) -> date:
    # Naive datetimes are treated as local time by astimezone().
    return moment.astimezone().date()


def _local_now(now: datetime | None) -> datetime:
    return (now or datetime.now()).astimezone()


def filter_by_completion(tasks: Iterable[Task], completed: bool) -> list[Task]:
    return [t for t in tasks if t.is_completed == bool(completed)]


def filter_by_priority(tasks: Iterable[Task], priority: Priority | str) -> list[Task]:
    if isinstance(priority, str) and priority.strip().lower() == ALL:
        return list(tasks)
    wanted = Priority.parse(priority)
    return [t for t in tasks if t.priority is wanted]


def in_time_bucket(task: Task, bucket: TimeBucket, now: datetime) -> bool:
    if bucket is TimeBucket.ALL:
        return True

    due = _local_date(task.due_at)
    today = now.date()

    if bucket is TimeBucket.TODAY:
        return due == today

    if bucket is TimeBucket.THIS_WEEK:
        week_start = today - timedelta(days=today.weekday())  # Monday
        return week_start <= due < week_start + timedelta(days=7)

    return (due.year, due.month) == (today.year, today.month)


def filter_by_time_bucket(
    tasks: Iterable[Task],
    bucket: TimeBucket | str,
    now: datetime | None = None,
) -> list[Task]:
    """
    today      - same local calendar date as now
    this_week  - Monday-start week containing now
    this_month - same calendar month and year as now
    """
    b = TimeBucket.parse(bucket)
    local_now = _local_now(now)
    return [t for t in tasks if in_time_bucket(t, b, local_now)]


def sort_by_priority(tasks: Iterable[Task], order: SortOrder | str = SortOrder.DESC) -> list[Task]:
    """Stable: equal priorities keep their incoming relative order."""
    o = SortOrder.parse(order)
    if o is SortOrder.DESC:
        # reverse=True would also flip ties, so negate the key instead.
        return sorted(tasks, key=lambda t: -t.priority.weight)
    return sorted(tasks, key=lambda t: t.priority.weight)


def sort_by_due(tasks: Iterable[Task], order: SortOrder | str = SortOrder.ASC) -> list[Task]:
    o = SortOrder.parse(order)
    if o is SortOrder.DESC:
        return sorted(tasks, key=lambda t: -t.due_ts)
    return sorted(tasks, key=lambda t: t.due_ts)


def build_view(
    tasks: Iterable[Task],
    *,
    completed: bool | None = None,
    priority: Priority | str = ALL,
    bucket: TimeBucket | str = TimeBucket.ALL,
    order: SortOrder | str | None = None,
    now: datetime | None = None,
) -> list[Task]:
    """Apply every filter, then (optionally) the priority sort."""
    out = list(tasks)
    if completed is not None:
        out = filter_by_completion(out, completed)
    out = filter_by_priority(out, priority)
    out = filter_by_time_bucket(out, bucket, now=now)
    if order is not None:
        out = sort_by_priority(out, order)
    return out
