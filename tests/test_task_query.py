# tests/test_task_query.py

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from taskpad.core.errors import ValidationError
from taskpad.tasks.task_models import Priority, Task
from taskpad.tasks.task_query import (
    TimeBucket,
    build_view,
    filter_by_completion,
    filter_by_priority,
    filter_by_time_bucket,
    sort_by_due,
    sort_by_priority,
)

from .conftest import NOW


def _task(tid: str, priority: str = "medium", due: datetime = NOW, done: bool = False) -> Task:
    return Task(id=tid, description=tid, due_at=due, priority=Priority(priority), is_completed=done)


def _ids(tasks) -> list[str]:
    return [t.id for t in tasks]


def test_sort_desc_is_stable() -> None:
    tasks = [_task("A", "medium"), _task("B", "medium"), _task("C", "high")]
    assert _ids(sort_by_priority(tasks, "desc")) == ["C", "A", "B"]


def test_sort_asc_is_stable() -> None:
    tasks = [_task("A", "high"), _task("B", "low"), _task("C", "high"), _task("D", "low")]
    assert _ids(sort_by_priority(tasks, "asc")) == ["B", "D", "A", "C"]
    with pytest.raises(ValidationError):
        sort_by_priority(tasks, "sideways")


def test_sort_by_due() -> None:
    tasks = [_task("late", due=NOW + timedelta(hours=3)), _task("soon", due=NOW + timedelta(hours=1))]
    assert _ids(sort_by_due(tasks)) == ["soon", "late"]
    assert _ids(sort_by_due(tasks, "desc")) == ["late", "soon"]


def test_filter_by_completion_and_priority() -> None:
    tasks = [_task("a", "high"), _task("b", "low", done=True), _task("c", "high", done=True)]
    assert _ids(filter_by_completion(tasks, True)) == ["b", "c"]
    assert _ids(filter_by_completion(tasks, False)) == ["a"]
    assert _ids(filter_by_priority(tasks, "high")) == ["a", "c"]
    assert _ids(filter_by_priority(tasks, Priority.LOW)) == ["b"]
    assert _ids(filter_by_priority(tasks, "all")) == ["a", "b", "c"]


def test_today_boundaries() -> None:
    end_of_today = NOW.replace(hour=23, minute=59, second=59)
    start_of_tomorrow = NOW.replace(hour=0, minute=0, second=1) + timedelta(days=1)
    earlier_today = NOW.replace(hour=0, minute=0, second=0)
    tasks = [_task("eod", due=end_of_today), _task("tomorrow", due=start_of_tomorrow), _task("early", due=earlier_today)]

    assert _ids(filter_by_time_bucket(tasks, "today", now=NOW)) == ["eod", "early"]


def test_week_is_monday_based() -> None:
    # NOW is Monday 2026-10-19.
    sunday_before = datetime(2026, 10, 18, 23, 0)
    monday = datetime(2026, 10, 19, 0, 0)
    sunday_end = datetime(2026, 10, 25, 23, 59, 59)
    next_monday = datetime(2026, 10, 26, 0, 0)
    tasks = [_task("prev", due=sunday_before), _task("mon", due=monday), _task("sun", due=sunday_end), _task("next", due=next_monday)]

    assert _ids(filter_by_time_bucket(tasks, TimeBucket.THIS_WEEK, now=NOW)) == ["mon", "sun"]
    # Same week seen from its Sunday.
    assert _ids(filter_by_time_bucket(tasks, "thisWeek", now=sunday_end)) == ["mon", "sun"]


def test_month_bucket() -> None:
    tasks = [
        _task("sep", due=datetime(2026, 9, 30, 23, 0)),
        _task("oct", due=datetime(2026, 10, 31, 22, 0)),
        _task("oct-last-year", due=datetime(2025, 10, 10, 9, 0)),
    ]
    assert _ids(filter_by_time_bucket(tasks, "this_month", now=NOW)) == ["oct"]
    assert _ids(filter_by_time_bucket(tasks, "all", now=NOW)) == ["sep", "oct", "oct-last-year"]
    with pytest.raises(ValidationError):
        filter_by_time_bucket(tasks, "fortnight", now=NOW)


def test_build_view_filters_then_sorts() -> None:
    tasks = [
        _task("a", "medium"),
        _task("b", "high", done=True),
        _task("c", "medium"),
        _task("d", "high"),
        _task("e", "low", due=NOW + timedelta(days=40)),
    ]
    view = build_view(tasks, completed=False, bucket="today", order="desc", now=NOW)
    assert _ids(view) == ["d", "a", "c"]

    # Sorting first and filtering afterwards gives the same order.
    resorted = filter_by_time_bucket(filter_by_completion(sort_by_priority(tasks, "desc"), False), "today", now=NOW)
    assert _ids(resorted) == _ids(view)


def test_projections_do_not_mutate_input() -> None:
    tasks = [_task("a", "low"), _task("b", "high")]
    original = list(tasks)
    sort_by_priority(tasks)
    filter_by_priority(tasks, "high")
    assert tasks == original
