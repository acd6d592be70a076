# tests/test_task_store.py

from __future__ import annotations

from datetime import timedelta

import pytest

from taskpad.core.errors import DuplicateIdError, NotFoundError, StoreNotReadyError, ValidationError
from taskpad.tasks.task_models import NO_HANDLE, HandlePresent, Priority, Task
from taskpad.tasks.task_store import StoreState, TaskStore

from .conftest import NOW


def _task(tid: str, **kw) -> Task:
    base = dict(id=tid, description=f"task {tid}", due_at=NOW + timedelta(hours=1), priority=Priority.MEDIUM)
    base.update(kw)
    return Task(**base)


@pytest.fixture()
def store() -> TaskStore:
    s = TaskStore()
    s.hydrate([])
    return s


def test_mutations_rejected_until_hydrated() -> None:
    store = TaskStore()
    assert store.state is StoreState.NEW
    with pytest.raises(StoreNotReadyError):
        store.add(_task("a"))

    store.mark_failed(OSError("boom"))
    assert store.state is StoreState.FAILED
    with pytest.raises(StoreNotReadyError):
        store.clear_all()

    store.hydrate([_task("a")])
    assert store.is_ready
    assert [t.id for t in store.get_all()] == ["a"]


def test_hydrate_keeps_first_duplicate() -> None:
    store = TaskStore()
    store.hydrate([_task("a", description="first"), _task("a", description="second"), _task("b")])
    assert [t.description for t in store.get_all()] == ["first", "task b"]


def test_add_rejects_duplicate_id(store: TaskStore) -> None:
    store.add(_task("a"))
    with pytest.raises(DuplicateIdError):
        store.add(_task("a"))
    assert len(store) == 1


def test_remove_missing_is_noop(store: TaskStore) -> None:
    store.add(_task("a"))
    assert store.remove("zzz") is False
    assert store.remove("a") is True
    assert len(store) == 0


def test_update_merges_only_given_fields(store: TaskStore) -> None:
    store.add(_task("a", reminder_offset_minutes=30, reminder=HandlePresent("h1")))
    updated = store.update("a", description="changed")
    assert updated.description == "changed"
    assert updated.reminder_offset_minutes == 30
    assert updated.reminder == HandlePresent("h1")

    with pytest.raises(NotFoundError):
        store.update("missing", description="x")
    with pytest.raises(ValidationError):
        store.update("a", id="other")


def test_mark_completed_clears_handle(store: TaskStore) -> None:
    store.add(_task("a", reminder=HandlePresent("h1")))
    done = store.mark_completed("a")
    assert done.is_completed
    assert done.reminder is NO_HANDLE
    with pytest.raises(NotFoundError):
        store.mark_completed("missing")


def test_snapshot_is_isolated_from_later_mutations(store: TaskStore) -> None:
    store.add(_task("a"))
    snap = store.get_all()
    store.add(_task("b"))
    store.update("a", description="changed")
    store.remove("a")

    assert [t.id for t in snap] == ["a"]
    assert snap[0].description == "task a"


def test_insertion_order_preserved(store: TaskStore) -> None:
    for tid in ("c", "a", "b"):
        store.add(_task(tid))
    store.update("a", priority=Priority.HIGH)
    assert [t.id for t in store.get_all()] == ["c", "a", "b"]


def test_clear_completed_and_clear_all(store: TaskStore) -> None:
    store.add(_task("a"))
    store.add(_task("b", is_completed=True))
    store.add(_task("c", is_completed=True))

    removed = store.clear_completed()
    assert sorted(t.id for t in removed) == ["b", "c"]
    assert [t.id for t in store.get_all()] == ["a"]

    assert [t.id for t in store.clear_all()] == ["a"]
    assert store.get_all() == ()


def test_subscribers_get_snapshots_and_can_unsubscribe(store: TaskStore) -> None:
    seen: list[tuple[str, ...]] = []

    def broken(_snap) -> None:
        raise RuntimeError("subscriber bug")

    store.subscribe(broken)
    unsubscribe = store.subscribe(lambda snap: seen.append(tuple(t.id for t in snap)))

    store.add(_task("a"))
    store.add(_task("b"))
    unsubscribe()
    store.remove("a")

    assert seen == [("a",), ("a", "b")]
    assert [t.id for t in store.get_all()] == ["b"]


def test_closed_store_rejects_everything(store: TaskStore) -> None:
    store.close()
    with pytest.raises(StoreNotReadyError):
        store.add(_task("a"))
    with pytest.raises(StoreNotReadyError):
        store.hydrate([])
