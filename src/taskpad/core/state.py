# src/taskpad/core/state.py

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..notifications.local_backend import LocalNotificationBackend
from ..tasks.lifecycle import TaskLifecycle
from ..tasks.task_store import TaskStore


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    store: TaskStore
    lifecycle: TaskLifecycle
    notifications: LocalNotificationBackend

    clock: Callable[[], float] = field(default=time.time)

    @property
    def ready(self) -> bool:
        return self.store.is_ready

    def now(self) -> datetime:
        """Local wall-clock time (naive), as the views and date parsing expect."""
        return datetime.fromtimestamp(self.clock())
