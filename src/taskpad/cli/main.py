# src/taskpad/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, hydrates the task store, then runs:
- the reminder delivery loop in the background,
- the console REPL in the foreground (optional).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import sys

from ..cli.bootstrap import create_initial_state, make_delivery_hook, start_state
from ..config import get_settings
from ..connectors.console_connector import ConsoleMessenger, run_console_loop
from ..core.errors import HydrationError
from ..core.state import AppState
from ..logging_setup import setup_logging
from ..notifications.local_backend import run_notification_loop

logger = logging.getLogger(__name__)


async def run_app(state: AppState) -> int:
    try:
        await start_state(state)
    except HydrationError:
        logger.exception("Could not load tasks from %s; refusing to start.", state.settings.tasks_db_path)
        return 1

    settings = state.settings
    alert_finished = make_delivery_hook(state)
    notifier = asyncio.create_task(
        run_notification_loop(
            state.notifications,
            ConsoleMessenger(),
            interval_seconds=settings.notification_poll_seconds,
            retry_delay_seconds=settings.notification_retry_seconds,
            on_delivered=alert_finished,
            on_dropped=alert_finished,
        ),
        name="taskpad-notifications",
    )

    stop = asyncio.Event()
    try:
        if settings.console_enabled:
            await run_console_loop(state)
        else:
            logger.info("Console disabled. Delivering reminders only. Press Ctrl+C to stop.")
            await stop.wait()
    finally:
        notifier.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await notifier
        state.store.close()
    return 0


def main() -> None:
    settings = get_settings()

    log_path = setup_logging(log_dir=settings.data_dir, console_level=settings.log_level)

    logger.info("Starting %s... (log file: %s)", settings.app_name, log_path)

    state = create_initial_state(settings=settings)

    try:
        code = asyncio.run(run_app(state))
    except KeyboardInterrupt:
        code = 0
    logger.info("Bye.")
    sys.exit(code)


if __name__ == "__main__":
    main()
