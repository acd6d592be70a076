# src/taskpad/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Loggers that still print to the console, but only from this level up.
_QUIET_LOGGERS = {
    # Delivered reminders are printed by the console messenger already.
    "taskpad.notifications.local_backend": logging.WARNING,
}


class _ConsoleNoiseFilter(logging.Filter):
    """The REPL shares stderr with log output, so only taskpad's own records get through freely."""

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if not name.startswith("taskpad."):
            # py.warnings and every library logger
            return record.levelno >= logging.ERROR

        for prefix, min_level in _QUIET_LOGGERS.items():
            if name.startswith(prefix):
                return record.levelno >= min_level
        return True


def level_from_name(name: str | int | None, default: int = logging.INFO) -> int:
    if isinstance(name, int):
        return name
    level = logging.getLevelName(str(name or "").strip().upper())
    return level if isinstance(level, int) else default


def setup_logging(
    *,
    log_dir: str | Path = ".local/taskpad",
    console_level: str | int = logging.INFO,
    file_level: str | int = logging.DEBUG,
    file_name: str = "taskpad.log",
) -> Path:
    """
    Route all logging to two places: a filtered stderr stream for the REPL and
    `<log_dir>/<file_name>` with every record. Replaces existing root handlers, so
    calling it again reconfigures instead of duplicating output.

    Returns the log file path.
    """
    log_path = Path(log_dir) / file_name
    log_path.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level_from_name(console_level))
    console.setFormatter(formatter)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    logfile = logging.FileHandler(str(log_path), encoding="utf-8")
    logfile.setLevel(level_from_name(file_level, logging.DEBUG))
    logfile.setFormatter(formatter)
    root.addHandler(logfile)

    logging.captureWarnings(True)
    return log_path
