"""taskpad: personal tasks with due-time reminders."""

__version__ = "0.1.0"
