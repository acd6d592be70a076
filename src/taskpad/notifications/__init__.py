"""
Notification subsystem.

Components:
- local_backend.py: in-process NotificationBackend + polling delivery loop
- reminder_text.py: title/body text for fired reminders
"""
