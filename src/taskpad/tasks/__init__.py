"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskDraft, Priority, reminder handles)
- task_store.py: in-memory authoritative collection
- task_db.py: SQLite durable store
- persistence.py: async gateway between the store and the durable store
- reminder_scheduler.py: reminder fire times and handle lifecycle
- task_query.py: filters and sorts over snapshots
- lifecycle.py: orchestrates user intents across all of the above
"""
