"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Recurrence, ChatMessage)
- due.py: pure due-time rules (next due moment, overdue, recurrence roll-over)
- task_store.py: the single owner of tasks + chat, persisted via a key-value store
- kv_store.py: file-backed key-value store
- reminders.py: schedule/cancel message protocol + the foreground reminder scheduler
- reminder_worker.py: background context holding one repeating timer per task
- overdue.py: fixed-cadence overdue sweep
"""
