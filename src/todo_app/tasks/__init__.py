"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskPatch, TaskStats)
- task_store.py: SQLite-backed storage for the tasks table
"""
