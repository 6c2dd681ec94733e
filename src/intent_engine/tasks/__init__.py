"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus, TaskDatabase, ...)
- task_store.py: JSON-file storage with whole-document load/save
- task_service.py: lifecycle operations and domain errors
"""
