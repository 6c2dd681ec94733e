# src/intent_engine/core/errors.py

"""
Error taxonomy.

- MessagingError and its subclasses are recoverable: the command layer renders
  them as a user-facing reply.
- StorageCorruptError is fatal for the operation that hit it.
- Other OSErrors from the task file are not wrapped.
"""

from __future__ import annotations

from pathlib import Path


class IntentError(Exception):
    pass


class MessagingError(IntentError):
    def __init__(self, message: str, code: str, recoverable: bool = True) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.recoverable = recoverable


class TaskNotFoundError(MessagingError):
    def __init__(self, task_ref: str) -> None:
        super().__init__(f"Task not found: {task_ref}", "TASK_NOT_FOUND")
        self.task_ref = task_ref


class InvalidCommandError(MessagingError):
    def __init__(self, command: str) -> None:
        super().__init__(f"Invalid command: {command}", "INVALID_COMMAND")
        self.command = command


class MissingArgumentError(MessagingError):
    def __init__(self, argument: str) -> None:
        super().__init__(f"Missing required argument: {argument}", "MISSING_ARGUMENT")
        self.argument = argument


class StorageCorruptError(IntentError):
    def __init__(self, path: str | Path, reason: str) -> None:
        super().__init__(f"Task file {path} cannot be parsed: {reason}")
        self.path = Path(path)
        self.reason = reason
