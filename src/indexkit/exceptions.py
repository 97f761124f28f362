"""Custom exception hierarchy for indexkit.

Validation errors are raised locally before anything is dispatched. Remote
failures come from the dispatcher and are passed through untouched by the
indexing core.
"""

from __future__ import annotations

from typing import Any, Optional


class IndexkitError(Exception):
    """Base class for all indexkit exceptions."""


class ConfigError(IndexkitError):
    """Raised when configuration loading or validation fails."""


class InvalidArgumentError(IndexkitError, ValueError):
    """Raised when a caller-supplied identifier or argument is empty or invalid."""


class InvalidRecordError(IndexkitError, ValueError):
    """Raised when records in a batch lack a required objectID."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation


class RemoteOperationError(IndexkitError):
    """Raised by the dispatcher for transport or service level failures."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TaskTimeoutError(IndexkitError):
    """Raised when an opt-in polling cap is reached before a task is published."""

    def __init__(self, task_id: Any, attempts: int) -> None:
        super().__init__(f"Task {task_id} not published after {attempts} polls")
        self.task_id = task_id
        self.attempts = attempts
