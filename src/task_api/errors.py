from __future__ import annotations


class TaskManagerError(Exception):
    """Base class for errors raised by the task service layers."""


# PUBLIC_INTERFACE
class NotFoundError(TaskManagerError):
    """Raised when an operation references a task id that does not exist."""

    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


# PUBLIC_INTERFACE
class StorageError(TaskManagerError):
    """
    Raised when the underlying store is unreachable or rejects a statement.

    The underlying driver exception is chained as ``__cause__``.
    """
