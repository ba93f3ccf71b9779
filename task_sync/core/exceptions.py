"""
Exception classes for task-sync.
"""

from typing import Any, Optional


class TaskSyncError(Exception):
    """Base exception for all task-sync errors."""
    pass


class ConfigurationError(TaskSyncError):
    """Raised when configuration is invalid or missing."""
    pass


class StoreError(TaskSyncError):
    """Base exception for errors raised by a task store."""

    def __init__(self, message: str, transient: bool = False):
        super().__init__(message)
        self.transient = transient


class FetchError(StoreError):
    """Raised when a side's snapshot cannot be fetched."""

    def __init__(self, side: str, message: str, transient: bool = False):
        super().__init__(f"Failed to fetch tasks from {side}: {message}", transient=transient)
        self.side = side


class ApplyError(StoreError):
    """Raised when a single create/update call is rejected by a store."""
    pass


class SyncError(TaskSyncError):
    """Raised when a whole sync pass fails."""

    def __init__(self, message: str, cause: Optional[BaseException] = None, result: Any = None):
        super().__init__(message)
        self.cause = cause
        self.result = result
