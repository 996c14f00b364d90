"""Exceptions raised by custody schedule management."""

from typing import Any, Optional


class ScheduleError(Exception):
    """Base exception for custody schedule errors.

    Args:
        message: Human-readable error description
        details: Optional dictionary containing additional error context

    Example:
        >>> raise ScheduleError("Failed to create schedule", {"name": "Weekends"})
    """

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ScheduleStoreError(ScheduleError):
    """Exception raised when the record store rejects an operation.

    Args:
        message: Human-readable error description
        record_id: Identifier of the record involved
        operation: Store operation that failed (insert, update, delete)
        details: Additional context about the failure
    """

    def __init__(
        self,
        message: str,
        record_id: Optional[str] = None,
        operation: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.record_id = record_id
        self.operation = operation

        error_details = details or {}
        if record_id:
            error_details["record_id"] = record_id
        if operation:
            error_details["operation"] = operation

        super().__init__(message, error_details)
