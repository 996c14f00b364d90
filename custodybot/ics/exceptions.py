"""ICS-specific exceptions for error handling."""

from typing import Optional


class ICSError(Exception):
    """Base exception for ICS-related errors."""

    def __init__(self, message: str, component: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.component = component


class ICSParseError(ICSError):
    """Exception raised when a single ICS value cannot be parsed."""


class ICSEncodeError(ICSError):
    """Exception raised when a schedule cannot be serialized to ICS."""
