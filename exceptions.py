"""Error taxonomy for Reminders MCP Service.

Every raised error carries a kind plus the operation and the list/reminder
names it concerns, so callers can branch on `kind` instead of parsing text.
"""

import enum
from typing import Optional


class ErrorKind(enum.Enum):
    """Closed set of failure kinds surfaced to callers"""
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    UPSTREAM = "upstream"


class StoreError(Exception):
    """Raised by a store backend when the native store call fails."""


class RemindersError(Exception):
    """Base error with structured context.

    Attributes:
        kind: ErrorKind of the failure
        message: Bare description of what went wrong
        operation: Operation being performed (e.g. "create reminder")
        list_name: List the caller addressed, if any
        reminder_name: Reminder the caller addressed, if any
    """

    kind = ErrorKind.UPSTREAM

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        list_name: Optional[str] = None,
        reminder_name: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.list_name = list_name
        self.reminder_name = reminder_name

    def add_context(
        self,
        operation: str,
        list_name: Optional[str] = None,
        reminder_name: Optional[str] = None
    ) -> "RemindersError":
        """Fill in context fields that are still empty; returns self."""
        self.operation = self.operation or operation
        self.list_name = self.list_name or list_name
        self.reminder_name = self.reminder_name or reminder_name
        return self

    def __str__(self) -> str:
        if not self.operation:
            return self.message

        target = f"Failed to {self.operation}"
        if self.reminder_name:
            target += f' "{self.reminder_name}"'
        if self.list_name:
            target += f' in list "{self.list_name}"'
        return f"{target}: {self.message}"


class ListNotFoundError(RemindersError):
    """List name resolves to neither a real nor a smart list."""
    kind = ErrorKind.NOT_FOUND


class ReminderValidationError(RemindersError):
    """Input rejected on a strict write path."""
    kind = ErrorKind.VALIDATION


class UpstreamError(RemindersError):
    """The native store failed while serving an operation."""
    kind = ErrorKind.UPSTREAM
