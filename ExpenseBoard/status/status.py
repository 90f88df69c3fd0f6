"""Status definitions and exceptions for ExpenseBoard.

This module provides:
    - Status: enumeration of possible application states
    - STATUS_MESSAGE: user-facing messages for each status
    - get_message: retrieve the message for a status
    - BaseStatusException: base exception carrying a Status
    - Specific exceptions (e.g., ValidationException) for error handling in the controller
"""
import enum
import logging
from typing import Dict


class Status(enum.StrEnum):
    """Enumeration of application status codes."""
    UnknownStatus = enum.auto()
    Okay = enum.auto()

    # Input status
    ValidationFailed = enum.auto()

    # Persistence status
    StoreUnavailable = enum.auto()
    MalformedState = enum.auto()

    # Cross-window sync status
    SyncUnavailable = enum.auto()


STATUS_MESSAGE: Dict[Status, str] = {
    Status.UnknownStatus: 'Unknown status.',
    Status.Okay: 'Everything is okay.',

    Status.ValidationFailed: 'The entered values are not valid.',

    Status.StoreUnavailable: 'Could not access the local store. Changes are kept for this session only.',
    Status.MalformedState: 'The saved data could not be read and was reset to defaults.',

    Status.SyncUnavailable: 'Live synchronization with other windows is unavailable.',
}


def get_message(status: Status) -> str:
    """
    Get the message for a given status.

    Args:
        status (Status): The status enum.

    Returns:
        str: The message associated with the status.
    """
    return STATUS_MESSAGE.get(status, 'Unknown status')


class BaseStatusException(Exception):
    """Base exception for status-based errors in ExpenseBoard.

    Errors at or above ``logging.ERROR`` are forwarded to the application-wide
    ``signals.error`` signal; lower levels are only logged.

    Attributes:
        status (Status): Status code associated with this error.
        level (int): Logging level used when the exception is created.
        status_message (str): User-facing message for the status.

    Args:
        message (str): Optional additional context for the error.
    """
    status = Status.UnknownStatus
    level = logging.ERROR

    def __init__(self, message: str = None):
        self.status_message = get_message(self.status)
        self.message = message or self.status_message
        exception_message = f'{self.status_message} {message}' if message else self.status_message
        super().__init__(exception_message)

        logging.log(self.level, exception_message)

        if self.level < logging.ERROR:
            return

        from ..ui.actions import signals
        signals.error.emit(self.message)


class UnknownException(BaseStatusException):
    """Exception for an unknown error during status processing."""
    pass


class ValidationException(BaseStatusException):
    """Exception raised when profile or expense input fails validation."""
    status = Status.ValidationFailed
    level = logging.WARNING


class StoreUnavailableException(BaseStatusException):
    """Exception raised when the local key-value store cannot be read or written."""
    status = Status.StoreUnavailable


class MalformedStateException(BaseStatusException):
    """Exception raised when persisted state cannot be decoded."""
    status = Status.MalformedState
    level = logging.WARNING


class SyncUnavailableException(BaseStatusException):
    """Exception raised when the broadcast channel cannot deliver messages."""
    status = Status.SyncUnavailable
    level = logging.DEBUG
