"""Custom exceptions for StayDesk."""
from __future__ import annotations


class StayDeskError(Exception):
    """Base exception for all StayDesk errors."""
    pass


class ConfigurationError(StayDeskError):
    """Raised when configuration is invalid or missing."""
    pass


class ValidationError(StayDeskError):
    """Raised when a booking request or admin input is malformed.

    The message is meant to be shown verbatim to whoever submitted the input.
    """
    pass


class TransitionError(StayDeskError):
    """Raised when a status change is requested from a terminal state."""
    pass


class StorageError(StayDeskError):
    """Raised when the store is unavailable or rejects a write."""
    pass


class ConflictError(StorageError):
    """Raised when a conditional write finds a different version than expected."""
    pass


class NotificationError(StayDeskError):
    """Raised inside notifiers when an email cannot be delivered."""
    pass
