"""Exceptions raised by the calendar sync pipeline."""
from typing import Optional


class CalendarSyncError(Exception):
    """Base class for calendar sync failures."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class NetworkError(CalendarSyncError):
    """The calendar feed could not be retrieved."""


class PersistenceError(CalendarSyncError):
    """A read or write against the event store failed."""


class SyncError(CalendarSyncError):
    """A sync run failed while fetching or persisting events."""
