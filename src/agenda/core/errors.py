"""Error taxonomy surfaced to callers through the notification sink."""


class SchedulingError(Exception):
    """Base class for every error the scheduling engine reports."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidDateRange(SchedulingError):
    """The date has no month bucket in the supported window."""

    pass


class InvalidTimeWindow(SchedulingError):
    """The end time is missing or not strictly after the start time."""

    pass


class PersistenceFailure(SchedulingError):
    """The remote collaborator rejected or failed a call."""

    pass


class PersistenceError(Exception):
    """Raised by repository adapters when a remote call fails."""

    pass


class UnknownBooking(SchedulingError):
    """The booking an operation refers to is no longer held."""

    pass


class InvalidClient(SchedulingError):
    """A client record is missing its name or duplicates an existing one."""

    pass
