"""Error types raised by the scheduling engine and its collaborators."""


class HydranagError(Exception):
    """Base class for all recoverable hydranag errors."""


class InvalidWindow(HydranagError):
    """The reminder window does not end after it starts."""


class ValidationError(HydranagError):
    """Reminder settings failed the schedule policy checks."""


class PersistenceError(HydranagError):
    """The intake store could not be read or written."""


class SchedulingError(HydranagError):
    """Submitting or cancelling deferred reminder jobs failed.

    ``submitted`` is the number of jobs already queued when the failure
    happened; those jobs are left in place.
    """

    def __init__(self, message: str, submitted: int = 0):
        super().__init__(message)
        self.submitted = submitted
